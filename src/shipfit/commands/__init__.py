"""
shipfit Commands

Command implementations for the CLI.
"""

from . import fitting

__all__ = ["fitting"]
