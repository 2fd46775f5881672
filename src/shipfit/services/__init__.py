"""
shipfit Services.

Type data lookups against ESI.
"""

from __future__ import annotations

__all__ = ["type_data"]
