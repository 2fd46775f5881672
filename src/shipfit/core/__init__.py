"""
shipfit Core

Shared infrastructure: settings, logging, retry policy and the ESI client.
"""

from .async_client import AsyncESIClient, AsyncESIError
from .config import ShipfitSettings, get_settings, reset_settings
from .logging import get_logger
from .retry import RetryableESIError

__all__ = [
    "AsyncESIClient",
    "AsyncESIError",
    "RetryableESIError",
    "ShipfitSettings",
    "get_logger",
    "get_settings",
    "reset_settings",
]
