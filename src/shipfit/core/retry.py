"""
shipfit Retry Logic

Resilient HTTP request handling with exponential backoff for transient failures.

This module provides retry logic for type data API requests:
- Retries on 429 (rate limited) and 502/503/504 gateway errors
- Retries on transport errors (httpx.RequestError)
- Disabled entirely when SHIPFIT_NO_RETRY is set
"""

from collections.abc import Callable
from typing import Any, Optional, TypeVar

import httpx
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from .config import is_retry_disabled

# Type variable for generic callable decoration
F = TypeVar("F", bound=Callable[..., Any])

# Default retry configuration
DEFAULT_MAX_ATTEMPTS = 5
DEFAULT_MIN_WAIT = 0.5  # seconds
DEFAULT_MAX_WAIT = 30.0  # seconds

# HTTP status codes that should trigger retry
RETRYABLE_STATUS_CODES = {
    429,  # Too Many Requests (rate limited)
    503,  # Service Unavailable
    502,  # Bad Gateway
    504,  # Gateway Timeout
}


def is_retry_enabled() -> bool:
    """
    Check if retry logic is enabled.

    Returns:
        False when SHIPFIT_NO_RETRY is set, True otherwise
    """
    return not is_retry_disabled()


def get_retry_status() -> dict:
    """
    Get detailed status about retry configuration.

    Returns:
        Dict with keys:
        - enabled: bool - whether retry is enabled (respects SHIPFIT_NO_RETRY)
        - config: dict - current retry configuration
    """
    return {
        "enabled": is_retry_enabled(),
        "config": {
            "max_attempts": DEFAULT_MAX_ATTEMPTS,
            "min_wait": DEFAULT_MIN_WAIT,
            "max_wait": DEFAULT_MAX_WAIT,
            "retryable_codes": sorted(RETRYABLE_STATUS_CODES),
        },
    }


class RetryableESIError(Exception):
    """
    Exception for retryable type data API errors.

    Raised for HTTP responses and transport failures that should trigger
    retry logic. Preserves the original error information for logging.
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        retry_after: Optional[int] = None,
        original_error: Optional[Exception] = None,
    ) -> None:
        self.message: str = message
        self.status_code: Optional[int] = status_code
        self.retry_after: Optional[int] = retry_after  # Retry-After header value in seconds
        self.original_error: Optional[Exception] = original_error
        super().__init__(self.message)


def esi_retry_async(
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    min_wait: float = DEFAULT_MIN_WAIT,
    max_wait: float = DEFAULT_MAX_WAIT,
) -> Callable[[F], F]:
    """
    Async retry decorator for API requests with exponential backoff.

    Retries on:
    - RetryableESIError (429 and 502/503/504 responses)
    - Network errors (httpx.RequestError)

    Args:
        max_attempts: Maximum retry attempts (default: 5)
        min_wait: Minimum wait between retries in seconds (default: 0.5)
        max_wait: Maximum wait between retries in seconds (default: 30)

    Returns:
        Decorator applying tenacity retry to an async function
    """
    return retry(
        retry=retry_if_exception_type((RetryableESIError, httpx.RequestError)),
        stop=stop_after_attempt(max_attempts),
        wait=wait_exponential(multiplier=1, min=min_wait, max=max_wait),
        reraise=True,
    )
