"""
Tests for retry logic.
"""

from __future__ import annotations

import httpx
import pytest

from shipfit.core.config import reset_settings
from shipfit.core.retry import (
    RETRYABLE_STATUS_CODES,
    RetryableESIError,
    esi_retry_async,
    get_retry_status,
    is_retry_enabled,
)


class TestRetryConfiguration:
    """Test retry enablement and status."""

    def test_retry_disabled_by_env(self):
        """The suite runs with SHIPFIT_NO_RETRY=1."""
        assert is_retry_enabled() is False

    def test_retry_enabled_without_env(self, monkeypatch):
        monkeypatch.delenv("SHIPFIT_NO_RETRY", raising=False)
        reset_settings()

        assert is_retry_enabled() is True

    def test_retry_status(self):
        status = get_retry_status()

        assert status["config"]["max_attempts"] == 5
        assert status["config"]["retryable_codes"] == [429, 502, 503, 504]

    def test_retryable_codes(self):
        assert RETRYABLE_STATUS_CODES == {429, 502, 503, 504}


class TestRetryableESIError:
    """Test RetryableESIError fields."""

    def test_fields(self):
        error = RetryableESIError("Rate limited", status_code=429, retry_after=3)

        assert str(error) == "Rate limited"
        assert error.status_code == 429
        assert error.retry_after == 3
        assert error.original_error is None


@pytest.mark.asyncio
class TestEsiRetryAsync:
    """Test the tenacity decorator."""

    async def test_retries_retryable_error_until_success(self):
        """Retryable errors are retried; success returns the value."""
        calls = 0

        @esi_retry_async(max_attempts=3, min_wait=0, max_wait=0)
        async def flaky():
            nonlocal calls
            calls += 1
            if calls < 3:
                raise RetryableESIError("busy", status_code=503)
            return "ok"

        assert await flaky() == "ok"
        assert calls == 3

    async def test_retries_transport_errors(self):
        calls = 0

        @esi_retry_async(max_attempts=2, min_wait=0, max_wait=0)
        async def offline():
            nonlocal calls
            calls += 1
            raise httpx.ConnectError("connection refused")

        with pytest.raises(httpx.ConnectError):
            await offline()
        assert calls == 2

    async def test_non_retryable_error_raised_immediately(self):
        calls = 0

        @esi_retry_async(max_attempts=5, min_wait=0, max_wait=0)
        async def broken():
            nonlocal calls
            calls += 1
            raise ValueError("bad payload")

        with pytest.raises(ValueError):
            await broken()
        assert calls == 1
