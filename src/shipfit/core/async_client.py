"""
shipfit Async HTTP Client

Async HTTP client for the EVE type data API (ESI) using httpx.

Uses httpx.AsyncClient for true async I/O. Base URL, datasource and timeout
come from ShipfitSettings unless given explicitly.
"""

from __future__ import annotations

import json
from typing import Any, Optional, Union

import httpx

from .config import get_settings
from .logging import get_logger
from .retry import (
    RETRYABLE_STATUS_CODES,
    RetryableESIError,
    esi_retry_async,
    is_retry_enabled,
)

logger = get_logger(__name__)

JSONValue = Union[dict, list, int, float, None]


# =============================================================================
# Exceptions
# =============================================================================


class AsyncESIError(Exception):
    """Exception raised for async ESI API errors."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        response: Optional[dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.status_code = status_code
        self.response = response or {}
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Convert error to JSON-serializable dict."""
        result: dict[str, Any] = {"error": "esi_error", "message": self.message}
        if self.status_code:
            result["status_code"] = self.status_code
        return result


def _error_message(error: httpx.HTTPStatusError) -> str:
    """Extract the ESI error message from a failed response."""
    try:
        error_json = error.response.json()
        return error_json.get("error", str(error))
    except (json.JSONDecodeError, ValueError, AttributeError):
        return error.response.text or str(error)


# =============================================================================
# Async Client
# =============================================================================


class AsyncESIClient:
    """
    Async HTTP client for ESI API requests.

    Must be used as an async context manager to ensure proper connection
    pooling.

    Usage:
        async with AsyncESIClient() as client:
            ship = await client.get("/universe/types/587/")

        # Or with authentication:
        async with AsyncESIClient(token="your_access_token") as client:
            skills = await client.get("/characters/12345/skills/", auth=True)
    """

    def __init__(
        self,
        token: Optional[str] = None,
        timeout: Optional[float] = None,
        enable_retry: Optional[bool] = None,
        base_url: Optional[str] = None,
    ) -> None:
        """
        Initialize async ESI client.

        Args:
            token: OAuth access token for authenticated requests
            timeout: Request timeout in seconds (default: SHIPFIT_ESI_TIMEOUT)
            enable_retry: Whether to enable retry logic (default: not SHIPFIT_NO_RETRY)
            base_url: API base URL (default: SHIPFIT_ESI_BASE_URL)
        """
        settings = get_settings()
        self.token: Optional[str] = token
        self.timeout: float = timeout if timeout is not None else settings.esi_timeout
        self.base_url: str = (base_url or settings.esi_base_url).rstrip("/")
        self.datasource: str = settings.esi_datasource
        self.enable_retry: bool = is_retry_enabled() if enable_retry is None else enable_retry
        self._client: Optional[httpx.AsyncClient] = None

    async def __aenter__(self) -> AsyncESIClient:
        """Enter async context and create httpx client."""
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=httpx.Timeout(self.timeout),
            headers={"Accept": "application/json"},
        )
        return self

    async def __aexit__(
        self,
        exc_type: Optional[type],
        exc_val: Optional[BaseException],
        exc_tb: Optional[Any],
    ) -> None:
        """Exit async context and close httpx client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    def _build_url(self, endpoint: str, params: Optional[dict[str, Any]] = None) -> str:
        """
        Build URL with datasource parameter.

        Args:
            endpoint: API endpoint path (e.g., "/universe/types/587/")
            params: Additional query parameters

        Returns:
            URL path with query string (base_url is set on client)
        """
        if not endpoint.startswith("/"):
            endpoint = "/" + endpoint

        query_params = {"datasource": self.datasource}
        if params:
            query_params.update(params)

        query_string = "&".join(f"{k}={v}" for k, v in query_params.items())
        return f"{endpoint}?{query_string}"

    def _headers(self, auth: bool) -> dict[str, str]:
        headers: dict[str, str] = {}
        if auth and self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    async def _send_once(
        self,
        method: str,
        endpoint: str,
        params: Optional[dict[str, Any]] = None,
        body: Any = None,
        auth: bool = False,
    ) -> JSONValue:
        """Execute a single request without retry."""
        if not self._client:
            raise AsyncESIError("Client not initialized. Use 'async with' context manager.")

        url = self._build_url(endpoint, params)
        headers = self._headers(auth)

        try:
            if method == "POST":
                response = await self._client.post(url, json=body, headers=headers or None)
            else:
                response = await self._client.get(url, headers=headers or None)
            response.raise_for_status()
            return response.json()

        except httpx.HTTPStatusError as e:
            message = _error_message(e)

            # Convert to retryable error if applicable
            if e.response.status_code in RETRYABLE_STATUS_CODES:
                retry_after = e.response.headers.get("retry-after")
                raise RetryableESIError(
                    message,
                    status_code=e.response.status_code,
                    retry_after=int(retry_after) if retry_after else None,
                    original_error=e,
                )

            raise AsyncESIError(message, status_code=e.response.status_code)

    @esi_retry_async()
    async def _send_with_retry(
        self,
        method: str,
        endpoint: str,
        params: Optional[dict[str, Any]] = None,
        body: Any = None,
        auth: bool = False,
    ) -> JSONValue:
        """Execute a request with retry logic."""
        return await self._send_once(method, endpoint, params, body, auth)

    async def _send(
        self,
        method: str,
        endpoint: str,
        params: Optional[dict[str, Any]] = None,
        body: Any = None,
        auth: bool = False,
    ) -> JSONValue:
        try:
            if self.enable_retry:
                return await self._send_with_retry(method, endpoint, params, body, auth)
            return await self._send_once(method, endpoint, params, body, auth)
        except RetryableESIError as e:
            logger.warning("%s %s failed after retries: %s", method, endpoint, e.message)
            raise AsyncESIError(e.message, status_code=e.status_code) from e
        except httpx.RequestError as e:
            raise AsyncESIError(f"Network error: {e}") from e

    async def get(
        self,
        endpoint: str,
        params: Optional[dict[str, Any]] = None,
        auth: bool = False,
    ) -> JSONValue:
        """
        Make GET request to ESI API.

        Args:
            endpoint: API endpoint path
            params: Optional query parameters
            auth: Whether to include authentication header

        Returns:
            Parsed JSON response

        Raises:
            AsyncESIError: On HTTP errors or request failures
        """
        return await self._send("GET", endpoint, params=params, auth=auth)

    async def get_safe(
        self,
        endpoint: str,
        params: Optional[dict[str, Any]] = None,
        auth: bool = False,
    ) -> JSONValue:
        """
        Make GET request, returning None on 404 errors.

        Useful for lookups where missing data is expected.

        Returns:
            Parsed JSON response, or None if 404/not found
        """
        try:
            return await self.get(endpoint, params, auth)
        except AsyncESIError as e:
            if e.status_code == 404:
                logger.debug("get_safe swallowed 404 for %s: %s", endpoint, e.message)
                return None
            raise

    async def post(
        self,
        endpoint: str,
        data: Any,
        auth: bool = False,
    ) -> JSONValue:
        """
        Make POST request to ESI API.

        Args:
            endpoint: API endpoint path
            data: Request body (will be JSON encoded)
            auth: Whether to include authentication header

        Returns:
            Parsed JSON response

        Raises:
            AsyncESIError: On HTTP errors or request failures
        """
        return await self._send("POST", endpoint, body=data, auth=auth)
