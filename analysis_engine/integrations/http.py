"""
HTTP Client Base

Shared httpx plumbing for outbound integrations. Each request is a
single attempt; failures are raised as ExternalServiceError so the
caller's RetryPolicy can decide whether to try again.
"""

import logging
from typing import Any, Dict, Optional

import httpx

from ..utils.errors import ExternalServiceError

logger = logging.getLogger(__name__)


class APIClient:
    """
    Async HTTP client for one external service.

    Usage:
        async with PageSpeedClient() as client:
            report = await client.run("https://example.com")
    """

    SERVICE_NAME = "external"
    BASE_URL = ""

    def __init__(
        self,
        timeout: float = 30.0,
        headers: Optional[Dict[str, str]] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        follow_redirects: bool = True,
    ):
        """
        Initialize client.

        Args:
            timeout: Request timeout in seconds
            headers: Default request headers
            transport: Custom transport (mock transports in tests)
            follow_redirects: Follow 3xx responses
        """
        self._client = httpx.AsyncClient(
            base_url=self.BASE_URL,
            headers=headers or {},
            timeout=httpx.Timeout(timeout),
            transport=transport,
            follow_redirects=follow_redirects,
        )
        self._closed = False

    async def _request(
        self,
        method: str,
        url: str,
        params: Optional[Any] = None,
        json: Optional[Dict[str, Any]] = None,
    ) -> httpx.Response:
        """Make a single request, raising ExternalServiceError on failure."""
        if self._closed:
            raise ExternalServiceError(self.SERVICE_NAME, "Client has been closed", retryable=False)

        try:
            response = await self._client.request(method, url, params=params, json=json)
        except httpx.TimeoutException as e:
            raise ExternalServiceError(self.SERVICE_NAME, f"Request timeout: {url}") from e
        except httpx.RequestError as e:
            raise ExternalServiceError(self.SERVICE_NAME, f"Network error for {url}: {e}") from e

        if response.status_code >= 400:
            raise ExternalServiceError(
                self.SERVICE_NAME,
                f"HTTP {response.status_code} for {url}",
                status_code=response.status_code,
            )
        return response

    async def _get_json(self, url: str, params: Optional[Any] = None) -> Dict[str, Any]:
        response = await self._request("GET", url, params=params)
        try:
            return response.json()
        except ValueError as e:
            raise ExternalServiceError(
                self.SERVICE_NAME, f"Invalid JSON from {url}", retryable=False
            ) from e

    async def close(self):
        """Close the HTTP client."""
        if not self._closed:
            await self._client.aclose()
            self._closed = True

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
