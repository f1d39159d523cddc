"""Base HTTP client for identity provider endpoints.

Provides a base class for the provider clients with:
- Connection pooling over a single httpx.AsyncClient
- Request/response logging
- Timeout configuration
- Translation of provider error bodies into IdentityProviderError

Calls are single-shot. Transport failures (httpx.TransportError) propagate
unchanged; non-2xx responses become IdentityProviderError.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from identity_directory.infra.identity.errors import IdentityProviderError

logger = logging.getLogger(__name__)


class IdentityHttpClient:
    """Base HTTP client for identity provider APIs.

    Example:
        ```python
        class SecureTokenClient(IdentityHttpClient):
            async def refresh(self, token: str) -> dict:
                return await self.post("/v1/token", data={"refresh_token": token})
        ```
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        headers: dict[str, str] | None = None,
        client: httpx.AsyncClient | None = None,
        close_client: bool | None = None,
    ) -> None:
        """Initialize HTTP client.

        Args:
            base_url: Base URL for the API.
            timeout: Request timeout in seconds.
            headers: Default headers to include in all requests.
            client: Pre-built client, mainly for tests using httpx.MockTransport.
            close_client: Whether aclose() closes ``client``. Defaults to closing
                only a client built here.
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._owns_client = client is None if close_client is None else close_client
        self.client = client or httpx.AsyncClient(
            timeout=httpx.Timeout(timeout),
            headers=headers or {},
            limits=httpx.Limits(
                max_keepalive_connections=20,
                max_connections=100,
            ),
        )

    async def aclose(self) -> None:
        """Close the HTTP client and release connections."""
        if self._owns_client:
            await self.client.aclose()

    async def __aenter__(self) -> IdentityHttpClient:
        """Enter async context manager."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Exit async context manager and close client."""
        await self.aclose()

    def url(self, path: str) -> str:
        return f"{self.base_url}/{path.lstrip('/')}"

    async def request(
        self,
        method: str,
        path: str,
        *,
        json: dict[str, Any] | None = None,
        data: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> dict[str, Any]:
        """Send a request and return the decoded JSON body.

        Args:
            method: HTTP method.
            path: Path relative to ``base_url``, or an absolute URL.
            json: JSON body data.
            data: Form data.
            params: Query parameters.
            headers: Additional headers for this request.

        Returns:
            JSON response data (empty dict for an empty body).

        Raises:
            IdentityProviderError: On a non-2xx response.
            httpx.TransportError: On connection failures and timeouts.
        """
        url = path if path.startswith(("http://", "https://")) else self.url(path)
        logger.debug(
            f"{method} request to {url}",
            extra={"method": method, "path": path},
        )

        response = await self.client.request(
            method,
            url,
            json=json,
            data=data,
            params=params,
            headers=headers,
        )

        logger.debug(
            f"{method} response from {url}",
            extra={
                "method": method,
                "path": path,
                "status_code": response.status_code,
            },
        )

        if response.is_error:
            raise self._error_from_response(response)
        if not response.content:
            return {}
        return response.json()

    async def post(self, path: str, **kwargs: Any) -> dict[str, Any]:
        return await self.request("POST", path, **kwargs)

    async def get(self, path: str, **kwargs: Any) -> dict[str, Any]:
        return await self.request("GET", path, **kwargs)

    @staticmethod
    def _error_from_response(response: httpx.Response) -> IdentityProviderError:
        try:
            body: Any = response.json()
        except ValueError:
            body = response.text
        error = IdentityProviderError.from_response_body(body, response.status_code)
        logger.warning(
            "Identity provider returned an error",
            extra={
                "status_code": response.status_code,
                "provider_code": error.provider_code,
                "reason": error.reason,
            },
        )
        return error


__all__ = ["IdentityHttpClient"]
