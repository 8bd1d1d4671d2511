"""Base n8n client with HTTP request handling and connection management.

Provides the shared httpx client, authentication headers and the request
helper that turns transport and HTTP failures into N8nClientError.
"""

from typing import Any

import httpx
from pydantic import BaseModel, Field, field_validator

from src.exceptions import N8nClientError
from src.settings import get_settings

DEFAULT_BASE_URL = "http://localhost:5678"


class N8nClientConfig(BaseModel):
    """Configuration for the n8n client."""

    base_url: str = Field(default=DEFAULT_BASE_URL, description="n8n instance URL")
    api_key: str = Field(default="", description="n8n public API key")
    timeout: float = Field(default=10.0, description="Default request timeout in seconds")

    @field_validator("base_url")
    @classmethod
    def _strip_trailing_slash(cls, v: str) -> str:
        return (v or DEFAULT_BASE_URL).rstrip("/")


class BaseN8nClient:
    """Base HTTP client for the n8n public REST API.

    Domain operations are added by subclasses.
    """

    def __init__(
        self,
        config: N8nClientConfig | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialize base n8n client.

        Args:
            config: Optional configuration (uses settings if not provided)
            transport: Optional httpx transport, e.g. ``httpx.MockTransport`` in tests
        """
        if config is None:
            config = self._resolve_config()
        self.config = config
        self._transport = transport
        self._http_client: httpx.AsyncClient | None = None

    @staticmethod
    def _resolve_config() -> N8nClientConfig:
        settings = get_settings()
        return N8nClientConfig(
            base_url=settings.n8n_base_url,
            api_key=settings.n8n_api_key.get_secret_value(),
            timeout=settings.n8n_timeout_seconds,
        )

    @property
    def base_url(self) -> str:
        return self.config.base_url

    @property
    def headers(self) -> dict[str, str]:
        """Auth headers. Both forms are sent; n8n accepts either."""
        if not self.config.api_key:
            return {}
        return {
            "X-N8N-API-KEY": self.config.api_key,
            "Authorization": f"Bearer {self.config.api_key}",
        }

    def _get_http_client(self) -> httpx.AsyncClient:
        """Get or create a shared httpx.AsyncClient with connection pooling.

        The client is created lazily on first use and reused across requests.
        """
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(
                timeout=self.config.timeout,
                limits=httpx.Limits(
                    max_keepalive_connections=10,
                    max_connections=20,
                ),
                transport=self._transport,
            )
        return self._http_client

    async def close(self) -> None:
        """Close the shared HTTP client and release connections."""
        if self._http_client is not None:
            await self._http_client.aclose()
            self._http_client = None

    async def _request(
        self,
        method: str,
        path: str,
        json: dict | None = None,
        params: dict | None = None,
        timeout: float | None = None,
        operation: str | None = None,
    ) -> Any:
        """Make a request to n8n.

        Args:
            method: HTTP method
            path: API path (without base URL)
            json: JSON body
            params: Query parameters
            timeout: Per-request timeout override in seconds
            operation: Operation name recorded on errors

        Returns:
            Response JSON (``{}`` for empty bodies)

        Raises:
            N8nClientError: On HTTP error status, connection failure or timeout
        """
        url = f"{self.base_url}{path}"
        client = self._get_http_client()
        operation = operation or f"{method.lower()} {path}"

        try:
            response = await client.request(
                method,
                url,
                headers={"Content-Type": "application/json", **self.headers},
                json=json,
                params=params,
                timeout=timeout if timeout is not None else self.config.timeout,
            )
        except httpx.TimeoutException as e:
            raise N8nClientError(
                f"Request timeout after {timeout or self.config.timeout}s: {url}",
                operation,
                {"url": url},
                status_code=408,
            ) from e
        except httpx.ConnectError as e:
            raise N8nClientError(
                f"Network error: fetch failed for {url} (connection refused or unreachable)",
                operation,
                {"url": url},
                status_code=0,
            ) from e
        except httpx.HTTPError as e:
            raise N8nClientError(
                f"Network error: {type(e).__name__} for {url}",
                operation,
                {"url": url},
                status_code=0,
            ) from e

        if response.is_success:
            return response.json() if response.content else {}

        body = _response_body(response)
        if isinstance(body, dict):
            details = str(body.get("message") or body)
        else:
            details = str(body or "")
        reason = f" {response.reason_phrase}" if response.reason_phrase else ""
        message = f"Request failed {response.status_code}{reason}"
        if details:
            message = f"{message}: {details}"
        raise N8nClientError(
            message,
            operation,
            {"url": url, "body": body},
            status_code=response.status_code,
        )


def _response_body(response: httpx.Response) -> Any:
    if "application/json" in response.headers.get("content-type", ""):
        try:
            return response.json()
        except ValueError:
            return None
    return response.text
