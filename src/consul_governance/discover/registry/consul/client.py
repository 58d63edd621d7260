from __future__ import annotations

import logging
from typing import Any
from urllib.parse import quote

import httpx

from consul_governance.exceptions import RegistryTransportError, SerializationError
from consul_governance.utils.constant import DEFAULT_HTTP_TIMEOUT

__all__ = ["ConsulResponse", "ConsulAgent", "ConsulHealth"]

logger = logging.getLogger(__name__)


class ConsulResponse:
    """Thin view over an httpx response returned by the Consul HTTP API."""

    def __init__(self, response: httpx.Response) -> None:
        self._response = response

    @property
    def status_code(self) -> int:
        return self._response.status_code

    @property
    def url(self) -> str:
        return str(self._response.request.url)

    def json(self) -> Any:
        if not self._response.content:
            return None
        try:
            return self._response.json()
        except ValueError as exc:
            raise SerializationError(
                message=f"Invalid JSON body from {self.url}",
                data={"status_code": self.status_code},
                cause=exc,
            ) from exc


class _ConsulClient:
    """Shared HTTP plumbing for the Consul API clients.

    Args:
        base_uri: Registry base URI, e.g. ``http://127.0.0.1:8500``.
        timeout: Request timeout in seconds.
        client: Optional pre-built httpx client; the caller keeps ownership.
    """

    def __init__(
        self,
        base_uri: str,
        *,
        timeout: float = DEFAULT_HTTP_TIMEOUT,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.base_uri = base_uri.rstrip("/")
        self._timeout = timeout
        self._client = client
        self._owns_client = client is None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._timeout)
        return self._client

    async def request(self, method: str, path: str, **kwargs: Any) -> ConsulResponse:
        url = f"{self.base_uri}{path}"
        try:
            response = await self._get_client().request(method, url, **kwargs)
        except httpx.HTTPError as exc:
            logger.debug("Consul request %s %s failed: %s", method, url, exc)
            raise RegistryTransportError(
                message=f"Consul request {method} {url} failed: {exc}",
                data={"uri": url},
                cause=exc,
            ) from exc
        logger.debug("Consul request %s %s -> %s", method, url, response.status_code)
        return ConsulResponse(response)

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
        self._client = None


class ConsulAgent(_ConsulClient):
    """Client for the local agent endpoints."""

    async def services(self) -> ConsulResponse:
        """``GET /v1/agent/services``: every service registered with the agent, keyed by ID."""
        return await self.request("GET", "/v1/agent/services")

    async def register_service(self, service: dict[str, Any]) -> ConsulResponse:
        """``PUT /v1/agent/service/register``."""
        return await self.request("PUT", "/v1/agent/service/register", json=service)


class ConsulHealth(_ConsulClient):
    """Client for the health endpoints."""

    async def service(self, service: str) -> ConsulResponse:
        """``GET /v1/health/service/<service>``: nodes of a service with their checks."""
        return await self.request("GET", f"/v1/health/service/{quote(service, safe='')}")
