"""HTTP client for a daygo sync peer."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from daygo_cli.errors import TransportError
from daygo_cli.models import SyncRequest, SyncResponse


class SyncClient:
    """HTTP client for the ``/sync`` endpoint of a peer.

    Failed requests are not retried; the next scheduled sync round is the retry.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
        logger: logging.Logger | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.logger = logger or logging.getLogger(__name__)
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                headers={"Content-Type": "application/json", "Accept": "application/json"},
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> SyncClient:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    async def request(
        self, method: str, path: str, *, json: dict[str, Any] | None = None
    ) -> httpx.Response:
        """Make an HTTP request to the peer.

        Raises:
            TransportError: If the peer is unreachable, times out, or answers non-2xx
        """
        client = await self._get_client()
        url = path if path.startswith("/") else f"/{path}"
        try:
            response = await client.request(method=method, url=url, json=json)
        except httpx.TimeoutException as e:
            raise TransportError(f"request to {self.base_url}{url} timed out") from e
        except httpx.RequestError as e:
            raise TransportError(f"failed to reach {self.base_url}{url}: {e}") from e

        if not response.is_success:
            raise TransportError(
                f"{method} {url} failed: {response.status_code} {response.reason_phrase}"
                f"{_error_detail(response)}",
                status_code=response.status_code,
            )
        return response

    async def sync(self, request: SyncRequest) -> SyncResponse:
        """Push local changes and pull the peer's changes in one round trip.

        Raises:
            TransportError: If the request fails or the response body is not a sync response
        """
        response = await self.request("POST", "/sync", json=request.model_dump(mode="json"))
        try:
            return SyncResponse.model_validate(response.json())
        except ValueError as e:
            raise TransportError(f"failed to decode sync response: {e}") from e

    async def health(self) -> bool:
        """True when the peer answers ``GET /health`` with status ok."""
        response = await self.request("GET", "/health")
        try:
            return response.json().get("status") == "ok"
        except (ValueError, AttributeError) as e:
            raise TransportError(f"failed to decode health response: {e}") from e


def _error_detail(response: httpx.Response) -> str:
    try:
        detail = response.json().get("detail")
    except (ValueError, AttributeError):
        detail = response.text.strip()
    return f" ({detail})" if detail else ""
