"""Base class for the HTTP connectors (GitHub, Cloudflare)."""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from typing import Any

import httpx
import structlog

from launchwing.core.exceptions import (
    MalformedResponse,
    RequestRejected,
    UpstreamConnectionError,
    UpstreamError,
    UpstreamTimeoutError,
)
from launchwing.utils.async_helpers import with_timeout

logger = structlog.get_logger(__name__)


def raise_for_status(resp: httpx.Response, action: str) -> None:
    """Raise the matching :class:`UpstreamError` for a non-2xx response.

    4xx answers other than 408/429 become :class:`RequestRejected`.
    """
    status = resp.status_code
    if 200 <= status < 300:
        return
    body = resp.text
    message = f"{action} failed with HTTP {status}"
    retry_after: float | None = None
    header = resp.headers.get("retry-after")
    if header:
        try:
            retry_after = float(header)
        except ValueError:
            retry_after = None
    if 400 <= status < 500 and status not in (408, 429):
        raise RequestRejected(message, status=status, body=body)
    raise UpstreamError(message, status=status, body=body, retry_after=retry_after)


def response_json(resp: httpx.Response, action: str) -> Any:
    """Parse a JSON body, raising :class:`MalformedResponse` when it is not JSON."""
    try:
        return resp.json()
    except ValueError as exc:
        raise MalformedResponse(
            f"{action} returned a non-JSON body: {resp.text[:200]}",
            code="malformed_response",
        ) from exc


class Connector(ABC):
    """Abstract base for the remote APIs the pipeline writes to.

    Every connector owns one :class:`httpx.AsyncClient`. All requests go
    through :meth:`_request`, which applies the per-call deadline and turns
    transport failures into :class:`UpstreamError` subclasses.

    Usage::

        async with GitHubConnector(config) as gh:
            await gh.create_repo("mvp-demo")
    """

    DEFAULT_BASE_URL: str = ""

    def __init__(
        self,
        *,
        base_url: str | None = None,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = (base_url or self.DEFAULT_BASE_URL).rstrip("/")
        self._timeout = timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    @property
    def timeout(self) -> float:
        return self._timeout

    async def connect(self) -> None:
        """Open the underlying HTTP client."""
        if self._client is not None:
            return
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            headers=self._build_headers(),
            timeout=self._timeout,
            transport=self._transport,
        )
        logger.debug(
            "connector.connected",
            connector=type(self).__name__,
            base_url=self._base_url,
        )

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None
            logger.debug("connector.closed", connector=type(self).__name__)

    @abstractmethod
    def _build_headers(self) -> dict[str, str]:
        """Build the default headers for every request."""
        ...

    def _ensure_connected(self) -> httpx.AsyncClient:
        """Return the HTTP client, raising if not connected."""
        if self._client is None:
            raise RuntimeError(
                f"{type(self).__name__} is not connected. Call connect() first."
            )
        return self._client

    async def _request(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        params: dict[str, Any] | None = None,
    ) -> httpx.Response:
        """Send one request under the connector deadline.

        Returns the response whatever its status; callers decide which
        statuses are acceptable.

        Raises:
            UpstreamTimeoutError: The deadline passed.
            UpstreamConnectionError: The request could not be sent.
        """
        client = self._ensure_connected()
        try:
            return await with_timeout(
                client.request(method, path, json=json, params=params),
                self._timeout,
            )
        except (asyncio.TimeoutError, httpx.TimeoutException) as exc:
            raise UpstreamTimeoutError(
                f"{method} {path} timed out after {self._timeout}s"
            ) from exc
        except httpx.RequestError as exc:
            raise UpstreamConnectionError(f"{method} {path} failed: {exc}") from exc

    async def __aenter__(self) -> Connector:
        await self.connect()
        return self

    async def __aexit__(self, *_: Any) -> None:
        await self.close()
