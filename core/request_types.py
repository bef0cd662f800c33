"""Shared request data types."""

from collections.abc import AsyncIterator, Awaitable, Callable
from dataclasses import dataclass, field

import httpx

from core.headers import HeaderMap


@dataclass(frozen=True)
class IncomingRequest:
    """Inbound request as seen by the pipeline.

    ``path`` is the raw request path, still percent-encoded, and ``query`` is
    the query string without its leading ``?``.
    """

    method: str
    path: str
    scheme: str
    host: str
    query: str = ""
    headers: HeaderMap = field(default_factory=HeaderMap)
    body: bytes = b""

    @property
    def protocol(self) -> str:
        """Scheme with trailing colon, e.g. ``https:``."""
        return f"{self.scheme}:"

    @property
    def search(self) -> str:
        """Query string with its leading ``?``, or empty."""
        return f"?{self.query}" if self.query else ""


@dataclass(frozen=True)
class TargetURL:
    """Absolute URL embedded in the request path."""

    url: str

    @property
    def origin(self) -> str:
        """Scheme, host and non-default port of the target."""
        parsed = httpx.URL(self.url)
        host = parsed.raw_host.decode("ascii")
        if ":" in host:
            host = f"[{host}]"
        if parsed.port is not None:
            host = f"{host}:{parsed.port}"
        return f"{parsed.scheme}://{host}"

    def __str__(self) -> str:
        return self.url


@dataclass(frozen=True)
class OutboundRequest:
    """Prepared data for the upstream request."""

    target: TargetURL
    method: str
    headers: HeaderMap
    body: bytes = b""


@dataclass
class OutboundResponse:
    """Upstream response with an unread body."""

    status: int
    headers: HeaderMap
    raw: httpx.Response = field(repr=False)

    @classmethod
    def from_httpx(cls, response: httpx.Response) -> "OutboundResponse":
        return cls(
            status=response.status_code,
            headers=HeaderMap(response.headers.multi_items()),
            raw=response,
        )

    @property
    def content_type(self) -> str:
        return self.headers.get("content-type", "") or ""

    async def read(self) -> bytes:
        """Buffer the whole (content-decoded) body."""
        try:
            return await self.raw.aread()
        finally:
            await self.raw.aclose()

    def iter_bytes(self) -> AsyncIterator[bytes]:
        return self.raw.aiter_bytes()

    async def aclose(self) -> None:
        await self.raw.aclose()


@dataclass
class ProxyResponse:
    """Response handed back to the HTTP layer."""

    status: int
    headers: HeaderMap = field(default_factory=HeaderMap)
    body: bytes | AsyncIterator[bytes] = b""
    close: Callable[[], Awaitable[None]] | None = None

    @property
    def is_streaming(self) -> bool:
        return not isinstance(self.body, bytes)
