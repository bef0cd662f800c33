"""Header containers, request filtering and response finalization."""

from collections.abc import Callable, Iterable, Iterator

EDGE_HEADER_PREFIX = "cf-"

# Set on every response sent back to the client
NO_CACHE_HEADERS = {"cache-control": "no-store"}
CORS_HEADERS = {
    "access-control-allow-origin": "*",
    "access-control-allow-methods": "GET, POST, PUT, DELETE",
    "access-control-allow-headers": "*",
}

# Managed by the transport, never copied between connections
HOP_BY_HOP_HEADERS = frozenset(
    {
        "connection",
        "keep-alive",
        "proxy-authenticate",
        "proxy-authorization",
        "te",
        "trailer",
        "trailers",
        "transfer-encoding",
        "upgrade",
    }
)


class HeaderMap:
    """Ordered mapping from lowercase header name to a list of values."""

    def __init__(self, items: Iterable[tuple[str, str]] = ()) -> None:
        self._entries: dict[str, list[str]] = {}
        for name, value in items:
            self.add(name, value)

    def add(self, name: str, value: str) -> None:
        """Append a value, keeping any existing ones."""
        self._entries.setdefault(name.lower(), []).append(value)

    def set(self, name: str, value: str) -> None:
        """Replace all values for name with a single value."""
        self._entries[name.lower()] = [value]

    def get(self, name: str, default: str | None = None) -> str | None:
        values = self._entries.get(name.lower())
        return values[0] if values else default

    def get_all(self, name: str) -> list[str]:
        return list(self._entries.get(name.lower(), []))

    def remove(self, name: str) -> None:
        self._entries.pop(name.lower(), None)

    def filter(self, predicate: Callable[[str], bool]) -> "HeaderMap":
        """Return a new map with only the names accepted by predicate."""
        return HeaderMap(
            (name, value) for name, value in self.items() if predicate(name)
        )

    def copy(self) -> "HeaderMap":
        return HeaderMap(self.items())

    def items(self) -> list[tuple[str, str]]:
        """Flattened (name, value) pairs; repeated headers appear once per value."""
        return [(name, value) for name, values in self._entries.items() for value in values]

    def raw(self) -> list[tuple[bytes, bytes]]:
        """Encode as ASGI raw headers."""
        return [(name.encode("latin-1"), _encode_value(value)) for name, value in self.items()]

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name.lower() in self._entries

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, HeaderMap):
            return NotImplemented
        return self._entries == other._entries

    def __repr__(self) -> str:
        return f"HeaderMap({self.items()!r})"


def _encode_value(value: str) -> bytes:
    # httpx decodes non-latin-1 header bytes as UTF-8
    try:
        return value.encode("latin-1")
    except UnicodeEncodeError:
        return value.encode("utf-8")


def filter_headers(headers: HeaderMap, predicate: Callable[[str], bool]) -> HeaderMap:
    """Build a new header set holding only entries accepted by predicate."""
    return headers.filter(predicate)


def without_prefix(prefix: str = EDGE_HEADER_PREFIX) -> Callable[[str], bool]:
    """Predicate rejecting header names that start with prefix (case-insensitive)."""
    prefix = prefix.lower()

    def _accept(name: str) -> bool:
        return not name.lower().startswith(prefix)

    return _accept


def finalize_headers(headers: HeaderMap) -> HeaderMap:
    """Force no-cache and CORS headers, overwriting prior values."""
    for name, value in {**NO_CACHE_HEADERS, **CORS_HEADERS}.items():
        headers.set(name, value)
    return headers
