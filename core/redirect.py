"""Location header rewriting for upstream redirects."""

from urllib.parse import quote

import httpx

from core.exceptions import InvalidLocationError
from core.headers import HeaderMap

REDIRECT_STATUSES = frozenset({301, 302, 303, 307, 308})

# Characters encodeURIComponent leaves untouched besides alphanumerics and "-_.~"
_URI_COMPONENT_SAFE = "!*'()"


def is_redirect(status: int) -> bool:
    return status in REDIRECT_STATUSES


def encode_location(location: str) -> str:
    """Re-encode an absolute URL as a proxy-relative path."""
    return "/" + quote(location, safe=_URI_COMPONENT_SAFE)


def parse_location(location: str | None) -> str:
    """Parse an absolute Location value, raising InvalidLocationError otherwise."""
    if not location:
        raise InvalidLocationError("Redirect response has no Location header")
    try:
        url = httpx.URL(location)
    except httpx.InvalidURL as e:
        raise InvalidLocationError(f"Invalid redirect location {location!r}: {e}") from e
    if not url.scheme:
        raise InvalidLocationError(f"Invalid redirect location {location!r}: not an absolute URL")
    return str(url)


def rewrite_location(headers: HeaderMap) -> HeaderMap:
    """Return a copy of headers with Location pointing back through the proxy."""
    location = parse_location(headers.get("location"))
    rewritten = headers.copy()
    rewritten.set("location", encode_location(location))
    return rewritten
