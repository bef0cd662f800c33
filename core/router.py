"""Path routing - decides landing page, search redirect or proxied target."""

import re
from dataclasses import dataclass
from urllib.parse import unquote

from core.request_types import IncomingRequest, TargetURL

# Raw or percent-encoded absolute http(s) URL right after the leading slash
TARGET_PATH_PATTERN = re.compile(r"^/https?(?:://|%3A%2F%2F)")

DEFAULT_SEARCH_URL = "https://www.bing.com/search?q="

LANDING = "landing"
SEARCH = "search"
TARGET = "target"


@dataclass(frozen=True)
class RouteDecision:
    """Routing decision for a request."""

    route: str
    target: TargetURL | None = None
    location: str | None = None


def is_target_path(path: str) -> bool:
    return TARGET_PATH_PATTERN.match(path) is not None


def ensure_protocol(url: str, default_protocol: str) -> str:
    """Prefix ``{protocol}//`` when url carries no http(s) scheme."""
    if url.startswith("http://") or url.startswith("https://"):
        return url
    return f"{default_protocol}//{url}"


def extract_target_url(path: str, protocol: str, search: str = "") -> TargetURL:
    """Turn a request path into the target URL it embeds.

    The leading slash is stripped, the rest percent-decoded, the scheme
    defaulted from ``protocol`` and ``search`` appended unmodified.
    """
    decoded = unquote(path[1:] if path.startswith("/") else path)
    return TargetURL(ensure_protocol(decoded, protocol) + search)


def search_location(request: IncomingRequest, search_url: str = DEFAULT_SEARCH_URL) -> str:
    """Search redirect for a path that holds no target URL, routed via the proxy."""
    return f"{request.protocol}//{request.host}/{search_url}{request.path[1:]}"


class RouteDecider:
    """Decide how an inbound path is served."""

    def __init__(self, search_url: str = DEFAULT_SEARCH_URL):
        self.search_url = search_url

    def decide(self, request: IncomingRequest) -> RouteDecision:
        """Return the route based on the raw request path."""
        if request.path == "/":
            return RouteDecision(route=LANDING)
        if not is_target_path(request.path):
            return RouteDecision(
                route=SEARCH,
                location=search_location(request, self.search_url),
            )
        target = extract_target_url(request.path, request.protocol, request.search)
        return RouteDecision(route=TARGET, target=target)
