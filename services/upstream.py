"""Outbound forwarding of proxied requests."""

import httpx

from core.exceptions import NetworkError, UpstreamTimeoutError
from core.headers import HOP_BY_HOP_HEADERS
from core.request_types import OutboundRequest, OutboundResponse
from core.result import Failure, Ok, Result

# Derived by httpx from the target URL and body. Accept-Encoding stays
# httpx's own so every coding the target picks can be decoded before re-emission
TRANSPORT_HEADERS = HOP_BY_HOP_HEADERS | {"host", "content-length", "accept-encoding"}


class UpstreamClient:
    """Send outbound requests without following redirects."""

    def __init__(self, client: httpx.AsyncClient) -> None:
        self._client = client

    async def send(self, outbound: OutboundRequest) -> Result[OutboundResponse]:
        """Dispatch the request and return the unread response."""
        url = outbound.target.url
        headers = [
            (name, value)
            for name, value in outbound.headers.items()
            if name not in TRANSPORT_HEADERS
        ]
        try:
            request = self._client.build_request(
                outbound.method,
                url,
                headers=headers,
                content=outbound.body or None,
            )
            response = await self._client.send(request, stream=True, follow_redirects=False)
        except httpx.TimeoutException as e:
            return Failure(UpstreamTimeoutError(f"Upstream timeout: {e}", target_url=url))
        except httpx.RequestError as e:
            return Failure(NetworkError(_describe(e), target_url=url))
        except httpx.InvalidURL as e:
            return Failure(NetworkError(f"Invalid URL {url!r}: {e}", target_url=url))
        return Ok(OutboundResponse.from_httpx(response))


def _describe(error: Exception) -> str:
    return str(error) or type(error).__name__
