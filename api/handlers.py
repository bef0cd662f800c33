"""FastAPI route handlers."""

from fastapi import Request, Response
from fastapi.responses import StreamingResponse
from starlette.background import BackgroundTask

from core.config import Config
from core.headers import HeaderMap
from core.request_types import IncomingRequest, ProxyResponse
from ui.log_utils import submit_log, write_incoming_log


async def build_incoming_request(request: Request) -> IncomingRequest:
    """Snapshot a Starlette request, keeping the path percent-encoded."""
    raw_path = request.scope.get("raw_path")
    if raw_path:
        path = raw_path.split(b"?", 1)[0].decode("latin-1")
    else:
        path = request.url.path
    return IncomingRequest(
        method=request.method,
        path=path,
        scheme=request.url.scheme,
        host=request.url.netloc,
        query=request.scope.get("query_string", b"").decode("latin-1"),
        headers=HeaderMap(request.headers.items()),
        body=await request.body(),
    )


def to_response(proxied: ProxyResponse) -> Response:
    """Convert a pipeline response into a Starlette response."""
    headers = proxied.headers.copy()
    if proxied.is_streaming:
        background = BackgroundTask(proxied.close) if proxied.close else None
        response = StreamingResponse(
            proxied.body,
            status_code=proxied.status,
            background=background,
        )
    else:
        response = Response(content=proxied.body, status_code=proxied.status)
        if proxied.status >= 200 and proxied.status not in (204, 304):
            headers.set("content-length", str(len(proxied.body)))
    response.raw_headers = headers.raw()
    return response


async def handle_proxy(request: Request, config: Config) -> Response:
    """Handle every path through the proxy pipeline."""
    incoming = await build_incoming_request(request)
    if config.proxy.debug:
        submit_log(
            write_incoming_log,
            incoming.method,
            incoming.path,
            dict(incoming.headers.items()),
            {"query": incoming.query, "size": len(incoming.body)},
        )

    proxy_service = request.app.state.proxy_service
    proxied = await proxy_service.handle(incoming)
    return to_response(proxied)
