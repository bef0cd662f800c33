"""FastAPI application factory."""

from contextlib import asynccontextmanager
from pathlib import Path

import httpx
from fastapi import FastAPI, Request

from api.handlers import handle_proxy
from core.config import Config
from core.protocols import RequestLogger
from core.router import RouteDecider
from services.proxy_service import ProxyService
from services.upstream import UpstreamClient

DEFAULT_LANDING_PAGE = Path(__file__).parent / "ui" / "static" / "index.html"

PROXY_METHODS = ["GET", "POST", "PUT", "DELETE", "PATCH", "HEAD", "OPTIONS"]


def load_landing_page(path: Path | None = None) -> bytes:
    """Read the landing page served at the root path."""
    return (path or DEFAULT_LANDING_PAGE).read_bytes()


def create_app(
    config: Config,
    logger: RequestLogger,
    transport: httpx.AsyncBaseTransport | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application."""
    landing_page = load_landing_page(config.rewrite.landing_page)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        limits = httpx.Limits(
            max_connections=config.upstream.max_connections,
            max_keepalive_connections=config.upstream.max_keepalive_connections,
        )
        client = httpx.AsyncClient(
            timeout=config.upstream.timeout,
            limits=limits,
            follow_redirects=False,
            transport=transport,
        )
        app.state.proxy_service = ProxyService(
            upstream=UpstreamClient(client),
            logger=logger,
            landing_page=landing_page,
            decider=RouteDecider(config.rewrite.search_url),
            edge_header_prefix=config.rewrite.edge_header_prefix,
        )
        try:
            yield
        finally:
            await client.aclose()

    # Every path belongs to the proxy, including the ones FastAPI documents by default
    app = FastAPI(
        title="Path Proxy",
        version="0.1.0",
        lifespan=lifespan,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )

    @app.api_route("/{path:path}", methods=PROXY_METHODS)
    async def proxy_all(request: Request):
        return await handle_proxy(request, config)

    return app
