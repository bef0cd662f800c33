"""Request orchestration: route, forward, rewrite, finalize."""

import json
import logging

from core.exceptions import InvalidLocationError
from core.headers import HOP_BY_HOP_HEADERS, HeaderMap, filter_headers, finalize_headers, without_prefix
from core.protocols import RequestLogger
from core.redirect import is_redirect, rewrite_location
from core.request_types import (
    IncomingRequest,
    OutboundRequest,
    OutboundResponse,
    ProxyResponse,
    TargetURL,
)
from core.result import Failure, Ok, Result
from core.router import LANDING, SEARCH, RouteDecider
from core.transform import HtmlRewriter, is_html, utf8_content_type
from services.upstream import UpstreamClient

log = logging.getLogger(__name__)

LANDING_CONTENT_TYPE = "text/html; charset=utf-8"
ERROR_CONTENT_TYPE = "application/json; charset=utf-8"

# Invalid once httpx has decoded the body we re-emit
DECODED_BODY_DROP = HOP_BY_HOP_HEADERS | {"content-encoding", "content-length"}


class ProxyService:
    """Turn one inbound request into one proxy response."""

    def __init__(
        self,
        upstream: UpstreamClient,
        logger: RequestLogger,
        landing_page: bytes,
        decider: RouteDecider | None = None,
        edge_header_prefix: str = "cf-",
    ) -> None:
        self._upstream = upstream
        self._logger = logger
        self._landing_page = landing_page
        self._decider = decider or RouteDecider()
        self._accept_header = without_prefix(edge_header_prefix)

    async def handle(self, request: IncomingRequest) -> ProxyResponse:
        """Run the pipeline; every failure becomes a 500 JSON response."""
        try:
            result = await self._dispatch(request)
        except Exception as e:
            log.exception("Unhandled error proxying %s %s", request.method, request.path)
            result = Failure.from_exception(e)

        if isinstance(result, Failure):
            self._logger.log_error(request.path, 500, f"{result.kind}: {result.message}")
            response = error_response(result)
        else:
            response = result.value

        finalize_headers(response.headers)
        return response

    async def _dispatch(self, request: IncomingRequest) -> Result[ProxyResponse]:
        decision = self._decider.decide(request)
        if decision.route == LANDING:
            return Ok(self._landing_response())
        if decision.route == SEARCH:
            self._logger.log_search(request.path[1:])
            return Ok(ProxyResponse(status=302, headers=HeaderMap([("location", decision.location)])))

        outbound = OutboundRequest(
            target=decision.target,
            method=request.method,
            headers=filter_headers(request.headers, self._accept_header),
            body=request.body,
        )
        sent = await self._upstream.send(outbound)
        if isinstance(sent, Failure):
            return sent

        response = sent.value
        try:
            result = await self._respond(request, decision.target, response)
        except BaseException:
            await response.aclose()
            raise
        if isinstance(result, Failure):
            await response.aclose()
        else:
            self._logger.log_proxy(
                request.method,
                decision.target.url,
                response.status,
                kind=self._kind(response),
            )
        return result

    async def _respond(
        self,
        request: IncomingRequest,
        target: TargetURL,
        response: OutboundResponse,
    ) -> Result[ProxyResponse]:
        if is_redirect(response.status):
            return self._redirect(response)
        if is_html(response.content_type):
            return Ok(await self._html(request, target, response))
        return Ok(self._passthrough(response, response.headers))

    def _redirect(self, response: OutboundResponse) -> Result[ProxyResponse]:
        try:
            headers = rewrite_location(response.headers)
        except InvalidLocationError as e:
            return Failure(e)
        return Ok(self._passthrough(response, headers))

    async def _html(
        self,
        request: IncomingRequest,
        target: TargetURL,
        response: OutboundResponse,
    ) -> ProxyResponse:
        raw = await response.read()
        rewriter = HtmlRewriter(request.protocol, request.host)
        body = rewriter.rewrite(raw, target.origin).encode("utf-8")
        headers = response.headers.filter(lambda name: name not in DECODED_BODY_DROP)
        headers.set("content-type", utf8_content_type(response.content_type))
        return ProxyResponse(status=response.status, headers=headers, body=body)

    def _passthrough(self, response: OutboundResponse, headers: HeaderMap) -> ProxyResponse:
        return ProxyResponse(
            status=response.status,
            headers=headers.filter(lambda name: name not in DECODED_BODY_DROP),
            body=response.iter_bytes(),
            close=response.aclose,
        )

    def _landing_response(self) -> ProxyResponse:
        return ProxyResponse(
            status=200,
            headers=HeaderMap([("content-type", LANDING_CONTENT_TYPE)]),
            body=self._landing_page,
        )

    @staticmethod
    def _kind(response: OutboundResponse) -> str:
        if is_redirect(response.status):
            return "redirect"
        if is_html(response.content_type):
            return "html"
        return "passthrough"


def error_response(failure: Failure) -> ProxyResponse:
    """500 JSON envelope for a failed request."""
    return ProxyResponse(
        status=500,
        headers=HeaderMap([("content-type", ERROR_CONTENT_TYPE)]),
        body=json.dumps({"error": failure.message}).encode("utf-8"),
    )
