"""Tests for the outbound forwarder."""

import httpx
import pytest

from core.exceptions import NetworkError, UpstreamTimeoutError
from core.headers import HeaderMap
from core.request_types import OutboundRequest, TargetURL
from core.result import Failure, Ok
from services.upstream import UpstreamClient


def _outbound(url="https://example.com/foo?x=1", method="GET", headers=None, body=b""):
    return OutboundRequest(
        target=TargetURL(url),
        method=method,
        headers=HeaderMap(headers or []),
        body=body,
    )


@pytest.mark.asyncio
async def test_sends_to_exact_target_url(mock_transport):
    transport = mock_transport(lambda request: httpx.Response(200, text="ok"))
    async with httpx.AsyncClient(transport=transport) as client:
        result = await UpstreamClient(client).send(_outbound())

    assert isinstance(result, Ok)
    assert result.value.status == 200
    assert str(transport.seen[0].url) == "https://example.com/foo?x=1"
    await result.value.aclose()


@pytest.mark.asyncio
async def test_forwards_method_body_and_headers(mock_transport):
    transport = mock_transport(lambda request: httpx.Response(201))
    outbound = _outbound(
        method="POST",
        headers=[
            ("user-agent", "test-agent"),
            ("content-type", "application/json"),
            ("host", "proxy.example"),
            ("content-length", "999"),
            ("keep-alive", "timeout=5"),
        ],
        body=b'{"a": 1}',
    )
    async with httpx.AsyncClient(transport=transport) as client:
        result = await UpstreamClient(client).send(outbound)

    sent = transport.seen[0]
    assert result.value.status == 201
    assert sent.method == "POST"
    assert sent.content == b'{"a": 1}'
    assert sent.headers["user-agent"] == "test-agent"
    assert sent.headers["host"] == "example.com"
    assert sent.headers["content-length"] == "8"
    assert "keep-alive" not in sent.headers
    await result.value.aclose()


@pytest.mark.asyncio
async def test_client_accept_encoding_is_replaced(mock_transport):
    transport = mock_transport(lambda request: httpx.Response(200))
    outbound = _outbound(headers=[("accept-encoding", "gzip, deflate, br, zstd, x-custom")])
    async with httpx.AsyncClient(transport=transport) as client:
        result = await UpstreamClient(client).send(outbound)
        expected = client.headers["accept-encoding"]

    assert transport.seen[0].headers.get_list("accept-encoding") == [expected]
    assert "x-custom" not in expected
    await result.value.aclose()


@pytest.mark.asyncio
async def test_redirects_are_not_followed(mock_transport):
    transport = mock_transport(
        lambda request: httpx.Response(302, headers={"Location": "https://example.com/next"})
    )
    async with httpx.AsyncClient(transport=transport, follow_redirects=True) as client:
        result = await UpstreamClient(client).send(_outbound())

    assert result.value.status == 302
    assert result.value.headers.get("location") == "https://example.com/next"
    assert len(transport.seen) == 1
    await result.value.aclose()


@pytest.mark.asyncio
async def test_multi_valued_response_headers(mock_transport):
    transport = mock_transport(
        lambda request: httpx.Response(200, headers=[("Set-Cookie", "a=1"), ("Set-Cookie", "b=2")])
    )
    async with httpx.AsyncClient(transport=transport) as client:
        result = await UpstreamClient(client).send(_outbound())

    assert result.value.headers.get_all("set-cookie") == ["a=1", "b=2"]
    await result.value.aclose()


@pytest.mark.asyncio
async def test_connection_error_is_network_failure(mock_transport):
    def refuse(request):
        raise httpx.ConnectError("Name or service not known", request=request)

    async with httpx.AsyncClient(transport=mock_transport(refuse)) as client:
        result = await UpstreamClient(client).send(_outbound("https://nope.invalid/"))

    assert isinstance(result, Failure)
    assert isinstance(result.error, NetworkError)
    assert result.message == "Name or service not known"
    assert result.error.target_url == "https://nope.invalid/"


@pytest.mark.asyncio
async def test_timeout_is_network_failure(mock_transport):
    def slow(request):
        raise httpx.ReadTimeout("timed out", request=request)

    async with httpx.AsyncClient(transport=mock_transport(slow)) as client:
        result = await UpstreamClient(client).send(_outbound())

    assert isinstance(result.error, UpstreamTimeoutError)
    assert result.kind == "network"


@pytest.mark.asyncio
async def test_unsupported_scheme_is_network_failure():
    async with httpx.AsyncClient() as client:
        result = await UpstreamClient(client).send(_outbound("ftp://example.com/file"))

    assert isinstance(result, Failure)
    assert result.kind == "network"
