import httpx
import pytest

from core.headers import HeaderMap
from core.request_types import IncomingRequest


class RecordingLogger:
    """RequestLogger that keeps every call for assertions."""

    def __init__(self):
        self.proxied = []
        self.searches = []
        self.errors = []

    def log_proxy(self, method, target, status, *, kind):
        self.proxied.append((method, target, status, kind))

    def log_search(self, term):
        self.searches.append(term)

    def log_error(self, route, status, message):
        self.errors.append((route, status, message))


@pytest.fixture
def request_logger():
    return RecordingLogger()


@pytest.fixture
def make_request():
    """Build an IncomingRequest as seen by a proxy at https://proxy.example."""

    def _make(path="/", query="", method="GET", headers=None, body=b"", scheme="https", host="proxy.example"):
        return IncomingRequest(
            method=method,
            path=path,
            scheme=scheme,
            host=host,
            query=query,
            headers=HeaderMap(headers or []),
            body=body,
        )

    return _make


@pytest.fixture
def mock_transport():
    """httpx transport recording outbound requests and answering with handler."""

    def _create(handler):
        seen = []

        def _handle(request: httpx.Request):
            seen.append(request)
            return handler(request)

        transport = httpx.MockTransport(_handle)
        transport.seen = seen
        return transport

    return _create
