"""Custom exception hierarchy for the path proxy."""


class ProxyError(Exception):
    """Base exception for all proxy errors.

    Attributes:
        kind: Short tag identifying the failure class in logs and results
    """

    kind = "internal"


class NetworkError(ProxyError):
    """Raised when the outbound fetch fails (DNS, connect, TLS, transport).

    Attributes:
        message: Error message
        target_url: URL the proxy tried to reach (optional)
    """

    kind = "network"

    def __init__(self, message: str, target_url: str | None = None) -> None:
        super().__init__(message)
        self.target_url = target_url


class UpstreamTimeoutError(NetworkError):
    """Raised when the outbound request exceeds the client timeout."""


class InvalidLocationError(ProxyError):
    """Redirect response had a missing or unparseable Location header."""

    kind = "invalid_location"
