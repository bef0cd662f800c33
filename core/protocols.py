"""Shared protocol definitions."""

from typing import Protocol


class RequestLogger(Protocol):
    """Protocol for request logging (Dashboard)."""

    def log_proxy(self, method: str, target: str, status: int, *, kind: str) -> None: ...
    def log_search(self, term: str) -> None: ...
    def log_error(self, route: str, status: int, message: str) -> None: ...
