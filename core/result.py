"""Stage results for the request pipeline."""

from dataclasses import dataclass
from typing import Generic, TypeVar, Union

from core.exceptions import ProxyError

T = TypeVar("T")


@dataclass(frozen=True)
class Ok(Generic[T]):
    """Successful stage output."""

    value: T


@dataclass(frozen=True)
class Failure:
    """Failed stage output, tagged by the error kind."""

    error: ProxyError

    @property
    def kind(self) -> str:
        return self.error.kind

    @property
    def message(self) -> str:
        return str(self.error)

    @classmethod
    def from_exception(cls, exc: Exception) -> "Failure":
        """Wrap an arbitrary exception, keeping proxy errors as they are."""
        if isinstance(exc, ProxyError):
            return cls(exc)
        return cls(ProxyError(str(exc) or type(exc).__name__))


Result = Union[Ok[T], Failure]
