from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Generic, TypeVar

from ai_diagnostics.errors import DiagnosticsError

T = TypeVar("T")
U = TypeVar("U")


@dataclass(frozen=True)
class Ok(Generic[T]):
    """Successful stage result."""

    value: T

    @property
    def is_ok(self) -> bool:
        return True

    def unwrap(self) -> T:
        return self.value

    def unwrap_or(self, default: T) -> T:
        return self.value

    def map(self, fn: Callable[[T], U]) -> Ok[U]:
        return Ok(fn(self.value))


@dataclass(frozen=True)
class Err:
    """Failed stage result carrying the error that caused it."""

    error: DiagnosticsError

    @property
    def is_ok(self) -> bool:
        return False

    def unwrap(self):
        raise self.error

    def unwrap_or(self, default: T) -> T:
        return default

    def map(self, fn: Callable) -> Err:
        return self


Result = Ok[T] | Err
