"""
Result type shared by clients, stores and the orchestrator.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Generic, TypeVar, Union

from sponsorwatch.core.errors import CrawlError

T = TypeVar("T")
U = TypeVar("U")


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T

    @property
    def is_ok(self) -> bool:
        return True

    def unwrap(self) -> T:
        return self.value

    def map(self, fn: Callable[[T], U]) -> "Ok[U]":
        return Ok(fn(self.value))


@dataclass(frozen=True)
class Err:
    error: CrawlError

    @property
    def is_ok(self) -> bool:
        return False

    def unwrap(self):
        raise self.error

    def map(self, fn) -> "Err":
        return self


Result = Union[Ok[T], Err]
