"""Explicit success / degraded / error results for network calls.

Weather and prediction flows must never surface a transport failure to the
dashboard. Callers wrap the network call with :func:`attempt` and choose how
to degrade with :meth:`Outcome.or_else`.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Generic, Optional, Tuple, Type, TypeVar

from .exceptions import UpstreamError


T = TypeVar("T")

logger = logging.getLogger(__name__)


class OutcomeKind(str, Enum):
    SUCCESS = "success"
    DEGRADED = "degraded"
    ERROR = "error"


@dataclass(frozen=True)
class Outcome(Generic[T]):
    kind: OutcomeKind
    value: Optional[T] = None
    error: Optional[BaseException] = None

    @classmethod
    def success(cls, value: T) -> "Outcome[T]":
        return cls(kind=OutcomeKind.SUCCESS, value=value)

    @classmethod
    def failure(cls, error: BaseException) -> "Outcome[T]":
        return cls(kind=OutcomeKind.ERROR, error=error)

    @property
    def ok(self) -> bool:
        return self.kind is OutcomeKind.SUCCESS

    @property
    def degraded(self) -> bool:
        return self.kind is OutcomeKind.DEGRADED

    def or_else(self, degrade: Callable[[Optional[BaseException]], T]) -> "Outcome[T]":
        """Replace an error outcome with a degraded value built by ``degrade``."""
        if self.kind is not OutcomeKind.ERROR:
            return self
        return Outcome(kind=OutcomeKind.DEGRADED, value=degrade(self.error), error=self.error)

    def unwrap(self) -> T:
        if self.kind is OutcomeKind.ERROR:
            raise self.error  # type: ignore[misc]
        return self.value  # type: ignore[return-value]


def attempt(
    call: Callable[[], T],
    *,
    recoverable: Tuple[Type[BaseException], ...] = (UpstreamError,),
    label: str = "upstream call",
) -> Outcome[T]:
    """Run ``call`` and capture recoverable failures as an error outcome."""
    try:
        return Outcome.success(call())
    except recoverable as exc:
        logger.warning("%s failed: %s", label, exc)
        return Outcome.failure(exc)


__all__ = ["Outcome", "OutcomeKind", "attempt"]
