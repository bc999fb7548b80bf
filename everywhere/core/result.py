from __future__ import annotations
"""Outcome of a submission query.

Either an accepted :class:`ResolutionResult` or the :class:`CycleDetected`
that stopped it. Callers that prefer exceptions use :meth:`Result.unwrap`.
"""
from dataclasses import dataclass
from typing import Generic, Optional, TypeVar

from .errors import CycleDetected, EverywhereError
from .model import CycleReport

T = TypeVar("T")

__all__ = ["Result"]


@dataclass(slots=True, frozen=True)
class Result(Generic[T]):  # noqa: D101
    value: Optional[T] = None
    error: Optional[EverywhereError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def loop(self) -> Optional[CycleReport]:
        """The offending loop when the submission was refused for one."""
        return self.error.report if isinstance(self.error, CycleDetected) else None

    @classmethod
    def success(cls, value: T) -> "Result[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: EverywhereError) -> "Result[T]":
        return cls(error=error)

    def unwrap(self) -> T:  # noqa: D401
        """Return the accepted value, raising the stored error instead if any."""
        if self.error is not None:
            raise self.error
        return self.value  # type: ignore[return-value]
