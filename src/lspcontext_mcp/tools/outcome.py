"""Per-item results for best-effort loops."""

import logging
from dataclasses import dataclass
from typing import Generic, Iterable, Optional, TypeVar

from ..errors import LSPContextError

T = TypeVar("T")


@dataclass
class Outcome(Generic[T]):
    """Either a value or the error that prevented it."""
    value: Optional[T] = None
    error: Optional[LSPContextError] = None

    @classmethod
    def success(cls, value: T) -> "Outcome[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: LSPContextError) -> "Outcome[T]":
        return cls(error=error)

    @property
    def ok(self) -> bool:
        return self.error is None


def collect(outcomes: Iterable[Outcome[T]], logger: logging.Logger) -> list[T]:
    """Keep successful values in order, logging and dropping failures."""
    values = []
    for outcome in outcomes:
        if outcome.ok:
            values.append(outcome.value)
        else:
            logger.error("%s: %s", type(outcome.error).__name__, outcome.error)
    return values
