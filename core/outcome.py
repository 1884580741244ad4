"""Tagged results for pipeline steps that degrade instead of failing."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class Outcome(Generic[T]):
    """Value produced by a step, plus whether it is a fallback value.

    A degraded outcome still carries a usable value (usually the step's
    input); ``reason`` says what went wrong.
    """

    value: T
    degraded: bool = False
    reason: str = ""

    @classmethod
    def ok(cls, value: T) -> Outcome[T]:
        return cls(value=value)

    @classmethod
    def degrade(cls, value: T, reason: str) -> Outcome[T]:
        return cls(value=value, degraded=True, reason=reason)
