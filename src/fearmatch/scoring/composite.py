"""
Shared scoring utilities.

This module contains small, reusable helpers used across the sub-scorers:
- `clamp01`: keep values within 0..1 for stable UI/output
- `ComponentResult`: a Result-style sub-score (either a score or an error, never an exception)
- `component_scorer`: decorator turning any exception inside a sub-scorer into a failed result
- `weighted_average`: combine counted components, normalizing by the weights actually used
"""

from __future__ import annotations

import functools
from dataclasses import dataclass, field
from typing import Any, Callable, Literal

ComponentName = Literal["fear", "difficulty", "location", "time"]


def clamp01(x: float) -> float:
    """Clamp a number into the [0.0, 1.0] range."""
    return max(0.0, min(1.0, float(x)))


@dataclass(frozen=True)
class ComponentResult:
    """A normalized sub-score plus explainability payload.

    `counted=False` removes the component's weight from the denominator.
    `error` is set when the scorer failed; the score is then 0.
    """

    score: float
    details: dict[str, Any] = field(default_factory=dict)
    reasons: list[str] = field(default_factory=list)
    counted: bool = True
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def failure(cls, error: str) -> "ComponentResult":
        return cls(score=0.0, reasons=["Could not be evaluated"], error=error)

    @classmethod
    def not_counted(cls, reason: str, **details: Any) -> "ComponentResult":
        return cls(score=0.0, details=dict(details), reasons=[reason], counted=False)


def component_scorer(func: Callable[..., ComponentResult]) -> Callable[..., ComponentResult]:
    """Make a sub-scorer total: exceptions become `ComponentResult.failure`."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> ComponentResult:
        try:
            result = func(*args, **kwargs)
        except Exception as e:
            return ComponentResult.failure(f"{type(e).__name__}: {e}")
        return ComponentResult(
            score=clamp01(result.score),
            details=result.details,
            reasons=result.reasons,
            counted=result.counted,
            error=result.error,
        )

    return wrapper


def weighted_average(parts: list[tuple[ComponentResult, float]]) -> float | None:
    """Weighted mean of counted components; None when no weight is in play."""
    total_weight = sum(max(0.0, w) for r, w in parts if r.counted)
    if total_weight <= 0:
        return None
    total = sum(r.score * max(0.0, w) for r, w in parts if r.counted)
    return clamp01(total / total_weight)
