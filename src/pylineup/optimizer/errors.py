"""Error taxonomy for lineup generation."""

from __future__ import annotations

from collections import Counter
from typing import TYPE_CHECKING, Mapping, Optional

if TYPE_CHECKING:
    from pylineup.optimizer.service import BatchOutput


class OptimizerError(Exception):
    """Base class for optimizer failures."""

    def __init__(self, message: str, *, iteration: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.iteration = iteration


class InsufficientCandidatesError(OptimizerError):
    """Too few players survived filtering to fill every roster slot."""

    def __init__(
        self,
        available: int,
        required: int,
        rejections: Optional[Mapping[str, int]] = None,
        *,
        iteration: Optional[int] = None,
    ):
        self.available = available
        self.required = required
        self.rejections: Counter[str] = Counter(rejections or {})
        top = ", ".join(f"{reason}={count}" for reason, count in self.rejections.most_common(3))
        message = f"Insufficient candidates: {available} available, {required} required"
        if top:
            message = f"{message} (top rejections: {top})"
        super().__init__(message, iteration=iteration)


class ExtractionInconsistencyError(OptimizerError):
    """Solver returned a feasible assignment that is not a legal roster."""


class NoFeasibleLineupError(OptimizerError):
    """Not a single lineup could be produced for the batch."""


class BatchExhausted(OptimizerError):
    """Retries ran out before the requested batch size was reached."""

    def __init__(self, output: "BatchOutput", message: str):
        super().__init__(message)
        self.output = output

    @property
    def lineups(self):
        return self.output.lineups

    @property
    def unmet(self) -> int:
        return self.output.unmet


__all__ = [
    "BatchExhausted",
    "ExtractionInconsistencyError",
    "InsufficientCandidatesError",
    "NoFeasibleLineupError",
    "OptimizerError",
]
