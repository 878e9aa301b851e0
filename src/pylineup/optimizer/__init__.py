"""Lineup optimizer built on a PuLP integer program."""

from .errors import (
    BatchExhausted,
    ExtractionInconsistencyError,
    InsufficientCandidatesError,
    NoFeasibleLineupError,
    OptimizerError,
)
from .exposure import ExposureEntry, PopularityTier
from .extract import LineupValidation, validate_lineup
from .service import BatchOutput, IterationReport, IterationState, build_lineups

__all__ = [
    "BatchExhausted",
    "BatchOutput",
    "ExposureEntry",
    "ExtractionInconsistencyError",
    "InsufficientCandidatesError",
    "IterationReport",
    "IterationState",
    "LineupValidation",
    "NoFeasibleLineupError",
    "OptimizerError",
    "PopularityTier",
    "build_lineups",
    "validate_lineup",
]
