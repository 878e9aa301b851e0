"""Candidate pool utilities (filtering, variance, export)."""

from .export import ContestExportError, export_lineups_to_csv
from .filtering import FilterOutcome, filter_candidates, rejection_reason
from .variance import ScoredCandidate, perturb

__all__ = [
    "ContestExportError",
    "FilterOutcome",
    "ScoredCandidate",
    "export_lineups_to_csv",
    "filter_candidates",
    "perturb",
    "rejection_reason",
]
