"""Exposure ceilings and duplicate tracking across a lineup batch."""

from __future__ import annotations

import math
from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, FrozenSet, Tuple

from pylineup.config.settings import OptimizationSettings
from pylineup.models import Lineup, PlayerRecord


class PopularityTier(str, Enum):
    CHALK = "chalk"
    MID = "mid"
    LOW = "low"


def popularity_tier(ownership: float, settings: OptimizationSettings) -> PopularityTier:
    if ownership >= settings.chalk_threshold:
        return PopularityTier.CHALK
    if ownership >= settings.mid_threshold:
        return PopularityTier.MID
    return PopularityTier.LOW


def exposure_ceiling(tier: PopularityTier, settings: OptimizationSettings) -> float:
    if tier == PopularityTier.CHALK:
        return settings.max_exposure_chalk
    if tier == PopularityTier.MID:
        return settings.max_exposure_mid
    return settings.max_exposure_low


def lineup_signature(lineup: Lineup) -> Tuple[str, ...]:
    return lineup.signature


@dataclass(frozen=True)
class ExposureLimits:
    overexposed: FrozenSet[str] = frozenset()
    underexposed: FrozenSet[str] = frozenset()


@dataclass
class ExposureState:
    """Batch-scoped usage counts and accepted signatures."""

    counts: Counter[str] = field(default_factory=Counter)
    lineups_built: int = 0
    signatures: set[Tuple[str, ...]] = field(default_factory=set)
    players: Dict[str, PlayerRecord] = field(default_factory=dict)

    def is_duplicate(self, lineup: Lineup) -> bool:
        return lineup_signature(lineup) in self.signatures

    def record(self, lineup: Lineup) -> None:
        signature = lineup_signature(lineup)
        if signature in self.signatures:
            raise ValueError(f"lineup {lineup.lineup_id} duplicates an accepted lineup")
        self.signatures.add(signature)
        self.lineups_built += 1
        for player in lineup.players:
            self.counts[player.player_id] += 1
            self.players.setdefault(player.player_id, player)

    def exposure(self, player_id: str) -> float:
        if self.lineups_built == 0:
            return 0.0
        return self.counts.get(player_id, 0) / self.lineups_built * 100.0


def limits_for_iteration(
    state: ExposureState,
    batch_size: int,
    settings: OptimizationSettings,
) -> ExposureLimits:
    """Players to exclude from the next lineup, plus best-effort underexposed ids.

    A player is overexposed once its share of the lineups built so far reaches
    its tier ceiling, or once one more appearance would push it past the
    ceiling measured against the full batch.
    """

    if state.lineups_built == 0:
        return ExposureLimits()

    built = state.lineups_built
    overexposed: set[str] = set()
    underexposed: set[str] = set()

    for player_id, count in state.counts.items():
        ceiling = exposure_ceiling(popularity_tier(state.players[player_id].ownership, settings), settings)
        exposure = state.exposure(player_id)
        allowed = max(1, math.floor(ceiling * batch_size / 100.0 + 1e-9))
        # a 100% ceiling never binds
        if ceiling < 100.0 and (exposure >= ceiling or count + 1 > allowed):
            overexposed.add(player_id)
        if settings.min_exposure > 0 and built >= 5 and exposure < settings.min_exposure:
            underexposed.add(player_id)

    return ExposureLimits(overexposed=frozenset(overexposed), underexposed=frozenset(underexposed))



@dataclass(frozen=True)
class ExposureEntry:
    player_id: str
    name: str
    salary: int
    ownership: float
    leverage: float
    count: int
    exposure: float
    tier: PopularityTier


def build_exposure_report(
    state: ExposureState,
    settings: OptimizationSettings,
) -> list[ExposureEntry]:
    """Per-player usage across the accepted lineups, most exposed first."""

    if state.lineups_built == 0:
        return []
    entries = []
    for player_id, count in state.counts.items():
        player = state.players[player_id]
        entries.append(
            ExposureEntry(
                player_id=player_id,
                name=player.name,
                salary=player.salary,
                ownership=player.ownership,
                leverage=player.leverage,
                count=count,
                exposure=state.exposure(player_id),
                tier=popularity_tier(player.ownership, settings),
            )
        )
    entries.sort(key=lambda entry: (-entry.exposure, entry.name))
    return entries



__all__ = [
    "ExposureEntry",
    "ExposureLimits",
    "ExposureState",
    "PopularityTier",
    "build_exposure_report",
    "exposure_ceiling",
    "limits_for_iteration",
    "lineup_signature",
    "popularity_tier",
]
