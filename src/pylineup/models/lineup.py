"""Lineup result types produced by the optimizer."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

from pylineup.config.roster import RosterSlot
from pylineup.models.player import PlayerRecord


@dataclass(frozen=True)
class LineupSlot:
    slot: RosterSlot
    player: PlayerRecord


@dataclass(frozen=True)
class LineupAnalytics:
    total_floor: float
    total_ceiling: float
    avg_volatility: float
    avg_boom_probability: float
    avg_bust_probability: float
    avg_ownership: float
    total_leverage: float
    avg_value: float
    num_teams: int
    num_games: int
    teams: Tuple[str, ...]
    salary_efficiency: float


@dataclass(frozen=True)
class Lineup:
    """One complete roster with its slot bindings and analytics."""

    lineup_id: str
    slots: Tuple[LineupSlot, ...]
    salary: int
    projection: float
    adjusted_projection: float
    remaining_salary: int
    analytics: LineupAnalytics

    @property
    def players(self) -> Tuple[PlayerRecord, ...]:
        return tuple(entry.player for entry in self.slots)

    @property
    def player_ids(self) -> frozenset[str]:
        return frozenset(entry.player.player_id for entry in self.slots)

    @property
    def signature(self) -> Tuple[str, ...]:
        return tuple(sorted(entry.player.player_id for entry in self.slots))

    def player_for(self, slot: RosterSlot) -> PlayerRecord | None:
        for entry in self.slots:
            if entry.slot == slot:
                return entry.player
        return None
