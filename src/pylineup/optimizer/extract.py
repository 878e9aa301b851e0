"""Turn solver assignments into validated lineups with analytics."""

from __future__ import annotations

from dataclasses import dataclass, field
from statistics import fmean
from typing import Dict, List, Optional, Sequence

from pylineup.config.roster import RosterRules, RosterSlot
from pylineup.config.settings import OptimizationSettings
from pylineup.models import Lineup, LineupAnalytics, LineupSlot, PlayerRecord
from pylineup.optimizer.errors import ExtractionInconsistencyError
from pylineup.optimizer.model import LineupModel, PlayerSlotVar
from pylineup.optimizer.solver import Assignment


@dataclass(frozen=True)
class LineupValidation:
    is_valid: bool
    salary: int
    projection: float
    remaining_salary: int
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)


def compute_analytics(
    players: Sequence[PlayerRecord],
    settings: OptimizationSettings,
) -> LineupAnalytics:
    """Aggregate lineup-level metrics; missing player signals count as zero."""

    if not players:
        raise ValueError("cannot compute analytics for an empty lineup")

    salary = sum(player.salary for player in players)
    projection = sum(player.projection for player in players)
    teams = tuple(sorted({player.team for player in players if player.team}))
    games = {player.matchup for player in players if player.matchup is not None}
    if settings.is_cash:
        values = [player.value or 0.0 for player in players]
    else:
        values = [player.value_gpp or 0.0 for player in players]

    return LineupAnalytics(
        total_floor=sum(player.floor or 0.0 for player in players),
        total_ceiling=sum(player.ceiling or 0.0 for player in players),
        avg_volatility=fmean(player.volatility or 0.0 for player in players),
        avg_boom_probability=fmean(player.boom_probability or 0.0 for player in players),
        avg_bust_probability=fmean(player.bust_probability or 0.0 for player in players),
        avg_ownership=fmean(player.ownership for player in players),
        total_leverage=sum(player.leverage for player in players),
        avg_value=fmean(values),
        num_teams=len(teams),
        num_games=len(games),
        teams=teams,
        salary_efficiency=(projection / salary * 1000.0) if salary else 0.0,
    )


def extract_lineup(
    assignment: Assignment,
    model: LineupModel,
    settings: OptimizationSettings,
    rules: RosterRules,
    *,
    lineup_id: str,
    iteration: Optional[int] = None,
) -> Lineup:
    """Resolve the selected variables to slot bindings and validate the roster."""

    by_slot: Dict[RosterSlot, PlayerRecord] = {}
    seen: set[str] = set()
    adjusted = 0.0

    for var in assignment.selected():
        if not isinstance(var, PlayerSlotVar):
            continue
        candidate = model.candidates.get(var.player_id)
        if candidate is None:
            raise ExtractionInconsistencyError(
                f"Assignment selected unknown player {var.player_id}", iteration=iteration
            )
        if var.slot in by_slot:
            raise ExtractionInconsistencyError(
                f"Slot {var.slot.value} filled more than once", iteration=iteration
            )
        if var.player_id in seen:
            raise ExtractionInconsistencyError(
                f"Player {var.player_id} appears in more than one slot", iteration=iteration
            )
        if not rules.is_eligible(candidate.player.positions, var.slot):
            raise ExtractionInconsistencyError(
                f"Player {var.player_id} ({'/'.join(candidate.player.positions)}) "
                f"is not eligible for slot {var.slot.value}",
                iteration=iteration,
            )
        by_slot[var.slot] = candidate.player
        seen.add(var.player_id)
        adjusted += candidate.score

    missing = [slot.value for slot in rules.roster_order if slot not in by_slot]
    if missing:
        raise ExtractionInconsistencyError(
            f"Assignment left slots empty: {', '.join(missing)}", iteration=iteration
        )

    slots = tuple(LineupSlot(slot=slot, player=by_slot[slot]) for slot in rules.roster_order)
    players = [entry.player for entry in slots]
    salary = sum(player.salary for player in players)
    if salary > settings.salary_cap or salary < settings.min_salary:
        raise ExtractionInconsistencyError(
            f"Lineup salary {salary} outside [{settings.min_salary}, {settings.salary_cap}]",
            iteration=iteration,
        )

    return Lineup(
        lineup_id=lineup_id,
        slots=slots,
        salary=salary,
        projection=sum(player.projection for player in players),
        adjusted_projection=adjusted,
        remaining_salary=settings.salary_cap - salary,
        analytics=compute_analytics(players, settings),
    )


def _assign_slots(
    players: Sequence[PlayerRecord],
    rules: RosterRules,
) -> Optional[Dict[RosterSlot, PlayerRecord]]:
    """Find a legal slot for every player (bipartite matching), or None."""

    owner: Dict[RosterSlot, int] = {}

    def place(index: int, visited: set[RosterSlot]) -> bool:
        for slot in rules.eligible_slots(players[index].positions):
            if slot in visited:
                continue
            visited.add(slot)
            if slot not in owner or place(owner[slot], visited):
                owner[slot] = index
                return True
        return False

    for index in range(len(players)):
        if not place(index, set()):
            return None
    return {slot: players[index] for slot, index in owner.items()}


def validate_lineup(
    players: Sequence[PlayerRecord],
    settings: OptimizationSettings,
    rules: RosterRules,
) -> LineupValidation:
    """Check a roster assembled outside the optimizer."""

    salary = sum(player.salary for player in players)
    projection = sum(player.projection for player in players)
    errors: list[str] = []
    warnings: list[str] = []

    if len(players) != rules.lineup_size:
        errors.append(f"Must provide exactly {rules.lineup_size} players, got {len(players)}")
    if salary > settings.salary_cap:
        errors.append(f"Over salary cap by ${salary - settings.salary_cap}")
    if salary < settings.min_salary:
        errors.append(f"Below minimum salary of ${settings.min_salary}")
    ids = [player.player_id for player in players]
    if len(ids) != len(set(ids)):
        errors.append("Duplicate players in lineup")
    elif len(players) == rules.lineup_size and _assign_slots(players, rules) is None:
        errors.append("Players cannot fill every roster slot")
    for player in players:
        status = (player.injury_status or "").strip().upper()
        if status and status in settings.injury_statuses:
            warnings.append(f"{player.name} is listed {status}")

    return LineupValidation(
        is_valid=not errors,
        salary=salary,
        projection=projection,
        remaining_salary=settings.salary_cap - salary,
        errors=errors,
        warnings=warnings,
    )


__all__ = ["LineupValidation", "compute_analytics", "extract_lineup", "validate_lineup"]
