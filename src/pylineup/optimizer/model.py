"""Integer-program construction for a single lineup.

The model is solver-agnostic: variables and constraint rows use typed keys so
that a misspelled identifier cannot silently create a dead constraint. The
solver adapter in :mod:`pylineup.optimizer.solver` translates it to PuLP.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterable, List, Mapping, Sequence, Tuple, Union

from pylineup.config.roster import RosterRules, RosterSlot
from pylineup.config.settings import GppStrategy, OptimizationSettings, StackRequest, StrategyMode
from pylineup.pool.variance import ScoredCandidate


CASH_FLOOR_WEIGHT = 0.6
CASH_PROJECTION_WEIGHT = 0.4
LEVERAGE_SCALE = 10.0


@dataclass(frozen=True)
class PlayerSlotVar:
    player_id: str
    slot: RosterSlot


@dataclass(frozen=True)
class TeamUsedVar:
    team: str


@dataclass(frozen=True)
class GameUsedVar:
    game: Tuple[str, str]


Variable = Union[PlayerSlotVar, TeamUsedVar, GameUsedVar]


class ConstraintKind(str, Enum):
    SALARY_MAX = "salary_max"
    SALARY_MIN = "salary_min"
    SLOT_FILL = "slot_fill"
    PLAYER_ONCE = "player_once"
    TEAM_MAX = "team_max"
    TEAM_USED = "team_used"
    MIN_TEAMS = "min_teams"
    GAME_USED = "game_used"
    MIN_GAMES = "min_games"
    CHALK_MAX = "chalk_max"
    TEAM_STACK = "team_stack"
    GAME_STACK = "game_stack"
    BRING_BACK = "bring_back"
    DVP_MIN = "dvp_min"
    MAX_REPEAT = "max_repeat"
    NO_GOOD = "no_good"


class Sense(str, Enum):
    LE = "<="
    GE = ">="
    EQ = "=="


@dataclass(frozen=True)
class ConstraintKey:
    kind: ConstraintKind
    qualifier: str = ""

    def __str__(self) -> str:
        return f"{self.kind.value}:{self.qualifier}" if self.qualifier else self.kind.value


@dataclass(frozen=True)
class ConstraintRow:
    key: ConstraintKey
    coefficients: Mapping[Variable, float]
    sense: Sense
    rhs: float

    def evaluate(self, values: Mapping[Variable, int]) -> float:
        return sum(coef * values.get(var, 0) for var, coef in self.coefficients.items())

    def is_satisfied(self, values: Mapping[Variable, int], tolerance: float = 1e-6) -> bool:
        total = self.evaluate(values)
        if self.sense == Sense.LE:
            return total <= self.rhs + tolerance
        if self.sense == Sense.GE:
            return total >= self.rhs - tolerance
        return abs(total - self.rhs) <= tolerance


@dataclass(frozen=True)
class LineupModel:
    """Binary program: maximize ``objective`` subject to ``rows``."""

    variables: Tuple[Variable, ...]
    objective: Mapping[Variable, float]
    rows: Tuple[ConstraintRow, ...]
    candidates: Mapping[str, ScoredCandidate]

    def row(self, kind: ConstraintKind, qualifier: str = "") -> ConstraintRow | None:
        key = ConstraintKey(kind, qualifier)
        for row in self.rows:
            if row.key == key:
                return row
        return None

    def rows_of(self, kind: ConstraintKind) -> List[ConstraintRow]:
        return [row for row in self.rows if row.key.kind == kind]

    @property
    def player_slot_vars(self) -> List[PlayerSlotVar]:
        return [var for var in self.variables if isinstance(var, PlayerSlotVar)]


@dataclass
class _ModelBuilder:
    variables: List[Variable] = field(default_factory=list)
    objective: Dict[Variable, float] = field(default_factory=dict)
    rows: Dict[ConstraintKey, ConstraintRow] = field(default_factory=dict)

    def add_variable(self, var: Variable, coefficient: float = 0.0) -> None:
        if var in self.objective:
            raise ValueError(f"duplicate variable {var!r}")
        self.variables.append(var)
        self.objective[var] = coefficient

    def add_row(
        self,
        kind: ConstraintKind,
        coefficients: Mapping[Variable, float],
        sense: Sense,
        rhs: float,
        qualifier: str = "",
    ) -> None:
        key = ConstraintKey(kind, qualifier)
        if key in self.rows:
            raise ValueError(f"duplicate constraint {key}")
        unknown = [var for var in coefficients if var not in self.objective]
        if unknown:
            raise ValueError(f"constraint {key} references unknown variables {unknown!r}")
        self.rows[key] = ConstraintRow(key=key, coefficients=dict(coefficients), sense=sense, rhs=float(rhs))

    def build(self, candidates: Mapping[str, ScoredCandidate]) -> LineupModel:
        return LineupModel(
            variables=tuple(self.variables),
            objective=dict(self.objective),
            rows=tuple(self.rows.values()),
            candidates=dict(candidates),
        )


def objective_coefficient(candidate: ScoredCandidate, settings: OptimizationSettings) -> float:
    """Per-variable objective weight for the configured strategy."""

    if settings.mode == StrategyMode.CASH:
        return CASH_FLOOR_WEIGHT * candidate.floor + CASH_PROJECTION_WEIGHT * candidate.score

    ownership = candidate.player.ownership
    if settings.gpp_strategy == GppStrategy.MAX_LEVERAGE:
        return candidate.leverage * LEVERAGE_SCALE
    if settings.gpp_strategy == GppStrategy.CONTRARIAN:
        return candidate.ceiling * (100.0 - ownership) / 10.0
    return candidate.ceiling * (1.0 + (100.0 - ownership) / 100.0)


def _stack_members(
    stack: StackRequest,
    player_vars: Mapping[str, Sequence[PlayerSlotVar]],
    candidates: Mapping[str, ScoredCandidate],
) -> Dict[Variable, float]:
    coefficients: Dict[Variable, float] = {}
    matchup = stack.matchup
    for player_id, variables in player_vars.items():
        player = candidates[player_id].player
        if stack.team is not None:
            matched = player.team == stack.team
        else:
            matched = player.matchup == matchup
        if matched:
            for var in variables:
                coefficients[var] = 1.0
    return coefficients


def build_model(
    scored: Sequence[ScoredCandidate],
    settings: OptimizationSettings,
    rules: RosterRules,
    *,
    previous_lineups: Iterable[Iterable[str]] = (),
    forbidden_signatures: Iterable[Iterable[str]] = (),
) -> LineupModel:
    """Build the lineup program for one iteration.

    ``previous_lineups`` are accepted player-id sets, only consulted when
    ``settings.max_repeating_players`` is set. ``forbidden_signatures`` are
    exact rosters that must not be produced again.
    """

    builder = _ModelBuilder()
    candidates = {candidate.player_id: candidate for candidate in scored}
    player_vars: Dict[str, List[PlayerSlotVar]] = {}
    slot_vars: Dict[RosterSlot, List[PlayerSlotVar]] = defaultdict(list)
    team_vars: Dict[str, List[PlayerSlotVar]] = defaultdict(list)
    game_vars: Dict[Tuple[str, str], List[PlayerSlotVar]] = defaultdict(list)

    for candidate in candidates.values():
        player = candidate.player
        coefficient = objective_coefficient(candidate, settings)
        for slot in rules.eligible_slots(player.positions):
            var = PlayerSlotVar(player.player_id, slot)
            builder.add_variable(var, coefficient)
            player_vars.setdefault(player.player_id, []).append(var)
            slot_vars[slot].append(var)
            if player.team:
                team_vars[player.team].append(var)
            if player.matchup is not None:
                game_vars[player.matchup].append(var)

    all_player_vars = [var for variables in player_vars.values() for var in variables]
    salary = {var: float(candidates[var.player_id].player.salary) for var in all_player_vars}
    builder.add_row(ConstraintKind.SALARY_MAX, salary, Sense.LE, settings.salary_cap)
    builder.add_row(ConstraintKind.SALARY_MIN, salary, Sense.GE, settings.min_salary)

    for slot in rules.roster_order:
        builder.add_row(
            ConstraintKind.SLOT_FILL,
            {var: 1.0 for var in slot_vars.get(slot, [])},
            Sense.EQ,
            1,
            qualifier=slot.value,
        )

    for player_id, variables in player_vars.items():
        locked = player_id in settings.locked_ids
        builder.add_row(
            ConstraintKind.PLAYER_ONCE,
            {var: 1.0 for var in variables},
            Sense.EQ if locked else Sense.LE,
            1,
            qualifier=player_id,
        )
    for player_id in sorted(settings.locked_ids):
        if player_id in candidates and player_id not in player_vars:
            # locked but no legal slot: an empty equality row makes the model infeasible
            builder.add_row(ConstraintKind.PLAYER_ONCE, {}, Sense.EQ, 1, qualifier=player_id)

    if settings.max_players_per_team is not None:
        for team, variables in sorted(team_vars.items()):
            if len({var.player_id for var in variables}) <= settings.max_players_per_team:
                continue
            builder.add_row(
                ConstraintKind.TEAM_MAX,
                {var: 1.0 for var in variables},
                Sense.LE,
                settings.max_players_per_team,
                qualifier=team,
            )

    if settings.min_different_teams is not None:
        indicators: Dict[Variable, float] = {}
        for team, variables in sorted(team_vars.items()):
            indicator = TeamUsedVar(team)
            builder.add_variable(indicator)
            link: Dict[Variable, float] = {indicator: 1.0}
            link.update({var: -1.0 for var in variables})
            builder.add_row(ConstraintKind.TEAM_USED, link, Sense.LE, 0, qualifier=team)
            indicators[indicator] = 1.0
        builder.add_row(ConstraintKind.MIN_TEAMS, indicators, Sense.GE, settings.min_different_teams)

    if settings.min_games is not None:
        indicators = {}
        for game, variables in sorted(game_vars.items()):
            indicator = GameUsedVar(game)
            builder.add_variable(indicator)
            link = {indicator: 1.0}
            link.update({var: -1.0 for var in variables})
            builder.add_row(ConstraintKind.GAME_USED, link, Sense.LE, 0, qualifier=" vs ".join(game))
            indicators[indicator] = 1.0
        builder.add_row(ConstraintKind.MIN_GAMES, indicators, Sense.GE, settings.min_games)

    if settings.max_chalk_players is not None:
        chalk = {
            var: 1.0
            for var in all_player_vars
            if candidates[var.player_id].player.ownership >= settings.chalk_threshold
        }
        builder.add_row(ConstraintKind.CHALK_MAX, chalk, Sense.LE, settings.max_chalk_players)

    for index, stack in enumerate(settings.team_stacks):
        builder.add_row(
            ConstraintKind.TEAM_STACK,
            _stack_members(stack, player_vars, candidates),
            Sense.GE,
            stack.min_players,
            qualifier=f"{index}:{stack.label}",
        )

    for index, stack in enumerate(settings.game_stacks):
        builder.add_row(
            ConstraintKind.GAME_STACK,
            _stack_members(stack, player_vars, candidates),
            Sense.GE,
            stack.min_players,
            qualifier=f"{index}:{stack.label}",
        )
        if settings.enable_bring_back:
            for team in stack.matchup or ():
                side = {
                    var: 1.0
                    for var in team_vars.get(team, [])
                    if candidates[var.player_id].player.matchup == stack.matchup
                }
                builder.add_row(ConstraintKind.BRING_BACK, side, Sense.GE, 1, qualifier=f"{index}:{team}")

    if settings.require_dvp_advantage:
        favorable = {
            var: 1.0
            for var in all_player_vars
            if (candidates[var.player_id].player.dvp_pts_allowed or 0.0) >= settings.dvp_threshold
        }
        builder.add_row(ConstraintKind.DVP_MIN, favorable, Sense.GE, settings.dvp_min_players)

    if settings.max_repeating_players is not None:
        for index, lineup_ids in enumerate(previous_lineups):
            ids = set(lineup_ids)
            overlap = {var: 1.0 for var in all_player_vars if var.player_id in ids}
            builder.add_row(
                ConstraintKind.MAX_REPEAT,
                overlap,
                Sense.LE,
                settings.max_repeating_players,
                qualifier=str(index),
            )

    for index, signature in enumerate(forbidden_signatures):
        ids = set(signature)
        overlap = {var: 1.0 for var in all_player_vars if var.player_id in ids}
        builder.add_row(
            ConstraintKind.NO_GOOD,
            overlap,
            Sense.LE,
            rules.lineup_size - 1,
            qualifier=str(index),
        )

    return builder.build(candidates)


__all__ = [
    "CASH_FLOOR_WEIGHT",
    "CASH_PROJECTION_WEIGHT",
    "ConstraintKey",
    "ConstraintKind",
    "ConstraintRow",
    "GameUsedVar",
    "LineupModel",
    "PlayerSlotVar",
    "Sense",
    "TeamUsedVar",
    "Variable",
    "build_model",
    "objective_coefficient",
]
