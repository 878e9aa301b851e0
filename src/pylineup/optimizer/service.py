"""Batch orchestration: filter, perturb, model, solve and extract per lineup."""

from __future__ import annotations

import logging
import random
import time
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Sequence, Tuple

import pulp

from pylineup.config.roster import RosterRules, get_rules
from pylineup.config.settings import OptimizationSettings
from pylineup.models import Lineup, PlayerRecord
from pylineup.optimizer.errors import (
    BatchExhausted,
    InsufficientCandidatesError,
    NoFeasibleLineupError,
)
from pylineup.optimizer.exposure import (
    ExposureEntry,
    ExposureLimits,
    ExposureState,
    build_exposure_report,
    limits_for_iteration,
)
from pylineup.optimizer.extract import extract_lineup
from pylineup.optimizer.model import build_model
from pylineup.optimizer.solver import Infeasible, get_solver, solve
from pylineup.pool.filtering import filter_candidates
from pylineup.pool.variance import perturb


logger = logging.getLogger(__name__)

_SEED_MODULUS = 2 ** 31 - 1


class IterationState(str, Enum):
    IDLE = "idle"
    FILTERING = "filtering"
    PERTURBING = "perturbing"
    MODEL_BUILDING = "model_building"
    SOLVING = "solving"
    EXTRACTING = "extracting"
    ACCEPTED = "accepted"
    RETRYING = "retrying"
    FAILED = "failed"


@dataclass(frozen=True)
class IterationReport:
    index: int
    state: IterationState
    attempts: int
    reason: str = ""
    objective: Optional[float] = None


@dataclass(frozen=True)
class BatchOutput:
    lineups: List[Lineup]
    exposure_report: Optional[List[ExposureEntry]]
    iterations: Tuple[IterationReport, ...]
    requested: int
    seed: int
    elapsed: float
    stop_reason: Optional[str] = None

    @property
    def unmet(self) -> int:
        return max(0, self.requested - len(self.lineups))


class _Iteration:
    def __init__(self, index: int, total: int):
        self.index = index
        self.total = total
        self.state = IterationState.IDLE
        self.attempts = 0

    def move(self, state: IterationState) -> None:
        logger.debug(
            "Lineup %s/%s attempt %s: %s -> %s",
            self.index + 1,
            self.total,
            self.attempts,
            self.state.value,
            state.value,
        )
        self.state = state

    def report(self, reason: str = "", objective: Optional[float] = None) -> IterationReport:
        return IterationReport(
            index=self.index,
            state=self.state,
            attempts=self.attempts,
            reason=reason,
            objective=objective,
        )


def attempt_seed(base_seed: int, index: int, attempt: int) -> int:
    """Deterministic per-attempt seed derived from the batch seed."""

    return (base_seed * 1_000_003 + index * 7_919 + attempt) % _SEED_MODULUS


def _run_iteration(
    index: int,
    players: Sequence[PlayerRecord],
    settings: OptimizationSettings,
    rules: RosterRules,
    accepted: Sequence[Lineup],
    state: ExposureState,
    limits: ExposureLimits,
    base_seed: int,
    solver: pulp.LpSolver,
) -> tuple[Optional[Lineup], IterationReport]:
    iteration = _Iteration(index, settings.num_lineups)

    iteration.move(IterationState.FILTERING)
    outcome = filter_candidates(players, settings, rules, excluded_ids=limits.overexposed)
    if len(outcome) < rules.lineup_size:
        iteration.move(IterationState.FAILED)
        return None, iteration.report(
            f"insufficient candidates ({len(outcome)} of {rules.lineup_size}) "
            f"with {len(limits.overexposed)} overexposed players excluded"
        )

    previous = [lineup.player_ids for lineup in accepted] if settings.max_repeating_players is not None else []
    forbidden: list[tuple[str, ...]] = []
    lineup_id = f"L{len(accepted) + 1:03}"

    for attempt in range(settings.max_attempts_per_lineup):
        iteration.attempts = attempt + 1
        iteration.move(IterationState.PERTURBING)
        intensity = settings.randomness + (index + attempt) * settings.randomness_step
        rng = random.Random(attempt_seed(base_seed, index, attempt))
        scored = perturb(outcome.candidates, intensity, settings.mode, rng)

        iteration.move(IterationState.MODEL_BUILDING)
        model = build_model(
            scored,
            settings,
            rules,
            previous_lineups=previous,
            forbidden_signatures=forbidden,
        )

        iteration.move(IterationState.SOLVING)
        result = solve(model, solver)
        if isinstance(result, Infeasible):
            iteration.move(IterationState.FAILED)
            return None, iteration.report(
                f"no feasible lineup ({result}) from {len(outcome)} candidates"
            )

        iteration.move(IterationState.EXTRACTING)
        lineup = extract_lineup(
            result,
            model,
            settings,
            rules,
            lineup_id=lineup_id,
            iteration=index,
        )
        if state.is_duplicate(lineup):
            iteration.move(IterationState.RETRYING)
            forbidden.append(lineup.signature)
            logger.info(
                "Lineup %s/%s duplicated an accepted lineup (attempt %s); retrying",
                index + 1,
                settings.num_lineups,
                attempt + 1,
            )
            continue

        iteration.move(IterationState.ACCEPTED)
        return lineup, iteration.report(objective=result.objective)

    iteration.move(IterationState.FAILED)
    return None, iteration.report(
        f"duplicate lineup after {settings.max_attempts_per_lineup} attempts"
    )


def build_lineups(
    players: Sequence[PlayerRecord],
    settings: OptimizationSettings,
    *,
    rules: Optional[RosterRules] = None,
    solver: Optional[pulp.LpSolver] = None,
) -> BatchOutput:
    """Generate ``settings.num_lineups`` unique lineups from ``players``.

    Raises :class:`InsufficientCandidatesError` when the pool cannot fill a
    roster, :class:`NoFeasibleLineupError` when not a single lineup could be
    built, and :class:`BatchExhausted` (carrying the partial output) when the
    batch stopped short of the requested size.
    """

    rules = rules or get_rules()
    solver = solver or get_solver()
    run_start = time.perf_counter()
    base_seed = settings.seed if settings.seed is not None else random.randint(1, _SEED_MODULUS - 1)

    pool_ids = {player.player_id for player in players}
    missing_locks = sorted(settings.locked_ids - pool_ids)
    if missing_locks:
        logger.warning("Locked players not in pool: %s", ", ".join(missing_locks))

    initial = filter_candidates(players, settings, rules)
    logger.info(
        "Starting lineup generation – mode=%s, strategy=%s, total=%s, pool=%s, candidates=%s, seed=%s",
        settings.mode.value,
        settings.gpp_strategy.value if not settings.is_cash else "-",
        settings.num_lineups,
        len(players),
        len(initial),
        base_seed,
    )
    if len(initial) < rules.lineup_size:
        raise InsufficientCandidatesError(len(initial), rules.lineup_size, initial.rejections)

    state = ExposureState()
    lineups: list[Lineup] = []
    reports: list[IterationReport] = []
    failures = 0
    stop_reason: Optional[str] = None

    for index in range(settings.num_lineups):
        elapsed = time.perf_counter() - run_start
        if settings.time_limit is not None and elapsed >= settings.time_limit:
            stop_reason = f"time limit of {settings.time_limit:.1f}s reached"
            logger.warning(
                "Stopping after %s/%s lineups: %s", len(lineups), settings.num_lineups, stop_reason
            )
            break

        limits = limits_for_iteration(state, settings.num_lineups, settings)
        if limits.underexposed:
            logger.debug("Underexposed players before lineup %s: %s", index + 1, sorted(limits.underexposed))

        lineup, report = _run_iteration(
            index,
            players,
            settings,
            rules,
            lineups,
            state,
            limits,
            base_seed,
            solver,
        )
        reports.append(report)

        if lineup is None:
            failures += 1
            stop_reason = report.reason
            logger.warning(
                "Failed to build lineup %s/%s after %s attempt(s): %s",
                index + 1,
                settings.num_lineups,
                report.attempts,
                report.reason,
            )
            if not lineups and failures >= settings.max_failed_iterations:
                raise NoFeasibleLineupError(
                    f"No feasible lineup after {failures} failed iterations: {report.reason}",
                    iteration=index,
                )
            continue

        lineups.append(lineup)
        state.record(lineup)
        elapsed = time.perf_counter() - run_start
        logger.info(
            "Built lineup %s/%s – projection %.2f, salary %s (elapsed %.2fs, avg %.2fs)",
            len(lineups),
            settings.num_lineups,
            lineup.projection,
            lineup.salary,
            elapsed,
            elapsed / len(lineups),
        )

    total_elapsed = time.perf_counter() - run_start
    if not lineups:
        raise NoFeasibleLineupError(stop_reason or "No feasible lineup")

    exposure_report = build_exposure_report(state, settings) if settings.num_lineups > 1 else None
    output = BatchOutput(
        lineups=lineups,
        exposure_report=exposure_report,
        iterations=tuple(reports),
        requested=settings.num_lineups,
        seed=base_seed,
        elapsed=total_elapsed,
        stop_reason=stop_reason if len(lineups) < settings.num_lineups else None,
    )

    if output.unmet:
        message = f"Built {len(lineups)}/{settings.num_lineups} lineups: {stop_reason or 'retries exhausted'}"
        logger.warning(message)
        raise BatchExhausted(output, message)

    logger.info(
        "Completed %s lineups in %.2fs (avg %.2fs per lineup, %s unique players)",
        len(lineups),
        total_elapsed,
        total_elapsed / len(lineups),
        len(state.counts),
    )
    return output


__all__ = [
    "BatchOutput",
    "IterationReport",
    "IterationState",
    "attempt_seed",
    "build_lineups",
]
