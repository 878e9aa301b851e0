"""Candidate filtering applied to the player pool before each solve."""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Iterable, Optional, Sequence

from pylineup.config.roster import RosterRules
from pylineup.config.settings import OptimizationSettings, StrategyMode
from pylineup.models import PlayerRecord


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FilterOutcome:
    """Surviving candidates plus a tally of why the rest were dropped."""

    candidates: list[PlayerRecord]
    rejections: Counter[str] = field(default_factory=Counter)

    def __len__(self) -> int:
        return len(self.candidates)


def _below(value: Optional[float], minimum: float) -> bool:
    return value is None or value < minimum


def _above(value: Optional[float], maximum: float) -> bool:
    return value is None or value > maximum


def _cash_rejection(player: PlayerRecord, settings: OptimizationSettings) -> str | None:
    if _below(player.floor, settings.min_floor):
        return "min_floor"
    if _above(player.volatility, settings.max_volatility):
        return "max_volatility"
    if _above(player.bust_probability, settings.max_bust_probability):
        return "max_bust_probability"
    if _below(player.minutes, settings.min_minutes):
        return "min_minutes"
    if settings.avoid_blowouts and (player.blowout_risk or 0.0) > settings.blowout_threshold:
        return "blowout_risk"
    return None


def _gpp_rejection(player: PlayerRecord, settings: OptimizationSettings) -> str | None:
    if player.leverage < settings.min_leverage:
        return "min_leverage"
    if _below(player.boom_probability, settings.min_boom_probability):
        return "min_boom_probability"
    if _below(player.ceiling, settings.min_ceiling):
        return "min_ceiling"
    return None


def rejection_reason(
    player: PlayerRecord,
    settings: OptimizationSettings,
    rules: RosterRules,
    excluded_ids: Iterable[str] = (),
) -> str | None:
    """Return why ``player`` is dropped from the pool, or None to keep it."""

    if player.player_id in settings.locked_ids:
        return None
    if player.player_id in excluded_ids or player.player_id in settings.excluded_ids:
        return "excluded"
    if settings.filter_injured and player.injury_status:
        if player.injury_status.strip().upper() in settings.injury_statuses:
            return "injury"
    if not rules.eligible_slots(player.positions):
        return "no_eligible_slot"
    if player.projection < settings.min_projection:
        return "min_projection"

    if settings.mode == StrategyMode.CASH:
        reason = _cash_rejection(player, settings)
    else:
        reason = _gpp_rejection(player, settings)
    if reason is not None:
        return reason

    if settings.min_rest_days > 0 and (player.rest_days or 0.0) < settings.min_rest_days:
        return "min_rest_days"
    if settings.min_usage > 0 and (player.usage or 0.0) < settings.min_usage:
        return "min_usage"
    return None


def filter_candidates(
    players: Sequence[PlayerRecord],
    settings: OptimizationSettings,
    rules: RosterRules,
    excluded_ids: Iterable[str] = (),
) -> FilterOutcome:
    """Narrow ``players`` to the candidates the model may select."""

    excluded = frozenset(excluded_ids)
    kept: list[PlayerRecord] = []
    rejections: Counter[str] = Counter()
    for player in players:
        reason = rejection_reason(player, settings, rules, excluded)
        if reason is None:
            kept.append(player)
        else:
            rejections[reason] += 1

    logger.debug(
        "Filtered %s players to %s candidates (%s mode, rejections=%s)",
        len(players),
        len(kept),
        settings.mode.value,
        dict(rejections),
    )
    return FilterOutcome(candidates=kept, rejections=rejections)


__all__ = ["FilterOutcome", "filter_candidates", "rejection_reason"]
