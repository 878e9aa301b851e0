"""Per-lineup projection noise used to diversify a batch."""

from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Sequence

from pylineup.config.settings import StrategyMode
from pylineup.models import PlayerRecord


_DEFAULT_VOLATILITY = 0.2


@dataclass(frozen=True)
class ScoredCandidate:
    """A candidate with the signals the objective reads for this lineup."""

    player: PlayerRecord
    score: float
    floor: float
    ceiling: float
    leverage: float
    variance_applied: float = 0.0

    @property
    def player_id(self) -> str:
        return self.player.player_id


def _unperturbed(player: PlayerRecord) -> ScoredCandidate:
    return ScoredCandidate(
        player=player,
        score=player.projection,
        floor=player.effective_floor,
        ceiling=player.effective_ceiling,
        leverage=player.leverage,
    )


def perturb(
    candidates: Sequence[PlayerRecord],
    intensity: float,
    mode: StrategyMode,
    rng: random.Random,
) -> list[ScoredCandidate]:
    """Return scored candidates with volatility-scaled, zero-mean noise.

    ``intensity`` is a percentage; at zero every score equals the base
    projection. Cash lineups carry the shift into the floor, GPP lineups into
    the ceiling and (proportionally) the leverage figure.
    """

    if intensity <= 0:
        return [_unperturbed(player) for player in candidates]

    scored: list[ScoredCandidate] = []
    for player in candidates:
        volatility = player.volatility if player.volatility is not None else _DEFAULT_VOLATILITY
        factor = volatility * (intensity / 100.0)
        delta = rng.uniform(-1.0, 1.0) * player.effective_std_dev * factor
        score = max(0.0, player.projection + delta)

        floor = player.effective_floor
        ceiling = player.effective_ceiling
        leverage = player.leverage
        if mode == StrategyMode.CASH:
            floor = max(0.0, floor + delta)
        else:
            ceiling = max(0.0, ceiling + delta)
            if player.projection > 0:
                leverage = leverage * (score / player.projection)

        scored.append(
            ScoredCandidate(
                player=player,
                score=score,
                floor=floor,
                ceiling=ceiling,
                leverage=leverage,
                variance_applied=score - player.projection,
            )
        )
    return scored


__all__ = ["ScoredCandidate", "perturb"]
