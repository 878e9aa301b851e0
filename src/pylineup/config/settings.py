"""Typed optimization settings validated once per batch."""

from __future__ import annotations

import re
from enum import Enum
from typing import Any, FrozenSet, Optional, Tuple

from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic.config import ConfigDict


class StrategyMode(str, Enum):
    CASH = "cash"
    GPP = "gpp"


class GppStrategy(str, Enum):
    BALANCED = "balanced"
    MAX_LEVERAGE = "max_leverage"
    CONTRARIAN = "contrarian"


_MODE_DEFAULTS: dict[StrategyMode, dict[str, float]] = {
    StrategyMode.CASH: {"min_salary": 49_000, "min_projection": 25.0},
    StrategyMode.GPP: {"min_salary": 47_000, "min_projection": 20.0},
}

_GAME_SPLIT = re.compile(r"\s+vs\.?\s+|\s*@\s*", re.IGNORECASE)


def parse_game(game: str) -> tuple[str, str]:
    """Parse ``"LAL vs BOS"`` or ``"LAL@BOS"`` into a sorted team pair."""

    parts = [part.strip().upper() for part in _GAME_SPLIT.split(game.strip()) if part.strip()]
    if len(parts) != 2 or parts[0] == parts[1]:
        raise ValueError(f"game must look like 'AAA vs BBB', got {game!r}")
    first, second = sorted(parts)
    return first, second


class StackRequest(BaseModel):
    """Minimum number of players drawn from one team or one game."""

    team: Optional[str] = None
    game: Optional[str] = None
    min_players: int = Field(default=2, ge=1, le=8)

    model_config = ConfigDict(frozen=True)

    @field_validator("team", mode="before")
    @classmethod
    def _upper_team(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().upper() or None
        return value

    @model_validator(mode="after")
    def _check_target(self) -> "StackRequest":
        if (self.team is None) == (self.game is None):
            raise ValueError("stack requires exactly one of 'team' or 'game'")
        if self.game is not None:
            parse_game(self.game)
        return self

    @property
    def matchup(self) -> Optional[tuple[str, str]]:
        return parse_game(self.game) if self.game is not None else None

    @property
    def label(self) -> str:
        if self.team is not None:
            return self.team
        first, second = parse_game(self.game or "")
        return f"{first} vs {second}"


class OptimizationSettings(BaseModel):
    """Every knob of a batch run; percentages are on a 0-100 scale."""

    mode: StrategyMode = StrategyMode.CASH
    gpp_strategy: GppStrategy = GppStrategy.BALANCED
    num_lineups: int = Field(default=1, ge=1, le=500)

    locked_ids: FrozenSet[str] = frozenset()
    excluded_ids: FrozenSet[str] = frozenset()

    salary_cap: int = Field(default=50_000, gt=0)
    min_salary: int = Field(default=0, ge=0)
    min_projection: float = Field(default=0.0, ge=0.0)

    filter_injured: bool = True
    injury_statuses: FrozenSet[str] = frozenset({"OUT", "DOUBTFUL", "QUESTIONABLE"})

    # cash
    min_floor: float = 30.0
    max_volatility: float = Field(default=0.20, ge=0.0)
    max_bust_probability: float = Field(default=25.0, ge=0.0, le=100.0)
    min_minutes: float = Field(default=28.0, ge=0.0)
    avoid_blowouts: bool = True
    blowout_threshold: float = 0.5

    # gpp
    min_leverage: float = 2.5
    min_boom_probability: float = Field(default=20.0, ge=0.0, le=100.0)
    min_ceiling: float = 50.0

    min_rest_days: float = Field(default=0.0, ge=0.0)
    min_usage: float = Field(default=0.0, ge=0.0)

    randomness: float = Field(default=0.0, ge=0.0, le=100.0)
    randomness_step: float = Field(default=2.0, ge=0.0)

    max_players_per_team: Optional[int] = Field(default=3, ge=1, le=8)
    min_different_teams: Optional[int] = Field(default=None, ge=1, le=8)
    min_games: Optional[int] = Field(default=None, ge=1, le=8)
    team_stacks: Tuple[StackRequest, ...] = ()
    game_stacks: Tuple[StackRequest, ...] = ()
    enable_bring_back: bool = False

    require_dvp_advantage: bool = False
    dvp_threshold: float = 45.0
    dvp_min_players: int = Field(default=3, ge=1, le=8)

    max_chalk_players: Optional[int] = Field(default=None, ge=0, le=8)
    chalk_threshold: float = Field(default=25.0, ge=0.0, le=100.0)
    mid_threshold: float = Field(default=10.0, ge=0.0, le=100.0)

    max_exposure_chalk: float = Field(default=30.0, ge=0.0, le=100.0)
    max_exposure_mid: float = Field(default=50.0, ge=0.0, le=100.0)
    max_exposure_low: float = Field(default=70.0, ge=0.0, le=100.0)
    min_exposure: float = Field(default=0.0, ge=0.0, le=100.0)

    max_repeating_players: Optional[int] = Field(default=None, ge=0, le=7)
    max_attempts_per_lineup: int = Field(default=5, ge=1)
    max_failed_iterations: int = Field(default=3, ge=1)
    time_limit: Optional[float] = Field(default=None, gt=0.0)
    seed: Optional[int] = None

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="before")
    @classmethod
    def _apply_mode_defaults(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        payload = dict(data)
        try:
            mode = StrategyMode(payload.get("mode", StrategyMode.CASH))
        except ValueError:
            return payload
        for key, default in _MODE_DEFAULTS[mode].items():
            if payload.get(key) is None:
                payload[key] = default
        return payload

    @field_validator("locked_ids", "excluded_ids", mode="before")
    @classmethod
    def _stringify_ids(cls, value: Any) -> Any:
        if value is None:
            return frozenset()
        if isinstance(value, (list, tuple, set, frozenset)):
            return frozenset(str(item) for item in value)
        return value

    @field_validator("injury_statuses", mode="before")
    @classmethod
    def _upper_statuses(cls, value: Any) -> Any:
        if isinstance(value, (list, tuple, set, frozenset)):
            return frozenset(str(item).strip().upper() for item in value)
        return value

    @field_validator("team_stacks", "game_stacks", mode="before")
    @classmethod
    def _none_to_empty(cls, value: Any) -> Any:
        return () if value is None else value

    @model_validator(mode="after")
    def _check_consistency(self) -> "OptimizationSettings":
        if self.min_salary > self.salary_cap:
            raise ValueError(
                f"min_salary {self.min_salary} exceeds salary_cap {self.salary_cap}"
            )
        overlap = self.locked_ids & self.excluded_ids
        if overlap:
            raise ValueError(f"players both locked and excluded: {sorted(overlap)}")
        if len(self.locked_ids) > 8:
            raise ValueError("cannot lock more than 8 players")
        if self.mid_threshold > self.chalk_threshold:
            raise ValueError("mid_threshold must not exceed chalk_threshold")
        for stack in self.team_stacks:
            if stack.team is None:
                raise ValueError("team_stacks entries require 'team'")
        for stack in self.game_stacks:
            if stack.game is None:
                raise ValueError("game_stacks entries require 'game'")
        return self

    @property
    def is_cash(self) -> bool:
        return self.mode == StrategyMode.CASH
