"""Canonical player models shared across ingestion and optimizer layers."""

from __future__ import annotations

import re
from typing import Any, Dict, List, Optional

from pydantic import AliasChoices, BaseModel, Field, field_validator
from pydantic.config import ConfigDict


_POSITION_SPLIT = re.compile(r"[,/|\s]+")


class PlayerRecord(BaseModel):
    """Normalized player payload produced by the projection engine."""

    player_id: str = Field(..., min_length=1, validation_alias=AliasChoices("player_id", "id"))
    name: str
    team: str
    opponent: str = ""
    positions: List[str] = Field(..., validation_alias=AliasChoices("positions", "position"))
    salary: int = Field(..., ge=0)
    projection: float = Field(..., ge=0.0, validation_alias=AliasChoices("projection", "projected_points"))

    floor: Optional[float] = None
    ceiling: Optional[float] = None
    volatility: Optional[float] = Field(default=None, ge=0.0)
    boom_probability: Optional[float] = Field(default=None, ge=0.0, le=100.0)
    bust_probability: Optional[float] = Field(default=None, ge=0.0, le=100.0)
    ownership: float = Field(default=0.0, ge=0.0, le=100.0, validation_alias=AliasChoices("ownership", "rostership"))
    leverage: float = Field(default=0.0, validation_alias=AliasChoices("leverage", "leverage_score"))
    minutes: Optional[float] = Field(default=None, validation_alias=AliasChoices("minutes", "projected_minutes"))
    usage: Optional[float] = None
    std_dev: Optional[float] = Field(default=None, ge=0.0)

    injury_status: Optional[str] = None
    blowout_risk: Optional[float] = None
    rest_days: Optional[float] = None
    dvp_pts_allowed: Optional[float] = None
    value: Optional[float] = None
    value_gpp: Optional[float] = None

    metadata: Dict[str, Any] = Field(default_factory=dict)

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    @field_validator("player_id", mode="before")
    @classmethod
    def _coerce_id(cls, value: Any) -> Any:
        if isinstance(value, int):
            return str(value)
        return value

    @field_validator("team", "opponent", mode="before")
    @classmethod
    def _upper_team(cls, value: Any) -> Any:
        if value is None:
            return ""
        if isinstance(value, str):
            return value.strip().upper()
        return value

    @field_validator("positions", mode="before")
    @classmethod
    def _split_positions(cls, value: Any) -> Any:
        if isinstance(value, str):
            tokens = _POSITION_SPLIT.split(value)
        elif isinstance(value, (list, tuple, set)):
            tokens = [str(item) for item in value]
        else:
            return value
        positions: list[str] = []
        for token in tokens:
            cleaned = token.strip().upper()
            if cleaned and cleaned not in positions:
                positions.append(cleaned)
        return positions

    @property
    def effective_floor(self) -> float:
        return self.floor if self.floor is not None else self.projection * 0.8

    @property
    def effective_ceiling(self) -> float:
        return self.ceiling if self.ceiling is not None else self.projection * 1.2

    @property
    def effective_std_dev(self) -> float:
        return self.std_dev if self.std_dev is not None else self.projection * 0.15

    @property
    def matchup(self) -> Optional[tuple[str, str]]:
        """Sorted team/opponent pair, or None when the opponent is unknown."""

        if not self.team or not self.opponent:
            return None
        first, second = sorted((self.team, self.opponent))
        return first, second
