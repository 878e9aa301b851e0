"""Configuration helpers for roster rules and optimization settings."""

from .roster import RosterRules, RosterSlot, get_rules
from .settings import GppStrategy, OptimizationSettings, StackRequest, StrategyMode, parse_game

__all__ = [
    "GppStrategy",
    "OptimizationSettings",
    "RosterRules",
    "RosterSlot",
    "StackRequest",
    "StrategyMode",
    "get_rules",
    "parse_game",
]
