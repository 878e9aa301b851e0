"""Shared data models."""

from .lineup import Lineup, LineupAnalytics, LineupSlot
from .player import PlayerRecord

__all__ = ["Lineup", "LineupAnalytics", "LineupSlot", "PlayerRecord"]
