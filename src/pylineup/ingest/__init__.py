"""Input adapters that normalize raw player data."""

from .players import load_players_csv, row_to_payload

__all__ = [
    "load_players_csv",
    "row_to_payload",
]
