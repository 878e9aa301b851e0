"""Roster configuration for supported site/sport combinations."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, FrozenSet, Iterable, Mapping, Sequence, Tuple


class RosterSlot(str, Enum):
    PG = "PG"
    SG = "SG"
    SF = "SF"
    PF = "PF"
    C = "C"
    G = "G"
    F = "F"
    UTIL = "UTIL"


@dataclass(frozen=True)
class RosterRules:
    site: str
    sport: str
    salary_cap: int
    roster_order: Tuple[RosterSlot, ...]
    slot_positions: Mapping[RosterSlot, FrozenSet[str]]

    @property
    def lineup_size(self) -> int:
        return len(self.roster_order)

    def eligible_slots(self, positions: Iterable[str]) -> Tuple[RosterSlot, ...]:
        """Return the slots a player with ``positions`` may fill, in roster order."""

        tags = {position.upper() for position in positions}
        return tuple(slot for slot in self.roster_order if tags & self.slot_positions[slot])

    def is_eligible(self, positions: Sequence[str], slot: RosterSlot) -> bool:
        return slot in self.eligible_slots(positions)


_ROSTER_RULES: Dict[Tuple[str, str], RosterRules] = {
    ("DK", "NBA"): RosterRules(
        site="DK",
        sport="NBA",
        salary_cap=50_000,
        roster_order=(
            RosterSlot.PG,
            RosterSlot.SG,
            RosterSlot.SF,
            RosterSlot.PF,
            RosterSlot.C,
            RosterSlot.G,
            RosterSlot.F,
            RosterSlot.UTIL,
        ),
        slot_positions={
            RosterSlot.PG: frozenset({"PG"}),
            RosterSlot.SG: frozenset({"SG"}),
            RosterSlot.SF: frozenset({"SF"}),
            RosterSlot.PF: frozenset({"PF"}),
            RosterSlot.C: frozenset({"C"}),
            RosterSlot.G: frozenset({"PG", "SG"}),
            RosterSlot.F: frozenset({"SF", "PF"}),
            RosterSlot.UTIL: frozenset({"PG", "SG", "SF", "PF", "C"}),
        },
    ),
}


def get_rules(site: str = "DK", sport: str = "NBA") -> RosterRules:
    """Fetch rules for a site/sport pair, raising KeyError if missing."""

    key = (site.upper(), sport.upper())
    if key not in _ROSTER_RULES:
        raise KeyError(f"No roster rules configured for site={site!r}, sport={sport!r}")
    return _ROSTER_RULES[key]
