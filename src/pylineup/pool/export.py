"""Contest CSV export helpers for lineup batches."""

from __future__ import annotations

import csv
from io import StringIO
from typing import Sequence

from pylineup.config.roster import RosterRules, get_rules
from pylineup.models import Lineup


class ContestExportError(RuntimeError):
    """Raised when a lineup cannot be exported for a contest template."""


def _slot_headers(rules: RosterRules) -> tuple[str, ...]:
    return tuple(slot.value for slot in rules.roster_order)


def export_lineups_to_csv(
    lineups: Sequence[Lineup],
    *,
    rules: RosterRules | None = None,
    entry_names: Sequence[str] | None = None,
) -> str:
    """Convert lineups to the contest upload format: slot headers then player ids."""

    if entry_names is not None and len(entry_names) != len(lineups):
        raise ContestExportError("entry_names length must match lineups length")

    rules = rules or get_rules()

    buffer = StringIO()
    writer = csv.writer(buffer)
    writer.writerow(("EntryName", *_slot_headers(rules)))

    for idx, lineup in enumerate(lineups):
        entry_name = entry_names[idx] if entry_names is not None else lineup.lineup_id
        row = [entry_name]
        for slot in rules.roster_order:
            player = lineup.player_for(slot)
            if player is None:
                raise ContestExportError(
                    f"Lineup {lineup.lineup_id} missing player for slot {slot.value}"
                )
            row.append(player.player_id)
        writer.writerow(row)

    return buffer.getvalue()


__all__ = [
    "ContestExportError",
    "export_lineups_to_csv",
]
