"""Load projection-engine player CSVs into :class:`PlayerRecord` objects."""

from __future__ import annotations

import csv
import logging
import re
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence

from pydantic import ValidationError

from pylineup.models import PlayerRecord


logger = logging.getLogger(__name__)

_OPTIONAL_NUMERIC_FIELDS = {
    "floor",
    "ceiling",
    "volatility",
    "boom_probability",
    "bust_probability",
    "minutes",
    "projected_minutes",
    "usage",
    "std_dev",
    "blowout_risk",
    "rest_days",
    "dvp_pts_allowed",
    "value",
    "value_gpp",
}

_DEFAULTED_NUMERIC_FIELDS = {"ownership", "rostership", "leverage", "leverage_score"}


def _normalize_header(header: str) -> str:
    return re.sub(r"[^a-z0-9]+", "_", header.strip().lower()).strip("_")


def _parse_salary(raw_salary: str) -> int:
    digits = re.sub(r"[^0-9]", "", raw_salary.split(".")[0])
    if not digits:
        raise ValueError(f"salary '{raw_salary}' has no digits")
    return int(digits)


def _parse_number(raw: str) -> Optional[str]:
    text = raw.strip().rstrip("%").strip()
    return text or None


def _extract(row: Mapping[str, str], columns: str | Sequence[str]) -> Optional[str]:
    if isinstance(columns, str) and "|" in columns:
        columns = tuple(part.strip() for part in columns.split("|"))
    if isinstance(columns, str):
        value = row.get(columns)
        return value.strip() if value is not None else None
    parts = [row.get(column, "").strip() for column in columns if row.get(column)]
    return " ".join(parts) if parts else None


def row_to_payload(
    row: Mapping[str, str],
    mapping: Mapping[str, str | Sequence[str]] | None = None,
) -> Dict[str, Any]:
    """Translate one CSV row into keyword data for :class:`PlayerRecord`.

    ``mapping`` maps record field names to CSV column names (``"A|B"`` joins
    several columns with a space). Columns not named in the mapping are passed
    through under their normalized header.
    """

    payload: Dict[str, Any] = {}
    mapped_columns: set[str] = set()
    for field_name, columns in (mapping or {}).items():
        value = _extract(row, columns)
        if isinstance(columns, str):
            mapped_columns.update(part.strip() for part in columns.split("|"))
        else:
            mapped_columns.update(columns)
        if value is not None:
            payload[field_name] = value

    for column, raw in row.items():
        if column is None or column in mapped_columns:
            continue
        key = _normalize_header(column)
        if key and key not in payload:
            payload[key] = raw.strip() if isinstance(raw, str) else raw

    for key in list(payload):
        raw = payload[key]
        if not isinstance(raw, str):
            continue
        if key == "salary":
            payload[key] = _parse_salary(raw)
        elif key in _OPTIONAL_NUMERIC_FIELDS:
            payload[key] = _parse_number(raw)
        elif key in _DEFAULTED_NUMERIC_FIELDS:
            number = _parse_number(raw)
            if number is None:
                del payload[key]
            else:
                payload[key] = number
        elif key in {"injury_status", "opponent"} and not raw:
            payload[key] = None if key == "injury_status" else ""

    return payload


def load_players_csv(
    path: Path | str,
    *,
    mapping: Mapping[str, str | Sequence[str]] | None = None,
) -> List[PlayerRecord]:
    """Read ``path`` and return every row that validates as a player."""

    path = Path(path)
    records: List[PlayerRecord] = []
    skipped = 0
    with path.open(newline="", encoding="utf-8-sig") as f:
        reader = csv.DictReader(f)
        for line_number, row in enumerate(reader, start=2):
            try:
                payload = row_to_payload(row, mapping)
                records.append(PlayerRecord.model_validate(payload))
            except (ValidationError, ValueError) as exc:
                skipped += 1
                logger.warning("Skipping %s line %s: %s", path.name, line_number, exc)

    logger.info("Loaded %s players from %s (%s rows skipped)", len(records), path, skipped)
    return records


__all__ = ["load_players_csv", "row_to_payload"]
