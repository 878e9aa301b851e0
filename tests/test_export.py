import csv
from io import StringIO

import pytest

from pylineup.pool import ContestExportError, export_lineups_to_csv

from tests.factories import BOUNDARY_IDS, boundary_pool, make_lineup


def test_export_writes_slot_header_and_ids():
    lineups = [make_lineup(boundary_pool(), "L001"), make_lineup(boundary_pool(), "L002")]

    rows = list(csv.reader(StringIO(export_lineups_to_csv(lineups))))

    assert rows[0] == ["EntryName", "PG", "SG", "SF", "PF", "C", "G", "F", "UTIL"]
    assert rows[1] == ["L001", *BOUNDARY_IDS]
    assert rows[2][0] == "L002"


def test_export_uses_entry_names():
    lineups = [make_lineup(boundary_pool(), "L001")]
    rows = list(csv.reader(StringIO(export_lineups_to_csv(lineups, entry_names=["Main #1"]))))
    assert rows[1][0] == "Main #1"


def test_export_rejects_mismatched_entry_names():
    with pytest.raises(ContestExportError):
        export_lineups_to_csv([make_lineup(boundary_pool())], entry_names=[])


def test_export_rejects_incomplete_lineup():
    lineup = make_lineup(boundary_pool()[:7])
    with pytest.raises(ContestExportError, match="UTIL"):
        export_lineups_to_csv([lineup])
