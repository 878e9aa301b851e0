import random

import pytest

from pylineup.config import OptimizationSettings, RosterSlot, get_rules
from pylineup.optimizer import ExtractionInconsistencyError, validate_lineup
from pylineup.optimizer.extract import compute_analytics, extract_lineup
from pylineup.optimizer.model import PlayerSlotVar, build_model
from pylineup.optimizer.solver import Assignment
from pylineup.pool import perturb

from tests.factories import BOUNDARY_IDS, boundary_pool


RULES = get_rules()
SETTINGS = OptimizationSettings()


def _model():
    scored = perturb(boundary_pool(), 0.0, SETTINGS.mode, random.Random(0))
    return build_model(scored, SETTINGS, RULES)


def _assignment(pairs):
    return Assignment(values={PlayerSlotVar(pid, slot): 1 for pid, slot in pairs}, objective=0.0)


_LEGAL = list(zip(BOUNDARY_IDS, RULES.roster_order))


def test_extract_builds_lineup_in_roster_order():
    lineup = extract_lineup(_assignment(_LEGAL), _model(), SETTINGS, RULES, lineup_id="L007")

    assert lineup.lineup_id == "L007"
    assert [entry.player.player_id for entry in lineup.slots] == list(BOUNDARY_IDS)
    assert lineup.salary == 49_600
    assert lineup.remaining_salary == 400
    assert lineup.player_for(RosterSlot.UTIL).player_id == "m5"
    assert lineup.analytics.num_teams == 4
    assert lineup.analytics.num_games == 2


def test_extract_rejects_ineligible_slot():
    pairs = list(_LEGAL)
    pairs[0] = ("b3", RosterSlot.PG)
    pairs[2] = ("b1", RosterSlot.SF)
    with pytest.raises(ExtractionInconsistencyError, match="not eligible"):
        extract_lineup(_assignment(pairs), _model(), SETTINGS, RULES, lineup_id="L001")


def test_extract_rejects_empty_slot():
    with pytest.raises(ExtractionInconsistencyError, match="UTIL") as excinfo:
        extract_lineup(_assignment(_LEGAL[:-1]), _model(), SETTINGS, RULES, lineup_id="L001", iteration=3)
    assert excinfo.value.iteration == 3


def test_extract_rejects_player_in_two_slots():
    pairs = list(_LEGAL) + [("b1", RosterSlot.G)]
    pairs[5] = ("d1", RosterSlot.UTIL)
    pairs = [pair for pair in pairs if pair != ("m5", RosterSlot.UTIL)]
    with pytest.raises(ExtractionInconsistencyError):
        extract_lineup(_assignment(pairs), _model(), SETTINGS, RULES, lineup_id="L001")


def test_extract_rejects_unknown_player():
    pairs = list(_LEGAL[:-1]) + [("zz", RosterSlot.UTIL)]
    with pytest.raises(ExtractionInconsistencyError, match="unknown"):
        extract_lineup(_assignment(pairs), _model(), SETTINGS, RULES, lineup_id="L001")


def test_analytics_average_and_totals():
    players = boundary_pool()
    analytics = compute_analytics(players, SETTINGS)

    assert analytics.total_floor == pytest.approx(sum(p.floor for p in players))
    assert analytics.avg_ownership == pytest.approx(sum(p.ownership for p in players) / 8)
    assert analytics.teams == ("BOS", "DEN", "LAL", "MIA")
    assert analytics.salary_efficiency == pytest.approx(sum(p.projection for p in players) / 49_600 * 1000)

    gpp = compute_analytics(players, OptimizationSettings(mode="gpp"))
    assert gpp.avg_value == pytest.approx(sum(p.value_gpp for p in players) / 8)


def test_validate_lineup():
    players = boundary_pool()
    result = validate_lineup(players, SETTINGS, RULES)
    assert result.is_valid
    assert result.remaining_salary == 400

    short = validate_lineup(players[:7], SETTINGS, RULES)
    assert not short.is_valid
    assert "Must provide exactly 8 players, got 7" in short.errors


    doubled = validate_lineup(players[:7] + [players[0]], SETTINGS, RULES)
    assert "Duplicate players in lineup" in doubled.errors

    no_center = [p for p in players if p.player_id != "l4"] + [players[0].model_copy(update={"player_id": "b1x"})]
    unfillable = validate_lineup(no_center, SETTINGS, RULES)
    assert "Players cannot fill every roster slot" in unfillable.errors


def test_validate_lineup_rejects_salary_below_minimum():
    players = boundary_pool()
    settings = OptimizationSettings(min_salary=49_900)

    result = validate_lineup(players, settings, RULES)

    assert not result.is_valid
    assert result.errors == ["Below minimum salary of $49900"]
    assert result.remaining_salary == 400


def test_validate_lineup_warns_on_injured_players():
    players = boundary_pool()
    players[0] = players[0].model_copy(update={"injury_status": "questionable"})

    result = validate_lineup(players, SETTINGS, RULES)

    assert result.is_valid
    assert result.warnings == ["Player B1 is listed QUESTIONABLE"]
