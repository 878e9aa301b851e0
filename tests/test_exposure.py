import pytest

from pylineup.config import OptimizationSettings
from pylineup.optimizer.exposure import (
    ExposureState,
    PopularityTier,
    build_exposure_report,
    limits_for_iteration,
    popularity_tier,
)

from tests.factories import boundary_pool, make_lineup, sample_pool


SETTINGS = OptimizationSettings()
_OPEN_EXPOSURE = {"max_exposure_chalk": 100.0, "max_exposure_mid": 100.0, "max_exposure_low": 100.0}


def _second_lineup(util="m6"):
    by_id = {player.player_id: player for player in sample_pool()}
    return [by_id[pid] for pid in ("m1", "d4", "l5", "d5", "l4", "b6", "m3", util)]


def _state(*rosters, settings=SETTINGS):
    state = ExposureState()
    for index, players in enumerate(rosters, start=1):
        state.record(make_lineup(players, f"L{index:03}", settings))
    return state


def test_popularity_tiers():
    assert popularity_tier(30.0, SETTINGS) == PopularityTier.CHALK
    assert popularity_tier(25.0, SETTINGS) == PopularityTier.CHALK
    assert popularity_tier(12.0, SETTINGS) == PopularityTier.MID
    assert popularity_tier(9.9, SETTINGS) == PopularityTier.LOW


def test_no_limits_before_first_lineup():
    limits = limits_for_iteration(ExposureState(), 10, SETTINGS)
    assert limits.overexposed == frozenset()
    assert limits.underexposed == frozenset()


def test_players_at_ceiling_are_overexposed():
    state = _state(boundary_pool(), _second_lineup())

    limits = limits_for_iteration(state, 10, SETTINGS)

    # b1 is chalk at 50% (ceiling 30), l4 is mid at 100% (ceiling 50)
    assert {"b1", "l4"} <= limits.overexposed
    # b3 is low tier at 50%, below its 70% ceiling
    assert "b3" not in limits.overexposed


def test_full_ceiling_never_binds():
    settings = OptimizationSettings(**_OPEN_EXPOSURE)
    state = _state(boundary_pool(), _second_lineup(), settings=settings)
    assert limits_for_iteration(state, 2, settings).overexposed == frozenset()


def test_batch_relative_cap_blocks_last_allowed_appearance():
    settings = OptimizationSettings(max_exposure_low=30.0)
    state = _state(boundary_pool(), _second_lineup("m6"), _second_lineup("l6"), _second_lineup("d6"))

    # b3 sits at 25%, under its 30% ceiling, but a batch of 5 allows one appearance
    assert "b3" in limits_for_iteration(state, 5, settings).overexposed
    assert "b3" not in limits_for_iteration(state, 10, settings).overexposed


def test_underexposed_needs_five_lineups():
    settings = OptimizationSettings(min_exposure=30.0, **_OPEN_EXPOSURE)
    rosters = [boundary_pool()] + [_second_lineup(util) for util in ("m6", "l6", "d6", "b2")]

    assert limits_for_iteration(_state(*rosters[:4], settings=settings), 10, settings).underexposed == frozenset()
    limits = limits_for_iteration(_state(*rosters, settings=settings), 10, settings)
    assert "b1" in limits.underexposed
    assert "m1" not in limits.underexposed


def test_exposure_state_tracks_signatures():
    state = ExposureState()
    lineup = make_lineup(boundary_pool())
    assert not state.is_duplicate(lineup)

    state.record(lineup)
    assert state.is_duplicate(lineup)
    assert state.exposure("b1") == pytest.approx(100.0)
    assert state.exposure("m1") == 0.0
    assert state.players["b1"].name == "Player B1"
    with pytest.raises(ValueError):
        state.record(lineup)


def test_rejected_duplicate_leaves_limits_unchanged():
    state = _state(boundary_pool(), _second_lineup())
    before = limits_for_iteration(state, 10, SETTINGS)

    with pytest.raises(ValueError):
        state.record(make_lineup(boundary_pool(), "L003"))

    assert state.lineups_built == 2
    assert state.counts["b1"] == 1
    assert limits_for_iteration(state, 10, SETTINGS) == before


def test_exposure_report_sorted_by_exposure():
    state = _state(boundary_pool(), _second_lineup("m6"), _second_lineup("l6"))
    report = build_exposure_report(state, SETTINGS)

    assert report[0].player_id == "l4"
    assert report[1].exposure == pytest.approx(200.0 / 3)
    assert report[-1].exposure == pytest.approx(100.0 / 3)
    by_id = {entry.player_id: entry for entry in report}
    assert by_id["l4"].count == 3
    assert by_id["l4"].exposure == pytest.approx(100.0)
    assert by_id["b1"].tier == PopularityTier.CHALK
    assert build_exposure_report(ExposureState(), SETTINGS) == []
