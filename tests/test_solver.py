import random

import pulp
import pytest

from pylineup.config import OptimizationSettings, StackRequest, get_rules
from pylineup.optimizer.model import PlayerSlotVar, build_model
from pylineup.optimizer.solver import Assignment, Infeasible, _env_float, get_solver, solve
from pylineup.pool import perturb

from tests.factories import BOUNDARY_IDS, boundary_pool


RULES = get_rules()


def _boundary_model(**settings_kwargs):
    settings = OptimizationSettings(**settings_kwargs)
    scored = perturb(boundary_pool(), 0.0, settings.mode, random.Random(0))
    return build_model(scored, settings, RULES)


def test_solve_selects_every_boundary_player():
    model = _boundary_model()
    result = solve(model)

    assert isinstance(result, Assignment)
    selected = [var for var in result.selected() if isinstance(var, PlayerSlotVar)]
    assert sorted(var.player_id for var in selected) == sorted(BOUNDARY_IDS)
    assert len({var.slot for var in selected}) == RULES.lineup_size
    assert result.objective > 0


def test_solve_reports_infeasible_salary_window():
    result = solve(_boundary_model(min_salary=49_900))
    assert isinstance(result, Infeasible)


def test_empty_required_row_is_infeasible_without_solving():
    result = solve(_boundary_model(team_stacks=[StackRequest(team="PHX", min_players=2)]))
    assert isinstance(result, Infeasible)
    assert "team_stack" in str(result)


def test_get_solver_defaults_to_cbc(monkeypatch):
    monkeypatch.delenv("PYLINEUP_SOLVER", raising=False)
    assert isinstance(get_solver(), pulp.PULP_CBC_CMD)


def test_get_solver_unknown_backend_falls_back(monkeypatch):
    monkeypatch.setenv("PYLINEUP_SOLVER", "gurobi-ish")
    assert isinstance(get_solver(), pulp.PULP_CBC_CMD)


def test_env_float_parsing(monkeypatch):
    monkeypatch.setenv("PYLINEUP_SOLVER_GAP", "0.05")
    assert _env_float("PYLINEUP_SOLVER_GAP", 0.001) == pytest.approx(0.05)

    monkeypatch.setenv("PYLINEUP_SOLVER_GAP", "not-a-number")
    assert _env_float("PYLINEUP_SOLVER_GAP", 0.001) == pytest.approx(0.001)

    monkeypatch.setenv("PYLINEUP_SOLVER_GAP", "-3")
    assert _env_float("PYLINEUP_SOLVER_GAP", 0.001, clamp_min=0.0) == 0.0

    monkeypatch.delenv("PYLINEUP_SOLVER_GAP")
    assert _env_float("PYLINEUP_SOLVER_GAP", None) is None
