"""PuLP adapter that solves a :class:`LineupModel`."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Mapping, Union

import pulp

from pylineup.optimizer.model import LineupModel, Sense, Variable


logger = logging.getLogger(__name__)

_SOLVER_ENV = "PYLINEUP_SOLVER"
_SOLVER_GAP_ENV = "PYLINEUP_SOLVER_GAP"
_SOLVER_TIME_LIMIT_ENV = "PYLINEUP_SOLVER_TIME_LIMIT"

_SOLVER_GAP_DEFAULT = 0.001

_SOLVER_NAMES = {
    "cbc": "PULP_CBC_CMD",
    "highs": "HiGHS",
    "highs_cmd": "HiGHS_CMD",
}

_FEASIBLE_SOLUTIONS = {pulp.LpSolutionOptimal, pulp.LpSolutionIntegerFeasible}


def _env_float(name: str, default: float | None, *, clamp_min: float | None = None) -> float | None:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = float(raw)
    except ValueError:
        logger.warning("Invalid float for %s: %s; using default %s", name, raw, default)
        return default
    if clamp_min is not None:
        value = max(clamp_min, value)
    return value


@dataclass(frozen=True)
class Assignment:
    values: Mapping[Variable, int]
    objective: float

    def selected(self) -> list[Variable]:
        return [var for var, value in self.values.items() if value == 1]


@dataclass(frozen=True)
class Infeasible:
    status: str
    detail: str = ""

    def __str__(self) -> str:
        return f"{self.status}: {self.detail}" if self.detail else self.status


SolveResult = Union[Assignment, Infeasible]


def get_solver() -> pulp.LpSolver:
    """Return a fresh solver command configured from the environment."""

    choice = os.getenv(_SOLVER_ENV, "cbc").strip().lower()
    kwargs: dict[str, float | bool] = {"msg": False}

    gap = _env_float(_SOLVER_GAP_ENV, _SOLVER_GAP_DEFAULT, clamp_min=0.0)
    if gap:
        kwargs["gapRel"] = gap
    time_limit = _env_float(_SOLVER_TIME_LIMIT_ENV, None, clamp_min=0.0)
    if time_limit:
        kwargs["timeLimit"] = time_limit

    name = _SOLVER_NAMES.get(choice)
    if name is None:
        logger.warning("Unknown solver %r requested via %s; using CBC", choice, _SOLVER_ENV)
        name = _SOLVER_NAMES["cbc"]
    elif name != _SOLVER_NAMES["cbc"] and name not in pulp.listSolvers(onlyAvailable=True):
        logger.warning("%s solver is not available on this system; falling back to CBC", name)
        name = _SOLVER_NAMES["cbc"]

    logger.debug("Using %s solver backend (%s)", name, kwargs)
    return pulp.getSolver(name, **kwargs)


def _to_problem(model: LineupModel) -> tuple[pulp.LpProblem, dict[Variable, pulp.LpVariable]]:
    problem = pulp.LpProblem("lineup", pulp.LpMaximize)
    lp_vars = {
        var: pulp.LpVariable(f"x{index}", cat=pulp.LpBinary)
        for index, var in enumerate(model.variables)
    }
    problem += pulp.lpSum(coef * lp_vars[var] for var, coef in model.objective.items())

    for index, row in enumerate(model.rows):
        if not row.coefficients:
            continue
        expr = pulp.lpSum(coef * lp_vars[var] for var, coef in row.coefficients.items())
        if row.sense == Sense.LE:
            problem += (expr <= row.rhs, f"c{index}")
        elif row.sense == Sense.GE:
            problem += (expr >= row.rhs, f"c{index}")
        else:
            problem += (expr == row.rhs, f"c{index}")
    return problem, lp_vars


def solve(model: LineupModel, solver: pulp.LpSolver | None = None) -> SolveResult:
    """Solve ``model``; return the 0/1 assignment or an :class:`Infeasible` marker."""

    for row in model.rows:
        if not row.coefficients and not row.is_satisfied({}):
            return Infeasible("Infeasible", f"constraint {row.key} has no eligible players")

    if not model.variables:
        return Infeasible("Infeasible", "model has no variables")

    problem, lp_vars = _to_problem(model)
    problem.solve(solver or get_solver())

    status = pulp.LpStatus.get(problem.status, str(problem.status))
    if problem.status != pulp.LpStatusOptimal and problem.sol_status not in _FEASIBLE_SOLUTIONS:
        return Infeasible(status)

    # structural checks on the assignment belong to extract_lineup
    values = {var: int(round(lp_var.varValue or 0.0)) for var, lp_var in lp_vars.items()}
    objective = pulp.value(problem.objective)
    return Assignment(values=values, objective=float(objective or 0.0))


__all__ = ["Assignment", "Infeasible", "SolveResult", "get_solver", "solve"]
