"""Dominating-set solver that formulates the problem as a 0/1 integer program."""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import Collection, Iterable, Optional, Sequence

import numpy as np
from scipy.optimize import Bounds, LinearConstraint, milp
from scipy.sparse import coo_matrix

from domsolve.exact.common import (
    ExactTimeout,
    Graph,
    InfeasibleError,
    TimeoutWithSolution,
    closed_neighbors,
    is_dominating,
    skip_constraint_nodes,
)

__all__ = ["highs_solver", "highs_solver_with_precious"]

_log = logging.getLogger(__name__)

_STATUS_OPTIMAL = 0
_STATUS_LIMIT = 1
_STATUS_INFEASIBLE = 2


def _seconds(timeout: float | timedelta) -> float:
    if isinstance(timeout, timedelta):
        return timeout.total_seconds()
    return float(timeout)


def highs_solver(
    graph: Graph,
    covered: Optional[Iterable[int]] = None,
    never_select: Optional[Collection[int]] = None,
    upper_bound: Optional[int] = None,
    timeout: Optional[float | timedelta] = None,
) -> set[int]:
    """Return a minimum dominating set of the nodes not already covered.

    Raises InfeasibleError if no solution exists or the optimum exceeds
    ``upper_bound``; raises TimeoutWithSolution or ExactTimeout on timeout.
    """
    return highs_solver_with_precious(
        graph, (), covered, never_select, upper_bound, timeout
    )


def highs_solver_with_precious(
    graph: Graph,
    precious: Sequence[int],
    covered: Optional[Iterable[int]] = None,
    never_select: Optional[Collection[int]] = None,
    upper_bound: Optional[int] = None,
    timeout: Optional[float | timedelta] = None,
) -> set[int]:
    """Like highs_solver, but among optimal solutions prefers ``precious`` nodes.

    Precious nodes cost slightly less than one, so the solution size stays
    minimal while ties are broken in their favour.
    """
    n = len(graph)
    covered_set = set(covered or ())
    excluded = set(never_select or ())
    precious = list(precious)
    precious_set = set(precious)

    skip = skip_constraint_nodes(graph, covered_set, excluded)
    _log.debug("Skip constraints of %d nodes", len(skip))

    columns = [u for u in range(n) if u not in excluded]
    column_of = {u: i for i, u in enumerate(columns)}

    precious_weight = 1.0 - 1.0 / (1 + len(precious))
    weights = np.array(
        [precious_weight if u in precious_set else 1.0 for u in columns], dtype=float
    )

    row_indices: list[int] = []
    col_indices: list[int] = []
    num_rows = 0
    for u in range(n):
        if u in skip:
            continue
        terms = [column_of[v] for v in closed_neighbors(graph, u) if v in column_of]
        if not terms:
            raise InfeasibleError()
        row_indices.extend([num_rows] * len(terms))
        col_indices.extend(terms)
        num_rows += 1

    _log.debug(
        "Remaining constraints: %d, remaining terms: %d, remaining vars: %d",
        num_rows,
        len(col_indices),
        len(columns),
    )

    if num_rows == 0:
        return set()

    matrix = coo_matrix(
        (np.ones(len(col_indices)), (row_indices, col_indices)),
        shape=(num_rows, len(columns)),
    ).tocsr()

    options: dict = {"disp": False}
    if timeout is not None:
        options["time_limit"] = _seconds(timeout)

    result = milp(
        c=weights,
        constraints=LinearConstraint(
            matrix, lb=np.ones(num_rows), ub=np.full(num_rows, np.inf)
        ),
        integrality=np.ones(len(columns)),
        bounds=Bounds(0, 1),
        options=options,
    )

    if result.status == _STATUS_INFEASIBLE:
        raise InfeasibleError()
    if result.status not in (_STATUS_OPTIMAL, _STATUS_LIMIT):
        raise RuntimeError(f"Unhandled solver status: {result.message}")
    suboptimal = result.status == _STATUS_LIMIT

    solution: set[int] = set()
    if result.x is not None:
        solution = {u for u, value in zip(columns, result.x) if value > 0.5}

    if upper_bound is not None and upper_bound < len(solution):
        raise InfeasibleError()

    if suboptimal:
        if result.x is not None and is_dominating(graph, solution, covered_set):
            raise TimeoutWithSolution(solution)
        raise ExactTimeout()

    return solution