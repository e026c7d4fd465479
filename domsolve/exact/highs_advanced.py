"""Reusable integer-programming builder for dominating-set instances and subgraphs."""

from __future__ import annotations

import enum
import hashlib
import logging
import struct
import threading
from dataclasses import dataclass
from datetime import timedelta
from typing import Callable, Collection, Iterable, Optional

import numpy as np
from scipy.optimize import Bounds, LinearConstraint, milp
from scipy.sparse import coo_matrix

from domsolve.exact.common import Graph, closed_neighbors, skip_constraint_nodes

__all__ = [
    "HighsCache",
    "unit_weight",
    "ResultStatus",
    "SolverResult",
    "HighsDominatingSetSolver",
    "HighsProblem",
]

_log = logging.getLogger(__name__)

_STATUS_OPTIMAL = 0
_STATUS_LIMIT = 1
_STATUS_INFEASIBLE = 2
_SENTINEL = 0xFFFFFFFF


class HighsCache:
    """Thread-safe record of problem digests whose solve attempts timed out."""

    def __init__(self) -> None:
        self._failed: set[int] = set()
        self._lock = threading.Lock()

    def add(self, digest: int) -> None:
        """Remember a failed solve attempt."""
        _log.info("Register failed solve attempt with digest %s", digest)
        with self._lock:
            self._failed.add(digest)

    def __contains__(self, digest: object) -> bool:
        with self._lock:
            found = digest in self._failed
        if found:
            _log.info("Found failed solve attempt with digest %s", digest)
        return found


def unit_weight(node: int) -> float:
    """Weight every node with one; node ids must be non-negative."""
    if node < 0:
        raise ValueError(f"invalid node id {node}")
    return 1.0


class ResultStatus(enum.Enum):
    OPTIMAL = "optimal"
    SUBOPTIMAL = "suboptimal"
    TIMEOUT = "timeout"
    INFEASIBLE = "infeasible"


@dataclass(frozen=True)
class SolverResult:
    """Outcome of a solve attempt; ``nodes`` is set for (sub)optimal results."""

    status: ResultStatus
    nodes: tuple[int, ...] = ()

    def solution(self) -> Optional[list[int]]:
        """Return the selected nodes, or None if no solution was obtained."""
        if self.status in (ResultStatus.OPTIMAL, ResultStatus.SUBOPTIMAL):
            return list(self.nodes)
        return None


@dataclass(frozen=True)
class _Column:
    node: int
    weight: float
    rows: tuple[int, ...]


def _seconds(timeout: float | timedelta) -> float:
    if isinstance(timeout, timedelta):
        return timeout.total_seconds()
    return float(timeout)


class HighsProblem:
    """A built integer program ready to be solved."""

    def __init__(
        self,
        graph: Graph,
        covered: set[int],
        nodes: Optional[list[int]],
        columns: list[_Column],
        num_rows: int,
        num_terms: int,
        digest: Optional[int],
        cache: Optional[HighsCache],
    ) -> None:
        self.graph = graph
        self.covered = covered
        self.nodes = nodes
        self.digest = digest
        self._columns = columns
        self._num_rows = num_rows
        self._num_terms = num_terms
        self._cache = cache

    def number_of_variables(self) -> int:
        return len(self._columns)

    def number_of_terms(self) -> int:
        return self._num_terms

    def solve_exact(self, timeout: Optional[float | timedelta] = None) -> SolverResult:
        """Solve to optimality; a timeout yields TIMEOUT and is cached."""
        return self._solve(False, timeout)

    def solve_allow_subopt(
        self, timeout: Optional[float | timedelta] = None
    ) -> SolverResult:
        """Solve, accepting a feasible suboptimal solution on timeout."""
        result = self._solve(True, timeout)
        if result.status is ResultStatus.SUBOPTIMAL:
            dominated = set(self.covered)
            for u in result.nodes:
                dominated |= closed_neighbors(self.graph, u)
            targets = self.nodes if self.nodes is not None else range(len(self.graph))
            if any(u not in dominated for u in targets):
                return SolverResult(ResultStatus.TIMEOUT)
        return result

    def _solve(
        self, allow_subopt: bool, timeout: Optional[float | timedelta]
    ) -> SolverResult:
        if self._num_terms == 0:
            return SolverResult(ResultStatus.OPTIMAL)

        if self._cache is not None and self.digest in self._cache:
            _log.info("Skip previously failed solve attempt")
            return SolverResult(ResultStatus.TIMEOUT)

        row_indices: list[int] = []
        col_indices: list[int] = []
        for index, column in enumerate(self._columns):
            row_indices.extend(column.rows)
            col_indices.extend([index] * len(column.rows))

        if len(set(row_indices)) < self._num_rows:
            return SolverResult(ResultStatus.INFEASIBLE)

        num_cols = len(self._columns)
        matrix = coo_matrix(
            (np.ones(len(row_indices)), (row_indices, col_indices)),
            shape=(self._num_rows, num_cols),
        ).tocsr()

        options: dict = {"disp": False}
        if timeout is not None:
            options["time_limit"] = _seconds(timeout)

        result = milp(
            c=np.array([column.weight for column in self._columns], dtype=float),
            constraints=LinearConstraint(
                matrix,
                lb=np.ones(self._num_rows),
                ub=np.full(self._num_rows, np.inf),
            ),
            integrality=np.ones(num_cols),
            bounds=Bounds(0, 1),
            options=options,
        )

        if result.status == _STATUS_INFEASIBLE:
            return SolverResult(ResultStatus.INFEASIBLE)
        if result.status == _STATUS_LIMIT:
            if not allow_subopt:
                if self._cache is not None and self.digest is not None:
                    self._cache.add(self.digest)
                return SolverResult(ResultStatus.TIMEOUT)
            status = ResultStatus.SUBOPTIMAL
        elif result.status == _STATUS_OPTIMAL:
            status = ResultStatus.OPTIMAL
        else:
            raise RuntimeError(f"Unhandled solver status: {result.message}")

        if result.x is None:
            return SolverResult(status)
        nodes = tuple(
            column.node
            for column, value in zip(self._columns, result.x)
            if value > 0.5
        )
        return SolverResult(status, nodes)


class HighsDominatingSetSolver:
    """Builds dominating-set integer programs for graphs of at most ``n`` nodes."""

    def __init__(self, n: int) -> None:
        self.n = n
        self.cache: Optional[HighsCache] = None

    def register_cache(self, cache: HighsCache) -> None:
        """Share a cache of failed attempts; problems then carry a digest."""
        self.cache = cache

    def _check_size(self, graph: Graph) -> None:
        if len(graph) > self.n:
            raise ValueError(
                f"graph has {len(graph)} nodes but solver was built for {self.n}"
            )

    def build_problem(
        self,
        graph: Graph,
        covered: Iterable[int],
        redundant: Collection[int],
        node_weights: Callable[[int], float] = unit_weight,
    ) -> HighsProblem:
        """Build the program for the whole graph."""
        self._check_size(graph)
        covered_set = set(covered)
        redundant_set = set(redundant)
        skip = skip_constraint_nodes(graph, covered_set, redundant_set)

        row_of: dict[int, int] = {}
        for u in range(len(graph)):
            if u not in skip:
                row_of[u] = len(row_of)

        candidates = (u for u in range(len(graph)) if u not in redundant_set)
        return self._assemble(graph, covered_set, None, row_of, candidates, node_weights)

    def build_problem_of_subgraph(
        self,
        graph: Graph,
        covered: Iterable[int],
        redundant: Collection[int],
        nodes: Iterable[int],
        node_weights: Callable[[int], float] = unit_weight,
    ) -> HighsProblem:
        """Build the program restricted to the given nodes."""
        self._check_size(graph)
        covered_set = set(covered)
        redundant_set = set(redundant)
        node_list = list(nodes)
        skip = skip_constraint_nodes(graph, covered_set, redundant_set, node_list)

        row_of: dict[int, int] = {}
        for u in node_list:
            if u not in skip and u not in row_of:
                row_of[u] = len(row_of)

        candidates = (u for u in node_list if u not in redundant_set)
        return self._assemble(
            graph, covered_set, node_list, row_of, candidates, node_weights
        )

    def _assemble(
        self,
        graph: Graph,
        covered: set[int],
        nodes: Optional[list[int]],
        row_of: dict[int, int],
        candidates: Iterable[int],
        node_weights: Callable[[int], float],
    ) -> HighsProblem:
        hasher = hashlib.blake2b(digest_size=8) if self.cache is not None else None
        columns: list[_Column] = []
        num_terms = 0

        for node in candidates:
            entries = sorted(
                (v, row_of[v]) for v in closed_neighbors(graph, node) if v in row_of
            )
            if not entries:
                continue
            weight = float(node_weights(node))
            if hasher is not None:
                hasher.update(struct.pack("<Id", node, weight))
                for v, _ in entries:
                    hasher.update(struct.pack("<I", v))
                hasher.update(struct.pack("<I", _SENTINEL))
            columns.append(_Column(node, weight, tuple(row for _, row in entries)))
            num_terms += len(entries)

        digest = int.from_bytes(hasher.digest(), "little") if hasher is not None else None
        return HighsProblem(
            graph, covered, nodes, columns, len(row_of), num_terms, digest, self.cache
        )