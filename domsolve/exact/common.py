"""Shared errors and graph helpers for the exact dominating-set solvers.

A graph is a sequence indexed by node id whose entries are collections of
neighbour ids; node sets (covered, never-select) are any containers of ids.
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import AbstractSet, Collection, Iterable, Optional, Sequence

__all__ = [
    "ExactError",
    "InfeasibleError",
    "ExactTimeout",
    "TimeoutWithSolution",
    "search_binary_path",
    "closed_neighbors",
    "is_dominating",
    "skip_constraint_nodes",
]

Graph = Sequence[Collection[int]]


class ExactError(Exception):
    """Base class of all errors raised by exact solvers."""


class InfeasibleError(ExactError):
    """No solution exists within the given upper bound."""

    def __init__(self, message: str = "upper bound infeasible") -> None:
        super().__init__(message)


class ExactTimeout(ExactError):
    """The solver ran out of time."""

    def __init__(self, message: str = "timeout") -> None:
        super().__init__(message)


class TimeoutWithSolution(ExactTimeout):
    """The solver ran out of time but holds a valid, possibly suboptimal, solution."""

    def __init__(self, solution: AbstractSet[int]) -> None:
        super().__init__("timeout_with_solution")
        self.solution = set(solution)


def search_binary_path(name: str | Path) -> Path:
    """Find an executable next to the running program or in the working directory."""
    name = Path(name)
    if sys.argv and sys.argv[0]:
        candidate = Path(sys.argv[0]).resolve().parent / name
        if candidate.is_file():
            return candidate
    candidate = Path.cwd() / name
    if candidate.is_file():
        return candidate
    raise FileNotFoundError(f"Binary {str(name)!r} not found")


def closed_neighbors(graph: Graph, node: int) -> set[int]:
    """Return the node together with its neighbours."""
    result = set(graph[node])
    result.add(node)
    return result


def is_dominating(
    graph: Graph, solution: Iterable[int], covered: Optional[Iterable[int]] = None
) -> bool:
    """Return True if every node is covered or has a closed neighbour in the solution."""
    dominated = set(covered or ())
    for u in solution:
        dominated |= closed_neighbors(graph, u)
    return all(u in dominated for u in range(len(graph)))


def skip_constraint_nodes(
    graph: Graph,
    covered: Iterable[int],
    redundant: Collection[int],
    nodes: Optional[Iterable[int]] = None,
) -> set[int]:
    """Return the nodes whose covering constraint can be omitted.

    Besides covered nodes, these are the two endpoints a, b of an edge whenever
    an uncovered redundant node has exactly a and b as non-redundant neighbours:
    that node is dominated by either of them, so a and b are too.
    """
    covered_set = set(covered)
    skip = set(covered_set)
    candidates = range(len(graph)) if nodes is None else nodes
    for u in candidates:
        if u not in redundant or u in covered_set:
            continue
        selectable = [v for v in graph[u] if v != u and v not in redundant]
        if len(selectable) == 2:
            a, b = selectable
            if b in graph[a]:
                skip.update((a, b))
    return skip