"""Branch-and-bound dominating-set solver for small instances."""

from __future__ import annotations

import time
from datetime import timedelta
from typing import Collection, Iterable, Optional

from domsolve.exact.common import (
    ExactTimeout,
    Graph,
    InfeasibleError,
    closed_neighbors,
)

__all__ = ["naive_solver"]


class _Search:
    def __init__(self, graph: Graph, candidates: list[int], deadline: Optional[float]):
        self.graph = graph
        self.n = len(graph)
        self.candidates = candidates
        self.deadline = deadline
        self.closed = [closed_neighbors(graph, u) for u in range(self.n)]
        self.work: list[int] = []
        self.best: Optional[list[int]] = None

    def _record(self, extra: int) -> int:
        self.best = self.work + [extra]
        return len(self.best)

    def run(self, k: int, covered: frozenset[int], upper: int) -> int:
        """Search using the first k candidates; return the size of the best solution."""
        if len(covered) == self.n:
            self.best = list(self.work)
            return len(self.work)

        if k == 0 or upper <= len(self.work):
            raise InfeasibleError()

        active = self.candidates[:k]

        if len(covered) + 1 == self.n:
            uncovered = next(u for u in range(self.n) if u not in covered)
            cand = next((c for c in active if uncovered in self.closed[c]), None)
            if cand is None:
                raise InfeasibleError()
            return self._record(cand)

        if len(self.work) + 1 == upper:
            num_uncovered = self.n - len(covered)
            cand = next(
                (c for c in active if len(self.closed[c] - covered) == num_uncovered),
                None,
            )
            if cand is None:
                raise InfeasibleError()
            return self._record(cand)

        if self.deadline is not None and k > 5 and time.monotonic() > self.deadline:
            raise ExactTimeout()

        candidate = active[-1]
        covered_with = covered | self.closed[candidate]

        tried_with = False
        size_with: Optional[int] = None
        error_with: Optional[InfeasibleError] = None
        if len(covered_with) != len(covered):
            tried_with = True
            self.work.append(candidate)
            try:
                size_with = self.run(k - 1, covered_with, upper)
            except InfeasibleError as err:
                error_with = err
            finally:
                self.work.pop()

            if size_with is not None:
                if size_with == 1:
                    return 1
                upper = size_with - 1

        try:
            return self.run(k - 1, covered, upper)
        except InfeasibleError:
            if not tried_with:
                raise
            if size_with is not None:
                return size_with
            assert error_with is not None
            raise error_with from None


def naive_solver(
    graph: Graph,
    covered: Optional[Iterable[int]] = None,
    never_select: Optional[Collection[int]] = None,
    upper_bound: Optional[int] = None,
    timeout: Optional[float | timedelta] = None,
) -> set[int]:
    """Return a minimum dominating set of the nodes not already covered.

    Nodes in ``never_select`` are never chosen. Raises InfeasibleError if no
    solution of at most ``upper_bound`` nodes exists and ExactTimeout if the
    timeout (seconds or timedelta) elapses.
    """
    n = len(graph)
    covered_set = frozenset(u for u in (covered or ()) if 0 <= u < n)
    excluded = never_select or frozenset()

    if len(covered_set) == n:
        return set()

    scored = sorted(
        (len(closed_neighbors(graph, u) - covered_set), u)
        for u in range(n)
        if u not in excluded
    )
    candidates = [u for _, u in scored]

    deadline = None
    if timeout is not None:
        seconds = timeout.total_seconds() if isinstance(timeout, timedelta) else float(timeout)
        deadline = time.monotonic() + seconds

    search = _Search(graph, candidates, deadline)
    bound = len(candidates) if upper_bound is None else upper_bound
    size = search.run(len(candidates), covered_set, bound)

    assert search.best is not None and size == len(search.best)
    return set(search.best)