"""Dominating-set solving through external MaxSAT solvers (WCNF input)."""

from __future__ import annotations

import contextlib
import logging
import os
import subprocess
import tempfile
import threading
import time
from datetime import timedelta
from pathlib import Path
from typing import IO, Collection, Iterable, Iterator, Optional, Sequence

from domsolve.algorithm import interrupt_requested
from domsolve.exact.common import (
    ExactError,
    ExactTimeout,
    Graph,
    closed_neighbors,
    skip_constraint_nodes,
)

__all__ = [
    "write_maxsat_input",
    "read_solver_response",
    "solve",
    "solve_multiple",
]

_log = logging.getLogger(__name__)

_FAST_POLL = 0.005
_SLOW_POLL = 0.5


def _seconds(value: Optional[float | timedelta]) -> Optional[float]:
    if value is None:
        return None
    if isinstance(value, timedelta):
        return value.total_seconds()
    return float(value)


def _poll_interval(elapsed: float) -> float:
    return _FAST_POLL if elapsed < 1.0 else _SLOW_POLL


def _selectable(graph: Graph, never_select: Collection[int]) -> list[int]:
    return [u for u in range(len(graph)) if u not in never_select]


def write_maxsat_input(
    writer: IO[str],
    graph: Graph,
    no_constraints: Collection[int],
    never_select: Collection[int],
) -> None:
    """Write the instance as weighted MaxSAT.

    Every selectable node is a variable numbered from 1; each constrained node
    gets a hard clause over its closed neighbourhood and each variable a soft
    unit clause of weight 1 preferring it unset.
    """
    selectable = _selectable(graph, never_select)
    variable_of = {u: i for i, u in enumerate(selectable, start=1)}

    for u in range(len(graph)):
        if u in no_constraints:
            continue
        literals = "".join(
            f"{variable_of[v]} "
            for v in sorted(closed_neighbors(graph, u))
            if v in variable_of
        )
        writer.write(f"h {literals}0\n")

    for variable in range(1, len(selectable) + 1):
        writer.write(f"1 -{variable} 0\n")


def read_solver_response(
    output: str, graph: Graph, never_select: Collection[int]
) -> set[int]:
    """Parse a MaxSAT solver's output into the selected nodes.

    Raises ExactError unless the status line reports an optimum and ValueError
    if the assignment does not have one value per selectable node.
    """
    selectable = _selectable(graph, never_select)
    solution: set[int] = set()

    for line in output.splitlines():
        parts = line.split()
        if not parts:
            continue
        kind = parts[0]
        if kind == "s":
            if "OPTIMUM FOUND" not in line:
                raise ExactError("suboptimal solution")
        elif kind == "v":
            values = parts[1] if len(parts) > 1 else ""
            if len(values) != len(selectable):
                raise ValueError(
                    f"assignment has {len(values)} values, expected {len(selectable)}"
                )
            solution.update(u for u, c in zip(selectable, values) if c == "1")

    return solution


@contextlib.contextmanager
def _maxsat_file(
    graph: Graph, no_constraints: Collection[int], never_select: Collection[int]
) -> Iterator[Path]:
    with tempfile.TemporaryDirectory() as directory:
        path = Path(directory) / "instance.wcnf"
        with path.open("w") as handle:
            write_maxsat_input(handle, graph, no_constraints, never_select)
        yield path


def _command(binary: str | os.PathLike, args: Iterable[str], instance: Path) -> list[str]:
    return [os.fspath(binary), *(str(a) for a in args), str(instance)]


def solve(
    solver_binary: str | os.PathLike,
    args: Sequence[str],
    graph: Graph,
    covered: Iterable[int],
    never_select: Collection[int],
    timeout: Optional[float | timedelta] = None,
) -> set[int]:
    """Solve with one external MaxSAT solver; the instance file is appended to ``args``.

    Raises ExactTimeout if the timeout elapses or an interrupt is requested.
    """
    start = time.monotonic()
    limit = _seconds(timeout)
    excluded = set(never_select)
    no_constraints = skip_constraint_nodes(graph, covered, excluded)

    with _maxsat_file(graph, no_constraints, excluded) as instance:
        proc = subprocess.Popen(
            _command(solver_binary, args, instance), stdout=subprocess.PIPE
        )
        try:
            while True:
                try:
                    output, _ = proc.communicate(
                        timeout=_poll_interval(time.monotonic() - start)
                    )
                    break
                except subprocess.TimeoutExpired:
                    elapsed = time.monotonic() - start
                    if limit is not None and elapsed > limit:
                        _log.info("Kill subprocess")
                        proc.kill()
                        proc.communicate()
                        raise ExactTimeout("Timeout")
                    if interrupt_requested():
                        _log.info("Kill subprocess due to received interrupt")
                        proc.kill()
                        proc.communicate()
                        raise ExactTimeout("Timeout / Signal")
        finally:
            if proc.poll() is None:
                proc.kill()
                proc.wait()

    return read_solver_response(output.decode("utf-8"), graph, excluded)


class _Child:
    """A running solver whose output is drained by a background thread."""

    def __init__(self, proc: subprocess.Popen, timeout: Optional[float]) -> None:
        self.proc = proc
        self.timeout = timeout
        self.done = False
        self._output = b""
        self._reader = threading.Thread(target=self._drain, daemon=True)
        self._reader.start()

    def _drain(self) -> None:
        assert self.proc.stdout is not None
        self._output = self.proc.stdout.read()

    def collect(self) -> bytes:
        self._reader.join()
        self.done = True
        return self._output

    def stop(self) -> None:
        if self.proc.poll() is None:
            self.proc.kill()
            self.proc.wait()
        self._reader.join()
        if self.proc.stdout is not None:
            self.proc.stdout.close()
        self.done = True


def _race(children: list[_Child], start: float) -> bytes:
    active = list(children)
    while True:
        elapsed = time.monotonic() - start
        for child in active:
            if child.proc.poll() is not None:
                _log.info("Child completed")
                return child.collect()
            if child.timeout is not None and elapsed > child.timeout:
                _log.info("Kill subprocess")
                child.stop()
        active = [child for child in active if not child.done]
        if not active:
            raise RuntimeError("No solution obtained")
        time.sleep(_poll_interval(elapsed))


def solve_multiple(
    solvers: Iterable[tuple[str | os.PathLike, Sequence[str], Optional[float | timedelta]]],
    graph: Graph,
    covered: Iterable[int],
    never_select: Collection[int],
) -> set[int]:
    """Run several (binary, args, timeout) solvers at once and use the first to finish.

    Raises RuntimeError if no solver starts or all of them time out.
    """
    start = time.monotonic()
    excluded = set(never_select)
    no_constraints = skip_constraint_nodes(graph, covered, excluded)

    with _maxsat_file(graph, no_constraints, excluded) as instance:
        children: list[_Child] = []
        for binary, args, timeout in solvers:
            try:
                proc = subprocess.Popen(
                    _command(binary, args, instance), stdout=subprocess.PIPE
                )
            except OSError:
                continue
            children.append(_Child(proc, _seconds(timeout)))

        if not children:
            raise RuntimeError("Could not start any solvers")

        try:
            output = _race(children, start)
        finally:
            for child in children:
                child.stop()

    return read_solver_response(output.decode("utf-8"), graph, excluded)