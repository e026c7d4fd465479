"""Solving dominating-set programs in a separate process with a hard time limit.

The parent sends a JSON problem on the child's standard input and reads a JSON
response from its standard output. The child side is ``main``; it can be started
with ``python -m domsolve.exact.highs_sub``.
"""

from __future__ import annotations

import argparse
import json
import logging
import math
import os
import subprocess
import sys
import threading
import time
from dataclasses import dataclass, field
from datetime import timedelta
from pathlib import Path
from typing import Collection, Iterable, Mapping, Optional, Sequence

from domsolve.algorithm import interrupt_requested
from domsolve.exact.common import ExactTimeout, Graph
from domsolve.exact.highs_advanced import (
    HighsDominatingSetSolver,
    ResultStatus,
    SolverResult,
    unit_weight,
)

__all__ = [
    "SubprocessProblem",
    "SubprocessResponse",
    "solve_with_subprocess",
    "solve_in_child_process",
    "main",
]

_log = logging.getLogger(__name__)

_POLL_INTERVAL = 0.5
_CHILD_EXTRA_SECONDS = 4
_CHILD_MODULE = "domsolve.exact.highs_sub"


def _seconds(value: float | timedelta) -> float:
    if isinstance(value, timedelta):
        return value.total_seconds()
    return float(value)


@dataclass
class SubprocessResponse:
    """The child's answer: selected nodes and whether they are optimal, or None."""

    solution: Optional[tuple[list[int], bool]] = None

    def to_json(self) -> str:
        if self.solution is None:
            return json.dumps({"solution": None})
        nodes, optimal = self.solution
        return json.dumps({"solution": [list(nodes), bool(optimal)]})

    @classmethod
    def from_json(cls, text: str | bytes) -> "SubprocessResponse":
        data = json.loads(text)
        try:
            value = data["solution"]
            if value is None:
                return cls(None)
            nodes, optimal = value
            return cls(([int(u) for u in nodes], bool(optimal)))
        except (KeyError, TypeError, ValueError) as err:
            raise ValueError(f"malformed response: {err}") from err

    def to_result(self) -> SolverResult:
        if self.solution is None:
            return SolverResult(ResultStatus.TIMEOUT)
        nodes, optimal = self.solution
        status = ResultStatus.OPTIMAL if optimal else ResultStatus.SUBOPTIMAL
        return SolverResult(status, tuple(nodes))


@dataclass
class SubprocessProblem:
    """A dominating-set instance together with the child's time limit in seconds."""

    timeout: int
    graph: list[list[int]]
    covered: list[int] = field(default_factory=list)
    never_select: list[int] = field(default_factory=list)

    def solve(self) -> SubprocessResponse:
        """Solve the instance, accepting a feasible suboptimal solution on timeout."""
        graph = [set(neighbors) for neighbors in self.graph]
        solver = HighsDominatingSetSolver(len(graph))
        problem = solver.build_problem(
            graph, self.covered, set(self.never_select), unit_weight
        )
        result = problem.solve_allow_subopt(self.timeout)
        if result.status is ResultStatus.OPTIMAL:
            return SubprocessResponse((list(result.nodes), True))
        if result.status is ResultStatus.SUBOPTIMAL:
            return SubprocessResponse((list(result.nodes), False))
        return SubprocessResponse(None)

    def to_json(self) -> str:
        return json.dumps(
            {
                "timeout": self.timeout,
                "graph": [sorted(neighbors) for neighbors in self.graph],
                "covered": list(self.covered),
                "never_select": list(self.never_select),
            }
        )

    @classmethod
    def from_json(cls, text: str | bytes) -> "SubprocessProblem":
        data = json.loads(text)
        try:
            return cls(
                timeout=int(data["timeout"]),
                graph=[[int(v) for v in neighbors] for neighbors in data["graph"]],
                covered=[int(u) for u in data["covered"]],
                never_select=[int(u) for u in data["never_select"]],
            )
        except (KeyError, TypeError, ValueError) as err:
            raise ValueError(f"malformed problem: {err}") from err


def _run_child(
    command: Sequence[str],
    graph: Graph,
    covered: Iterable[int],
    never_select: Collection[int],
    timeout: float | timedelta,
    grace: float | timedelta,
    env: Optional[Mapping[str, str]] = None,
) -> SolverResult:
    timeout_s = _seconds(timeout)
    limit = timeout_s + _seconds(grace)
    problem = SubprocessProblem(
        timeout=math.ceil(timeout_s),
        graph=[sorted(neighbors) for neighbors in graph],
        covered=sorted(set(covered)),
        never_select=sorted(set(never_select)),
    )
    payload: Optional[bytes] = problem.to_json().encode("utf-8")

    proc = subprocess.Popen(
        list(command),
        stdin=subprocess.PIPE,
        stdout=subprocess.PIPE,
        env=None if env is None else dict(env),
    )
    start = time.monotonic()
    try:
        while True:
            try:
                output, _ = proc.communicate(input=payload, timeout=_POLL_INTERVAL)
            except subprocess.TimeoutExpired:
                payload = None
                if time.monotonic() - start > limit:
                    _log.info("Kill subprocess")
                    proc.kill()
                    proc.communicate()
                    return SolverResult(ResultStatus.TIMEOUT)
                if interrupt_requested():
                    _log.info("Kill subprocess due to received interrupt")
                    proc.kill()
                    proc.communicate()
                    raise ExactTimeout("Timeout / Signal")
                continue
            return SubprocessResponse.from_json(output).to_result()
    finally:
        if proc.poll() is None:
            proc.kill()
            proc.wait()


def solve_with_subprocess(
    command: str | os.PathLike | Sequence[str],
    graph: Graph,
    covered: Iterable[int],
    never_select: Collection[int],
    timeout: float | timedelta,
    grace: float | timedelta,
) -> SolverResult:
    """Solve in the given child command, killing it after ``timeout + grace``.

    Returns a TIMEOUT result if the child is killed or finds nothing; raises
    ExactTimeout if an interrupt is requested while waiting.
    """
    if isinstance(command, (str, os.PathLike)):
        args = [os.fspath(command)]
    else:
        args = [os.fspath(part) for part in command]
    return _run_child(args, graph, covered, never_select, timeout, grace)


def solve_in_child_process(
    graph: Graph,
    covered: Iterable[int],
    never_select: Collection[int],
    timeout: float | timedelta,
    grace: float | timedelta,
) -> SolverResult:
    """Solve in a fresh interpreter running this module's ``main``."""
    package_root = str(Path(__file__).resolve().parents[2])
    env = dict(os.environ)
    existing = env.get("PYTHONPATH")
    env["PYTHONPATH"] = (
        package_root if not existing else package_root + os.pathsep + existing
    )
    command = [sys.executable, "-m", _CHILD_MODULE]
    _log.info("Start subprocess using %s", command)
    return _run_child(command, graph, covered, never_select, timeout, grace, env)


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Read a JSON problem from stdin, solve it and write the JSON response to stdout."""
    parser = argparse.ArgumentParser(
        prog="domsolve-highs-child",
        description="Solve a dominating-set problem given as JSON on standard input.",
    )
    parser.parse_args(argv)

    problem = SubprocessProblem.from_json(sys.stdin.read())

    finished = threading.Event()

    def watchdog() -> None:
        if not finished.wait(problem.timeout + _CHILD_EXTRA_SECONDS):
            os._exit(1)

    guard = threading.Thread(target=watchdog, daemon=True)
    guard.start()

    response = problem.solve()
    finished.set()
    sys.stdout.write(response.to_json())
    sys.stdout.flush()
    guard.join()
    return 0


if __name__ == "__main__":
    sys.exit(main())