import io
import random
import sys

import pytest

from domsolve.algorithm import clear_interrupt, request_interrupt
from domsolve.exact.common import ExactError, ExactTimeout, is_dominating
from domsolve.exact.ext_maxsat import (
    read_solver_response,
    solve,
    solve_multiple,
    write_maxsat_input,
)
from domsolve.exact.naive import naive_solver

BRUTE_FORCE_SOLVER = """
import itertools, sys
hard = []
num_vars = 0
with open(sys.argv[-1]) as handle:
    for line in handle:
        parts = line.split()
        if not parts:
            continue
        if parts[0] == "h":
            hard.append([int(x) for x in parts[1:-1]])
        else:
            num_vars = max(num_vars, -int(parts[1]))
best = None
for k in range(num_vars + 1):
    for combo in itertools.combinations(range(1, num_vars + 1), k):
        chosen = set(combo)
        if all(any(lit in chosen for lit in clause) for clause in hard):
            best = chosen
            break
    if best is not None:
        break
if best is None:
    print("s UNSATISFIABLE")
    sys.exit(20)
print("c brute force")
print("o", len(best))
print("s OPTIMUM FOUND")
print("v " + "".join("1" if i in best else "0" for i in range(1, num_vars + 1)))
"""

SLEEPING_SOLVER = """
import time
time.sleep(30)
"""

PATH = [{1}, {0, 2}, {1}]


@pytest.fixture
def brute_force(tmp_path):
    path = tmp_path / "brute.py"
    path.write_text(BRUTE_FORCE_SOLVER)
    return str(path)


@pytest.fixture
def sleeper(tmp_path):
    path = tmp_path / "sleeper.py"
    path.write_text(SLEEPING_SOLVER)
    return str(path)


def _random_instances(seed, n, count):
    rng = random.Random(seed)
    produced = 0
    i = 0
    while produced < count:
        i += 1
        graph = [set() for _ in range(n)]
        for u in range(n):
            for v in range(u + 1, n):
                if rng.random() < 3 / n:
                    graph[u].add(v)
                    graph[v].add(u)
        covered = {rng.randrange(n) for _ in range(i % 7)}
        never = {rng.randrange(n) for _ in range(i % 5)} - covered
        if not is_dominating(graph, set(range(n)) - never, covered):
            continue
        produced += 1
        yield graph, covered, never


def test_write_input_full():
    out = io.StringIO()
    write_maxsat_input(out, PATH, set(), set())
    assert out.getvalue() == (
        "h 1 2 0\nh 1 2 3 0\nh 2 3 0\n1 -1 0\n1 -2 0\n1 -3 0\n"
    )


def test_write_input_with_exclusions():
    out = io.StringIO()
    write_maxsat_input(out, PATH, {2}, {0})
    assert out.getvalue() == "h 1 0\nh 1 2 0\n1 -1 0\n1 -2 0\n"


def test_read_response():
    output = "c comment\no 1\ns OPTIMUM FOUND\nv 010\n"
    assert read_solver_response(output, PATH, set()) == {1}


def test_read_response_maps_past_never_select():
    assert read_solver_response("s OPTIMUM FOUND\nv 10\n", PATH, {0}) == {1}


def test_read_response_rejects_suboptimal():
    with pytest.raises(ExactError):
        read_solver_response("s SATISFIABLE\nv 111\n", PATH, set())


def test_read_response_rejects_wrong_length():
    with pytest.raises(ValueError):
        read_solver_response("s OPTIMUM FOUND\nv 0101\n", PATH, set())


def test_cross_with_naive_single(brute_force):
    for graph, covered, never in _random_instances(0x123612873, 10, 8):
        naive = naive_solver(graph, covered, never)
        result = solve(sys.executable, [brute_force], graph, covered, never, None)
        assert is_dominating(graph, result, covered)
        assert len(result) == len(naive)
        assert not result & never


def test_cross_with_naive_multiple(brute_force, sleeper):
    solvers = [
        (sys.executable, [sleeper], 0.5),
        (sys.executable, [brute_force], None),
    ]
    for graph, covered, never in _random_instances(0x12112873, 10, 4):
        naive = naive_solver(graph, covered, never)
        result = solve_multiple(solvers, graph, covered, never)
        assert is_dominating(graph, result, covered)
        assert len(result) == len(naive)
        assert not result & never


def test_solve_timeout(sleeper):
    with pytest.raises(ExactTimeout):
        solve(sys.executable, [sleeper], PATH, set(), set(), 0.3)


def test_solve_interrupt(sleeper):
    request_interrupt()
    try:
        with pytest.raises(ExactTimeout):
            solve(sys.executable, [sleeper], PATH, set(), set(), None)
    finally:
        clear_interrupt()


def test_solve_missing_binary(tmp_path):
    with pytest.raises(FileNotFoundError):
        solve(tmp_path / "missing-solver", [], PATH, set(), set(), None)


def test_multiple_no_solver_starts(tmp_path):
    solvers = [(tmp_path / "a", [], None), (tmp_path / "b", [], None)]
    with pytest.raises(RuntimeError, match="Could not start"):
        solve_multiple(solvers, PATH, set(), set())


def test_multiple_all_time_out(sleeper):
    with pytest.raises(RuntimeError, match="No solution"):
        solve_multiple([(sys.executable, [sleeper], 0.3)], PATH, set(), set())