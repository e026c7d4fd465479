import pytest

from domsolve.exact.common import (
    ExactError,
    ExactTimeout,
    InfeasibleError,
    TimeoutWithSolution,
    closed_neighbors,
    is_dominating,
    search_binary_path,
    skip_constraint_nodes,
)


def from_edges(n, edges):
    graph = [set() for _ in range(n)]
    for u, v in edges:
        graph[u].add(v)
        graph[v].add(u)
    return graph


TRIANGLE = from_edges(3, [(0, 1), (1, 2), (0, 2)])
PATH = from_edges(5, [(0, 1), (1, 2), (2, 3), (3, 4)])


def test_error_hierarchy_and_messages():
    assert str(InfeasibleError()) == "upper bound infeasible"
    assert str(ExactTimeout()) == "timeout"
    err = TimeoutWithSolution({1, 2})
    assert err.solution == {1, 2}
    assert str(err) == "timeout_with_solution"
    assert isinstance(err, ExactTimeout)
    assert isinstance(InfeasibleError(), ExactError)


def test_closed_neighbors_includes_node():
    assert closed_neighbors(PATH, 2) == {1, 2, 3}
    assert closed_neighbors(PATH, 0) == {0, 1}


def test_is_dominating():
    assert is_dominating(PATH, [1, 3])
    assert not is_dominating(PATH, [1])
    assert is_dominating(PATH, [1], covered=[3, 4])
    assert is_dominating(TRIANGLE, [0])


def test_skip_constraints_triangle():
    assert skip_constraint_nodes(TRIANGLE, [], {0}) == {1, 2}


def test_skip_constraints_ignores_covered_redundant():
    assert skip_constraint_nodes(TRIANGLE, {0}, {0}) == {0}


def test_skip_constraints_restricted_nodes():
    assert skip_constraint_nodes(TRIANGLE, [], {0}, nodes=[1, 2]) == set()
    assert skip_constraint_nodes(TRIANGLE, [], {0}, nodes=[0]) == {1, 2}


def test_skip_constraints_requires_edge():
    # node 2 on a path has neighbours 1 and 3 which are not adjacent
    assert skip_constraint_nodes(PATH, [4], {2}) == {4}


def test_search_binary_path_in_cwd(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    binary = tmp_path / "some_solver_bin"
    binary.write_text("")
    assert search_binary_path("some_solver_bin") == binary


def test_search_binary_path_missing(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    with pytest.raises(FileNotFoundError):
        search_binary_path("definitely_missing_solver_bin")