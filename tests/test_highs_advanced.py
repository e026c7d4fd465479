import random

from domsolve.exact.common import is_dominating
from domsolve.exact.highs_advanced import (
    HighsCache,
    HighsDominatingSetSolver,
    ResultStatus,
    SolverResult,
    unit_weight,
)
from domsolve.exact.naive import naive_solver


def from_edges(n, edges):
    graph = [set() for _ in range(n)]
    for u, v in edges:
        graph[u].add(v)
        graph[v].add(u)
    return graph


def random_gnp(rng, n, p):
    graph = [set() for _ in range(n)]
    for u in range(n):
        for v in range(u + 1, n):
            if rng.random() < p:
                graph[u].add(v)
                graph[v].add(u)
    return graph


def random_instances(n, count):
    rng = random.Random(0x1234567)
    i = 0
    produced = 0
    while produced < count:
        graph = random_gnp(rng, n, 3.0 / n)
        covered = {rng.randrange(n) for _ in range(i % 7)}
        redundant = {rng.randrange(n) for _ in range(i % 5)} - covered
        i += 1
        if not is_dominating(graph, set(range(n)) - redundant, covered):
            continue
        produced += 1
        yield graph, covered, redundant


def test_cross_with_naive():
    solver = HighsDominatingSetSolver(20)
    for graph, covered, redundant in random_instances(20, 80):
        naive = naive_solver(graph, covered, redundant)
        problem = solver.build_problem(graph, covered, redundant, unit_weight)
        result = set(problem.solve_exact(None).solution())
        assert is_dominating(graph, result, covered)
        assert len(result) == len(naive)
        assert not (result & redundant)


def test_cross_with_naive_subgraph():
    solver = HighsDominatingSetSolver(20)
    nodes = list(range(20))
    for graph, covered, redundant in random_instances(20, 80):
        naive = naive_solver(graph, covered, redundant)
        problem = solver.build_problem_of_subgraph(
            graph, covered, redundant, nodes, unit_weight
        )
        result = set(problem.solve_exact(None).solution())
        assert is_dominating(graph, result, covered)
        assert len(result) == len(naive)
        assert not (result & redundant)


def test_path_with_redundant_middle():
    graph = from_edges(3, [(0, 1), (1, 2)])
    problem = HighsDominatingSetSolver(3).build_problem(graph, set(), {1}, unit_weight)
    assert problem.number_of_variables() == 2
    assert problem.number_of_terms() == 4
    result = problem.solve_exact(None)
    assert result.status is ResultStatus.OPTIMAL
    assert sorted(result.solution()) == [0, 2]


def test_triangle_skips_constraints():
    graph = from_edges(3, [(0, 1), (1, 2), (0, 2)])
    problem = HighsDominatingSetSolver(3).build_problem(graph, set(), {2}, unit_weight)
    assert problem.number_of_variables() == 2
    assert problem.number_of_terms() == 2
    assert len(problem.solve_exact(None).solution()) == 1


def test_no_terms_is_trivially_optimal():
    graph = from_edges(3, [(0, 1), (1, 2)])
    problem = HighsDominatingSetSolver(3).build_problem(graph, {0, 1, 2}, set(), unit_weight)
    assert problem.number_of_terms() == 0
    assert problem.solve_exact(None) == SolverResult(ResultStatus.OPTIMAL, ())


def test_subgraph_restricted_to_component():
    graph = from_edges(6, [(0, 1), (1, 2), (3, 4), (4, 5)])
    problem = HighsDominatingSetSolver(6).build_problem_of_subgraph(
        graph, set(), set(), [3, 4, 5], unit_weight
    )
    assert problem.solve_allow_subopt(None).solution() == [4]


def test_allow_subopt_returns_optimal_when_solved():
    graph = from_edges(4, [(0, 1), (0, 2), (0, 3)])
    problem = HighsDominatingSetSolver(4).build_problem(graph, set(), set(), unit_weight)
    result = problem.solve_allow_subopt(5.0)
    assert result.status is ResultStatus.OPTIMAL
    assert result.solution() == [0]


def test_cache_skips_known_failures():
    graph = from_edges(4, [(0, 1), (1, 2), (2, 3)])
    cache = HighsCache()
    solver = HighsDominatingSetSolver(4)
    solver.register_cache(cache)
    problem = solver.build_problem(graph, set(), set(), unit_weight)
    cache.add(problem.digest)
    result = problem.solve_exact(None)
    assert result.status is ResultStatus.TIMEOUT
    assert result.solution() is None


def test_digest_is_stable_and_distinguishes_problems():
    graph = from_edges(4, [(0, 1), (1, 2), (2, 3)])
    solver = HighsDominatingSetSolver(4)
    solver.register_cache(HighsCache())
    first = solver.build_problem(graph, set(), set(), unit_weight).digest
    second = solver.build_problem(graph, set(), set(), unit_weight).digest
    third = solver.build_problem(graph, {0}, set(), unit_weight).digest
    assert first == second
    assert first != third


def test_no_digest_without_cache():
    graph = from_edges(2, [(0, 1)])
    problem = HighsDominatingSetSolver(2).build_problem(graph, set(), set(), unit_weight)
    assert problem.digest is None
    assert len(problem.solve_exact(None).solution()) == 1


def test_cache_membership():
    cache = HighsCache()
    assert 42 not in cache
    cache.add(42)
    assert 42 in cache


def test_infeasible_when_row_has_no_selectable_node():
    graph = from_edges(3, [(0, 1)])
    problem = HighsDominatingSetSolver(3).build_problem(graph, set(), {2}, unit_weight)
    assert problem.solve_exact(None).status is ResultStatus.INFEASIBLE


def test_weights_steer_solution():
    graph = from_edges(2, [(0, 1)])
    problem = HighsDominatingSetSolver(2).build_problem(
        graph, set(), set(), lambda u: 2.0 if u == 0 else 1.0
    )
    assert problem.solve_exact(None).solution() == [1]