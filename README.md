# domsolve

Exact solvers for the minimum dominating set problem on undirected graphs.

A dominating set is a set of vertices such that every vertex of the graph is
either in the set or adjacent to a vertex in it. `domsolve` finds a smallest
such set.

## Installation

```
pip install .
```

For running the test suite:

```
pip install ".[test]"
pytest
```

## Graphs and vertex sets

A graph is a sequence indexed by vertex id (`0 .. n-1`) whose entries are
collections of neighbour ids, for example a list of sets:

```python
from domsolve.exact.naive import naive_solver

path = [{1}, {0, 2}, {1}]      # 0 - 1 - 2
print(naive_solver(path))      # {1}
```

Every solver accepts two extra vertex sets, typically produced by graph
reductions:

* **covered** – vertices that are already dominated and need no constraint;
* **never_select** (called *redundant* in the builder API) – vertices that must
  never be chosen.

Solvers return the selected vertices as a `set` of ids.

## Errors

`domsolve.exact.common` defines the exceptions raised by the solvers:

* `ExactError` – base class;
* `InfeasibleError` – no solution exists (within the upper bound, if one was given);
* `ExactTimeout` – the time limit ran out;
* `TimeoutWithSolution` – a subclass of `ExactTimeout` whose `solution`
  attribute holds a valid, possibly suboptimal, dominating set.

## Solvers

### Branch and bound

`domsolve.exact.naive.naive_solver(graph, covered, never_select, upper_bound, timeout)`
searches exhaustively over candidate vertices, pruning with the best solution
found so far. It is meant for small graphs and for cross-checking the other
solvers. If no solution of at most `upper_bound` vertices exists,
`InfeasibleError` is raised; when `timeout` (seconds or `timedelta`) elapses,
`ExactTimeout` is raised.

### Integer programming with HiGHS

`domsolve.exact.highs.highs_solver(graph, covered, never_select, upper_bound, timeout)`
encodes the instance as a 0/1 linear program and solves it with the HiGHS
solver shipped with SciPy (`scipy.optimize.milp`). Constraints of vertices
that are implied by a redundant vertex with exactly two adjacent selectable
neighbours are left out.

`highs_solver_with_precious(graph, precious, covered, never_select, upper_bound, timeout)`
gives the *precious* vertices a weight slightly below one, so that among
optimal solutions those using them are preferred.

`InfeasibleError` is raised when some vertex cannot be dominated or the
solution exceeds `upper_bound`. On hitting the time limit,
`TimeoutWithSolution` is raised if the best solution found is valid,
otherwise `ExactTimeout`.

### Reusable problem builder

`domsolve.exact.highs_advanced` separates building from solving:

* `HighsDominatingSetSolver(n)` builds problems for graphs of at most `n`
  vertices (a larger graph raises `ValueError`);
* `build_problem(graph, covered, redundant, node_weights)` covers the whole graph;
* `build_problem_of_subgraph(graph, covered, redundant, nodes, node_weights)`
  restricts the constraints and variables to the listed vertices;
* `HighsProblem.number_of_variables()` and `number_of_terms()` describe the
  built program;
* `HighsProblem.solve_exact(timeout)` solves to optimality;
  `HighsProblem.solve_allow_subopt(timeout)` also accepts a suboptimal solution
  on timeout, provided it actually dominates the required vertices.

Both return a `SolverResult` with a `status` (`ResultStatus.OPTIMAL`,
`SUBOPTIMAL`, `TIMEOUT` or `INFEASIBLE`) and `nodes`; `solution()` returns the
selected vertices as a list, or `None` when there is no solution.

`unit_weight` gives every vertex weight one. A `HighsCache` registered with
`register_cache` records a digest of every problem whose `solve_exact` timed
out; an identical problem is then answered with `TIMEOUT` without solving.
Digests can be added with `cache.add(digest)` and tested with `digest in cache`.

### Solving in a separate process

`domsolve.exact.highs_sub` runs the HiGHS solve in a child process so that a
hard time limit holds even if the solver does not return:

* `solve_in_child_process(graph, covered, never_select, timeout, grace)` starts
  a fresh Python interpreter running `python -m domsolve.exact.highs_sub`;
* `solve_with_subprocess(command, graph, covered, never_select, timeout, grace)`
  does the same with any command speaking the same protocol.

The child is killed after `timeout + grace` seconds, in which case a
`TIMEOUT` result is returned; if `domsolve.algorithm.request_interrupt()` has
been called while waiting, the child is killed and `ExactTimeout` is raised.

The child side is also installed as a command:

```
domsolve-highs-child < problem.json > response.json
```

It reads a `SubprocessProblem` as JSON from standard input,

```json
{"timeout": 10, "graph": [[1], [0, 2], [1]], "covered": [], "never_select": []}
```

and writes a `SubprocessResponse` to standard output, either
`{"solution": [[1], true]}` (vertices and whether they are optimal) or
`{"solution": null}`. It exits with status 1 on its own if solving takes more
than four seconds beyond the problem's time limit.

### External MaxSAT solvers

`domsolve.exact.ext_maxsat` works with external MaxSAT solver executables:

* `write_maxsat_input(writer, graph, no_constraints, never_select)` writes the
  instance in weighted MaxSAT format with hard clauses marked `h`;
* `read_solver_response(output, graph, never_select)` parses the solver output
  (`s` and `v` lines), raising `ExactError` unless it reports `OPTIMUM FOUND`;
* `solve(solver_binary, args, graph, covered, never_select, timeout)` writes the
  instance to a temporary file, appends its path to `args`, runs the solver and
  raises `ExactTimeout` on timeout or interrupt;
* `solve_multiple(solvers, graph, covered, never_select)` starts several
  `(binary, args, timeout)` solvers on the same file and uses the output of the
  first to finish; it raises `RuntimeError` if none can be started or all time
  out.

`domsolve.exact.common.search_binary_path(name)` looks for an executable next
to the running program and then in the current working directory, raising
`FileNotFoundError` otherwise.

## Helpers

`domsolve.exact.common` also offers `closed_neighbors(graph, node)`,
`is_dominating(graph, solution, covered)` to check a result, and
`skip_constraint_nodes(graph, covered, redundant, nodes)` which computes the
vertices whose covering constraint may be omitted.

## Iterative algorithms and interruption

`domsolve.algorithm.IterativeAlgorithm` is a base for algorithms that make
progress in short steps. Subclasses implement `execute_step`, `is_completed`
and `best_known_solution`; the base class provides `run_while(predicate)`
(the predicate is checked after each step) and `run_until_timeout(timeout)`.
`TerminatingIterativeAlgorithm` adds `run_to_completion()`. `InvariantCheck`
is a base for data structures whose `is_correct()` raises on a violated
invariant.

Long-running loops stop early once `request_interrupt()` has been called (for
instance from a signal handler); `interrupt_requested()` reports the flag and
`clear_interrupt()` resets it.

## What this package does not do

`domsolve` contains solvers only. It does not read or write graph files, has
no reduction rules and no heuristic search, and offers no command that takes a
graph and prints a dominating set: the only command is the child process used
by `solve_in_child_process`. MaxSAT solver executables are not included; they
must be installed separately.