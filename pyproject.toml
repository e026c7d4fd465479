[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "domsolve"
version = "0.1.0"
description = "Exact solvers for the minimum dominating set problem: branch and bound, integer programming via HiGHS, and external MaxSAT solvers"
requires-python = ">=3.10"
keywords = [
    "dominating set",
    "graph",
    "combinatorial optimization",
    "integer programming",
    "maxsat",
    "highs",
]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Science/Research",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Scientific/Engineering :: Mathematics",
]
dependencies = [
    "numpy",
    "scipy",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
domsolve-highs-child = "domsolve.exact.highs_sub:main"

[tool.hatch.build.targets.wheel]
packages = ["domsolve"]

[tool.hatch.build.targets.sdist]
include = [
    "domsolve",
    "tests",
]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
warn_redundant_casts = true
