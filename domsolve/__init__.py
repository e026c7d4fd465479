"""Exact solvers for the minimum dominating set problem and iterative-algorithm helpers."""

__version__ = "0.1.0"

__all__ = ["algorithm", "exact"]