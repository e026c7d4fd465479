"""Exact dominating set solvers: branch and bound, HiGHS integer programming, and external MaxSAT."""

__all__ = ["common", "naive", "highs", "highs_advanced", "highs_sub", "ext_maxsat"]