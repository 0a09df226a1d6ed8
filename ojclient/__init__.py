"""Submission and execution orchestration for an online-judge client."""

__version__ = "1.0.0"
