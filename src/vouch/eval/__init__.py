"""Evaluator helper modules for vouch assertions."""

__all__ = [
    "common",
    "compare",
    "match",
]
