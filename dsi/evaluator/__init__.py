"""Condition evaluation against data records."""

from .condition_evaluator import (
    MISSING,
    evaluate,
    evaluate_chain,
    evaluate_condition,
    resolve_path,
    to_canonical_string,
)

__all__ = [
    "MISSING",
    "evaluate",
    "evaluate_chain",
    "evaluate_condition",
    "resolve_path",
    "to_canonical_string",
]
