"""
Canonical order of the operands of commutative functions.

Numbers come first, by value, then symbols, strings and functions. Functions
are ordered by the complexity of their head, then head name, arity and
operands.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .expression import BoxedExpression

DEFAULT_COMPLEXITY = 100_000


def sort_key(expr: BoxedExpression) -> tuple:
    """Total order key; stable for structurally identical expressions."""
    if expr.is_number:
        return (0, expr.numeric_value.sort_key())
    if expr.symbol is not None:
        return (1, expr.symbol)
    if expr.string is not None:
        return (2, expr.string)
    definition = getattr(expr, "definition", None)
    complexity = definition.complexity if definition is not None else DEFAULT_COMPLEXITY
    return (3, complexity, expr.head, expr.nops, tuple(sort_key(op) for op in expr.ops))


def sort_operands(ops: list[BoxedExpression]) -> list[BoxedExpression]:
    return sorted(ops, key=sort_key)
