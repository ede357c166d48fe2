"""Helpers shared by the library tables."""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from ..boxed.domains import Domain, is_subdomain, widen
from ..numerics import BigDecimal, NumericValue, Rational

if TYPE_CHECKING:
    from ..boxed.expression import BoxedExpression
    from ..engine import ComputeEngine


def numeric_values(ops: list[BoxedExpression]) -> Optional[list[NumericValue]]:
    """The values of ``ops`` if they are all numbers, else None."""
    if not all(op.is_number for op in ops):
        return None
    return [op.numeric_value for op in ops]


def as_int(expr: BoxedExpression) -> Optional[int]:
    """The value of an integer-valued number, else None."""
    if not expr.is_number or not expr.numeric_value.is_integer:
        return None
    value = expr.numeric_value
    if isinstance(value, Rational):
        return value.numerator
    if isinstance(value, BigDecimal):
        return int(value.value)
    return int(value.to_float())


def boolean(engine: ComputeEngine, value: bool) -> BoxedExpression:
    return engine.symbol("True" if value else "False")


def truth(expr: BoxedExpression) -> Optional[bool]:
    if expr.symbol == "True":
        return True
    if expr.symbol == "False":
        return False
    return None


def numeric_result(ops: list[BoxedExpression]) -> Domain:
    """Codomain of arithmetic: the widest operand domain, at most ``Number``."""
    domain = widen(*(op.domain for op in ops))
    if domain != Domain.NOTHING and is_subdomain(domain, Domain.NUMBER):
        return domain
    return Domain.NUMBER
