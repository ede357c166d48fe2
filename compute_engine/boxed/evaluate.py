"""
Evaluation tiers: simplify, evaluate and N.

All three walk the expression bottom-up and dispatch on the head's
definition:

- ``simplify`` applies exactness-preserving rewrites: the head's simplify
  handler, or its evaluate handler when every operand is an exact number
- ``evaluate`` computes exactly, falling back to the simplify handler when
  the head has no evaluate handler. Operations without an exact result stay
  symbolic; exact division by zero becomes an error placeholder
- ``N`` approximates every number and constant under the engine numeric mode
  and then evaluates. Predicates are first decided exactly, so ``N`` and
  ``evaluate`` agree on them

Heads with no definition are left alone apart from their operands.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import TYPE_CHECKING, Optional

from ..core.errors import Diagnostic, ErrorCode, EvaluationError, NotExact
from ..definitions import FunctionDefinition, HoldUntil, SymbolDefinition
from ..numerics import approximate
from .canonical import INERT_HEADS, canonical_function
from .domains import Domain
from .expression import BoxedExpression, BoxedSymbol

if TYPE_CHECKING:
    from ..engine import ComputeEngine

logger = logging.getLogger(__name__)


class Tier(Enum):
    SIMPLIFY = "simplify"
    EVALUATE = "evaluate"
    N = "N"


def simplify(expr: BoxedExpression) -> BoxedExpression:
    return _run(expr, Tier.SIMPLIFY)


def evaluate(expr: BoxedExpression) -> BoxedExpression:
    return _run(expr, Tier.EVALUATE)


def N(expr: BoxedExpression) -> BoxedExpression:
    return _run(expr, Tier.N)


def _run(expr: BoxedExpression, tier: Tier) -> BoxedExpression:
    engine = expr.engine
    expr = expr.canonical
    try:
        return _evaluate(engine, expr, tier)
    except RecursionError:
        logger.warning("Evaluation exceeded the recursion limit", extra={"extra_data": {"tier": tier.value}})
        return engine.error(ErrorCode.RECURSION_DEPTH_EXCEEDED, original=expr)


def _evaluate(engine: ComputeEngine, expr: BoxedExpression, tier: Tier) -> BoxedExpression:
    if expr.is_number:
        if tier == Tier.N:
            return engine.number(approximate(expr.numeric_value, engine.numeric_mode, engine.precision))
        return expr
    if isinstance(expr, BoxedSymbol):
        return _evaluate_symbol(engine, expr, tier)
    if not expr.is_function:
        return expr
    return _evaluate_function(engine, expr, tier)


def _substitutes(hold_until: HoldUntil, tier: Tier) -> bool:
    if hold_until == HoldUntil.NEVER:
        return True
    if hold_until == HoldUntil.EVALUATE:
        return tier in (Tier.EVALUATE, Tier.N)
    return tier == Tier.N


def _evaluate_symbol(engine: ComputeEngine, expr: BoxedSymbol, tier: Tier) -> BoxedExpression:
    definition = engine.lookup_value(expr.name, expr.scope_id)
    if not isinstance(definition, SymbolDefinition):
        if definition is None and tier == Tier.N:
            engine.report(
                Diagnostic(
                    code=ErrorCode.UNBOUND_SYMBOL.value,
                    message=f"Unbound symbol '{expr.name}'",
                    details={"symbol": expr.name},
                )
            )
        return expr
    if definition.value is not None and _substitutes(definition.hold_until, tier):
        return _evaluate(engine, engine.box(definition.value), tier)
    if tier == Tier.N and definition.approximate is not None:
        return engine.number(definition.approximate(engine.numeric_mode, engine.precision))
    return expr


def _handler(definition: FunctionDefinition, tier: Tier, ops: list[BoxedExpression]):
    if tier == Tier.N:
        return definition.N or definition.evaluate or definition.simplify
    if tier == Tier.EVALUATE:
        return definition.evaluate or definition.simplify
    if definition.simplify is not None:
        return definition.simplify
    if ops and all(op.is_number and op.is_exact for op in ops):
        return definition.evaluate
    return None


def _evaluate_function(engine: ComputeEngine, expr: BoxedExpression, tier: Tier) -> BoxedExpression:
    if expr.head in INERT_HEADS:
        return expr
    definition = expr.definition
    if definition is None:
        ops = [_evaluate(engine, op, tier) for op in expr.ops]
        return canonical_function(engine, expr.head, ops)

    if tier == Tier.N and definition.N is None and expr.domain == Domain.BOOLEAN:
        # Predicates are decided on exact operands when they can be
        exact = _evaluate_function(engine, expr, Tier.EVALUATE)
        if exact.symbol in ("True", "False"):
            return exact
    ops = [
        op if definition.hold.holds(i) else _evaluate(engine, op, tier)
        for i, op in enumerate(expr.ops)
    ]
    if any(op.head == "Error" for op in ops):
        return canonical_function(engine, expr.head, ops)
    if definition.threadable and any(op.head == "List" for op in ops):
        return _thread(engine, definition, ops, tier)

    handler = _handler(definition, tier, ops)
    result: Optional[BoxedExpression] = None
    if handler is not None:
        try:
            result = handler(engine, ops)
        except NotExact:
            result = None
        except EvaluationError as e:
            engine.report(Diagnostic(code=e.code.value, message=e.message, details=e.details))
            return engine.error(e.code, original=expr)
    if result is None:
        return canonical_function(engine, expr.head, ops)
    return result


def _thread(
    engine: ComputeEngine, definition: FunctionDefinition, ops: list[BoxedExpression], tier: Tier
) -> BoxedExpression:
    """Apply ``definition`` elementwise over its ``List`` operands."""
    length = max(op.nops for op in ops if op.head == "List")
    items = []
    for k in range(length):
        args = [
            (op.ops[k] if k < op.nops else engine.NOTHING) if op.head == "List" else op
            for op in ops
        ]
        items.append(_evaluate(engine, engine.function(definition.name, args), tier))
    return engine.function("List", items)
