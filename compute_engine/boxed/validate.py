"""
Operand validation against a function signature.

Invalid operands are replaced by error placeholders, never rejected:

- ``["Error", ["ErrorCode", {"str": "missing"}, domain]]`` for a required
  operand that is absent
- ``["Error", ["ErrorCode", {"str": "unexpected-argument"}], op]`` for an
  operand beyond the signature
- ``["Error", ["ErrorCode", {"str": "incompatible-domain"}, expected,
  actual], op]`` for an operand whose domain is disjoint from the expected one
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from ..core.errors import ErrorCode
from .domains import Domain, is_compatible

if TYPE_CHECKING:
    from ..definitions import FunctionDefinition
    from ..engine import ComputeEngine
    from .expression import BoxedExpression

logger = logging.getLogger(__name__)


def _check(
    engine: ComputeEngine, op: BoxedExpression, expected: Domain, threadable: bool = False
) -> BoxedExpression:
    if is_compatible(op.domain, expected):
        return op
    if threadable and op.domain == Domain.LIST:
        return op
    return engine.error(
        ErrorCode.INCOMPATIBLE_DOMAIN,
        engine.symbol(expected.value),
        engine.symbol(op.domain.value),
        original=op,
    )


def validate_operands(
    engine: ComputeEngine, definition: FunctionDefinition, ops: list[BoxedExpression]
) -> list[BoxedExpression]:
    """Operands of ``definition.name`` with invalid ones replaced by placeholders."""
    signature = definition.signature
    result: list[BoxedExpression] = []
    remaining = list(ops)

    for expected in signature.params:
        if not remaining:
            result.append(engine.error(ErrorCode.MISSING, engine.symbol(expected.value)))
            continue
        result.append(_check(engine, remaining.pop(0), expected, definition.threadable))

    for expected in signature.optional:
        if not remaining:
            break
        result.append(_check(engine, remaining.pop(0), expected, definition.threadable))

    for op in remaining:
        if op.head == "Error":
            result.append(op)
        elif signature.rest is None:
            result.append(engine.error(ErrorCode.UNEXPECTED_ARGUMENT, original=op))
        else:
            result.append(_check(engine, op, signature.rest, definition.threadable))

    created = [
        new for new in result if new.head == "Error" and all(new is not old for old in ops)
    ]
    if created:
        logger.debug(
            "Invalid operands",
            extra={"extra_data": {"head": definition.name, "errors": [e.error_kind for e in created]}},
        )
        engine.report_errors(definition.name, created)
    return result
