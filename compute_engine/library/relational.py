"""Relational operators and logic connectives."""

from __future__ import annotations

import math

from ..boxed.domains import Domain
from ..definitions import FunctionDefinition, Signature
from .common import boolean, truth

BOOLEAN = Domain.BOOLEAN

# Relative tolerance of Approx
APPROX_TOLERANCE = 1e-10


def evaluate_equal(engine, ops):
    if len(ops) != 2:
        return None
    a, b = ops
    if a.is_number and b.is_number:
        return boolean(engine, a.numeric_value.compare(b.numeric_value) == 0)
    if a.is_same(b):
        return boolean(engine, True)
    if a.string is not None and b.string is not None:
        return boolean(engine, False)
    return None


def evaluate_not_equal(engine, ops):
    result = evaluate_equal(engine, ops)
    if result is None:
        return None
    return boolean(engine, not truth(result))


def _ordering(accept: tuple[int, ...]):
    """Handler comparing two real numbers; NaN compares false."""

    def handler(engine, ops):
        if len(ops) != 2 or not all(op.is_number for op in ops):
            return None
        a, b = ops[0].numeric_value, ops[1].numeric_value
        if not (a.is_real and b.is_real):
            return None
        return boolean(engine, a.compare(b) in accept)

    return handler


def evaluate_approx(engine, ops):
    if len(ops) != 2 or not all(op.is_number for op in ops):
        return None
    a, b = (op.numeric_value.to_float() for op in ops)
    return boolean(engine, math.isclose(a, b, rel_tol=APPROX_TOLERANCE, abs_tol=APPROX_TOLERANCE))


def _connective(name: str, absorbing: bool):
    """``And`` (absorbing False) and ``Or`` (absorbing True)."""

    def handler(engine, ops):
        values = [truth(op) for op in ops]
        if absorbing in values:
            return boolean(engine, absorbing)
        rest = [op for op, value in zip(ops, values) if value is None]
        if not rest:
            return boolean(engine, not absorbing)
        if len(rest) == len(ops):
            return None
        return rest[0] if len(rest) == 1 else engine.function(name, rest)

    return handler


def canonical_not(engine, ops):
    if len(ops) == 1 and ops[0].head == "Not":
        return ops[0].op1
    return None


def evaluate_not(engine, ops):
    value = truth(ops[0])
    return None if value is None else boolean(engine, not value)


def evaluate_implies(engine, ops):
    p, q = truth(ops[0]), truth(ops[1])
    if p is False or q is True:
        return boolean(engine, True)
    if p is True:
        return ops[1] if q is None else boolean(engine, q)
    return None


def evaluate_equivalent(engine, ops):
    p, q = truth(ops[0]), truth(ops[1])
    if p is None or q is None:
        return None
    return boolean(engine, p == q)


def _relation(name: str, handler, domain: Domain = Domain.NUMBER):
    return FunctionDefinition(
        name,
        signature=Signature.fixed(domain, domain, result=BOOLEAN),
        complexity=11000,
        evaluate=handler,
    )


FUNCTIONS = [
    _relation("Equal", evaluate_equal, Domain.ANYTHING),
    _relation("NotEqual", evaluate_not_equal, Domain.ANYTHING),
    _relation("Less", _ordering((-1,))),
    _relation("LessEqual", _ordering((-1, 0))),
    _relation("Greater", _ordering((1,))),
    _relation("GreaterEqual", _ordering((0, 1))),
    _relation("Approx", evaluate_approx),
    FunctionDefinition(
        "And",
        signature=Signature.variadic(BOOLEAN, result=BOOLEAN),
        commutative=True,
        associative=True,
        idempotent=True,
        complexity=10000,
        evaluate=_connective("And", False),
    ),
    FunctionDefinition(
        "Or",
        signature=Signature.variadic(BOOLEAN, result=BOOLEAN),
        commutative=True,
        associative=True,
        idempotent=True,
        complexity=10000,
        evaluate=_connective("Or", True),
    ),
    FunctionDefinition(
        "Not",
        signature=Signature.fixed(BOOLEAN, result=BOOLEAN),
        complexity=10100,
        canonical=canonical_not,
        evaluate=evaluate_not,
    ),
    FunctionDefinition(
        "Implies",
        signature=Signature.fixed(BOOLEAN, BOOLEAN, result=BOOLEAN),
        complexity=10200,
        evaluate=evaluate_implies,
    ),
    FunctionDefinition(
        "Equivalent",
        signature=Signature.fixed(BOOLEAN, BOOLEAN, result=BOOLEAN),
        commutative=True,
        complexity=10200,
        evaluate=evaluate_equivalent,
    ),
]
