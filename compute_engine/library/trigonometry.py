"""Trigonometric and hyperbolic functions."""

from __future__ import annotations

from ..boxed.domains import Domain
from ..definitions import FunctionDefinition, Signature
from ..numerics import ONE, Rational

# Exact values at multiples of Pi
_AT_PI = {
    "Sin": Rational(0),
    "Cos": Rational(-1),
    "Tan": Rational(0),
}


def _at_pi(name: str, op) -> bool:
    return name in _AT_PI and op.symbol == "Pi"


def _trig(name: str, method: str):
    """Handler computing ``name`` through a numeric-tower method."""

    def handler(engine, ops):
        if len(ops) != 1:
            return None
        if _at_pi(name, ops[0]):
            return engine.number(_AT_PI[name])
        if not ops[0].is_number:
            return None
        return engine.number(getattr(ops[0].numeric_value, method)())

    handler.__name__ = f"evaluate_{name.lower()}"
    return handler


def _reciprocal(name: str, method: str):
    """``Sec``, ``Csc`` and ``Cot`` as reciprocals of the primary functions."""

    def handler(engine, ops):
        if len(ops) != 1 or not ops[0].is_number:
            return None
        return engine.number(ONE / getattr(ops[0].numeric_value, method)())

    handler.__name__ = f"evaluate_{name.lower()}"
    return handler


def _hyperbolic(name: str):
    def handler(engine, ops):
        if len(ops) != 1 or not ops[0].is_number:
            return None
        x = ops[0].numeric_value
        if x.is_zero:
            return engine.number(ONE if name == "Cosh" else x)
        plus, minus = x.exp(), (-x).exp()
        if name == "Sinh":
            return engine.number((plus - minus) / 2)
        if name == "Cosh":
            return engine.number((plus + minus) / 2)
        return engine.number((plus - minus) / (plus + minus))

    handler.__name__ = f"evaluate_{name.lower()}"
    return handler


def _definition(name: str, handler, result: Domain = Domain.NUMBER) -> FunctionDefinition:
    return FunctionDefinition(
        name,
        signature=Signature.fixed(Domain.NUMBER, result=result),
        threadable=True,
        complexity=5000,
        evaluate=handler,
    )


FUNCTIONS = [
    _definition("Sin", _trig("Sin", "sin")),
    _definition("Cos", _trig("Cos", "cos")),
    _definition("Tan", _trig("Tan", "tan")),
    _definition("Arcsin", _trig("Arcsin", "asin")),
    _definition("Arccos", _trig("Arccos", "acos")),
    _definition("Arctan", _trig("Arctan", "atan"), Domain.REAL_NUMBER),
    _definition("Sec", _reciprocal("Sec", "cos")),
    _definition("Csc", _reciprocal("Csc", "sin")),
    _definition("Cot", _reciprocal("Cot", "tan")),
    _definition("Sinh", _hyperbolic("Sinh")),
    _definition("Cosh", _hyperbolic("Cosh")),
    _definition("Tanh", _hyperbolic("Tanh")),
]
