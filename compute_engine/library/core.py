"""
Core heads and constants: collections, structural heads and the constants
every engine knows about.
"""

from __future__ import annotations

from ..boxed.domains import NUMBER_SET_DOMAINS, Domain
from ..definitions import FunctionDefinition, Hold, HoldUntil, Signature, SymbolDefinition
from ..numerics import euler, pi


def _sequence_canonical(engine, ops):
    return ops[0] if len(ops) == 1 else None


SYMBOLS = [
    SymbolDefinition("Nothing", domain=Domain.NOTHING, constant=True),
    SymbolDefinition("True", domain=Domain.BOOLEAN, constant=True),
    SymbolDefinition("False", domain=Domain.BOOLEAN, constant=True),
    SymbolDefinition(
        "Pi", domain=Domain.REAL_NUMBER, constant=True, hold_until=HoldUntil.N, approximate=pi
    ),
    SymbolDefinition(
        "ExponentialE",
        domain=Domain.REAL_NUMBER,
        constant=True,
        hold_until=HoldUntil.N,
        approximate=euler,
    ),
    SymbolDefinition(
        "ImaginaryUnit",
        domain=Domain.IMAGINARY_NUMBER,
        constant=True,
        value=["Complex", 0, 1],
    ),
    SymbolDefinition(
        "PositiveInfinity",
        domain=Domain.EXTENDED_REAL_NUMBER,
        constant=True,
        value={"num": "+Infinity"},
        hold_until=HoldUntil.N,
    ),
    SymbolDefinition("EmptySet", domain=Domain.SET, constant=True),
    *(SymbolDefinition(name, domain=Domain.SET, constant=True) for name in NUMBER_SET_DOMAINS),
]

FUNCTIONS = [
    FunctionDefinition("Sequence", canonical=_sequence_canonical, complexity=9000),
    FunctionDefinition("List", signature=Signature(result=Domain.LIST), complexity=8200),
    FunctionDefinition("Tuple", signature=Signature(result=Domain.TUPLE), complexity=8200),
    FunctionDefinition("Pair", hold=Hold.ALL, complexity=8200),
    FunctionDefinition("Triple", hold=Hold.ALL, complexity=8200),
    FunctionDefinition(
        "Matrix", signature=Signature.fixed(Domain.LIST, result=Domain.LIST), complexity=8300
    ),
    FunctionDefinition("Apply", hold=Hold.FIRST, complexity=9000),
]
