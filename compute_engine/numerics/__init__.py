"""
Numeric tower: exact rationals, machine floats, arbitrary-precision decimals
and complex numbers with explicit promotion rules.
"""

from .bignum import BigDecimal
from .complex_value import ComplexValue, make_complex
from .machine import MachineFloat
from .rational import HALF, NEGATIVE_ONE, ONE, ZERO, Rational
from .tower import (
    approximate,
    euler,
    from_python,
    parse_numeral,
    pi,
    promote_pair,
    significant_digits,
)
from .value import NumericValue, TypePrecedence

__all__ = [
    "NumericValue",
    "TypePrecedence",
    "Rational",
    "MachineFloat",
    "BigDecimal",
    "ComplexValue",
    "make_complex",
    "ZERO",
    "ONE",
    "NEGATIVE_ONE",
    "HALF",
    "approximate",
    "euler",
    "from_python",
    "parse_numeral",
    "pi",
    "promote_pair",
    "significant_digits",
]
