"""
Promotion rules and conversions between numeric representations.

Promotion order is ``Rational < (MachineFloat | BigDecimal) < ComplexValue``.
Machine floats and decimals never promote into each other: the engine runs in
one numeric mode and callers convert with ``approximate()`` explicitly.
"""

from __future__ import annotations

import math
import re
from decimal import Decimal
from fractions import Fraction
from typing import Any, Optional

from ..core.config import NumericMode
from ..core.errors import NumericModeError
from .bignum import DEFAULT_PRECISION, BigDecimal, decimal_context
from .bignum import euler as big_euler
from .bignum import pi as big_pi
from .complex_value import ComplexValue, from_python_complex
from .machine import MachineFloat
from .rational import Rational
from .value import NumericValue

# Decimal literals with more significant digits than this do not fit a double
MACHINE_DIGITS = 15

_NUMERAL = re.compile(
    r"^(?P<sign>[+-]?)(?P<int>\d*)(?:\.(?P<frac>\d*))?(?:[eE](?P<exp>[+-]?\d+))?$"
)


def from_python(value: Any) -> NumericValue:
    """Wrap a Python number in its numeric-tower representation."""
    if isinstance(value, NumericValue):
        return value
    if isinstance(value, bool):
        raise TypeError("Booleans are not numbers")
    if isinstance(value, int):
        return Rational(value)
    if isinstance(value, Fraction):
        return Rational(value.numerator, value.denominator)
    if isinstance(value, float):
        return MachineFloat(value)
    if isinstance(value, Decimal):
        return BigDecimal(value)
    if isinstance(value, complex):
        return from_python_complex(value)
    raise TypeError(f"Cannot convert {type(value).__name__} to a numeric value")


def _approximate_kind(value: NumericValue) -> Optional[str]:
    if isinstance(value, MachineFloat):
        return "machine"
    if isinstance(value, BigDecimal):
        return "bignum"
    if isinstance(value, ComplexValue):
        return _approximate_kind(value.re)
    return None


def promote_pair(a: Any, b: Any) -> tuple[NumericValue, NumericValue]:
    """
    Convert two values to a common representation.

    Raises:
        NumericModeError: if a machine float meets a decimal
    """
    a, b = from_python(a), from_python(b)
    kinds = {_approximate_kind(a), _approximate_kind(b)} - {None}
    if len(kinds) > 1:
        raise NumericModeError(type(a).__name__, type(b).__name__)
    if a.type_precedence < b.type_precedence:
        a = a.promote(b)
    elif b.type_precedence < a.type_precedence:
        b = b.promote(a)
    if isinstance(a, ComplexValue) and isinstance(b, ComplexValue):
        a, b = a.unify(b)
    return a, b


def significant_digits(text: str) -> int:
    """Count the significant digits of a decimal numeral."""
    match = _NUMERAL.match(text.strip())
    if not match:
        return 0
    digits = (match.group("int") + (match.group("frac") or "")).lstrip("0")
    return len(digits)


def parse_numeral(
    text: str, mode: NumericMode = NumericMode.MACHINE, precision: int = DEFAULT_PRECISION
) -> Optional[NumericValue]:
    """
    Parse the string of a ``{"num": ...}`` node.

    Integers are exact. Other numerals are approximate, in the representation
    of ``mode``. Returns None when the text is not a numeral.
    """
    text = text.strip().replace("_", "")
    if text in ("NaN", "+NaN", "-NaN"):
        return approximate_special(math.nan, mode, precision)
    if text in ("Infinity", "+Infinity", "oo", "+oo"):
        return approximate_special(math.inf, mode, precision)
    if text in ("-Infinity", "-oo"):
        return approximate_special(-math.inf, mode, precision)
    match = _NUMERAL.match(text)
    if not match or not (match.group("int") or match.group("frac")):
        return None
    if match.group("frac") is None and match.group("exp") is None:
        return Rational(int(text))
    if mode == NumericMode.BIGNUM:
        return BigDecimal(decimal_context(precision).create_decimal(text), precision)
    return MachineFloat(float(text))


def approximate_special(value: float, mode: NumericMode, precision: int) -> NumericValue:
    """NaN or an infinity in the representation of ``mode``."""
    if mode == NumericMode.BIGNUM:
        return BigDecimal(Decimal(value), precision)
    return MachineFloat(value)


def approximate(
    value: NumericValue, mode: NumericMode = NumericMode.MACHINE, precision: int = DEFAULT_PRECISION
) -> NumericValue:
    """Convert ``value`` to the approximate representation of ``mode``."""
    if isinstance(value, ComplexValue):
        return ComplexValue(
            approximate(value.re, mode, precision), approximate(value.im, mode, precision)
        )
    if mode == NumericMode.BIGNUM:
        if isinstance(value, BigDecimal):
            return value if value.precision == precision else BigDecimal(value.value, precision)
        if isinstance(value, Rational):
            return BigDecimal.from_rational(value, precision)
        if isinstance(value, MachineFloat):
            if not value.is_finite:
                return approximate_special(value.value, mode, precision)
            return BigDecimal(Decimal(repr(value.value)), precision)
    else:
        if isinstance(value, MachineFloat):
            return value
        if isinstance(value, (Rational, BigDecimal)):
            return MachineFloat(value.to_float())
    raise TypeError(f"Cannot approximate {value!r}")


def pi(mode: NumericMode = NumericMode.MACHINE, precision: int = DEFAULT_PRECISION) -> NumericValue:
    if mode == NumericMode.BIGNUM:
        return big_pi(precision)
    return MachineFloat(math.pi)


def euler(mode: NumericMode = NumericMode.MACHINE, precision: int = DEFAULT_PRECISION) -> NumericValue:
    if mode == NumericMode.BIGNUM:
        return big_euler(precision)
    return MachineFloat(math.e)
