"""
Arbitrary-precision decimal numbers.

Arithmetic uses ``decimal`` with all traps disabled, so non-finite results
follow IEEE rules (1/0 is Infinity, 0/0 is NaN). Transcendental functions
the ``decimal`` module lacks are evaluated with sympy at the value's
precision.
"""

from __future__ import annotations

import decimal
from decimal import Decimal
from typing import Any, ClassVar, Optional

import sympy as sp
from pydantic import BaseModel, ConfigDict, Field

from .value import NumericValue, TypePrecedence

DEFAULT_PRECISION = 100


def decimal_context(precision: int) -> decimal.Context:
    """A decimal context that never raises."""
    return decimal.Context(prec=precision, rounding=decimal.ROUND_HALF_EVEN, traps=[])


def sympy_float(value: Decimal, precision: int) -> sp.Float:
    return sp.Float(str(value), precision)


def from_sympy(result: Any, precision: int) -> Decimal:
    """Convert a real sympy number to a Decimal with ``precision`` digits."""
    text = str(sp.N(result, precision))
    return decimal_context(precision).create_decimal(text)


class BigDecimal(BaseModel, NumericValue):
    """
    Arbitrary-precision decimal value.

    The representation used by N() when the engine runs in bignum mode. The
    precision (significant digits) travels with the value; binary operations
    use the larger precision of their operands.
    """

    model_config = ConfigDict(frozen=True)

    value: Any = Field(description="The numeric value, a Decimal")
    precision: int = Field(default=DEFAULT_PRECISION, description="Significant digits")

    type_precedence: ClassVar[TypePrecedence] = TypePrecedence.APPROXIMATE

    def __init__(self, value: Decimal | int | str, precision: int = DEFAULT_PRECISION, **kwargs):
        if not isinstance(value, Decimal):
            value = decimal_context(precision).create_decimal(value)
        super().__init__(value=decimal_context(precision).plus(value), precision=precision, **kwargs)

    @classmethod
    def from_rational(cls, rational: Any, precision: int) -> BigDecimal:
        ctx = decimal_context(precision)
        return cls(ctx.divide(Decimal(rational.numerator), Decimal(rational.denominator)), precision)

    @property
    def context(self) -> decimal.Context:
        return decimal_context(self.precision)

    def _new(self, value: Decimal, precision: Optional[int] = None) -> BigDecimal:
        return BigDecimal(value, precision or self.precision)

    def promote(self, other: NumericValue) -> NumericValue:
        from .complex_value import ComplexValue

        if isinstance(other, ComplexValue):
            return ComplexValue(self, BigDecimal(0, self.precision))
        return self

    # Predicates

    @property
    def is_zero(self) -> bool:
        return self.value.is_zero()

    @property
    def is_one(self) -> bool:
        return self.value == 1

    @property
    def is_nan(self) -> bool:
        return self.value.is_nan()

    @property
    def is_finite(self) -> bool:
        return self.value.is_finite()

    @property
    def is_integer(self) -> bool:
        return self.is_finite and self.value == self.value.to_integral_value()

    def sign(self) -> Optional[int]:
        if self.is_nan:
            return None
        if self.value.is_zero():
            return 0
        return -1 if self.value.is_signed() else 1

    def compare(self, other: NumericValue) -> Optional[int]:
        from .tower import promote_pair

        a, b = promote_pair(self, other)
        if a is not self:
            return a.compare(b)
        if self.is_nan or b.is_nan:
            return None
        return (self.value > b.value) - (self.value < b.value)

    def to_float(self) -> float:
        return float(self.value)

    def to_json(self) -> Any:
        if self.is_nan:
            return {"num": "NaN"}
        if self.value.is_infinite():
            return {"num": "-Infinity" if self.value.is_signed() else "+Infinity"}
        return {"num": str(self.value)}

    def __repr__(self) -> str:
        return f"BigDecimal({str(self.value)!r}, precision={self.precision})"

    def __str__(self) -> str:
        return str(self.value)

    # Arithmetic

    def _binary(self, other: BigDecimal, op: str) -> BigDecimal:
        precision = max(self.precision, other.precision)
        ctx = decimal_context(precision)
        return BigDecimal(getattr(ctx, op)(self.value, other.value), precision)

    def _add(self, other: BigDecimal) -> BigDecimal:
        return self._binary(other, "add")

    def _mul(self, other: BigDecimal) -> BigDecimal:
        return self._binary(other, "multiply")

    def _div(self, other: BigDecimal) -> BigDecimal:
        return self._binary(other, "divide")

    def _pow(self, other: BigDecimal) -> NumericValue:
        if self.is_nan or other.is_nan:
            return self._new(Decimal("NaN"))
        if self.value < 0 and other.is_finite and not other.is_integer:
            from .complex_value import ComplexValue

            return ComplexValue(self, BigDecimal(0, self.precision))._pow(
                ComplexValue(other, BigDecimal(0, other.precision))
            )
        if self.is_zero and other.value < 0:
            return self._new(Decimal("Infinity"))
        return self._binary(other, "power")

    def __neg__(self) -> BigDecimal:
        return self._new(-self.value)

    def __abs__(self) -> BigDecimal:
        return self._new(abs(self.value))

    # Rounding

    def _to_integer(self, rounding: str) -> NumericValue:
        if not self.is_finite:
            return self
        from .rational import Rational

        return Rational(int(self.value.to_integral_value(rounding=rounding)))

    def floor(self) -> NumericValue:
        return self._to_integer(decimal.ROUND_FLOOR)

    def ceil(self) -> NumericValue:
        return self._to_integer(decimal.ROUND_CEILING)

    def round(self) -> NumericValue:
        return self._to_integer(decimal.ROUND_HALF_UP)

    # Transcendentals

    def _complex(self, fn) -> NumericValue:
        from .complex_value import from_sympy_complex

        return from_sympy_complex(fn(sympy_float(self.value, self.precision)), self.precision)

    def _sympy(self, fn) -> BigDecimal:
        if self.is_nan:
            return self
        if not self.is_finite:
            return self._new(Decimal("NaN"))
        return self._new(from_sympy(fn(sympy_float(self.value, self.precision)), self.precision))

    def sqrt(self) -> NumericValue:
        if self.is_nan or self.value == Decimal("-Infinity"):
            return self._new(Decimal("NaN"))
        if self.value < 0:
            return self._complex(sp.sqrt)
        return self._new(self.context.sqrt(self.value))

    def exp(self) -> NumericValue:
        return self._new(self.context.exp(self.value))

    def ln(self) -> NumericValue:
        if self.is_nan or self.value == Decimal("-Infinity"):
            return self._new(Decimal("NaN"))
        if self.is_zero:
            return self._new(Decimal("-Infinity"))
        if self.value < 0:
            return self._complex(sp.log)
        return self._new(self.context.ln(self.value))

    def sin(self) -> NumericValue:
        return self._sympy(sp.sin)

    def cos(self) -> NumericValue:
        return self._sympy(sp.cos)

    def tan(self) -> NumericValue:
        return self._sympy(sp.tan)

    def asin(self) -> NumericValue:
        if self.is_finite and abs(self.value) > 1:
            return self._complex(sp.asin)
        return self._sympy(sp.asin)

    def acos(self) -> NumericValue:
        if self.is_finite and abs(self.value) > 1:
            return self._complex(sp.acos)
        return self._sympy(sp.acos)

    def atan(self) -> NumericValue:
        if self.value.is_infinite():
            return self._new(from_sympy(sp.pi / 2, self.precision) * (-1 if self.value.is_signed() else 1))
        return self._sympy(sp.atan)

    def gamma(self) -> NumericValue:
        """The gamma function at the precision of the value, NaN at the poles."""
        if self.value == Decimal("Infinity"):
            return self
        if self.is_integer and self.value <= 0:
            return self._new(Decimal("NaN"))
        return self._sympy(sp.gamma)


def pi(precision: int) -> BigDecimal:
    return BigDecimal(from_sympy(sp.pi, precision), precision)


def euler(precision: int) -> BigDecimal:
    return BigDecimal(from_sympy(sp.E, precision), precision)
