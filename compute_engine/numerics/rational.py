"""
Exact rational numbers.

A Rational stores an arbitrary-size numerator and a positive denominator in
lowest terms. Integers are rationals with denominator 1. Operations that have
no exact result raise ``NotExact``; exact division by zero raises
``DivisionByZero``.
"""

from __future__ import annotations

import math
from fractions import Fraction
from typing import Any, ClassVar, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..core.errors import DivisionByZero, NotExact
from .value import NumericValue, TypePrecedence

# Refuse exact powers whose result would exceed this many bits
MAX_EXACT_POWER_BITS = 1_000_000

# Integers beyond this magnitude serialize as {"num": "..."}
MAX_SAFE_INTEGER = 2**53 - 1


def gcd(a: int, b: int) -> int:
    """Greatest Common Divisor (always non-negative)."""
    return math.gcd(a, b)


def lcm(a: int, b: int) -> int:
    """Least Common Multiple."""
    if a == 0 or b == 0:
        return 0
    return abs(a // gcd(a, b) * b)


def reduce_fraction(num: int, den: int) -> tuple[int, int]:
    """
    Reduce fraction to lowest terms.

    Ensures denominator is positive.
    """
    if den == 0:
        raise DivisionByZero()
    if den < 0:
        num, den = -num, -den
    g = gcd(num, den)
    if g > 1:
        return (num // g, den // g)
    return (num, den)


def integer_root(n: int, k: int) -> Optional[int]:
    """Exact k-th root of a non-negative integer, or None."""
    if n < 0:
        return None
    if n in (0, 1):
        return n
    # Newton iteration on integers
    x = 1 << ((n.bit_length() + k - 1) // k)
    while True:
        y = ((k - 1) * x + n // x ** (k - 1)) // k
        if y >= x:
            break
        x = y
    return x if x**k == n else None


class Rational(BaseModel, NumericValue):
    """
    Rational represents an exact number as numerator/denominator.

    Examples:
        >>> Rational(1, 2)  # 1/2
        >>> Rational(6, -4)  # -3/2
        >>> Rational(5)  # the integer 5
    """

    model_config = ConfigDict(frozen=True)

    numerator: int = Field(description="The numerator")
    denominator: int = Field(default=1, description="The denominator, always positive")

    type_precedence: ClassVar[TypePrecedence] = TypePrecedence.RATIONAL

    def __init__(self, num: int, den: int = 1, **kwargs):
        """
        Create a Rational in lowest terms.

        Raises:
            DivisionByZero: if ``den`` is zero
        """
        if isinstance(num, bool) or not isinstance(num, int) or not isinstance(den, int):
            raise TypeError(f"Rational expects integers, got {num!r}/{den!r}")
        num, den = reduce_fraction(num, den)
        super().__init__(numerator=num, denominator=den, **kwargs)

    def promote(self, other: NumericValue) -> NumericValue:
        from .bignum import BigDecimal
        from .complex_value import ComplexValue
        from .machine import MachineFloat

        if isinstance(other, MachineFloat):
            return MachineFloat(self.to_float())
        if isinstance(other, BigDecimal):
            return BigDecimal.from_rational(self, other.precision)
        if isinstance(other, ComplexValue):
            return ComplexValue(self, ZERO)
        return self

    # Predicates

    @property
    def is_exact(self) -> bool:
        return True

    @property
    def is_zero(self) -> bool:
        return self.numerator == 0

    @property
    def is_one(self) -> bool:
        return self.numerator == 1 and self.denominator == 1

    @property
    def is_integer(self) -> bool:
        return self.denominator == 1

    def sign(self) -> int:
        return (self.numerator > 0) - (self.numerator < 0)

    def compare(self, other: NumericValue) -> Optional[int]:
        from .tower import promote_pair

        a, b = promote_pair(self, other)
        if a is not self:
            return a.compare(b)
        lhs = self.numerator * b.denominator
        rhs = b.numerator * self.denominator
        return (lhs > rhs) - (lhs < rhs)

    def to_float(self) -> float:
        try:
            return self.numerator / self.denominator
        except OverflowError:
            return math.inf if self.numerator > 0 else -math.inf

    def sort_key(self) -> tuple:
        # Exact, so integers beyond the float range keep their order
        return (0, Fraction(self.numerator, self.denominator), repr(self))

    def to_json(self) -> Any:
        if self.denominator == 1:
            if abs(self.numerator) <= MAX_SAFE_INTEGER:
                return self.numerator
            return {"num": str(self.numerator)}
        return ["Rational", Rational(self.numerator).to_json(), Rational(self.denominator).to_json()]

    def __repr__(self) -> str:
        if self.denominator == 1:
            return f"Rational({self.numerator})"
        return f"Rational({self.numerator}, {self.denominator})"

    def __str__(self) -> str:
        if self.denominator == 1:
            return str(self.numerator)
        return f"{self.numerator}/{self.denominator}"

    # Arithmetic

    def _add(self, other: Rational) -> Rational:
        return Rational(
            self.numerator * other.denominator + other.numerator * self.denominator,
            self.denominator * other.denominator,
        )

    def _mul(self, other: Rational) -> Rational:
        return Rational(
            self.numerator * other.numerator, self.denominator * other.denominator
        )

    def _div(self, other: Rational) -> Rational:
        if other.is_zero:
            raise DivisionByZero()
        return Rational(
            self.numerator * other.denominator, self.denominator * other.numerator
        )

    def _pow(self, other: Rational) -> NumericValue:
        if other.is_integer:
            return self._pow_int(other.numerator)
        # Fractional exponent: exact only for perfect roots of non-negative bases
        if self.numerator < 0:
            raise NotExact("power of a negative rational to a fractional exponent")
        root_num = integer_root(self.numerator, other.denominator)
        root_den = integer_root(self.denominator, other.denominator)
        if root_num is None or root_den is None:
            raise NotExact("fractional power")
        return Rational(root_num, root_den)._pow_int(other.numerator)

    def _pow_int(self, k: int) -> Rational:
        if k == 0:
            return ONE
        if k < 0:
            if self.is_zero:
                raise DivisionByZero()
            return Rational(self.denominator, self.numerator)._pow_int(-k)
        bits = max(abs(self.numerator).bit_length(), self.denominator.bit_length())
        if bits * k > MAX_EXACT_POWER_BITS and abs(self.numerator) != self.denominator:
            raise NotExact("power exceeding the exact size limit")
        return Rational(self.numerator**k, self.denominator**k)

    def __neg__(self) -> Rational:
        return Rational(-self.numerator, self.denominator)

    def __abs__(self) -> Rational:
        return Rational(abs(self.numerator), self.denominator)

    # Rounding

    def floor(self) -> Rational:
        return Rational(self.numerator // self.denominator)

    def ceil(self) -> Rational:
        return Rational(-((-self.numerator) // self.denominator))

    def round(self) -> Rational:
        """Round half away from zero."""
        twice = abs(self.numerator) * 2 + self.denominator
        magnitude = twice // (2 * self.denominator)
        return Rational(magnitude if self.numerator >= 0 else -magnitude)

    # Transcendentals: exact only at trivial points

    def sqrt(self) -> NumericValue:
        if self.numerator < 0:
            from .complex_value import make_complex

            return make_complex(ZERO, (-self).sqrt())
        return self._pow(HALF)

    def exp(self) -> NumericValue:
        if self.is_zero:
            return ONE
        raise NotExact("exp")

    def ln(self) -> NumericValue:
        if self.is_one:
            return ZERO
        raise NotExact("ln")

    def sin(self) -> NumericValue:
        if self.is_zero:
            return ZERO
        raise NotExact("sin")

    def cos(self) -> NumericValue:
        if self.is_zero:
            return ONE
        raise NotExact("cos")

    def tan(self) -> NumericValue:
        if self.is_zero:
            return ZERO
        raise NotExact("tan")

    def asin(self) -> NumericValue:
        if self.is_zero:
            return ZERO
        raise NotExact("asin")

    def acos(self) -> NumericValue:
        if self.is_one:
            return ZERO
        raise NotExact("acos")

    def atan(self) -> NumericValue:
        if self.is_zero:
            return ZERO
        raise NotExact("atan")


ZERO = Rational(0)
ONE = Rational(1)
NEGATIVE_ONE = Rational(-1)
HALF = Rational(1, 2)
