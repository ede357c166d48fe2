"""
Complex numbers as a pair of real numeric values.

Both components always share one representation (two rationals, two machine
floats or two decimals). A complex result whose imaginary part is zero
collapses back to its real part through ``make_complex``.
"""

from __future__ import annotations

import cmath
import math
from decimal import Decimal
from typing import Any, ClassVar, Optional

import sympy as sp
from pydantic import BaseModel, ConfigDict, Field

from ..core.errors import DivisionByZero, NotExact
from .value import NumericValue, TypePrecedence

# Largest exponent computed by repeated multiplication on exact components
MAX_EXACT_COMPLEX_POWER = 1024


def make_complex(re: NumericValue, im: NumericValue) -> NumericValue:
    """Build a complex value, or return ``re`` when ``im`` is zero."""
    if im.is_zero:
        return re
    return ComplexValue(re, im)


def from_python_complex(z: complex) -> NumericValue:
    from .machine import MachineFloat

    return make_complex(MachineFloat(z.real), MachineFloat(z.imag))


def from_sympy_complex(expr: Any, precision: int) -> NumericValue:
    """Convert a sympy number (possibly complex) to decimal components."""
    from .bignum import BigDecimal, from_sympy

    re, im = sp.N(expr, precision).as_real_imag()
    return make_complex(
        BigDecimal(from_sympy(re, precision), precision),
        BigDecimal(from_sympy(im, precision), precision),
    )


def _nan_like(value: NumericValue) -> NumericValue:
    from .bignum import BigDecimal
    from .machine import MachineFloat

    if isinstance(value, BigDecimal):
        return BigDecimal(Decimal("NaN"), value.precision)
    return MachineFloat(math.nan)


class ComplexValue(BaseModel, NumericValue):
    """
    Complex value with real and imaginary components.

    Entered only when a real-domain operation receives an out-of-domain
    argument (``sqrt(-1)``, ``ln(-2)``, ``asin(3)``) or when an operand is
    already complex.
    """

    model_config = ConfigDict(frozen=True)

    re: Any = Field(description="Real part")
    im: Any = Field(description="Imaginary part")

    type_precedence: ClassVar[TypePrecedence] = TypePrecedence.COMPLEX

    def __init__(self, re: Any, im: Any, **kwargs):
        from .tower import from_python, promote_pair

        re, im = promote_pair(from_python(re), from_python(im))
        super().__init__(re=re, im=im, **kwargs)

    def promote(self, other: NumericValue) -> NumericValue:
        return self

    def unify(self, other: ComplexValue) -> tuple[ComplexValue, ComplexValue]:
        """Bring the components of both values to a single representation."""
        from .tower import promote_pair

        parts = [self.re, self.im, other.re, other.im]
        top = max(parts, key=lambda p: p.type_precedence)
        parts = [promote_pair(p, top)[0] for p in parts]
        return ComplexValue(parts[0], parts[1]), ComplexValue(parts[2], parts[3])

    # Predicates

    @property
    def is_exact(self) -> bool:
        return self.re.is_exact

    @property
    def is_zero(self) -> bool:
        return self.re.is_zero and self.im.is_zero

    @property
    def is_one(self) -> bool:
        return self.re.is_one and self.im.is_zero

    @property
    def is_nan(self) -> bool:
        return self.re.is_nan or self.im.is_nan

    @property
    def is_finite(self) -> bool:
        return self.re.is_finite and self.im.is_finite

    @property
    def is_real(self) -> bool:
        return False

    def sign(self) -> Optional[int]:
        return None

    def compare(self, other: NumericValue) -> Optional[int]:
        """Complex values are unordered: only equality is reported."""
        from .tower import promote_pair

        a, b = promote_pair(self, other)
        if a.re.compare(b.re) == 0 and a.im.compare(b.im) == 0:
            return 0
        return None

    def to_float(self) -> float:
        return self.re.to_float()

    def to_python(self) -> complex:
        return complex(self.re.to_float(), self.im.to_float())

    def to_sympy(self) -> Any:
        from .bignum import BigDecimal, sympy_float

        if isinstance(self.re, BigDecimal):
            precision = self.re.precision
            return sympy_float(self.re.value, precision) + sp.I * sympy_float(
                self.im.value, precision
            )
        return sp.Float(self.re.to_float()) + sp.I * sp.Float(self.im.to_float())

    def to_json(self) -> Any:
        return ["Complex", self.re.to_json(), self.im.to_json()]

    def __repr__(self) -> str:
        return f"ComplexValue({self.re!r}, {self.im!r})"

    def __str__(self) -> str:
        sign = "-" if self.im.sign() == -1 else "+"
        return f"{self.re}{sign}{abs(self.im)}i"

    # Arithmetic

    def _add(self, other: ComplexValue) -> NumericValue:
        return make_complex(self.re + other.re, self.im + other.im)

    def _mul(self, other: ComplexValue) -> NumericValue:
        a, b, c, d = self.re, self.im, other.re, other.im
        return make_complex(a * c - b * d, a * d + b * c)

    def _div(self, other: ComplexValue) -> NumericValue:
        a, b, c, d = self.re, self.im, other.re, other.im
        denominator = c * c + d * d
        if denominator.is_zero:
            if self.is_exact:
                raise DivisionByZero()
            return ComplexValue(_nan_like(a), _nan_like(a))
        return make_complex((a * c + b * d) / denominator, (b * c - a * d) / denominator)

    def _pow(self, other: ComplexValue) -> NumericValue:
        from .rational import ONE

        if self.is_exact:
            if not (other.im.is_zero and other.re.is_integer):
                raise NotExact("complex power")
            k = other.re.numerator
            if abs(k) > MAX_EXACT_COMPLEX_POWER:
                raise NotExact("complex power exceeding the exact size limit")
            result: NumericValue = ONE
            base: NumericValue = self
            n = abs(k)
            while n:
                if n & 1:
                    result = result * base
                base = base * base
                n >>= 1
            return ONE / result if k < 0 else result
        if self.is_zero:
            return self.re if other.re.sign() == 1 else _nan_like(self.re)
        return self._transcendental(lambda z: z ** other.to_python(), lambda z: z ** other.to_sympy(), "power")

    def __neg__(self) -> ComplexValue:
        return ComplexValue(-self.re, -self.im)

    def __abs__(self) -> NumericValue:
        return (self.re * self.re + self.im * self.im).sqrt()

    def conjugate(self) -> ComplexValue:
        return ComplexValue(self.re, -self.im)

    # Rounding applies to each component

    def floor(self) -> NumericValue:
        return make_complex(self.re.floor(), self.im.floor())

    def ceil(self) -> NumericValue:
        return make_complex(self.re.ceil(), self.im.ceil())

    def round(self) -> NumericValue:
        return make_complex(self.re.round(), self.im.round())

    # Transcendentals

    def _transcendental(self, machine_fn, sympy_fn, name: str) -> NumericValue:
        from .bignum import BigDecimal

        if self.is_exact:
            raise NotExact(name)
        if isinstance(self.re, BigDecimal):
            return from_sympy_complex(sympy_fn(self.to_sympy()), self.re.precision)
        try:
            return from_python_complex(machine_fn(self.to_python()))
        except (ValueError, OverflowError, ZeroDivisionError):
            return ComplexValue(_nan_like(self.re), _nan_like(self.re))

    def sqrt(self) -> NumericValue:
        return self._transcendental(cmath.sqrt, sp.sqrt, "sqrt")

    def exp(self) -> NumericValue:
        return self._transcendental(cmath.exp, sp.exp, "exp")

    def ln(self) -> NumericValue:
        return self._transcendental(cmath.log, sp.log, "ln")

    def sin(self) -> NumericValue:
        return self._transcendental(cmath.sin, sp.sin, "sin")

    def cos(self) -> NumericValue:
        return self._transcendental(cmath.cos, sp.cos, "cos")

    def tan(self) -> NumericValue:
        return self._transcendental(cmath.tan, sp.tan, "tan")

    def asin(self) -> NumericValue:
        return self._transcendental(cmath.asin, sp.asin, "asin")

    def acos(self) -> NumericValue:
        return self._transcendental(cmath.acos, sp.acos, "acos")

    def atan(self) -> NumericValue:
        return self._transcendental(cmath.atan, sp.atan, "atan")
