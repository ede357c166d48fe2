"""
Machine-precision floating point numbers.

Follows IEEE-754 semantics for non-finite values: Python raises on some of
these (float division by zero, math domain errors) so those cases are
handled explicitly. Real-domain operations given an out-of-domain argument
return a ComplexValue.
"""

from __future__ import annotations

import cmath
import math
from typing import Any, ClassVar, Optional

from pydantic import BaseModel, ConfigDict, Field

from .value import NumericValue, TypePrecedence


class MachineFloat(BaseModel, NumericValue):
    """
    Machine float value.

    The representation used by N() when the engine runs in machine mode.
    """

    model_config = ConfigDict(frozen=True)

    value: float = Field(description="The numeric value")

    type_precedence: ClassVar[TypePrecedence] = TypePrecedence.APPROXIMATE

    def __init__(self, value: float | int, **kwargs):
        super().__init__(value=float(value), **kwargs)

    def promote(self, other: NumericValue) -> NumericValue:
        from .complex_value import ComplexValue

        if isinstance(other, ComplexValue):
            return ComplexValue(self, MachineFloat(0.0))
        return self

    # Predicates

    @property
    def is_zero(self) -> bool:
        return self.value == 0.0

    @property
    def is_one(self) -> bool:
        return self.value == 1.0

    @property
    def is_nan(self) -> bool:
        return math.isnan(self.value)

    @property
    def is_finite(self) -> bool:
        return math.isfinite(self.value)

    @property
    def is_integer(self) -> bool:
        return self.is_finite and self.value.is_integer()

    def sign(self) -> Optional[int]:
        if self.is_nan:
            return None
        return (self.value > 0) - (self.value < 0)

    def compare(self, other: NumericValue) -> Optional[int]:
        from .tower import promote_pair

        a, b = promote_pair(self, other)
        if a is not self:
            return a.compare(b)
        if self.is_nan or b.is_nan:
            return None
        return (self.value > b.value) - (self.value < b.value)

    def to_float(self) -> float:
        return self.value

    def to_json(self) -> Any:
        if math.isnan(self.value):
            return {"num": "NaN"}
        if math.isinf(self.value):
            return {"num": "+Infinity" if self.value > 0 else "-Infinity"}
        return self.value

    def __repr__(self) -> str:
        return f"MachineFloat({self.value!r})"

    def __str__(self) -> str:
        return repr(self.value)

    # Arithmetic

    def _add(self, other: MachineFloat) -> MachineFloat:
        return MachineFloat(self.value + other.value)

    def _mul(self, other: MachineFloat) -> MachineFloat:
        return MachineFloat(self.value * other.value)

    def _div(self, other: MachineFloat) -> MachineFloat:
        if other.value == 0.0:
            if self.value == 0.0 or math.isnan(self.value):
                return MachineFloat(math.nan)
            # Sign of a signed zero divisor participates, as in IEEE-754
            return MachineFloat(math.copysign(math.inf, self.value) * math.copysign(1.0, other.value))
        return MachineFloat(self.value / other.value)

    def _pow(self, other: MachineFloat) -> NumericValue:
        base, exponent = self.value, other.value
        if base < 0 and math.isfinite(exponent) and not exponent.is_integer():
            from .complex_value import from_python_complex

            return from_python_complex(complex(base) ** exponent)
        try:
            return MachineFloat(math.pow(base, exponent))
        except ZeroDivisionError:
            return MachineFloat(math.inf)
        except OverflowError:
            if base < 0 and exponent.is_integer() and int(exponent) % 2 == 1:
                return MachineFloat(-math.inf)
            return MachineFloat(math.inf)
        except ValueError:
            # math.pow(0.0, negative) raises ValueError on some platforms
            if base == 0.0 and exponent < 0:
                return MachineFloat(math.inf)
            return MachineFloat(math.nan)

    def __neg__(self) -> MachineFloat:
        return MachineFloat(-self.value)

    def __abs__(self) -> MachineFloat:
        return MachineFloat(abs(self.value))

    # Rounding: finite results are exact integers

    def _to_integer(self, value: float) -> NumericValue:
        if not math.isfinite(value):
            return MachineFloat(value)
        from .rational import Rational

        return Rational(int(value))

    def floor(self) -> NumericValue:
        return self._to_integer(math.floor(self.value) if math.isfinite(self.value) else self.value)

    def ceil(self) -> NumericValue:
        return self._to_integer(math.ceil(self.value) if math.isfinite(self.value) else self.value)

    def round(self) -> NumericValue:
        if not math.isfinite(self.value):
            return MachineFloat(self.value)
        return self._to_integer(math.copysign(math.floor(abs(self.value) + 0.5), self.value))

    # Transcendentals

    def _complex(self, fn) -> NumericValue:
        from .complex_value import from_python_complex

        return from_python_complex(fn(complex(self.value)))

    def _arc(self, fn) -> NumericValue:
        # Off [-1, 1] the imaginary part is negative above 1 and positive below -1
        from .complex_value import from_python_complex

        return from_python_complex(fn(complex(self.value, -0.0 if self.value > 0 else 0.0)))

    def sqrt(self) -> NumericValue:
        if self.value < 0:
            return self._complex(cmath.sqrt)
        return MachineFloat(math.sqrt(self.value))

    def exp(self) -> NumericValue:
        try:
            return MachineFloat(math.exp(self.value))
        except OverflowError:
            return MachineFloat(math.inf)

    def ln(self) -> NumericValue:
        if self.is_nan:
            return self
        if self.value == 0.0:
            return MachineFloat(-math.inf)
        if self.value < 0:
            return self._complex(cmath.log)
        return MachineFloat(math.log(self.value))

    def _trig(self, fn) -> MachineFloat:
        if not self.is_finite:
            return MachineFloat(math.nan)
        return MachineFloat(fn(self.value))

    def sin(self) -> NumericValue:
        return self._trig(math.sin)

    def cos(self) -> NumericValue:
        return self._trig(math.cos)

    def tan(self) -> NumericValue:
        return self._trig(math.tan)

    def asin(self) -> NumericValue:
        if abs(self.value) > 1:
            return self._arc(cmath.asin)
        return MachineFloat(math.asin(self.value))

    def acos(self) -> NumericValue:
        if abs(self.value) > 1:
            return self._arc(cmath.acos)
        return MachineFloat(math.acos(self.value))

    def atan(self) -> NumericValue:
        return MachineFloat(math.atan(self.value))

    def gamma(self) -> NumericValue:
        """The gamma function, NaN at the poles."""
        try:
            return MachineFloat(math.gamma(self.value))
        except ValueError:
            return MachineFloat(math.nan)
        except OverflowError:
            return MachineFloat(math.inf)
