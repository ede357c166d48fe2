"""
Base NumericValue class for the numeric tower.

This module provides the foundation shared by every numeric representation:
- Type promotion hierarchy
- Operator overloading dispatched through promotion
- Three-way comparison that knows about unordered values (NaN, complex)

Concrete representations live in ``rational.py``, ``machine.py``,
``bignum.py`` and ``complex_value.py``.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from enum import IntEnum
from typing import Any, ClassVar, Optional


class TypePrecedence(IntEnum):
    """
    Type promotion precedence hierarchy.

    Lower values promote to higher values. Machine floats and decimals share
    a tier: they never promote into each other.
    """

    RATIONAL = 0  # exact
    APPROXIMATE = 1  # machine float or arbitrary-precision decimal
    COMPLEX = 2  # pair of the above


class NumericValue(ABC):
    """
    Base class for all numeric values.

    Provides:
    - Type promotion system
    - Operator overloading (+, -, *, /, **, unary -, abs)
    - Predicates used by canonicalization (is_zero, is_one, ...)

    Subclasses must implement the ``_add``/``_mul``/``_div``/``_pow`` family,
    which receive an operand already promoted to their own class.

    Note: concrete subclasses inherit from both BaseModel and NumericValue,
    e.g. ``class Rational(BaseModel, NumericValue):``.
    """

    type_precedence: ClassVar[TypePrecedence]

    @abstractmethod
    def promote(self, other: NumericValue) -> NumericValue:
        """
        Convert this value into the representation of ``other``.

        Only called when ``other`` has a higher type precedence.
        """

    # Predicates

    @property
    def is_exact(self) -> bool:
        return False

    @property
    @abstractmethod
    def is_zero(self) -> bool: ...

    @property
    @abstractmethod
    def is_one(self) -> bool: ...

    @property
    def is_nan(self) -> bool:
        return False

    @property
    def is_finite(self) -> bool:
        return True

    @property
    def is_infinity(self) -> bool:
        return not self.is_finite and not self.is_nan

    @property
    def is_integer(self) -> bool:
        return False

    @property
    def is_real(self) -> bool:
        return True

    @abstractmethod
    def sign(self) -> Optional[int]:
        """-1, 0 or 1; None when the value has no sign (NaN, complex)."""

    @abstractmethod
    def compare(self, other: NumericValue) -> Optional[int]:
        """Three-way comparison: -1, 0, 1, or None when unordered."""

    @abstractmethod
    def to_float(self) -> float:
        """Nearest machine float (real part for complex values)."""

    @abstractmethod
    def to_json(self) -> Any:
        """MathJSON representation."""

    def sort_key(self) -> tuple:
        """Key placing numbers in ascending order, NaN and complex last."""
        if self.is_nan:
            return (2, 0.0, repr(self))
        if not self.is_real:
            return (1, self.to_float(), repr(self))
        return (0, self.to_float(), repr(self))

    # Arithmetic (operands already share a representation)

    @abstractmethod
    def _add(self, other: Any) -> NumericValue: ...

    @abstractmethod
    def _mul(self, other: Any) -> NumericValue: ...

    @abstractmethod
    def _div(self, other: Any) -> NumericValue: ...

    @abstractmethod
    def _pow(self, other: Any) -> NumericValue: ...

    @abstractmethod
    def __neg__(self) -> NumericValue: ...

    @abstractmethod
    def __abs__(self) -> NumericValue: ...

    # Rounding

    @abstractmethod
    def floor(self) -> NumericValue: ...

    @abstractmethod
    def ceil(self) -> NumericValue: ...

    @abstractmethod
    def round(self) -> NumericValue: ...

    # Transcendentals

    @abstractmethod
    def sqrt(self) -> NumericValue: ...

    @abstractmethod
    def exp(self) -> NumericValue: ...

    @abstractmethod
    def ln(self) -> NumericValue: ...

    @abstractmethod
    def sin(self) -> NumericValue: ...

    @abstractmethod
    def cos(self) -> NumericValue: ...

    @abstractmethod
    def tan(self) -> NumericValue: ...

    @abstractmethod
    def asin(self) -> NumericValue: ...

    @abstractmethod
    def acos(self) -> NumericValue: ...

    @abstractmethod
    def atan(self) -> NumericValue: ...

    # Operator overloading (Python magic methods)

    def __add__(self, other: Any) -> NumericValue:
        from .tower import promote_pair

        a, b = promote_pair(self, other)
        return a._add(b)

    def __radd__(self, other: Any) -> NumericValue:
        from .tower import promote_pair

        a, b = promote_pair(other, self)
        return a._add(b)

    def __sub__(self, other: Any) -> NumericValue:
        from .tower import promote_pair

        a, b = promote_pair(self, other)
        return a._add(-b)

    def __rsub__(self, other: Any) -> NumericValue:
        from .tower import promote_pair

        a, b = promote_pair(other, self)
        return a._add(-b)

    def __mul__(self, other: Any) -> NumericValue:
        from .tower import promote_pair

        a, b = promote_pair(self, other)
        return a._mul(b)

    def __rmul__(self, other: Any) -> NumericValue:
        from .tower import promote_pair

        a, b = promote_pair(other, self)
        return a._mul(b)

    def __truediv__(self, other: Any) -> NumericValue:
        from .tower import promote_pair

        a, b = promote_pair(self, other)
        return a._div(b)

    def __rtruediv__(self, other: Any) -> NumericValue:
        from .tower import promote_pair

        a, b = promote_pair(other, self)
        return a._div(b)

    def __pow__(self, other: Any) -> NumericValue:
        from .tower import promote_pair

        a, b = promote_pair(self, other)
        return a._pow(b)

    def __rpow__(self, other: Any) -> NumericValue:
        from .tower import promote_pair

        a, b = promote_pair(other, self)
        return a._pow(b)

    def __pos__(self) -> NumericValue:
        return self

    def __str__(self) -> str:
        return str(self.to_json())
