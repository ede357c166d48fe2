"""Tests for arbitrary-precision decimals."""

from decimal import Decimal

import pytest

from compute_engine.core.config import NumericMode
from compute_engine.core.errors import NumericModeError
from compute_engine.numerics import BigDecimal, ComplexValue, MachineFloat, Rational, euler, pi


class TestBigDecimalArithmetic:
    """Test decimal arithmetic at a given precision."""

    def test_exact_decimal_sum(self):
        """Test that 0.1 + 0.2 is exactly 0.3."""
        result = BigDecimal("0.1", 30) + BigDecimal("0.2", 30)
        assert result.value == Decimal("0.3")

    def test_division_precision(self):
        """Test that division keeps the requested number of digits."""
        result = BigDecimal(1, 30) / BigDecimal(3, 30)
        assert str(result.value) == "0." + "3" * 30

    def test_larger_precision_wins(self):
        """Test that a binary operation uses the larger precision."""
        result = BigDecimal(1, 10) + BigDecimal(1, 40)
        assert result.precision == 40

    def test_division_by_zero(self):
        """Test that 1/0 is infinity and 0/0 is NaN."""
        assert (BigDecimal(1, 10) / BigDecimal(0, 10)).is_infinity
        assert (BigDecimal(0, 10) / BigDecimal(0, 10)).is_nan

    def test_rational_promotes(self):
        """Test that a rational operand is converted at the decimal's precision."""
        result = Rational(1, 4) + BigDecimal(1, 20)
        assert isinstance(result, BigDecimal)
        assert result.value == Decimal("1.25")

    def test_mixing_with_machine_float(self):
        """Test that machine floats and decimals never meet implicitly."""
        with pytest.raises(NumericModeError):
            BigDecimal(1, 20) + MachineFloat(1.0)


class TestBigDecimalFunctions:
    """Test rounding and transcendental functions."""

    def test_sqrt(self):
        """Test square root digits."""
        assert str(BigDecimal(2, 30).sqrt().value).startswith("1.4142135623730950488")

    def test_sqrt_of_negative(self):
        """Test that sqrt(-4) is 2i."""
        result = BigDecimal(-4, 20).sqrt()
        assert isinstance(result, ComplexValue)
        assert result.im.value == 2

    def test_round_half_away_from_zero(self):
        """Test rounding of halves."""
        assert BigDecimal("2.5", 10).round() == Rational(3)
        assert BigDecimal("-2.5", 10).round() == Rational(-3)

    def test_floor(self):
        """Test that floor is exact."""
        assert BigDecimal("-1.5", 10).floor() == Rational(-2)

    def test_ln_of_zero(self):
        """Test that ln(0) is negative infinity."""
        assert BigDecimal(0, 10).ln().to_json() == {"num": "-Infinity"}

    def test_sin_via_sympy(self):
        """Test a transcendental evaluated with sympy."""
        result = BigDecimal(1, 30).sin()
        assert str(result.value).startswith("0.84147098480789650665")


class TestConstants:
    """Test Pi and ExponentialE at high precision."""

    def test_pi(self):
        """Test the digits of pi."""
        value = pi(NumericMode.BIGNUM, 30)
        assert str(value.value).startswith("3.14159265358979323846264338")

    def test_euler(self):
        """Test the digits of e."""
        value = euler(NumericMode.BIGNUM, 30)
        assert str(value.value).startswith("2.71828182845904523536028747")

    def test_machine_constants(self):
        """Test the machine representations."""
        assert pi() == MachineFloat(3.141592653589793)
