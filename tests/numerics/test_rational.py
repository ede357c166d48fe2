"""Tests for exact rational numbers."""

import math

import pytest

from compute_engine.core.errors import DivisionByZero, NotExact
from compute_engine.numerics import HALF, NEGATIVE_ONE, ONE, ZERO, ComplexValue, Rational


class TestRationalInstantiation:
    """Test construction and normalization."""

    def test_lowest_terms(self):
        """Test that fractions are reduced."""
        r = Rational(6, 4)
        assert r.numerator == 3
        assert r.denominator == 2

    def test_denominator_is_positive(self):
        """Test that the sign moves to the numerator."""
        r = Rational(6, -4)
        assert r.numerator == -3
        assert r.denominator == 2

    def test_integer(self):
        """Test that integers have denominator 1."""
        assert Rational(5).denominator == 1
        assert Rational(5).is_integer

    def test_zero_denominator(self):
        """Test that a zero denominator is rejected."""
        with pytest.raises(DivisionByZero):
            Rational(1, 0)

    def test_rejects_floats_and_booleans(self):
        """Test that only integers are accepted."""
        with pytest.raises(TypeError):
            Rational(0.5)
        with pytest.raises(TypeError):
            Rational(True)

    def test_equal_values_are_equal(self):
        """Test equality and hashing of equivalent fractions."""
        assert Rational(2, 4) == HALF
        assert hash(Rational(2, 4)) == hash(HALF)


class TestRationalArithmetic:
    """Test exact arithmetic."""

    def test_add(self):
        """Test addition of fractions."""
        assert Rational(1, 3) + Rational(1, 6) == HALF

    def test_subtract(self):
        """Test subtraction."""
        assert Rational(1, 2) - Rational(1, 3) == Rational(1, 6)

    def test_multiply(self):
        """Test multiplication."""
        assert Rational(2, 3) * Rational(3, 4) == HALF

    def test_divide(self):
        """Test division."""
        assert Rational(1, 3) / Rational(1, 3) == ONE

    def test_divide_by_zero(self):
        """Test that exact division by zero raises."""
        with pytest.raises(DivisionByZero):
            ONE / ZERO

    def test_python_integers(self):
        """Test mixing with Python ints."""
        assert Rational(1, 2) + 1 == Rational(3, 2)
        assert 2 * Rational(1, 4) == HALF

    def test_integer_power(self):
        """Test integer exponents."""
        assert Rational(2) ** 10 == Rational(1024)
        assert Rational(2) ** -1 == HALF
        assert Rational(2, 3) ** 2 == Rational(4, 9)

    def test_perfect_root(self):
        """Test fractional exponents with an exact result."""
        assert Rational(8) ** Rational(1, 3) == Rational(2)
        assert Rational(4, 9) ** HALF == Rational(2, 3)

    def test_inexact_root(self):
        """Test that an irrational root raises NotExact."""
        with pytest.raises(NotExact):
            Rational(2) ** HALF

    def test_zero_to_negative_power(self):
        """Test 0^-1."""
        with pytest.raises(DivisionByZero):
            ZERO ** NEGATIVE_ONE

    def test_negation_and_abs(self):
        """Test unary minus and abs."""
        assert -Rational(1, 2) == Rational(-1, 2)
        assert abs(Rational(-1, 2)) == HALF


class TestRationalRounding:
    """Test floor, ceil and round."""

    def test_floor_and_ceil(self):
        """Test floor and ceiling of positive and negative fractions."""
        assert Rational(7, 3).floor() == Rational(2)
        assert Rational(7, 3).ceil() == Rational(3)
        assert Rational(-7, 3).floor() == Rational(-3)
        assert Rational(-7, 3).ceil() == Rational(-2)

    def test_round_half_away_from_zero(self):
        """Test that halves round away from zero."""
        assert Rational(5, 2).round() == Rational(3)
        assert Rational(-5, 2).round() == Rational(-3)
        assert Rational(7, 3).round() == Rational(2)


class TestRationalTranscendentals:
    """Test exact results at trivial points."""

    def test_sqrt(self):
        """Test square roots of perfect squares."""
        assert Rational(4).sqrt() == Rational(2)
        assert Rational(1, 4).sqrt() == HALF

    def test_sqrt_of_negative(self):
        """Test that sqrt(-4) is 2i."""
        result = Rational(-4).sqrt()
        assert isinstance(result, ComplexValue)
        assert result.re == ZERO
        assert result.im == Rational(2)

    def test_sqrt_not_exact(self):
        """Test that sqrt(2) raises NotExact."""
        with pytest.raises(NotExact):
            Rational(2).sqrt()

    def test_trivial_points(self):
        """Test exp(0), ln(1), sin(0) and cos(0)."""
        assert ZERO.exp() == ONE
        assert ONE.ln() == ZERO
        assert ZERO.sin() == ZERO
        assert ZERO.cos() == ONE

    def test_other_points_raise(self):
        """Test that other arguments have no exact result."""
        with pytest.raises(NotExact):
            ONE.exp()
        with pytest.raises(NotExact):
            Rational(2).ln()


class TestRationalComparison:
    """Test comparison and conversion."""

    def test_compare(self):
        """Test three-way comparison."""
        assert Rational(1, 3).compare(HALF) == -1
        assert HALF.compare(Rational(2, 4)) == 0
        assert ONE.compare(HALF) == 1

    def test_sign(self):
        """Test the sign."""
        assert Rational(-2).sign() == -1
        assert ZERO.sign() == 0
        assert HALF.sign() == 1

    def test_to_json(self):
        """Test the MathJSON form."""
        assert Rational(5).to_json() == 5
        assert HALF.to_json() == ["Rational", 1, 2]
        assert Rational(2**60).to_json() == {"num": str(2**60)}

    def test_to_float(self):
        """Test conversion to a machine float."""
        assert HALF.to_float() == 0.5

    def test_to_float_overflow(self):
        """Test that integers beyond the float range convert to infinity."""
        assert Rational(10**400).to_float() == math.inf
        assert Rational(-(10**400)).to_float() == -math.inf
        assert Rational(10**400, 10**399).to_float() == 10.0

    def test_sort_key_beyond_float_range(self):
        """Test that huge integers still order exactly."""
        assert Rational(10**400).sort_key() < Rational(10**400 + 1).sort_key()
        assert Rational(2).sort_key() < Rational(10**400).sort_key()

    def test_str(self):
        """Test the string form."""
        assert str(Rational(-3, 4)) == "-3/4"
        assert str(Rational(7)) == "7"
