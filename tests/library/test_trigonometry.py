"""Tests for trigonometric and hyperbolic functions."""

import math

import pytest


class TestExactValues:
    """Test values known exactly."""

    def test_multiples_of_pi(self, engine):
        """Test sin, cos and tan at Pi."""
        assert engine.evaluate(["Sin", "Pi"]).json == 0
        assert engine.evaluate(["Cos", "Pi"]).json == -1
        assert engine.evaluate(["Tan", "Pi"]).json == 0

    def test_at_zero(self, engine):
        """Test sin(0) and the hyperbolic functions at 0."""
        assert engine.evaluate(["Sin", 0]).json == 0
        assert engine.evaluate(["Cosh", 0]).json == 1
        assert engine.evaluate(["Sinh", 0]).json == 0

    def test_no_exact_value(self, engine):
        """Test that sin(1) stays symbolic."""
        assert engine.evaluate(["Sin", 1]).json == ["Sin", 1]

    def test_symbolic_argument(self, engine):
        """Test that sin(x) stays symbolic."""
        assert engine.evaluate(["Sin", "x"]).json == ["Sin", "x"]


class TestNumericValues:
    """Test approximations."""

    def test_sin(self, engine):
        """Test sin(1) in machine mode."""
        assert engine.N(["Sin", 1]).json == pytest.approx(math.sin(1))

    def test_cos_of_pi(self, engine):
        """Test that N approximates Pi before applying cos."""
        assert engine.N(["Cos", "Pi"]).json == pytest.approx(-1.0)

    def test_reciprocal(self, engine):
        """Test sec(1) as the reciprocal of cos(1)."""
        assert engine.N(["Sec", 1]).json == pytest.approx(1 / math.cos(1))

    def test_hyperbolic(self, engine):
        """Test tanh(1)."""
        assert engine.N(["Tanh", 1]).json == pytest.approx(math.tanh(1))


class TestThreading:
    """Test elementwise application over lists."""

    def test_list(self, engine):
        """Test sin over a list."""
        assert engine.evaluate(["Sin", ["List", 0, "Pi"]]).json == ["List", 0, 0]


class TestBranchCuts:
    """Test inverse functions outside [-1, 1]."""

    @pytest.mark.parametrize(
        "name, x, expected",
        [
            ("Arcsin", 2, complex(math.pi / 2, -1.3169578969248166)),
            ("Arccos", 2, complex(0, 1.3169578969248166)),
            ("Arcsin", -2, complex(-math.pi / 2, 1.3169578969248166)),
            ("Arccos", -2, complex(math.pi, -1.3169578969248166)),
        ],
    )
    def test_same_branch_in_both_modes(self, engine, bignum_engine, name, x, expected):
        """Test that machine and bignum modes pick the same branch."""
        for ce in (engine, bignum_engine):
            value = ce.N([name, x]).numeric_value
            assert value.re.to_float() == pytest.approx(expected.real)
            assert value.im.to_float() == pytest.approx(expected.imag)
