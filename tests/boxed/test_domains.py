"""Tests for the domain lattice."""

import math

import pytest

from compute_engine.boxed import Domain, is_compatible, is_subdomain, number_domain, to_domain, widen
from compute_engine.numerics import HALF, ComplexValue, MachineFloat, Rational


class TestSubdomains:
    """Test the subdomain relation."""

    def test_number_chain(self):
        """Test the chain of number domains."""
        assert is_subdomain(Domain.INTEGER, Domain.RATIONAL_NUMBER)
        assert is_subdomain(Domain.INTEGER, Domain.NUMBER)
        assert is_subdomain(Domain.REAL_NUMBER, Domain.COMPLEX_NUMBER)
        assert not is_subdomain(Domain.NUMBER, Domain.INTEGER)

    def test_nothing_is_everywhere(self):
        """Test that Nothing is a subdomain of every domain."""
        assert is_subdomain(Domain.NOTHING, Domain.INTEGER)
        assert is_subdomain(Domain.NOTHING, Domain.STRING)

    def test_everything_is_anything(self):
        """Test the root of the tree."""
        assert is_subdomain(Domain.STRING, Domain.ANYTHING)
        assert is_subdomain(Domain.FUNCTION, Domain.ANYTHING)

    def test_compatible(self):
        """Test that wider domains are compatible with narrower ones."""
        assert is_compatible(Domain.ANYTHING, Domain.NUMBER)
        assert is_compatible(Domain.INTEGER, Domain.NUMBER)
        assert not is_compatible(Domain.STRING, Domain.NUMBER)
        assert not is_compatible(Domain.BOOLEAN, Domain.SET)


class TestWiden:
    """Test the narrowest common domain."""

    def test_number_domains(self):
        """Test widening within the number tree."""
        assert widen(Domain.INTEGER, Domain.RATIONAL_NUMBER) == Domain.RATIONAL_NUMBER
        assert widen(Domain.REAL_NUMBER, Domain.IMAGINARY_NUMBER) == Domain.COMPLEX_NUMBER

    def test_unrelated_domains(self):
        """Test widening across branches."""
        assert widen(Domain.INTEGER, Domain.STRING) == Domain.VALUE

    def test_nothing_is_ignored(self):
        """Test that Nothing does not widen."""
        assert widen(Domain.NOTHING, Domain.INTEGER) == Domain.INTEGER
        assert widen() == Domain.NOTHING


class TestNumberDomain:
    """Test domains of numeric values."""

    @pytest.mark.parametrize(
        "value, domain",
        [
            (Rational(3), Domain.INTEGER),
            (HALF, Domain.RATIONAL_NUMBER),
            (MachineFloat(0.5), Domain.REAL_NUMBER),
            (MachineFloat(3.0), Domain.REAL_NUMBER),
            (MachineFloat(math.inf), Domain.EXTENDED_REAL_NUMBER),
            (MachineFloat(math.nan), Domain.NUMBER),
            (ComplexValue(0, 1), Domain.IMAGINARY_NUMBER),
            (ComplexValue(1, 1), Domain.COMPLEX_NUMBER),
        ],
    )
    def test_number_domain(self, value, domain):
        """Test the domain of each kind of number."""
        assert number_domain(value) == domain


class TestToDomain:
    """Test converting names to domains."""

    def test_names(self):
        """Test domain names and number set symbols."""
        assert to_domain("RealNumber") == Domain.REAL_NUMBER
        assert to_domain("Integers") == Domain.INTEGER
        assert to_domain(Domain.SET) == Domain.SET

    def test_unknown(self):
        """Test that an unknown name raises ValueError."""
        with pytest.raises(ValueError):
            to_domain("Bogus")
