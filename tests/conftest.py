"""
Shared pytest fixtures and utilities for testing the compute engine.

This module provides:
- An engine fixture whose diagnostics are collected instead of logged
- The grammar index shared by parser and serializer tests
- Helpers to parse and box LaTeX in one step
"""

import pytest
from typing import Any, Callable

from compute_engine import ComputeEngine, Diagnostic
from compute_engine.parser import GrammarIndex, ParserOptions, index_dictionary, load_dictionary, parse_latex


@pytest.fixture
def diagnostics() -> list[Diagnostic]:
    """Diagnostics reported by the ``engine`` fixture, in order."""
    return []


@pytest.fixture
def engine(diagnostics) -> ComputeEngine:
    """A fresh engine in machine mode that records its diagnostics."""
    return ComputeEngine(on_diagnostic=diagnostics.append, numeric_mode="machine")


@pytest.fixture
def bignum_engine(diagnostics) -> ComputeEngine:
    """A fresh engine computing with 30 significant digits."""
    return ComputeEngine(on_diagnostic=diagnostics.append, numeric_mode="bignum", precision=30)


@pytest.fixture(scope="session")
def grammar() -> GrammarIndex:
    """The full grammar index built from the shipped dictionary."""
    return index_dictionary(load_dictionary())


@pytest.fixture
def parse(grammar) -> Callable[..., Any]:
    """Parse LaTeX with the default options, returning only the MathJSON."""
    def _parse(latex: str, **options: Any) -> Any:
        """
        Parse ``latex``.

        Args:
            latex: The markup
            options: ``ParserOptions`` fields

        Returns:
            The MathJSON expression
        """
        expr, _ = parse_latex(latex, grammar, ParserOptions(**options))
        return expr
    return _parse


@pytest.fixture
def parse_with_diagnostics(grammar) -> Callable[[str], tuple[Any, list[Diagnostic]]]:
    """Parse LaTeX, returning the MathJSON and the parser diagnostics."""
    def _parse(latex: str) -> tuple[Any, list[Diagnostic]]:
        return parse_latex(latex, grammar)
    return _parse


@pytest.fixture
def box_latex(engine) -> Callable[[str], Any]:
    """Parse and box LaTeX with the ``engine`` fixture."""
    def _box(latex: str):
        return engine.box(engine.parse(latex))
    return _box


