"""
compute_engine: LaTeX math parsing, canonical boxed expressions and a
three-tier evaluator (simplify, evaluate, N) over a numeric tower.

Quick start::

    from compute_engine import ComputeEngine

    ce = ComputeEngine()
    expr = ce.box(ce.parse(r"2^{10}"))
    expr.evaluate().json   # 1024

The module-level ``parse``, ``box`` and ``serialize`` use a default engine
built on first use from the environment settings.
"""

from __future__ import annotations

from typing import Any, Optional

from .boxed import BoxedExpression, Domain
from .core import (
    ComputeEngineError,
    Diagnostic,
    ErrorCategory,
    ErrorCode,
    InvariantViolation,
    NumericMode,
    ScopeError,
    Settings,
    get_settings,
    setup_logging,
)
from .definitions import FunctionDefinition, Hold, HoldUntil, Signature, SymbolDefinition
from .engine import ComputeEngine
from .mathjson import Expression

__version__ = "0.1.0"

_default_engine: Optional[ComputeEngine] = None


def default_engine() -> ComputeEngine:
    """The shared engine used by the module-level functions."""
    global _default_engine
    if _default_engine is None:
        _default_engine = ComputeEngine()
    return _default_engine


def parse(latex: str, cursor: Optional[int] = None) -> Expression:
    return default_engine().parse(latex, cursor)


def box(expr: Any, canonical: bool = True) -> BoxedExpression:
    return default_engine().box(expr, canonical)


def serialize(expr: Any) -> str:
    return default_engine().serialize(expr)


__all__ = [
    "ComputeEngine",
    "BoxedExpression",
    "Domain",
    "Expression",
    "FunctionDefinition",
    "SymbolDefinition",
    "Signature",
    "Hold",
    "HoldUntil",
    "ComputeEngineError",
    "InvariantViolation",
    "ScopeError",
    "Diagnostic",
    "ErrorCategory",
    "ErrorCode",
    "NumericMode",
    "Settings",
    "get_settings",
    "setup_logging",
    "default_engine",
    "parse",
    "box",
    "serialize",
]
