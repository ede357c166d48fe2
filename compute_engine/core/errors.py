"""
Engine exceptions and error taxonomy.

Recoverable failures never escape the engine: the parser, the canonicalizer and
the evaluator turn them into ``["Error", ...]`` placeholder nodes and report a
``Diagnostic`` to the host sink. Only ``InvariantViolation`` (and subclasses)
propagate, because they signal a bug or a misuse of the engine internals.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class ErrorCategory(Enum):
    """Coarse classification of error codes."""

    LEXICAL = "lexical"
    SYNTAX = "syntax"
    DOMAIN = "domain"
    UNBOUND = "unbound"
    EVALUATION = "evaluation"


class ErrorCode(Enum):
    """Error codes carried by ``["ErrorCode", ...]`` nodes."""

    # Syntax
    UNEXPECTED_TOKEN = "unexpected-token"
    UNEXPECTED_COMMAND = "unexpected-command"
    EXPECTED_CLOSE_DELIMITER = "expected-close-delimiter"
    EXPECTED_OPEN_DELIMITER = "expected-open-delimiter"
    MISSING_OPERAND = "missing-operand"
    RECURSION_DEPTH_EXCEEDED = "recursion-depth-exceeded"

    # Domain
    INCOMPATIBLE_DOMAIN = "incompatible-domain"
    MISSING = "missing"
    UNEXPECTED_ARGUMENT = "unexpected-argument"

    # Unbound
    UNBOUND_SYMBOL = "unbound-symbol"

    # Evaluation
    DIVISION_BY_ZERO = "division-by-zero"
    UNDEFINED_OPERATION = "undefined-operation"

    # Lexical
    INVALID_CHARACTER = "invalid-character"

    @property
    def category(self) -> ErrorCategory:
        return _CATEGORIES[self]

    @classmethod
    def lookup(cls, code: str) -> Optional["ErrorCode"]:
        """Return the enum member for ``code`` or None for host-defined codes."""
        try:
            return cls(code)
        except ValueError:
            return None


_CATEGORIES = {
    ErrorCode.UNEXPECTED_TOKEN: ErrorCategory.SYNTAX,
    ErrorCode.UNEXPECTED_COMMAND: ErrorCategory.SYNTAX,
    ErrorCode.EXPECTED_CLOSE_DELIMITER: ErrorCategory.SYNTAX,
    ErrorCode.EXPECTED_OPEN_DELIMITER: ErrorCategory.SYNTAX,
    ErrorCode.MISSING_OPERAND: ErrorCategory.SYNTAX,
    ErrorCode.RECURSION_DEPTH_EXCEEDED: ErrorCategory.SYNTAX,
    ErrorCode.INCOMPATIBLE_DOMAIN: ErrorCategory.DOMAIN,
    ErrorCode.MISSING: ErrorCategory.DOMAIN,
    ErrorCode.UNEXPECTED_ARGUMENT: ErrorCategory.DOMAIN,
    ErrorCode.UNBOUND_SYMBOL: ErrorCategory.UNBOUND,
    ErrorCode.DIVISION_BY_ZERO: ErrorCategory.EVALUATION,
    ErrorCode.UNDEFINED_OPERATION: ErrorCategory.EVALUATION,
    ErrorCode.INVALID_CHARACTER: ErrorCategory.LEXICAL,
}


class Diagnostic(BaseModel):
    """A recoverable problem reported to the host diagnostic sink."""

    model_config = ConfigDict(frozen=True)

    code: str = Field(description="Error code, e.g. 'unexpected-token'")
    message: str = Field(default="", description="Human readable description")
    span: Optional[tuple[int, int]] = Field(
        default=None, description="Source offsets [start, end) when known"
    )
    details: Dict[str, Any] = Field(default_factory=dict)

    @property
    def category(self) -> Optional[ErrorCategory]:
        member = ErrorCode.lookup(self.code)
        return member.category if member else None


# Exceptions


class ComputeEngineError(Exception):
    """Base exception for the compute engine"""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class InvariantViolation(ComputeEngineError):
    """Raised when an internal invariant is broken. Always fatal."""


class ScopeError(InvariantViolation):
    """Raised when resolving in a destroyed scope or writing a frozen one"""

    def __init__(self, message: str, scope_id: Optional[int] = None):
        super().__init__(message, details={"scope_id": scope_id})
        self.scope_id = scope_id


class NumericModeError(InvariantViolation):
    """Raised when machine floats and arbitrary-precision decimals meet"""

    def __init__(self, left: str, right: str):
        super().__init__(
            f"Cannot combine {left} and {right} without an explicit conversion",
            details={"left": left, "right": right},
        )


class EvaluationError(ComputeEngineError):
    """A numeric operation is undefined under the requested exactness.

    Never escapes the evaluator: it is turned into an error node.
    """

    code: ErrorCode = ErrorCode.UNDEFINED_OPERATION


class DivisionByZero(EvaluationError):
    """Exact division by zero"""

    code = ErrorCode.DIVISION_BY_ZERO

    def __init__(self, message: str = "Division by zero"):
        super().__init__(message)


class NotExact(EvaluationError):
    """The exact representation cannot hold the result.

    The evaluator leaves the expression symbolic; ``N`` approximates it.
    """

    def __init__(self, operation: str):
        super().__init__(f"No exact result for {operation}", {"operation": operation})
