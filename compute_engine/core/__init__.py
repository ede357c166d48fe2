"""Configuration, logging and error taxonomy shared by the engine."""

from .config import NumericMode, Settings, get_settings
from .errors import (
    ComputeEngineError,
    Diagnostic,
    DivisionByZero,
    ErrorCategory,
    ErrorCode,
    EvaluationError,
    InvariantViolation,
    NotExact,
    NumericModeError,
    ScopeError,
)
from .logging import get_context_logger, get_logger, setup_logging

__all__ = [
    "NumericMode",
    "Settings",
    "get_settings",
    "ComputeEngineError",
    "Diagnostic",
    "DivisionByZero",
    "ErrorCategory",
    "ErrorCode",
    "EvaluationError",
    "InvariantViolation",
    "NotExact",
    "NumericModeError",
    "ScopeError",
    "get_context_logger",
    "get_logger",
    "setup_logging",
]
