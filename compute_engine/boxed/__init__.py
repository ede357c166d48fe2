"""
Boxed expressions and their domains.

Boxing, canonicalization and evaluation live in ``canonical.py`` and
``evaluate.py``; they are reached through ``ComputeEngine``.
"""

from .domains import Domain, is_compatible, is_subdomain, number_domain, to_domain, widen
from .expression import BoxedExpression, BoxedFunction, BoxedNumber, BoxedString, BoxedSymbol

__all__ = [
    "Domain",
    "is_compatible",
    "is_subdomain",
    "number_domain",
    "to_domain",
    "widen",
    "BoxedExpression",
    "BoxedFunction",
    "BoxedNumber",
    "BoxedString",
    "BoxedSymbol",
]
