"""
LaTeX parsing and serialization.

This package provides:
- Tokenizer for LaTeX math markup
- Grammar dictionary (YAML) and its read-only index
- Precedence-climbing parser producing MathJSON, with error recovery
- LaTeX serializer driven by the same dictionary
"""

from .dictionary import (
    Associativity,
    GrammarIndex,
    OperatorDefinition,
    OperatorKind,
    index_dictionary,
    load_dictionary,
    lookup,
)
from .parser import Parser, ParserOptions, parse_latex
from .serializer import LatexSerializer
from .tokenizer import Token, TokenType, tokenize, tokens_to_string

__all__ = [
    "Associativity",
    "GrammarIndex",
    "OperatorDefinition",
    "OperatorKind",
    "index_dictionary",
    "load_dictionary",
    "lookup",
    "Parser",
    "ParserOptions",
    "parse_latex",
    "LatexSerializer",
    "Token",
    "TokenType",
    "tokenize",
    "tokens_to_string",
]
