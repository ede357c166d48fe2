"""
Tokenizer for LaTeX math markup.

Regex-based tokenization with a combined named-group pattern. The tokenizer
is total: every input string produces a token list ending with EOF, and
characters no rule recognizes become single-character OPERATOR tokens that the
parser reports later.
"""

import re
from dataclasses import dataclass
from enum import Enum, auto


class TokenType(Enum):
    """Token types for LaTeX markup."""

    COMMAND = auto()  # \frac, \alpha, \{, \\
    GROUP_OPEN = auto()  # {
    GROUP_CLOSE = auto()  # }
    DIGITS = auto()  # a run of decimal digits
    LETTER = auto()  # a single letter
    OPERATOR = auto()  # any other single character
    SPACE = auto()  # a run of whitespace
    EOF = auto()


@dataclass(frozen=True)
class Token:
    """
    A single lexical unit.

    Attributes:
        type: The token type
        value: The verbatim text of the token
        pos: Offset of the token in the source string
    """

    type: TokenType
    value: str
    pos: int

    @property
    def end(self) -> int:
        return self.pos + len(self.value)

    def __repr__(self) -> str:
        return f"Token({self.type.name}, '{self.value}', pos={self.pos})"


# Order matters: comments must win over the catch-all operator
PATTERNS = {
    "COMMENT": r"%[^\n]*",
    "COMMAND": r"\\(?:[a-zA-Z]+|.)",
    "GROUP_OPEN": r"\{",
    "GROUP_CLOSE": r"\}",
    "DIGITS": r"\d+",
    "LETTER": r"[a-zA-Z]",
    "SPACE": r"\s+",
    "OPERATOR": r".|\n",
}


def _compile_patterns() -> "re.Pattern[str]":
    """Compile the combined pattern with one named group per token type."""
    pattern_parts = []
    for name, pattern in PATTERNS.items():
        pattern_parts.append(f"(?P<{name}>{pattern})")
    return re.compile("|".join(pattern_parts), re.DOTALL)


COMBINED_PATTERN = _compile_patterns()


def tokenize(text: str) -> list[Token]:
    """
    Tokenize LaTeX markup.

    A backslash at the very end of the input becomes an OPERATOR token.

    Args:
        text: The markup to tokenize

    Returns:
        List of tokens, always ending with an EOF token
    """
    tokens: list[Token] = []
    pos = 0

    while pos < len(text):
        match = COMBINED_PATTERN.match(text, pos)
        kind = match.lastgroup
        value = match.group()
        token_pos = pos
        pos = match.end()

        if kind == "COMMENT":
            continue

        tokens.append(Token(TokenType[kind], value, token_pos))

    tokens.append(Token(TokenType.EOF, "", len(text)))
    return tokens


def tokens_to_string(tokens: list[Token]) -> str:
    """
    Rebuild markup from tokens.

    A space is inserted after a letter command when the next token is a
    letter, so that ``\\alpha`` followed by ``x`` does not become ``\\alphax``.
    """
    parts: list[str] = []
    for i, token in enumerate(tokens):
        if token.type == TokenType.EOF:
            break
        parts.append(token.value)
        if (
            token.type == TokenType.COMMAND
            and token.value[1:].isalpha()
            and i + 1 < len(tokens)
            and tokens[i + 1].type == TokenType.LETTER
        ):
            parts.append(" ")
    return "".join(parts)
