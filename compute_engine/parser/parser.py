"""
Precedence-climbing parser for LaTeX math markup.

The parser is driven by a ``GrammarIndex``: each token is looked up by kind
(symbol, function, prefix, matchfix, environment in operand position; infix
and postfix after an operand) and the candidates are tried in index order,
backtracking when a parse handler declines. The output is MathJSON.

Parsing never raises. A token that cannot continue the expression becomes an
``["Error", ...]`` node, the parser skips it and resumes, so a single call
reports every problem in the input.

Ambiguity between implicit multiplication and function application is
resolved by explicit priority: a letter listed in
``ParserOptions.applied_function_symbols`` and immediately followed by ``(``
is applied to the parenthesized arguments; any other juxtaposition is a
multiplication.
"""

from __future__ import annotations

import copy
import logging
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Callable, Iterator, Optional, Union

from ..core.errors import Diagnostic, ErrorCode
from ..mathjson import Expression, head, operands
from ..mathjson import error as error_node
from ..numerics.rational import MAX_SAFE_INTEGER
from ..numerics.tower import MACHINE_DIGITS, significant_digits
from .dictionary import GrammarIndex, OperatorKind, lookup, match_trigger
from .tokenizer import Token, TokenType, tokenize, tokens_to_string

logger = logging.getLogger(__name__)

# Precedence of implicit multiplication
MULTIPLY_PRECEDENCE = 390

SPACING_COMMANDS = frozenset({"\\,", "\\:", "\\;", "\\!", "\\ ", "\\>", "\\quad", "\\qquad"})

# A closing trigger, or a predicate telling whether the cursor is at a closer
Closer = Union[tuple[str, ...], Callable[["Parser"], bool]]


@dataclass
class ParserOptions:
    """Options controlling a parse."""

    preserve_latex: bool = False
    applied_function_symbols: tuple[str, ...] = ("f", "g", "h")
    max_recursion_depth: int = 100


class Parser:
    """
    Recursive descent parser with precedence climbing.

    Handlers registered in ``handlers.py`` use the public methods of this
    class (``peek``, ``next``, ``match``, ``match_expression``,
    ``match_group``, ``match_required_argument``, ...) to consume tokens.
    """

    def __init__(
        self,
        tokens: list[Token],
        grammar: GrammarIndex,
        options: Optional[ParserOptions] = None,
        source: Optional[str] = None,
    ):
        """
        Args:
            tokens: Output of ``tokenize()``, ending with EOF
            grammar: The grammar index to drive the parse
            options: Parser options
            source: Original markup, used for the ``latex`` of annotated nodes
        """
        # Handlers may split tokens (e.g. the digits of \frac12): own a copy
        self.tokens = list(tokens)
        if not self.tokens or self.tokens[-1].type != TokenType.EOF:
            end = self.tokens[-1].end if self.tokens else 0
            self.tokens.append(Token(TokenType.EOF, "", end))
        self.grammar = grammar
        self.options = options or ParserOptions()
        self.source = source
        self.pos = 0
        self.diagnostics: list[Diagnostic] = []
        self._boundaries: list[tuple[Closer, ...]] = []
        # (index, original token) of every token split by a handler
        self._splits: list[tuple[int, Token]] = []
        self._depth = 0
        self._aborted = False
        self._implicit_argument = False

    # Cursor

    @property
    def index(self) -> int:
        """Index of the current token."""
        return self.pos

    @property
    def at_end(self) -> bool:
        i = self.pos
        while self.tokens[i].type == TokenType.SPACE:
            i += 1
        return self.tokens[i].type == TokenType.EOF

    def peek(self, offset: int = 0) -> Token:
        """Token at ``offset`` from the current position, without consuming it."""
        return self.tokens[min(self.pos + offset, len(self.tokens) - 1)]

    def next(self) -> Token:
        """Consume and return the current token."""
        token = self.peek()
        if self.pos < len(self.tokens) - 1:
            self.pos += 1
        return token

    def skip_space(self) -> bool:
        """Skip whitespace and spacing commands. Returns True if any were skipped."""
        start = self.pos
        while self.peek().type == TokenType.SPACE or self.peek().value in SPACING_COMMANDS:
            self.next()
        return self.pos > start

    def match(self, value: str) -> bool:
        """Consume the next token if its text is ``value``."""
        mark = self.pos
        self.skip_space()
        token = self.peek()
        if token.type != TokenType.EOF and token.value == value:
            self.next()
            return True
        self.pos = mark
        return False

    def match_tokens(self, trigger: tuple[str, ...]) -> bool:
        """Consume a multi-token trigger such as ``\\right)``."""
        mark = self.pos
        self.skip_space()
        count = match_trigger(self.tokens, self.pos, trigger)
        if count:
            self.pos += count
            return True
        self.pos = mark
        return False

    # Boundaries: closing triggers the current sub-expression must stop at

    @contextmanager
    def boundary(self, *closers: Closer) -> Iterator[None]:
        self._boundaries.append(closers)
        saved, self._implicit_argument = self._implicit_argument, False
        try:
            yield
        finally:
            self._boundaries.pop()
            self._implicit_argument = saved

    def at_boundary(self) -> bool:
        if not self._boundaries:
            return False
        return any(self._at_closer(c) for c in self._boundaries[-1])

    def _at_enclosing_boundary(self) -> bool:
        return any(self._at_closer(c) for closers in self._boundaries for c in closers)

    def _at_closer(self, closer: Closer) -> bool:
        if callable(closer):
            return closer(self)
        return bool(match_trigger(self.tokens, self.pos, closer))

    # Errors and annotations

    def error(
        self,
        kind: str | ErrorCode,
        pos: Optional[int] = None,
        *details: Expression,
        original: Expression = None,
    ) -> Expression:
        """
        Build an error node and record a diagnostic.

        Args:
            kind: Error code
            pos: Index of the first offending token, defaults to the cursor
            details: Extra MathJSON operands of the ``ErrorCode`` node
            original: The partial expression the error replaces
        """
        if isinstance(kind, ErrorCode):
            kind = kind.value
        start = self.pos if pos is None else pos
        span = self._span(start, self.pos)
        self.diagnostics.append(
            Diagnostic(
                code=kind,
                message=f"{kind} at offset {span[0]}",
                span=span,
                details={"latex": self._latex(start, self.pos)},
            )
        )
        return self._annotate(error_node(kind, *details, original=original), start)

    def _span(self, start: int, end: int) -> tuple[int, int]:
        begin = self.tokens[start].pos
        while end > start and self.tokens[end - 1].type == TokenType.SPACE:
            end -= 1
        if end > start:
            return (begin, self.tokens[end - 1].end)
        return (begin, begin)

    def _latex(self, start: int, end: int) -> str:
        begin, stop = self._span(start, end)
        if self.source is not None:
            return self.source[begin:stop]
        return tokens_to_string(self.tokens[start:end])

    def _annotate(self, expr: Expression, start: int) -> Expression:
        """Attach the source span of tokens ``start..cursor`` when fidelity is requested."""
        if not self.options.preserve_latex or expr is None:
            return expr
        while start < self.pos and self.tokens[start].type == TokenType.SPACE:
            start += 1
        if isinstance(expr, bool) or isinstance(expr, (int, float)):
            node = {"num": repr(expr) if isinstance(expr, float) else str(expr)}
        elif isinstance(expr, str):
            node = {"sym": expr}
        elif isinstance(expr, list):
            node = {"fn": expr}
        else:
            node = {k: v for k, v in expr.items() if k not in ("latex", "sourceOffsets")}
        node["latex"] = self._latex(start, self.pos)
        node["sourceOffsets"] = list(self._span(start, self.pos))
        return node

    def _abort(self) -> Expression:
        start = self.pos
        self.pos = len(self.tokens) - 1
        node = self.error(ErrorCode.RECURSION_DEPTH_EXCEEDED, start)
        self._aborted = True
        logger.warning(
            "Maximum recursion depth exceeded while parsing",
            extra={"extra_data": {"max_depth": self.options.max_recursion_depth}},
        )
        return node

    # Top level

    def parse(self, cursor: Optional[int] = None) -> Expression:
        """
        Parse the whole token list.

        Returns:
            MathJSON, never None: an empty input gives ``["Sequence"]`` and
            several top-level items (including error nodes) are wrapped in a
            ``Sequence``
        """
        try:
            result = self._match_sequence()
        except RecursionError:
            self._aborted = True
            result = self.error(ErrorCode.RECURSION_DEPTH_EXCEEDED, 0)
        if result is None:
            result = ["Sequence"]
        if self.options.preserve_latex and cursor is not None:
            if not isinstance(result, dict):
                result = self._annotate(result, 0)
            result["cursorPosition"] = cursor
        return result

    def _match_sequence(self) -> Optional[Expression]:
        """
        Parse expressions until EOF or an enclosing boundary.

        Unparseable tokens become error nodes and are skipped.
        """
        start = self.pos
        items: list[Expression] = []
        while not self._aborted:
            expr = self.match_expression(0)
            if expr is not None:
                items.append(expr)
            self.skip_space()
            if self.at_end or self._aborted or self._at_enclosing_boundary():
                break
            items.append(self._unexpected_token())
        if not items:
            return None
        if len(items) == 1:
            return items[0]
        return self._annotate(["Sequence", *items], start)

    def _unexpected_token(self) -> Expression:
        start = self.pos
        token = self.next()
        if token.type == TokenType.GROUP_CLOSE:
            return self.error(ErrorCode.EXPECTED_OPEN_DELIMITER, start, {"str": "{"})
        definition = self.grammar.matchfix_for_close(token.value)
        if definition is not None:
            return self.error(
                ErrorCode.EXPECTED_OPEN_DELIMITER, start, {"str": definition.trigger}
            )
        if token.type == TokenType.COMMAND:
            return self.error(ErrorCode.UNEXPECTED_COMMAND, start, {"str": token.value})
        return self.error(ErrorCode.UNEXPECTED_TOKEN, start, {"str": token.value})

    # Expressions

    def match_expression(self, min_prec: int = 0) -> Optional[Expression]:
        """
        Parse an expression whose operators bind at least as tightly as ``min_prec``.

        Returns:
            MathJSON, or None if no operand starts at the cursor
        """
        self._depth += 1
        try:
            if self._depth > self.options.max_recursion_depth:
                return self._abort()
            self.skip_space()
            start = self.pos
            lhs = self.match_primary()
            if lhs is None:
                return None
            while True:
                self.skip_space()
                if self._aborted or self.at_end or self.at_boundary():
                    break
                result, stop = self._match_infix_or_postfix(lhs, min_prec, start)
                if stop:
                    break
                if result is not None:
                    lhs = result
                    continue
                result = self._match_implicit_multiplication(lhs, min_prec, start)
                if result is None:
                    break
                lhs = result
            return lhs
        finally:
            self._depth -= 1

    def _match_infix_or_postfix(
        self, lhs: Expression, min_prec: int, start: int
    ) -> tuple[Optional[Expression], bool]:
        """
        Try the infix and postfix operators at the cursor.

        Returns:
            (expression, stop): ``stop`` is True when an operator matched but
            binds too loosely for ``min_prec``
        """
        from .handlers import handler_for

        found = False
        for kind in (OperatorKind.INFIX, OperatorKind.POSTFIX):
            for candidate, count in lookup(self.grammar, self.tokens, self.pos, kind):
                found = True
                definition = candidate.definition
                if definition.precedence < min_prec:
                    continue
                mark = self._mark()
                self.pos += count
                result = handler_for(definition)(self, definition, lhs)
                if result is not None:
                    return self._annotate(result, start), False
                self._reset(mark)
        return None, found

    def _match_implicit_multiplication(
        self, lhs: Expression, min_prec: int, start: int
    ) -> Optional[Expression]:
        if min_prec > MULTIPLY_PRECEDENCE:
            return None
        if self._implicit_argument and self._at_function():
            return None
        mark = self._mark()
        rhs = self.match_expression(MULTIPLY_PRECEDENCE + 1)
        if rhs is None:
            self._reset(mark)
            return None
        if isinstance(lhs, list) and head(lhs) == "Multiply":
            return self._annotate([*lhs, rhs], start)
        return self._annotate(["Multiply", lhs, rhs], start)

    def match_implicit_argument(self) -> Optional[Expression]:
        """
        Argument of a function written without parentheses, as in ``\\sin 2x``.

        Stops before the next function so ``\\sin x \\cos x`` is a product.
        """
        saved, self._implicit_argument = self._implicit_argument, True
        try:
            return self.match_expression(MULTIPLY_PRECEDENCE)
        finally:
            self._implicit_argument = saved

    def _at_function(self) -> bool:
        return bool(lookup(self.grammar, self.tokens, self.pos, OperatorKind.FUNCTION))

    def _mark(self) -> tuple[int, int, int]:
        return (self.pos, len(self.diagnostics), len(self._splits))

    def _reset(self, mark: tuple[int, int, int]) -> None:
        self.pos, count, splits = mark
        del self.diagnostics[count:]
        while len(self._splits) > splits:
            index, token = self._splits.pop()
            self.tokens[index : index + 2] = [token]

    def split_token(self, head_length: int) -> None:
        """Split the current token after ``head_length`` characters, undone on backtracking."""
        token = self.peek()
        first = Token(token.type, token.value[:head_length], token.pos)
        rest = Token(token.type, token.value[head_length:], token.pos + head_length)
        self._splits.append((self.pos, token))
        self.tokens[self.pos : self.pos + 1] = [first, rest]

    # Primaries

    def match_primary(self) -> Optional[Expression]:
        """
        Parse an operand: number, symbol, string, group, prefix operator,
        function, matchfix group or environment.
        """
        self.skip_space()
        if self._aborted or self.at_boundary():
            return None
        start = self.pos
        token = self.peek()
        if token.type == TokenType.EOF:
            return None

        result = self._match_number()
        if result is None and token.type == TokenType.GROUP_OPEN:
            result = self.match_group()
        if result is None and token.value == "\\begin":
            result = self._match_environment()
        if result is None:
            result = self._match_symbol()
        if result is None:
            result = self._match_prefix(OperatorKind.FUNCTION)
        if result is None:
            result = self._match_prefix(OperatorKind.PREFIX)
        if result is None:
            result = self._match_matchfix()
        if result is None and token.type == TokenType.LETTER:
            result = self._match_letter()
        if result is None and token.type == TokenType.COMMAND and self._is_unknown_command(token):
            self.next()
            return self.error(
                ErrorCode.UNEXPECTED_COMMAND,
                start,
                {"str": token.value},
                original=["LatexString", {"str": token.value}],
            )
        if result is None:
            self.pos = start
            return None
        return self._annotate(result, start)

    def _is_unknown_command(self, token: Token) -> bool:
        if token.value in ("\\end", "\\\\") or self.grammar.is_close_trigger(token.value):
            return False
        for kind in OperatorKind:
            if self.grammar.candidates(kind, token.value):
                return False
        return True

    def _match_number(self) -> Optional[Expression]:
        token = self.peek()
        digits = ""
        if token.type == TokenType.DIGITS:
            digits = self.next().value
        fraction = None
        if self.peek().value == "." and self.peek(1).type == TokenType.DIGITS:
            self.next()
            fraction = self.next().value
        if not digits and fraction is None:
            return None
        if fraction is None:
            value = int(digits)
            return value if value <= MAX_SAFE_INTEGER else {"num": digits}
        text = f"{digits or '0'}.{fraction}"
        if significant_digits(text) > MACHINE_DIGITS:
            return {"num": text}
        return float(text)

    def _match_symbol(self) -> Optional[Expression]:
        matches = lookup(self.grammar, self.tokens, self.pos, OperatorKind.SYMBOL)
        if not matches:
            return None
        candidate, count = matches[0]
        self.pos += count
        value = candidate.definition.value
        return copy.deepcopy(value) if value is not None else candidate.definition.name

    def _match_letter(self) -> Expression:
        """A single-letter symbol, applied to arguments when it names a function."""
        letter = self.next().value
        if letter in self.options.applied_function_symbols and self.peek().value in ("(", "\\left"):
            args = self.match_arguments()
            if args is not None:
                return [letter, *args]
        return letter

    def _match_prefix(self, kind: OperatorKind) -> Optional[Expression]:
        from .handlers import handler_for

        for candidate, count in lookup(self.grammar, self.tokens, self.pos, kind):
            mark = self._mark()
            self.pos += count
            result = handler_for(candidate.definition)(self, candidate.definition, None)
            if result is not None:
                return result
            self._reset(mark)
        return None

    def _match_matchfix(self) -> Optional[Expression]:
        from .handlers import handler_for

        for candidate, count in lookup(self.grammar, self.tokens, self.pos, OperatorKind.MATCHFIX):
            definition = candidate.definition
            mark = self._mark()
            open_index = self.pos
            self.pos += count
            with self.boundary(candidate.close_tokens):
                body = self._match_sequence()
            closed = self.match_tokens(candidate.close_tokens)
            result = handler_for(definition)(self, definition, body)
            if result is None:
                self._reset(mark)
                continue
            if not closed and not self._aborted:
                return self.error(
                    ErrorCode.EXPECTED_CLOSE_DELIMITER,
                    open_index,
                    {"str": definition.close},
                    original=result,
                )
            return result
        return None

    def _match_environment(self) -> Optional[Expression]:
        from .handlers import handler_for

        start = self.pos
        self.next()
        name = self.match_string_group()
        if name is None:
            self.pos = start
            return None
        candidates = self.grammar.candidates(OperatorKind.ENVIRONMENT, name.strip())
        if not candidates:
            return self.error(
                ErrorCode.UNEXPECTED_COMMAND, start, {"str": f"\\begin{{{name}}}"}
            )
        definition = candidates[0].definition
        return handler_for(definition)(self, definition, None)

    def match_environment_end(self, name: str) -> bool:
        """Consume ``\\end{name}``."""
        mark = self.pos
        if self.match("\\end") and (self.match_string_group() or "").strip() == name:
            return True
        self.pos = mark
        return False

    # Arguments

    def match_group(self) -> Optional[Expression]:
        """
        Parse ``{...}``.

        Returns:
            The group content, ``["Sequence"]`` for an empty group, an
            ``expected-close-delimiter`` error if ``}`` is missing, or None if
            the cursor is not on ``{``
        """
        self.skip_space()
        start = self.pos
        if self.peek().type != TokenType.GROUP_OPEN:
            return None
        self.next()
        with self.boundary(("}",)):
            body = self._match_sequence()
        if body is None:
            body = ["Sequence"]
        if not self.match("}") and not self._aborted:
            return self.error(
                ErrorCode.EXPECTED_CLOSE_DELIMITER, start, {"str": "}"}, original=body
            )
        return body

    def match_string_group(self) -> Optional[str]:
        """The verbatim text of a ``{...}`` group, braces balanced."""
        mark = self.pos
        self.skip_space()
        if self.peek().type != TokenType.GROUP_OPEN:
            self.pos = mark
            return None
        self.next()
        level = 0
        parts: list[str] = []
        while self.peek().type != TokenType.EOF:
            token = self.next()
            if token.type == TokenType.GROUP_OPEN:
                level += 1
            elif token.type == TokenType.GROUP_CLOSE:
                if level == 0:
                    return "".join(parts)
                level -= 1
            parts.append(token.value)
        self.pos = mark
        return None

    def match_required_argument(self) -> Optional[Expression]:
        """
        A command argument: a ``{...}`` group or a single token.

        A digit run supplies a single digit, so ``\\frac12`` is one half.
        """
        self.skip_space()
        token = self.peek()
        if token.type == TokenType.GROUP_OPEN:
            return self.match_group()
        if token.type == TokenType.DIGITS:
            if len(token.value) > 1:
                self.split_token(1)
            start = self.pos
            return self._annotate(int(self.next().value), start)
        if token.type in (TokenType.LETTER, TokenType.COMMAND):
            return self.match_primary()
        return None

    def match_optional_argument(self) -> Optional[Expression]:
        """A ``[...]`` argument, None when absent."""
        mark = self.pos
        if not self.match("["):
            return None
        with self.boundary(("]",)):
            body = self._match_sequence()
        if not self.match("]"):
            self.pos = mark
            return None
        return body

    def match_arguments(self) -> Optional[list[Expression]]:
        """
        A parenthesized, comma-separated argument list.

        Returns:
            The arguments, or None if the cursor is not on ``(``
        """
        mark = self.pos
        start = self.pos
        if self.match("("):
            close: tuple[str, ...] = (")",)
        elif self.match_tokens(("\\left", "(")):
            close = ("\\right", ")")
        else:
            self.pos = mark
            return None
        with self.boundary(close):
            body = self._match_sequence()
        if not self.match_tokens(close) and not self._aborted:
            return [
                self.error(
                    ErrorCode.EXPECTED_CLOSE_DELIMITER,
                    start,
                    {"str": "".join(close)},
                    original=body,
                )
            ]
        if body is None:
            return []
        if head(body) == "Sequence":
            return operands(body)
        return [body]


def parse_latex(
    latex: str,
    grammar: GrammarIndex,
    options: Optional[ParserOptions] = None,
    cursor: Optional[int] = None,
) -> tuple[Expression, list[Diagnostic]]:
    """
    Parse LaTeX markup to MathJSON.

    Returns:
        The expression and the diagnostics recorded while parsing
    """
    parser = Parser(tokenize(latex), grammar, options, source=latex)
    expr = parser.parse(cursor)
    return expr, parser.diagnostics
