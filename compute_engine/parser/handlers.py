"""
Parse handlers referenced by the grammar dictionary.

A handler is called once the trigger of its definition has been consumed::

    handler(parser, definition, lhs) -> MathJSON | None

``lhs`` is the left operand for infix and postfix entries, the parsed body
for matchfix entries and None otherwise. Returning None declines the match:
the parser restores its cursor and tries the next candidate.
"""

from __future__ import annotations

from typing import Any, Callable, Optional

from ..core.errors import ErrorCode
from ..mathjson import Expression, head, operands, string, symbol_name
from .dictionary import Associativity, OperatorDefinition, OperatorKind, lookup, match_trigger
from .tokenizer import TokenType

Handler = Callable[[Any, OperatorDefinition, Optional[Expression]], Optional[Expression]]

HANDLERS: dict[str, Handler] = {}

NUMBER_SETS = {
    "N": "NonNegativeIntegers",
    "Z": "Integers",
    "Q": "RationalNumbers",
    "R": "RealNumbers",
    "C": "ComplexNumbers",
}


def handler(name: str) -> Callable[[Handler], Handler]:
    """Register a parse handler under ``name``."""

    def decorator(fn: Handler) -> Handler:
        HANDLERS[name] = fn
        return fn

    return decorator


def handler_for(definition: OperatorDefinition) -> Handler:
    """The handler named by ``definition.parse``, else the default for its kind."""
    if definition.parse is not None:
        return HANDLERS[definition.parse]
    return HANDLERS[definition.kind.value]


def _missing(parser) -> Expression:
    return parser.error(ErrorCode.MISSING_OPERAND)


def _rhs(parser, definition: OperatorDefinition) -> Expression:
    """Right operand of an infix operator."""
    prec = definition.precedence
    if definition.associativity != Associativity.RIGHT:
        prec += 1
    rhs = parser.match_expression(prec)
    return rhs if rhs is not None else _missing(parser)


# Defaults, one per kind


@handler("infix")
def infix(parser, definition, lhs):
    return [definition.name, lhs, _rhs(parser, definition)]


@handler("nary")
def nary(parser, definition, lhs):
    """Infix operator collecting a run of operands: ``a+b+c`` is ``["Add", a, b, c]``."""
    rhs = _rhs(parser, definition)
    if isinstance(lhs, list) and head(lhs) == definition.name:
        return [*lhs, rhs]
    return [definition.name, lhs, rhs]


@handler("prefix")
def prefix(parser, definition, _=None):
    operand = parser.match_expression(definition.precedence + 1)
    if operand is None:
        operand = _missing(parser)
    return [definition.name, operand]


@handler("postfix")
def postfix(parser, definition, lhs):
    return [definition.name, lhs]


@handler("matchfix")
def matchfix(parser, definition, body):
    if body is None:
        return [definition.name]
    if definition.name != "Delimiter" and head(body) == "Sequence":
        return [definition.name, *operands(body)]
    return [definition.name, body]


@handler("function")
def function(parser, definition, _=None):
    """
    A function command such as ``\\sin``.

    Accepts ``\\sin(x)``, ``\\sin x``, ``\\sin^2 x`` (the square of the
    sine) and ``\\log_2 x`` (a logarithm with a base).
    """
    exponent = base = None
    for _ in range(2):
        if exponent is None and parser.match("^"):
            exponent = parser.match_required_argument()
            if exponent is None:
                exponent = _missing(parser)
        elif base is None and parser.match("_"):
            base = parser.match_required_argument()
            if base is None:
                base = _missing(parser)
    args = parser.match_arguments()
    if args is None:
        arg = parser.match_implicit_argument()
        args = [arg if arg is not None else _missing(parser)]
    expr = [definition.name, *args]
    if base is not None:
        expr.append(base)
    if exponent is not None:
        return ["Power", expr, exponent]
    return expr


@handler("environment")
def environment(parser, definition, _=None):
    body = parser.match_expression(0)
    if not parser.match_environment_end(definition.trigger):
        return parser.error(
            ErrorCode.EXPECTED_CLOSE_DELIMITER,
            None,
            string(f"\\end{{{definition.trigger}}}"),
            original=body,
        )
    return [definition.name, body] if body is not None else [definition.name]


# Custom handlers


@handler("positive")
def positive(parser, definition, _=None):
    """Unary plus: ``+x`` is ``x``."""
    operand = parser.match_expression(definition.precedence + 1)
    return operand if operand is not None else _missing(parser)


@handler("frac")
def frac(parser, definition, _=None):
    numerator = parser.match_required_argument()
    if numerator is None:
        numerator = _missing(parser)
    denominator = parser.match_required_argument()
    if denominator is None:
        denominator = _missing(parser)
    return [definition.name, numerator, denominator]


@handler("sqrt")
def sqrt(parser, definition, _=None):
    """``\\sqrt{x}`` is ``["Sqrt", x]``, ``\\sqrt[n]{x}`` is ``["Root", x, n]``."""
    index = parser.match_optional_argument()
    radicand = parser.match_required_argument()
    if radicand is None:
        radicand = _missing(parser)
    if index is None:
        return ["Sqrt", radicand]
    return ["Root", radicand, index]


def _match_limits(parser) -> tuple[Optional[Expression], Optional[Expression]]:
    """Subscript and superscript of a big operator, in either order."""
    sub = sup = None
    for _ in range(2):
        if sub is None and parser.match("_"):
            sub = parser.match_required_argument()
        elif sup is None and parser.match("^"):
            sup = parser.match_required_argument()
    return sub, sup


@handler("big_operator")
def big_operator(parser, definition, _=None):
    """
    ``\\sum`` and ``\\prod`` with optional bounds.

    ``\\sum_{i=1}^{n} x_i`` is ``["Sum", ["Subscript", "x", "i"],
    ["Triple", "i", 1, "n"]]``. Missing parts of the bounds are ``Nothing``.
    """
    sub, sup = _match_limits(parser)
    index = lower = None
    if sub is not None:
        if head(sub) == "Equal" and len(operands(sub)) == 2:
            index, lower = operands(sub)
        else:
            index = sub
    body = parser.match_expression(definition.precedence + 1)
    if body is None:
        body = _missing(parser)
    if index is None and lower is None and sup is None:
        return [definition.name, body]
    bounds = [
        "Triple",
        index if index is not None else "Nothing",
        lower if lower is not None else "Nothing",
        sup if sup is not None else "Nothing",
    ]
    return [definition.name, body, bounds]


def _differential(parser) -> int:
    """Tokens of a ``d`` or ``\\mathrm{d}`` at the cursor followed by a variable, 0 if none."""
    tokens, i = parser.tokens, parser.index
    count = match_trigger(tokens, i, ("\\mathrm", "{", "d", "}"))
    if not count:
        if tokens[i].type != TokenType.LETTER or tokens[i].value != "d":
            return 0
        count = 1
    j = i + count
    while tokens[j].type == TokenType.SPACE:
        j += 1
    if tokens[j].type == TokenType.LETTER or lookup(parser.grammar, tokens, j, OperatorKind.SYMBOL):
        return count
    return 0


def _split_differential(expr: Expression) -> tuple[Expression, Optional[Expression]]:
    """
    Take a trailing ``d x`` out of an integrand parsed as a product.

    Looks in the numerator of a fraction, the operand of a negation or
    parentheses and the last term of a sum, as in ``\\frac{3x\\,dx}{5}``.

    Returns:
        (integrand, variable), the variable None when there is no differential
    """
    if not isinstance(expr, list) or len(expr) < 2:
        return expr, None
    name, ops = expr[0], expr[1:]
    if name == "Multiply" and len(ops) >= 2 and symbol_name(ops[-2]) == "d":
        rest = ops[:-2]
        if not rest:
            return 1, ops[-1]
        return (rest[0] if len(rest) == 1 else ["Multiply", *rest]), ops[-1]
    if name in ("Divide", "Negate", "Delimiter"):
        inner, variable = _split_differential(ops[0])
        if variable is not None:
            return [name, inner, *ops[1:]], variable
    elif name in ("Add", "Subtract"):
        inner, variable = _split_differential(ops[-1])
        if variable is not None:
            return [name, *ops[:-1], inner], variable
    return expr, None


@handler("integral")
def integral(parser, definition, _=None):
    """
    ``\\int`` with optional bounds, ended by a differential.

    ``\\int_0^1 x^2\\,\\mathrm{d}x`` is ``["Integrate", ["Power", "x", 2],
    ["Triple", "x", 0, 1]]``. A lower bound alone gives a ``Pair``, no bounds
    the bare variable. A missing variable is ``Nothing``.
    """
    lower, upper = _match_limits(parser)
    with parser.boundary(lambda p: _differential(p) > 0):
        body = parser.match_expression(definition.precedence + 1)

    variable = None
    mark = parser.index
    parser.skip_space()
    count = _differential(parser)
    if count:
        for _ in range(count):
            parser.next()
        variable = parser.match_primary()
    else:
        parser.pos = mark
        if body is not None:
            body, variable = _split_differential(body)
    if body is None:
        body = 1 if variable is not None else _missing(parser)

    variable = variable if variable is not None else "Nothing"
    if upper is not None:
        bounds = ["Triple", variable, lower if lower is not None else "Nothing", upper]
    elif lower is not None:
        bounds = ["Pair", variable, lower]
    else:
        bounds = variable
    return [definition.name, body, bounds]


@handler("multi_letter_symbol")
def multi_letter_symbol(parser, definition, _=None):
    """``\\mathrm{speed}`` is the symbol ``speed``."""
    text = parser.match_string_group()
    if text is None:
        return None
    text = text.strip()
    return text if text else ["Sequence"]


@handler("operator_name")
def operator_name(parser, definition, _=None):
    """``\\operatorname{name}``, applied to a parenthesized argument list when one follows."""
    text = parser.match_string_group()
    if text is None:
        return None
    name = text.strip()
    if name == "NaN":
        return {"num": "NaN"}
    if parser.peek().value in ("(", "\\left"):
        args = parser.match_arguments()
        if args is not None:
            return [name, *args]
    return name


@handler("text")
def text(parser, definition, _=None):
    content = parser.match_string_group()
    if content is None:
        return None
    return string(content)


@handler("number_set")
def number_set(parser, definition, _=None):
    """``\\mathbb{R}`` and friends."""
    letter = parser.match_string_group()
    if letter is None:
        parser.skip_space()
        if parser.peek().type not in (TokenType.LETTER, TokenType.DIGITS):
            return _missing(parser)
        letter = parser.next().value
    letter = letter.strip()
    if not letter:
        return _missing(parser)
    return NUMBER_SETS.get(letter, letter)


@handler("matrix")
def matrix(parser, definition, _=None):
    """
    ``matrix``-like environments: cells separated by ``&``, rows by ``\\\\``.

    Produces ``["Matrix", ["List", ["List", ...], ...]]``.
    """
    rows: list[list[Expression]] = []
    row: list[Expression] = []
    with parser.boundary(("&",), ("\\\\",), ("\\end",)):
        while True:
            cell = parser.match_expression(0)
            row.append(cell if cell is not None else "Nothing")
            if parser.match("&"):
                continue
            if parser.match("\\\\"):
                rows.append(row)
                row = []
                continue
            break
    if row != ["Nothing"]:
        rows.append(row)
    result = ["Matrix", ["List", *(["List", *r] for r in rows)]]
    if not parser.match_environment_end(definition.trigger):
        return parser.error(
            ErrorCode.EXPECTED_CLOSE_DELIMITER,
            None,
            string(f"\\end{{{definition.trigger}}}"),
            original=result,
        )
    return result
