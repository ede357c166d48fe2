"""
LaTeX serializer.

Converts MathJSON back to LaTeX using the same grammar dictionary as the
parser: the first definition declared for a head supplies its trigger, and
operator precedences decide where parentheses are needed.

Examples:
    ["Add", "x", 1]                 → "x+1"
    ["Power", "x", 2]               → "x^{2}"
    ["Divide", 1, "x"]              → "\\frac{1}{x}"
    ["Sin", ["Multiply", 2, "x"]]   → "\\sin(2\\cdot x)"
"""

from __future__ import annotations

import math
import re
from typing import Optional

from ..mathjson import Expression, head, operands, strip_metadata, symbol_name
from .dictionary import Associativity, GrammarIndex, OperatorKind
from .handlers import NUMBER_SETS

# Precedence of expressions that never need parentheses
ATOMIC = 10_000

NEGATE_PRECEDENCE = 275
MULTIPLY_PRECEDENCE = 390
INTEGRAL_PRECEDENCE = 265

_NUMBER_SET_LETTERS = {name: letter for letter, name in NUMBER_SETS.items()}

_TRAILING_COMMAND = re.compile(r"\\[a-zA-Z]+$")


def concat(left: str, right: str) -> str:
    """Join two LaTeX fragments, keeping a command from running into a letter."""
    if right[:1].isalpha() and _TRAILING_COMMAND.search(left):
        return f"{left} {right}"
    return left + right


class LatexSerializer:
    """
    Convert MathJSON to LaTeX.

    One method per node kind, with precedence-based parenthesization.
    """

    def __init__(self, grammar: GrammarIndex):
        self.grammar = grammar

    def serialize(self, expr: Expression) -> str:
        return self.visit(strip_metadata(expr))

    def visit(self, expr: Expression) -> str:
        if isinstance(expr, bool):
            return r"\top" if expr else r"\bot"
        if isinstance(expr, (int, float)):
            return self.serialize_number(expr)
        if isinstance(expr, dict):
            if "num" in expr:
                return self.serialize_numeral(str(expr["num"]))
            if "str" in expr:
                return self.serialize_string(str(expr["str"]))
            return ""
        name = symbol_name(expr)
        if name is not None:
            return self.serialize_symbol(name)
        if isinstance(expr, str):
            # 'quoted' string literal
            return self.serialize_string(expr[1:-1])
        if head(expr) is not None:
            return self.serialize_function(head(expr), operands(expr))
        return ""

    # Atoms

    def serialize_number(self, value: int | float) -> str:
        if isinstance(value, float):
            if math.isnan(value):
                return r"\operatorname{NaN}"
            if math.isinf(value):
                return r"\infty" if value > 0 else r"-\infty"
            return self._numeral(repr(value))
        return str(value)

    def serialize_numeral(self, text: str) -> str:
        text = text.strip()
        if text in ("NaN", "+NaN", "-NaN"):
            return r"\operatorname{NaN}"
        if text in ("Infinity", "+Infinity"):
            return r"\infty"
        if text == "-Infinity":
            return r"-\infty"
        return self._numeral(text)

    def _numeral(self, text: str) -> str:
        """Scientific notation becomes ``m\\cdot10^{e}``."""
        lowered = text.lower()
        if "e" not in lowered:
            return text
        mantissa, exponent = lowered.split("e", 1)
        return f"{mantissa}\\cdot10^{{{int(exponent)}}}"

    def serialize_symbol(self, name: str) -> str:
        definitions = self.grammar.by_name(name, OperatorKind.SYMBOL)
        if definitions:
            return definitions[0].trigger
        if name in _NUMBER_SET_LETTERS:
            return f"\\mathbb{{{_NUMBER_SET_LETTERS[name]}}}"
        if len(name) == 1:
            return name
        base, _, subscript = name.partition("_")
        if base and subscript.isdigit():
            return f"{self.serialize_symbol(base)}_{{{subscript}}}"
        if base and subscript:
            return f"{self.serialize_symbol(base)}_{{{self.serialize_symbol(subscript)}}}"
        return f"\\mathrm{{{name}}}"

    def serialize_string(self, text: str) -> str:
        return f"\\text{{{text}}}"

    # Functions

    def serialize_function(self, name: str, ops: list[Expression]) -> str:
        method = getattr(self, f"visit_{name.lower()}", None)
        if method is not None and name[:1].isupper():
            result = method(ops)
            if result is not None:
                return result

        for kind in (OperatorKind.INFIX, OperatorKind.PREFIX, OperatorKind.POSTFIX):
            definitions = self.grammar.by_name(name, kind)
            if definitions and definitions[0].parse in (None, "nary"):
                return getattr(self, f"_{kind.value}")(definitions[0], ops)

        matchfix = self.grammar.by_name(name, OperatorKind.MATCHFIX)
        if matchfix:
            body = ", ".join(self.visit(op) for op in ops)
            return concat(concat(matchfix[0].trigger, body), matchfix[0].close)

        function = self.grammar.by_name(name, OperatorKind.FUNCTION)
        if function:
            return f"{function[0].trigger}{self._arguments(ops)}"

        if len(name) == 1:
            return f"{name}{self._arguments(ops)}"
        return f"\\operatorname{{{name}}}{self._arguments(ops)}"

    def _arguments(self, ops: list[Expression]) -> str:
        return "(" + ", ".join(self.visit(op) for op in ops) + ")"

    def _infix(self, definition, ops: list[Expression]) -> str:
        if len(ops) == 1:
            return self.visit(ops[0])
        prec = definition.precedence
        parts = []
        associativity = definition.associativity
        for i, op in enumerate(ops):
            if associativity == Associativity.LEFT:
                strict = i > 0
            elif associativity == Associativity.RIGHT:
                strict = i < len(ops) - 1
            else:
                strict = True
            parts.append(self._wrap(op, prec, strict))
        trigger = definition.trigger
        separator = f" {trigger} " if trigger[0] == "\\" else trigger
        return separator.join(parts)

    def _prefix(self, definition, ops: list[Expression]) -> str:
        operand = self._wrap(ops[0], definition.precedence, strict=True) if ops else ""
        return concat(definition.trigger, operand)

    def _postfix(self, definition, ops: list[Expression]) -> str:
        operand = self._wrap(ops[0], definition.precedence, strict=True) if ops else ""
        return f"{operand}{definition.trigger}"

    # Parenthesization

    def precedence(self, expr: Expression) -> int:
        name = head(expr)
        if name is None:
            if self._is_negative_literal(expr):
                return NEGATE_PRECEDENCE
            return ATOMIC
        if name in ("Negate", "Complex"):
            return NEGATE_PRECEDENCE
        if name in ("Divide", "Rational"):
            return ATOMIC
        for kind in (OperatorKind.INFIX, OperatorKind.PREFIX, OperatorKind.POSTFIX):
            definitions = self.grammar.by_name(name, kind)
            if definitions and definitions[0].precedence:
                return definitions[0].precedence
        return ATOMIC

    def _wrap(self, expr: Expression, prec: int, strict: bool = False) -> str:
        inner = self.precedence(expr)
        text = self.visit(expr)
        if inner < prec or (strict and inner == prec):
            return f"({text})"
        return text

    def _is_negative_literal(self, expr: Expression) -> bool:
        if isinstance(expr, bool):
            return False
        if isinstance(expr, (int, float)):
            return expr < 0
        if isinstance(expr, dict) and "num" in expr:
            return str(expr["num"]).strip().startswith("-")
        if head(expr) == "Rational":
            return self._is_negative_literal(operands(expr)[0])
        return False

    def _split_sign(self, expr: Expression) -> tuple[bool, Expression]:
        """Separate a leading minus sign from ``expr``."""
        if head(expr) == "Negate" and len(operands(expr)) == 1:
            return True, operands(expr)[0]
        if isinstance(expr, (int, float)) and not isinstance(expr, bool) and expr < 0:
            return True, -expr
        if isinstance(expr, dict) and "num" in expr:
            text = str(expr["num"]).strip()
            if text.startswith("-"):
                return True, {"num": text[1:]}
        if head(expr) == "Rational" and self._is_negative_literal(operands(expr)[0]):
            num, den = operands(expr)
            return True, ["Rational", self._split_sign(num)[1], den]
        if head(expr) == "Multiply" and operands(expr):
            first, *rest = operands(expr)
            negative, magnitude = self._split_sign(first)
            if negative:
                if magnitude == 1 and rest:
                    return True, rest[0] if len(rest) == 1 else ["Multiply", *rest]
                return True, ["Multiply", magnitude, *rest]
        return False, expr

    # Heads with dedicated notation

    def visit_add(self, ops: list[Expression]) -> Optional[str]:
        if not ops:
            return "0"
        result = ""
        for i, op in enumerate(ops):
            negative, magnitude = self._split_sign(op)
            text = self._wrap(magnitude, NEGATE_PRECEDENCE, strict=negative)
            if i > 0 and text.startswith("-"):
                text = f"({text})"
            if i == 0:
                result = f"-{text}" if negative else text
            else:
                result += f"-{text}" if negative else f"+{text}"
        return result

    def visit_subtract(self, ops: list[Expression]) -> Optional[str]:
        if len(ops) != 2:
            return None
        return f"{self._wrap(ops[0], NEGATE_PRECEDENCE)}-{self._wrap(ops[1], NEGATE_PRECEDENCE, strict=True)}"

    def visit_negate(self, ops: list[Expression]) -> Optional[str]:
        if len(ops) != 1:
            return None
        operand = ops[0]
        if self._is_negative_literal(operand) or head(operand) == "Negate":
            return f"-({self.visit(operand)})"
        return f"-{self._wrap(operand, NEGATE_PRECEDENCE, strict=True)}"

    def visit_multiply(self, ops: list[Expression]) -> Optional[str]:
        if not ops:
            return "1"
        negative, magnitude = self._split_sign(["Multiply", *ops])
        if negative:
            return f"-{self._wrap(magnitude, NEGATE_PRECEDENCE, strict=True)}"
        parts = []
        for i, op in enumerate(ops):
            if i > 0 and self._is_negative_literal(op):
                parts.append(f"({self.visit(op)})")
            else:
                parts.append(self._wrap(op, MULTIPLY_PRECEDENCE, strict=i > 0))
        return "\\cdot ".join(parts)

    def visit_divide(self, ops: list[Expression]) -> Optional[str]:
        if len(ops) != 2:
            return None
        return f"\\frac{{{self.visit(ops[0])}}}{{{self.visit(ops[1])}}}"

    def visit_rational(self, ops: list[Expression]) -> Optional[str]:
        if len(ops) != 2:
            return None
        negative, num = self._split_sign(ops[0])
        text = f"\\frac{{{self.visit(num)}}}{{{self.visit(ops[1])}}}"
        return f"-{text}" if negative else text

    def visit_complex(self, ops: list[Expression]) -> Optional[str]:
        if len(ops) != 2:
            return None
        re, im = ops
        negative, magnitude = self._split_sign(im)
        unit = self.serialize_symbol("ImaginaryUnit")
        imaginary = unit if magnitude == 1 else f"{self.visit(magnitude)}{unit}"
        if re == 0:
            return f"-{imaginary}" if negative else imaginary
        return f"{self.visit(re)}{'-' if negative else '+'}{imaginary}"

    def visit_power(self, ops: list[Expression]) -> Optional[str]:
        if len(ops) != 2:
            return None
        base, exponent = ops
        if head(base) in self._function_heads():
            # \sin^{2}(x)
            fn = self.grammar.by_name(head(base), OperatorKind.FUNCTION)[0]
            return f"{fn.trigger}^{{{self.visit(exponent)}}}{self._arguments(operands(base))}"
        text = self.visit(base)
        if self.precedence(base) <= 720 or head(base) in ("Divide", "Rational", "Power"):
            text = f"({text})"
        elif isinstance(base, float) or (isinstance(base, dict) and "num" in base):
            text = f"{{{text}}}"
        return f"{text}^{{{self.visit(exponent)}}}"

    def _function_heads(self) -> set[str]:
        return {
            name
            for name in ("Sin", "Cos", "Tan", "Cot", "Sec", "Csc", "Sinh", "Cosh", "Tanh", "Ln")
            if self.grammar.by_name(name, OperatorKind.FUNCTION)
        }

    def visit_sqrt(self, ops: list[Expression]) -> Optional[str]:
        if len(ops) != 1:
            return None
        return f"\\sqrt{{{self.visit(ops[0])}}}"

    def visit_root(self, ops: list[Expression]) -> Optional[str]:
        if len(ops) != 2:
            return None
        return f"\\sqrt[{self.visit(ops[1])}]{{{self.visit(ops[0])}}}"

    def visit_subscript(self, ops: list[Expression]) -> Optional[str]:
        if len(ops) != 2:
            return None
        return f"{self._wrap(ops[0], ATOMIC)}_{{{self.visit(ops[1])}}}"

    def visit_log(self, ops: list[Expression]) -> Optional[str]:
        if len(ops) != 2:
            return None
        return f"\\log_{{{self.visit(ops[1])}}}{self._arguments(ops[:1])}"

    def visit_exp(self, ops: list[Expression]) -> Optional[str]:
        if len(ops) != 1:
            return None
        return f"\\exp{self._arguments(ops)}"

    def visit_delimiter(self, ops: list[Expression]) -> Optional[str]:
        if len(ops) == 1 and head(ops[0]) == "Sequence":
            ops = operands(ops[0])
        return "(" + ", ".join(self.visit(op) for op in ops) + ")"

    def visit_tuple(self, ops: list[Expression]) -> Optional[str]:
        return "(" + ", ".join(self.visit(op) for op in ops) + ")"

    def visit_sequence(self, ops: list[Expression]) -> Optional[str]:
        return ", ".join(self.visit(op) for op in ops)

    def visit_set(self, ops: list[Expression]) -> Optional[str]:
        return "\\{" + ", ".join(self.visit(op) for op in ops) + "\\}"

    def visit_matrix(self, ops: list[Expression]) -> Optional[str]:
        if len(ops) != 1 or head(ops[0]) != "List":
            return None
        rows = [
            " & ".join(self.visit(cell) for cell in operands(row))
            for row in operands(ops[0])
        ]
        return "\\begin{pmatrix}" + "\\\\".join(rows) + "\\end{pmatrix}"

    def _big_operator(self, trigger: str, ops: list[Expression]) -> Optional[str]:
        if not ops:
            return None
        body = self._wrap(ops[0], MULTIPLY_PRECEDENCE, strict=True)
        if len(ops) < 2 or head(ops[1]) != "Triple":
            return f"{trigger} {body}"
        index, lower, upper = (operands(ops[1]) + ["Nothing"] * 3)[:3]
        text = trigger
        if index != "Nothing":
            sub = self.visit(index)
            if lower != "Nothing":
                sub += f"={self.visit(lower)}"
            text += f"_{{{sub}}}"
        if upper != "Nothing":
            text += f"^{{{self.visit(upper)}}}"
        return f"{text}{body}"

    def visit_sum(self, ops: list[Expression]) -> Optional[str]:
        return self._big_operator("\\sum", ops)

    def visit_product(self, ops: list[Expression]) -> Optional[str]:
        return self._big_operator("\\prod", ops)

    def visit_integrate(self, ops: list[Expression]) -> Optional[str]:
        if not ops:
            return None
        body = self._wrap(ops[0], INTEGRAL_PRECEDENCE, strict=True)
        bounds = ops[1] if len(ops) > 1 else "Nothing"
        if head(bounds) in ("Pair", "Triple"):
            variable, lower, upper = (operands(bounds) + ["Nothing"] * 3)[:3]
        else:
            variable, lower, upper = bounds, "Nothing", "Nothing"
        text = "\\int"
        if lower != "Nothing":
            text += f"_{{{self.visit(lower)}}}"
        if upper != "Nothing":
            text += f"^{{{self.visit(upper)}}}"
        text += f" {body}"
        if variable != "Nothing":
            text += f"\\,\\mathrm{{d}}{self.visit(variable)}"
        return text

    def visit_error(self, ops: list[Expression]) -> Optional[str]:
        if len(ops) > 1:
            return self.visit(ops[1])
        return "\\blacksquare"

    def visit_latexstring(self, ops: list[Expression]) -> Optional[str]:
        if ops and isinstance(ops[0], dict) and "str" in ops[0]:
            return ops[0]["str"]
        return None
