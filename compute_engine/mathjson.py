"""
Helpers for MathJSON expressions.

MathJSON is the JSON-serializable form exchanged with the host: numbers are
``int``/``float`` or ``{"num": "..."}``, symbols are strings, string literals
are ``{"str": "..."}`` and functions are lists ``[head, *operands]``. When
source fidelity is requested the parser emits the object forms
(``{"num"}``, ``{"sym"}``, ``{"str"}``, ``{"fn"}``) with ``latex`` and
``sourceOffsets`` keys; the helpers below accept both forms.
"""

from typing import Any, Optional

Expression = Any

METADATA_KEYS = ("latex", "sourceOffsets", "cursorPosition")


def head(expr: Expression) -> Optional[str]:
    """Head of a function expression, None for atoms."""
    if isinstance(expr, list):
        return expr[0] if expr and isinstance(expr[0], str) else None
    if isinstance(expr, dict) and isinstance(expr.get("fn"), list):
        return head(expr["fn"])
    return None


def operands(expr: Expression) -> list[Expression]:
    if isinstance(expr, list):
        return list(expr[1:])
    if isinstance(expr, dict) and isinstance(expr.get("fn"), list):
        return list(expr["fn"][1:])
    return []


def symbol_name(expr: Expression) -> Optional[str]:
    if isinstance(expr, str) and not (len(expr) > 1 and expr[0] == expr[-1] == "'"):
        return expr
    if isinstance(expr, dict) and isinstance(expr.get("sym"), str):
        return expr["sym"]
    return None


def string(text: str) -> dict:
    """A MathJSON string literal."""
    return {"str": text}


def error(kind: str, *details: Expression, original: Expression = None) -> list:
    """``["Error", ["ErrorCode", {"str": kind}, *details], original?]``"""
    node: list = ["Error", ["ErrorCode", string(kind), *details]]
    if original is not None:
        node.append(original)
    return node


def error_kind(expr: Expression) -> Optional[str]:
    """The error code of an ``Error`` node, None for any other expression."""
    if head(expr) != "Error":
        return None
    ops = operands(expr)
    if not ops or head(ops[0]) != "ErrorCode":
        return None
    code = operands(ops[0])[:1]
    if not code:
        return None
    if isinstance(code[0], dict) and "str" in code[0]:
        return code[0]["str"]
    if isinstance(code[0], str):
        return code[0].strip("'")
    return None


def strip_metadata(expr: Expression) -> Expression:
    """Convert object forms produced for source fidelity to plain MathJSON."""
    if isinstance(expr, list):
        return [strip_metadata(x) for x in expr]
    if isinstance(expr, dict):
        if "fn" in expr:
            return strip_metadata(expr["fn"])
        if "sym" in expr:
            return expr["sym"]
        if "num" in expr:
            return {"num": expr["num"]}
        if "str" in expr:
            return {"str": expr["str"]}
    return expr


def find_errors(expr: Expression) -> list[Expression]:
    """All ``Error`` nodes in ``expr``, outermost first."""
    found = []
    stack = [expr]
    while stack:
        node = stack.pop()
        if head(node) == "Error":
            found.append(node)
        stack.extend(reversed(operands(node)))
    return found
