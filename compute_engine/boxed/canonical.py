"""
Boxing and canonicalization.

``box()`` turns MathJSON into boxed expressions. In canonical form, for each
function node:

1. structural rewrites (``Subtract``, ``Delimiter``, ``Subscript``, ...)
2. operands are boxed, ``Sequence`` operands spliced in and nested
   applications of an associative head flattened
3. operands are validated against the head signature
4. the head's canonical handler folds exact literals
5. operands of commutative heads are sorted, repeated operands of
   idempotent heads removed

Binding constructs (``Sum``, ``Product``, ``Integrate``) are boxed in a lexical
scope where their index is declared. Constructs binding the same index share
one scope.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Callable, Optional

from ..core.errors import ErrorCode
from ..definitions import FunctionDefinition, SymbolDefinition
from ..mathjson import Expression, head, operands, strip_metadata, symbol_name
from ..numerics import parse_numeral
from .expression import BoxedExpression, BoxedFunction
from .order import sort_operands
from .validate import validate_operands

if TYPE_CHECKING:
    from ..engine import ComputeEngine

logger = logging.getLogger(__name__)

# Heads whose operands are kept as given
INERT_HEADS = frozenset({"Error", "ErrorCode", "LatexString", "Hold"})

Rewrite = Callable[[list], Optional[Expression]]

REWRITES: dict[str, Rewrite] = {}


def rewrite(name: str) -> Callable[[Rewrite], Rewrite]:
    def decorator(fn: Rewrite) -> Rewrite:
        REWRITES[name] = fn
        return fn

    return decorator


@rewrite("Subtract")
def _subtract(ops: list) -> Optional[Expression]:
    if len(ops) == 1:
        return ["Negate", ops[0]]
    if len(ops) == 2:
        return ["Add", ops[0], ["Negate", ops[1]]]
    return None


@rewrite("Delimiter")
def _delimiter(ops: list) -> Optional[Expression]:
    if len(ops) == 1 and head(ops[0]) == "Sequence":
        ops = operands(ops[0])
    if not ops:
        return ["Sequence"]
    if len(ops) == 1:
        return ops[0]
    return ["Tuple", *ops]


@rewrite("Subscript")
def _subscript(ops: list) -> Optional[Expression]:
    """``x_1`` and ``x_n`` become the symbols ``x_1`` and ``x_n``."""
    if len(ops) != 2:
        return None
    base, index = symbol_name(ops[0]), ops[1]
    if base is None:
        return None
    if isinstance(index, int) and not isinstance(index, bool) and index >= 0:
        return f"{base}_{index}"
    name = symbol_name(index)
    if name is not None and name.isalnum():
        return f"{base}_{name}"
    return None


@rewrite("Exp")
def _exp(ops: list) -> Optional[Expression]:
    return ["Power", "ExponentialE", ops[0]] if len(ops) == 1 else None


@rewrite("Square")
def _square(ops: list) -> Optional[Expression]:
    return ["Power", ops[0], 2] if len(ops) == 1 else None


@rewrite("Plus")
def _plus(ops: list) -> Optional[Expression]:
    return ops[0] if len(ops) == 1 else None


def box(engine: ComputeEngine, expr: Any, canonical: bool = True) -> BoxedExpression:
    """
    Box MathJSON (or a boxed expression).

    Never raises for malformed input: problems become error placeholders.
    """
    if isinstance(expr, BoxedExpression):
        return expr.canonical if canonical else expr
    latex = expr.get("latex") if isinstance(expr, dict) else None
    try:
        result = _box(engine, strip_metadata(expr), canonical, 0)
    except RecursionError:
        result = engine.error(ErrorCode.RECURSION_DEPTH_EXCEEDED)
    if latex is not None:
        result._latex = latex
    return result


def _box(engine: ComputeEngine, expr: Any, canonical: bool, depth: int) -> BoxedExpression:
    if depth > engine.max_box_depth:
        logger.warning(
            "Expression nesting exceeds the boxing limit",
            extra={"extra_data": {"max_depth": engine.max_box_depth}},
        )
        return engine.error(ErrorCode.RECURSION_DEPTH_EXCEEDED)

    if isinstance(expr, BoxedExpression):
        return expr.canonical if canonical else expr
    if isinstance(expr, bool):
        return engine.symbol("True" if expr else "False")
    if isinstance(expr, (int, float)):
        return engine.number(expr)
    if isinstance(expr, dict):
        if "num" in expr:
            value = parse_numeral(str(expr["num"]), engine.numeric_mode, engine.precision)
            if value is None:
                return engine.error(ErrorCode.UNEXPECTED_TOKEN, engine.string(str(expr["num"])))
            return engine.number(value)
        if "str" in expr:
            return engine.string(str(expr["str"]))
        return engine.error(ErrorCode.UNEXPECTED_TOKEN, engine.string(str(expr)))
    if isinstance(expr, str):
        name = symbol_name(expr)
        if name is None:
            return engine.string(expr[1:-1])
        return engine.symbol(name)
    if not isinstance(expr, (list, tuple)) or not expr:
        return engine.error(ErrorCode.UNEXPECTED_TOKEN, engine.string(repr(expr)))

    name, ops = expr[0], list(expr[1:])
    if not isinstance(name, str):
        return _box(engine, ["Apply", name, *ops], canonical, depth)

    if not canonical or name in INERT_HEADS:
        boxed = [_box(engine, op, canonical and name != "LatexString", depth + 1) for op in ops]
        return BoxedFunction(engine, name, boxed, engine.current_scope_id, canonical=canonical)

    fn = REWRITES.get(name)
    if fn is not None:
        rewritten = fn(ops)
        if rewritten is not None:
            return _box(engine, rewritten, True, depth + 1)

    definition = engine.lookup_function(name)
    if definition is not None and definition.scoped:
        return _box_scoped(engine, definition, ops, depth)
    return canonical_function(engine, name, [_box(engine, op, True, depth + 1) for op in ops])


def _box_scoped(
    engine: ComputeEngine, definition: FunctionDefinition, ops: list, depth: int
) -> BoxedExpression:
    """Box a binding construct in a lexical scope declaring its index."""
    bindings = {}
    for bounds in ops[1:]:
        index = _bound_index(bounds)
        if index:
            bindings[index] = SymbolDefinition(index, domain=definition.index_domain)
    scope = engine.scopes.lexical(engine.current_scope_id, bindings)
    with engine.in_scope(scope):
        boxed = [_box(engine, op, True, depth + 1) for op in ops]
        return canonical_function(engine, definition.name, boxed)


def _bound_index(bounds: Expression) -> Optional[str]:
    """Index of ``x``, ``["Pair", x, lo]`` or ``["Triple", x, lo, hi]``."""
    if head(bounds) in ("Pair", "Triple", "Tuple"):
        bounds_ops = operands(bounds)
        if not bounds_ops:
            return None
        bounds = bounds_ops[0]
    elif head(bounds) is not None:
        return None
    index = symbol_name(bounds)
    return index if index != "Nothing" else None


def flatten_sequence(ops: list[BoxedExpression]) -> list[BoxedExpression]:
    result = []
    for op in ops:
        if op.head == "Sequence":
            result.extend(flatten_sequence(op.ops))
        else:
            result.append(op)
    return result


def flatten_associative(name: str, ops: list[BoxedExpression]) -> list[BoxedExpression]:
    result = []
    for op in ops:
        if op.head == name and op.is_function:
            result.extend(flatten_associative(name, op.ops))
        else:
            result.append(op)
    return result


def canonical_function(
    engine: ComputeEngine, name: str, ops: list[BoxedExpression]
) -> BoxedExpression:
    """Canonical form of ``name`` applied to canonical operands."""
    if name in INERT_HEADS:
        return BoxedFunction(engine, name, ops, engine.current_scope_id)
    ops = flatten_sequence(ops)
    definition = engine.lookup_function(name)
    if definition is None:
        # Unknown heads: operands only
        return BoxedFunction(engine, name, ops, engine.current_scope_id)

    if definition.associative:
        ops = flatten_associative(name, ops)
    ops = validate_operands(engine, definition, ops)

    if definition.canonical is not None:
        result = definition.canonical(engine, ops)
        if result is not None:
            return result
    return build_function(engine, name, ops)


def build_function(
    engine: ComputeEngine, name: str, ops: list[BoxedExpression]
) -> BoxedExpression:
    """
    Assemble a canonical function node from canonical operands.

    Only sorts and deduplicates; canonical handlers call this to produce
    their result without being invoked again.
    """
    definition = engine.lookup_function(name)
    if definition is not None:
        if definition.idempotent:
            seen = set()
            unique = []
            for op in ops:
                if op.key not in seen:
                    seen.add(op.key)
                    unique.append(op)
            ops = unique
        if definition.commutative:
            ops = sort_operands(ops)
    return BoxedFunction(engine, name, ops, engine.current_scope_id)
