"""
Finite set literals and membership in the number sets.

Set algebra only applies to ``Set`` literals (and ``EmptySet``); anything
else stays symbolic.
"""

from __future__ import annotations

from typing import Optional

from ..boxed.domains import NUMBER_SET_DOMAINS, Domain, is_subdomain, number_domain
from ..definitions import FunctionDefinition, Signature
from .common import boolean

SET = Domain.SET


def _members(engine, expr) -> Optional[list]:
    """Elements of a finite set literal, None for anything else."""
    if expr.symbol == "EmptySet":
        return []
    if expr.head == "Set":
        return expr.ops
    return None


def _contains(members, item) -> bool:
    return any(member.is_same(item) for member in members)


def _decided(members, item) -> bool:
    """Non-membership is only known when every element is a literal."""
    return all(m.is_number or m.string is not None for m in [*members, item])


def _membership_domain(value) -> Domain:
    """Like ``number_domain()``, with integer-valued approximations counted as integers."""
    if value.is_real and value.is_integer:
        return Domain.INTEGER
    return number_domain(value)


def element_of(engine, item, collection) -> Optional[bool]:
    members = _members(engine, collection)
    if members is not None:
        if _contains(members, item):
            return True
        return False if _decided(members, item) else None

    domain = NUMBER_SET_DOMAINS.get(collection.symbol or "")
    if domain is None:
        return None
    if item.is_number:
        value = item.numeric_value
        if value.is_nan:
            return False
        if not is_subdomain(_membership_domain(value), domain):
            return False
        if collection.symbol == "NonNegativeIntegers":
            return value.sign() in (0, 1)
        return True
    if is_subdomain(item.domain, domain) and collection.symbol != "NonNegativeIntegers":
        return True
    return None


def evaluate_element(engine, ops):
    result = element_of(engine, ops[0], ops[1])
    return None if result is None else boolean(engine, result)


def evaluate_not_element(engine, ops):
    result = element_of(engine, ops[0], ops[1])
    return None if result is None else boolean(engine, not result)


def evaluate_union(engine, ops):
    sets = [_members(engine, op) for op in ops]
    if any(members is None for members in sets):
        return None
    return engine.function("Set", [item for members in sets for item in members])


def evaluate_intersection(engine, ops):
    sets = [_members(engine, op) for op in ops]
    if any(members is None for members in sets):
        return None
    first, *others = sets
    return engine.function(
        "Set", [item for item in first if all(_contains(members, item) for members in others)]
    )


def evaluate_set_minus(engine, ops):
    sets = [_members(engine, op) for op in ops]
    if len(sets) != 2 or any(members is None for members in sets):
        return None
    return engine.function("Set", [item for item in sets[0] if not _contains(sets[1], item)])


def _subset(strict: bool):
    def handler(engine, ops):
        sets = [_members(engine, op) for op in ops]
        if len(sets) != 2 or any(members is None for members in sets):
            return None
        inner, outer = sets
        if not all(_contains(outer, item) for item in inner):
            return boolean(engine, False)
        return boolean(engine, not strict or len(outer) > len(inner))

    return handler


def canonical_set(engine, ops):
    return engine.symbol("EmptySet") if not ops else None


def _set_operation(name: str, handler) -> FunctionDefinition:
    return FunctionDefinition(
        name,
        signature=Signature.variadic(SET, result=SET),
        commutative=name in ("Union", "Intersection"),
        associative=name in ("Union", "Intersection"),
        complexity=7000,
        evaluate=handler,
    )


FUNCTIONS = [
    FunctionDefinition(
        "Set",
        signature=Signature(result=SET),
        commutative=True,
        idempotent=True,
        complexity=8200,
        canonical=canonical_set,
    ),
    FunctionDefinition(
        "Element",
        signature=Signature.fixed(Domain.ANYTHING, SET, result=Domain.BOOLEAN),
        complexity=11000,
        evaluate=evaluate_element,
    ),
    FunctionDefinition(
        "NotElement",
        signature=Signature.fixed(Domain.ANYTHING, SET, result=Domain.BOOLEAN),
        complexity=11000,
        evaluate=evaluate_not_element,
    ),
    _set_operation("Union", evaluate_union),
    _set_operation("Intersection", evaluate_intersection),
    FunctionDefinition(
        "SetMinus",
        signature=Signature.fixed(SET, SET, result=SET),
        complexity=7000,
        evaluate=evaluate_set_minus,
    ),
    FunctionDefinition(
        "Subset",
        signature=Signature.fixed(SET, SET, result=Domain.BOOLEAN),
        complexity=11000,
        evaluate=_subset(strict=True),
    ),
    FunctionDefinition(
        "SubsetEqual",
        signature=Signature.fixed(SET, SET, result=Domain.BOOLEAN),
        complexity=11000,
        evaluate=_subset(strict=False),
    ),
]
