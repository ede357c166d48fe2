"""
Domains: the sets expressions are known to belong to.

Domains form a tree rooted at ``Anything``. ``Nothing`` is the empty domain
and a subdomain of every other one; it is the domain of error placeholders,
so they never fail validation a second time.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Optional


class Domain(str, Enum):
    """Built-in domains."""

    ANYTHING = "Anything"
    VALUE = "Value"
    NUMBER = "Number"
    EXTENDED_REAL_NUMBER = "ExtendedRealNumber"
    COMPLEX_NUMBER = "ComplexNumber"
    IMAGINARY_NUMBER = "ImaginaryNumber"
    REAL_NUMBER = "RealNumber"
    RATIONAL_NUMBER = "RationalNumber"
    INTEGER = "Integer"
    BOOLEAN = "Boolean"
    STRING = "String"
    COLLECTION = "Collection"
    LIST = "List"
    TUPLE = "Tuple"
    SET = "Set"
    FUNCTION = "Function"
    NOTHING = "Nothing"


PARENTS: dict[Domain, Optional[Domain]] = {
    Domain.ANYTHING: None,
    Domain.VALUE: Domain.ANYTHING,
    Domain.FUNCTION: Domain.ANYTHING,
    Domain.NUMBER: Domain.VALUE,
    Domain.EXTENDED_REAL_NUMBER: Domain.NUMBER,
    Domain.COMPLEX_NUMBER: Domain.NUMBER,
    Domain.IMAGINARY_NUMBER: Domain.COMPLEX_NUMBER,
    Domain.REAL_NUMBER: Domain.COMPLEX_NUMBER,
    Domain.RATIONAL_NUMBER: Domain.REAL_NUMBER,
    Domain.INTEGER: Domain.RATIONAL_NUMBER,
    Domain.BOOLEAN: Domain.VALUE,
    Domain.STRING: Domain.VALUE,
    Domain.COLLECTION: Domain.VALUE,
    Domain.LIST: Domain.COLLECTION,
    Domain.TUPLE: Domain.COLLECTION,
    Domain.SET: Domain.COLLECTION,
    Domain.NOTHING: Domain.ANYTHING,
}

# Symbols of the number sets, as produced by \mathbb{...}
NUMBER_SET_DOMAINS = {
    "NonNegativeIntegers": Domain.INTEGER,
    "Integers": Domain.INTEGER,
    "RationalNumbers": Domain.RATIONAL_NUMBER,
    "RealNumbers": Domain.REAL_NUMBER,
    "ComplexNumbers": Domain.COMPLEX_NUMBER,
}


def ancestors(domain: Domain) -> list[Domain]:
    """``domain`` and its ancestors, innermost first."""
    chain = []
    current: Optional[Domain] = domain
    while current is not None:
        chain.append(current)
        current = PARENTS[current]
    return chain


def is_subdomain(domain: Domain, other: Domain) -> bool:
    """True if every element of ``domain`` belongs to ``other``."""
    if domain == Domain.NOTHING:
        return True
    return other in ancestors(domain)


def is_compatible(domain: Domain, expected: Domain) -> bool:
    """
    True unless the two domains are known to be disjoint.

    A value whose domain is wider than the expected one (a symbol of domain
    ``Anything`` where a number is expected) is accepted: it may still turn
    out to be a number.
    """
    return is_subdomain(domain, expected) or is_subdomain(expected, domain)


def widen(*domains: Domain) -> Domain:
    """The narrowest domain containing all of ``domains``."""
    result: Optional[Domain] = None
    for domain in domains:
        if domain == Domain.NOTHING:
            continue
        if result is None:
            result = domain
            continue
        chain = ancestors(result)
        for candidate in ancestors(domain):
            if candidate in chain:
                result = candidate
                break
    return result if result is not None else Domain.NOTHING


def number_domain(value: Any) -> Domain:
    """Domain of a numeric-tower value."""
    if value.is_nan:
        return Domain.NUMBER
    if not value.is_real:
        if value.re.is_zero:
            return Domain.IMAGINARY_NUMBER
        return Domain.COMPLEX_NUMBER
    if not value.is_finite:
        return Domain.EXTENDED_REAL_NUMBER
    if value.is_integer and value.is_exact:
        return Domain.INTEGER
    if value.is_exact:
        return Domain.RATIONAL_NUMBER
    return Domain.REAL_NUMBER


def to_domain(value: Any) -> Domain:
    """
    Convert a domain name to a ``Domain``.

    Accepts members, their names (``"RealNumber"``) and number set symbols
    (``"RealNumbers"``).

    Raises:
        ValueError: for an unknown domain
    """
    if isinstance(value, Domain):
        return value
    if value in NUMBER_SET_DOMAINS:
        return NUMBER_SET_DOMAINS[value]
    return Domain(value)
