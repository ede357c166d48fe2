"""
Symbol and function definitions.

Definitions are owned by a scope (see ``scope.py``). Built-in ones are plain
tables in ``compute_engine.library``; hosts declare their own through
``ComputeEngine.declare()``.

Handlers share one calling convention::

    handler(engine, ops) -> BoxedExpression | None

``ops`` are boxed, canonical operands (already evaluated for the
``evaluate`` and ``N`` handlers, except the held ones). Returning None means
"no rule applies": the caller keeps the expression symbolic.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Optional, Union

from .boxed.domains import Domain

Handler = Callable[[Any, list], Optional[Any]]
DomainRule = Union[Domain, Callable[[list], Domain]]


class Hold(Enum):
    """Which operands are left unevaluated before calling a handler."""

    NONE = "none"
    ALL = "all"
    FIRST = "first"
    REST = "rest"

    def holds(self, index: int) -> bool:
        if self == Hold.ALL:
            return True
        if self == Hold.FIRST:
            return index == 0
        if self == Hold.REST:
            return index > 0
        return False


class HoldUntil(Enum):
    """When a symbol is replaced by its value."""

    NEVER = "never"  # replaced as early as simplify()
    EVALUATE = "evaluate"
    N = "N"


@dataclass
class SymbolDefinition:
    """
    Definition of a symbol.

    Attributes:
        name: Symbol name
        domain: Domain of the symbol's values
        value: Boxed value, None when the symbol has none
        constant: Constant symbols cannot be assigned
        hold_until: Evaluation tier at which the value is substituted
        approximate: Numeric value of a constant with no exact form
            (``Pi``), called as ``approximate(mode, precision)``
    """

    name: str
    domain: Domain = Domain.ANYTHING
    value: Any = None
    constant: bool = False
    hold_until: HoldUntil = HoldUntil.EVALUATE
    approximate: Optional[Callable[[Any, int], Any]] = None


@dataclass
class Signature:
    """
    Operand domains of a function.

    ``params`` are required, ``optional`` may be omitted and ``rest``, when
    set, accepts any number of further operands. ``result`` is the codomain,
    either a domain or a rule computing it from the operands.

    The default signature accepts any operands.
    """

    params: tuple[Domain, ...] = ()
    optional: tuple[Domain, ...] = ()
    rest: Optional[Domain] = Domain.ANYTHING
    result: DomainRule = Domain.ANYTHING

    @classmethod
    def fixed(
        cls, *params: Domain, optional: tuple[Domain, ...] = (), result: DomainRule = Domain.ANYTHING
    ) -> "Signature":
        """Exactly ``params``, followed by up to ``len(optional)`` operands."""
        return cls(params=params, optional=optional, rest=None, result=result)

    @classmethod
    def variadic(cls, domain: Domain, result: DomainRule = Domain.ANYTHING) -> "Signature":
        return cls(rest=domain, result=result)

    def codomain(self, ops: list) -> Domain:
        if callable(self.result):
            return self.result(ops)
        return self.result


@dataclass
class FunctionDefinition:
    """
    Definition of a function head.

    Attributes:
        name: Head
        signature: Operand domains and codomain rule
        commutative: Operands are sorted into canonical order
        associative: Nested applications of the head are flattened
        idempotent: Repeated operands are collapsed
        threadable: Applied elementwise over ``List`` operands by evaluate
        hold: Operands left unevaluated before calling the handlers
        complexity: Rank in the canonical order of functions
        scoped: Binding construct, operands are boxed in a lexical scope
        index_domain: Domain of the index a binding construct declares
        canonical: Canonical form handler
        simplify: Simplification handler
        evaluate: Exact evaluation handler
        N: Numeric evaluation handler, defaults to ``evaluate``
    """

    name: str
    signature: Signature = field(default_factory=Signature)
    commutative: bool = False
    associative: bool = False
    idempotent: bool = False
    threadable: bool = False
    hold: Hold = Hold.NONE
    complexity: int = 1000
    scoped: bool = False
    index_domain: Domain = Domain.INTEGER
    canonical: Optional[Handler] = None
    simplify: Optional[Handler] = None
    evaluate: Optional[Handler] = None
    N: Optional[Handler] = None


Definition = Union[SymbolDefinition, FunctionDefinition]
