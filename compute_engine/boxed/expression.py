"""
Boxed expressions: the canonical runtime representation.

Variants:
- BoxedNumber: a numeric-tower value
- BoxedSymbol: a name, with the id of the scope it was boxed in
- BoxedString: a string literal
- BoxedFunction: a head applied to boxed operands

Nodes are immutable once built. Structural equality (``is_same``, ``==``)
and ``hash`` agree: both are computed from the same structural key, which
ignores source metadata and scope ids.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Mapping, Optional

from ..mathjson import Expression, error_kind
from ..numerics import NumericValue
from .domains import Domain, is_compatible, is_subdomain, number_domain

if TYPE_CHECKING:
    from ..definitions import FunctionDefinition, SymbolDefinition
    from ..engine import ComputeEngine


class BoxedExpression(ABC):
    """
    Base class of boxed expressions.

    Attributes:
        engine: The engine that boxed this expression
    """

    def __init__(self, engine: ComputeEngine, latex: Optional[str] = None):
        self.engine = engine
        self._latex = latex
        self._key: Optional[tuple] = None
        self._domain: Optional[Domain] = None

    # Structure

    @property
    @abstractmethod
    def json(self) -> Expression:
        """MathJSON of this expression."""

    @property
    @abstractmethod
    def head(self) -> str: ...

    @property
    def ops(self) -> list[BoxedExpression]:
        return []

    @property
    def nops(self) -> int:
        return len(self.ops)

    @property
    def op1(self) -> BoxedExpression:
        ops = self.ops
        return ops[0] if ops else self.engine.NOTHING

    @property
    def op2(self) -> BoxedExpression:
        ops = self.ops
        return ops[1] if len(ops) > 1 else self.engine.NOTHING

    @property
    def symbol(self) -> Optional[str]:
        return None

    @property
    def string(self) -> Optional[str]:
        return None

    @property
    def numeric_value(self) -> Optional[NumericValue]:
        return None

    @property
    def is_number(self) -> bool:
        return False

    @property
    def is_function(self) -> bool:
        return False

    @property
    def is_canonical(self) -> bool:
        return True

    @property
    def canonical(self) -> BoxedExpression:
        return self

    # Domain

    @property
    def domain(self) -> Domain:
        """Domain of the expression, inferred on first access."""
        if self._domain is None:
            self._domain = self._infer_domain()
        return self._domain

    def _infer_domain(self) -> Domain:
        return Domain.ANYTHING

    # Errors and symbols

    @property
    def errors(self) -> list[BoxedExpression]:
        """Error placeholders in this expression, outermost first."""
        found = []
        stack: list[BoxedExpression] = [self]
        while stack:
            node = stack.pop()
            if node.head == "Error":
                found.append(node)
            stack.extend(reversed(node.ops))
        return found

    @property
    def is_valid(self) -> bool:
        return not self.errors

    @property
    def error_kind(self) -> Optional[str]:
        """Error code of an ``Error`` placeholder, None otherwise."""
        return error_kind(self.json) if self.head == "Error" else None

    def _walk(self):
        stack: list[BoxedExpression] = [self]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(node.ops)

    @property
    def symbols(self) -> list[str]:
        """Names of the symbols in this expression, sorted."""
        return sorted({node.symbol for node in self._walk() if node.symbol is not None})

    @property
    def unbound_symbols(self) -> list[str]:
        """Names of the symbols with no reachable definition, sorted."""
        names = set()
        for node in self._walk():
            if isinstance(node, BoxedSymbol) and node.definition is None:
                names.add(node.name)
        return sorted(names)

    # Equality

    @abstractmethod
    def _compute_key(self) -> tuple: ...

    @property
    def key(self) -> tuple:
        """Structural key: equal for syntactically indistinguishable nodes."""
        if self._key is None:
            self._key = self._compute_key()
        return self._key

    def is_same(self, other: Any) -> bool:
        if not isinstance(other, BoxedExpression):
            other = self.engine.box(other)
        return self.key == other.key

    def __eq__(self, other: object) -> bool:
        if isinstance(other, BoxedExpression):
            return self.key == other.key
        if isinstance(other, (int, float, str, list, dict)) and not isinstance(other, bool):
            return self.is_same(other)
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self.key)

    # Transformations

    def subs(self, mapping: Mapping[str, Any]) -> BoxedExpression:
        """Replace symbols by expressions and canonicalize the result."""
        replacements = {
            name: value if isinstance(value, BoxedExpression) else self.engine.box(value)
            for name, value in mapping.items()
        }
        return self.engine.box(self._substitute(replacements))

    def _substitute(self, replacements: Mapping[str, BoxedExpression]) -> Expression:
        return self.json

    def simplify(self) -> BoxedExpression:
        from .evaluate import simplify

        return simplify(self)

    def evaluate(self) -> BoxedExpression:
        from .evaluate import evaluate

        return evaluate(self)

    def N(self) -> BoxedExpression:
        from .evaluate import N

        return N(self)

    @property
    def latex(self) -> str:
        """The verbatim source when it was kept, else the serialized form."""
        if self._latex is not None:
            return self._latex
        return self.engine.serialize(self.json)

    # Predicates: None when unknown

    @property
    def is_zero(self) -> Optional[bool]:
        return None

    @property
    def is_one(self) -> Optional[bool]:
        return None

    @property
    def is_integer(self) -> Optional[bool]:
        return self._domain_predicate(Domain.INTEGER)

    @property
    def is_exact(self) -> bool:
        """True when no approximate number occurs in the expression."""
        return all(n.numeric_value.is_exact for n in self._walk() if n.is_number)

    @property
    def is_nan(self) -> Optional[bool]:
        return None

    @property
    def is_infinity(self) -> Optional[bool]:
        return None

    @property
    def sgn(self) -> Optional[int]:
        return None

    def _domain_predicate(self, domain: Domain) -> Optional[bool]:
        own = self.domain
        if own == Domain.NOTHING:
            return False
        if is_subdomain(own, domain):
            return True
        if is_compatible(own, domain):
            return None
        return False

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.json!r})"

    def __str__(self) -> str:
        return str(self.json)


class BoxedNumber(BoxedExpression):
    """A number: exact rational, machine float, decimal or complex."""

    def __init__(self, engine: ComputeEngine, value: NumericValue, latex: Optional[str] = None):
        super().__init__(engine, latex)
        self.value = value

    @property
    def json(self) -> Expression:
        return self.value.to_json()

    @property
    def head(self) -> str:
        return "Number"

    @property
    def numeric_value(self) -> NumericValue:
        return self.value

    @property
    def is_number(self) -> bool:
        return True

    def _infer_domain(self) -> Domain:
        return number_domain(self.value)

    def _compute_key(self) -> tuple:
        return ("Number", type(self.value).__name__, repr(self.value))

    @property
    def is_zero(self) -> bool:
        return self.value.is_zero

    @property
    def is_one(self) -> bool:
        return self.value.is_one

    @property
    def is_integer(self) -> bool:
        return self.value.is_integer

    @property
    def is_exact(self) -> bool:
        return self.value.is_exact

    @property
    def is_nan(self) -> bool:
        return self.value.is_nan

    @property
    def is_infinity(self) -> bool:
        return self.value.is_infinity

    @property
    def sgn(self) -> Optional[int]:
        return self.value.sign()


class BoxedSymbol(BoxedExpression):
    """A symbol, resolved through the scope it was boxed in."""

    def __init__(
        self,
        engine: ComputeEngine,
        name: str,
        scope_id: Optional[int] = None,
        latex: Optional[str] = None,
    ):
        super().__init__(engine, latex)
        self.name = name
        self.scope_id = scope_id

    @property
    def json(self) -> Expression:
        return self.name

    @property
    def head(self) -> str:
        return "Symbol"

    @property
    def symbol(self) -> str:
        return self.name

    @property
    def definition(self) -> Optional[SymbolDefinition | FunctionDefinition]:
        return self.engine.lookup(self.name, self.scope_id)

    @property
    def is_constant(self) -> bool:
        definition = self.definition
        return bool(getattr(definition, "constant", False))

    def _infer_domain(self) -> Domain:
        from ..definitions import FunctionDefinition, SymbolDefinition

        definition = self.definition
        if isinstance(definition, SymbolDefinition):
            return definition.domain
        if isinstance(definition, FunctionDefinition):
            return Domain.FUNCTION
        return Domain.ANYTHING

    def _compute_key(self) -> tuple:
        return ("Symbol", self.name)

    def _substitute(self, replacements: Mapping[str, BoxedExpression]) -> Expression:
        if self.name in replacements:
            return replacements[self.name].json
        return self.name


class BoxedString(BoxedExpression):
    """A string literal."""

    def __init__(self, engine: ComputeEngine, text: str, latex: Optional[str] = None):
        super().__init__(engine, latex)
        self.text = text

    @property
    def json(self) -> Expression:
        return {"str": self.text}

    @property
    def head(self) -> str:
        return "String"

    @property
    def string(self) -> str:
        return self.text

    def _infer_domain(self) -> Domain:
        return Domain.STRING

    def _compute_key(self) -> tuple:
        return ("String", self.text)


class BoxedFunction(BoxedExpression):
    """A head applied to operands."""

    def __init__(
        self,
        engine: ComputeEngine,
        head: str,
        ops: list[BoxedExpression],
        scope_id: Optional[int] = None,
        canonical: bool = True,
        latex: Optional[str] = None,
    ):
        super().__init__(engine, latex)
        self._head = head
        self._ops = list(ops)
        self.scope_id = scope_id
        self._canonical = canonical

    @property
    def json(self) -> Expression:
        return [self._head, *(op.json for op in self._ops)]

    @property
    def head(self) -> str:
        return self._head

    @property
    def ops(self) -> list[BoxedExpression]:
        return list(self._ops)

    @property
    def nops(self) -> int:
        return len(self._ops)

    @property
    def is_function(self) -> bool:
        return True

    @property
    def is_canonical(self) -> bool:
        return self._canonical

    @property
    def canonical(self) -> BoxedExpression:
        if self._canonical:
            return self
        return self.engine.box(self.json, canonical=True)

    @property
    def definition(self) -> Optional[FunctionDefinition]:
        from ..definitions import FunctionDefinition

        definition = self.engine.lookup(self._head, self.scope_id)
        return definition if isinstance(definition, FunctionDefinition) else None

    def _infer_domain(self) -> Domain:
        if self._head == "Error":
            return Domain.NOTHING
        definition = self.definition
        if definition is None:
            return Domain.ANYTHING
        return definition.signature.codomain(self._ops)

    def _compute_key(self) -> tuple:
        return ("Function", self._head, tuple(op.key for op in self._ops))

    def _substitute(self, replacements: Mapping[str, BoxedExpression]) -> Expression:
        return [self._head, *(op._substitute(replacements) for op in self._ops)]
