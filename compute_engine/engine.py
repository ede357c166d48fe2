"""
The compute engine.

``ComputeEngine`` owns everything a session needs: the grammar index used by
the parser and the serializer, the scope registry holding the built-in
library (in a frozen root scope) and the host declarations (in a global
scope below it), the numeric mode and the diagnostic sink.

Example::

    ce = ComputeEngine(numeric_mode="bignum", precision=50)
    expr = ce.box(ce.parse(r"\\frac{1}{3}+\\frac{1}{6}"))
    expr.evaluate().json   # ["Rational", 1, 2]
"""

from __future__ import annotations

import dataclasses
from contextlib import contextmanager
from typing import Any, Callable, Iterator, Optional, Union

from .boxed.canonical import box, canonical_function
from .boxed.domains import Domain, to_domain
from .boxed.expression import BoxedExpression, BoxedFunction, BoxedNumber, BoxedString, BoxedSymbol
from .core.config import NumericMode, Settings, get_settings
from .core.errors import ComputeEngineError, Diagnostic, ErrorCode
from .core.logging import LoggerAdapter, get_context_logger
from .definitions import Definition, FunctionDefinition, SymbolDefinition
from .library import install
from .mathjson import Expression
from .numerics import MachineFloat, approximate, from_python
from .parser import LatexSerializer, ParserOptions, index_dictionary, load_dictionary, parse_latex
from .scope import UNBOUND, Scope, ScopeRegistry

DiagnosticSink = Callable[[Diagnostic], None]

# Options accepted by simplify(), evaluate() and N()
EVALUATION_OPTIONS = ("numeric_mode", "precision")


class ComputeEngine:
    """
    Parse, box and evaluate math expressions.

    Keyword arguments override the matching ``Settings`` field (lower case),
    e.g. ``ComputeEngine(numeric_mode="bignum", max_recursion_depth=50)``.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        on_diagnostic: Optional[DiagnosticSink] = None,
        **overrides: Any,
    ):
        settings = settings or get_settings()
        if overrides:
            unknown = [key for key in overrides if key.upper() not in Settings.model_fields]
            if unknown:
                raise TypeError(f"Unknown engine options: {', '.join(sorted(unknown))}")
            settings = Settings(
                **{**settings.model_dump(), **{key.upper(): value for key, value in overrides.items()}}
            )
        self.settings = settings
        self._on_diagnostic = on_diagnostic
        self.log: LoggerAdapter = get_context_logger(__name__, engine=hex(id(self)))

        self.numeric_mode = NumericMode(settings.NUMERIC_MODE)
        self.precision = settings.PRECISION
        self.max_box_depth = 2 * settings.MAX_RECURSION_DEPTH
        self.parser_options = ParserOptions(
            preserve_latex=settings.PRESERVE_LATEX,
            applied_function_symbols=tuple(settings.APPLIED_FUNCTION_SYMBOLS),
            max_recursion_depth=settings.MAX_RECURSION_DEPTH,
        )

        self.grammar = index_dictionary(
            load_dictionary(categories=settings.DICTIONARY_CATEGORIES, on_diagnostic=self.report),
            on_diagnostic=self.report,
        )
        self.serializer = LatexSerializer(self.grammar)

        self.scopes = ScopeRegistry()
        count = install(self.scopes, self.scopes.root)
        self.scopes.freeze(self.scopes.root)
        self.global_scope = self.scopes.create(self.scopes.root)
        self._scope_stack: list[int] = [self.global_scope.id]
        self._frames: list[int] = []

        self.NOTHING = self.symbol("Nothing")

        self.log.debug(
            "Compute engine ready",
            extra_data={
                "numeric_mode": self.numeric_mode.value,
                "precision": self.precision,
                "definitions": count,
            },
        )

    # Diagnostics

    def report(self, diagnostic: Diagnostic) -> None:
        """Deliver a diagnostic to the host sink, or log it."""
        if self._on_diagnostic is not None:
            self._on_diagnostic(diagnostic)
            return
        self.log.warning(diagnostic.message or diagnostic.code, extra_data=diagnostic.model_dump())

    def report_errors(self, head: str, errors: list[BoxedExpression]) -> None:
        for error in errors:
            self.report(
                Diagnostic(
                    code=error.error_kind or ErrorCode.UNDEFINED_OPERATION.value,
                    message=f"Invalid operand of '{head}'",
                    details={"head": head, "error": error.json},
                )
            )

    # Scopes

    @property
    def current_scope_id(self) -> int:
        """Scope new symbols are bound to."""
        return self._scope_stack[-1]

    @contextmanager
    def in_scope(self, scope: Union[Scope, int]) -> Iterator[None]:
        """Box in ``scope`` for the duration of the block."""
        self._scope_stack.append(self.scopes.get(scope).id)
        try:
            yield
        finally:
            self._scope_stack.pop()

    @contextmanager
    def frame(self, lexical_scope_id: int) -> Iterator[Scope]:
        """
        An evaluation frame for one iteration of a binding construct.

        The frame is a child of the innermost active frame, so nested
        constructs see the bindings of the enclosing iterations, or of the
        construct's lexical scope at the outermost level.
        """
        parent = self._frames[-1] if self._frames else lexical_scope_id
        with self.scopes.frame(parent) as scope:
            self._frames.append(scope.id)
            try:
                yield scope
            finally:
                self._frames.pop()

    def lookup(self, name: str, scope_id: Optional[int] = None) -> Optional[Definition]:
        """Definition of ``name`` visible from ``scope_id`` (default: current scope)."""
        definition = self.scopes.resolve(self.current_scope_id if scope_id is None else scope_id, name)
        return None if definition is UNBOUND else definition

    def lookup_value(self, name: str, scope_id: Optional[int] = None) -> Optional[Definition]:
        """Like ``lookup()``, seeing the bindings of the active evaluation frames first."""
        if self._frames:
            definition = self.scopes.resolve(self._frames[-1], name)
            if definition is not UNBOUND:
                return definition
        return self.lookup(name, scope_id)

    def lookup_function(self, name: str) -> Optional[FunctionDefinition]:
        definition = self.lookup(name)
        return definition if isinstance(definition, FunctionDefinition) else None

    # Declarations

    def declare(self, name: str, definition: Union[Domain, str, Definition]) -> None:
        """
        Declare ``name`` in the global scope.

        Args:
            name: Symbol or function name
            definition: A domain (or domain name) for a symbol, or a full
                ``SymbolDefinition``/``FunctionDefinition``
        """
        if isinstance(definition, (Domain, str)):
            definition = SymbolDefinition(name, domain=to_domain(definition))
        elif definition.name != name:
            definition = dataclasses.replace(definition, name=name)
        self.scopes.declare(self.global_scope, name, definition)
        self.log.debug("Declared", extra_data={"name": name})

    def assign(self, name: str, value: Any) -> None:
        """
        Give the symbol ``name`` a value, declaring it when needed.

        Raises:
            ComputeEngineError: if ``name`` is a constant or a function
        """
        current = self.lookup(name, self.global_scope.id)
        if isinstance(current, FunctionDefinition):
            raise ComputeEngineError(f"Cannot assign a value to function '{name}'", {"name": name})
        if isinstance(current, SymbolDefinition) and current.constant:
            raise ComputeEngineError(f"Cannot assign a value to constant '{name}'", {"name": name})

        boxed = self.box(value)
        if isinstance(current, SymbolDefinition):
            definition = dataclasses.replace(current, value=boxed)
        else:
            definition = SymbolDefinition(name, domain=boxed.domain, value=boxed)
        self.scopes.declare(self.global_scope, name, definition)

    def forget(self, name: str) -> bool:
        """Remove a global declaration; False if there was none."""
        return self.scopes.forget(self.global_scope, name)

    # Construction

    def number(self, value: Any) -> BoxedNumber:
        if isinstance(value, float) and self.numeric_mode == NumericMode.BIGNUM:
            return BoxedNumber(self, approximate(MachineFloat(value), self.numeric_mode, self.precision))
        return BoxedNumber(self, from_python(value))

    def symbol(self, name: str) -> BoxedSymbol:
        return BoxedSymbol(self, name, self.current_scope_id)

    def string(self, text: str) -> BoxedString:
        return BoxedString(self, text)

    def function(self, name: str, ops: list[Any]) -> BoxedExpression:
        """Canonical form of ``name`` applied to ``ops`` (boxed if needed)."""
        return canonical_function(self, name, [self.box(op) for op in ops])

    def error(
        self, kind: ErrorCode, *details: BoxedExpression, original: Optional[BoxedExpression] = None
    ) -> BoxedFunction:
        """An ``["Error", ["ErrorCode", kind, ...details], original]`` placeholder."""
        code = BoxedFunction(self, "ErrorCode", [self.string(kind.value), *details], self.current_scope_id)
        ops = [code] if original is None else [code, original]
        return BoxedFunction(self, "Error", ops, self.current_scope_id)

    # Public API

    def parse(self, latex: str, cursor: Optional[int] = None) -> Expression:
        """
        Parse LaTeX to MathJSON.

        Never raises for malformed input: errors become ``["Error", ...]``
        nodes and are reported to the diagnostic sink.
        """
        expr, diagnostics = parse_latex(latex, self.grammar, self.parser_options, cursor)
        for diagnostic in diagnostics:
            self.report(diagnostic)
        return expr

    def serialize(self, expr: Union[Expression, BoxedExpression]) -> str:
        if isinstance(expr, BoxedExpression):
            expr = expr.json
        return self.serializer.serialize(expr)

    def box(self, expr: Any, canonical: bool = True) -> BoxedExpression:
        return box(self, expr, canonical)

    def simplify(self, expr: Any, **options: Any) -> BoxedExpression:
        with self._options(options):
            return self.box(expr).simplify()

    def evaluate(self, expr: Any, **options: Any) -> BoxedExpression:
        with self._options(options):
            return self.box(expr).evaluate()

    def N(self, expr: Any, **options: Any) -> BoxedExpression:
        with self._options(options):
            return self.box(expr).N()

    @contextmanager
    def _options(self, options: dict[str, Any]) -> Iterator[None]:
        """Override the numeric mode and precision for one call."""
        unknown = [key for key in options if key not in EVALUATION_OPTIONS]
        if unknown:
            raise TypeError(f"Unknown evaluation options: {', '.join(sorted(unknown))}")
        saved = (self.numeric_mode, self.precision)
        if "numeric_mode" in options:
            self.numeric_mode = NumericMode(options["numeric_mode"])
        if "precision" in options:
            self.precision = int(options["precision"])
        try:
            yield
        finally:
            self.numeric_mode, self.precision = saved

    def __repr__(self) -> str:
        return f"ComputeEngine(numeric_mode={self.numeric_mode.value!r}, precision={self.precision})"
