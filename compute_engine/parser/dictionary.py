"""
Grammar dictionary for the LaTeX parser.

The dictionary is data: a YAML file grouping operator definitions by
category. Each definition names the MathJSON head it produces, the LaTeX
trigger that introduces it, its kind (prefix, infix, postfix, matchfix,
environment, symbol or function), its precedence and associativity, and
optionally the name of a parse handler from ``handlers.py``.

``index_dictionary()`` turns the definitions into a ``GrammarIndex``: for each
kind, a map from leading token to the ordered candidates sharing it. The
index is read-only once built and can be shared by any number of parsers.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from types import MappingProxyType
from typing import Any, Callable, Iterable, Mapping, NamedTuple, Optional

import yaml

from ..core.errors import Diagnostic
from .tokenizer import Token, TokenType, tokenize

logger = logging.getLogger(__name__)

DEFAULT_DICTIONARY_PATH = Path(__file__).parent / "definitions.yaml"

DiagnosticSink = Callable[[Diagnostic], None]


class Associativity(Enum):
    """Operator associativity."""

    LEFT = "left"
    RIGHT = "right"
    NONE = "none"


class OperatorKind(Enum):
    """Role of a definition in the grammar."""

    PREFIX = "prefix"
    INFIX = "infix"
    POSTFIX = "postfix"
    MATCHFIX = "matchfix"
    ENVIRONMENT = "environment"
    SYMBOL = "symbol"
    FUNCTION = "function"


@dataclass(frozen=True)
class OperatorDefinition:
    """
    One entry of the grammar dictionary.

    Attributes:
        name: MathJSON head (or symbol) produced by this entry
        kind: Role in the grammar
        trigger: LaTeX that introduces the entry (environment name for
            environments, opening delimiter for matchfix)
        precedence: Binding power of infix, prefix and postfix operators
        associativity: Associativity of infix operators
        parse: Name of a custom parse handler, None for the kind's default
        close: Closing delimiter of a matchfix entry
        value: MathJSON produced by a symbol entry, defaults to ``name``
        category: Dictionary category the entry was loaded from
    """

    name: str
    kind: OperatorKind
    trigger: str
    precedence: int = 0
    associativity: Associativity = Associativity.LEFT
    parse: Optional[str] = None
    close: Optional[str] = None
    value: Any = None
    category: str = "core"

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], category: str = "core") -> "OperatorDefinition":
        """
        Build a definition from its YAML mapping.

        Raises:
            ValueError: if the mapping is malformed
        """
        if not isinstance(data, Mapping):
            raise ValueError(f"Expected a mapping, got {data!r}")
        missing = [key for key in ("name", "kind", "trigger") if not data.get(key)]
        if missing:
            raise ValueError(f"Missing {', '.join(missing)} in {dict(data)!r}")
        try:
            kind = OperatorKind(data["kind"])
            associativity = Associativity(data.get("associativity", "left"))
        except ValueError as e:
            raise ValueError(f"{e} in {dict(data)!r}") from e
        if kind == OperatorKind.MATCHFIX and not data.get("close"):
            raise ValueError(f"Matchfix entry without 'close': {dict(data)!r}")
        return cls(
            name=str(data["name"]),
            kind=kind,
            trigger=str(data["trigger"]),
            precedence=int(data.get("precedence", 0)),
            associativity=associativity,
            parse=data.get("parse"),
            close=data.get("close"),
            value=data.get("value"),
            category=category,
        )


class Candidate(NamedTuple):
    """A definition with its trigger already tokenized."""

    definition: OperatorDefinition
    tokens: tuple[str, ...]
    close_tokens: tuple[str, ...] = ()


def trigger_tokens(latex: str) -> tuple[str, ...]:
    """Token values of a trigger, ignoring whitespace."""
    return tuple(
        token.value
        for token in tokenize(latex)
        if token.type not in (TokenType.SPACE, TokenType.EOF)
    )


class GrammarIndex:
    """
    Read-only index of the grammar dictionary.

    Candidates sharing a leading token are ordered longest trigger first,
    then by declaration order.
    """

    def __init__(
        self,
        by_kind: dict[OperatorKind, dict[str, list[Candidate]]],
        by_name: dict[str, list[OperatorDefinition]],
    ):
        self._by_kind = MappingProxyType(
            {
                kind: MappingProxyType({lead: tuple(items) for lead, items in table.items()})
                for kind, table in by_kind.items()
            }
        )
        self._by_name = MappingProxyType({name: tuple(defs) for name, defs in by_name.items()})
        self._close_triggers = frozenset(
            candidate.close_tokens[0]
            for candidates in self._by_kind.get(OperatorKind.MATCHFIX, {}).values()
            for candidate in candidates
        )

    def candidates(self, kind: OperatorKind, lead: str) -> tuple[Candidate, ...]:
        return self._by_kind.get(kind, {}).get(lead, ())

    def by_name(
        self, name: str, kind: Optional[OperatorKind] = None
    ) -> tuple[OperatorDefinition, ...]:
        """Definitions producing ``name``, in declaration order."""
        definitions = self._by_name.get(name, ())
        if kind is None:
            return definitions
        return tuple(d for d in definitions if d.kind == kind)

    def is_close_trigger(self, value: str) -> bool:
        return value in self._close_triggers

    def matchfix_for_close(self, value: str) -> Optional[OperatorDefinition]:
        """The first matchfix definition whose closing delimiter starts with ``value``."""
        for candidates in self._by_kind.get(OperatorKind.MATCHFIX, {}).values():
            for candidate in candidates:
                if candidate.close_tokens and candidate.close_tokens[0] == value:
                    return candidate.definition
        return None

    def __len__(self) -> int:
        return sum(len(defs) for defs in self._by_name.values())


def _report(sink: Optional[DiagnosticSink], message: str, **details: Any) -> None:
    logger.warning(message, extra={"extra_data": details})
    if sink is not None:
        sink(Diagnostic(code="invalid-dictionary-entry", message=message, details=details))


def load_dictionary(
    path: Optional[str | Path] = None,
    categories: Optional[Iterable[str]] = None,
    on_diagnostic: Optional[DiagnosticSink] = None,
) -> list[OperatorDefinition]:
    """
    Load grammar definitions from a YAML file.

    Args:
        path: YAML file, defaults to the dictionary shipped with the package
        categories: Categories to keep, None for all of them
        on_diagnostic: Receives a diagnostic for each malformed entry

    Returns:
        Definitions in declaration order
    """
    path = Path(path) if path else DEFAULT_DICTIONARY_PATH
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    wanted = set(categories) if categories is not None else None
    definitions: list[OperatorDefinition] = []
    for category, entries in data.items():
        if wanted is not None and category not in wanted:
            continue
        for entry in entries or []:
            try:
                definitions.append(OperatorDefinition.from_dict(entry, category))
            except ValueError as e:
                _report(on_diagnostic, f"Skipping dictionary entry: {e}", category=category)

    logger.debug(
        "Loaded grammar dictionary",
        extra={"extra_data": {"path": str(path), "definitions": len(definitions)}},
    )
    return definitions


def index_dictionary(
    definitions: Iterable[OperatorDefinition | Mapping[str, Any]],
    on_diagnostic: Optional[DiagnosticSink] = None,
) -> GrammarIndex:
    """
    Build the grammar index.

    Entries given as mappings are converted first. Entries that are
    malformed or name an unknown parse handler are reported and skipped.
    """
    from .handlers import HANDLERS

    by_kind: dict[OperatorKind, dict[str, list[tuple[int, Candidate]]]] = {}
    by_name: dict[str, list[OperatorDefinition]] = {}

    for order, definition in enumerate(definitions):
        if not isinstance(definition, OperatorDefinition):
            try:
                definition = OperatorDefinition.from_dict(definition)
            except ValueError as e:
                _report(on_diagnostic, f"Skipping dictionary entry: {e}")
                continue
        if definition.parse is not None and definition.parse not in HANDLERS:
            _report(
                on_diagnostic,
                f"Unknown parse handler '{definition.parse}' for {definition.name}",
                name=definition.name,
            )
            continue

        if definition.kind == OperatorKind.ENVIRONMENT:
            tokens: tuple[str, ...] = (definition.trigger,)
        else:
            tokens = trigger_tokens(definition.trigger)
        if not tokens:
            _report(on_diagnostic, f"Empty trigger for {definition.name}", name=definition.name)
            continue
        close_tokens = trigger_tokens(definition.close) if definition.close else ()

        table = by_kind.setdefault(definition.kind, {})
        table.setdefault(tokens[0], []).append(
            (order, Candidate(definition, tokens, close_tokens))
        )
        by_name.setdefault(definition.name, []).append(definition)

    ordered = {
        kind: {
            lead: [
                candidate
                for _, candidate in sorted(items, key=lambda item: (-len(item[1].tokens), item[0]))
            ]
            for lead, items in table.items()
        }
        for kind, table in by_kind.items()
    }
    return GrammarIndex(ordered, by_name)


def match_trigger(tokens: list[Token], pos: int, trigger: tuple[str, ...]) -> int:
    """
    Number of tokens consumed when ``trigger`` matches at ``pos``, else 0.

    Whitespace between the tokens of a multi-token trigger is allowed.
    """
    i = pos
    for k, value in enumerate(trigger):
        if k > 0:
            while tokens[i].type == TokenType.SPACE:
                i += 1
        if tokens[i].type == TokenType.EOF or tokens[i].value != value:
            return 0
        i += 1
    return i - pos


def lookup(
    index: GrammarIndex, tokens: list[Token], pos: int, kind: OperatorKind
) -> list[tuple[Candidate, int]]:
    """Candidates of ``kind`` whose whole trigger matches at ``pos``."""
    token = tokens[pos]
    if token.type == TokenType.EOF:
        return []
    result = []
    for candidate in index.candidates(kind, token.value):
        count = match_trigger(tokens, pos, candidate.tokens)
        if count:
            result.append((candidate, count))
    return result
