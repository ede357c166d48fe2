"""
Scopes and the definition registry.

Scopes form a tree with parent-only links. The registry owns every scope by
id; expressions and child scopes refer to a scope by id only, so a scope can
be destroyed without leaving dangling references behind: using its id
afterwards is an invariant violation (``ScopeError``).

Lookup walks from a scope to the root and returns the innermost binding, so a
summation index hides an outer symbol of the same name.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator, Optional, Union

from .core.errors import ScopeError
from .definitions import Definition

logger = logging.getLogger(__name__)


class _Unbound:
    """Result of resolving a name with no reachable definition."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "UNBOUND"


UNBOUND = _Unbound()


class Scope:
    """A binding frame: ``(id, parent_id, bindings)``."""

    def __init__(self, scope_id: int, parent_id: Optional[int] = None):
        self.id = scope_id
        self.parent_id = parent_id
        self.bindings: dict[str, Definition] = {}
        self.frozen = False

    def __repr__(self) -> str:
        return f"Scope(id={self.id}, parent_id={self.parent_id}, bindings={len(self.bindings)})"


ScopeRef = Union[Scope, int]


class ScopeRegistry:
    """
    Owner of all scopes of an engine.

    The root scope is created with the registry and can be frozen once the
    built-in definitions are in place.
    """

    def __init__(self):
        self._scopes: dict[int, Scope] = {}
        # parent id -> {(name, domain) pairs: lexical scope id}
        self._lexical: dict[int, dict[tuple, int]] = {}
        self._next_id = 0
        self.root = self.create(None)

    def _id(self, scope: Optional[ScopeRef]) -> Optional[int]:
        if scope is None or isinstance(scope, int):
            return scope
        return scope.id

    def get(self, scope: ScopeRef) -> Scope:
        """
        The live scope with this id.

        Raises:
            ScopeError: if the scope was destroyed or never existed
        """
        scope_id = self._id(scope)
        try:
            return self._scopes[scope_id]
        except KeyError:
            raise ScopeError(f"Scope {scope_id} does not exist", scope_id) from None

    def create(self, parent: Optional[ScopeRef] = None) -> Scope:
        parent_id = self._id(parent)
        if parent_id is not None:
            self.get(parent_id)
        scope = Scope(self._next_id, parent_id)
        self._scopes[scope.id] = scope
        self._next_id += 1
        return scope

    def destroy(self, scope: ScopeRef) -> None:
        """
        Destroy a scope.

        Raises:
            ScopeError: for the root scope, or a scope that is already gone
        """
        target = self.get(scope)
        if target.id == self.root.id:
            raise ScopeError("The root scope cannot be destroyed", target.id)
        del self._scopes[target.id]
        for child_id in self._lexical.pop(target.id, {}).values():
            if self.is_alive(child_id):
                self.destroy(child_id)

    def lexical(self, parent: ScopeRef, bindings: dict[str, Definition]) -> Scope:
        """
        The scope of a binding construct declaring ``bindings`` below ``parent``.

        Constructs binding the same names below the same parent share one
        scope: boxing a sum again does not add a scope. The scope is
        destroyed with its parent.
        """
        parent_id = self._id(parent)
        key = tuple((name, getattr(bindings[name], "domain", None)) for name in sorted(bindings))
        scopes = self._lexical.setdefault(parent_id, {})
        scope_id = scopes.get(key)
        if scope_id is not None and self.is_alive(scope_id):
            return self._scopes[scope_id]
        scope = self.create(parent_id)
        scope.bindings.update(bindings)
        scopes[key] = scope.id
        logger.debug(
            "Created lexical scope",
            extra={"extra_data": {"scope": scope.id, "names": sorted(bindings)}},
        )
        return scope

    def is_alive(self, scope: ScopeRef) -> bool:
        return self._id(scope) in self._scopes

    def freeze(self, scope: ScopeRef) -> None:
        self.get(scope).frozen = True

    def declare(self, scope: ScopeRef, name: str, definition: Definition) -> None:
        """
        Bind ``name`` in ``scope``, replacing a previous binding in that scope.

        Raises:
            ScopeError: if the scope is frozen or destroyed
        """
        target = self.get(scope)
        if target.frozen:
            raise ScopeError(f"Cannot declare '{name}' in frozen scope {target.id}", target.id)
        target.bindings[name] = definition

    def forget(self, scope: ScopeRef, name: str) -> bool:
        """Remove the binding of ``name`` from ``scope``; False if it had none."""
        target = self.get(scope)
        if target.frozen:
            raise ScopeError(f"Cannot forget '{name}' in frozen scope {target.id}", target.id)
        return target.bindings.pop(name, None) is not None

    def resolve(self, scope: ScopeRef, name: str) -> Union[Definition, _Unbound]:
        """
        Innermost definition of ``name`` visible from ``scope``.

        Raises:
            ScopeError: if ``scope`` or one of its ancestors was destroyed
        """
        current: Optional[int] = self._id(scope)
        while current is not None:
            frame = self.get(current)
            definition = frame.bindings.get(name)
            if definition is not None:
                return definition
            current = frame.parent_id
        return UNBOUND

    @contextmanager
    def frame(self, parent: ScopeRef) -> Iterator[Scope]:
        """A short-lived scope, destroyed on exit."""
        scope = self.create(parent)
        try:
            yield scope
        finally:
            self.destroy(scope)

    def __len__(self) -> int:
        return len(self._scopes)
