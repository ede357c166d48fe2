"""
Built-in definitions.

Each module holds plain tables of ``SymbolDefinition`` and
``FunctionDefinition``; ``install()`` declares them in the root scope of an
engine.
"""

from __future__ import annotations

import logging

from ..scope import ScopeRef, ScopeRegistry
from . import arithmetic, core, relational, sets, trigonometry

logger = logging.getLogger(__name__)

LIBRARIES = [core, arithmetic, trigonometry, relational, sets]


def install(registry: ScopeRegistry, scope: ScopeRef) -> int:
    """Declare every built-in definition in ``scope``; returns how many."""
    count = 0
    for module in LIBRARIES:
        for definition in [*getattr(module, "SYMBOLS", []), *getattr(module, "FUNCTIONS", [])]:
            registry.declare(scope, definition.name, definition)
            count += 1
    logger.debug("Installed library", extra={"extra_data": {"definitions": count}})
    return count


__all__ = ["LIBRARIES", "install"]
