"""Tests for scopes and the definition registry."""

import pytest

from compute_engine import Domain, ScopeError, SymbolDefinition
from compute_engine.scope import UNBOUND, ScopeRegistry


@pytest.fixture
def registry():
    return ScopeRegistry()


class TestScopeRegistry:
    """Test creating, resolving and destroying scopes."""

    def test_root_exists(self, registry):
        """Test that a registry starts with its root scope."""
        assert len(registry) == 1
        assert registry.root.parent_id is None

    def test_resolve_through_parents(self, registry):
        """Test that lookup walks up to the root."""
        registry.declare(registry.root, "x", SymbolDefinition("x"))
        child = registry.create(registry.root)
        assert registry.resolve(child, "x").name == "x"

    def test_unbound(self, registry):
        """Test that a missing name resolves to UNBOUND."""
        assert registry.resolve(registry.root, "y") is UNBOUND
        assert not UNBOUND

    def test_inner_binding_shadows(self, registry):
        """Test that the innermost binding wins."""
        outer = SymbolDefinition("k", value=1)
        inner = SymbolDefinition("k", value=2)
        registry.declare(registry.root, "k", outer)
        child = registry.create(registry.root)
        registry.declare(child, "k", inner)
        assert registry.resolve(child, "k") is inner
        assert registry.resolve(registry.root, "k") is outer

    def test_destroyed_scope(self, registry):
        """Test that using a destroyed scope is an invariant violation."""
        child = registry.create(registry.root)
        registry.destroy(child)
        assert not registry.is_alive(child)
        with pytest.raises(ScopeError):
            registry.resolve(child.id, "x")
        with pytest.raises(ScopeError):
            registry.destroy(child)

    def test_root_cannot_be_destroyed(self, registry):
        """Test that the root scope is permanent."""
        with pytest.raises(ScopeError):
            registry.destroy(registry.root)

    def test_unknown_parent(self, registry):
        """Test creating a scope under a missing parent."""
        with pytest.raises(ScopeError):
            registry.create(42)

    def test_frozen_scope(self, registry):
        """Test that a frozen scope rejects declarations."""
        registry.freeze(registry.root)
        with pytest.raises(ScopeError):
            registry.declare(registry.root, "x", SymbolDefinition("x"))
        with pytest.raises(ScopeError):
            registry.forget(registry.root, "x")

    def test_forget(self, registry):
        """Test removing a binding."""
        registry.declare(registry.root, "x", SymbolDefinition("x"))
        assert registry.forget(registry.root, "x")
        assert not registry.forget(registry.root, "x")
        assert registry.resolve(registry.root, "x") is UNBOUND

    def test_frame_is_destroyed(self, registry):
        """Test that a frame scope only lives inside its block."""
        with registry.frame(registry.root) as frame:
            assert registry.is_alive(frame)
            assert len(registry) == 2
        assert not registry.is_alive(frame)
        assert len(registry) == 1

    def test_lexical_scope_is_shared(self, registry):
        """Test that the same bindings below the same parent reuse one scope."""
        first = registry.lexical(registry.root, {"k": SymbolDefinition("k", domain=Domain.INTEGER)})
        second = registry.lexical(registry.root, {"k": SymbolDefinition("k", domain=Domain.INTEGER)})
        assert first is second
        assert len(registry) == 2

    def test_lexical_scope_by_domain(self, registry):
        """Test that an index of another domain gets its own scope."""
        integer = registry.lexical(registry.root, {"x": SymbolDefinition("x", domain=Domain.INTEGER)})
        real = registry.lexical(registry.root, {"x": SymbolDefinition("x", domain=Domain.REAL_NUMBER)})
        assert integer is not real
        assert registry.resolve(real, "x").domain == Domain.REAL_NUMBER

    def test_lexical_scope_dies_with_parent(self, registry):
        """Test that destroying a scope destroys its lexical scopes."""
        parent = registry.create(registry.root)
        child = registry.lexical(parent, {"k": SymbolDefinition("k")})
        registry.destroy(parent)
        assert not registry.is_alive(child)
        assert len(registry) == 1


class TestEngineScopes:
    """Test the scopes of an engine."""

    def test_library_is_frozen(self, engine):
        """Test that built-in definitions cannot be replaced in place."""
        with pytest.raises(ScopeError):
            engine.scopes.declare(engine.scopes.root, "Pi", SymbolDefinition("Pi"))

    def test_declarations_go_to_global_scope(self, engine):
        """Test that host declarations live below the library."""
        engine.declare("n", "Integer")
        assert "n" in engine.scopes.get(engine.global_scope).bindings
        assert "n" not in engine.scopes.root.bindings

    def test_lexical_scope_of_sum(self, engine):
        """Test that the index of a sum is declared in its own scope."""
        expr = engine.box(["Sum", "k", ["Triple", "k", 1, 10]])
        index = expr.op2.op1
        assert index.scope_id != engine.global_scope.id
        assert engine.lookup("k", index.scope_id) is not None
        assert engine.lookup("k") is None

    def test_boxing_again_reuses_scope(self, engine, box_latex):
        """Test that boxing the same sum repeatedly does not add scopes."""
        box_latex("\\sum_{i=1}^{3} i")
        count = len(engine.scopes)
        for _ in range(50):
            assert box_latex("\\sum_{i=1}^{3} i").evaluate().json == 6
        assert len(engine.scopes) == count

    def test_frames_are_released(self, engine):
        """Test that evaluation frames do not outlive the evaluation."""
        expr = engine.box(["Sum", "k", ["Triple", "k", 1, 10]])
        count = len(engine.scopes)
        assert expr.evaluate().json == 55
        assert len(engine.scopes) == count

    def test_index_shadows_global_value(self, engine):
        """Test that a summation index hides a global symbol of the same name."""
        engine.assign("k", 100)
        assert engine.evaluate(["Sum", "k", ["Triple", "k", 1, 3]]).json == 6
        assert engine.evaluate("k").json == 100

    def test_nested_sums(self, engine):
        """Test that an inner bound sees the outer index."""
        expr = ["Sum", ["Sum", "j", ["Triple", "j", 1, "i"]], ["Triple", "i", 1, 3]]
        assert engine.evaluate(expr).json == 10
