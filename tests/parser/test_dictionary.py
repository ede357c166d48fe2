"""Tests for the grammar dictionary and its index."""

import pytest

from compute_engine.parser import (
    Associativity,
    OperatorDefinition,
    OperatorKind,
    index_dictionary,
    load_dictionary,
    lookup,
    tokenize,
)


class TestOperatorDefinition:
    """Test building definitions from YAML mappings."""

    def test_from_dict(self):
        """Test a complete infix entry."""
        definition = OperatorDefinition.from_dict(
            {"name": "Power", "kind": "infix", "trigger": "^", "precedence": 720, "associativity": "right"}
        )
        assert definition.kind == OperatorKind.INFIX
        assert definition.precedence == 720
        assert definition.associativity == Associativity.RIGHT

    def test_defaults(self):
        """Test default precedence and associativity."""
        definition = OperatorDefinition.from_dict({"name": "Pi", "kind": "symbol", "trigger": "\\pi"})
        assert definition.precedence == 0
        assert definition.associativity == Associativity.LEFT
        assert definition.parse is None

    def test_missing_keys(self):
        """Test that name, kind and trigger are required."""
        with pytest.raises(ValueError):
            OperatorDefinition.from_dict({"name": "Pi", "kind": "symbol"})

    def test_unknown_kind(self):
        """Test that an unknown kind is rejected."""
        with pytest.raises(ValueError):
            OperatorDefinition.from_dict({"name": "X", "kind": "circumfix", "trigger": "x"})

    def test_matchfix_requires_close(self):
        """Test that matchfix entries need a closing delimiter."""
        with pytest.raises(ValueError):
            OperatorDefinition.from_dict({"name": "Abs", "kind": "matchfix", "trigger": "|"})


class TestLoadDictionary:
    """Test loading the shipped YAML dictionary."""

    def test_loads_all_categories(self):
        """Test that every category is loaded by default."""
        categories = {d.category for d in load_dictionary()}
        assert {"core", "arithmetic", "relational", "sets"} <= categories

    def test_category_filter(self):
        """Test loading a subset of the categories."""
        definitions = load_dictionary(categories=["arithmetic"])
        assert definitions
        assert {d.category for d in definitions} == {"arithmetic"}

    def test_malformed_entries_are_reported(self, tmp_path):
        """Test that malformed entries are skipped with a diagnostic."""
        path = tmp_path / "bad.yaml"
        path.write_text("core:\n  - {name: Add, kind: infix, trigger: '+'}\n  - {name: Bad}\n")
        reported = []
        definitions = load_dictionary(path, on_diagnostic=reported.append)
        assert [d.name for d in definitions] == ["Add"]
        assert len(reported) == 1


class TestGrammarIndex:
    """Test the read-only grammar index."""

    def test_by_name(self, grammar):
        """Test finding definitions by head."""
        definitions = grammar.by_name("Multiply", OperatorKind.INFIX)
        assert definitions[0].trigger == "\\times"

    def test_longest_trigger_first(self, grammar):
        """Test that '!!' is tried before '!'."""
        tokens = tokenize("!!")
        matches = lookup(grammar, tokens, 0, OperatorKind.POSTFIX)
        assert matches[0][0].definition.name == "Factorial2"
        assert matches[0][1] == 2

    def test_multi_token_trigger(self, grammar):
        """Test matching a trigger made of several tokens."""
        tokens = tokenize("\\left( x")
        matches = lookup(grammar, tokens, 0, OperatorKind.MATCHFIX)
        assert matches[0][0].definition.name == "Delimiter"

    def test_close_triggers(self, grammar):
        """Test recognizing closing delimiters."""
        assert grammar.is_close_trigger("\\rfloor")
        assert grammar.matchfix_for_close("\\rfloor").name == "Floor"

    def test_unknown_handler_is_skipped(self):
        """Test that an entry naming an unknown parse handler is dropped."""
        reported = []
        index = index_dictionary(
            [
                {"name": "Add", "kind": "infix", "trigger": "+", "precedence": 275},
                {"name": "Weird", "kind": "prefix", "trigger": "\\weird", "parse": "nope"},
            ],
            on_diagnostic=reported.append,
        )
        assert len(index) == 1
        assert not index.by_name("Weird")
        assert reported

    def test_index_is_read_only(self, grammar):
        """Test that the index cannot be modified."""
        with pytest.raises(TypeError):
            grammar._by_name["Add"] = ()
