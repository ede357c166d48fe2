"""Tests for boxing and canonical forms."""

from compute_engine import Domain
from compute_engine.boxed import BoxedFunction, BoxedNumber, BoxedString, BoxedSymbol


class TestBoxing:
    """Test boxing MathJSON atoms."""

    def test_numbers(self, engine):
        """Test integers, floats and numerals."""
        assert isinstance(engine.box(3), BoxedNumber)
        assert engine.box(3).json == 3
        assert engine.box(0.5).json == 0.5
        assert engine.box({"num": "123456789012345678901234567890"}).json == {
            "num": "123456789012345678901234567890"
        }

    def test_symbols_and_strings(self, engine):
        """Test symbol and string atoms."""
        assert isinstance(engine.box("x"), BoxedSymbol)
        assert isinstance(engine.box({"str": "hi"}), BoxedString)
        assert engine.box({"str": "hi"}).json == {"str": "hi"}

    def test_booleans(self, engine):
        """Test that Python booleans become True and False."""
        assert engine.box(True).json == "True"

    def test_metadata_is_stripped(self, engine):
        """Test that source annotations do not change the expression."""
        annotated = {"fn": ["Add", {"sym": "x"}, {"num": "1"}], "latex": "x+1"}
        expr = engine.box(annotated)
        assert expr.json == ["Add", 1, "x"]
        assert expr.latex == "x+1"

    def test_malformed_input(self, engine):
        """Test that malformed MathJSON becomes an error placeholder."""
        assert engine.box([]).error_kind == "unexpected-token"
        assert engine.box({"foo": 1}).error_kind == "unexpected-token"

    def test_nesting_limit(self, engine):
        """Test that very deep nesting is cut off."""
        expr = "x"
        for _ in range(300):
            expr = ["f", expr]
        boxed = engine.box(expr)
        assert [e.error_kind for e in boxed.errors] == ["recursion-depth-exceeded"]


class TestCanonicalForm:
    """Test the canonical form of functions."""

    def test_numbers_sort_first(self, engine):
        """Test that q+1 is stored as 1+q."""
        assert engine.box(["Add", "q", 1]).json == ["Add", 1, "q"]

    def test_integer_beyond_float_range(self, engine):
        """Test ordering and approximating an integer too large for a float."""
        big = {"num": "9" * 400}
        assert engine.box(["Add", "x", big]).json == ["Add", big, "x"]
        assert engine.N(big).json == {"num": "+Infinity"}

    def test_commutative_order(self, engine):
        """Test numbers, then symbols, then functions."""
        expr = engine.box(["Multiply", ["Sin", "x"], "y", 3])
        assert expr.json == ["Multiply", 3, "y", ["Sin", "x"]]

    def test_flatten_associative(self, engine):
        """Test that nested sums are flattened."""
        assert engine.box(["Add", "a", ["Add", "b", "c"]]).json == ["Add", "a", "b", "c"]

    def test_flatten_sequence(self, engine):
        """Test that Sequence operands are spliced in."""
        assert engine.box(["Add", ["Sequence", "a", "b"], "c"]).json == ["Add", "a", "b", "c"]

    def test_fold_exact_literals(self, engine):
        """Test that exact numbers are folded."""
        assert engine.box(["Add", 1, 2, "x"]).json == ["Add", 3, "x"]
        assert engine.box(["Add", ["Rational", 1, 3], ["Rational", 1, 6]]).json == ["Rational", 1, 2]

    def test_approximate_literals_are_kept(self, engine):
        """Test that floats are not folded at boxing."""
        assert engine.box(["Add", 0.1, 0.2]).json == ["Add", 0.1, 0.2]

    def test_zero_and_one_are_dropped(self, engine):
        """Test the identities of Add and Multiply."""
        assert engine.box(["Add", "x", 0]).json == "x"
        assert engine.box(["Multiply", "x", 1]).json == "x"

    def test_subtract(self, engine):
        """Test that subtraction is addition of a negation."""
        assert engine.box(["Subtract", "x", "y"]).json == ["Add", "x", ["Negate", "y"]]
        assert engine.box(["Subtract", "x", 1]).json == ["Add", -1, "x"]

    def test_negate(self, engine):
        """Test the canonical forms of negation."""
        assert engine.box(["Negate", 3]).json == -3
        assert engine.box(["Negate", ["Negate", "x"]]).json == "x"
        assert engine.box(["Multiply", -1, "x"]).json == ["Negate", "x"]
        assert engine.box(["Negate", ["Multiply", 2, "x"]]).json == ["Multiply", -2, "x"]

    def test_divide(self, engine):
        """Test that integer division is a rational and x/1 is x."""
        assert engine.box(["Divide", 1, 3]).json == ["Rational", 1, 3]
        assert engine.box(["Divide", 4, 2]).json == 2
        assert engine.box(["Divide", "x", 1]).json == "x"
        assert engine.box(["Divide", 1, 0]).json == ["Divide", 1, 0]

    def test_divide_of_rationals_is_kept(self, engine):
        """Test that only integer over integer is folded."""
        expr = engine.box(["Divide", ["Rational", 1, 3], ["Rational", 1, 3]])
        assert expr.head == "Divide"

    def test_power_and_root(self, engine):
        """Test x^1 and the square root as a root."""
        assert engine.box(["Power", "x", 1]).json == "x"
        assert engine.box(["Root", "x", 2]).json == ["Sqrt", "x"]
        assert engine.box(["Power", 2, 10]).json == ["Power", 2, 10]

    def test_structural_rewrites(self, engine):
        """Test Delimiter, Subscript and Exp."""
        assert engine.box(["Delimiter", "x"]).json == "x"
        assert engine.box(["Delimiter", ["Sequence", 1, 2]]).json == ["Tuple", 1, 2]
        assert engine.box(["Subscript", "x", 1]).json == "x_1"
        assert engine.box(["Exp", "x"]).json == ["Power", "ExponentialE", "x"]
        assert engine.box(["Square", "x"]).json == ["Power", "x", 2]
        assert engine.box(["Sqrt", "x"]).json == ["Sqrt", "x"]

    def test_idempotent_heads(self, engine):
        """Test that repeated operands of idempotent heads collapse."""
        assert engine.box(["Set", 2, 1, 2]).json == ["Set", 1, 2]
        assert engine.box(["And", "p", "p", "q"]).json == ["And", "p", "q"]

    def test_empty_set(self, engine):
        """Test that an empty set literal is EmptySet."""
        assert engine.box(["Set"]).json == "EmptySet"

    def test_double_negation(self, engine):
        """Test Not(Not(p))."""
        assert engine.box(["Not", ["Not", "p"]]).json == "p"

    def test_relations_keep_order(self, engine):
        """Test that relations are not reordered."""
        assert engine.box(["Equal", "y", "x"]).json == ["Equal", "y", "x"]

    def test_unknown_heads(self, engine):
        """Test that unknown heads keep their operands in order."""
        assert engine.box(["foo", "y", "x"]).json == ["foo", "y", "x"]

    def test_idempotence(self, engine):
        """Test that boxing canonical MathJSON again changes nothing."""
        for source in ["x+1", "2x+3x", "\\frac{1}{2}+y", "\\sqrt{x}-\\frac{x}{2}", "\\sin(x)^2"]:
            once = engine.box(engine.parse(source))
            assert engine.box(once.json) == once

    def test_non_canonical(self, engine):
        """Test boxing without canonicalization."""
        expr = engine.box(["Add", "x", 1], canonical=False)
        assert isinstance(expr, BoxedFunction)
        assert not expr.is_canonical
        assert expr.json == ["Add", "x", 1]
        assert expr.canonical.json == ["Add", 1, "x"]


class TestValidation:
    """Test operand validation against signatures."""

    def test_incompatible_domain(self, engine, diagnostics):
        """Test that a string operand of Sqrt is replaced by an error."""
        expr = engine.box(["Sqrt", {"str": "a"}])
        assert expr.head == "Sqrt"
        assert expr.op1.error_kind == "incompatible-domain"
        assert expr.op1.json == [
            "Error",
            ["ErrorCode", {"str": "incompatible-domain"}, "Number", "String"],
            {"str": "a"},
        ]
        assert [d.code for d in diagnostics] == ["incompatible-domain"]

    def test_missing_operand(self, engine):
        """Test that a missing operand becomes a placeholder."""
        expr = engine.box(["Sqrt"])
        assert expr.op1.json == ["Error", ["ErrorCode", {"str": "missing"}, "Number"]]

    def test_unexpected_argument(self, engine):
        """Test that an extra operand is flagged."""
        expr = engine.box(["Sqrt", 4, 9])
        assert expr.op2.error_kind == "unexpected-argument"
        assert expr.op2.json[2] == 9

    def test_placeholders_validate_once(self, engine, diagnostics):
        """Test that re-boxing an invalid expression reports nothing new."""
        expr = engine.box(["Sqrt", {"str": "a"}])
        count = len(diagnostics)
        assert engine.box(expr.json) == expr
        assert len(diagnostics) == count

    def test_parser_errors_pass_validation(self, engine):
        """Test that error nodes from the parser are kept as operands."""
        expr = engine.box(engine.parse("x+"))
        assert expr.head == "Add"
        assert not expr.is_valid
        assert [e.error_kind for e in expr.errors] == ["missing-operand"]


class TestProperties:
    """Test domains, symbols and predicates of boxed expressions."""

    def test_domains(self, engine):
        """Test inferred domains."""
        assert engine.box(3).domain == Domain.INTEGER
        assert engine.box(["Rational", 1, 2]).domain == Domain.RATIONAL_NUMBER
        assert engine.box("x").domain == Domain.ANYTHING
        assert engine.box(["Add", 1, "x"]).domain == Domain.NUMBER
        assert engine.box(["Equal", "x", 1]).domain == Domain.BOOLEAN
        assert engine.box("Pi").domain == Domain.REAL_NUMBER

    def test_declared_domain(self, engine):
        """Test the domain of a declared symbol."""
        engine.declare("n", "Integer")
        assert engine.box("n").is_integer is True
        assert engine.box(["Add", "n", 1]).domain == Domain.INTEGER

    def test_symbols(self, engine):
        """Test collecting symbols."""
        expr = engine.box(["Add", "y", ["Multiply", 2, "x"], "Pi"])
        assert expr.symbols == ["Pi", "x", "y"]
        assert expr.unbound_symbols == ["x", "y"]

    def test_predicates(self, engine):
        """Test number predicates."""
        assert engine.box(0).is_zero
        assert engine.box(1).is_one
        assert engine.box(-2).sgn == -1
        assert engine.box(0.5).is_exact is False
        assert engine.box(["Add", "x", 1]).is_exact

    def test_structural_equality(self, engine):
        """Test is_same, == and hash."""
        a = engine.box(["Add", "x", 1])
        b = engine.box(["Add", 1, "x"])
        assert a.is_same(b)
        assert a == b
        assert hash(a) == hash(b)
        assert a == ["Add", 1, "x"]
        assert engine.box(1) != engine.box(1.0)

    def test_subs(self, engine):
        """Test substitution of symbols."""
        expr = engine.box(["Add", "x", 1]).subs({"x": 2})
        assert expr.json == 3

    def test_latex(self, engine):
        """Test serializing a boxed expression."""
        assert engine.box(["Add", 1, "x"]).latex == "1+x"
