"""Tests for the LaTeX serializer."""

import pytest

from compute_engine.parser import LatexSerializer


@pytest.fixture
def serialize(grammar):
    return LatexSerializer(grammar).serialize


class TestAtoms:
    """Test numbers, symbols and strings."""

    def test_integers(self, serialize):
        """Test plain integers."""
        assert serialize(42) == "42"
        assert serialize(-3) == "-3"

    def test_scientific_float(self, serialize):
        """Test that exponents become a power of ten."""
        assert serialize(1.5e-7) == "1.5\\cdot10^{-7}"

    def test_numerals(self, serialize):
        """Test the object form of numbers."""
        assert serialize({"num": "+Infinity"}) == "\\infty"
        assert serialize({"num": "-Infinity"}) == "-\\infty"
        assert serialize({"num": "NaN"}) == "\\operatorname{NaN}"
        assert serialize({"num": "123456789012345678901234567890"}) == "123456789012345678901234567890"

    def test_booleans(self, serialize):
        """Test True and False."""
        assert serialize(True) == "\\top"
        assert serialize(False) == "\\bot"

    def test_symbols(self, serialize):
        """Test symbols with and without a dictionary entry."""
        assert serialize("x") == "x"
        assert serialize("Pi") == "\\pi"
        assert serialize("ExponentialE") == "e"
        assert serialize("alpha") == "\\alpha"
        assert serialize("speed") == "\\mathrm{speed}"

    def test_subscripted_symbol(self, serialize):
        """Test that x_1 is written with a subscript."""
        assert serialize("x_1") == "x_{1}"

    def test_number_sets(self, serialize):
        """Test blackboard bold letters."""
        assert serialize("RealNumbers") == "\\mathbb{R}"

    def test_string(self, serialize):
        """Test a string literal."""
        assert serialize({"str": "hi"}) == "\\text{hi}"


class TestOperators:
    """Test operators and parenthesization."""

    def test_add(self, serialize):
        """Test sums with negative terms."""
        assert serialize(["Add", "x", 1]) == "x+1"
        assert serialize(["Add", "x", ["Negate", "y"]]) == "x-y"
        assert serialize(["Add", "x", -2]) == "x-2"

    def test_subtract(self, serialize):
        """Test binary minus."""
        assert serialize(["Subtract", "x", 1]) == "x-1"

    def test_negate(self, serialize):
        """Test negation of a sum."""
        assert serialize(["Negate", "x"]) == "-x"
        assert serialize(["Negate", ["Add", "x", 1]]) == "-(x+1)"

    def test_multiply(self, serialize):
        """Test products."""
        assert serialize(["Multiply", 2, "x"]) == "2\\cdot x"
        assert serialize(["Multiply", -1, "x"]) == "-x"

    def test_multiply_wraps_sums(self, serialize):
        """Test that a sum inside a product is parenthesized."""
        assert serialize(["Multiply", ["Add", "x", 1], "y"]) == "(x+1)\\cdot y"

    def test_power(self, serialize):
        """Test exponents are braced and bases wrapped when needed."""
        assert serialize(["Power", "x", 2]) == "x^{2}"
        assert serialize(["Power", ["Add", "x", 1], 2]) == "(x+1)^{2}"

    def test_fractions(self, serialize):
        """Test Divide and Rational."""
        assert serialize(["Divide", 1, 2]) == "\\frac{1}{2}"
        assert serialize(["Rational", -1, 2]) == "-\\frac{1}{2}"

    def test_roots(self, serialize):
        """Test square roots and roots with an index."""
        assert serialize(["Sqrt", "x"]) == "\\sqrt{x}"
        assert serialize(["Root", "x", 3]) == "\\sqrt[3]{x}"

    def test_postfix(self, serialize):
        """Test factorial."""
        assert serialize(["Factorial", 5]) == "5!"

    def test_relations(self, serialize):
        """Test relational operators."""
        assert serialize(["Equal", "x", 1]) == "x=1"
        assert serialize(["Less", ["Add", "x", 1], 2]) == "x+1<2"
        assert serialize(["Element", "x", "Integers"]) == "x \\in \\mathbb{Z}"


class TestFunctions:
    """Test function notation."""

    def test_function_command(self, serialize):
        """Test functions with a dictionary trigger."""
        assert serialize(["Sin", "x"]) == "\\sin(x)"

    def test_function_power(self, serialize):
        """Test that powers of trigonometric functions use the compact form."""
        assert serialize(["Power", ["Sin", "x"], 2]) == "\\sin^{2}(x)"

    def test_single_letter_function(self, serialize):
        """Test an application of f."""
        assert serialize(["f", "x"]) == "f(x)"

    def test_unknown_function(self, serialize):
        """Test that other heads use \\operatorname."""
        assert serialize(["foo", "x", "y"]) == "\\operatorname{foo}(x, y)"

    def test_matchfix(self, serialize):
        """Test delimiters."""
        assert serialize(["Abs", "x"]) == "|x|"
        assert serialize(["Set", 1, 2]) == "\\{1, 2\\}"

    def test_sum(self, serialize):
        """Test a sum with bounds."""
        assert serialize(["Sum", "k", ["Triple", "k", 1, 10]]) == "\\sum_{k=1}^{10}k"

    def test_integral(self, serialize):
        """Test definite and indefinite integrals."""
        expr = ["Integrate", ["Power", "x", 2], ["Triple", "x", 0, 1]]
        assert serialize(expr) == "\\int_{0}^{1} x^{2}\\,\\mathrm{d}x"
        assert serialize(["Integrate", ["Sin", "t"], "t"]) == "\\int \\sin(t)\\,\\mathrm{d}t"

    def test_error_keeps_original(self, serialize):
        """Test that an error node serializes its original text."""
        node = ["Error", ["ErrorCode", {"str": "unexpected-command"}], ["LatexString", {"str": "\\foo"}]]
        assert serialize(node) == "\\foo"

    def test_metadata_is_ignored(self, serialize):
        """Test annotated expressions."""
        assert serialize({"fn": ["Add", {"sym": "x"}, {"num": "1"}], "latex": "x + 1"}) == "x+1"


class TestRoundTrip:
    """Test that serialized output parses back to the same expression."""

    @pytest.mark.parametrize(
        "latex",
        [
            "x+1",
            "x-y",
            "2x",
            "\\frac{1}{2}",
            "x^{2}",
            "(x+1)^2",
            "\\sqrt[3]{x}",
            "\\sin(x)",
            "|x|+1",
            "x=1",
            "\\{1,2\\}",
            "\\sum_{k=1}^{10} k",
            "\\int_0^1 x^2\\,dx",
            "\\int \\sin x\\,\\mathrm{d}x",
            "f(x)",
            "\\alpha\\beta",
        ],
    )
    def test_round_trip(self, parse, serialize, latex):
        """Test parse(serialize(parse(s))) == parse(s)."""
        expr = parse(latex)
        assert parse(serialize(expr)) == expr
