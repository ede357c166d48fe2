"""
Arithmetic heads.

Canonical handlers fold exact literals only. Evaluate handlers compute with
the numeric tower: an operation without an exact result raises ``NotExact``
and the expression stays symbolic; ``N`` sees approximate operands and always
produces a number.
"""

from __future__ import annotations

import math
from typing import Optional

from ..boxed.canonical import build_function
from ..boxed.domains import Domain
from ..core.errors import NotExact
from ..definitions import FunctionDefinition, Hold, HoldUntil, Signature, SymbolDefinition
from ..numerics import NEGATIVE_ONE, ONE, ZERO, Rational, approximate, make_complex
from .common import as_int, numeric_result, numeric_values

# Largest argument of an exact factorial
MAX_EXACT_FACTORIAL = 10_000

# Largest number of terms expanded by Sum and Product
MAX_ITERATIONS = 1_000_000

NUMBER = Domain.NUMBER


def _split_exact(ops):
    exact = [op for op in ops if op.is_number and op.is_exact]
    others = [op for op in ops if not (op.is_number and op.is_exact)]
    return exact, others


# Add


def canonical_add(engine, ops):
    exact, others = _split_exact(ops)
    if exact:
        total = exact[0].numeric_value
        for op in exact[1:]:
            total = total + op.numeric_value
        if not total.is_zero or not others:
            others.append(engine.number(total))
    if not others:
        return engine.number(0)
    if len(others) == 1:
        return others[0]
    return build_function(engine, "Add", others)


def _term(engine, op):
    """Split a term into (numeric coefficient, rest)."""
    if op.head == "Negate":
        coefficient, rest = _term(engine, op.op1)
        return -coefficient, rest
    if op.head == "Multiply" and op.op1.is_number:
        rest = op.ops[1:]
        return op.op1.numeric_value, rest[0] if len(rest) == 1 else engine.function("Multiply", rest)
    return ONE, op


def simplify_add(engine, ops):
    """Fold numbers and collect like terms: ``x+2x`` is ``3x``."""
    total = ZERO
    terms: dict[tuple, list] = {}
    for op in ops:
        if op.is_number:
            total = total + op.numeric_value
            continue
        coefficient, rest = _term(engine, op)
        if rest.key in terms:
            terms[rest.key][0] = terms[rest.key][0] + coefficient
        else:
            terms[rest.key] = [coefficient, rest]

    result = [engine.number(total)]
    for coefficient, rest in terms.values():
        if coefficient.is_zero and coefficient.is_exact:
            continue
        if coefficient.is_one and coefficient.is_exact:
            result.append(rest)
        else:
            result.append(engine.function("Multiply", [engine.number(coefficient), rest]))
    return engine.function("Add", result)


# Multiply


def canonical_multiply(engine, ops):
    exact, others = _split_exact(ops)
    product = ONE
    for op in exact:
        product = product * op.numeric_value
    if not others:
        return engine.number(product)
    if product.compare(NEGATIVE_ONE) == 0 and len(others) == 1:
        return engine.function("Negate", others)
    if not product.is_one:
        others.append(engine.number(product))
    if len(others) == 1:
        return others[0]
    return build_function(engine, "Multiply", others)


def simplify_multiply(engine, ops):
    """Fold numbers and merge powers of a common base: ``x\\cdot x^2`` is ``x^3``."""
    coefficient = ONE
    factors: dict[tuple, list] = {}
    for op in ops:
        if op.is_number:
            coefficient = coefficient * op.numeric_value
            continue
        if op.head == "Negate":
            coefficient = -coefficient
            op = op.op1
        if op.head == "Power" and op.nops == 2:
            base, exponent = op.op1, op.op2
        else:
            base, exponent = op, engine.number(1)
        factors.setdefault(base.key, [base, []])[1].append(exponent)

    if coefficient.is_zero and coefficient.is_exact:
        return engine.number(0)
    powers = []
    for base, exponents in factors.values():
        exponent = _sum_exponents(engine, exponents)
        if exponent.is_number and exponent.is_zero:
            if not exponent.is_exact and coefficient.is_exact:
                coefficient = approximate(coefficient, engine.numeric_mode, engine.precision)
            continue
        powers.append(engine.function("Power", [base, exponent]))
    return engine.function("Multiply", [engine.number(coefficient), *powers])


def _sum_exponents(engine, exponents):
    """Add up the exponents of a common base, folding the numeric ones."""
    if len(exponents) == 1:
        return exponents[0]
    numbers = [e.numeric_value for e in exponents if e.is_number]
    others = [e for e in exponents if not e.is_number]
    if not numbers:
        return engine.function("Add", others)
    total = numbers[0]
    for value in numbers[1:]:
        total = total + value
    return engine.function("Add", [engine.number(total), *others])


# Negate, Divide, Rational, Complex


def canonical_negate(engine, ops):
    if len(ops) != 1:
        return None
    operand = ops[0]
    if operand.is_number:
        return engine.number(-operand.numeric_value)
    if operand.head == "Negate":
        return operand.op1
    if operand.head == "Multiply":
        return engine.function("Multiply", [engine.number(-1), *operand.ops])
    return None


def evaluate_negate(engine, ops):
    if ops[0].is_number:
        return engine.number(-ops[0].numeric_value)
    return None


def canonical_divide(engine, ops):
    """Exact division of integers is a rational; division by one is dropped."""
    if len(ops) != 2:
        return None
    numerator, denominator = ops
    if denominator.is_number and denominator.is_exact and denominator.is_one:
        return numerator
    if (
        numerator.is_number
        and denominator.is_number
        and numerator.is_exact
        and denominator.is_exact
        and numerator.is_integer
        and denominator.is_integer
        and not denominator.is_zero
    ):
        return engine.number(numerator.numeric_value / denominator.numeric_value)
    return None


def evaluate_divide(engine, ops):
    values = numeric_values(ops)
    if values is None or len(values) != 2:
        return None
    return engine.number(values[0] / values[1])


def canonical_rational(engine, ops):
    if len(ops) == 2 and all(op.is_number and op.is_exact and op.is_integer for op in ops):
        if ops[1].is_zero:
            return None
        return engine.number(ops[0].numeric_value / ops[1].numeric_value)
    if len(ops) == 1 and ops[0].is_number and ops[0].is_exact:
        return ops[0]
    return None


def canonical_complex(engine, ops):
    values = numeric_values(ops)
    if values is None or len(values) != 2 or not all(v.is_real for v in values):
        return None
    return engine.number(make_complex(values[0], values[1]))


# Power and roots


def simplify_power(engine, ops):
    if len(ops) != 2:
        return None
    base, exponent = ops
    if exponent.is_number and exponent.is_exact:
        if exponent.is_zero:
            return engine.number(1)
        if exponent.is_one:
            return base
    if base.is_number and base.is_exact and base.is_one:
        return base
    if base.is_number and exponent.is_number and base.is_exact and exponent.is_exact:
        return engine.number(base.numeric_value ** exponent.numeric_value)
    if base.head == "Power" and base.nops == 2 and as_int(exponent) is not None:
        product = engine.function("Multiply", [base.op2, exponent])
        return engine.function("Power", [base.op1, product])
    return None


def evaluate_power(engine, ops):
    values = numeric_values(ops)
    if values is not None and len(values) == 2:
        return engine.number(values[0] ** values[1])
    return simplify_power(engine, ops)


def canonical_power(engine, ops):
    if len(ops) == 2 and ops[1].is_number and ops[1].is_exact and ops[1].is_one:
        return ops[0]
    return None


def canonical_root(engine, ops):
    if len(ops) == 2 and as_int(ops[1]) == 2 and ops[1].is_exact:
        return engine.function("Sqrt", ops[:1])
    return None


def evaluate_root(engine, ops):
    values = numeric_values(ops)
    if values is None or len(values) != 2:
        return None
    if values[1].is_exact:
        return engine.number(values[0] ** (ONE / values[1]))
    return engine.number(values[0] ** (approximate(ONE, engine.numeric_mode, engine.precision) / values[1]))


def _unary(method: str):
    """Evaluate handler applying a numeric-tower method to a number."""

    def handler(engine, ops):
        if len(ops) != 1 or not ops[0].is_number:
            return None
        return engine.number(getattr(ops[0].numeric_value, method)())

    handler.__name__ = f"evaluate_{method}"
    return handler


# Logarithms


def _exact_log(value: Rational, base: Rational) -> Optional[int]:
    if value.is_one:
        return 0
    if not (value.is_integer and base.is_integer) or base.numerator < 2 or value.numerator < 1:
        return None
    k, power = 0, 1
    while power < value.numerator:
        power *= base.numerator
        k += 1
    return k if power == value.numerator else None


def evaluate_ln(engine, ops):
    if ops[0].symbol == "ExponentialE":
        return engine.number(1)
    return _unary("ln")(engine, ops)


def evaluate_log(engine, ops):
    base = ops[1] if len(ops) > 1 else engine.number(10)
    values = numeric_values([ops[0], base])
    if values is None:
        return None
    value, base_value = values
    if value.is_exact and base_value.is_exact:
        k = _exact_log(value, base_value)
        if k is None:
            raise NotExact("log")
        return engine.number(k)
    if value.is_exact:
        value = approximate(value, engine.numeric_mode, engine.precision)
    if base_value.is_exact:
        base_value = approximate(base_value, engine.numeric_mode, engine.precision)
    return engine.number(value.ln() / base_value.ln())


# Max, Min, Gcd


def _extremum(name: str, sign: int):
    def handler(engine, ops):
        for op in ops:
            if op.is_number and op.numeric_value.is_nan:
                return op
        numbers = [op for op in ops if op.is_number and op.numeric_value.is_real]
        others = [op for op in ops if op not in numbers]
        if not numbers:
            return None
        best = numbers[0].numeric_value
        for op in numbers[1:]:
            if op.numeric_value.compare(best) == sign:
                best = op.numeric_value
        if not others:
            return engine.number(best)
        if len(numbers) == 1:
            return None
        return engine.function(name, [engine.number(best), *others])

    return handler


def evaluate_gcd(engine, ops):
    values = [as_int(op) for op in ops]
    if not ops or any(v is None for v in values) or not all(op.is_exact for op in ops):
        return None
    return engine.number(math.gcd(*values))


# Factorials


def evaluate_factorial(engine, ops):
    n = as_int(ops[0])
    if n is None or n < 0:
        value = ops[0].numeric_value if ops[0].is_number else None
        if value is not None and not value.is_exact and value.is_real:
            return engine.number((value + ONE).gamma())
        return None
    if n > MAX_EXACT_FACTORIAL:
        raise NotExact("factorial")
    result = engine.number(math.factorial(n))
    return result if ops[0].is_exact else result.N()


def evaluate_factorial2(engine, ops):
    n = as_int(ops[0])
    if n is None or n < 0:
        return None
    if n > MAX_EXACT_FACTORIAL:
        raise NotExact("double factorial")
    result = engine.number(math.prod(range(n, 0, -2)))
    return result if ops[0].is_exact else result.N()


# Sum and Product


def _big_operator(fold: str, numeric: bool):
    """Expand ``Sum``/``Product`` over integer bounds, one evaluation frame per term."""

    def handler(engine, ops):
        if len(ops) < 2 or ops[1].head != "Triple" or ops[1].nops != 3:
            return None
        body = ops[0]
        index, lower, upper = ops[1].ops
        if index.symbol is None or index.symbol == "Nothing":
            return None
        lo, hi = as_int(lower.evaluate()), as_int(upper.evaluate())
        if lo is None or hi is None or hi - lo >= MAX_ITERATIONS:
            return None

        terms = []
        for k in range(lo, hi + 1):
            with engine.frame(index.scope_id) as frame:
                engine.scopes.declare(
                    frame,
                    index.symbol,
                    SymbolDefinition(
                        index.symbol,
                        domain=Domain.INTEGER,
                        value=engine.number(k),
                        hold_until=HoldUntil.NEVER,
                    ),
                )
                terms.append(body.N() if numeric else body.evaluate())
        if not terms:
            return engine.number(0 if fold == "Add" else 1)
        result = engine.function(fold, terms)
        return result.N() if numeric else result.evaluate()

    handler.__name__ = f"{'N' if numeric else 'evaluate'}_{fold.lower()}"
    return handler


def _integer_result(ops):
    return Domain.INTEGER


def _real_result(ops):
    return Domain.REAL_NUMBER


FUNCTIONS = [
    FunctionDefinition(
        "Add",
        signature=Signature.variadic(NUMBER, result=numeric_result),
        commutative=True,
        associative=True,
        complexity=1300,
        canonical=canonical_add,
        simplify=simplify_add,
        evaluate=simplify_add,
    ),
    FunctionDefinition(
        "Multiply",
        signature=Signature.variadic(NUMBER, result=numeric_result),
        commutative=True,
        associative=True,
        complexity=2100,
        canonical=canonical_multiply,
        simplify=simplify_multiply,
        evaluate=simplify_multiply,
    ),
    FunctionDefinition(
        "Negate",
        signature=Signature.fixed(NUMBER, result=numeric_result),
        complexity=2000,
        canonical=canonical_negate,
        evaluate=evaluate_negate,
    ),
    FunctionDefinition(
        "Subtract",
        signature=Signature.fixed(NUMBER, NUMBER, result=numeric_result),
        complexity=1350,
    ),
    FunctionDefinition(
        "Divide",
        signature=Signature.fixed(NUMBER, NUMBER, result=NUMBER),
        complexity=2500,
        canonical=canonical_divide,
        evaluate=evaluate_divide,
    ),
    FunctionDefinition(
        "Rational",
        signature=Signature.fixed(NUMBER, optional=(NUMBER,), result=Domain.RATIONAL_NUMBER),
        complexity=2400,
        canonical=canonical_rational,
        evaluate=evaluate_divide,
    ),
    FunctionDefinition(
        "Complex",
        signature=Signature.fixed(NUMBER, NUMBER, result=Domain.COMPLEX_NUMBER),
        complexity=2400,
        canonical=canonical_complex,
    ),
    FunctionDefinition(
        "Power",
        signature=Signature.fixed(NUMBER, NUMBER, result=NUMBER),
        complexity=3500,
        canonical=canonical_power,
        simplify=simplify_power,
        evaluate=evaluate_power,
    ),
    FunctionDefinition(
        "Sqrt",
        signature=Signature.fixed(NUMBER, result=NUMBER),
        threadable=True,
        complexity=3600,
        evaluate=_unary("sqrt"),
    ),
    FunctionDefinition(
        "Root",
        signature=Signature.fixed(NUMBER, NUMBER, result=NUMBER),
        complexity=3650,
        canonical=canonical_root,
        evaluate=evaluate_root,
    ),
    FunctionDefinition(
        "Abs",
        signature=Signature.fixed(NUMBER, result=_real_result),
        threadable=True,
        complexity=1200,
        evaluate=_unary("__abs__"),
    ),
    FunctionDefinition(
        "Floor",
        signature=Signature.fixed(NUMBER, result=_integer_result),
        threadable=True,
        complexity=1200,
        evaluate=_unary("floor"),
    ),
    FunctionDefinition(
        "Ceil",
        signature=Signature.fixed(NUMBER, result=_integer_result),
        threadable=True,
        complexity=1200,
        evaluate=_unary("ceil"),
    ),
    FunctionDefinition(
        "Round",
        signature=Signature.fixed(NUMBER, result=_integer_result),
        threadable=True,
        complexity=1200,
        evaluate=_unary("round"),
    ),
    FunctionDefinition(
        "Ln",
        signature=Signature.fixed(NUMBER, result=NUMBER),
        threadable=True,
        complexity=4000,
        evaluate=evaluate_ln,
    ),
    FunctionDefinition(
        "Log",
        signature=Signature.fixed(NUMBER, optional=(NUMBER,), result=NUMBER),
        complexity=4100,
        evaluate=evaluate_log,
    ),
    FunctionDefinition(
        "Max",
        signature=Signature.variadic(NUMBER, result=numeric_result),
        commutative=True,
        idempotent=True,
        complexity=1200,
        evaluate=_extremum("Max", 1),
    ),
    FunctionDefinition(
        "Min",
        signature=Signature.variadic(NUMBER, result=numeric_result),
        commutative=True,
        idempotent=True,
        complexity=1200,
        evaluate=_extremum("Min", -1),
    ),
    FunctionDefinition(
        "Gcd",
        signature=Signature.variadic(NUMBER, result=_integer_result),
        commutative=True,
        complexity=1200,
        evaluate=evaluate_gcd,
    ),
    FunctionDefinition(
        "Factorial",
        signature=Signature.fixed(NUMBER, result=NUMBER),
        complexity=9000,
        evaluate=evaluate_factorial,
    ),
    FunctionDefinition(
        "Factorial2",
        signature=Signature.fixed(NUMBER, result=NUMBER),
        complexity=9000,
        evaluate=evaluate_factorial2,
    ),
    FunctionDefinition(
        "Sum",
        signature=Signature.fixed(NUMBER, optional=(Domain.ANYTHING,), result=NUMBER),
        hold=Hold.ALL,
        scoped=True,
        complexity=1000,
        evaluate=_big_operator("Add", numeric=False),
        N=_big_operator("Add", numeric=True),
    ),
    FunctionDefinition(
        "Product",
        signature=Signature.fixed(NUMBER, optional=(Domain.ANYTHING,), result=NUMBER),
        hold=Hold.ALL,
        scoped=True,
        complexity=1000,
        evaluate=_big_operator("Multiply", numeric=False),
        N=_big_operator("Multiply", numeric=True),
    ),
    # Parsed and boxed only: no integration rules
    FunctionDefinition(
        "Integrate",
        signature=Signature.fixed(NUMBER, optional=(Domain.ANYTHING,), result=NUMBER),
        hold=Hold.ALL,
        scoped=True,
        index_domain=Domain.REAL_NUMBER,
        complexity=1000,
    ),
]
