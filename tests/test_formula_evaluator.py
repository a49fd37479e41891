"""
Pruebas del evaluador de fórmulas y de sus proveedores matemáticos.
"""

import math
from decimal import Decimal

import pytest

from arbitrary_precision_provider import MPMathProvider
from formula_evaluator import FormulaEvaluator, PythonMathProvider


class TestArithmetic:

    def setup_method(self):
        self.evaluator = FormulaEvaluator()

    @pytest.mark.parametrize("expression,expected", [
        ("2+3*4", 14),
        ("(2+3)*4", 20),
        ("7/2", 3.5),
        ("2^10", 1024),
        ("-3.0*2", -6),
        ("50%", 0.5),
        ("(1+1)%", 0.02),
        ("1.5e-7*2", 3e-7),
        ("1/3", 1 / 3),
    ])
    def test_operators(self, expression, expected):
        assert self.evaluator.evaluate(expression) == pytest.approx(expected)

    def test_integer_literals_use_float_division(self):
        assert self.evaluator.evaluate("1/2") == 0.5

    def test_division_by_zero(self):
        with pytest.raises(ZeroDivisionError):
            self.evaluator.evaluate("1/0")

    def test_overflow(self):
        with pytest.raises(OverflowError):
            self.evaluator.evaluate("exp(1000)")


class TestFunctions:

    def setup_method(self):
        self.evaluator = FormulaEvaluator(PythonMathProvider(angle_mode="deg"))

    @pytest.mark.parametrize("expression,expected", [
        ("sin(30)", 0.5),
        ("cos(60)", 0.5),
        ("tan(45)", 1),
        ("sinh(0)", 0),
        ("cosh(0)", 1),
        ("tanh(0)", 0),
        ("sqrt(16)", 4),
        ("cbrt(27)", 3),
        ("cbrt(-8)", -2),
        ("ln(e)", 1),
        ("log(1000)", 3),
        ("exp(0)", 1),
        ("sin(sin(3))", math.sin(math.radians(math.sin(math.radians(3))))),
        ("2*pi", 2 * math.pi),
    ])
    def test_functions_in_degrees(self, expression, expected):
        assert self.evaluator.evaluate(expression) == pytest.approx(expected)

    def test_radians(self):
        self.evaluator.angle_mode = "rad"
        assert self.evaluator.evaluate("sin(pi/2)") == pytest.approx(1)
        assert self.evaluator.angle_mode == "rad"

    def test_invalid_angle_mode(self):
        with pytest.raises(ValueError):
            self.evaluator.angle_mode = "grad"

    @pytest.mark.parametrize("expression", ["sqrt(-1)", "ln(0)", "log(-1)"])
    def test_domain_errors(self, expression):
        with pytest.raises(ValueError):
            self.evaluator.evaluate(expression)


class TestRejectedExpressions:

    def setup_method(self):
        self.evaluator = FormulaEvaluator()

    @pytest.mark.parametrize("expression", [
        "",
        "   ",
        "abs(2)",
        "2**3",
        "__import__('os')",
        "sin 3",
        "pi(2)",
        "1+",
        "(1+2",
        "1;2",
    ])
    def test_invalid_expressions_raise_value_error(self, expression):
        with pytest.raises(ValueError):
            self.evaluator.evaluate(expression)


class TestMPMathProvider:

    def setup_method(self):
        self.evaluator = FormulaEvaluator(MPMathProvider(angle_mode="deg", digits=30))

    def test_result_keeps_requested_digits(self):
        result = self.evaluator.evaluate("1/3")
        assert Decimal(result) == pytest.approx(Decimal(1) / Decimal(3))
        assert result.startswith("0.33333333333333333333")

    def test_functions_in_degrees(self):
        assert float(self.evaluator.evaluate("sin(30)")) == pytest.approx(0.5)
        assert float(self.evaluator.evaluate("cbrt(-8)")) == pytest.approx(-2)

    def test_integer_exponent(self):
        assert Decimal(self.evaluator.evaluate("2^64")) == Decimal(2) ** 64

    def test_division_by_zero(self):
        with pytest.raises(ZeroDivisionError):
            self.evaluator.evaluate("1/0")

    @pytest.mark.parametrize("expression", ["sqrt(-1)", "ln(0)"])
    def test_domain_errors(self, expression):
        with pytest.raises(ValueError):
            self.evaluator.evaluate(expression)

    def test_minimum_digits(self):
        assert MPMathProvider(digits=5).digits == 15
