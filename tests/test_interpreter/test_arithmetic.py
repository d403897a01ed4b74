"""Tests for the arithmetic evaluator."""

import pytest
from memsh.interpreter.arithmetic import (
    ArithBinary,
    ArithmeticEvalError,
    ArithmeticSyntaxError,
    ArithNumber,
    evaluate_arithmetic,
    parse_arithmetic,
)


def calc(text: str, variables=None) -> int:
    env = {} if variables is None else variables
    return evaluate_arithmetic(text, env.get, env.__setitem__)


class TestPrecedence:
    """Test operator precedence and grouping."""

    def test_multiplication_binds_tighter(self):
        assert calc("1+2*3") == 7

    def test_parentheses(self):
        assert calc("(1+2)*3") == 9

    def test_tree_shape(self):
        node = parse_arithmetic("1+2*3")
        assert isinstance(node, ArithBinary)
        assert node.op == "+"
        assert node.left == ArithNumber(1)
        assert isinstance(node.right, ArithBinary) and node.right.op == "*"

    def test_power_is_right_associative(self):
        assert calc("2**3**2") == 512

    def test_comparison_and_logic(self):
        assert calc("1 < 2 && 3 >= 3") == 1
        assert calc("!(1 == 1) || 0") == 0

    def test_bitwise(self):
        assert calc("6 & 3") == 2
        assert calc("6 | 3") == 7
        assert calc("6 ^ 3") == 5
        assert calc("1 << 4") == 16
        assert calc("~0") == -1

    def test_ternary(self):
        assert calc("5 > 3 ? 10 : 20") == 10
        assert calc("0 ? 10 : 20") == 20

    def test_comma(self):
        env = {}
        assert calc("a=1, b=2, a+b", env) == 3
        assert env == {"a": "1", "b": "2"}


class TestDivision:
    """Division follows C semantics."""

    def test_truncates_toward_zero(self):
        assert calc("7/2") == 3
        assert calc("-7/2") == -3

    def test_modulo_sign_follows_dividend(self):
        assert calc("-7%3") == -1
        assert calc("7%-3") == 1

    def test_division_by_zero(self):
        with pytest.raises(ArithmeticEvalError, match="division by 0"):
            calc("5/0")

    def test_modulo_by_zero(self):
        with pytest.raises(ArithmeticEvalError):
            calc("5%0")

    def test_negative_exponent(self):
        with pytest.raises(ArithmeticEvalError):
            calc("2**-1")


class TestLiterals:
    """Test number formats."""

    def test_hex_octal_base(self):
        assert calc("0x1F") == 31
        assert calc("010") == 8
        assert calc("2#101") == 5
        assert calc("16#ff") == 255

    def test_invalid_octal(self):
        with pytest.raises(ArithmeticSyntaxError):
            calc("09")

    def test_wraps_to_64_bits(self):
        assert calc("9223372036854775807 + 1") == -9223372036854775808


class TestVariables:
    """Test variable lookup and assignment."""

    def test_unset_is_zero(self):
        assert calc("missing + 1") == 1

    def test_lookup(self):
        assert calc("x * 2", {"x": "21"}) == 42

    def test_value_is_expression(self):
        assert calc("a + 1", {"a": "b * 2", "b": "3"}) == 7

    def test_self_reference_is_bounded(self):
        with pytest.raises(ArithmeticEvalError):
            calc("a", {"a": "a"})

    def test_compound_assignment(self):
        env = {"x": "10"}
        assert calc("x += 5", env) == 15
        assert env["x"] == "15"
        calc("x <<= 1", env)
        assert env["x"] == "30"

    def test_increments(self):
        env = {"i": "5"}
        assert calc("i++", env) == 5
        assert env["i"] == "6"
        assert calc("++i", env) == 7
        assert calc("i--", env) == 7
        assert calc("--i", env) == 5


class TestSyntaxErrors:
    """Malformed expressions raise."""

    @pytest.mark.parametrize("text", ["1 +", "(1 + 2", "1 2", "* 3", "1 @ 2"])
    def test_invalid(self, text):
        with pytest.raises(ArithmeticEvalError):
            calc(text)
