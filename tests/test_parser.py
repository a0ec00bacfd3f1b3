"""
Tests for the expression parser: precedence, node shapes, literals, errors.
"""

import pytest

from expressions.errors import ExpressionSyntaxError
from expressions.nodes import (
    Literal, Identifier, ThisExpression, MemberExpression, UnaryExpression,
    BinaryExpression, LogicalExpression, ConditionalExpression, CallExpression,
    ArrayExpression, Compound, NodeType, from_json,
)
from expressions.parser import parse


def num(n):
    return Literal(n, str(n))


# ===========================================================================
# Precedence and associativity
# ===========================================================================

class TestPrecedence:
    def test_multiplication_binds_tighter(self):
        assert parse("1+2*3") == BinaryExpression("+", num(1), BinaryExpression("*", num(2), num(3)))

    def test_left_associative_subtraction(self):
        assert parse("a - b - c") == BinaryExpression(
            "-", BinaryExpression("-", Identifier("a"), Identifier("b")), Identifier("c"),
        )

    def test_exponent_is_right_associative(self):
        assert parse("2 ** 3 ** 2") == BinaryExpression("**", num(2), BinaryExpression("**", num(3), num(2)))

    def test_and_binds_tighter_than_or(self):
        assert parse("a && b || c") == LogicalExpression(
            "||", LogicalExpression("&&", Identifier("a"), Identifier("b")), Identifier("c"),
        )

    def test_comparison_below_arithmetic(self):
        node = parse("a + 1 > b * 2")
        assert node.operator == ">"
        assert node.left.operator == "+"
        assert node.right.operator == "*"

    def test_equality_below_relational(self):
        node = parse("a < b === c")
        assert node.operator == "==="
        assert node.left.operator == "<"

    def test_bitwise_levels(self):
        node = parse("a | b ^ c & d")
        assert node.operator == "|"
        assert node.right.operator == "^"
        assert node.right.right.operator == "&"

    def test_parentheses_override(self):
        assert parse("(1 + 2) * 3") == BinaryExpression("*", BinaryExpression("+", num(1), num(2)), num(3))

    def test_ternary_is_lowest_and_right_associative(self):
        node = parse("a ? b : c ? d : e")
        assert isinstance(node, ConditionalExpression)
        assert isinstance(node.alternate, ConditionalExpression)

    def test_logical_nodes_are_distinct_from_binary(self):
        assert parse("a && b").type is NodeType.LOGICAL
        assert parse("a & b").type is NodeType.BINARY


class TestOperators:
    @pytest.mark.parametrize("op", ["===", "!==", "==", "!=", "<=", ">=", "<", ">",
                                    "<<", ">>", ">>>", "+", "-", "*", "/", "%", "**",
                                    "&", "|", "^"])
    def test_binary_operator_kept(self, op):
        node = parse(f"a {op} b")
        assert node == BinaryExpression(op, Identifier("a"), Identifier("b"))

    @pytest.mark.parametrize("op", ["!", "~", "-", "+", "++", "--"])
    def test_unary_operator_kept(self, op):
        assert parse(f"{op}a") == UnaryExpression(op, Identifier("a"))

    def test_unary_minus_after_binary_minus(self):
        assert parse("a - -1") == BinaryExpression("-", Identifier("a"), UnaryExpression("-", num(1)))

    def test_double_negation(self):
        assert parse("!!a") == UnaryExpression("!", UnaryExpression("!", Identifier("a")))


# ===========================================================================
# Node shapes
# ===========================================================================

class TestMembersAndCalls:
    def test_dotted_member_chain(self):
        assert parse("a.b.c") == MemberExpression(
            MemberExpression(Identifier("a"), Identifier("b"), False), Identifier("c"), False,
        )

    def test_computed_member(self):
        assert parse("a[0]") == MemberExpression(Identifier("a"), num(0), True)

    def test_computed_member_with_expression(self):
        node = parse("a[i + 1]")
        assert node.computed is True
        assert node.property == BinaryExpression("+", Identifier("i"), num(1))

    def test_this_member(self):
        assert parse("this.x") == MemberExpression(ThisExpression(), Identifier("x"), False)

    def test_call_with_arguments(self):
        assert parse("f(1, x)") == CallExpression(Identifier("f"), (num(1), Identifier("x")))

    def test_call_without_arguments(self):
        assert parse("now()") == CallExpression(Identifier("now"), ())

    def test_method_call(self):
        node = parse("Math.max(a, b)")
        assert node.callee == MemberExpression(Identifier("Math"), Identifier("max"), False)
        assert len(node.arguments) == 2


class TestCollections:
    def test_array_literal(self):
        assert parse("[1, 'two']") == ArrayExpression((num(1), Literal("two", "'two'")))

    def test_empty_array(self):
        assert parse("[]") == ArrayExpression(())

    def test_compound(self):
        assert parse("a, b, 3") == Compound((Identifier("a"), Identifier("b"), num(3)))

    def test_compound_inside_parentheses(self):
        node = parse("(a, b) + 1")
        assert isinstance(node.left, Compound)


class TestLiterals:
    def test_integer(self):
        assert parse("42").value == 42

    def test_float(self):
        assert parse("1.5").value == 1.5

    def test_exponent(self):
        assert parse("1.5e2").value == 150.0

    def test_leading_dot(self):
        assert parse(".5").value == 0.5

    def test_hex(self):
        assert parse("0x1F").value == 31

    def test_double_quoted_string_with_escape(self):
        assert parse('"a\\"b"').value == 'a"b'

    def test_single_quoted_string(self):
        assert parse("'it\\'s'").value == "it's"

    def test_keywords(self):
        assert parse("true") == Literal(True, "true")
        assert parse("false") == Literal(False, "false")
        assert parse("null") == Literal(None, "null")
        assert parse("undefined") == Literal(None, "undefined")

    def test_this(self):
        assert parse("this") == ThisExpression()

    def test_keyword_prefix_is_identifier(self):
        assert parse("trueValue") == Identifier("trueValue")

    def test_dollar_and_underscore_names(self):
        assert parse("$el + _x") == BinaryExpression("+", Identifier("$el"), Identifier("_x"))


# ===========================================================================
# Errors and caching
# ===========================================================================

class TestErrors:
    @pytest.mark.parametrize("text", ["a +", "(a", "", "a b", "1 +* 2", "f(,)"])
    def test_malformed_raises(self, text):
        with pytest.raises(ExpressionSyntaxError):
            parse(text)

    def test_error_carries_position(self):
        with pytest.raises(ExpressionSyntaxError) as info:
            parse("a + * b")
        assert info.value.expression == "a + * b"
        assert info.value.column is not None

    def test_non_string_rejected(self):
        with pytest.raises(TypeError):
            parse(42)


class TestCaching:
    def test_same_text_same_tree(self):
        assert parse("a && b") is parse("a && b")


class TestJson:
    def test_estree_dict_round_trip(self):
        node = parse("a.b[0] ? f(x, 'y') : [1, -z]")
        assert from_json(node.to_json()) == node

    def test_from_jsep_shaped_dict(self):
        data = {
            "type": "BinaryExpression",
            "operator": "+",
            "left": {"type": "Identifier", "name": "a"},
            "right": {"type": "Literal", "value": 2, "raw": "2"},
        }
        assert from_json(data) == BinaryExpression("+", Identifier("a"), num(2))

    def test_unknown_type(self):
        with pytest.raises(ValueError):
            from_json({"type": "ArrowFunctionExpression"})
