"""
Tests for the expression parser.
"""

from decimal import Decimal

import pytest

from gridreport.errors import ExpressionParseError
from gridreport.expressions.model import (
    BinaryExpression,
    ConditionalExpression,
    ExpressionType,
    FunctionCallExpression,
    IdentifierExpression,
    IndexExpression,
    LambdaExpression,
    LiteralExpression,
    MemberExpression,
    MethodCallExpression,
    UnaryExpression,
)
from gridreport.expressions.parser import ExpressionParser


class TestExpressionParser:

    def setup_method(self):
        self.parser = ExpressionParser()

    def test_literals(self):
        """Test literal values and their Python types"""
        cases = {
            "42": 42,
            "1.5": 1.5,
            "10m": Decimal("10"),
            "2d": 2.0,
            "7L": 7,
            '"text"': "text",
            "'single'": "single",
            "true": True,
            "FALSE": False,
            "null": None,
        }
        for text, expected in cases.items():
            expr = self.parser.parse(text)
            assert isinstance(expr, LiteralExpression)
            assert expr.value == expected
            assert type(expr.value) is type(expected)

    def test_string_escapes(self):
        expr = self.parser.parse(r'"a\"b\n"')
        assert expr.value == 'a"b\n'

    def test_identifier(self):
        expr = self.parser.parse("item")
        assert isinstance(expr, IdentifierExpression)
        assert expr.name == "item"
        assert expr.get_type() == ExpressionType.IDENTIFIER

    def test_precedence(self):
        """Test that '*' binds tighter than '+'"""
        expr = self.parser.parse("1 + 2 * 3")
        assert isinstance(expr, BinaryExpression)
        assert expr.operator == "+"
        assert isinstance(expr.right, BinaryExpression)
        assert expr.right.operator == "*"

    def test_left_associativity(self):
        expr = self.parser.parse("10 - 3 - 2")
        assert expr.operator == "-"
        assert isinstance(expr.left, BinaryExpression)
        assert str(expr) == "((10 - 3) - 2)"

    def test_operator_aliases_normalized(self):
        assert self.parser.parse("a = b").operator == "=="
        assert self.parser.parse("a <> b").operator == "!="
        assert self.parser.parse("a and b").operator == "&&"
        assert self.parser.parse("a OR b").operator == "||"
        assert self.parser.parse("a mod b").operator == "%"
        negation = self.parser.parse("not a")
        assert isinstance(negation, UnaryExpression)
        assert negation.operator == "!"

    def test_and_binds_tighter_than_or(self):
        expr = self.parser.parse("a || b && c")
        assert expr.operator == "||"
        assert expr.right.operator == "&&"

    def test_coalesce_is_right_associative(self):
        expr = self.parser.parse("a ?? b ?? c")
        assert expr.operator == "??"
        assert isinstance(expr.left, IdentifierExpression)
        assert expr.right.operator == "??"

    def test_conditional(self):
        expr = self.parser.parse("a > 1 ? \"big\" : \"small\"")
        assert isinstance(expr, ConditionalExpression)
        assert expr.test.operator == ">"
        assert expr.if_false.value == "small"

    def test_member_method_and_index_chain(self):
        expr = self.parser.parse("item.Orders[0].Items.Count()")
        assert isinstance(expr, MethodCallExpression)
        assert expr.name == "Count"
        assert expr.arguments == []
        items = expr.target
        assert isinstance(items, MemberExpression)
        assert isinstance(items.target, IndexExpression)
        assert isinstance(items.target.target, MemberExpression)

    def test_function_call(self):
        expr = self.parser.parse("iif(a, 1, 2)")
        assert isinstance(expr, FunctionCallExpression)
        assert expr.name == "iif"
        assert len(expr.arguments) == 3

    def test_single_parameter_lambda(self):
        expr = self.parser.parse("items.Where(i => i.Amount > 10)")
        lam = expr.arguments[0]
        assert isinstance(lam, LambdaExpression)
        assert lam.parameters == ("i",)
        assert lam.body.operator == ">"

    def test_multi_parameter_lambda(self):
        expr = self.parser.parse("items.Aggregate(0, (acc, x) => acc + x)")
        lam = expr.arguments[1]
        assert isinstance(lam, LambdaExpression)
        assert lam.parameters == ("acc", "x")
        assert str(lam) == "(acc, x) => (acc + x)"

    def test_parenthesized_expression_is_not_lambda(self):
        expr = self.parser.parse("(a + b) * c")
        assert expr.operator == "*"
        assert expr.left.operator == "+"

    def test_parenthesized_identifier_is_not_lambda(self):
        expr = self.parser.parse("(a)")
        assert isinstance(expr, IdentifierExpression)

    def test_empty_expression(self):
        with pytest.raises(ExpressionParseError, match="Expression expected"):
            self.parser.parse("   ")

    def test_trailing_tokens(self):
        with pytest.raises(ExpressionParseError) as exc:
            self.parser.parse("a b")
        assert str(exc.value) == "Syntax error 'b' at position 2"

    def test_missing_colon(self):
        with pytest.raises(ExpressionParseError, match="':' expected"):
            self.parser.parse("a ? b")

    def test_unclosed_call(self):
        with pytest.raises(ExpressionParseError, match="expected"):
            self.parser.parse("f(a, b")

    def test_member_requires_identifier(self):
        with pytest.raises(ExpressionParseError, match="Identifier expected after '.'"):
            self.parser.parse("a.1")
