"""
Tests for the expression lexer.
"""

import pytest

from gridreport.errors import ExpressionParseError
from gridreport.expressions.lexer import ExpressionLexer


class TestExpressionLexer:

    def setup_method(self):
        self.lexer = ExpressionLexer()

    def _types_and_values(self, text):
        return [(t.type, t.value) for t in self.lexer.tokenize(text)]

    def test_empty_string(self):
        """Test tokenization of empty string"""
        tokens = self.lexer.tokenize("")
        assert len(tokens) == 1
        assert tokens[0].type == 'EOF'

    def test_whitespace_and_newlines_ignored(self):
        tokens = self.lexer.tokenize("  \n\t ")
        assert [t.type for t in tokens] == ['EOF']

    def test_keywords_are_case_insensitive(self):
        """Test keywords are recognized in any case and normalized to lower"""
        for keyword in ["null", "TRUE", "False", "AND", "or", "Not", "MOD"]:
            tokens = self.lexer.tokenize(keyword)
            assert tokens[0].type == 'KEYWORD'
            assert tokens[0].value == keyword.lower()

    def test_identifiers(self):
        for identifier in ["item", "Customer_Orders", "_x", "@a", "a1"]:
            tokens = self.lexer.tokenize(identifier)
            assert len(tokens) == 2
            assert tokens[0].type == 'IDENTIFIER'
            assert tokens[0].value == identifier

    def test_numbers_with_suffixes(self):
        for number in ["42", "1.5", "2e3", "10m", "3.5d", "7L"]:
            tokens = self.lexer.tokenize(number)
            assert tokens[0].type == 'NUMBER'
            assert tokens[0].value == number

    def test_compound_operators_before_single(self):
        """Test that two-character operators are not split"""
        assert self._types_and_values("a >= b") == [
            ('IDENTIFIER', 'a'), ('OPERATOR', '>='), ('IDENTIFIER', 'b'), ('EOF', ''),
        ]
        assert self._types_and_values("x => x ?? 1") == [
            ('IDENTIFIER', 'x'), ('OPERATOR', '=>'), ('IDENTIFIER', 'x'),
            ('OPERATOR', '??'), ('NUMBER', '1'), ('EOF', ''),
        ]
        assert self._types_and_values("a<>b")[1] == ('OPERATOR', '<>')

    def test_member_chain(self):
        assert self._types_and_values("item.Orders[0]") == [
            ('IDENTIFIER', 'item'), ('SYMBOL', '.'), ('IDENTIFIER', 'Orders'),
            ('SYMBOL', '['), ('NUMBER', '0'), ('SYMBOL', ']'), ('EOF', ''),
        ]

    def test_integer_followed_by_method(self):
        """Test '3.ToString()' is a number followed by member access"""
        values = self._types_and_values("3.ToString()")
        assert values[:3] == [('NUMBER', '3'), ('SYMBOL', '.'), ('IDENTIFIER', 'ToString')]

    def test_strings_keep_quotes_and_escapes(self):
        tokens = self.lexer.tokenize(r'"say \"hi\"" + ' + "'x'")
        assert tokens[0].type == 'STRING'
        assert tokens[0].value == r'"say \"hi\""'
        assert tokens[2].type == 'STRING'
        assert tokens[2].value == "'x'"

    def test_positions(self):
        tokens = self.lexer.tokenize("a + bc")
        assert [t.position for t in tokens] == [0, 2, 4, 6]

    def test_unknown_character(self):
        with pytest.raises(ExpressionParseError) as exc:
            self.lexer.tokenize("a # b")
        assert str(exc.value) == "Syntax error '#' at position 2"
        assert exc.value.position == 2

    def test_unterminated_string(self):
        with pytest.raises(ExpressionParseError, match="Unterminated string literal"):
            self.lexer.tokenize('"abc')

    def test_tokenize_stream(self):
        tokens = list(self.lexer.tokenize_stream("a"))
        assert [t.type for t in tokens] == ['IDENTIFIER', 'EOF']
