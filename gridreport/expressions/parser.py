"""
Парсер выражений с рекурсивным спуском.

Строит абстрактное синтаксическое дерево (AST) из последовательности токенов.
Поддерживает приоритеты операторов, лямбды и цепочки членов.

Грамматика:
expression     → lambda | conditional
lambda         → IDENTIFIER "=>" expression
               | "(" [IDENTIFIER ("," IDENTIFIER)*] ")" "=>" expression
conditional    → coalesce ("?" expression ":" expression)?
coalesce       → or_expr ("??" coalesce)?
or_expr        → and_expr (("||" | "or") and_expr)*
and_expr       → equality (("&&" | "and") equality)*
equality       → relational (("==" | "=" | "!=" | "<>") relational)*
relational     → additive (("<" | "<=" | ">" | ">=") additive)*
additive       → multiplicative (("+" | "-") multiplicative)*
multiplicative → unary (("*" | "/" | "%" | "mod") unary)*
unary          → ("-" | "+" | "!" | "not") unary | postfix
postfix        → primary ("." IDENTIFIER ["(" arguments ")"] | "[" expression "]")*
primary        → NUMBER | STRING | "true" | "false" | "null"
               | IDENTIFIER ["(" arguments ")"] | "(" expression ")"
"""

from __future__ import annotations

from decimal import Decimal
from typing import List, Optional, Tuple

from ..errors import ExpressionParseError
from .lexer import ExpressionLexer, Token
from .model import (
    BinaryExpression,
    ConditionalExpression,
    Expression,
    FunctionCallExpression,
    IdentifierExpression,
    IndexExpression,
    LambdaExpression,
    LiteralExpression,
    MemberExpression,
    MethodCallExpression,
    UnaryExpression,
)

# Синонимы операторов приводятся к одному написанию
_NORMALIZED = {
    "=": "==",
    "<>": "!=",
    "or": "||",
    "and": "&&",
    "mod": "%",
    "not": "!",
}

_ESCAPES = {"n": "\n", "t": "\t", "r": "\r", "0": "\0"}


class ExpressionParser:
    """
    Парсер выражений с рекурсивным спуском.

    Преобразует список токенов в абстрактное синтаксическое дерево,
    соблюдая приоритеты операторов и правила группировки.
    """

    def __init__(self):
        self.lexer = ExpressionLexer()
        self._tokens: List[Token] = []
        self._position = 0

    def parse(self, text: str) -> Expression:
        """
        Парсит текст выражения в AST.

        Args:
            text: Текст выражения

        Returns:
            Корневой узел AST

        Raises:
            ExpressionParseError: При синтаксической ошибке
        """
        self._tokens = self.lexer.tokenize(text)
        self._position = 0

        if self._is_at_end():
            raise ExpressionParseError("Expression expected", 0)

        result = self._parse_expression()

        # Проверяем, что мы достигли конца входных данных
        if not self._is_at_end():
            current = self._current_token()
            raise ExpressionParseError(
                f"Syntax error '{current.value}' at position {current.position}", current.position
            )

        return result

    # ---------------------------- expressions ---------------------------- #

    def _parse_expression(self) -> Expression:
        """Парсит полное выражение (начальный символ грамматики)."""
        lambda_params = self._try_lambda_parameters()
        if lambda_params is not None:
            body = self._parse_expression()
            return LambdaExpression(parameters=lambda_params, body=body)
        return self._parse_conditional()

    def _try_lambda_parameters(self) -> Optional[Tuple[str, ...]]:
        """
        Распознаёт заголовок лямбды и потребляет его вместе с '=>'.

        Возвращает None (не сдвигая позицию), если впереди не лямбда.
        """
        current = self._current_token()
        if current.type == 'IDENTIFIER' and self._is_operator(self._peek(1), "=>"):
            self._advance()
            self._advance()
            return (current.value,)

        if not self._is_symbol(current, "("):
            return None

        # (a, b) => ...: просматриваем вперёд без потребления
        names: List[str] = []
        offset = 1
        expect_name = True
        while True:
            token = self._peek(offset)
            if expect_name and token.type == 'IDENTIFIER':
                names.append(token.value)
                expect_name = False
            elif not expect_name and self._is_symbol(token, ","):
                expect_name = True
            elif self._is_symbol(token, ")") and (not expect_name or not names):
                break
            else:
                return None
            offset += 1

        if not self._is_operator(self._peek(offset + 1), "=>"):
            return None
        self._position += offset + 2
        return tuple(names)

    def _parse_conditional(self) -> Expression:
        """Парсит тернарный оператор (низший приоритет после лямбды)."""
        test = self._parse_coalesce()
        if self._match_operator("?"):
            if_true = self._parse_expression()
            if not self._match_operator(":"):
                raise self._error("':' expected")
            if_false = self._parse_expression()
            return ConditionalExpression(test=test, if_true=if_true, if_false=if_false)
        return test

    def _parse_coalesce(self) -> Expression:
        left = self._parse_or()
        if self._match_operator("??"):
            right = self._parse_coalesce()  # правая ассоциативность
            return BinaryExpression(operator="??", left=left, right=right)
        return left

    def _parse_or(self) -> Expression:
        left = self._parse_and()
        while True:
            op = self._match_operator("||") or self._match_keyword("or")
            if not op:
                return left
            left = BinaryExpression(operator="||", left=left, right=self._parse_and())

    def _parse_and(self) -> Expression:
        left = self._parse_equality()
        while True:
            op = self._match_operator("&&") or self._match_keyword("and")
            if not op:
                return left
            left = BinaryExpression(operator="&&", left=left, right=self._parse_equality())

    def _parse_equality(self) -> Expression:
        left = self._parse_relational()
        while True:
            op = self._match_operator("==", "=", "!=", "<>")
            if not op:
                return left
            left = BinaryExpression(operator=_NORMALIZED.get(op, op), left=left,
                                    right=self._parse_relational())

    def _parse_relational(self) -> Expression:
        left = self._parse_additive()
        while True:
            op = self._match_operator("<", "<=", ">", ">=")
            if not op:
                return left
            left = BinaryExpression(operator=op, left=left, right=self._parse_additive())

    def _parse_additive(self) -> Expression:
        left = self._parse_multiplicative()
        while True:
            op = self._match_operator("+", "-")
            if not op:
                return left
            left = BinaryExpression(operator=op, left=left, right=self._parse_multiplicative())

    def _parse_multiplicative(self) -> Expression:
        left = self._parse_unary()
        while True:
            op = self._match_operator("*", "/", "%") or self._match_keyword("mod")
            if not op:
                return left
            left = BinaryExpression(operator=_NORMALIZED.get(op, op), left=left,
                                    right=self._parse_unary())

    def _parse_unary(self) -> Expression:
        op = self._match_operator("-", "+", "!") or self._match_keyword("not")
        if op:
            operand = self._parse_unary()
            return UnaryExpression(operator=_NORMALIZED.get(op, op), operand=operand)
        return self._parse_postfix()

    def _parse_postfix(self) -> Expression:
        expr = self._parse_primary()
        while True:
            if self._match_symbol("."):
                name_token = self._consume_identifier("Identifier expected after '.'")
                if self._match_symbol("("):
                    args = self._parse_arguments()
                    expr = MethodCallExpression(target=expr, name=name_token.value,
                                                arguments=args, position=name_token.position)
                else:
                    expr = MemberExpression(target=expr, name=name_token.value,
                                            position=name_token.position)
            elif self._match_symbol("["):
                index = self._parse_expression()
                if not self._match_symbol("]"):
                    raise self._error("']' expected")
                expr = IndexExpression(target=expr, index=index)
            else:
                return expr

    def _parse_primary(self) -> Expression:
        """Парсит первичное выражение (литералы, имена, группы в скобках)."""
        current = self._current_token()

        if current.type == 'NUMBER':
            self._advance()
            return LiteralExpression(value=_parse_number(current.value))

        if current.type == 'STRING':
            self._advance()
            return LiteralExpression(value=_unescape(current.value[1:-1]))

        if current.type == 'KEYWORD' and current.value in ("true", "false", "null"):
            self._advance()
            return LiteralExpression(value={"true": True, "false": False, "null": None}[current.value])

        if current.type == 'IDENTIFIER':
            self._advance()
            if self._match_symbol("("):
                args = self._parse_arguments()
                return FunctionCallExpression(name=current.value, arguments=args,
                                              position=current.position)
            return IdentifierExpression(name=current.value, position=current.position)

        if self._match_symbol("("):
            expr = self._parse_expression()
            if not self._match_symbol(")"):
                raise self._error("')' expected")
            return expr

        if current.type == 'EOF':
            raise ExpressionParseError("Expression expected", current.position)
        raise ExpressionParseError(
            f"Syntax error '{current.value}' at position {current.position}", current.position
        )

    def _parse_arguments(self) -> List[Expression]:
        """Аргументы вызова; открывающая скобка уже потреблена."""
        args: List[Expression] = []
        if self._match_symbol(")"):
            return args
        while True:
            args.append(self._parse_expression())
            if self._match_symbol(")"):
                return args
            if not self._match_symbol(","):
                raise self._error("')' or ',' expected")

    # Вспомогательные методы для работы с токенами

    def _current_token(self) -> Token:
        """Возвращает текущий токен без продвижения позиции."""
        return self._peek(0)

    def _peek(self, offset: int) -> Token:
        index = self._position + offset
        if index >= len(self._tokens):
            # EOF если вышли за границы
            return self._tokens[-1]
        return self._tokens[index]

    def _is_at_end(self) -> bool:
        return self._current_token().type == 'EOF'

    def _advance(self) -> Token:
        token = self._current_token()
        if not self._is_at_end():
            self._position += 1
        return token

    @staticmethod
    def _is_operator(token: Token, value: str) -> bool:
        return token.type == 'OPERATOR' and token.value == value

    @staticmethod
    def _is_symbol(token: Token, value: str) -> bool:
        return token.type == 'SYMBOL' and token.value == value

    def _match_operator(self, *operators: str) -> Optional[str]:
        """Проверяет и потребляет один из операторов; возвращает его."""
        current = self._current_token()
        if current.type == 'OPERATOR' and current.value in operators:
            self._advance()
            return current.value
        return None

    def _match_keyword(self, keyword: str) -> Optional[str]:
        current = self._current_token()
        if current.type == 'KEYWORD' and current.value == keyword:
            self._advance()
            return keyword
        return None

    def _match_symbol(self, symbol: str) -> bool:
        if self._is_symbol(self._current_token(), symbol):
            self._advance()
            return True
        return False

    def _consume_identifier(self, error_message: str) -> Token:
        current = self._current_token()
        if current.type == 'IDENTIFIER':
            return self._advance()
        raise self._error(error_message)

    def _error(self, message: str) -> ExpressionParseError:
        position = self._current_token().position
        return ExpressionParseError(f"{message} at position {position}", position)


def _parse_number(text: str):
    suffix = text[-1].lower()
    if suffix.isalpha():
        body = text[:-1]
        if suffix == "m":
            return Decimal(body)
        if suffix in ("d", "f"):
            return float(body)
        return int(body)
    if "." in text or "e" in text.lower():
        return float(text)
    return int(text)


def _unescape(body: str) -> str:
    result = []
    i = 0
    while i < len(body):
        ch = body[i]
        if ch == "\\" and i + 1 < len(body):
            nxt = body[i + 1]
            result.append(_ESCAPES.get(nxt, nxt))
            i += 2
            continue
        result.append(ch)
        i += 1
    return "".join(result)


__all__ = ["ExpressionParser"]
