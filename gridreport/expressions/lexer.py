"""
Лексер для выражений в плейсхолдерах {{ ... }}.

Выполняет токенизацию выражения, разбивая его на значимые элементы:
- Числа и строковые литералы
- Ключевые слова (null, true, false, and, or, not, mod)
- Идентификаторы (в том числе с префиксом @)
- Операторы и символы
- Пробелы (игнорируются)
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterator, List

from ..errors import ExpressionParseError


@dataclass
class Token:
    """
    Токен выражения.

    Attributes:
        type: Тип токена (NUMBER, STRING, KEYWORD, IDENTIFIER, OPERATOR, SYMBOL, EOF)
        value: Значение токена
        position: Позиция в исходной строке
    """
    type: str
    value: str
    position: int

    def __repr__(self):
        return f"Token({self.type}, '{self.value}', pos={self.position})"


class ExpressionLexer:
    """
    Лексер для разбиения выражения на токены.

    Поддерживаемые токены:
    - NUMBER: 42, 1.5, 2e3, 10m
    - STRING: "text", 'text' (с экранированием через \\)
    - KEYWORD: null, true, false, and, or, not, mod (без учёта регистра)
    - IDENTIFIER: имена переменных, членов и функций
    - OPERATOR: => == != <> <= >= && || ?? + - * / % < > ! = ? :
    - SYMBOL: ( ) [ ] , .
    - EOF: конец строки
    """

    # Спецификация токенов: (regex_pattern, token_type, ignore_flag)
    TOKEN_SPECS = [
        # Пробелы и переводы строк (игнорируем)
        (r'\s+', 'WHITESPACE', True),

        # Числа: дробные раньше целых, суффиксы типа как в C#-подобных DSL
        (r'\d+\.\d+(?:[eE][+-]?\d+)?[mMdDfF]?', 'NUMBER', False),
        (r'\d+(?:[eE][+-]?\d+)?[mMdDfFlL]?', 'NUMBER', False),

        # Строки в двойных и одинарных кавычках
        (r'"(?:[^"\\]|\\.)*"', 'STRING', False),
        (r"'(?:[^'\\]|\\.)*'", 'STRING', False),

        # Составные операторы проверяем раньше одиночных
        (r'=>|==|!=|<>|<=|>=|&&|\|\||\?\?', 'OPERATOR', False),
        (r'[+\-*/%<>!=?:]', 'OPERATOR', False),

        # Символы
        (r'[()\[\],.]', 'SYMBOL', False),

        # Идентификаторы; ключевые слова определяем после захвата
        (r'@?[A-Za-z_][A-Za-z0-9_]*', 'IDENTIFIER', False),

        # Незакрытая строка
        (r'["\']', 'UNTERMINATED', False),

        # Неизвестный символ (ошибка)
        (r'.', 'UNKNOWN', False),
    ]

    # Ключевые слова для постпроцессинга (сравнение без учёта регистра)
    KEYWORDS = {
        'null', 'true', 'false', 'and', 'or', 'not', 'mod'
    }

    def __init__(self):
        # Компилируем регулярные выражения для лучшей производительности
        self._compiled_patterns = [
            (re.compile(pattern, re.DOTALL), token_type, ignore)
            for pattern, token_type, ignore in self.TOKEN_SPECS
        ]

    def tokenize(self, text: str) -> List[Token]:
        """
        Разбивает строку на токены.

        Args:
            text: Текст выражения (без фигурных скобок плейсхолдера)

        Returns:
            Список токенов, включая EOF в конце

        Raises:
            ExpressionParseError: При обнаружении неизвестного символа
                                  или незакрытой строки
        """
        tokens: List[Token] = []
        position = 0

        while position < len(text):
            for pattern, token_type, ignore in self._compiled_patterns:
                match = pattern.match(text, position)
                if not match:
                    continue

                value = match.group(0)
                if not ignore:
                    if token_type == 'UNKNOWN':
                        raise ExpressionParseError(
                            f"Syntax error '{value}' at position {position}", position
                        )
                    if token_type == 'UNTERMINATED':
                        raise ExpressionParseError(
                            f"Unterminated string literal at position {position}", position
                        )

                    final_type = token_type
                    if token_type == 'IDENTIFIER' and value.lower() in self.KEYWORDS:
                        final_type = 'KEYWORD'
                        value = value.lower()

                    tokens.append(Token(type=final_type, value=value, position=position))

                position = match.end()
                break

        # Добавляем EOF токен
        tokens.append(Token(type='EOF', value='', position=position))

        return tokens

    def tokenize_stream(self, text: str) -> Iterator[Token]:
        """
        Генератор для ленивой токенизации.

        Yields:
            Token: Очередной токен
        """
        for token in self.tokenize(text):
            yield token
