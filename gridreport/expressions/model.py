"""
Модели данных (AST) для языка выражений.

Содержит классы узлов, которые строит парсер и обходит вычислитель.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List, Tuple


class ExpressionType(Enum):
    """Типы узлов выражения."""
    LITERAL = "literal"
    IDENTIFIER = "identifier"
    MEMBER = "member"
    INDEX = "index"
    METHOD_CALL = "method_call"
    FUNCTION_CALL = "function_call"
    UNARY = "unary"
    BINARY = "binary"
    CONDITIONAL = "conditional"
    LAMBDA = "lambda"


@dataclass
class Expression(ABC):
    """Базовый абстрактный класс для всех узлов выражения."""

    @abstractmethod
    def get_type(self) -> ExpressionType:
        """Возвращает тип узла."""
        pass

    def __str__(self) -> str:
        return self._to_string()

    @abstractmethod
    def _to_string(self) -> str:
        pass


@dataclass
class LiteralExpression(Expression):
    """Литерал: число, строка, true/false, null."""
    value: Any

    def get_type(self) -> ExpressionType:
        return ExpressionType.LITERAL

    def _to_string(self) -> str:
        if self.value is None:
            return "null"
        if isinstance(self.value, bool):
            return "true" if self.value else "false"
        if isinstance(self.value, str):
            return f'"{self.value}"'
        return str(self.value)


@dataclass
class IdentifierExpression(Expression):
    """Ссылка на переменную, параметр, лямбда-параметр или зарегистрированный тип."""
    name: str
    position: int = 0

    def get_type(self) -> ExpressionType:
        return ExpressionType.IDENTIFIER

    def _to_string(self) -> str:
        return self.name


@dataclass
class MemberExpression(Expression):
    """Доступ к члену: target.Name"""
    target: Expression
    name: str
    position: int = 0

    def get_type(self) -> ExpressionType:
        return ExpressionType.MEMBER

    def _to_string(self) -> str:
        return f"{self.target}.{self.name}"


@dataclass
class IndexExpression(Expression):
    """Индексация: target[index]"""
    target: Expression
    index: Expression

    def get_type(self) -> ExpressionType:
        return ExpressionType.INDEX

    def _to_string(self) -> str:
        return f"{self.target}[{self.index}]"


@dataclass
class MethodCallExpression(Expression):
    """Вызов метода: target.Name(args)"""
    target: Expression
    name: str
    arguments: List[Expression] = field(default_factory=list)
    position: int = 0

    def get_type(self) -> ExpressionType:
        return ExpressionType.METHOD_CALL

    def _to_string(self) -> str:
        args = ", ".join(str(a) for a in self.arguments)
        return f"{self.target}.{self.name}({args})"


@dataclass
class FunctionCallExpression(Expression):
    """Вызов функции по имени: Name(args)"""
    name: str
    arguments: List[Expression] = field(default_factory=list)
    position: int = 0

    def get_type(self) -> ExpressionType:
        return ExpressionType.FUNCTION_CALL

    def _to_string(self) -> str:
        args = ", ".join(str(a) for a in self.arguments)
        return f"{self.name}({args})"


@dataclass
class UnaryExpression(Expression):
    """Унарная операция: -x, !x"""
    operator: str
    operand: Expression

    def get_type(self) -> ExpressionType:
        return ExpressionType.UNARY

    def _to_string(self) -> str:
        return f"{self.operator}{self.operand}"


@dataclass
class BinaryExpression(Expression):
    """
    Бинарная операция: left op right

    Оператор хранится в нормализованном виде: '==', '!=', '&&', '||', '%' и т.д.
    """
    operator: str
    left: Expression
    right: Expression

    def get_type(self) -> ExpressionType:
        return ExpressionType.BINARY

    def _to_string(self) -> str:
        return f"({self.left} {self.operator} {self.right})"


@dataclass
class ConditionalExpression(Expression):
    """Тернарный оператор: test ? if_true : if_false"""
    test: Expression
    if_true: Expression
    if_false: Expression

    def get_type(self) -> ExpressionType:
        return ExpressionType.CONDITIONAL

    def _to_string(self) -> str:
        return f"({self.test} ? {self.if_true} : {self.if_false})"


@dataclass
class LambdaExpression(Expression):
    """Лямбда: x => body или (a, b) => body"""
    parameters: Tuple[str, ...]
    body: Expression

    def get_type(self) -> ExpressionType:
        return ExpressionType.LAMBDA

    def _to_string(self) -> str:
        if len(self.parameters) == 1:
            return f"{self.parameters[0]} => {self.body}"
        return f"({', '.join(self.parameters)}) => {self.body}"


__all__ = [
    "Expression",
    "ExpressionType",
    "LiteralExpression",
    "IdentifierExpression",
    "MemberExpression",
    "IndexExpression",
    "MethodCallExpression",
    "FunctionCallExpression",
    "UnaryExpression",
    "BinaryExpression",
    "ConditionalExpression",
    "LambdaExpression",
]
