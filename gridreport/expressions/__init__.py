"""
Язык выражений плейсхолдеров {{ ... }}.

Лексер, парсер и вычислитель выражений, а также реестр
вспомогательных функций и типов.
"""

from .evaluator import PLACEHOLDER_RE, ExpressionEvaluator, Parameter
from .functions import FunctionRegistry, default_registry, register_function, register_type
from .lexer import ExpressionLexer, Token
from .members import Grouping
from .model import Expression, ExpressionType
from .parser import ExpressionParser

__all__ = [
    "ExpressionEvaluator",
    "Parameter",
    "PLACEHOLDER_RE",
    "FunctionRegistry",
    "default_registry",
    "register_function",
    "register_type",
    "ExpressionLexer",
    "Token",
    "Grouping",
    "Expression",
    "ExpressionType",
    "ExpressionParser",
]
