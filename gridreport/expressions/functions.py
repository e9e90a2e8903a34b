"""
Реестр вспомогательных функций и типов языка выражений.

Функции вызываются по имени (`Name(args)`) или в стиле методов расширения
(`value.Name(args)`). Типы — пространства имён со статическими членами
(`Math.Round(x, 2)`, `string.Empty`).

Каждый вычислитель берёт снимок реестра при создании: последующие
регистрации на уже созданные вычислители не влияют.
"""

from __future__ import annotations

import logging
import math
from datetime import date, datetime
from decimal import Decimal, ROUND_HALF_EVEN
from typing import Any, Callable, Dict, Optional

logger = logging.getLogger(__name__)

# Специальные формы обрабатываются вычислителем: аргументы не вычисляются заранее
SPECIAL_FORMS = {"np", "nullpropagate", "iif"}


def format_value(value: Any) -> str:
    """Строковое представление значения при подстановке в текст."""
    if value is None:
        return ""
    return str(value)


class FunctionRegistry:
    """
    Регистр функций и типов (без учёта регистра имён).
    """

    def __init__(self):
        self._functions: Dict[str, Callable[..., Any]] = {}
        self._types: Dict[str, Any] = {}

    def register_function(self, name: str, func: Optional[Callable[..., Any]] = None):
        """
        Регистрирует функцию. Можно использовать как декоратор:

            @registry.register_function("Double")
            def double(x): ...
        """
        def decorator(f: Callable[..., Any]) -> Callable[..., Any]:
            key = name.casefold()
            if key in SPECIAL_FORMS:
                raise ValueError(f"'{name}' is a reserved special form")
            if key in self._functions:
                logger.warning("Overriding helper function '%s'", name)
            self._functions[key] = f
            logger.debug("Registered helper function '%s'", name)
            return f

        if func is not None:
            return decorator(func)
        return decorator

    def register_type(self, name: str, namespace: Any = None):
        """Регистрирует тип-пространство имён; как декоратор регистрирует экземпляр класса."""
        def decorator(ns: Any) -> Any:
            key = name.casefold()
            if key in self._types:
                logger.warning("Overriding helper type '%s'", name)
            self._types[key] = ns() if isinstance(ns, type) else ns
            logger.debug("Registered helper type '%s'", name)
            return ns

        if namespace is not None:
            return decorator(namespace)
        return decorator

    def get_function(self, name: str) -> Optional[Callable[..., Any]]:
        return self._functions.get(name.casefold())

    def get_type(self, name: str) -> Any:
        return self._types.get(name.casefold())

    def has_type(self, name: str) -> bool:
        return name.casefold() in self._types

    def find_extension(self, name: str) -> Optional[Callable[..., Any]]:
        """
        Функция для вызова в стиле метода расширения.

        Сначала ищется зарегистрированная функция, затем вызываемый член
        одного из зарегистрированных типов.
        """
        func = self.get_function(name)
        if func is not None:
            return func
        folded = name.casefold()
        for ns in self._types.values():
            for attr in dir(ns):
                if attr.startswith("_") or attr.casefold() != folded:
                    continue
                candidate = getattr(ns, attr)
                if callable(candidate):
                    return candidate
        return None

    def snapshot(self) -> "FunctionRegistry":
        copy = FunctionRegistry()
        copy._functions = dict(self._functions)
        copy._types = dict(self._types)
        return copy


# --------------------------------------------------------------------------- #
# Встроенные типы
# --------------------------------------------------------------------------- #

class StringType:
    Empty = ""

    @staticmethod
    def IsNullOrEmpty(value):
        return value is None or value == ""

    @staticmethod
    def IsNullOrWhiteSpace(value):
        return value is None or str(value).strip() == ""

    @staticmethod
    def Join(separator, *values):
        if len(values) == 1 and isinstance(values[0], (list, tuple, set)):
            values = tuple(values[0])
        return format_value(separator).join(format_value(v) for v in values)

    @staticmethod
    def Concat(*values):
        return "".join(format_value(v) for v in values)

    @staticmethod
    def Format(template, *args):
        return str(template).format(*(format_value(a) for a in args))


class MathType:
    PI = math.pi
    E = math.e

    @staticmethod
    def Abs(x):
        return abs(x)

    @staticmethod
    def Round(x, digits=0):
        if isinstance(x, Decimal):
            return x.quantize(Decimal(1).scaleb(-digits), rounding=ROUND_HALF_EVEN)
        return round(x, digits)

    @staticmethod
    def Floor(x):
        return math.floor(x)

    @staticmethod
    def Ceiling(x):
        return math.ceil(x)

    @staticmethod
    def Max(a, b):
        return max(a, b)

    @staticmethod
    def Min(a, b):
        return min(a, b)

    @staticmethod
    def Pow(x, y):
        return math.pow(x, y)

    @staticmethod
    def Sqrt(x):
        return math.sqrt(x)


class DateTimeType:
    @property
    def Now(self):
        return datetime.now()

    @property
    def Today(self):
        return datetime.combine(date.today(), datetime.min.time())

    @staticmethod
    def Parse(text):
        return datetime.fromisoformat(str(text).strip())


class ConvertType:
    @staticmethod
    def ToInt32(value):
        if value is None:
            return 0
        if isinstance(value, str):
            return int(value.strip())
        if isinstance(value, (float, Decimal)):
            return int(round(value))
        return int(value)

    @staticmethod
    def ToDouble(value):
        return 0.0 if value is None else float(value)

    @staticmethod
    def ToDecimal(value):
        if value is None:
            return Decimal(0)
        if isinstance(value, float):
            return Decimal(str(value))
        return Decimal(value)

    @staticmethod
    def ToString(value):
        return format_value(value)

    @staticmethod
    def ToBoolean(value):
        if isinstance(value, str):
            text = value.strip().casefold()
            if text in ("true", "false"):
                return text == "true"
            raise ValueError(f"String '{value}' was not recognized as a valid Boolean")
        return bool(value)


# --------------------------------------------------------------------------- #
# Реестр по умолчанию
# --------------------------------------------------------------------------- #

default_registry = FunctionRegistry()
default_registry.register_type("string", StringType)
default_registry.register_type("Math", MathType)
default_registry.register_type("DateTime", DateTimeType)
default_registry.register_type("Convert", ConvertType)


def register_function(name: str, func: Optional[Callable[..., Any]] = None):
    """Регистрирует функцию в процессном реестре."""
    return default_registry.register_function(name, func)


def register_type(name: str, namespace: Any = None):
    """Регистрирует тип в процессном реестре."""
    return default_registry.register_type(name, namespace)


__all__ = [
    "FunctionRegistry",
    "SPECIAL_FORMS",
    "default_registry",
    "format_value",
    "register_function",
    "register_type",
]
