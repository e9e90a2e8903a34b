"""
Вычислитель текста с плейсхолдерами {{ ... }}.

Плейсхолдеры вычисляются по порядку появления; одинаковые вычисляются
один раз. Если к моменту подстановки от текста остался только сам
плейсхолдер (всё прочее подставлено пустой строкой), возвращается
типизированное значение без приведения к строке. Подставленные
значения повторно на плейсхолдеры не просматриваются.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

from ..errors import ExpressionError
from .functions import FunctionRegistry, default_registry, format_value
from .model import Expression
from .parser import ExpressionParser
from .runtime import ExpressionRuntime

logger = logging.getLogger(__name__)

PLACEHOLDER_RE = re.compile(r"\{\{(.+?)\}\}", re.DOTALL)


@dataclass(frozen=True)
class Parameter:
    """Именованное значение, доступное только в одном вызове evaluate()."""
    name: str
    value: Any


class ExpressionEvaluator:
    """
    Вычислитель выражений с переменными.

    Реестр функций фиксируется снимком при создании вычислителя.
    Разобранные выражения кэшируются по исходному тексту.
    """

    def __init__(self, registry: Optional[FunctionRegistry] = None):
        self._registry = (registry or default_registry).snapshot()
        self._parser = ExpressionParser()
        self._cache: Dict[str, Expression] = {}
        # casefold-имя → значение; исходные имена храним отдельно
        self._variables: Dict[str, Any] = {}
        self._names: Dict[str, str] = {}

    # ---------------------------- variables ---------------------------- #

    def add_variable(self, name: str, value: Any) -> None:
        """Регистрирует (или перезаписывает) переменную."""
        key = name.casefold()
        self._variables[key] = value
        self._names[key] = name

    def has_variable(self, name: str) -> bool:
        return name.casefold() in self._variables

    def get_variable(self, name: str) -> Any:
        return self._variables.get(name.casefold())

    @property
    def variables(self) -> Dict[str, Any]:
        """Копия переменных с исходными именами."""
        return {self._names[k]: v for k, v in self._variables.items()}

    # ---------------------------- evaluation ---------------------------- #

    def evaluate(self, text: str, *parameters: Parameter) -> Any:
        """
        Вычисляет все плейсхолдеры текста.

        Args:
            text: Текст с плейсхолдерами {{ expr }}
            *parameters: Значения, видимые только в этом вызове

        Returns:
            Типизированное значение (если текст состоит из одного
            плейсхолдера) либо строка с подставленными значениями

        Raises:
            ExpressionError: Ошибка разбора или вычисления
        """
        matches = list(PLACEHOLDER_RE.finditer(text))
        if not matches:
            return text

        runtime = ExpressionRuntime(
            self._registry,
            self._variables,
            {p.name.casefold(): p.value for p in parameters},
        )

        # плейсхолдер → подставленный текст; одинаковые вычисляются один раз
        rendered: Dict[str, str] = {}
        for index, match in enumerate(matches):
            placeholder = match.group(0)
            if placeholder in rendered:
                continue
            value = self._eval(match.group(1), runtime)
            if _stands_alone(text, matches, index, rendered):
                return value
            rendered[placeholder] = format_value(value)

        # склейка по позициям: подставленные значения повторно не просматриваются
        parts = []
        position = 0
        for match in matches:
            parts.append(text[position:match.start()])
            parts.append(rendered[match.group(0)])
            position = match.end()
        parts.append(text[position:])
        return "".join(parts)

    def try_evaluate(self, text: str, *parameters: Parameter) -> Tuple[Any, bool]:
        """Как evaluate(), но ошибка возвращается флагом успеха."""
        try:
            return self.evaluate(text, *parameters), True
        except ExpressionError as e:
            logger.debug("Expression %r failed: %s", text, e)
            return None, False

    def parse(self, expression: str) -> Expression:
        """Разбирает выражение (без фигурных скобок) с кэшированием."""
        parsed = self._cache.get(expression)
        if parsed is None:
            parsed = self._parser.parse(expression)
            self._cache[expression] = parsed
        return parsed

    def _eval(self, expression: str, runtime: ExpressionRuntime) -> Any:
        parsed = self.parse(expression)
        runtime.check(parsed)
        return runtime.evaluate(parsed)


def _stands_alone(text: str, matches: List[re.Match], index: int, rendered: Dict[str, str]) -> bool:
    """
    Остался ли от текста только плейсхолдер matches[index].

    Так бывает, когда в тексте нет ничего, кроме плейсхолдеров, и все
    остальные из них уже подставлены пустой строкой.
    """
    position = 0
    for i, match in enumerate(matches):
        if match.start() != position:
            return False
        position = match.end()
        if i != index and rendered.get(match.group(0)) != "":
            return False
    return position == len(text)


__all__ = ["ExpressionEvaluator", "Parameter", "PLACEHOLDER_RE"]
