"""
Базовые типы директив <<NAME key=value>>.
"""

from __future__ import annotations

import copy
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Dict, Optional

from ..grid.address import CellAddress, RangeAddress
from ..grid.range import Range

if TYPE_CHECKING:
    from ..expressions.evaluator import ExpressionEvaluator
    from .execution import DirectiveList


@dataclass
class ProcessingContext:
    """
    Контекст выполнения директивы.

    Attributes:
        range: Диапазон, над которым работает директива (None, если
               у блока нет строк данных)
        value: Значение контекста (список элементов для директив региона)
        evaluator: Вычислитель выражений интерпретатора
    """
    range: Optional[Range]
    value: Any = None
    evaluator: Optional["ExpressionEvaluator"] = None


class Directive(ABC):
    """
    Директива шаблона.

    Экземпляр создаётся фабрикой реестра, затем парсер один раз
    проставляет ячейку и диапазон. Параметры: ключ в нижнем регистре →
    строковое значение (None для флага без значения).
    """

    default_priority = 0

    def __init__(self, name: str, parameters: Optional[Dict[str, Optional[str]]] = None):
        self.name = name
        self.parameters: Dict[str, Optional[str]] = dict(parameters or {})
        self.priority = self.default_priority
        self.enabled = True
        self.cell: Optional[CellAddress] = None
        self.range: Optional[Range] = None
        self.options_row: Optional[RangeAddress] = None
        self.list: Optional["DirectiveList"] = None

    @property
    def row(self) -> int:
        """Строка ячейки относительно диапазона (1-базная)."""
        if self.cell is None or self.range is None:
            return 0
        return self.cell.row - self.range.first_row + 1

    @property
    def column(self) -> int:
        """Колонка ячейки относительно диапазона (1-базная)."""
        if self.cell is None or self.range is None:
            return 0
        return self.cell.column - self.range.first_column + 1

    @property
    def is_options_row_directive(self) -> bool:
        return self.options_row is not None

    def has_parameter(self, key: str) -> bool:
        return key.lower() in self.parameters

    def clone(self) -> "Directive":
        """Копия без привязки к списку; диапазон и ячейка остаются прежними."""
        clone = copy.copy(self)
        clone.parameters = dict(self.parameters)
        clone.list = None
        return clone

    @abstractmethod
    def execute(self, context: ProcessingContext) -> None:
        """
        Выполняет директиву.

        Raises:
            DirectiveExecutionError: Директива не может выполниться
        """
        pass

    def __repr__(self) -> str:
        where = self.cell.to_a1() if self.cell is not None else "?"
        return f"{type(self).__name__}({self.name!r} at {where}, priority={self.priority})"


__all__ = ["Directive", "ProcessingContext"]
