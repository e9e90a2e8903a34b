"""
Список директив одного диапазона и их выполнение в порядке приоритета.
"""

from __future__ import annotations

import bisect
import itertools
import logging
from typing import Iterable, Iterator, List, Optional, Sequence, Tuple, Type, TypeVar

from ..diagnostics import TemplateError, TemplateErrors
from ..errors import DirectiveExecutionError, ExpressionError
from ..grid.range import Range
from .base import Directive, ProcessingContext

logger = logging.getLogger(__name__)

D = TypeVar("D", bound=Directive)

OrderKey = Tuple[int, int, int, int]


class DirectiveList:
    """
    Упорядоченное мультимножество директив.

    Порядок: приоритет по убыванию, затем строка ячейки, затем колонка,
    затем порядок добавления. Одинаковые ключи не схлопываются.
    """

    def __init__(self, errors: TemplateErrors):
        self.errors = errors
        self._entries: List[Tuple[OrderKey, Directive]] = []
        self._seq = itertools.count()

    def _order_key(self, directive: Directive) -> OrderKey:
        row = directive.cell.row if directive.cell is not None else 0
        column = directive.cell.column if directive.cell is not None else 0
        return (-directive.priority, row, column, next(self._seq))

    # ---------------------------- content ---------------------------- #

    def add(self, directive: Directive) -> None:
        directive.list = self
        bisect.insort(self._entries, (self._order_key(directive), directive))

    def add_range(self, directives: Iterable[Directive]) -> None:
        for directive in directives:
            self.add(directive)

    def __iter__(self) -> Iterator[Directive]:
        return iter([d for _, d in self._entries])

    def __len__(self) -> int:
        return len(self._entries)

    def get_all(self, kind: Type[D]) -> List[D]:
        """Включённые директивы заданного класса (с наследниками)."""
        return [d for d in self if isinstance(d, kind) and d.enabled]

    def get_all_named(self, names: Sequence[str]) -> List[Directive]:
        folded = {n.casefold() for n in names}
        return [d for d in self if d.name.casefold() in folded]

    def get_all_except(self, exclude: Directive, names: Sequence[str]) -> List[Directive]:
        return [d for d in self.get_all_named(names) if d is not exclude]

    def has_tag(self, name: str) -> bool:
        folded = name.casefold()
        return any(d.name.casefold() == folded for d in self)

    def reset(self) -> None:
        """Снова включает все директивы."""
        for directive in self:
            directive.enabled = True

    def copy_to(self, target: Range) -> "DirectiveList":
        """Клонирует директивы в новый список, привязанный к target."""
        clone = DirectiveList(self.errors)
        for directive in self:
            copy = directive.clone()
            copy.range = target
            clone.add(copy)
        return clone

    # ---------------------------- execution ---------------------------- #

    def _first_enabled(self) -> Optional[Directive]:
        for _, directive in self._entries:
            if directive.enabled:
                return directive
        return None

    def execute(self, context: ProcessingContext) -> None:
        """
        Выполняет директивы, пока есть включённые.

        Каждая директива после выполнения выключается; директивы могут
        включать и выключать друг друга. Ошибки директив и выражений
        записываются в errors, остальные исключения пробрасываются.
        """
        while True:
            directive = self._first_enabled()
            if directive is None:
                break
            try:
                logger.debug("Executing %r", directive)
                directive.execute(context)
            except DirectiveExecutionError as e:
                self.errors.add(TemplateError(e.message, e.range or directive.range))
            except ExpressionError as e:
                self.errors.add(TemplateError(e.message, directive.range))
            finally:
                directive.enabled = False


__all__ = ["DirectiveList"]
