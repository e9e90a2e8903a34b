"""
Директивы сортировки строк: sort, asc, desc.

    <<sort>>          по возрастанию
    <<sort desc>>     по убыванию
    <<desc num=2>>    по убыванию, второй ключ сортировки

Все включённые директивы сортировки списка собираются в один
многоключевой прогон сортировки; ключи упорядочены по (num, колонка).
"""

from __future__ import annotations

import logging
import sys
from typing import List, Tuple

from ..errors import DirectiveExecutionError, GridStructuralError
from ..grid.sheet import SortKey
from .base import Directive, ProcessingContext
from .registry import register_directive

logger = logging.getLogger(__name__)

SORT_PRIORITY = 128


@register_directive("sort", "asc", priority=SORT_PRIORITY)
class SortDirective(Directive):
    default_priority = SORT_PRIORITY

    @property
    def descending(self) -> bool:
        return "desc" in self.parameters

    @property
    def num(self) -> int:
        """
        Явный ранг ключа сортировки.

        Без параметра num ключ идёт после всех ключей с явным рангом.

        Raises:
            DirectiveExecutionError: num не является целым числом
        """
        if "num" not in self.parameters:
            return sys.maxsize
        raw = self.parameters["num"]
        try:
            return int(str(raw).strip())
        except ValueError:
            raise DirectiveExecutionError(
                f"Sort directive '{self.name}': 'num' must be an integer, got '{raw}'", self.range
            ) from None

    def execute(self, context: ProcessingContext) -> None:
        # собственный ранг проверяем первым: ошибка относится к этой директиве
        rank = self.num

        siblings = self.list.get_all(SortDirective) if self.list is not None else [self]
        ranked: List[Tuple[int, int, SortDirective]] = []
        for directive in siblings:
            if directive is self:
                ranked.append((rank, self.column, self))
                continue
            try:
                ranked.append((directive.num, directive.column, directive))
            except DirectiveExecutionError:
                # невалидный сосед сообщит об ошибке при своём выполнении
                continue
        ranked.sort(key=lambda item: (item[0], item[1]))

        try:
            if context.range is not None:
                keys = [SortKey(column=column, descending=d.descending) for _, column, d in ranked]
                try:
                    context.range.sort(keys)
                except GridStructuralError as e:
                    # sort_rows отказывает до любых изменений листа
                    raise DirectiveExecutionError(str(e), self.range) from e
                logger.debug("Sorted %s by %s", context.range.key, keys)
        finally:
            for _, _, directive in ranked:
                directive.enabled = False


@register_directive("desc", priority=SORT_PRIORITY)
class DescDirective(SortDirective):

    @property
    def descending(self) -> bool:
        return True


__all__ = ["SortDirective", "DescDirective", "SORT_PRIORITY"]
