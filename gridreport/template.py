"""
Шаблон связанного региона и его развёртывание через буфер.

Каждый элемент коллекции рендерится в собственную черновую книгу
вложенным интерпретатором; отрендеренные блоки складываются друг под
другом в буфер, за ними идёт строка опций. Затем буфер целиком
вклеивается на место области шаблона.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from .config import ReportConfig
from .diagnostics import TemplateErrors
from .directives.base import ProcessingContext
from .expressions.evaluator import Parameter
from .grid.address import RangeAddress
from .grid.range import Range
from .grid.workbook import NamedRegion, Workbook
from .interpreter import RegionInterpreter

logger = logging.getLogger(__name__)


class RegionTemplate:
    """
    Шаблон одной области именованного региона.

    Строка опций — последняя строка области высотой от двух строк.
    Директивы строки опций извлекаются один раз при разборе.
    """

    def __init__(self, name: str, area: Range, errors: TemplateErrors,
                 variables: Dict[str, Any], config: ReportConfig):
        self.name = name
        self.area = area
        self.errors = errors
        self.variables = dict(variables)
        self.config = config
        self.interpreter = RegionInterpreter(name, errors, config)
        for var_name, value in self.variables.items():
            self.interpreter.add_variable(var_name, value)

    @classmethod
    def parse(cls, name: str, area: Range, errors: TemplateErrors,
              variables: Dict[str, Any], config: ReportConfig) -> "RegionTemplate":
        """Создаёт шаблон и извлекает директивы строки опций (маркеры вырезаются)."""
        template = cls(name, area, errors, variables, config)
        if template.has_options_row:
            template.interpreter.parse_directives(area, template.template_key, within=area.last_row())
        return template

    @property
    def has_options_row(self) -> bool:
        return self.area.height > 1

    @property
    def template_key(self) -> str:
        return f"template:{self.area.key}"

    @property
    def body(self) -> RangeAddress:
        """Строки, повторяемые для каждого элемента."""
        data = self.area.data_rows()
        return (data or self.area).address

    # ---------------------------- generation ---------------------------- #

    def generate(self, items: List[Any]) -> Optional[Range]:
        """
        Рендерит все элементы в буфер.

        Returns:
            Диапазон буфера (блоки элементов и строка опций) или None,
            если рендерить нечего
        """
        buffer = Workbook()
        sheet = buffer.add_sheet(self.name)
        prototype = self._prototype() if items else None
        row = 1
        for item in items:
            rendered = self._render_item(item, prototype)
            if rendered is None:
                continue
            # строки буфера ниже row ещё не заполнены
            rendered.sheet.copy_range(rendered.address, sheet, row, 1, clear_target=False)
            row += rendered.height

        if self.has_options_row:
            options_row = self.area.last_row()
            self.area.sheet.copy_range(options_row.address, sheet, row, 1,
                                       exclude_names=[self.name], clear_target=False)
            row += 1

        height = row - 1
        if height == 0:
            return None
        return Range(sheet, RangeAddress.of(1, 1, height, self.area.width))

    def _prototype(self) -> Range:
        """Тело шаблона, один раз скопированное в отдельную книгу."""
        sheet = Workbook().add_sheet(self.name)
        body = self.body
        self.area.sheet.copy_range(body, sheet, 1, 1, exclude_names=[self.name])
        return Range(sheet, RangeAddress.of(1, 1, body.height, body.width))

    def _render_item(self, item: Any, prototype: Range) -> Optional[Range]:
        sheet = Workbook().add_sheet(self.name)
        prototype.sheet.copy_range(prototype.address, sheet, 1, 1, clear_target=False)

        interpreter = RegionInterpreter(self.name, self.errors, self.config)
        for name, value in self.variables.items():
            interpreter.add_variable(name, value)
        block = Range(sheet, prototype.address)
        return interpreter.evaluate(block, Parameter(self.config.item_parameter, item))

    # ---------------------------- splicing ---------------------------- #

    def splice(self, buffer: Optional[Range], region: NamedRegion) -> Optional[Range]:
        """
        Заменяет область шаблона содержимым буфера.

        Имена внутри области отвязываются, строки области подгоняются под
        высоту буфера (только в колонках области), содержимое копируется,
        новая область добавляется к региону.

        Returns:
            Новая область или None, если буфер пуст
        """
        sheet = self.area.sheet
        area = self.area.address
        if sheet.workbook is not None:
            sheet.workbook.detach_ranges_within(self.area)

        height = buffer.height if buffer is not None else 0
        delta = height - area.height
        if delta > 0:
            sheet.insert_rows(area.last_row - 1, delta, area.first_column, area.last_column)
        elif delta < 0:
            sheet.delete_rows(area.first_row + height, -delta, area.first_column, area.last_column)

        if buffer is None:
            return None

        target = RangeAddress.of(area.first_row, area.first_column, height, area.width)
        sheet.clear(target)
        buffer.sheet.copy_range(buffer.address, sheet, target.first_row, target.first_column)
        result = Range(sheet, target)
        region.add(result)
        return result

    # ---------------------------- options row ---------------------------- #

    def apply_range_directives(self, target: Range, items: List[Any]) -> None:
        """
        Вычисляет строку опций и выполняет её директивы над развёрнутой областью.

        Плейсхолдеры строки опций видят всю коллекцию под именем items_parameter.
        """
        options_row = target.last_row()
        self.interpreter.evaluate_values(options_row, Parameter(self.config.items_parameter, items))

        key = target.key
        self.interpreter.copy_directives(self.template_key, key, target)
        context = ProcessingContext(target.data_rows(), items, self.interpreter.evaluator)
        self.interpreter.run_directives(key, context)


__all__ = ["RegionTemplate"]
