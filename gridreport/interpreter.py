"""
Интерпретатор диапазона шаблона.

Для диапазона выполняет по порядку:
1. подстановку плейсхолдеров {{ ... }} в ячейках вне связанных регионов;
2. поиск именованных регионов, связанных с коллекциями данных;
3. развёртывание каждого связанного региона (по блоку на элемент);
4. разбор и выполнение директив <<...>> над итоговой формой диапазона.

Восстановимые ошибки записываются в TemplateErrors, рендеринг продолжается.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional, Tuple

from .config import ReportConfig
from .diagnostics import TemplateError, TemplateErrors
from .directives.base import ProcessingContext
from .directives.execution import DirectiveList
from .directives.parser import MARKER_RE, DirectiveParser
from .errors import ExpressionError
from .expressions.evaluator import ExpressionEvaluator, Parameter
from .expressions.functions import format_value
from .grid.address import CellAddress, RangeAddress
from .grid.cell import Cell
from .grid.range import Range
from .grid.workbook import NamedRegion
from .utils import is_enumerable, public_members, type_name

logger = logging.getLogger(__name__)

FORMULA_PREFIX = "&="


@dataclass
class BoundRegion:
    """Именованный регион, связанный с коллекцией данных."""
    region: NamedRegion
    data: Iterable[Any]
    via_variable: bool = False


class RegionInterpreter:
    """
    Интерпретатор диапазонов одного уровня вложенности.

    Args:
        alias: Префикс переменных из членов элемента (имя региона);
               None — префиксом служит имя типа элемента
        errors: Накопитель ошибок
        config: Настройки рендеринга
    """

    def __init__(self, alias: Optional[str], errors: TemplateErrors,
                 config: Optional[ReportConfig] = None):
        self.alias = alias
        self.errors = errors
        self.config = config or ReportConfig()
        self.evaluator = ExpressionEvaluator()
        self.parser = DirectiveParser()
        # casefold-имя → (исходное имя, значение)
        self._variables: Dict[str, Tuple[str, Any]] = {}
        self._directives: Dict[str, DirectiveList] = {}

    # ---------------------------- variables ---------------------------- #

    def add_variable(self, name: str, value: Any) -> None:
        """Переменная видна и при связывании регионов, и в выражениях."""
        self._variables[name.casefold()] = (name, value)
        self.evaluator.add_variable(name, value)

    @property
    def variables(self) -> Dict[str, Any]:
        return {name: value for name, value in self._variables.values()}

    def _has_variable(self, name: str) -> bool:
        return name.casefold() in self._variables

    def _get_variable(self, name: str) -> Any:
        entry = self._variables.get(name.casefold())
        return entry[1] if entry is not None else None

    def _add_parameter_members(self, value: Any) -> None:
        """Регистрирует публичные члены элемента как переменные <alias>_<член>."""
        members = public_members(value)
        if not members:
            return
        prefix = self.alias or type_name(value)
        for member, member_value in members.items():
            name = f"{prefix}_{member}"
            self._variables[name.casefold()] = (name, member_value)

    # ---------------------------- pipeline ---------------------------- #

    def evaluate(self, range: Range, *parameters: Parameter) -> Optional[Range]:
        """
        Полный проход по диапазону.

        Returns:
            Форма диапазона после развёртывания регионов (None, если
            все строки удалены)
        """
        shape = self.evaluate_values(range, *parameters)
        if shape is None:
            return None
        key = shape.key
        self.parse_directives(shape, key)
        self.run_directives(key, ProcessingContext(shape, None, self.evaluator))
        return shape

    def evaluate_values(self, range: Range, *parameters: Parameter) -> Optional[Range]:
        """
        Подставляет значения и разворачивает связанные регионы.

        Returns:
            Форма диапазона после развёртывания (None, если все строки удалены)
        """
        for parameter in parameters:
            if parameter.value is not None:
                self._add_parameter_members(parameter.value)

        bound = self._bind_regions(range)
        bound_areas = [a for b in bound for a in b.region.ranges]

        for address, cell in range.cells_used(with_annotations=True):
            if cell.has_formula or any(a.contains(address) for a in bound_areas):
                continue
            self._render_cell(range, address, cell, parameters)

        # область → (регион, данные); снизу вверх, чтобы сдвиги не задевали необработанные
        work = [(area, b) for b in bound for area in b.region.ranges_within(range)]
        work.sort(key=lambda item: (item[0].first_row, item[0].first_column), reverse=True)

        column_delta: Dict[int, int] = defaultdict(int)
        for area, b in work:
            delta = self._expand(b, area)
            for column in _columns(area.address):
                column_delta[column] += delta

        grow = max((column_delta.get(c, 0) for c in _columns(range.address)), default=0)
        return range.with_height(range.height + grow)

    # ---------------------------- cells ---------------------------- #

    def _render_cell(self, range: Range, address: CellAddress, cell: Cell,
                     parameters: Tuple[Parameter, ...]) -> None:
        cell_range = Range(range.sheet, RangeAddress(address.row, address.column, address.row, address.column))

        def eval_string(text: str) -> str:
            try:
                return format_value(self.evaluator.evaluate(text, *parameters))
            except ExpressionError as e:
                self.errors.add(TemplateError(e.message, cell_range))
                return e.message

        if cell.has_rich_text:
            if any("{{" in run for run in cell.rich_text or ()):
                cell.set_rich_text([eval_string(run) if "{{" in run else run for run in cell.rich_text or ()])
        else:
            text = cell.text
            if "{{" in text:
                try:
                    if text.startswith(FORMULA_PREFIX):
                        cell.set_formula(format_value(
                            self.evaluator.evaluate(text[len(FORMULA_PREFIX):], *parameters)))
                    else:
                        cell.set_value(_to_cell_value(self.evaluator.evaluate(text, *parameters)))
                except ExpressionError as e:
                    self._report_cell_error(range, address, cell, e, parameters)

        if cell.comment is not None and "{{" in cell.comment:
            cell.comment = eval_string(cell.comment)

        link = cell.hyperlink
        if link is not None and "{{" in link.target:
            if link.is_external:
                link.external = eval_string(link.external or "")
            else:
                link.internal = eval_string(link.internal or "")

    def _report_cell_error(self, range: Range, address: CellAddress, cell: Cell,
                           error: ExpressionError, parameters: Tuple[Parameter, ...]) -> None:
        sheet = range.sheet
        misuse = f"Unknown identifier '{self.config.item_parameter}'"
        if error.message == misuse and not parameters:
            # сообщение о неверной структуре списка пишется в первую ячейку строки выше
            row = address.row - 1 if address.row > 1 else address.row
            first = sheet.cell(row, 1)
            message = self.config.list_range_misuse_message
            first.set_value(message)
            first.style.font_color = self.config.error_font_color
            self.errors.add(TemplateError(message, Range(sheet, RangeAddress(row, 1, row, 1))))

        cell.set_value(error.message)
        cell.style.font_color = self.config.error_font_color
        self.errors.add(TemplateError(
            error.message, Range(sheet, RangeAddress(address.row, address.column, address.row, address.column))
        ))

    # ---------------------------- regions ---------------------------- #

    def _bind_regions(self, range: Range) -> List[BoundRegion]:
        workbook = range.sheet.workbook
        if workbook is None:
            return []
        bound = []
        for region in workbook.names_in(range):
            if self._is_own_region(region):
                # собственный регион интерпретатора уже развёрнут
                continue
            value = self._get_variable(region.name)
            if self._has_variable(region.name) and is_enumerable(value):
                bound.append(BoundRegion(region, value, via_variable=True))
                continue
            expression = "{{" + region.name.replace("_", ".") + "}}"
            result, ok = self.evaluator.try_evaluate(expression)
            if ok and is_enumerable(result):
                bound.append(BoundRegion(region, result))
        return bound

    def _is_own_region(self, region: NamedRegion) -> bool:
        return self.alias is not None and region.name.casefold() == self.alias.casefold()

    def _expand(self, bound: BoundRegion, area: Range) -> int:
        """
        Разворачивает одну область региона.

        Returns:
            Изменение высоты области (в строках)
        """
        from .template import RegionTemplate

        sheet = area.sheet
        region = bound.region
        grown = Range(sheet, sheet.grow_to_merged(area.address))
        items = list(bound.data)

        if not items and grown.last_row().is_empty():
            sheet.delete_rows(grown.first_row, grown.height, grown.first_column, grown.last_column)
            region.remove(area)
            logger.debug("Region %s: no items, removed %s", region.name, grown.key)
            return -grown.height

        template = RegionTemplate.parse(region.name, grown, self.errors, self.variables, self.config)
        buffer = template.generate(items)

        target = template.splice(buffer, region)
        if target is None:
            logger.debug("Region %s: rendered nothing, removed %s", region.name, grown.key)
            self._refresh_caches(sheet)
            return -grown.height

        height = target.height
        if template.has_options_row:
            template.apply_range_directives(target, items)
            options_row = target.last_row()
            if options_row.is_empty():
                sheet.delete_rows(options_row.first_row, 1, target.first_column, target.last_column)
                height -= 1

        logger.debug("Region %s: %d items rendered into %d rows at %s",
                     region.name, len(items), height, target.key)
        self._refresh_caches(sheet)
        return height - grown.height

    def _refresh_caches(self, sheet) -> None:
        if self.config.refresh_caches and sheet.workbook is not None:
            sheet.workbook.refresh_caches()

    # ---------------------------- directives ---------------------------- #

    def parse_directives(self, range: Range, key: str, within: Optional[Range] = None) -> DirectiveList:
        """
        Извлекает директивы из ячеек диапазона в список под ключом key.

        Args:
            range: Диапазон, к которому привязываются директивы
            key: Ключ списка директив
            within: Ограничить просмотр ячеек этой частью диапазона
        """
        directives = self._directives.get(key)
        if directives is None:
            directives = self._directives[key] = DirectiveList(self.errors)

        workbook = range.sheet.workbook
        excluded: List[Range] = []
        if workbook is not None:
            # вложенные регионы со своими данными; собственный регион не исключается
            for region in workbook.names_in(range):
                if self._is_own_region(region):
                    continue
                if self._has_variable(region.name):
                    excluded.extend(region.ranges)

        scope = within or range
        for address, cell in scope.cells_used():
            if cell.has_formula or any(r.contains(address) for r in excluded):
                continue
            if not MARKER_RE.search(cell.text):
                continue
            directives.add_range(self.parser.apply_directives_to(address, range))
        return directives

    def run_directives(self, key: str, context: ProcessingContext) -> None:
        directives = self._directives.get(key)
        if directives is not None:
            directives.execute(context)

    def copy_directives(self, src_key: str, dest_key: str, dest_range: Range) -> None:
        """Клонирует директивы списка src_key в список dest_key, привязывая их к dest_range."""
        source = self._directives.get(src_key)
        if source is None:
            return
        target = self._directives.get(dest_key)
        if target is None:
            target = self._directives[dest_key] = DirectiveList(self.errors)
        target.add_range(source.copy_to(dest_range))

    def directives(self, key: str) -> Optional[DirectiveList]:
        return self._directives.get(key)


def _columns(address: RangeAddress) -> range:
    return range(address.first_column, address.last_column + 1)


_CELL_TYPES = (str, bool, int, float, Decimal, date, datetime)


def _to_cell_value(value: Any) -> Any:
    """Значение выражения → значение ячейки (прочие объекты — строкой)."""
    if value is None or isinstance(value, _CELL_TYPES):
        return value
    return str(value)


__all__ = ["RegionInterpreter", "BoundRegion"]
