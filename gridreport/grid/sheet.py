"""
Лист: разреженное хранилище ячеек с примитивами структурных изменений.

Вставка и удаление строк сдвигают ячейки только в заданной полосе колонок
(семантика "shift cells down/up"). Вместе с ячейками сдвигаются
объединения и области именованных диапазонов книги.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from functools import cmp_to_key
from typing import TYPE_CHECKING, Any, Dict, Iterable, List, Optional, Sequence, Tuple, Union

from ..errors import GridStructuralError
from .address import CellAddress, RangeAddress
from .cell import Cell
from .range import Range

if TYPE_CHECKING:
    from .workbook import Workbook

logger = logging.getLogger(__name__)

RangeRef = Union[str, RangeAddress]


@dataclass(frozen=True)
class SortKey:
    """Ключ сортировки строк: относительная колонка (1-базная) и направление."""
    column: int
    descending: bool = False


class Sheet:
    """
    Лист книги.

    Хранит только непустые ячейки. Протяжённость листа (row_count,
    column_count) растёт при записи и меняется при вставке/удалении строк.
    """

    def __init__(self, name: str, workbook: Optional["Workbook"] = None):
        self.name = name
        self.workbook = workbook
        self._cells: Dict[Tuple[int, int], Cell] = {}
        self.merged: List[RangeAddress] = []
        self.row_count = 0
        self.column_count = 0

    def __repr__(self) -> str:
        return f"Sheet({self.name!r})"

    # ---------------------------- cell access ---------------------------- #

    def cell(self, row: int, column: int) -> Cell:
        """Ячейка по адресу; создаётся при первом обращении."""
        CellAddress(row, column)
        key = (row, column)
        cell = self._cells.get(key)
        if cell is None:
            cell = Cell()
            self._cells[key] = cell
            self._extend(row, column)
        return cell

    def find(self, row: int, column: int) -> Optional[Cell]:
        return self._cells.get((row, column))

    def __getitem__(self, ref: str) -> Cell:
        a = CellAddress.from_a1(ref)
        return self.cell(a.row, a.column)

    def __setitem__(self, ref: str, value: Any) -> None:
        cell = self[ref]
        if isinstance(value, str) and value.startswith("="):
            cell.set_formula(value[1:])
        else:
            cell.set_value(value)

    def value(self, ref: str) -> Any:
        """Значение ячейки (формула — текстом со знаком '=')."""
        a = CellAddress.from_a1(ref)
        cell = self.find(a.row, a.column)
        if cell is None:
            return None
        if cell.has_formula:
            return "=" + cell.formula
        return cell.value

    def range(self, ref: RangeRef) -> Range:
        address = RangeAddress.from_a1(ref) if isinstance(ref, str) else ref
        return Range(self, address)

    def used_range(self) -> Optional[Range]:
        """Диапазон от A1 до последней занятой строки и колонки, включая области имён листа."""
        rows, columns = self.row_count, self.column_count
        if self.workbook is not None:
            for region in self.workbook.names:
                for rng in region.ranges:
                    if rng.sheet is self:
                        rows = max(rows, rng.address.last_row)
                        columns = max(columns, rng.address.last_column)
        if rows == 0 or columns == 0:
            return None
        return Range(self, RangeAddress(1, 1, rows, columns))

    def cells_used(self, address: RangeAddress, with_annotations: bool = False) -> List[Tuple[CellAddress, Cell]]:
        """
        Непустые ячейки прямоугольника в порядке строк, затем колонок.

        Args:
            address: Прямоугольник
            with_annotations: Учитывать ячейки, у которых есть только
                              комментарий или гиперссылка
        """
        result = []
        for r, c in self._keys_in(address):
            cell = self._cells[(r, c)]
            used = not cell.is_blank()
            if not used and with_annotations:
                used = cell.comment is not None or cell.hyperlink is not None
            if used:
                result.append((CellAddress(r, c), cell))
        return result

    def is_empty(self, address: RangeAddress) -> bool:
        return not self.cells_used(address)

    def _keys_in(self, address: RangeAddress) -> List[Tuple[int, int]]:
        """Ключи хранимых ячеек прямоугольника в порядке строк, затем колонок."""
        if address.height * address.width <= len(self._cells):
            return [
                (r, c)
                for r in range(address.first_row, address.last_row + 1)
                for c in range(address.first_column, address.last_column + 1)
                if (r, c) in self._cells
            ]
        return sorted(k for k in self._cells if address.contains(k[0], k[1]))

    def _extend(self, row: int, column: int) -> None:
        self.row_count = max(self.row_count, row)
        self.column_count = max(self.column_count, column)

    # ---------------------------- merges ---------------------------- #

    def merge(self, ref: RangeRef) -> RangeAddress:
        address = RangeAddress.from_a1(ref) if isinstance(ref, str) else ref
        for existing in self.merged:
            if existing.intersects(address):
                raise GridStructuralError(
                    f"Merge {address.to_a1()} overlaps existing merge {existing.to_a1()}"
                )
        self.merged.append(address)
        self._extend(address.last_row, address.last_column)
        return address

    def grow_to_merged(self, address: RangeAddress) -> RangeAddress:
        """Расширяет прямоугольник, пока он не включит целиком все задетые объединения."""
        grown = address
        changed = True
        while changed:
            changed = False
            for m in self.merged:
                if grown.intersects(m) and not grown.contains_range(m):
                    grown = grown.union(m)
                    changed = True
        return grown

    # ---------------------------- row shifting ---------------------------- #

    def insert_rows(self, after_row: int, count: int,
                    first_column: int = 1, last_column: Optional[int] = None) -> None:
        """
        Вставляет count пустых строк под after_row в полосе колонок.

        Ячейки полосы ниже after_row сдвигаются вниз.

        Raises:
            GridStructuralError: Объединение частично перекрывает полосу
                                 и задевается сдвигом
        """
        if count <= 0:
            return
        last_column = self._band_end(last_column)
        merged = [
            self._shift_down(m, after_row, count, first_column, last_column, strict=True)
            for m in self.merged
        ]

        moved: Dict[Tuple[int, int], Cell] = {}
        for (r, c), cell in self._cells.items():
            if r > after_row and first_column <= c <= last_column:
                moved[(r + count, c)] = cell
            else:
                moved[(r, c)] = cell
        self._cells = moved
        self.merged = merged
        self._adjust_names(lambda a: self._shift_down(a, after_row, count, first_column, last_column))

        if after_row < self.row_count:
            self.row_count += count
        logger.debug("Sheet %s: inserted %d rows after %d in columns %d..%d",
                     self.name, count, after_row, first_column, last_column)

    def delete_rows(self, first_row: int, count: int,
                    first_column: int = 1, last_column: Optional[int] = None) -> None:
        """
        Удаляет строки [first_row, first_row + count) в полосе колонок.

        Ячейки полосы ниже сдвигаются вверх. Области имён, целиком попавшие
        в удаляемую полосу, исчезают из своих имён.
        """
        if count <= 0:
            return
        last_column = self._band_end(last_column)
        last_row = first_row + count - 1
        merged = []
        for m in self.merged:
            shifted = self._shift_up(m, first_row, count, first_column, last_column, strict=True)
            if shifted is not None and (shifted.height > 1 or shifted.width > 1):
                merged.append(shifted)

        moved: Dict[Tuple[int, int], Cell] = {}
        for (r, c), cell in self._cells.items():
            in_band = first_column <= c <= last_column
            if in_band and first_row <= r <= last_row:
                continue
            if in_band and r > last_row:
                moved[(r - count, c)] = cell
            else:
                moved[(r, c)] = cell
        self._cells = moved
        self.merged = merged
        self._adjust_names(lambda a: self._shift_up(a, first_row, count, first_column, last_column))

        if first_row <= self.row_count:
            self.row_count = max(first_row - 1, self.row_count - count)
        logger.debug("Sheet %s: deleted rows %d..%d in columns %d..%d",
                     self.name, first_row, last_row, first_column, last_column)

    def _band_end(self, last_column: Optional[int]) -> int:
        if last_column is None:
            return max(self.column_count, 1)
        return last_column

    @staticmethod
    def _shift_down(a: RangeAddress, after_row: int, count: int,
                    first_column: int, last_column: int, strict: bool = False) -> RangeAddress:
        if a.last_row <= after_row or not a.columns_overlap(first_column, last_column):
            return a
        if not a.columns_within(first_column, last_column):
            if strict:
                raise GridStructuralError(
                    f"Cannot shift cells: {a.to_a1()} partially overlaps the shifted columns"
                )
            return a
        if a.first_row > after_row:
            return a.offset(rows=count)
        # вставка внутри прямоугольника: растягиваем его
        return a.with_rows(a.first_row, a.last_row + count)

    @staticmethod
    def _shift_up(a: RangeAddress, first_row: int, count: int,
                  first_column: int, last_column: int, strict: bool = False) -> Optional[RangeAddress]:
        last_row = first_row + count - 1
        if a.last_row < first_row or not a.columns_overlap(first_column, last_column):
            return a
        if not a.columns_within(first_column, last_column):
            if strict:
                raise GridStructuralError(
                    f"Cannot shift cells: {a.to_a1()} partially overlaps the shifted columns"
                )
            return a
        if a.first_row > last_row:
            return a.offset(rows=-count)
        # сколько строк прямоугольника уцелело выше и ниже удаляемой полосы
        above = max(0, first_row - a.first_row)
        below = max(0, a.last_row - last_row)
        if above + below == 0:
            return None
        start = a.first_row if above else first_row
        return a.with_rows(start, start + above + below - 1)

    def _adjust_names(self, shift) -> None:
        if self.workbook is None:
            return
        for region in self.workbook.names:
            changed = False
            ranges = []
            for rng in region.ranges:
                if rng.sheet is not self:
                    ranges.append(rng)
                    continue
                new_address = shift(rng.address)
                if new_address != rng.address:
                    changed = True
                if new_address is not None:
                    ranges.append(Range(self, new_address))
            if changed:
                region.set_refers_to(ranges)

    # ---------------------------- copying ---------------------------- #

    def clear(self, address: RangeAddress) -> None:
        """Удаляет ячейки и объединения внутри прямоугольника."""
        for key in self._keys_in(address):
            del self._cells[key]
        if self.merged:
            self.merged = [m for m in self.merged if not address.contains_range(m)]

    def copy_range(self, source: RangeAddress, target: "Sheet", target_row: int, target_column: int,
                   exclude_names: Iterable[str] = (), clear_target: bool = True) -> RangeAddress:
        """
        Копирует содержимое и структуру прямоугольника в другое место.

        Копируются ячейки (глубоко), объединения и области имён, целиком
        лежащие внутри source. Прежнее содержимое целевого прямоугольника
        удаляется, если не задано clear_target=False (цель заведомо пуста).

        Returns:
            Адрес целевого прямоугольника
        """
        dest = RangeAddress.of(target_row, target_column, source.height, source.width)
        dr = target_row - source.first_row
        dc = target_column - source.first_column

        cells = [((r, c), self._cells[(r, c)].clone()) for r, c in self._keys_in(source)]
        merges = [m.offset(dr, dc) for m in self.merged if source.contains_range(m)]
        names = self._names_within(source, exclude_names)

        if clear_target:
            target.clear(dest)
        for (r, c), cell in cells:
            target._cells[(r + dr, c + dc)] = cell
        target.merged.extend(merges)
        target._extend(dest.last_row, dest.last_column)

        if target.workbook is not None:
            for name, address in names:
                target.workbook.define_name(name).add(Range(target, address.offset(dr, dc)))
        return dest

    def _names_within(self, source: RangeAddress, exclude: Iterable[str]) -> List[Tuple[str, RangeAddress]]:
        if self.workbook is None:
            return []
        excluded = {n.casefold() for n in exclude}
        found = []
        for region in self.workbook.names:
            if region.name.casefold() in excluded:
                continue
            for rng in region.ranges:
                if rng.sheet is self and source.contains_range(rng.address):
                    found.append((region.name, rng.address))
        return found

    # ---------------------------- sorting ---------------------------- #

    def sort_rows(self, address: RangeAddress, keys: Sequence[SortKey]) -> None:
        """
        Устойчивая сортировка строк прямоугольника по нескольким ключам.

        Пустые значения всегда оказываются после непустых, независимо
        от направления сортировки. Объединения внутри одной строки
        переезжают вместе со строкой; области имён не перемещаются.

        Raises:
            GridStructuralError: Объединение занимает несколько строк
                                 прямоугольника или выходит за его колонки
        """
        if not keys or address.height < 2:
            return
        inner = [m for m in self.merged if m.intersects(address)]
        for m in inner:
            if m.height > 1 or not address.contains_range(m):
                raise GridStructuralError(
                    f"Cannot sort {address.to_a1()}: merge {m.to_a1()} does not fit in a single row"
                )

        rows: List[Tuple[int, Dict[int, Cell]]] = []
        for r in range(address.first_row, address.last_row + 1):
            row = {}
            for c in range(address.first_column, address.last_column + 1):
                cell = self._cells.pop((r, c), None)
                if cell is not None:
                    row[c - address.first_column + 1] = cell
            rows.append((r, row))

        def compare(ra: Tuple[int, Dict[int, Cell]], rb: Tuple[int, Dict[int, Cell]]) -> int:
            a, b = ra[1], rb[1]
            for key in keys:
                va, vb = _sort_value(a.get(key.column)), _sort_value(b.get(key.column))
                if va is None and vb is None:
                    continue
                if va is None:
                    return 1
                if vb is None:
                    return -1
                result = _compare_values(va, vb)
                if key.descending:
                    result = -result
                if result:
                    return result
            return 0

        rows.sort(key=cmp_to_key(compare))
        new_row: Dict[int, int] = {}
        for i, (old, row) in enumerate(rows):
            new_row[old] = address.first_row + i
            for column, cell in row.items():
                self._cells[(address.first_row + i, address.first_column + column - 1)] = cell

        if inner:
            outer = [m for m in self.merged if not m.intersects(address)]
            self.merged = outer + [m.offset(rows=new_row[m.first_row] - m.first_row) for m in inner]


def _sort_value(cell: Optional[Cell]) -> Any:
    if cell is None or cell.is_blank():
        return None
    if cell.has_formula:
        return cell.formula
    return cell.value


def _rank(value: Any) -> int:
    if isinstance(value, bool):
        return 3
    if isinstance(value, (int, float, Decimal)):
        return 0
    if isinstance(value, (date, datetime)):
        return 1
    return 2


def _compare_values(a: Any, b: Any) -> int:
    ra, rb = _rank(a), _rank(b)
    if ra != rb:
        return ra - rb
    if ra == 2:
        a, b = str(a).casefold(), str(b).casefold()
    elif ra == 1:
        # date и datetime сравниваются через datetime
        a = a if isinstance(a, datetime) else datetime(a.year, a.month, a.day)
        b = b if isinstance(b, datetime) else datetime(b.year, b.month, b.day)
    return (a > b) - (a < b)


__all__ = ["Sheet", "SortKey"]
