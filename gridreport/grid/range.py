"""
Диапазон листа: неизменяемая пара (лист, прямоугольник).

Текстовый ключ диапазона ("Sheet1!A1:C3") используется как ключ
списков директив в интерпретаторе.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, List, Optional, Sequence, Tuple

from .address import CellAddress, RangeAddress
from .cell import Cell

if TYPE_CHECKING:
    from .sheet import Sheet, SortKey


@dataclass(frozen=True)
class Range:
    sheet: "Sheet"
    address: RangeAddress

    # ---------------------------- geometry ---------------------------- #

    @property
    def first_row(self) -> int:
        return self.address.first_row

    @property
    def last_row_number(self) -> int:
        return self.address.last_row

    @property
    def first_column(self) -> int:
        return self.address.first_column

    @property
    def last_column(self) -> int:
        return self.address.last_column

    @property
    def height(self) -> int:
        return self.address.height

    @property
    def width(self) -> int:
        return self.address.width

    @property
    def key(self) -> str:
        return f"{self.sheet.name}!{self.address.to_a1()}"

    def absolute(self, row: int, column: int) -> CellAddress:
        """Относительные (1-базные) координаты → адрес на листе."""
        return CellAddress(self.first_row + row - 1, self.first_column + column - 1)

    def contains(self, address: CellAddress) -> bool:
        return self.address.contains(address.row, address.column)

    def contains_range(self, other: "Range") -> bool:
        return other.sheet is self.sheet and self.address.contains_range(other.address)

    # ---------------------------- cells ---------------------------- #

    def cell(self, row: int, column: int) -> Cell:
        a = self.absolute(row, column)
        return self.sheet.cell(a.row, a.column)

    def find(self, row: int, column: int) -> Optional[Cell]:
        a = self.absolute(row, column)
        return self.sheet.find(a.row, a.column)

    def cells_used(self, with_annotations: bool = False) -> List[Tuple[CellAddress, Cell]]:
        return self.sheet.cells_used(self.address, with_annotations=with_annotations)

    def is_empty(self) -> bool:
        return not self.cells_used()

    # ---------------------------- sub ranges ---------------------------- #

    def last_row(self) -> "Range":
        return Range(self.sheet, self.address.last_row_address())

    def row(self, index: int) -> "Range":
        return Range(self.sheet, self.address.row(index))

    def data_rows(self) -> Optional["Range"]:
        """Все строки, кроме последней (строки опций); None для однострочного диапазона."""
        if self.height < 2:
            return None
        return Range(self.sheet, self.address.with_rows(self.first_row, self.last_row_number - 1))

    def with_height(self, height: int) -> Optional["Range"]:
        if height < 1:
            return None
        return Range(self.sheet, RangeAddress.of(self.first_row, self.first_column, height, self.width))

    # ---------------------------- operations ---------------------------- #

    def sort(self, keys: Sequence["SortKey"]) -> None:
        self.sheet.sort_rows(self.address, keys)

    def __repr__(self) -> str:
        return f"Range({self.key})"

    def __str__(self) -> str:
        return self.key


__all__ = ["Range"]
