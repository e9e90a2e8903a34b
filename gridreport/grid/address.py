"""
Адресация ячеек и прямоугольных диапазонов.

Все координаты 1-базные. Текстовая форма — A1 ("C7", "A1:C3").
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterator

from ..errors import GridStructuralError

_A1_RE = re.compile(r"^\$?([A-Za-z]{1,3})\$?(\d+)$")


def column_letter(index: int) -> str:
    """Номер колонки → буквы (1 → A, 28 → AB)."""
    if index < 1:
        raise GridStructuralError(f"Invalid column number {index}")
    letters = ""
    while index:
        index, rem = divmod(index - 1, 26)
        letters = chr(ord("A") + rem) + letters
    return letters


def column_index(letters: str) -> int:
    """Буквы колонки → номер (A → 1, AB → 28)."""
    result = 0
    for ch in letters.upper():
        if not "A" <= ch <= "Z":
            raise GridStructuralError(f"Invalid column letters '{letters}'")
        result = result * 26 + (ord(ch) - ord("A") + 1)
    return result


@dataclass(frozen=True, order=True)
class CellAddress:
    row: int
    column: int

    def __post_init__(self):
        if self.row < 1 or self.column < 1:
            raise GridStructuralError(f"Invalid cell address ({self.row}, {self.column})")

    def to_a1(self) -> str:
        return f"{column_letter(self.column)}{self.row}"

    @classmethod
    def from_a1(cls, text: str) -> "CellAddress":
        m = _A1_RE.match(text.strip())
        if not m:
            raise GridStructuralError(f"Invalid cell reference '{text}'")
        return cls(int(m.group(2)), column_index(m.group(1)))

    def offset(self, rows: int = 0, columns: int = 0) -> "CellAddress":
        return CellAddress(self.row + rows, self.column + columns)

    def __str__(self) -> str:
        return self.to_a1()


@dataclass(frozen=True, order=True)
class RangeAddress:
    """
    Прямоугольник ячеек: левый верхний и правый нижний углы включительно.

    Пустых прямоугольников не бывает: попытка построить перевёрнутый
    или выходящий за лист адрес — GridStructuralError.
    """
    first_row: int
    first_column: int
    last_row: int
    last_column: int

    def __post_init__(self):
        if self.first_row < 1 or self.first_column < 1:
            raise GridStructuralError(f"Range outside of sheet bounds: {self!r}")
        if self.last_row < self.first_row or self.last_column < self.first_column:
            raise GridStructuralError(f"Inverted range: {self!r}")

    # ---------------------------- geometry ---------------------------- #

    @property
    def height(self) -> int:
        return self.last_row - self.first_row + 1

    @property
    def width(self) -> int:
        return self.last_column - self.first_column + 1

    @property
    def first_address(self) -> CellAddress:
        return CellAddress(self.first_row, self.first_column)

    @property
    def last_address(self) -> CellAddress:
        return CellAddress(self.last_row, self.last_column)

    def contains(self, row: int, column: int) -> bool:
        return (self.first_row <= row <= self.last_row
                and self.first_column <= column <= self.last_column)

    def contains_range(self, other: "RangeAddress") -> bool:
        return (self.first_row <= other.first_row and other.last_row <= self.last_row
                and self.first_column <= other.first_column and other.last_column <= self.last_column)

    def intersects(self, other: "RangeAddress") -> bool:
        return not (other.last_row < self.first_row or other.first_row > self.last_row
                    or other.last_column < self.first_column or other.first_column > self.last_column)

    def columns_within(self, first_column: int, last_column: int) -> bool:
        return first_column <= self.first_column and self.last_column <= last_column

    def columns_overlap(self, first_column: int, last_column: int) -> bool:
        return not (self.last_column < first_column or self.first_column > last_column)

    def union(self, other: "RangeAddress") -> "RangeAddress":
        return RangeAddress(
            min(self.first_row, other.first_row),
            min(self.first_column, other.first_column),
            max(self.last_row, other.last_row),
            max(self.last_column, other.last_column),
        )

    def offset(self, rows: int = 0, columns: int = 0) -> "RangeAddress":
        return RangeAddress(
            self.first_row + rows, self.first_column + columns,
            self.last_row + rows, self.last_column + columns,
        )

    def with_rows(self, first_row: int, last_row: int) -> "RangeAddress":
        return RangeAddress(first_row, self.first_column, last_row, self.last_column)

    def row(self, index: int) -> "RangeAddress":
        """Строка диапазона по относительному номеру (1-базный)."""
        row = self.first_row + index - 1
        if not self.first_row <= row <= self.last_row:
            raise GridStructuralError(f"Row {index} is outside of {self.to_a1()}")
        return self.with_rows(row, row)

    def last_row_address(self) -> "RangeAddress":
        return self.with_rows(self.last_row, self.last_row)

    def cells(self) -> Iterator[CellAddress]:
        for r in range(self.first_row, self.last_row + 1):
            for c in range(self.first_column, self.last_column + 1):
                yield CellAddress(r, c)

    # ---------------------------- text form ---------------------------- #

    def to_a1(self) -> str:
        first = self.first_address.to_a1()
        if self.first_row == self.last_row and self.first_column == self.last_column:
            return first
        return f"{first}:{self.last_address.to_a1()}"

    @classmethod
    def from_a1(cls, text: str) -> "RangeAddress":
        parts = text.split(":")
        if len(parts) == 1:
            a = CellAddress.from_a1(parts[0])
            return cls(a.row, a.column, a.row, a.column)
        if len(parts) != 2:
            raise GridStructuralError(f"Invalid range reference '{text}'")
        a, b = CellAddress.from_a1(parts[0]), CellAddress.from_a1(parts[1])
        return cls(min(a.row, b.row), min(a.column, b.column),
                   max(a.row, b.row), max(a.column, b.column))

    @classmethod
    def of(cls, first_row: int, first_column: int, height: int, width: int) -> "RangeAddress":
        return cls(first_row, first_column, first_row + height - 1, first_column + width - 1)

    def __str__(self) -> str:
        return self.to_a1()


__all__ = ["CellAddress", "RangeAddress", "column_letter", "column_index"]
