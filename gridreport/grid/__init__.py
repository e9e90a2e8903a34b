"""
Табличная модель в памяти: книга, листы, ячейки, именованные регионы.

Используется и как хранилище шаблона, и как черновик при развёртывании
регионов.
"""

from .address import CellAddress, RangeAddress, column_index, column_letter
from .cell import Cell, CellKind, CellStyle, Hyperlink
from .range import Range
from .sheet import Sheet, SortKey
from .workbook import DerivedCache, NamedRegion, Workbook

__all__ = [
    "CellAddress",
    "RangeAddress",
    "column_index",
    "column_letter",
    "Cell",
    "CellKind",
    "CellStyle",
    "Hyperlink",
    "Range",
    "Sheet",
    "SortKey",
    "DerivedCache",
    "NamedRegion",
    "Workbook",
]
