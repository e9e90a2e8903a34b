"""
Модель ячейки листа.

Ячейка хранит тегированное значение (текст, число, дата, булево, пусто),
формулу, комментарий, гиперссылку, rich text и минимальный стиль.
"""

from __future__ import annotations

import copy
import enum
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Any, List, Optional


class CellKind(enum.Enum):
    BLANK = "blank"
    TEXT = "text"
    NUMBER = "number"
    DATE = "date"
    BOOLEAN = "boolean"
    FORMULA = "formula"


@dataclass
class Hyperlink:
    """Ссылка ячейки: внешняя (URL) либо внутренняя (адрес в книге)."""
    external: Optional[str] = None
    internal: Optional[str] = None

    @property
    def is_external(self) -> bool:
        return self.external is not None

    @property
    def target(self) -> str:
        return (self.external if self.is_external else self.internal) or ""


@dataclass
class CellStyle:
    font_color: Optional[str] = None


@dataclass
class Cell:
    value: Any = None
    formula: Optional[str] = None
    comment: Optional[str] = None
    hyperlink: Optional[Hyperlink] = None
    rich_text: Optional[List[str]] = None
    style: CellStyle = field(default_factory=CellStyle)

    @property
    def kind(self) -> CellKind:
        if self.formula is not None:
            return CellKind.FORMULA
        if self.rich_text is not None:
            return CellKind.TEXT
        v = self.value
        if v is None:
            return CellKind.BLANK
        if isinstance(v, bool):
            return CellKind.BOOLEAN
        if isinstance(v, (int, float, Decimal)):
            return CellKind.NUMBER
        if isinstance(v, (date, datetime)):
            return CellKind.DATE
        return CellKind.TEXT

    @property
    def has_formula(self) -> bool:
        return self.formula is not None

    @property
    def has_rich_text(self) -> bool:
        return self.rich_text is not None

    def is_blank(self) -> bool:
        """Пустая ячейка: ни значения, ни формулы, ни rich text."""
        return self.kind is CellKind.BLANK or (self.kind is CellKind.TEXT and self.text == "")

    @property
    def text(self) -> str:
        """Строковое представление содержимого (формула — без знака '=')."""
        if self.formula is not None:
            return self.formula
        if self.rich_text is not None:
            return "".join(self.rich_text)
        if self.value is None:
            return ""
        if isinstance(self.value, (date, datetime)):
            return self.value.isoformat()
        return str(self.value)

    def set_value(self, value: Any) -> None:
        """Записывает значение; формула и rich text сбрасываются."""
        if isinstance(value, str) and value == "":
            value = None
        self.value = value
        self.formula = None
        self.rich_text = None

    def set_formula(self, formula: str) -> None:
        self.formula = formula
        self.value = None
        self.rich_text = None

    def set_rich_text(self, runs: List[str]) -> None:
        self.rich_text = list(runs)
        self.value = "".join(runs) or None
        self.formula = None

    def clone(self) -> "Cell":
        return copy.deepcopy(self)


__all__ = ["Cell", "CellKind", "CellStyle", "Hyperlink"]
