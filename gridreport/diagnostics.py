"""
Накопитель ошибок рендеринга и их машиночитаемый отчёт.

Восстановимые ошибки (выражения, директивы) не прерывают генерацию:
они записываются сюда вместе с диапазоном, к которому относятся.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterator, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from .grid.range import Range
from .version import tool_version

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TemplateError:
    message: str
    range: Optional[Range] = None

    def __str__(self) -> str:
        if self.range is None:
            return self.message
        return f"{self.range.key}: {self.message}"


class TemplateErrors:
    """Упорядоченный список ошибок одного прогона."""

    def __init__(self):
        self._items: List[TemplateError] = []

    def add(self, error: TemplateError) -> None:
        self._items.append(error)
        logger.warning("Template error at %s: %s",
                       error.range.key if error.range is not None else "<unknown>", error.message)

    def __iter__(self) -> Iterator[TemplateError]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __getitem__(self, index: int) -> TemplateError:
        return self._items[index]

    @property
    def messages(self) -> List[str]:
        return [e.message for e in self._items]

    def to_report(self) -> "ErrorReport":
        return ErrorReport(
            count=len(self._items),
            errors=[
                ErrorEntry(
                    message=e.message,
                    sheet=e.range.sheet.name if e.range is not None else None,
                    address=e.range.address.to_a1() if e.range is not None else None,
                )
                for e in self._items
            ],
        )


# --------------------------------------------------------------------------- #
# Report model
# --------------------------------------------------------------------------- #
class ErrorEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    message: str
    sheet: Optional[str] = None
    address: Optional[str] = None


class ErrorReport(BaseModel):
    """Сериализуемый отчёт об ошибках генерации (model_dump(mode="json"))."""
    tool_version: str = Field(default_factory=tool_version)
    count: int = 0
    errors: List[ErrorEntry] = Field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.count == 0


__all__ = ["TemplateError", "TemplateErrors", "ErrorEntry", "ErrorReport"]
