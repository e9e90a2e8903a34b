"""
Разбор маркеров директив <<NAME key=value ...>> в ячейках.

Маркеры вырезаются из содержимого ячейки; остаток текста (обрезанный)
возвращается в ячейку. Незарегистрированные директивы отбрасываются,
но их маркеры тоже вырезаются.
"""

from __future__ import annotations

import logging
import re
from typing import Dict, List, Optional, Tuple

from ..grid.address import CellAddress
from ..grid.cell import Cell, CellKind
from ..grid.range import Range
from .base import Directive
from .registry import DirectiveRegistry, default_registry

logger = logging.getLogger(__name__)

# Маркер в пределах одной строки, нежадный
MARKER_RE = re.compile(r"<<(.+?)>>")

_NAME_RE = re.compile(r"\s*([^\s=]+)")
_PAIR_RE = re.compile(r"""([^\s=]+)(?:\s*=\s*(?:"([^"]*)"|'([^']*)'|([^\s"']\S*)))?""")

FORMULA_PREFIX = "&="


def parse_marker_body(body: str) -> Tuple[str, Dict[str, Optional[str]]]:
    """
    Разбирает тело маркера: имя и параметры.

    Returns:
        (имя, {ключ в нижнем регистре: значение или None})
    """
    match = _NAME_RE.match(body)
    if not match:
        return "", {}
    name = match.group(1)
    parameters: Dict[str, Optional[str]] = {}
    for pair in _PAIR_RE.finditer(body, match.end()):
        key = pair.group(1).lower()
        value = next((g for g in pair.group(2, 3, 4) if g is not None), None)
        parameters[key] = value
    return name, parameters


class DirectiveParser:
    """Создаёт директивы из маркеров ячейки через реестр."""

    def __init__(self, registry: Optional[DirectiveRegistry] = None):
        self.registry = registry or default_registry

    def apply_directives_to(self, address: CellAddress, range: Range) -> List[Directive]:
        """
        Извлекает директивы из ячейки и переписывает её содержимое.

        Args:
            address: Адрес ячейки на листе диапазона
            range: Диапазон, к которому будут привязаны директивы

        Returns:
            Созданные директивы (возможно, пустой список)
        """
        cell = range.sheet.find(address.row, address.column)
        if cell is None:
            return []

        kind = cell.kind
        if kind == CellKind.FORMULA:
            directives, residual = self._parse(cell.formula or "", address, range)
            cell.formula = residual
            return directives

        if kind != CellKind.TEXT:
            return []

        text = cell.text
        if text.startswith(FORMULA_PREFIX):
            directives, residual = self._parse(text[len(FORMULA_PREFIX):], address, range)
            cell.set_formula(residual)
            return directives

        if not MARKER_RE.search(text):
            return []
        directives, residual = self._parse(text, address, range)
        _set_residual(cell, residual)
        return directives

    def _parse(self, text: str, address: CellAddress, range: Range) -> Tuple[List[Directive], str]:
        result: List[Directive] = []
        on_last_row = range.height > 1 and address.row == range.last_row_number
        for match in MARKER_RE.finditer(text):
            name, parameters = parse_marker_body(match.group(1))
            directive = self.registry.create(name, parameters) if name else None
            if directive is None:
                logger.debug("Unknown directive '%s' at %s ignored", name, address.to_a1())
            else:
                directive.cell = address
                directive.range = range
                if on_last_row:
                    directive.options_row = range.last_row().address
                result.append(directive)
        residual = MARKER_RE.sub("", text).strip()
        return result, residual


def _set_residual(cell: Cell, residual: str) -> None:
    cell.set_value(residual if residual else None)


__all__ = ["DirectiveParser", "MARKER_RE", "parse_marker_body", "FORMULA_PREFIX"]
