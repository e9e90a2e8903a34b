"""
Фасад генерации отчёта по книге-шаблону.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Optional, Union

from .config import ReportConfig, load_config
from .diagnostics import TemplateErrors
from .grid.workbook import Workbook
from .interpreter import RegionInterpreter
from .utils import public_members

logger = logging.getLogger(__name__)

_UNSET = object()


class ReportTemplate:
    """
    Шаблон отчёта: книга, переменные и накопитель ошибок.

    Пример:
        report = ReportTemplate(workbook)
        report.add_variable("Orders", orders)
        errors = report.generate()
    """

    def __init__(self, workbook: Workbook, config: Optional[ReportConfig] = None):
        self.workbook = workbook
        self.config = config or ReportConfig()
        self.errors = TemplateErrors()
        self.interpreter = RegionInterpreter(None, self.errors, self.config)

    @classmethod
    def from_config_file(cls, workbook: Workbook, path: Union[str, Path]) -> "ReportTemplate":
        return cls(workbook, load_config(Path(path)))

    def add_variable(self, alias_or_value: Any, value: Any = _UNSET) -> None:
        """
        Регистрирует переменную.

        add_variable(value)        — каждый публичный член value становится переменной
        add_variable(alias, value) — value доступна под именем alias
        """
        if value is _UNSET:
            members = public_members(alias_or_value)
            for name, member_value in members.items():
                self.interpreter.add_variable(name, member_value)
            logger.debug("Registered %d variables from %s", len(members), type(alias_or_value).__name__)
            return
        self.interpreter.add_variable(str(alias_or_value), value)

    def generate(self) -> TemplateErrors:
        """Рендерит все листы книги на месте и возвращает накопленные ошибки."""
        for sheet in self.workbook.sheets:
            used = sheet.used_range()
            if used is None:
                continue
            logger.debug("Rendering sheet %s (%s)", sheet.name, used.key)
            self.interpreter.evaluate(used)
        return self.errors


__all__ = ["ReportTemplate"]
