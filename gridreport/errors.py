"""
Base exceptions for report generation.

All expected errors that should be recorded as template errors or
displayed to the user as clean messages must inherit from GridReportUserError.

Structural grid failures and programming errors should NOT inherit from
GridReportUserError: they abort rendering with full tracebacks.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from .grid.range import Range


class GridReportUserError(Exception):
    """
    Base class for all user-facing errors in gridreport.

    These errors indicate problems that the template author can fix:
    malformed expressions, bad directive parameters, broken configuration.
    """
    pass


class ExpressionError(GridReportUserError):
    """
    Ошибка вычисления выражения в плейсхолдере.

    Строковое представление равно сообщению без позиции: сообщение
    попадает в ячейку шаблона как есть.
    """

    def __init__(self, message: str, position: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.position = position


class ExpressionParseError(ExpressionError):
    """Синтаксическая ошибка или неизвестный идентификатор."""
    pass


class ExpressionRuntimeError(ExpressionError):
    """Ошибка во время вычисления разобранного выражения."""
    pass


class DirectiveExecutionError(GridReportUserError):
    """Директива не смогла выполниться (неверный параметр, нарушено предусловие)."""

    def __init__(self, message: str, range: Optional["Range"] = None):
        super().__init__(message)
        self.message = message
        self.range = range


class ConfigLoadError(GridReportUserError, ValueError):
    """Ошибка загрузки конфигурации с указанием пути поля."""
    pass


class GridStructuralError(Exception):
    """
    Structural grid failure: invalid address, impossible shift.

    Never recovered: continuing could corrupt the rendered output.
    """
    pass


__all__ = [
    "GridReportUserError",
    "ExpressionError",
    "ExpressionParseError",
    "ExpressionRuntimeError",
    "DirectiveExecutionError",
    "ConfigLoadError",
    "GridStructuralError",
]
