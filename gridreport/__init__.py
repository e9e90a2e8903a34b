"""
gridreport — генерация табличных отчётов по шаблону.

Ячейки шаблона содержат плейсхолдеры {{ expr }} и директивы
<<NAME key=value>>; именованные регионы, связанные с коллекциями,
разворачиваются в блок на каждый элемент.
"""

from .config import ReportConfig, load_config
from .diagnostics import ErrorReport, TemplateError, TemplateErrors
from .errors import (
    ConfigLoadError,
    DirectiveExecutionError,
    ExpressionError,
    ExpressionParseError,
    ExpressionRuntimeError,
    GridReportUserError,
    GridStructuralError,
)
from .interpreter import RegionInterpreter
from .report import ReportTemplate
from .version import tool_version

__all__ = [
    "ReportConfig",
    "load_config",
    "ErrorReport",
    "TemplateError",
    "TemplateErrors",
    "ConfigLoadError",
    "DirectiveExecutionError",
    "ExpressionError",
    "ExpressionParseError",
    "ExpressionRuntimeError",
    "GridReportUserError",
    "GridStructuralError",
    "RegionInterpreter",
    "ReportTemplate",
    "tool_version",
]
