"""
Директивы шаблона <<NAME key=value>>: реестр, парсер, список выполнения
и встроенное семейство сортировки.
"""

from .base import Directive, ProcessingContext
from .execution import DirectiveList
from .parser import MARKER_RE, DirectiveParser, parse_marker_body
from .registry import DirectiveRegistry, default_registry, register_directive
from .sort import DescDirective, SortDirective

__all__ = [
    "Directive",
    "ProcessingContext",
    "DirectiveList",
    "DirectiveParser",
    "MARKER_RE",
    "parse_marker_body",
    "DirectiveRegistry",
    "default_registry",
    "register_directive",
    "SortDirective",
    "DescDirective",
]
