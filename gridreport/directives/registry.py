"""
Реестр директив: имя (без учёта регистра) → фабрика.

Встроенные директивы регистрируются в процессном реестре декоратором
register_directive при импорте своих модулей.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

from .base import Directive

logger = logging.getLogger(__name__)

DirectiveFactory = Callable[[str, Dict[str, Optional[str]]], Directive]


@dataclass(frozen=True)
class DirectiveEntry:
    name: str
    factory: DirectiveFactory
    priority: Optional[int] = None


class DirectiveRegistry:
    """
    Регистр фабрик директив.

    Повторная регистрация имени заменяет прежнюю фабрику.
    """

    def __init__(self):
        self._entries: Dict[str, DirectiveEntry] = {}

    def register(self, name: str, factory: DirectiveFactory, priority: Optional[int] = None) -> None:
        """
        Регистрирует фабрику под именем.

        Args:
            name: Имя директивы (регистр не важен)
            factory: factory(name, parameters) -> Directive
            priority: Приоритет, перекрывающий приоритет по умолчанию
        """
        key = name.casefold()
        if key in self._entries:
            logger.warning("Directive '%s' overwrites existing registration", name)
        self._entries[key] = DirectiveEntry(name=name, factory=factory, priority=priority)
        logger.debug("Registered directive '%s' (priority: %s)", name, priority)

    def unregister(self, name: str) -> None:
        self._entries.pop(name.casefold(), None)

    def is_registered(self, name: str) -> bool:
        return name.casefold() in self._entries

    @property
    def names(self) -> List[str]:
        return [e.name for e in self._entries.values()]

    def create(self, name: str, parameters: Dict[str, Optional[str]]) -> Optional[Directive]:
        """Создаёт директиву; для незарегистрированного имени возвращает None."""
        entry = self._entries.get(name.casefold())
        if entry is None:
            return None
        directive = entry.factory(name, dict(parameters))
        if entry.priority is not None:
            directive.priority = entry.priority
        return directive


default_registry = DirectiveRegistry()


def register_directive(*names: str, priority: Optional[int] = None,
                       registry: Optional[DirectiveRegistry] = None):
    """
    Декоратор регистрации класса директивы под одним или несколькими именами.

        @register_directive("sort", "asc")
        class SortDirective(Directive): ...
    """
    target = registry or default_registry

    def decorator(cls):
        for name in names:
            target.register(name, cls, priority=priority)
        return cls

    return decorator


__all__ = ["DirectiveRegistry", "DirectiveEntry", "default_registry", "register_directive"]
