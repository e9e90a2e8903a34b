"""
Книга: листы, именованные регионы и производные кэши.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable, Iterator, List, Optional, Protocol, Sequence, runtime_checkable

from .range import Range
from .sheet import Sheet

logger = logging.getLogger(__name__)


@runtime_checkable
class DerivedCache(Protocol):
    """Кэш, построенный поверх диапазонов книги (аналог pivot cache)."""

    def refresh(self) -> None:
        ...


class NamedRegion:
    """
    Имя, связанное с одним или несколькими прямоугольниками.

    После развёртывания имя может ссылаться на несколько несмежных областей.
    """

    def __init__(self, name: str, ranges: Sequence[Range] = ()):
        self.name = name
        self._ranges: List[Range] = list(ranges)

    @property
    def ranges(self) -> tuple:
        return tuple(self._ranges)

    def set_refers_to(self, ranges: Iterable[Range]) -> None:
        """Заменяет весь набор областей разом."""
        self._ranges = list(ranges)

    def add(self, rng: Range) -> None:
        if rng not in self._ranges:
            self._ranges.append(rng)

    def remove(self, rng: Range) -> None:
        if rng in self._ranges:
            self._ranges.remove(rng)

    def ranges_within(self, container: Range) -> List[Range]:
        return [r for r in self._ranges if container.contains_range(r)]

    def __repr__(self) -> str:
        return f"NamedRegion({self.name!r}, {[r.key for r in self._ranges]})"


class Workbook:
    def __init__(self):
        self._sheets: Dict[str, Sheet] = {}
        self._names: Dict[str, NamedRegion] = {}
        self.caches: List[DerivedCache] = []

    # ---------------------------- sheets ---------------------------- #

    def add_sheet(self, name: str) -> Sheet:
        if name in self._sheets:
            raise ValueError(f"Sheet '{name}' already exists")
        sheet = Sheet(name, self)
        self._sheets[name] = sheet
        return sheet

    def sheet(self, name: str) -> Sheet:
        return self._sheets[name]

    @property
    def sheets(self) -> List[Sheet]:
        return list(self._sheets.values())

    def __iter__(self) -> Iterator[Sheet]:
        return iter(self.sheets)

    # ---------------------------- names ---------------------------- #

    def define_name(self, name: str, *ranges: Range) -> NamedRegion:
        """Возвращает имя (создавая при необходимости) и добавляет к нему области."""
        region = self._names.get(name.casefold())
        if region is None:
            region = NamedRegion(name)
            self._names[name.casefold()] = region
        for rng in ranges:
            region.add(rng)
        return region

    def get_name(self, name: str) -> Optional[NamedRegion]:
        return self._names.get(name.casefold())

    def remove_name(self, name: str) -> None:
        self._names.pop(name.casefold(), None)

    @property
    def names(self) -> List[NamedRegion]:
        return list(self._names.values())

    def names_in(self, container: Range) -> List[NamedRegion]:
        """Имена, у которых хотя бы одна область лежит внутри container."""
        return [n for n in self._names.values() if n.ranges_within(container)]

    def detach_ranges_within(self, container: Range) -> None:
        """Убирает из всех имён области, лежащие внутри container."""
        for region in self._names.values():
            inner = region.ranges_within(container)
            if inner:
                region.set_refers_to(r for r in region.ranges if r not in inner)

    # ---------------------------- caches ---------------------------- #

    def register_cache(self, cache: DerivedCache) -> None:
        self.caches.append(cache)

    def refresh_caches(self) -> None:
        for cache in self.caches:
            cache.refresh()
        if self.caches:
            logger.debug("Refreshed %d derived caches", len(self.caches))


__all__ = ["Workbook", "NamedRegion", "DerivedCache"]
