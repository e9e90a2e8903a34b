"""Общие вспомогательные функции (перечислимость значений, публичные члены объектов)."""

from __future__ import annotations

import dataclasses
from collections.abc import Iterable, Mapping
from typing import Any, Dict


# ---------------------------------------------------------------------------
# Коллекции
# ---------------------------------------------------------------------------

def is_enumerable(value: Any) -> bool:
    """
    Можно ли развернуть значение в строки диапазона.

    Строки, байты и словари перечислимыми не считаются.
    """
    if value is None or isinstance(value, (str, bytes, bytearray, Mapping)):
        return False
    return isinstance(value, Iterable)


# ---------------------------------------------------------------------------
# Публичные члены
# ---------------------------------------------------------------------------

def public_members(value: Any) -> Dict[str, Any]:
    """
    Публичные члены значения: ключи словаря, поля dataclass или атрибуты объекта.

    Для примитивов и коллекций возвращается пустой словарь.
    """
    if value is None or isinstance(value, (str, bytes, int, float, bool)):
        return {}
    if isinstance(value, Mapping):
        return {str(k): v for k, v in value.items() if isinstance(k, str)}
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {f.name: getattr(value, f.name) for f in dataclasses.fields(value)}
    if is_enumerable(value):
        return {}
    try:
        attrs = vars(value)
    except TypeError:
        return {}
    return {k: v for k, v in attrs.items() if not k.startswith("_") and not callable(v)}


def type_name(value: Any) -> str:
    return type(value).__name__


__all__ = ["is_enumerable", "public_members", "type_name"]
