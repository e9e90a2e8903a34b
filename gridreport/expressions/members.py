"""
Доступ к членам и вызов методов над значениями Python.

Единые правила для словарей, dataclass-объектов, обычных объектов,
строк, дат, чисел и коллекций. Методы коллекций повторяют набор
операций LINQ (Where, Select, OrderBy, GroupBy, ...); лямбды приходят
сюда уже как вызываемые объекты Python.
"""

from __future__ import annotations

import functools
from collections.abc import Hashable, Iterable, Mapping, Sequence, Sized
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Any, Callable, Dict, List, Optional

from ..errors import ExpressionRuntimeError
from ..utils import type_name
from .functions import FunctionRegistry, format_value

_DAY_NAMES = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")


class MemberNotFoundError(ExpressionRuntimeError):
    """Член, метод или ключ не найден у значения."""
    pass


class Grouping(list):
    """Группа результата GroupBy: элементы группы плюс ключ."""

    def __init__(self, key: Any, items: Iterable[Any] = ()):
        super().__init__(items)
        self.Key = key

    def __repr__(self) -> str:
        return f"Grouping({self.Key!r}, {list.__repr__(self)})"


# --------------------------------------------------------------------------- #
# Member access
# --------------------------------------------------------------------------- #

def get_member(target: Any, name: str) -> Any:
    """
    Значение члена target.name.

    Raises:
        MemberNotFoundError: Член не найден
    """
    folded = name.casefold()

    if isinstance(target, Mapping):
        if name in target:
            return target[name]
        for key, value in target.items():
            if isinstance(key, str) and key.casefold() == folded:
                return value
        if folded == "count":
            return len(target)
        if folded == "keys":
            return list(target.keys())
        if folded == "values":
            return list(target.values())
        raise _no_member(target, name)

    if isinstance(target, str):
        if folded == "length":
            return len(target)
        raise _no_member(target, name)

    if isinstance(target, (date, datetime)):
        value = _date_member(target, folded)
        if value is not _MISSING:
            return value
        raise _no_member(target, name)

    value = _attribute(target, name, callables=False)
    if value is not _MISSING:
        return value

    if folded in ("count", "length") and isinstance(target, Sized) and isinstance(target, Iterable):
        return len(target)

    raise _no_member(target, name)


def get_index(target: Any, index: Any) -> Any:
    """target[index] для словарей, строк и последовательностей."""
    if isinstance(target, Mapping):
        if index in target:
            return target[index]
        if isinstance(index, str):
            folded = index.casefold()
            for key, value in target.items():
                if isinstance(key, str) and key.casefold() == folded:
                    return value
        raise MemberNotFoundError(f"The given key '{index}' was not present in the dictionary")

    if isinstance(index, bool) or not isinstance(index, int):
        raise ExpressionRuntimeError(f"Index must be an integer, got '{type_name(index)}'")
    items = target if isinstance(target, Sequence) else list(target)
    if not -len(items) <= index < len(items):
        raise ExpressionRuntimeError("Index was out of range")
    return items[index]


_MISSING = object()


def _no_member(target: Any, name: str) -> MemberNotFoundError:
    return MemberNotFoundError(f"No property or field '{name}' exists in type '{type_name(target)}'")


def _attribute(target: Any, name: str, callables: bool) -> Any:
    """Атрибут объекта: точное имя, затем без учёта регистра."""
    if not name.startswith("_"):
        try:
            value = getattr(target, name)
        except AttributeError:
            value = _MISSING
        if value is not _MISSING and callable(value) == callables:
            return value

    folded = name.casefold()
    for attr in dir(target):
        if attr.startswith("_") or attr.casefold() != folded or attr == name:
            continue
        value = getattr(target, attr)
        if callable(value) == callables:
            return value
    return _MISSING


def _date_member(value: date, folded: str) -> Any:
    is_dt = isinstance(value, datetime)
    if folded == "year":
        return value.year
    if folded == "month":
        return value.month
    if folded == "day":
        return value.day
    if folded == "hour":
        return value.hour if is_dt else 0
    if folded == "minute":
        return value.minute if is_dt else 0
    if folded == "second":
        return value.second if is_dt else 0
    if folded == "date":
        return datetime(value.year, value.month, value.day) if is_dt else value
    if folded == "dayofweek":
        return _DAY_NAMES[value.weekday()]
    if folded == "dayofyear":
        return value.timetuple().tm_yday
    return _MISSING


# --------------------------------------------------------------------------- #
# Method calls
# --------------------------------------------------------------------------- #

def call_method(target: Any, name: str, args: List[Any], registry: FunctionRegistry) -> Any:
    """
    Вызывает target.name(*args).

    Порядок поиска: встроенные методы строк, дат, чисел и коллекций,
    вызываемый атрибут объекта, зарегистрированная функция-расширение.

    Raises:
        MemberNotFoundError: Подходящий метод не найден
    """
    folded = name.casefold()

    if folded == "tostring":
        return _to_string(target, *args)

    if isinstance(target, str):
        method = _STRING_METHODS.get(folded)
        if method is not None:
            return method(target, *args)
    elif isinstance(target, (date, datetime)):
        method = _DATE_METHODS.get(folded)
        if method is not None:
            return method(target, *args)
    elif isinstance(target, Mapping):
        if folded == "containskey":
            return args[0] in target
    elif isinstance(target, Iterable):
        method = _SEQUENCE_METHODS.get(folded)
        if method is not None:
            return method(list(target), *args)

    if target is not None and not isinstance(target, (str, int, float, Decimal, bool)):
        attr = _attribute(target, name, callables=True)
        if attr is not _MISSING:
            return attr(*args)

    extension = registry.find_extension(name)
    if extension is not None:
        return extension(target, *args)

    raise MemberNotFoundError(f"No applicable method '{name}' exists in type '{type_name(target)}'")


def _to_string(value: Any, fmt: Optional[str] = None) -> str:
    if fmt is None:
        return format_value(value)
    if isinstance(value, (date, datetime)):
        return value.strftime(fmt)
    return format(value, fmt)


# ---------------------------- strings ---------------------------- #

def _substring(s: str, start: int, length: Optional[int] = None) -> str:
    if start < 0 or start > len(s) or (length is not None and (length < 0 or start + length > len(s))):
        raise ExpressionRuntimeError("Index and length must refer to a location within the string")
    return s[start:] if length is None else s[start:start + length]


def _split(s: str, separator: Optional[str] = None) -> List[str]:
    if separator is None:
        return s.split()
    return s.split(separator)


_STRING_METHODS: Dict[str, Callable[..., Any]] = {
    "toupper": lambda s: s.upper(),
    "tolower": lambda s: s.lower(),
    "trim": lambda s, chars=None: s.strip(chars),
    "trimstart": lambda s, chars=None: s.lstrip(chars),
    "trimend": lambda s, chars=None: s.rstrip(chars),
    "substring": _substring,
    "contains": lambda s, sub: format_value(sub) in s,
    "startswith": lambda s, prefix: s.startswith(format_value(prefix)),
    "endswith": lambda s, suffix: s.endswith(format_value(suffix)),
    "replace": lambda s, old, new: s.replace(format_value(old), format_value(new)),
    "indexof": lambda s, sub: s.find(format_value(sub)),
    "split": _split,
    "padleft": lambda s, width, char=" ": s.rjust(width, char),
    "padright": lambda s, width, char=" ": s.ljust(width, char),
}


# ---------------------------- dates ---------------------------- #

def _as_datetime(value: date) -> datetime:
    if isinstance(value, datetime):
        return value
    return datetime(value.year, value.month, value.day)


_DATE_METHODS: Dict[str, Callable[..., Any]] = {
    "adddays": lambda d, n: d + timedelta(days=n),
    "addhours": lambda d, n: _as_datetime(d) + timedelta(hours=n),
    "addminutes": lambda d, n: _as_datetime(d) + timedelta(minutes=n),
    "addseconds": lambda d, n: _as_datetime(d) + timedelta(seconds=n),
}


# ---------------------------- sequences ---------------------------- #

def _identity(x: Any) -> Any:
    return x


def _first(items: List[Any], predicate: Optional[Callable] = None) -> Any:
    for item in items:
        if predicate is None or predicate(item):
            return item
    raise ExpressionRuntimeError("Sequence contains no matching element")


def _first_or_default(items: List[Any], predicate: Optional[Callable] = None) -> Any:
    for item in items:
        if predicate is None or predicate(item):
            return item
    return None


def _last(items: List[Any], predicate: Optional[Callable] = None) -> Any:
    return _first(list(reversed(items)), predicate)


def _last_or_default(items: List[Any], predicate: Optional[Callable] = None) -> Any:
    return _first_or_default(list(reversed(items)), predicate)


def _selected(items: List[Any], selector: Optional[Callable]) -> List[Any]:
    return items if selector is None else [selector(i) for i in items]


def _sum(items: List[Any], selector: Optional[Callable] = None) -> Any:
    values = [v for v in _selected(items, selector) if v is not None]
    return sum(values) if values else 0


def _non_empty(values: List[Any]) -> List[Any]:
    values = [v for v in values if v is not None]
    if not values:
        raise ExpressionRuntimeError("Sequence contains no elements")
    return values


def _average(items: List[Any], selector: Optional[Callable] = None) -> Any:
    values = _non_empty(_selected(items, selector))
    return sum(values) / len(values)


def _null_first(key: Callable) -> Callable:
    # null меньше любого значения
    def sort_key(item: Any):
        value = key(item)
        return (False, 0) if value is None else (True, value)
    return sort_key


def _distinct(items: List[Any]) -> List[Any]:
    result: List[Any] = []
    seen = set()
    for item in items:
        if isinstance(item, Hashable):
            if item in seen:
                continue
            seen.add(item)
        elif item in result:
            continue
        result.append(item)
    return result


def _group_by(items: List[Any], key: Callable) -> List[Grouping]:
    groups: Dict[Any, Grouping] = {}
    for item in items:
        k = key(item)
        group = groups.get(k)
        if group is None:
            group = groups[k] = Grouping(k)
        group.append(item)
    return list(groups.values())


def _aggregate(items: List[Any], *args: Any) -> Any:
    if len(args) == 1:
        if not items:
            raise ExpressionRuntimeError("Sequence contains no elements")
        return functools.reduce(args[0], items)
    seed, func = args[0], args[1]
    return functools.reduce(func, items, seed)


def _element_at(items: List[Any], index: int) -> Any:
    if not 0 <= index < len(items):
        raise ExpressionRuntimeError("Index was out of range")
    return items[index]


_SEQUENCE_METHODS: Dict[str, Callable[..., Any]] = {
    "where": lambda items, pred: [i for i in items if pred(i)],
    "select": lambda items, selector: [selector(i) for i in items],
    "count": lambda items, pred=None: len(items) if pred is None else sum(1 for i in items if pred(i)),
    "sum": _sum,
    "min": lambda items, selector=None: min(_non_empty(_selected(items, selector))),
    "max": lambda items, selector=None: max(_non_empty(_selected(items, selector))),
    "average": _average,
    "first": _first,
    "firstordefault": _first_or_default,
    "last": _last,
    "lastordefault": _last_or_default,
    "skip": lambda items, n: items[max(n, 0):],
    "take": lambda items, n: items[:max(n, 0)],
    "orderby": lambda items, key=_identity: sorted(items, key=_null_first(key)),
    "orderbydescending": lambda items, key=_identity: sorted(items, key=_null_first(key), reverse=True),
    "any": lambda items, pred=None: bool(items) if pred is None else any(pred(i) for i in items),
    "all": lambda items, pred: all(pred(i) for i in items),
    "distinct": _distinct,
    "contains": lambda items, value: value in items,
    "reverse": lambda items: list(reversed(items)),
    "elementat": _element_at,
    "concat": lambda items, other: items + list(other),
    "groupby": _group_by,
    "aggregate": _aggregate,
    "tolist": list,
    "toarray": list,
}


__all__ = ["Grouping", "MemberNotFoundError", "call_method", "get_index", "get_member"]
