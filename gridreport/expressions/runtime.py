"""
Вычисление AST выражений.

Порядок разрешения имён: параметры лямбд → параметры вызова →
переменные вычислителя → зарегистрированные типы → зарегистрированные
функции. Все имена сравниваются без учёта регистра.

Перед вычислением выражение проверяется целиком: неизвестный
идентификатор приводит к ошибке независимо от того, какая ветка
условного выражения выполнилась бы.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Callable, Dict, Mapping, Tuple, cast

from ..errors import ExpressionError, ExpressionParseError, ExpressionRuntimeError
from .functions import SPECIAL_FORMS, FunctionRegistry, format_value
from .members import MemberNotFoundError, call_method, get_index, get_member
from .model import (
    BinaryExpression,
    ConditionalExpression,
    Expression,
    ExpressionType,
    FunctionCallExpression,
    IdentifierExpression,
    IndexExpression,
    LambdaExpression,
    LiteralExpression,
    MemberExpression,
    MethodCallExpression,
    UnaryExpression,
)

Frames = Tuple[Dict[str, Any], ...]

_UNRESOLVED = object()


class _NullLink(Exception):
    """Разрыв цепочки в режиме np(): null-звено или отсутствующий член."""
    pass


class ExpressionRuntime:
    """
    Вычислитель AST для одного набора переменных и параметров.

    Args:
        registry: Снимок реестра функций и типов
        variables: Переменные вычислителя (ключи в casefold)
        parameters: Параметры текущего вызова (ключи в casefold)
    """

    def __init__(self, registry: FunctionRegistry,
                 variables: Mapping[str, Any],
                 parameters: Mapping[str, Any]):
        self.registry = registry
        self.variables = variables
        self.parameters = parameters

    # ---------------------------- binding check ---------------------------- #

    def check(self, expr: Expression, bound: frozenset = frozenset()) -> None:
        """
        Проверяет, что все идентификаторы выражения разрешимы.

        Raises:
            ExpressionParseError: "Unknown identifier '<name>'"
        """
        expr_type = expr.get_type()

        if expr_type == ExpressionType.IDENTIFIER:
            node = cast(IdentifierExpression, expr)
            if node.name.casefold() not in bound and self._lookup(node.name, ()) is _UNRESOLVED:
                raise ExpressionParseError(f"Unknown identifier '{node.name}'", node.position)

        elif expr_type == ExpressionType.FUNCTION_CALL:
            node = cast(FunctionCallExpression, expr)
            folded = node.name.casefold()
            if folded in SPECIAL_FORMS:
                self._check_special_arity(node)
            elif folded not in bound and self._lookup(node.name, ()) is _UNRESOLVED:
                raise ExpressionParseError(f"Unknown identifier '{node.name}'", node.position)
            for arg in node.arguments:
                self.check(arg, bound)

        elif expr_type == ExpressionType.LAMBDA:
            node = cast(LambdaExpression, expr)
            self.check(node.body, bound | {p.casefold() for p in node.parameters})

        elif expr_type == ExpressionType.MEMBER:
            self.check(cast(MemberExpression, expr).target, bound)

        elif expr_type == ExpressionType.METHOD_CALL:
            node = cast(MethodCallExpression, expr)
            self.check(node.target, bound)
            for arg in node.arguments:
                self.check(arg, bound)

        elif expr_type == ExpressionType.INDEX:
            node = cast(IndexExpression, expr)
            self.check(node.target, bound)
            self.check(node.index, bound)

        elif expr_type == ExpressionType.UNARY:
            self.check(cast(UnaryExpression, expr).operand, bound)

        elif expr_type == ExpressionType.BINARY:
            node = cast(BinaryExpression, expr)
            self.check(node.left, bound)
            self.check(node.right, bound)

        elif expr_type == ExpressionType.CONDITIONAL:
            node = cast(ConditionalExpression, expr)
            self.check(node.test, bound)
            self.check(node.if_true, bound)
            self.check(node.if_false, bound)

    @staticmethod
    def _check_special_arity(node: FunctionCallExpression) -> None:
        folded = node.name.casefold()
        count = len(node.arguments)
        if folded == "iif" and count != 3:
            raise ExpressionParseError(
                f"'{node.name}' expects 3 arguments, got {count}", node.position
            )
        if folded in ("np", "nullpropagate") and count not in (1, 2):
            raise ExpressionParseError(
                f"'{node.name}' expects 1 or 2 arguments, got {count}", node.position
            )

    # ---------------------------- evaluation ---------------------------- #

    def evaluate(self, expr: Expression) -> Any:
        """
        Вычисляет выражение.

        Raises:
            ExpressionRuntimeError: Ошибка во время вычисления
        """
        try:
            return self._eval(expr, (), False)
        except ExpressionError:
            raise
        except ZeroDivisionError as e:
            raise ExpressionRuntimeError("Attempted to divide by zero.") from e
        except Exception as e:
            raise ExpressionRuntimeError(f"{type(e).__name__}: {e}") from e

    def _eval(self, expr: Expression, frames: Frames, null_safe: bool) -> Any:
        expr_type = expr.get_type()

        if expr_type == ExpressionType.LITERAL:
            return cast(LiteralExpression, expr).value

        elif expr_type == ExpressionType.IDENTIFIER:
            node = cast(IdentifierExpression, expr)
            value = self._lookup(node.name, frames)
            if value is _UNRESOLVED:
                raise ExpressionParseError(f"Unknown identifier '{node.name}'", node.position)
            return value

        elif expr_type == ExpressionType.MEMBER:
            node = cast(MemberExpression, expr)
            target = self._eval(node.target, frames, null_safe)
            if target is None:
                if null_safe:
                    raise _NullLink()
                raise ExpressionRuntimeError(f"Cannot read member '{node.name}' of null", node.position)
            try:
                return get_member(target, node.name)
            except MemberNotFoundError:
                if null_safe:
                    raise _NullLink()
                raise

        elif expr_type == ExpressionType.INDEX:
            node = cast(IndexExpression, expr)
            target = self._eval(node.target, frames, null_safe)
            index = self._eval(node.index, frames, null_safe)
            if target is None:
                if null_safe:
                    raise _NullLink()
                raise ExpressionRuntimeError("Cannot index null")
            try:
                return get_index(target, index)
            except MemberNotFoundError:
                if null_safe:
                    raise _NullLink()
                raise

        elif expr_type == ExpressionType.METHOD_CALL:
            return self._eval_method(cast(MethodCallExpression, expr), frames, null_safe)

        elif expr_type == ExpressionType.FUNCTION_CALL:
            return self._eval_function(cast(FunctionCallExpression, expr), frames, null_safe)

        elif expr_type == ExpressionType.UNARY:
            node = cast(UnaryExpression, expr)
            operand = self._eval(node.operand, frames, null_safe)
            if node.operator == "!":
                return not operand
            if operand is None:
                return None
            return -operand if node.operator == "-" else +operand

        elif expr_type == ExpressionType.BINARY:
            return self._eval_binary(cast(BinaryExpression, expr), frames, null_safe)

        elif expr_type == ExpressionType.CONDITIONAL:
            node = cast(ConditionalExpression, expr)
            if self._eval(node.test, frames, null_safe):
                return self._eval(node.if_true, frames, null_safe)
            return self._eval(node.if_false, frames, null_safe)

        elif expr_type == ExpressionType.LAMBDA:
            return self._make_lambda(cast(LambdaExpression, expr), frames, null_safe)

        else:
            raise ExpressionRuntimeError(f"Unknown expression type: {expr_type}")

    def _lookup(self, name: str, frames: Frames) -> Any:
        folded = name.casefold()
        for frame in frames:
            if folded in frame:
                return frame[folded]
        if folded in self.parameters:
            return self.parameters[folded]
        if folded in self.variables:
            return self.variables[folded]
        if self.registry.has_type(name):
            return self.registry.get_type(name)
        func = self.registry.get_function(name)
        if func is not None:
            return func
        return _UNRESOLVED

    def _make_lambda(self, node: LambdaExpression, frames: Frames, null_safe: bool) -> Callable[..., Any]:
        params = [p.casefold() for p in node.parameters]

        def invoke(*args: Any) -> Any:
            if len(args) != len(params):
                raise ExpressionRuntimeError(
                    f"Lambda '{node}' expects {len(params)} arguments, got {len(args)}"
                )
            frame = dict(zip(params, args))
            return self._eval(node.body, (frame,) + frames, null_safe)

        return invoke

    def _eval_method(self, node: MethodCallExpression, frames: Frames, null_safe: bool) -> Any:
        target = self._eval(node.target, frames, null_safe)
        args = [self._eval(a, frames, null_safe) for a in node.arguments]
        if target is None:
            extension = self.registry.find_extension(node.name)
            if extension is not None:
                return extension(None, *args)
            if null_safe:
                raise _NullLink()
            raise ExpressionRuntimeError(f"Cannot call method '{node.name}' on null", node.position)
        try:
            return call_method(target, node.name, args, self.registry)
        except MemberNotFoundError:
            if null_safe:
                raise _NullLink()
            raise

    def _eval_function(self, node: FunctionCallExpression, frames: Frames, null_safe: bool) -> Any:
        folded = node.name.casefold()

        if folded == "iif":
            test, if_true, if_false = node.arguments
            chosen = if_true if self._eval(test, frames, null_safe) else if_false
            return self._eval(chosen, frames, null_safe)

        if folded in ("np", "nullpropagate"):
            default = None
            if len(node.arguments) == 2:
                default = self._eval(node.arguments[1], frames, null_safe)
            try:
                return self._eval(node.arguments[0], frames, True)
            except _NullLink:
                return default

        func = self._lookup(node.name, frames)
        if func is _UNRESOLVED:
            raise ExpressionParseError(f"Unknown identifier '{node.name}'", node.position)
        if not callable(func):
            raise ExpressionRuntimeError(f"'{node.name}' is not a function", node.position)
        args = [self._eval(a, frames, null_safe) for a in node.arguments]
        return func(*args)

    def _eval_binary(self, node: BinaryExpression, frames: Frames, null_safe: bool) -> Any:
        op = node.operator

        # Логические операторы и ?? вычисляются лениво
        if op == "&&":
            return bool(self._eval(node.left, frames, null_safe)) and bool(self._eval(node.right, frames, null_safe))
        if op == "||":
            return bool(self._eval(node.left, frames, null_safe)) or bool(self._eval(node.right, frames, null_safe))
        if op == "??":
            left = self._eval(node.left, frames, null_safe)
            return left if left is not None else self._eval(node.right, frames, null_safe)

        left = self._eval(node.left, frames, null_safe)
        right = self._eval(node.right, frames, null_safe)
        return apply_binary(op, left, right)


def apply_binary(op: str, left: Any, right: Any) -> Any:
    """Строгая часть бинарных операций (оба операнда уже вычислены)."""
    if op == "==":
        return left == right
    if op == "!=":
        return left != right

    if op in ("<", "<=", ">", ">="):
        if left is None or right is None:
            return False
        left, right = _coerce_numbers(left, right)
        if op == "<":
            return left < right
        if op == "<=":
            return left <= right
        if op == ">":
            return left > right
        return left >= right

    if op == "+" and (isinstance(left, str) or isinstance(right, str)):
        return format_value(left) + format_value(right)

    if left is None or right is None:
        return None
    left, right = _coerce_numbers(left, right)
    if op == "+":
        return left + right
    if op == "-":
        return left - right
    if op == "*":
        return left * right
    if op == "/":
        return left / right
    if op == "%":
        return left % right
    raise ExpressionRuntimeError(f"Unknown operator: {op}")


def _coerce_numbers(left: Any, right: Any) -> Tuple[Any, Any]:
    """Decimal и float не смешиваются в Python: приводим float к Decimal."""
    if isinstance(left, Decimal) and isinstance(right, float):
        return left, Decimal(str(right))
    if isinstance(right, Decimal) and isinstance(left, float):
        return Decimal(str(left)), right
    return left, right


__all__ = ["ExpressionRuntime", "apply_binary"]
