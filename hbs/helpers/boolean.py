"""
Comparison and logic helpers: eq, ne, gt, gte, lt, lte, and, or, not, len.

They are mostly used as subexpressions (`{{#if (gt a 3)}}`); used as a
block they render the body or the inverse by their own result.
"""

from __future__ import annotations

from typing import Any, Callable, Optional

from .base import HelperFunc, HelperOptions
from ..template.values import is_mapping, is_sequence, is_truthy


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _as_number(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return value
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return None
    return None


def compare_values(x: Any, y: Any) -> Optional[int]:
    """
    Orders two JSON values: -1, 0, 1, or None when they are not comparable.

    Numbers compare numerically (numeric strings included when the other
    side is a number), strings lexically, booleans false < true.
    """
    if isinstance(x, bool) and isinstance(y, bool):
        return (x > y) - (x < y)
    if isinstance(x, str) and isinstance(y, str):
        return (x > y) - (x < y)

    if _is_number(x) or _is_number(y):
        a, b = _as_number(x), _as_number(y)
        if a is None or b is None:
            return None
        return (a > b) - (a < b)
    return None


def values_equal(x: Any, y: Any) -> bool:
    """JSON equality: booleans never equal numbers."""
    if isinstance(x, bool) != isinstance(y, bool):
        return False
    return x == y


def _result(options: HelperOptions, value: bool) -> Any:
    if not options.is_block:
        return value
    return options.fn() if value else options.inverse()


def _binary(predicate: Callable[[Any, Any], bool]) -> HelperFunc:
    def helper(options: HelperOptions) -> Any:
        return _result(options, predicate(options.param(0), options.param(1)))
    return helper


def _ordered(accept: Callable[[int], bool]) -> Callable[[Any, Any], bool]:
    def predicate(x: Any, y: Any) -> bool:
        order = compare_values(x, y)
        return order is not None and accept(order)
    return predicate


eq_helper = _binary(values_equal)
ne_helper = _binary(lambda x, y: not values_equal(x, y))
gt_helper = _binary(_ordered(lambda o: o > 0))
gte_helper = _binary(_ordered(lambda o: o >= 0))
lt_helper = _binary(_ordered(lambda o: o < 0))
lte_helper = _binary(_ordered(lambda o: o <= 0))


def and_helper(options: HelperOptions) -> Any:
    return _result(options, bool(options.params) and all(is_truthy(p) for p in options.params))


def or_helper(options: HelperOptions) -> Any:
    return _result(options, any(is_truthy(p) for p in options.params))


def not_helper(options: HelperOptions) -> Any:
    return _result(options, not is_truthy(options.param(0)))


def len_helper(options: HelperOptions) -> int:
    value = options.param(0)
    if is_mapping(value) or is_sequence(value) or isinstance(value, str):
        return len(value)
    return 0


__all__ = [
    "compare_values",
    "values_equal",
    "eq_helper",
    "ne_helper",
    "gt_helper",
    "gte_helper",
    "lt_helper",
    "lte_helper",
    "and_helper",
    "or_helper",
    "not_helper",
    "len_helper",
]
