"""
Built-in block and utility helpers: if, unless, each, with, lookup, log.
"""

from __future__ import annotations

import logging
from typing import Any, List

from .base import HelperOptions
from ..template.resolver import lookup_property
from ..template.values import is_mapping, is_sequence, is_truthy, to_text

logger = logging.getLogger("hbs.helpers")

_LOG_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


def if_helper(options: HelperOptions) -> Any:
    """
    `{{#if cond}}...{{else}}...{{/if}}`; `includeZero=true` makes 0 truthy.

    Used inline (`{{if cond}}`) it yields the truthiness itself.
    """
    include_zero = is_truthy(options.hash.get("includeZero"))
    truthy = is_truthy(options.param(0), include_zero)
    if not options.is_block:
        return truthy
    return options.fn() if truthy else options.inverse()


def unless_helper(options: HelperOptions) -> Any:
    include_zero = is_truthy(options.hash.get("includeZero"))
    truthy = is_truthy(options.param(0), include_zero)
    if not options.is_block:
        return not truthy
    return options.inverse() if truthy else options.fn()


def each_helper(options: HelperOptions) -> str:
    """
    Renders the body once per element of a sequence or mapping.

    Each element gets a frame with `@index`, `@first`, `@last` and `@key`
    (the mapping key, or the index for sequences) plus block params
    `as |item key|`. The inverse renders once when there is nothing to
    iterate.
    """
    collection = options.param(0)

    if is_mapping(collection):
        entries = list(collection.items())
    elif is_sequence(collection):
        entries = list(enumerate(collection))
    else:
        entries = []

    if not entries:
        return options.inverse()

    last = len(entries) - 1
    output: List[str] = []
    for index, (key, item) in enumerate(entries):
        data = {"index": index, "key": key, "first": index == 0, "last": index == last}
        output.append(options.fn(
            item,
            data=data,
            block_params=options.bind_block_params(item, key),
        ))
    return "".join(output)


def with_helper(options: HelperOptions) -> str:
    """Narrows the context to the argument; inverse when it is falsy."""
    value = options.param(0)
    if not is_truthy(value):
        return options.inverse()
    return options.fn(value, block_params=options.bind_block_params(value))


def lookup_helper(options: HelperOptions) -> Any:
    """`{{lookup obj key}}` with a dynamic key, e.g. `{{lookup ../names @index}}`."""
    return lookup_property(options.param(0), options.param(1))


def log_helper(options: HelperOptions) -> str:
    """Writes its arguments to the `hbs.helpers` logger; renders nothing."""
    level_name = str(options.hash.get("level", "info")).lower()
    level = _LOG_LEVELS.get(level_name, logging.INFO)
    logger.log(level, " ".join(to_text(p) for p in options.params))
    return ""


__all__ = [
    "if_helper",
    "unless_helper",
    "each_helper",
    "with_helper",
    "lookup_helper",
    "log_helper",
]
