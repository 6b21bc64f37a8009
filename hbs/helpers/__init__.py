"""
Helpers available to every template.

User helpers registered on a TemplateRegistry shadow the built-ins with the
same name.
"""

from __future__ import annotations

from typing import Dict

from .base import HelperFunc, HelperOptions, RenderCallback
from .boolean import (
    and_helper,
    eq_helper,
    gt_helper,
    gte_helper,
    len_helper,
    lt_helper,
    lte_helper,
    ne_helper,
    not_helper,
    or_helper,
)
from .builtin import (
    each_helper,
    if_helper,
    log_helper,
    lookup_helper,
    unless_helper,
    with_helper,
)

BUILTIN_HELPERS: Dict[str, HelperFunc] = {
    "if": if_helper,
    "unless": unless_helper,
    "each": each_helper,
    "with": with_helper,
    "lookup": lookup_helper,
    "log": log_helper,
    "eq": eq_helper,
    "ne": ne_helper,
    "gt": gt_helper,
    "gte": gte_helper,
    "lt": lt_helper,
    "lte": lte_helper,
    "and": and_helper,
    "or": or_helper,
    "not": not_helper,
    "len": len_helper,
}

__all__ = ["BUILTIN_HELPERS", "HelperFunc", "HelperOptions", "RenderCallback"]
