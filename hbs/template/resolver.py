"""
Path resolution against the scope stack.

Resolution never fails: a missing key, an out-of-range index or a `../`
past the root all yield None, which renders as empty text.
"""

from __future__ import annotations

from typing import Any, Union

from .expression import parse_path
from .nodes import LiteralExpr, PathExpr
from .scope import ScopeStack
from .values import is_mapping, is_sequence


def lookup_property(value: Any, key: Any) -> Any:
    """
    Indexes one level into a value.

    Mappings are indexed by key (falling back to the string form of a
    numeric key), sequences by non-negative integer or `length`.
    """
    if value is None or not isinstance(key, (str, int, float)):
        return None

    if is_mapping(value):
        if key in value:
            return value[key]
        if not isinstance(key, str):
            return value.get(str(key))
        return None

    if is_sequence(value):
        if key == "length":
            return len(value)
        if isinstance(key, bool):
            return None
        if isinstance(key, int):
            index = key
        elif isinstance(key, str) and key.isascii() and key.isdecimal():
            index = int(key)
        else:
            return None
        if 0 <= index < len(value):
            return value[index]
        return None

    return None


def resolve_path(path: PathExpr, scopes: ScopeStack) -> Any:
    """Resolves a parsed path; see module docstring for the failure rules."""
    parts = path.parts

    if path.is_data:
        if not parts:
            return None
        value = scopes.get_data(parts[0], path.depth)
        parts = parts[1:]
    else:
        value = None
        found = False
        if parts and not path.depth and not path.is_this:
            found, value = scopes.find_block_param(parts[0])
            if found:
                parts = parts[1:]
        if not found:
            frame = scopes.frame_at(path.depth)
            if frame is None:
                return None
            value = frame.value

    for key in parts:
        value = lookup_property(value, key)
        if value is None:
            return None
    return value


def resolve(path: Union[str, PathExpr, LiteralExpr], scopes: ScopeStack) -> Any:
    """
    Resolves a path string (`a.b.0`, `../x`, `this`, `@index`) or a parsed
    path/literal against the scope stack.
    """
    if isinstance(path, LiteralExpr):
        return path.value
    if isinstance(path, str):
        path = parse_path(path)
    return resolve_path(path, scopes)


__all__ = ["lookup_property", "resolve_path", "resolve"]
