"""
Value semantics of context data: truthiness, conversion to text and escaping.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any, Callable, Dict

EscapeFn = Callable[[str], str]


class SafeString(str):
    """String that is emitted without escaping, e.g. HTML built by a helper."""
    pass


_HTML_ESCAPES = str.maketrans({
    "&": "&amp;",
    "<": "&lt;",
    ">": "&gt;",
    '"': "&quot;",
    "'": "&#x27;",
    "`": "&#x60;",
    "=": "&#x3D;",
})


def html_escape(text: str) -> str:
    """Replaces HTML-sensitive characters with entities."""
    return text.translate(_HTML_ESCAPES)


def no_escape(text: str) -> str:
    """Escape function for non-HTML output."""
    return text


ESCAPE_FUNCTIONS: Dict[str, EscapeFn] = {
    "html": html_escape,
    "none": no_escape,
}


def is_mapping(value: Any) -> bool:
    return isinstance(value, Mapping)


def is_sequence(value: Any) -> bool:
    """Lists and tuples count, strings and bytes do not."""
    return isinstance(value, Sequence) and not isinstance(value, (str, bytes, bytearray))


def is_truthy(value: Any, include_zero: bool = False) -> bool:
    """
    Template truthiness.

    None, False, 0, empty string and empty sequence/mapping are falsy;
    with include_zero a numeric zero counts as truthy.
    """
    if value is None or value is False:
        return False
    if value is True:
        return True
    if isinstance(value, (int, float)):
        return include_zero or value != 0
    if isinstance(value, str):
        return bool(value)
    if is_mapping(value) or is_sequence(value):
        return len(value) > 0
    return True


def to_text(value: Any) -> str:
    """
    Converts a context value to output text.

    None → "", booleans → "true"/"false", integral floats lose the ".0",
    sequences are comma-joined, mappings render as "[object]".
    """
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        if value.is_integer():
            return str(int(value))
        return repr(value)
    if is_mapping(value):
        return "[object]"
    if is_sequence(value):
        return ",".join(to_text(item) for item in value)
    return str(value)


__all__ = [
    "EscapeFn",
    "SafeString",
    "html_escape",
    "no_escape",
    "ESCAPE_FUNCTIONS",
    "is_mapping",
    "is_sequence",
    "is_truthy",
    "to_text",
]
