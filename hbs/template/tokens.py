"""
Lexical types.

Defines the token kinds produced by the lexer and the token itself.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass


class TokenType(enum.Enum):
    """Token kinds of a template."""
    TEXT = "TEXT"
    EXPRESSION = "EXPRESSION"                  # {{path args}}
    RAW_EXPRESSION = "RAW_EXPRESSION"          # {{{path}}} or {{&path}}
    BLOCK_OPEN = "BLOCK_OPEN"                  # {{#helper args}}
    INVERSE_OPEN = "INVERSE_OPEN"              # {{^path}}
    ELSE = "ELSE"                              # {{else}}, {{^}}, {{else if x}}
    BLOCK_CLOSE = "BLOCK_CLOSE"                # {{/helper}}
    PARTIAL = "PARTIAL"                        # {{> name ctx key=value}}
    PARTIAL_BLOCK_OPEN = "PARTIAL_BLOCK_OPEN"  # {{#> name}}
    COMMENT = "COMMENT"                        # {{! ...}} or {{!-- ... --}}
    EOF = "EOF"


# Kinds that may stand alone on a line and take the line with them
STANDALONE_TYPES = frozenset({
    TokenType.BLOCK_OPEN,
    TokenType.INVERSE_OPEN,
    TokenType.ELSE,
    TokenType.BLOCK_CLOSE,
    TokenType.PARTIAL,
    TokenType.PARTIAL_BLOCK_OPEN,
    TokenType.COMMENT,
})


@dataclass(frozen=True)
class Token:
    """
    Token with positional information for precise error reporting.

    For markers `value` holds the content without delimiters, sigil and
    whitespace-control marks; `raw` is always the exact source slice.
    """
    type: TokenType
    value: str
    raw: str
    position: int        # offset in the source text
    line: int            # 1-based
    column: int          # 1-based
    strip_left: bool = False
    strip_right: bool = False
    # Leading whitespace of a standalone partial's line
    indent: str = ""

    def __repr__(self) -> str:
        return f"Token({self.type.value}, {self.value!r}, {self.line}:{self.column})"


__all__ = ["TokenType", "Token", "STANDALONE_TYPES"]
