"""
Parser for marker content.

Turns the inside of a marker (`helper arg "lit" key=value (sub x)`) into a
Call. Recursive descent over a small regex-driven token stream.

Grammar:
call        → expr argument* block_params?
argument    → HASH_KEY expr | expr
expr        → STRING | NUMBER | PATH | "(" call ")"
block_params→ "as" "|" PATH+ "|"
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import List, Tuple

from .nodes import Call, Expr, LiteralExpr, PathExpr, SubExpr
from ..errors import SyntaxErrorKind, TemplateSyntaxError


@dataclass
class ExprToken:
    """Token of marker content."""
    type: str
    value: str
    position: int

    def __repr__(self):
        return f"ExprToken({self.type}, '{self.value}', pos={self.position})"


# Keywords that are literals rather than paths
_LITERALS = {
    "true": True,
    "false": False,
    "null": None,
    "undefined": None,
}

_SEGMENT = re.compile(r"\[([^\]]*)\]|([^./\[\]]+)")
_ESCAPE = re.compile(r"\\(.)")


class ExpressionLexer:
    """Splits marker content on whitespace, honouring literals and parentheses."""

    # (regex_pattern, token_type, ignore_flag)
    TOKEN_SPECS = [
        (r'\s+', 'WHITESPACE', True),
        (r'"(?:[^"\\]|\\.)*"', 'STRING', False),
        (r"'(?:[^'\\]|\\.)*'", 'STRING', False),
        (r'\(', 'LPAREN', False),
        (r'\)', 'RPAREN', False),
        (r'\|', 'PIPE', False),
        (r'[^\s()=|"\'\[\]]+(?==)=', 'HASH_KEY', False),
        (r'-?\d+(?:\.\d+)?(?=[\s()|]|$)', 'NUMBER', False),
        (r'(?:\[[^\]]*\]|[^\s()=|"\'\[\]])+', 'PATH', False),
        (r'.', 'UNKNOWN', False),
    ]

    def __init__(self):
        self._compiled_patterns = [
            (re.compile(pattern), token_type, ignore)
            for pattern, token_type, ignore in self.TOKEN_SPECS
        ]

    def tokenize(self, text: str) -> List[ExprToken]:
        """
        Args:
            text: Marker content

        Returns:
            Tokens followed by EOF

        Raises:
            ValueError: On a character that cannot start any token
        """
        tokens: List[ExprToken] = []
        position = 0

        while position < len(text):
            for pattern, token_type, ignore in self._compiled_patterns:
                match = pattern.match(text, position)
                if not match:
                    continue
                value = match.group(0)
                if not ignore:
                    if token_type == 'UNKNOWN':
                        raise ValueError(f"Unexpected character '{value}' at position {position}")
                    if token_type == 'HASH_KEY':
                        value = value[:-1]
                    tokens.append(ExprToken(token_type, value, position))
                position = match.end()
                break

        tokens.append(ExprToken('EOF', '', position))
        return tokens


def parse_path(text: str) -> PathExpr:
    """
    Parses a dotted/indexed path.

    `this`, `.` and `./` anchor to the current frame, each `../` moves one
    frame up, `@` marks a data variable, `[...]` quotes a segment verbatim.
    Both `.` and `/` separate segments.
    """
    original = text
    is_data = text.startswith("@")
    if is_data:
        text = text[1:]

    depth = 0
    is_this = False
    while True:
        if text.startswith("../"):
            depth += 1
            text = text[3:]
        elif text == "..":
            depth += 1
            text = ""
        elif text.startswith("./"):
            is_this = True
            text = text[2:]
        elif text == ".":
            is_this = True
            text = ""
        else:
            break

    parts: List[str] = []
    for index, match in enumerate(_SEGMENT.finditer(text)):
        bracketed, plain = match.group(1), match.group(2)
        if bracketed is not None:
            parts.append(bracketed)
        elif index == 0 and plain == "this" and not is_data:
            is_this = True
        else:
            parts.append(plain)

    return PathExpr(
        original=original,
        parts=tuple(parts),
        depth=depth,
        is_this=is_this,
        is_data=is_data,
    )


class ExpressionParser:
    """
    Recursive-descent parser producing a Call from marker content.

    Errors are reported as TemplateSyntaxError(INVALID_EXPRESSION) located
    at the marker that holds the content.
    """

    def __init__(self):
        self.lexer = ExpressionLexer()
        self._tokens: List[ExprToken] = []
        self._position = 0
        self._location: Tuple[int, int, int] = (0, 0, 0)

    def parse(self, text: str, line: int = 0, column: int = 0, position: int = 0) -> Call:
        """
        Parses marker content into a Call.

        Args:
            text: Marker content without delimiters and sigil
            line, column, position: Location of the marker for diagnostics

        Returns:
            Parsed call

        Raises:
            TemplateSyntaxError: On malformed content
        """
        self._location = (line, column, position)
        try:
            self._tokens = self.lexer.tokenize(text)
        except ValueError as e:
            raise self._error(str(e)) from e
        self._position = 0

        if self._is_at_end():
            raise self._error("Empty expression")

        call = self._parse_call(inside_parens=False)

        if not self._is_at_end():
            current = self._current_token()
            raise self._error(f"Unexpected token '{current.value}' at position {current.position}")

        return call

    def _parse_call(self, inside_parens: bool) -> Call:
        head = self._parse_expr()
        params: List[Expr] = []
        hash_pairs: List[Tuple[str, Expr]] = []
        block_params: Tuple[str, ...] = ()

        while True:
            current = self._current_token()
            if current.type == 'EOF' or current.type == 'RPAREN':
                break
            if not inside_parens and self._at_block_params():
                block_params = self._parse_block_params()
                break
            if current.type == 'HASH_KEY':
                self._advance()
                hash_pairs.append((current.value, self._parse_expr()))
                continue
            if hash_pairs:
                raise self._error(f"Positional argument after hash arguments at position {current.position}")
            params.append(self._parse_expr())

        return Call(head=head, params=tuple(params), hash=tuple(hash_pairs), block_params=block_params)

    def _parse_expr(self) -> Expr:
        current = self._current_token()

        if current.type == 'LPAREN':
            self._advance()
            if self._current_token().type == 'RPAREN':
                raise self._error(f"Empty subexpression at position {current.position}")
            call = self._parse_call(inside_parens=True)
            if self._current_token().type != 'RPAREN':
                raise self._error(f"Expected ')' to close subexpression opened at position {current.position}")
            self._advance()
            return SubExpr(call=call)

        if current.type == 'STRING':
            self._advance()
            return LiteralExpr(value=_ESCAPE.sub(r"\1", current.value[1:-1]), original=current.value)

        if current.type == 'NUMBER':
            self._advance()
            number = float(current.value) if "." in current.value else int(current.value)
            return LiteralExpr(value=number, original=current.value)

        if current.type == 'PATH':
            self._advance()
            if current.value in _LITERALS:
                return LiteralExpr(value=_LITERALS[current.value], original=current.value)
            return parse_path(current.value)

        if current.type == 'EOF':
            raise self._error("Unexpected end of expression")
        raise self._error(f"Unexpected token '{current.value}' at position {current.position}")

    def _at_block_params(self) -> bool:
        current = self._current_token()
        return current.type == 'PATH' and current.value == 'as' and self._peek().type == 'PIPE'

    def _parse_block_params(self) -> Tuple[str, ...]:
        self._advance()  # as
        self._advance()  # |
        names: List[str] = []
        while self._current_token().type == 'PATH':
            names.append(self._advance().value)
        if self._current_token().type != 'PIPE' or not names:
            raise self._error("Malformed block params, expected 'as |name ...|'")
        self._advance()
        return tuple(names)

    # Token navigation helpers

    def _current_token(self) -> ExprToken:
        if self._position >= len(self._tokens):
            return self._tokens[-1]
        return self._tokens[self._position]

    def _peek(self) -> ExprToken:
        pos = self._position + 1
        return self._tokens[pos] if pos < len(self._tokens) else self._tokens[-1]

    def _is_at_end(self) -> bool:
        return self._current_token().type == 'EOF'

    def _advance(self) -> ExprToken:
        current = self._current_token()
        if not self._is_at_end():
            self._position += 1
        return current

    def _error(self, message: str) -> TemplateSyntaxError:
        line, column, position = self._location
        return TemplateSyntaxError(SyntaxErrorKind.INVALID_EXPRESSION, message, line, column, position)


def parse_call(text: str) -> Call:
    """Convenience function for parsing marker content without location info."""
    return ExpressionParser().parse(text)


__all__ = ["ExprToken", "ExpressionLexer", "ExpressionParser", "parse_path", "parse_call"]
