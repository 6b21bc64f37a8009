"""
Lexical analyzer for templates.

Splits the source into literal text runs and `{{ ... }}` markers in a single
left-to-right pass, classifies each marker by its leading sigil and then
applies the whitespace rules (standalone lines and `~` control) to the
surrounding text tokens.
"""

from __future__ import annotations

import dataclasses
import logging
import re
from typing import List, Optional, Tuple

from .tokens import Token, TokenType, STANDALONE_TYPES
from ..errors import SyntaxErrorKind, TemplateSyntaxError

logger = logging.getLogger(__name__)

_OPEN = "{{"

# {{  {{~  {{{  {{~{  {{!--  {{~!--
_OPEN_PATTERN = re.compile(r"\{\{(~?)(\{|!--)?")

_CLOSE_PATTERNS = {
    None: re.compile(r"(~?)\}\}"),
    "{": re.compile(r"\}(~?)\}\}"),
    "!--": re.compile(r"--(~?)\}\}"),
}


class TemplateLexer:
    """
    Marker-aware lexer.

    Text between markers is emitted verbatim (newlines included); `\\{{`
    yields a literal `{{`. Every token keeps its offset, line and column.
    """

    def __init__(self):
        self.text = ""
        self.position = 0
        self.line = 1
        self.column = 1
        self.length = 0

    def tokenize(self, text: str) -> List[Token]:
        """
        Tokenizes the template source.

        Args:
            text: Template source

        Returns:
            List of tokens terminated by an EOF token

        Raises:
            TemplateSyntaxError: On an unterminated or empty marker
        """
        self._initialize_tokenization(text)

        tokens: List[Token] = []
        chunks: List[str] = []
        text_start: Optional[Tuple[int, int, int]] = None

        while self.position < self.length:
            start = self.text.find(_OPEN, self.position)
            if start == -1:
                start = self.length

            if start > self.position:
                if text_start is None:
                    text_start = (self.position, self.line, self.column)
                chunks.append(self.text[self.position:start])
                self._advance(start - self.position)

            if self.position >= self.length:
                break

            # \{{ is a literal {{
            if chunks and chunks[-1].endswith("\\"):
                chunks[-1] = chunks[-1][:-1]
                chunks.append(_OPEN)
                self._advance(len(_OPEN))
                continue

            if chunks:
                tokens.append(self._make_text_token("".join(chunks), text_start))
                chunks = []
                text_start = None

            tokens.append(self._read_marker())

        if chunks:
            tokens.append(self._make_text_token("".join(chunks), text_start))

        tokens = apply_whitespace_control(tokens)
        tokens.append(Token(TokenType.EOF, "", "", self.position, self.line, self.column))

        logger.debug("Tokenized %d chars into %d tokens", self.length, len(tokens))
        return tokens

    def _initialize_tokenization(self, text: str) -> None:
        self.text = text
        self.position = 0
        self.line = 1
        self.column = 1
        self.length = len(text)

    def _make_text_token(self, value: str, start: Optional[Tuple[int, int, int]]) -> Token:
        position, line, column = start if start is not None else (self.position, self.line, self.column)
        return Token(TokenType.TEXT, value, self.text[position:self.position], position, line, column)

    def _read_marker(self) -> Token:
        """Reads one marker starting at the current `{{`."""
        start_position, start_line, start_column = self.position, self.line, self.column

        opening = _OPEN_PATTERN.match(self.text, self.position)
        assert opening is not None
        strip_left = bool(opening.group(1))
        variant = opening.group(2)

        closing = _CLOSE_PATTERNS[variant].search(self.text, opening.end())
        if closing is None:
            raise TemplateSyntaxError(
                SyntaxErrorKind.UNTERMINATED_MARKER,
                "Marker opened with '{{' is never closed",
                start_line, start_column, start_position,
            )

        content = self.text[opening.end():closing.start()]
        strip_right = bool(closing.group(1))

        if variant == "{":
            token_type, value = TokenType.RAW_EXPRESSION, content.strip()
            if not value:
                self._raise_empty(start_line, start_column, start_position)
        elif variant == "!--":
            token_type, value = TokenType.COMMENT, content
        else:
            token_type, value = self._classify(content, start_line, start_column, start_position)

        raw = self.text[start_position:closing.end()]
        self._advance(closing.end() - self.position)

        return Token(
            token_type, value, raw,
            start_position, start_line, start_column,
            strip_left=strip_left, strip_right=strip_right,
        )

    def _classify(self, content: str, line: int, column: int, position: int) -> Tuple[TokenType, str]:
        """Determines the marker kind from the first significant character(s)."""
        body = content.strip()
        if not body:
            self._raise_empty(line, column, position)

        sigil = body[0]
        if sigil == "!":
            return TokenType.COMMENT, body[1:]
        if body.startswith("#>"):
            return TokenType.PARTIAL_BLOCK_OPEN, body[2:].strip()
        if sigil == "#":
            return TokenType.BLOCK_OPEN, body[1:].strip()
        if sigil == "/":
            return TokenType.BLOCK_CLOSE, body[1:].strip()
        if sigil == "^":
            rest = body[1:].strip()
            return (TokenType.INVERSE_OPEN, rest) if rest else (TokenType.ELSE, "")
        if sigil == ">":
            return TokenType.PARTIAL, body[1:].strip()
        if sigil == "&":
            return TokenType.RAW_EXPRESSION, body[1:].strip()
        if body == "else" or (body.startswith("else") and body[4].isspace()):
            return TokenType.ELSE, body[4:].strip()
        return TokenType.EXPRESSION, body

    @staticmethod
    def _raise_empty(line: int, column: int, position: int) -> None:
        raise TemplateSyntaxError(
            SyntaxErrorKind.INVALID_EXPRESSION, "Empty marker", line, column, position
        )

    def _advance(self, count: int) -> None:
        """Moves the position forward, keeping line and column in sync."""
        end = min(self.position + count, self.length)
        newlines = self.text.count("\n", self.position, end)
        if newlines:
            self.line += newlines
            self.column = end - self.text.rfind("\n", self.position, end)
        else:
            self.column += end - self.position
        self.position = end


def apply_whitespace_control(tokens: List[Token]) -> List[Token]:
    """
    Applies standalone-line removal and `~` trimming to text tokens.

    Standalone detection looks at the untouched text so that consecutive
    standalone markers are all recognised. A standalone partial keeps the
    removed indentation in `Token.indent`. Empty text tokens are dropped.
    """
    tokens = list(tokens)
    values = [t.value if t.type == TokenType.TEXT else None for t in tokens]
    standalone = [_is_standalone(tokens, i) for i in range(len(tokens))]

    for i, token in enumerate(tokens):
        if token.type == TokenType.TEXT:
            continue
        prev_text = i - 1 if i > 0 and values[i - 1] is not None else None
        next_text = i + 1 if i + 1 < len(tokens) and values[i + 1] is not None else None

        if standalone[i]:
            if token.type == TokenType.PARTIAL and prev_text is not None:
                indent = tokens[prev_text].value.rpartition("\n")[2]
                if indent:
                    tokens[i] = dataclasses.replace(token, indent=indent)
            if prev_text is not None:
                values[prev_text] = _trim_line_tail(values[prev_text])
            if next_text is not None:
                values[next_text] = _trim_line_head(values[next_text])

        if token.strip_left and prev_text is not None:
            values[prev_text] = values[prev_text].rstrip()
        if token.strip_right and next_text is not None:
            values[next_text] = values[next_text].lstrip()

    result: List[Token] = []
    for token, value in zip(tokens, values):
        if value is None:
            result.append(token)
        elif value:
            result.append(token if value == token.value else dataclasses.replace(token, value=value))
    return result


def _is_standalone(tokens: List[Token], index: int) -> bool:
    token = tokens[index]
    if token.type not in STANDALONE_TYPES:
        return False

    if index > 0:
        prev = tokens[index - 1]
        if prev.type != TokenType.TEXT:
            return False
        head, sep, tail = prev.value.rpartition("\n")
        if not sep and index - 1 != 0:
            return False
        if tail.strip(" \t"):
            return False

    if index + 1 < len(tokens):
        nxt = tokens[index + 1]
        if nxt.type != TokenType.TEXT:
            return False
        head, sep, _ = nxt.value.partition("\n")
        if not sep and index + 1 != len(tokens) - 1:
            return False
        if head.strip(" \t\r"):
            return False

    return True


def _trim_line_tail(value: str) -> str:
    head, sep, tail = value.rpartition("\n")
    if tail.strip(" \t"):
        return value
    return head + sep


def _trim_line_head(value: str) -> str:
    head, sep, tail = value.partition("\n")
    if head.strip(" \t\r"):
        return value
    return tail if sep else ""


def tokenize(text: str) -> List[Token]:
    """Convenience wrapper around TemplateLexer."""
    return TemplateLexer().tokenize(text)


__all__ = ["TemplateLexer", "apply_whitespace_control", "tokenize"]
