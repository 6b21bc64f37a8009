"""
Syntax analyzer for templates.

Builds the AST from the token stream with a single explicit stack of open
blocks. Block matching is enforced here, so a template that compiles is
always well formed.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from .expression import ExpressionParser
from .nodes import (
    BlockNode,
    Call,
    ExpressionNode,
    PartialNode,
    PathExpr,
    TemplateAST,
    TemplateNode,
    TextNode,
)
from .tokens import Token, TokenType
from ..errors import SyntaxErrorKind, TemplateSyntaxError

logger = logging.getLogger(__name__)


@dataclass
class _OpenBlock:
    """Block whose close marker has not been seen yet."""
    token: Token
    name: str
    call: Call
    kind: str                                  # "block", "inverse", "partial"
    nodes: List[TemplateNode] = field(default_factory=list)
    before_else: Optional[List[TemplateNode]] = None
    chained: bool = False                      # opened by {{else helper ...}}

    def add(self, node: TemplateNode) -> None:
        _append(self.nodes, node)

    def switch_to_else(self) -> None:
        self.before_else = self.nodes
        self.nodes = []


class TemplateParser:
    """
    Stack-based parser.

    Each opening marker pushes a frame that collects child nodes; `else`
    switches the innermost frame to its alternate branch; a closing marker
    pops the frame and attaches the finished node to its parent.
    """

    def __init__(self):
        self.expressions = ExpressionParser()
        self._stack: List[_OpenBlock] = []
        self._root: List[TemplateNode] = []

    def parse(self, tokens: List[Token]) -> TemplateAST:
        """
        Parses tokens into the AST root.

        Args:
            tokens: Tokens from TemplateLexer

        Returns:
            Tuple of top-level nodes

        Raises:
            TemplateSyntaxError: On mismatched, unexpected or unclosed blocks
                and on malformed marker content
        """
        self._stack = []
        self._root = []

        for token in tokens:
            if token.type == TokenType.EOF:
                break
            self._handle(token)

        if self._stack:
            unclosed = next(frame for frame in reversed(self._stack) if not frame.chained)
            raise self._syntax_error(
                SyntaxErrorKind.UNCLOSED_BLOCK,
                f"Block '{unclosed.name}' is never closed",
                unclosed.token,
            )

        logger.debug("Parsed AST with %d top-level nodes", len(self._root))
        return tuple(self._root)

    def _handle(self, token: Token) -> None:
        ttype = token.type

        if ttype == TokenType.TEXT:
            self._emit(TextNode(text=token.value))
        elif ttype == TokenType.COMMENT:
            pass
        elif ttype in (TokenType.EXPRESSION, TokenType.RAW_EXPRESSION):
            call = self._parse_call(token)
            if call.block_params:
                raise self._syntax_error(
                    SyntaxErrorKind.INVALID_EXPRESSION,
                    "Block params are only allowed on block helpers",
                    token,
                )
            self._emit(ExpressionNode(
                call=call,
                escaped=ttype == TokenType.EXPRESSION,
                line=token.line,
                column=token.column,
            ))
        elif ttype == TokenType.PARTIAL:
            self._emit(self._make_partial(token, self._parse_call(token), body=None))
        elif ttype in (TokenType.BLOCK_OPEN, TokenType.INVERSE_OPEN):
            call = self._parse_call(token)
            self._require_path_head(call, token)
            kind = "inverse" if ttype == TokenType.INVERSE_OPEN else "block"
            self._stack.append(_OpenBlock(token=token, name=call.name, call=call, kind=kind))
        elif ttype == TokenType.PARTIAL_BLOCK_OPEN:
            call = self._parse_call(token)
            self._stack.append(_OpenBlock(token=token, name=call.name, call=call, kind="partial"))
        elif ttype == TokenType.ELSE:
            self._handle_else(token)
        elif ttype == TokenType.BLOCK_CLOSE:
            self._handle_close(token)
        else:
            raise self._syntax_error(
                SyntaxErrorKind.INVALID_EXPRESSION, f"Unexpected token {ttype.value}", token
            )

    def _handle_else(self, token: Token) -> None:
        if not self._stack:
            raise self._syntax_error(
                SyntaxErrorKind.UNEXPECTED_ELSE, "'else' outside of a block", token
            )
        frame = self._stack[-1]
        if frame.kind == "partial":
            raise self._syntax_error(
                SyntaxErrorKind.UNEXPECTED_ELSE, f"'else' is not allowed in partial block '{frame.name}'", token
            )
        if frame.before_else is not None:
            raise self._syntax_error(
                SyntaxErrorKind.UNEXPECTED_ELSE, f"Second 'else' in block '{frame.name}'", token
            )
        frame.switch_to_else()

        # {{else if cond}} opens an implicit block closed with the parent
        if token.value:
            call = self._parse_call(token)
            self._require_path_head(call, token)
            self._stack.append(_OpenBlock(
                token=token, name=call.name, call=call, kind="block", chained=True
            ))

    def _handle_close(self, token: Token) -> None:
        name = token.value
        if not self._stack:
            raise self._syntax_error(
                SyntaxErrorKind.UNEXPECTED_CLOSE, f"Closing '{name}' without an open block", token
            )

        while self._stack[-1].chained:
            self._emit_closed(self._stack.pop(), token)

        frame = self._stack[-1]
        if frame.name != name:
            raise self._syntax_error(
                SyntaxErrorKind.MISMATCHED_BLOCK,
                f"Closing '{name}' does not match open block '{frame.name}' "
                f"(opened at {frame.token.line}:{frame.token.column})",
                token,
            )
        self._emit_closed(self._stack.pop(), token)

    def _emit_closed(self, frame: _OpenBlock, close_token: Token) -> None:
        if frame.before_else is None:
            first, second = frame.nodes, None
        else:
            first, second = frame.before_else, frame.nodes

        if frame.kind == "partial":
            node: TemplateNode = self._make_partial(frame.token, frame.call, body=tuple(first))
        elif frame.kind == "inverse":
            # {{^x}}A{{else}}B{{/x}}: A renders when x is falsy
            node = BlockNode(
                name=frame.name,
                call=frame.call,
                body=tuple(second or ()),
                inverse=tuple(first),
                inverted=True,
                line=frame.token.line,
                column=frame.token.column,
            )
        else:
            node = BlockNode(
                name=frame.name,
                call=frame.call,
                body=tuple(first),
                inverse=tuple(second) if second is not None else None,
                line=frame.token.line,
                column=frame.token.column,
            )
        self._emit(node)

    def _make_partial(self, token: Token, call: Call, body) -> PartialNode:
        if len(call.params) > 1:
            raise self._syntax_error(
                SyntaxErrorKind.INVALID_EXPRESSION,
                f"Partial '{call.name}' accepts at most one context argument",
                token,
            )
        if call.block_params:
            raise self._syntax_error(
                SyntaxErrorKind.INVALID_EXPRESSION, "Block params are not allowed on partials", token
            )
        return PartialNode(
            name=call.head,
            context=call.params[0] if call.params else None,
            hash=call.hash,
            body=body,
            indent=token.indent,
            line=token.line,
            column=token.column,
        )

    def _emit(self, node: TemplateNode) -> None:
        target = self._stack[-1].nodes if self._stack else self._root
        _append(target, node)

    def _parse_call(self, token: Token) -> Call:
        return self.expressions.parse(token.value, token.line, token.column, token.position)

    def _require_path_head(self, call: Call, token: Token) -> None:
        if not isinstance(call.head, PathExpr):
            raise self._syntax_error(
                SyntaxErrorKind.INVALID_EXPRESSION,
                f"Block name must be a helper name or path, got '{call.name}'",
                token,
            )

    @staticmethod
    def _syntax_error(kind: SyntaxErrorKind, message: str, token: Token) -> TemplateSyntaxError:
        return TemplateSyntaxError(kind, message, token.line, token.column, token.position)


def _append(nodes: List[TemplateNode], node: TemplateNode) -> None:
    """Appends a node, merging adjacent text."""
    if isinstance(node, TextNode):
        if not node.text:
            return
        if nodes and isinstance(nodes[-1], TextNode):
            nodes[-1] = TextNode(text=nodes[-1].text + node.text)
            return
    nodes.append(node)


__all__ = ["TemplateParser"]
