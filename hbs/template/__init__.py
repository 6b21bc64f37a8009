"""
Template compilation pipeline: tokens, lexer, marker-content parser,
AST nodes, tree parser, scope stack, resolver and value semantics.

The renderer lives in `hbs.template.renderer`; it is not re-exported here
because it depends on the configuration and helper packages.
"""

from __future__ import annotations

from .lexer import TemplateLexer, tokenize
from .nodes import (
    BlockNode,
    CompiledTemplate,
    ExpressionNode,
    PartialNode,
    TemplateAST,
    TemplateNode,
    TextNode,
)
from .parser import TemplateParser
from .resolver import resolve
from .scope import ScopeFrame, ScopeStack
from .tokens import Token, TokenType
from .values import SafeString, html_escape, is_truthy, no_escape, to_text

__all__ = [
    "TemplateLexer",
    "tokenize",
    "TemplateParser",
    "Token",
    "TokenType",
    "TemplateNode",
    "TextNode",
    "ExpressionNode",
    "BlockNode",
    "PartialNode",
    "TemplateAST",
    "CompiledTemplate",
    "ScopeFrame",
    "ScopeStack",
    "resolve",
    "SafeString",
    "html_escape",
    "no_escape",
    "is_truthy",
    "to_text",
]
