"""
AST nodes.

Immutable node classes for the compiled template tree and for the
expressions found inside markers. Children are held in tuples, so a
compiled tree can be shared freely between concurrent renders.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple, Union


# ---- Expressions (marker content) ----

@dataclass(frozen=True)
class PathExpr:
    """
    A path such as `name`, `a.b.0`, `../x`, `this`, `@index` or `@root.a`.

    `parts` are the segments left after `this`/`..`/`@` prefixes are consumed.
    """
    original: str
    parts: Tuple[str, ...] = ()
    depth: int = 0          # number of ../ segments
    is_this: bool = False   # explicitly anchored to the current frame
    is_data: bool = False   # @-variable

    @property
    def is_simple(self) -> bool:
        """A bare identifier that may name a helper."""
        return len(self.parts) == 1 and not (self.depth or self.is_this or self.is_data)

    @property
    def head(self) -> str:
        return self.parts[0] if self.parts else ""


@dataclass(frozen=True)
class LiteralExpr:
    """A string, number, boolean, null or undefined literal."""
    value: Any
    original: str


@dataclass(frozen=True)
class SubExpr:
    """A parenthesised helper call used as an argument: `(gt a 3)`."""
    call: Call


Expr = Union[PathExpr, LiteralExpr, SubExpr]


@dataclass(frozen=True)
class Call:
    """
    Parsed marker content: head expression, positional params, hash
    arguments and block params (`as |item index|`).
    """
    head: Expr
    params: Tuple[Expr, ...] = ()
    hash: Tuple[Tuple[str, Expr], ...] = ()
    block_params: Tuple[str, ...] = ()

    @property
    def name(self) -> str:
        """Helper or path name as written in the source."""
        if isinstance(self.head, PathExpr):
            return self.head.original
        if isinstance(self.head, LiteralExpr):
            return str(self.head.value)
        return "(subexpression)"

    def hash_dict(self) -> Dict[str, Expr]:
        return dict(self.hash)


# ---- Template nodes ----

@dataclass(frozen=True)
class TemplateNode:
    """Base class for all template AST nodes."""
    pass


@dataclass(frozen=True)
class TextNode(TemplateNode):
    """Literal text, emitted unchanged."""
    text: str


@dataclass(frozen=True)
class ExpressionNode(TemplateNode):
    """`{{expr}}` (escaped) or `{{{expr}}}` / `{{&expr}}` (raw)."""
    call: Call
    escaped: bool = True
    line: int = 0
    column: int = 0


@dataclass(frozen=True)
class BlockNode(TemplateNode):
    """
    `{{#name args}}body{{else}}inverse{{/name}}`.

    `inverted` marks `{{^name}}...{{/name}}`, whose content is the inverse
    branch of the block.
    """
    name: str
    call: Call
    body: Tuple[TemplateNode, ...] = ()
    inverse: Optional[Tuple[TemplateNode, ...]] = None
    inverted: bool = False
    line: int = 0
    column: int = 0


@dataclass(frozen=True)
class PartialNode(TemplateNode):
    """
    `{{> name context key=value}}` or `{{#> name}}fallback{{/name}}`.

    `body` is set only for partial blocks; it is rendered when the partial
    is missing and is exposed to the partial as `@partial-block`. `indent`
    is the leading whitespace of a standalone partial's line, prefixed to
    every line of its output.
    """
    name: Expr
    context: Optional[Expr] = None
    hash: Tuple[Tuple[str, Expr], ...] = ()
    body: Optional[Tuple[TemplateNode, ...]] = None
    indent: str = ""
    line: int = 0
    column: int = 0


# Node sequence alias (block bodies, template roots)
TemplateAST = Tuple[TemplateNode, ...]


@dataclass(frozen=True)
class CompiledTemplate:
    """A named, parsed template ready to render."""
    name: str
    root: TemplateAST
    source_length: int = 0


__all__ = [
    "PathExpr",
    "LiteralExpr",
    "SubExpr",
    "Expr",
    "Call",
    "TemplateNode",
    "TextNode",
    "ExpressionNode",
    "BlockNode",
    "PartialNode",
    "TemplateAST",
    "CompiledTemplate",
]
