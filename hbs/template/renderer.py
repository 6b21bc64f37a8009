"""
Renderer: evaluates a compiled AST against data.

Walks the tree depth-first with an explicit RenderState (scope stack, nesting
depth and partial expansion chain) passed down the calls. Nothing is stored on the
renderer between calls, and neither the AST nor the data is mutated, so one
renderer (and one compiled template) can serve concurrent renders.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, replace
from typing import Any, List, Mapping, Optional, Tuple

from .nodes import (
    BlockNode,
    Call,
    CompiledTemplate,
    Expr,
    ExpressionNode,
    LiteralExpr,
    PartialNode,
    PathExpr,
    SubExpr,
    TemplateAST,
    TemplateNode,
    TextNode,
)
from .resolver import resolve_path
from .scope import ScopeStack
from .values import SafeString, is_mapping, is_sequence, is_truthy, to_text
from ..config import BlockFallback, RenderOptions
from ..errors import HbsError, RenderError, RenderErrorKind
from ..helpers import BUILTIN_HELPERS, HelperFunc, HelperOptions

PARTIAL_BLOCK_NAME = "@partial-block"


class TargetKind(enum.Enum):
    """What a helper-position name turned out to be."""
    BUILTIN_HELPER = "builtin"
    USER_HELPER = "user"
    DATA_PATH = "data"


@dataclass(frozen=True)
class Target:
    """
    Result of dispatching a name.

    For DATA_PATH `helper` is set only when the resolved value is callable.
    """
    kind: TargetKind
    helper: Optional[HelperFunc] = None
    value: Any = None


@dataclass(frozen=True)
class RenderState:
    """Per-call render state threaded through the tree walk."""
    scopes: ScopeStack
    # Nested block bodies and partials entered so far
    depth: int = 0
    partial_chain: Tuple[str, ...] = ()
    partial_blocks: Tuple[Optional[TemplateAST], ...] = ()


class Renderer:
    """
    Renders compiled templates.

    Args:
        templates: Named templates available as partials
        helpers: User helpers, consulted before the built-ins
        options: Strictness, fallback, escaping and depth limit
    """

    def __init__(
        self,
        templates: Optional[Mapping[str, CompiledTemplate]] = None,
        helpers: Optional[Mapping[str, HelperFunc]] = None,
        options: Optional[RenderOptions] = None,
    ):
        self.templates: Mapping[str, CompiledTemplate] = templates or {}
        self.helpers: Mapping[str, HelperFunc] = helpers or {}
        self.options = options or RenderOptions()
        self._escape = self.options.resolved_escape_fn

    def render(self, root: TemplateAST, data: Any = None, name: Optional[str] = None) -> str:
        """
        Renders an AST root against `data`.

        Raises:
            RenderError: In strict mode on unknown helpers/partials, and in
                any mode when the nesting or partial depth limit is exceeded
        """
        state = RenderState(scopes=ScopeStack.root(data))
        try:
            return self._render_nodes(root, state)
        except RenderError as e:
            if e.template_name is None:
                e.template_name = name
            raise
        except RecursionError as e:
            raise RenderError(
                RenderErrorKind.RECURSION_LIMIT_EXCEEDED,
                "Template nesting exceeds the interpreter recursion limit",
                template_name=name,
            ) from e

    def render_template(self, template: CompiledTemplate, data: Any = None) -> str:
        return self.render(template.root, data, name=template.name)

    # ---- tree walk ----

    def _render_nodes(self, nodes: TemplateAST, state: RenderState) -> str:
        output: List[str] = []
        for node in nodes:
            output.append(self._render_node(node, state))
        return "".join(output)

    def _render_node(self, node: TemplateNode, state: RenderState) -> str:
        if isinstance(node, TextNode):
            return node.text
        if isinstance(node, ExpressionNode):
            return self._render_expression(node, state)
        if isinstance(node, BlockNode):
            return self._render_block(node, state)
        if isinstance(node, PartialNode):
            return self._render_partial(node, state)
        raise TypeError(f"Unknown node type: {type(node).__name__}")

    def _render_expression(self, node: ExpressionNode, state: RenderState) -> str:
        call = node.call
        target = self.resolve_target(call, state)

        if target.helper is not None:
            value = self._invoke(target.helper, call, state)
        elif call.params or call.hash:
            self._unknown_helper(call.name)
            return ""
        else:
            value = target.value

        text = to_text(value)
        if node.escaped and not isinstance(value, SafeString):
            text = self._escape(text)
        return text

    def _render_block(self, node: BlockNode, state: RenderState) -> str:
        state = self._descend(node.name, state)
        target = self.resolve_target(node.call, state)

        if target.helper is not None:
            result = self._invoke(target.helper, node.call, state, body=node.body, inverse=node.inverse)
            return to_text(result)

        self._unknown_helper(node.name)
        return self._render_fallback(node, target.value, state)

    def _render_fallback(self, node: BlockNode, value: Any, state: RenderState) -> str:
        """Block whose name is plain data, per the block_fallback option."""
        fallback = self.options.block_fallback
        inverse = node.inverse or ()

        if fallback is BlockFallback.IGNORE:
            return ""

        if fallback is BlockFallback.TRUTHY:
            subject = self.evaluate(node.call.params[0], state) if node.call.params else value
            return self._render_nodes(node.body if is_truthy(subject) else inverse, state)

        # SECTION
        if is_sequence(value):
            if not value:
                return self._render_nodes(inverse, state)
            last = len(value) - 1
            output: List[str] = []
            for index, item in enumerate(value):
                data = {"index": index, "first": index == 0, "last": index == last}
                output.append(self._render_nodes(node.body, replace(state, scopes=state.scopes.push(item, data=data))))
            return "".join(output)
        if is_mapping(value) and value:
            return self._render_nodes(node.body, replace(state, scopes=state.scopes.push(value)))
        return self._render_nodes(node.body if is_truthy(value) else inverse, state)

    def _render_partial(self, node: PartialNode, state: RenderState) -> str:
        name = self._partial_name(node.name, state)

        if name == PARTIAL_BLOCK_NAME:
            body = state.partial_blocks[-1] if state.partial_blocks else None
            if body is None:
                self._unknown_partial(name)
                return ""
            self._check_depth(name, state)
            inner = replace(
                self._descend(name, state),
                scopes=self._partial_scopes(node, state),
                partial_chain=state.partial_chain + (name,),
                partial_blocks=state.partial_blocks[:-1],
            )
            return self._indent(node, self._render_nodes(body, inner))

        template = self.templates.get(name)
        if template is None:
            if node.body is not None:
                return self._render_nodes(node.body, state)
            self._unknown_partial(name)
            return ""

        self._check_depth(name, state)
        inner = replace(
            self._descend(name, state),
            scopes=self._partial_scopes(node, state),
            partial_chain=state.partial_chain + (name,),
            partial_blocks=state.partial_blocks + (node.body,),
        )
        return self._indent(node, self._render_nodes(template.root, inner))

    def _indent(self, node: PartialNode, text: str) -> str:
        """Prefixes every output line of a standalone partial with its indentation."""
        if not node.indent or self.options.prevent_indent:
            return text
        lines = text.split("\n")
        for i, line in enumerate(lines):
            if not line and i == len(lines) - 1:
                break
            lines[i] = node.indent + line
        return "\n".join(lines)

    def _partial_scopes(self, node: PartialNode, state: RenderState) -> ScopeStack:
        """Context for a partial: explicit argument, then hash merged on top."""
        scopes = state.scopes
        if node.context is not None:
            scopes = scopes.push(self.evaluate(node.context, state))
        if node.hash:
            base = scopes.current
            merged = dict(base) if is_mapping(base) else {}
            for key, expr in node.hash:
                merged[key] = self.evaluate(expr, state)
            scopes = scopes.push(merged)
        return scopes

    def _partial_name(self, expr: Expr, state: RenderState) -> str:
        if isinstance(expr, PathExpr):
            return expr.original
        if isinstance(expr, LiteralExpr):
            return to_text(expr.value)
        return to_text(self.evaluate(expr, state))

    def _check_depth(self, name: str, state: RenderState) -> None:
        if len(state.partial_chain) >= self.options.max_partial_depth:
            raise RenderError(
                RenderErrorKind.RECURSION_LIMIT_EXCEEDED,
                f"Partial '{name}' exceeds the maximum expansion depth of {self.options.max_partial_depth}",
                name=name,
                chain=list(state.partial_chain) + [name],
            )

    def _descend(self, name: str, state: RenderState) -> RenderState:
        """Enters one nesting level (a block or a partial)."""
        if state.depth >= self.options.max_depth:
            raise RenderError(
                RenderErrorKind.RECURSION_LIMIT_EXCEEDED,
                f"'{name}' exceeds the maximum nesting depth of {self.options.max_depth}",
                name=name,
                chain=list(state.partial_chain),
            )
        return replace(state, depth=state.depth + 1)

    # ---- dispatch and evaluation ----

    def resolve_target(self, call: Call, state: RenderState) -> Target:
        """
        Decides what the head of a call is.

        A bare name is looked up among user helpers, then built-ins;
        anything else (or a name that is neither) is data, which is
        invoked as a helper when its value is callable.
        """
        head = call.head
        if isinstance(head, PathExpr) and head.is_simple:
            helper = self.helpers.get(head.head)
            if helper is not None:
                return Target(TargetKind.USER_HELPER, helper=helper)
            helper = BUILTIN_HELPERS.get(head.head)
            if helper is not None:
                return Target(TargetKind.BUILTIN_HELPER, helper=helper)

        value = self.evaluate(head, state)
        if callable(value):
            return Target(TargetKind.DATA_PATH, helper=value, value=value)
        return Target(TargetKind.DATA_PATH, value=value)

    def evaluate(self, expr: Expr, state: RenderState) -> Any:
        """Evaluates an argument: path lookup, literal or subexpression call."""
        if isinstance(expr, PathExpr):
            return resolve_path(expr, state.scopes)
        if isinstance(expr, LiteralExpr):
            return expr.value
        if isinstance(expr, SubExpr):
            call = expr.call
            target = self.resolve_target(call, state)
            if target.helper is not None:
                return self._invoke(target.helper, call, state)
            if call.params or call.hash:
                self._unknown_helper(call.name)
                return None
            return target.value
        raise TypeError(f"Unknown expression type: {type(expr).__name__}")

    def _invoke(
        self,
        helper: HelperFunc,
        call: Call,
        state: RenderState,
        body: Optional[TemplateAST] = None,
        inverse: Optional[TemplateAST] = None,
    ) -> Any:
        params = tuple(self.evaluate(p, state) for p in call.params)
        hash_values = {key: self.evaluate(expr, state) for key, expr in call.hash}

        def render_branch(nodes: TemplateAST, scopes: ScopeStack) -> str:
            return self._render_nodes(nodes, replace(state, scopes=scopes))

        options = HelperOptions(
            name=call.name,
            params=params,
            hash=hash_values,
            scopes=state.scopes,
            render=render_branch,
            body=body,
            inverse_body=inverse,
            block_param_names=call.block_params,
        )
        try:
            return helper(options)
        except (HbsError, RecursionError):
            raise
        except Exception as e:
            raise RenderError(
                RenderErrorKind.HELPER_FAILED,
                f"Helper '{call.name}' failed: {e}",
                name=call.name,
            ) from e

    def _unknown_helper(self, name: str) -> None:
        if self.options.strict_mode:
            raise RenderError(
                RenderErrorKind.UNKNOWN_HELPER,
                f"'{name}' is neither a helper nor a callable value",
                name=name,
            )

    def _unknown_partial(self, name: str) -> None:
        if self.options.strict_mode:
            raise RenderError(
                RenderErrorKind.UNKNOWN_PARTIAL,
                f"Partial '{name}' is not registered",
                name=name,
            )


__all__ = ["Renderer", "RenderState", "Target", "TargetKind", "PARTIAL_BLOCK_NAME"]
