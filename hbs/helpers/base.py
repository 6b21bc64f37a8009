"""
Helper contract.

A helper is any callable taking a single HelperOptions argument. Block
helpers decide whether and how many times to render their body by calling
options.fn() / options.inverse() with a scope of their choice; whatever
they return is written to the output.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, Mapping, Optional, Tuple

from ..template.nodes import TemplateAST
from ..template.resolver import resolve
from ..template.scope import ScopeStack

# Renders a node sequence against a scope stack
RenderCallback = Callable[[TemplateAST, ScopeStack], str]

HelperFunc = Callable[["HelperOptions"], Any]

_CURRENT = object()


class HelperOptions:
    """
    Everything a helper gets to see about its invocation.

    Attributes:
        name: Helper name as written in the template
        params: Resolved positional arguments
        hash: Resolved hash (key=value) arguments
        body: Block body, None for non-block invocations
        inverse_body: `else` branch of the block, if any
        scopes: Scope stack at the point of invocation
        block_param_names: Names from `as |a b|`
    """

    def __init__(
        self,
        name: str,
        params: Tuple[Any, ...],
        hash: Mapping[str, Any],
        scopes: ScopeStack,
        render: RenderCallback,
        body: Optional[TemplateAST] = None,
        inverse_body: Optional[TemplateAST] = None,
        block_param_names: Tuple[str, ...] = (),
    ):
        self.name = name
        self.params = params
        self.hash: Dict[str, Any] = dict(hash)
        self.scopes = scopes
        self.body = body
        self.inverse_body = inverse_body
        self.block_param_names = block_param_names
        self._render = render

    @property
    def is_block(self) -> bool:
        return self.body is not None

    @property
    def context(self) -> Any:
        """Current context value (`this`)."""
        return self.scopes.current

    def param(self, index: int, default: Any = None) -> Any:
        if 0 <= index < len(self.params):
            return self.params[index]
        return default

    def data(self, name: str) -> Any:
        """Reads an @-variable visible at the invocation point."""
        return self.scopes.get_data(name)

    def lookup(self, path: str) -> Any:
        """Resolves a path string against the invocation scope."""
        return resolve(path, self.scopes)

    def fn(
        self,
        context: Any = _CURRENT,
        data: Optional[Mapping[str, Any]] = None,
        block_params: Optional[Mapping[str, Any]] = None,
    ) -> str:
        """
        Renders the block body.

        Without arguments the body sees the invocation scope unchanged;
        otherwise a frame with `context` (or the current value), `data` and
        `block_params` is pushed for the duration of the render.
        """
        return self._render_branch(self.body, context, data, block_params)

    def inverse(
        self,
        context: Any = _CURRENT,
        data: Optional[Mapping[str, Any]] = None,
        block_params: Optional[Mapping[str, Any]] = None,
    ) -> str:
        """Renders the `else` branch, same scoping rules as fn()."""
        return self._render_branch(self.inverse_body, context, data, block_params)

    def _render_branch(self, nodes, context, data, block_params) -> str:
        if not nodes:
            return ""
        scopes = self.scopes
        if context is not _CURRENT or data or block_params:
            value = self.scopes.current if context is _CURRENT else context
            scopes = scopes.push(value, data=data, block_params=block_params)
        return self._render(nodes, scopes)

    def bind_block_params(self, *values: Any) -> Dict[str, Any]:
        """Maps the declared block param names onto values, in order."""
        return dict(zip(self.block_param_names, values))

    def __repr__(self) -> str:
        return f"HelperOptions({self.name!r}, params={len(self.params)}, block={self.is_block})"


__all__ = ["HelperOptions", "HelperFunc", "RenderCallback"]
