"""
hbs: a Handlebars-style template compilation and rendering engine.

Two operations form the boundary used by hosts:

    compile(name, source)          -> CompiledTemplate
    render(name_or_template, data) -> str

The module-level functions work on a process-wide default registry;
create a TemplateRegistry for isolated template sets or configurations.
"""

from __future__ import annotations

from typing import Any, Optional, Union

from .config import BlockFallback, RenderOptions, load_options
from .errors import (
    ConfigError,
    HbsError,
    RenderError,
    RenderErrorKind,
    SyntaxErrorKind,
    TemplateSyntaxError,
)
from .helpers import HelperFunc, HelperOptions
from .registry import TemplateRegistry, compile_template, get_registry
from .template.nodes import CompiledTemplate
from .template.values import SafeString


def compile(name: str, source: str) -> CompiledTemplate:
    """Compiles and registers a template in the default registry."""
    return get_registry().compile(name, source)


def render(
    template: Union[str, CompiledTemplate],
    data: Any = None,
    options: Optional[RenderOptions] = None,
) -> str:
    """Renders a template of the default registry."""
    return get_registry().render(template, data, options)


def register_helper(name: str, helper: HelperFunc) -> None:
    """Registers a helper in the default registry."""
    get_registry().register_helper(name, helper)


__all__ = [
    "compile",
    "render",
    "register_helper",
    "compile_template",
    "get_registry",
    "TemplateRegistry",
    "CompiledTemplate",
    "RenderOptions",
    "BlockFallback",
    "load_options",
    "HelperOptions",
    "HelperFunc",
    "SafeString",
    "HbsError",
    "TemplateSyntaxError",
    "SyntaxErrorKind",
    "RenderError",
    "RenderErrorKind",
    "ConfigError",
]
