"""
Template registry: the compile/render entry points.

Owns the named compiled templates and the user helpers. Mutations are
serialized with a lock; render works on a snapshot of both mappings and
needs no locking, so any number of renders may run concurrently.
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from .config import RenderOptions
from .errors import HbsError, RenderError, RenderErrorKind, TemplateSyntaxError
from .helpers import HelperFunc
from .template.lexer import TemplateLexer
from .template.nodes import CompiledTemplate
from .template.parser import TemplateParser
from .template.renderer import Renderer

logger = logging.getLogger(__name__)

DEFAULT_EXTENSION = ".hbs"


def compile_template(source: str, name: str = "") -> CompiledTemplate:
    """
    Lexes and parses a source string without registering it.

    Raises:
        TemplateSyntaxError: On malformed markers or block structure
    """
    try:
        tokens = TemplateLexer().tokenize(source)
        root = TemplateParser().parse(tokens)
    except TemplateSyntaxError as e:
        if name and e.template_name is None:
            e.template_name = name
        raise
    return CompiledTemplate(name=name, root=root, source_length=len(source.encode("utf-8")))


class TemplateRegistry:
    """
    Named templates (which double as partials) plus user helpers.

    Args:
        options: Default render options for this registry
    """

    def __init__(self, options: Optional[RenderOptions] = None):
        self.options = options or RenderOptions()
        self._templates: Dict[str, CompiledTemplate] = {}
        self._helpers: Dict[str, HelperFunc] = {}
        self._lock = threading.RLock()

        logger.debug("TemplateRegistry initialized")

    # ---- templates ----

    def compile(self, name: str, source: str) -> CompiledTemplate:
        """
        Compiles `source` and stores it under `name`, replacing any previous
        template of that name. On a syntax error nothing is stored and the
        previous registration stays untouched.

        Raises:
            TemplateSyntaxError: On malformed markers or block structure
        """
        template = compile_template(source, name)
        with self._lock:
            self._templates[name] = template
        logger.debug("Compiled template '%s' (%d bytes)", name, template.source_length)
        return template

    def register_partial(self, name: str, source: str) -> CompiledTemplate:
        """Partials are ordinary named templates."""
        return self.compile(name, source)

    def register_template_file(self, name: str, path: Union[str, Path]) -> CompiledTemplate:
        """
        Compiles a template read from a UTF-8 file.

        Raises:
            HbsError: If the file cannot be read
            TemplateSyntaxError: On malformed template source
        """
        path = Path(path)
        try:
            source = path.read_text(encoding="utf-8")
        except OSError as e:
            raise HbsError(f"Cannot read template file {path}: {e}") from e
        return self.compile(name, source)

    def register_templates_directory(
        self,
        directory: Union[str, Path],
        extension: str = DEFAULT_EXTENSION,
    ) -> List[str]:
        """
        Compiles every `*<extension>` file below `directory`.

        Templates are named by their POSIX path relative to the directory
        without the extension (`layouts/base.hbs` → `layouts/base`).

        Returns:
            Names of the registered templates, sorted
        """
        directory = Path(directory)
        if not directory.is_dir():
            raise HbsError(f"Template directory not found: {directory}")

        names: List[str] = []
        for path in sorted(directory.rglob(f"*{extension}")):
            if not path.is_file():
                continue
            rel = path.relative_to(directory).as_posix()
            name = rel[: -len(extension)] if extension else rel
            self.register_template_file(name, path)
            names.append(name)

        logger.debug("Registered %d templates from %s", len(names), directory)
        return names

    def unregister_template(self, name: str) -> None:
        with self._lock:
            self._templates.pop(name, None)

    def clear_templates(self) -> None:
        with self._lock:
            self._templates.clear()

    def has_template(self, name: str) -> bool:
        return name in self._templates

    def get_template(self, name: str) -> Optional[CompiledTemplate]:
        return self._templates.get(name)

    def template_names(self) -> List[str]:
        return sorted(self._templates)

    # ---- helpers ----

    def register_helper(self, name: str, helper: HelperFunc) -> None:
        """Stores a helper; a later registration with the same name wins."""
        if not callable(helper):
            raise TypeError(f"Helper '{name}' must be callable")
        with self._lock:
            self._helpers[name] = helper
        logger.debug("Registered helper '%s'", name)

    def unregister_helper(self, name: str) -> None:
        with self._lock:
            self._helpers.pop(name, None)

    def has_helper(self, name: str) -> bool:
        return name in self._helpers

    # ---- rendering ----

    def renderer(self, options: Optional[RenderOptions] = None) -> Renderer:
        """Creates a renderer over a snapshot of the current templates and helpers."""
        with self._lock:
            templates = dict(self._templates)
            helpers = dict(self._helpers)
        return Renderer(templates, helpers, options or self.options)

    def render(
        self,
        template: Union[str, CompiledTemplate],
        data: Any = None,
        options: Optional[RenderOptions] = None,
    ) -> str:
        """
        Renders a registered template (by name) or a compiled template.

        Raises:
            RenderError: TEMPLATE_NOT_FOUND for an unknown name; strict-mode
                and recursion-limit failures from the renderer
        """
        renderer = self.renderer(options)

        if isinstance(template, CompiledTemplate):
            return renderer.render_template(template, data)

        compiled = renderer.templates.get(template)
        if compiled is None:
            raise RenderError(
                RenderErrorKind.TEMPLATE_NOT_FOUND,
                f"Template '{template}' is not registered",
                name=template,
            )
        return renderer.render_template(compiled, data)

    def render_template(
        self,
        source: str,
        data: Any = None,
        options: Optional[RenderOptions] = None,
    ) -> str:
        """Compiles `source` ad hoc (without registering it) and renders it."""
        return self.render(compile_template(source), data, options)


_default_registry: Optional[TemplateRegistry] = None
_default_lock = threading.Lock()


def get_registry() -> TemplateRegistry:
    """Returns the process-wide default registry, creating it on first use."""
    global _default_registry
    if _default_registry is None:
        with _default_lock:
            if _default_registry is None:
                _default_registry = TemplateRegistry()
    return _default_registry


def reset_registry() -> None:
    """Drops the default registry; the next get_registry() starts fresh."""
    global _default_registry
    with _default_lock:
        _default_registry = None


__all__ = [
    "TemplateRegistry",
    "compile_template",
    "get_registry",
    "reset_registry",
    "DEFAULT_EXTENSION",
]
