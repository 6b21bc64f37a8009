"""
Engine configuration.

RenderOptions is an immutable value handed to the registry and renderer at
construction (and optionally per render call), so differently configured
renderers can coexist in one process. Options can also be loaded from a
YAML file:

    strict_mode: true
    block_fallback: section
    max_partial_depth: 16
    max_depth: 128
    escape: none
    prevent_indent: false
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Callable, Mapping, Optional

from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from .errors import ConfigError
from .template.values import ESCAPE_FUNCTIONS, EscapeFn

logger = logging.getLogger(__name__)

_yaml = YAML(typ="safe")

DEFAULT_MAX_PARTIAL_DEPTH = 32
# Nested blocks and partials combined
DEFAULT_MAX_DEPTH = 64


class BlockFallback(enum.Enum):
    """
    What a block does when its name is neither a helper nor a callable.

    TRUTHY renders body or inverse by `if` truthiness, SECTION follows
    mustache sections (iterate lists, narrow to mappings), IGNORE renders
    nothing.
    """
    TRUTHY = "truthy"
    SECTION = "section"
    IGNORE = "ignore"


@dataclass(frozen=True)
class RenderOptions:
    strict_mode: bool = False
    block_fallback: BlockFallback = BlockFallback.TRUTHY
    max_partial_depth: int = DEFAULT_MAX_PARTIAL_DEPTH
    max_depth: int = DEFAULT_MAX_DEPTH
    escape: str = "html"
    # Overrides `escape` when set
    escape_fn: Optional[Callable[[str], str]] = None
    prevent_indent: bool = False

    def __post_init__(self) -> None:
        if self.escape_fn is None and self.escape not in ESCAPE_FUNCTIONS:
            raise ConfigError(
                f"escape: unknown escape mode '{self.escape}'. "
                f"Available: {', '.join(sorted(ESCAPE_FUNCTIONS))}"
            )
        if self.max_partial_depth < 1:
            raise ConfigError(f"max_partial_depth: must be a positive integer, got {self.max_partial_depth}")
        if self.max_depth < 1:
            raise ConfigError(f"max_depth: must be a positive integer, got {self.max_depth}")

    @property
    def resolved_escape_fn(self) -> EscapeFn:
        return self.escape_fn or ESCAPE_FUNCTIONS[self.escape]

    def with_changes(self, **changes: Any) -> RenderOptions:
        """Returns a copy with the given fields replaced."""
        return replace(self, **changes)


def options_from_mapping(data: Optional[Mapping[str, Any]], base: Optional[RenderOptions] = None) -> RenderOptions:
    """
    Builds RenderOptions from a plain mapping (parsed YAML/JSON).

    Unknown keys and ill-typed values raise ConfigError naming the key.
    """
    options = base or RenderOptions()
    if not data:
        return options
    if not isinstance(data, Mapping):
        raise ConfigError(f"config: expected a mapping, got {type(data).__name__}")

    changes: dict = {}
    for key, value in data.items():
        if key in ("strict_mode", "prevent_indent"):
            if not isinstance(value, bool):
                raise ConfigError(f"{key}: expected a boolean, got {value!r}")
            changes[key] = value
        elif key == "block_fallback":
            try:
                changes[key] = BlockFallback(str(value).lower())
            except ValueError:
                allowed = ", ".join(f.value for f in BlockFallback)
                raise ConfigError(f"block_fallback: unknown value '{value}'. Expected one of: {allowed}")
        elif key in ("max_partial_depth", "max_depth"):
            if isinstance(value, bool) or not isinstance(value, int):
                raise ConfigError(f"{key}: expected an integer, got {value!r}")
            changes[key] = value
        elif key == "escape":
            changes[key] = str(value)
        else:
            raise ConfigError(f"{key}: unknown option")

    return options.with_changes(**changes)


def load_options(path: Path, base: Optional[RenderOptions] = None) -> RenderOptions:
    """
    Loads RenderOptions from a YAML file.

    Raises:
        ConfigError: If the file cannot be read or parsed or holds bad values
    """
    try:
        raw = _yaml.load(path.read_text(encoding="utf-8"))
    except OSError as e:
        raise ConfigError(f"Cannot read config file {path}: {e}") from e
    except YAMLError as e:
        raise ConfigError(f"Invalid YAML in config file {path}: {e}") from e

    options = options_from_mapping(raw, base)
    logger.debug("Loaded render options from %s: %s", path, options)
    return options


__all__ = [
    "BlockFallback",
    "RenderOptions",
    "DEFAULT_MAX_PARTIAL_DEPTH",
    "DEFAULT_MAX_DEPTH",
    "options_from_mapping",
    "load_options",
]
