"""
Exceptions raised by the template engine.

All expected errors inherit from HbsError so that hosts (the CLI, bindings)
can present them as clean messages without stack traces. Programming errors
and bugs do not inherit from HbsError and propagate with full tracebacks.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import List, Optional


class HbsError(Exception):
    """Base class for all user-facing errors of the engine."""
    pass


class SyntaxErrorKind(enum.Enum):
    """Compile-time failure categories."""
    UNTERMINATED_MARKER = "UnterminatedMarker"
    MISMATCHED_BLOCK = "MismatchedBlock"
    UNEXPECTED_CLOSE = "UnexpectedClose"
    UNCLOSED_BLOCK = "UnclosedBlock"
    UNEXPECTED_ELSE = "UnexpectedElse"
    INVALID_EXPRESSION = "InvalidExpression"


class RenderErrorKind(enum.Enum):
    """Render-time failure categories."""
    UNKNOWN_HELPER = "UnknownHelper"
    UNKNOWN_PARTIAL = "UnknownPartial"
    RECURSION_LIMIT_EXCEEDED = "RecursionLimitExceeded"
    TEMPLATE_NOT_FOUND = "TemplateNotFound"
    HELPER_FAILED = "HelperFailed"


@dataclass(eq=False)
class TemplateSyntaxError(HbsError):
    """
    Malformed template source.

    Carries the position of the offending marker so the caller can point
    at it. The template name is filled in by the registry when known.
    """
    kind: SyntaxErrorKind
    message: str
    line: int = 0
    column: int = 0
    position: int = 0
    template_name: Optional[str] = None

    def __post_init__(self) -> None:
        super().__init__(self.message)

    def __str__(self) -> str:
        where = f" in template '{self.template_name}'" if self.template_name else ""
        return f"{self.kind.value}: {self.message}{where} at {self.line}:{self.column}"


@dataclass(eq=False)
class RenderError(HbsError):
    """Render failure (strict mode, recursion guard, missing template)."""
    kind: RenderErrorKind
    message: str
    name: str = ""
    template_name: Optional[str] = None
    chain: List[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        super().__init__(self.message)

    def __str__(self) -> str:
        msg = f"{self.kind.value}: {self.message}"
        if self.template_name:
            msg += f" (while rendering '{self.template_name}')"
        if self.chain:
            msg += f"; partial chain: {' -> '.join(self.chain)}"
        return msg


class ConfigError(HbsError, ValueError):
    """Invalid engine configuration, with the offending key in the message."""
    pass


__all__ = [
    "HbsError",
    "SyntaxErrorKind",
    "RenderErrorKind",
    "TemplateSyntaxError",
    "RenderError",
    "ConfigError",
]
