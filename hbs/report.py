"""
Report schema for `hbs check`.
"""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field

from .errors import TemplateSyntaxError


class CheckEntry(BaseModel):
    path: str
    ok: bool
    kind: Optional[str] = None
    error: Optional[str] = None
    line: Optional[int] = None
    column: Optional[int] = None

    @classmethod
    def from_error(cls, path: str, error: TemplateSyntaxError) -> CheckEntry:
        return cls(
            path=path,
            ok=False,
            kind=error.kind.value,
            error=error.message,
            line=error.line,
            column=error.column,
        )


class CheckReport(BaseModel):
    templates: List[CheckEntry] = Field(default_factory=list)

    @property
    def ok(self) -> bool:
        return all(entry.ok for entry in self.templates)

    def to_json_dict(self) -> dict:
        data = self.model_dump(mode="json", exclude_none=True)
        data["ok"] = self.ok
        return data


__all__ = ["CheckEntry", "CheckReport"]
