"""
Scope stack used while rendering.

Each frame holds the current context value, the @-data variables set by the
helper that pushed it and its block params. The stack is persistent: push()
returns a new stack and leaves the original untouched, so a helper leaves
its scope simply by dropping the reference.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, Optional, Tuple


@dataclass(frozen=True)
class ScopeFrame:
    """One level of the scope stack."""
    value: Any
    data: Mapping[str, Any] = field(default_factory=dict)
    block_params: Mapping[str, Any] = field(default_factory=dict)


_MISSING = object()


class ScopeStack:
    """Ordered frames, innermost last."""

    __slots__ = ("_frames",)

    def __init__(self, frames: Tuple[ScopeFrame, ...]):
        if not frames:
            raise ValueError("Scope stack needs at least the root frame")
        self._frames = frames

    @classmethod
    def root(cls, value: Any, data: Optional[Mapping[str, Any]] = None) -> ScopeStack:
        """Creates a stack whose only frame is the render data (`@root`)."""
        root_data = {"root": value}
        if data:
            root_data.update(data)
        return cls((ScopeFrame(value=value, data=root_data),))

    def push(
        self,
        value: Any,
        data: Optional[Mapping[str, Any]] = None,
        block_params: Optional[Mapping[str, Any]] = None,
    ) -> ScopeStack:
        """Returns a new stack with one more frame on top."""
        frame = ScopeFrame(value=value, data=dict(data or {}), block_params=dict(block_params or {}))
        return ScopeStack(self._frames + (frame,))

    @property
    def current(self) -> Any:
        return self._frames[-1].value

    @property
    def root_value(self) -> Any:
        return self._frames[0].value

    @property
    def frames(self) -> Tuple[ScopeFrame, ...]:
        return self._frames

    def frame_at(self, depth: int) -> Optional[ScopeFrame]:
        """Frame `depth` levels above the innermost one, None past the root."""
        index = len(self._frames) - 1 - depth
        if index < 0:
            return None
        return self._frames[index]

    def get_data(self, name: str, depth: int = 0) -> Any:
        """
        Looks up an @-variable starting `depth` frames up.

        Data is inherited by inner frames, so the search continues outward
        until a frame defines the name.
        """
        start = len(self._frames) - 1 - depth
        for index in range(start, -1, -1):
            value = self._frames[index].data.get(name, _MISSING)
            if value is not _MISSING:
                return value
        return None

    def find_block_param(self, name: str) -> Tuple[bool, Any]:
        """Returns (found, value) for the innermost block param with this name."""
        for frame in reversed(self._frames):
            if name in frame.block_params:
                return True, frame.block_params[name]
        return False, None

    def __len__(self) -> int:
        return len(self._frames)

    def __repr__(self) -> str:
        return f"ScopeStack(depth={len(self._frames)})"


__all__ = ["ScopeFrame", "ScopeStack"]
