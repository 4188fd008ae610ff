"""
Domain value objects.

Patterns used
-------------
- ``ScriptReply`` is a tagged union over the reply shapes a Lua script can
  produce.  The executor never interprets replies; callers wrap the raw
  value and assert the shape they expect with ``as_int`` / ``as_str``.
- ``LockInfo`` is a point-in-time snapshot of a lock key, for diagnostics
  only.  Nothing in the lock path reads it.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from .enums import LockState, ReplyKind
from .errors import UnexpectedReplyError


# ── Script replies ────────────────────────────────────────────────────


@dataclass(frozen=True)
class ScriptReply:
    kind: ReplyKind
    value: Any = None

    @classmethod
    def from_raw(cls, raw: Any) -> ScriptReply:
        """Tag a raw redis-py reply, rejecting anything Redis cannot return."""
        # bool is an int subclass but never a wire reply
        if isinstance(raw, bool):
            raise UnexpectedReplyError(f"Unexpected boolean reply: {raw!r}")
        if raw is None:
            return cls(ReplyKind.NIL)
        if isinstance(raw, int):
            return cls(ReplyKind.INTEGER, raw)
        if isinstance(raw, bytes):
            return cls(ReplyKind.STRING, raw.decode())
        if isinstance(raw, str):
            return cls(ReplyKind.STRING, raw)
        if isinstance(raw, (list, tuple)):
            return cls(ReplyKind.ARRAY, [cls.from_raw(item) for item in raw])
        raise UnexpectedReplyError(
            f"Unsupported reply type {type(raw).__name__}: {raw!r}"
        )

    def as_int(self) -> int:
        if self.kind is not ReplyKind.INTEGER:
            raise UnexpectedReplyError(
                f"Expected an integer reply, got {self.kind.value}: {self.value!r}"
            )
        return self.value

    def as_str(self) -> str:
        if self.kind is not ReplyKind.STRING:
            raise UnexpectedReplyError(
                f"Expected a string reply, got {self.kind.value}: {self.value!r}"
            )
        return self.value


# ── Lock snapshot ─────────────────────────────────────────────────────


@dataclass(frozen=True)
class LockInfo:
    name: str
    state: LockState = LockState.UNLOCKED
    owner: Optional[str] = None
    ttl_seconds: Optional[int] = None

    @property
    def is_held(self) -> bool:
        return self.state is LockState.HELD
