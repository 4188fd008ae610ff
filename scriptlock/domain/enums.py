"""Domain enumerations."""

import enum


class LockState(str, enum.Enum):
    UNLOCKED = "UNLOCKED"
    HELD = "HELD"


class ReplyKind(str, enum.Enum):
    """Shapes a Lua script reply can take once decoded by redis-py.

    Error replies never reach this point: redis-py raises them as
    ``ResponseError``.
    """

    INTEGER = "INTEGER"
    STRING = "STRING"
    ARRAY = "ARRAY"
    NIL = "NIL"
