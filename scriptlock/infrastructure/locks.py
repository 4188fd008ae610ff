"""
Redis-based distributed lock.

Acquire is a single ``SET key owner EX ttl NX``, which Redis already
executes atomically.  Release has to compare the stored owner before
deleting, so it runs as one Lua script through ``UNLOCK_SCRIPT``; a
``GET`` followed by ``DEL`` would let a stale holder delete a lock that
was re-acquired by someone else after its lease expired.

Nothing here keeps lock state in process.  Every answer comes from Redis.
"""

from __future__ import annotations

import logging
import uuid
from typing import Optional

import redis.asyncio as aioredis

from scriptlock.config import settings
from scriptlock.domain.entities import LockInfo, ScriptReply
from scriptlock.domain.enums import LockState
from scriptlock.domain.errors import (
    InvalidLeaseError,
    LockNotAcquiredError,
    UnexpectedReplyError,
)
from scriptlock.infrastructure.scripts import Script

logger = logging.getLogger(__name__)

# KEYS[1] - lock key, ARGV[1] - owner token
# returns 1 if the key held the token and was deleted, otherwise 0
UNLOCK_SCRIPT = Script(
    1,
    """
local value = redis.call("get", KEYS[1])
if value == ARGV[1] then
    return redis.call("del", KEYS[1])
end
return 0
""",
)


def _lease(ttl_seconds: Optional[int]) -> int:
    ttl = settings.lock_ttl_seconds if ttl_seconds is None else ttl_seconds
    if isinstance(ttl, bool) or not isinstance(ttl, int) or ttl < 1:
        raise InvalidLeaseError(f"Lease must be a whole number of seconds >= 1, got {ttl!r}")
    return ttl


# ── Primitive ─────────────────────────────────────────────────────────


async def acquire_lock(
    conn: aioredis.Redis,
    name: str,
    owner: str,
    ttl_seconds: Optional[int] = None,
) -> bool:
    """Try once to take *name* for *owner*.  Returns False if already held."""
    ttl = _lease(ttl_seconds)
    acquired = bool(await conn.set(name, owner, nx=True, ex=ttl))
    logger.debug("acquire %s ttl=%ds -> %s", name, ttl, acquired)
    return acquired


async def release_lock(conn: aioredis.Redis, name: str, owner: str) -> bool:
    """Delete *name* only if *owner* still holds it.

    Returns False when the lock is held by someone else or not held at
    all.  Raises ``UnexpectedReplyError`` if the script answers with
    anything other than 0 or 1.
    """
    raw = await UNLOCK_SCRIPT.invoke(conn, name, owner)
    deleted = ScriptReply.from_raw(raw).as_int()
    if deleted not in (0, 1):
        raise UnexpectedReplyError(f"Unlock script returned {deleted}")
    logger.debug("release %s -> %s", name, bool(deleted))
    return deleted == 1


async def inspect_lock(conn: aioredis.Redis, name: str) -> LockInfo:
    """Snapshot *name* with ``GET`` + ``TTL``.  Not atomic; diagnostics only."""
    owner = await conn.get(name)
    if owner is None:
        return LockInfo(name=name)
    if isinstance(owner, bytes):
        owner = owner.decode()
    ttl = await conn.ttl(name)
    # -2: expired between the two calls
    if ttl == -2:
        return LockInfo(name=name)
    return LockInfo(
        name=name,
        state=LockState.HELD,
        owner=owner,
        ttl_seconds=ttl if ttl >= 0 else None,
    )


# ── Convenience wrapper ───────────────────────────────────────────────


class DistributedLock:
    """A named lock bound to one owner token.

    The token is generated once per instance, so two instances never
    share ownership even for the same *key*.
    """

    def __init__(
        self,
        client: aioredis.Redis,
        key: str,
        ttl_seconds: Optional[int] = None,
        token: Optional[str] = None,
    ):
        self.redis = client
        self.key = f"{settings.lock_key_prefix}{key}"
        self.ttl = _lease(ttl_seconds)
        self.token = token or str(uuid.uuid4())

    async def acquire(self) -> bool:
        """Try to acquire. Returns True on success."""
        return await acquire_lock(self.redis, self.key, self.token, self.ttl)

    async def release(self) -> bool:
        """Release only if we still own the lock (atomic via Lua)."""
        return await release_lock(self.redis, self.key, self.token)

    async def info(self) -> LockInfo:
        return await inspect_lock(self.redis, self.key)

    # context-manager support
    async def __aenter__(self):
        acquired = await self.acquire()
        if not acquired:
            raise LockNotAcquiredError(f"Could not acquire lock: {self.key}")
        return self

    async def __aexit__(self, *args):
        if not await self.release():
            logger.warning("Lock %s expired before release", self.key)
