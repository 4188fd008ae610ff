"""
Atomic Lua script execution.

A ``Script`` carries its source, the SHA-1 Redis uses to identify it and
the number of leading arguments that are keys.  ``invoke`` tries
``EVALSHA`` first and only ships the full source with ``EVAL`` when
Redis answers ``NOSCRIPT`` (empty script cache, e.g. after a restart).
Running through ``EVAL`` caches the script, so the next ``EVALSHA``
succeeds.

Replies are returned exactly as redis-py decoded them; the caller
decides what shape it expects (see ``ScriptReply``).
"""

from __future__ import annotations

import hashlib
import logging
from dataclasses import dataclass, field
from typing import Any, Sequence

import redis.asyncio as aioredis
from redis.asyncio.client import Pipeline
from redis.exceptions import NoScriptError, ResponseError

from scriptlock.domain.errors import UnexpectedReplyError

logger = logging.getLogger(__name__)

NOSCRIPT_PREFIX = "NOSCRIPT "


def is_noscript(exc: ResponseError) -> bool:
    """True if *exc* means "no script with that SHA is cached".

    redis-py maps the reply to ``NoScriptError`` and strips the error code
    from the message; other clients and proxies may hand back a plain
    ``ResponseError``, so the raw prefix is checked as well.
    """
    return isinstance(exc, NoScriptError) or str(exc).startswith(NOSCRIPT_PREFIX)


@dataclass(frozen=True)
class Script:
    """A Lua script and its remote identity.

    If *key_count* is zero or more it is inserted into every ``EVAL`` /
    ``EVALSHA`` argument list.  A negative *key_count* means the caller
    passes the count itself as the first element of *keys_and_args*.
    """

    key_count: int
    source: str
    sha: str = field(init=False, repr=False)

    def __post_init__(self) -> None:
        digest = hashlib.sha1(self.source.encode("utf-8")).hexdigest()
        object.__setattr__(self, "sha", digest)

    def args(self, spec: str, keys_and_args: Sequence[Any]) -> list[Any]:
        """Build ``[spec, key_count?, keys..., args...]``."""
        if self.key_count < 0:
            return [spec, *keys_and_args]
        return [spec, self.key_count, *keys_and_args]

    # ── Request / response ────────────────────────────────────────

    async def invoke(self, conn: aioredis.Redis, *keys_and_args: Any) -> Any:
        """Evaluate the script, falling back to ``EVAL`` on a cache miss."""
        try:
            return await conn.execute_command(
                "EVALSHA", *self.args(self.sha, keys_and_args)
            )
        except ResponseError as exc:
            if not is_noscript(exc):
                raise
        logger.debug("Script %s not cached; evaluating source", self.sha)
        return await conn.execute_command("EVAL", *self.args(self.source, keys_and_args))

    async def load(self, conn: aioredis.Redis) -> str:
        """Push the source into the script cache without running it."""
        sha = await conn.execute_command("SCRIPT LOAD", self.source)
        if isinstance(sha, bytes):
            sha = sha.decode()
        if sha != self.sha:
            raise UnexpectedReplyError(
                f"SCRIPT LOAD returned {sha!r}, expected {self.sha!r}"
            )
        return sha

    # ── Fire-and-forget (pipelines) ───────────────────────────────

    def send_hash(self, pipe: Pipeline, *keys_and_args: Any) -> Pipeline:
        """Queue ``EVALSHA`` on *pipe*; the script must already be cached."""
        return pipe.execute_command("EVALSHA", *self.args(self.sha, keys_and_args))

    def send(self, pipe: Pipeline, *keys_and_args: Any) -> Pipeline:
        """Queue ``EVAL`` with the full source on *pipe*."""
        return pipe.execute_command("EVAL", *self.args(self.source, keys_and_args))
