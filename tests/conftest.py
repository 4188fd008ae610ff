"""
Shared test fixtures.

``FakeRedis`` is an in-memory stand-in for ``redis.asyncio.Redis`` so the
lock and script tests run without a Redis server.  It implements just the
commands this package sends, keeps its own clock for key expiry, and
models the server-side script cache: ``EVALSHA`` raises ``NoScriptError``
until the script has been ``EVAL``-ed or ``SCRIPT LOAD``-ed.

``FakeRedis`` cannot run Lua, so each script source is registered with a
Python function that does the same thing.  Every command handler runs
without awaiting in the middle, which makes each one atomic with respect
to other coroutines, as a single-threaded Redis is.

``lua_redis`` is a ``fakeredis`` client whose server runs the actual Lua
sources, for tests that must exercise the scripts themselves.
"""

from __future__ import annotations

import asyncio
import hashlib
import math
from typing import Any, Callable, Optional

import fakeredis
import pytest
import pytest_asyncio
from redis.exceptions import NoScriptError, ResponseError

from scriptlock.infrastructure.locks import UNLOCK_SCRIPT


ScriptFunc = Callable[["FakeRedis", list, list], Any]


class FakePipeline:
    """Buffers commands until ``execute``, like a non-transactional pipeline."""

    def __init__(self, store: "FakeRedis"):
        self.store = store
        self.command_stack: list[tuple] = []

    def execute_command(self, *args):
        self.command_stack.append(args)
        return self

    async def execute(self) -> list:
        stack, self.command_stack = self.command_stack, []
        return [await self.store.execute_command(*args) for args in stack]


class FakeRedis:
    def __init__(self):
        self.now = 0.0
        self.data: dict[str, tuple[str, Optional[float]]] = {}
        self.scripts: dict[str, str] = {}  # sha -> source
        self.implementations: dict[str, ScriptFunc] = {}  # source -> func
        self.calls: list[tuple] = []

    # ── Test controls ─────────────────────────────────────────────

    def advance(self, seconds: float) -> None:
        self.now += seconds

    def register_script(self, source: str, func: ScriptFunc) -> None:
        self.implementations[source] = func

    def flush_scripts(self) -> None:
        self.scripts.clear()

    def commands(self) -> list[str]:
        return [call[0] for call in self.calls]

    # ── Keyspace ──────────────────────────────────────────────────

    def _live(self, key: str) -> Optional[str]:
        entry = self.data.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if expires_at is not None and expires_at <= self.now:
            del self.data[key]
            return None
        return value

    def _delete(self, key: str) -> int:
        if self._live(key) is None:
            return 0
        del self.data[key]
        return 1

    async def set(self, key, value, nx=False, ex=None):
        await asyncio.sleep(0)
        self.calls.append(("SET", key, value, nx, ex))
        if nx and self._live(key) is not None:
            return None
        self.data[key] = (value, self.now + ex if ex is not None else None)
        return True

    async def get(self, key):
        await asyncio.sleep(0)
        self.calls.append(("GET", key))
        return self._live(key)

    async def ttl(self, key):
        await asyncio.sleep(0)
        self.calls.append(("TTL", key))
        if self._live(key) is None:
            return -2
        expires_at = self.data[key][1]
        if expires_at is None:
            return -1
        return math.ceil(expires_at - self.now)

    async def delete(self, *keys):
        await asyncio.sleep(0)
        self.calls.append(("DEL", *keys))
        return sum(self._delete(key) for key in keys)

    async def ping(self):
        await asyncio.sleep(0)
        self.calls.append(("PING",))
        return True

    def pipeline(self) -> FakePipeline:
        return FakePipeline(self)

    # ── Scripting ─────────────────────────────────────────────────

    async def execute_command(self, *args):
        await asyncio.sleep(0)
        self.calls.append(args)
        command = args[0]
        if command == "EVALSHA":
            source = self.scripts.get(args[1])
            if source is None:
                raise NoScriptError("No matching script. Please use EVAL.")
            return self._run(source, args[2:])
        if command == "EVAL":
            source = args[1]
            self.scripts[hashlib.sha1(source.encode()).hexdigest()] = source
            return self._run(source, args[2:])
        if command == "SCRIPT LOAD":
            sha = hashlib.sha1(args[1].encode()).hexdigest()
            self.scripts[sha] = args[1]
            return sha
        if command == "SCRIPT FLUSH":
            self.flush_scripts()
            return True
        raise ResponseError(f"ERR unknown command '{command}'")

    def _run(self, source: str, rest: tuple):
        func = self.implementations.get(source)
        if func is None:
            raise ResponseError("ERR Error compiling script (fake has no implementation)")
        numkeys = int(rest[0])
        keys = list(rest[1 : 1 + numkeys])
        argv = list(rest[1 + numkeys :])
        return func(self, keys, argv)


def unlock_impl(store: FakeRedis, keys: list, argv: list) -> int:
    if store._live(keys[0]) == argv[0]:
        return store._delete(keys[0])
    return 0


# ── Fixtures ──────────────────────────────────────────────────────────


@pytest.fixture
def fake_redis() -> FakeRedis:
    """An empty store that knows how to run the unlock script."""
    store = FakeRedis()
    store.register_script(UNLOCK_SCRIPT.source, unlock_impl)
    return store


@pytest_asyncio.fixture
async def lua_redis():
    """A fakeredis client with its own server; scripts run on a real Lua engine."""
    client = fakeredis.FakeAsyncRedis(server=fakeredis.FakeServer(), decode_responses=True)
    yield client
    await client.aclose()
