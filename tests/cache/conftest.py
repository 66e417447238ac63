# Copyright 2026 Firefly Software Solutions Inc.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
"""Shared fixtures: a fake clock and an in-memory store that emulates the cache scripts."""

from __future__ import annotations

import asyncio
import math
import threading
from collections.abc import Callable, Mapping, Sequence
from datetime import datetime, timedelta, timezone
from typing import Any

import pytest

from scriptcache.cache import scripts
from scriptcache.cache.replies import Reply

NO_SCRIPT_MESSAGE = "NOSCRIPT No matching script. Please use EVAL."


class FakeClock:
    """Injectable clock that only moves when told to."""

    def __init__(self, start: datetime | None = None) -> None:
        self._now = start or datetime(2026, 1, 1, 12, 0, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self._now

    def timestamp(self) -> float:
        return self._now.timestamp()

    def advance(self, seconds: float) -> None:
        self._now += timedelta(seconds=seconds)


def _to_bytes(value: Any) -> bytes:
    if isinstance(value, bytes):
        return value
    return str(value).encode("utf-8")


class FakeScriptStore:
    """In-memory ScriptableStore emulating one backend node.

    Each known script body is executed by a Python function with the same
    semantics as the Lua script. The node keeps its own script cache, so
    EVALSHA of a script never sent with EVAL answers NOSCRIPT.
    """

    def __init__(self, clock: FakeClock, version: str = "7.2.4", preloaded: bool = False) -> None:
        self.clock = clock
        self.version = version
        self.hashes: dict[str, dict[str, bytes]] = {}
        self.expires_at: dict[str, float] = {}
        self.script_cache: set[str] = {s.sha for s in scripts.ALL_SCRIPTS} if preloaded else set()
        self.calls: list[tuple[str, str]] = []
        self.fail_with: BaseException | None = None
        self.closed = False
        self._lock = threading.Lock()
        self._handlers: dict[str, Callable[[str, list[bytes]], Any]] = {
            scripts.SET.sha: self._set,
            scripts.SET_LEGACY.sha: self._set,
            scripts.CONDITIONAL_SET.sha: self._conditional_set,
            scripts.CONDITIONAL_SET_LEGACY.sha: self._conditional_set,
            scripts.GET_AND_REFRESH.sha: self._get_and_refresh,
            scripts.REFRESH.sha: self._refresh,
            scripts.REMOVE.sha: self._remove,
        }
        self._names = {s.sha: s.name for s in scripts.ALL_SCRIPTS}

    # -- store helpers -------------------------------------------------------

    def _purge(self, key: str) -> None:
        deadline = self.expires_at.get(key)
        if deadline is not None and deadline <= self.clock.timestamp():
            self.hashes.pop(key, None)
            self.expires_at.pop(key, None)

    def _exists(self, key: str) -> bool:
        self._purge(key)
        return key in self.hashes

    def _expire(self, key: str, seconds: int) -> bool:
        if not self._exists(key):
            return False
        if seconds <= 0:
            self.hashes.pop(key, None)
            self.expires_at.pop(key, None)
        else:
            self.expires_at[key] = self.clock.timestamp() + seconds
        return True

    def _apply_sliding_ttl(self, key: str, absexp: int, sldexp: int) -> None:
        exp: int | None = sldexp
        if absexp != -1:
            relexp = absexp - int(self.clock.timestamp())
            if relexp <= 0:
                exp = None
            elif relexp < sldexp:
                exp = relexp
        if exp is not None:
            self._expire(key, exp)

    def _check_failure(self) -> None:
        if self.fail_with is not None:
            raise self.fail_with

    # -- script emulation ----------------------------------------------------

    def _write(self, key: str, args: list[bytes]) -> bytes:
        absexp, sldexp, ttl, data = args
        self._purge(key)
        self.hashes.setdefault(key, {}).update({"absexp": absexp, "sldexp": sldexp, "data": data})
        if ttl != b"-1":
            self._expire(key, int(ttl))
        return b"1"

    def _set(self, key: str, args: list[bytes]) -> bytes:
        return self._write(key, args)

    def _conditional_set(self, key: str, args: list[bytes]) -> bytes:
        if self._exists(key):
            return b"0"
        return self._write(key, args)

    def _get_and_refresh(self, key: str, args: list[bytes]) -> bytes | None:
        if not self._exists(key):
            return None
        fields = self.hashes[key]
        sldexp = int(fields["sldexp"])
        if args[0] == b"1" and sldexp != -1:
            self._apply_sliding_ttl(key, int(fields["absexp"]), sldexp)
        return fields["data"]

    def _refresh(self, key: str, args: list[bytes]) -> bytes | None:
        if not self._exists(key):
            return None
        fields = self.hashes[key]
        sldexp = int(fields["sldexp"])
        if sldexp == -1:
            return b"2"
        self._apply_sliding_ttl(key, int(fields["absexp"]), sldexp)
        return b"1"

    def _remove(self, key: str, args: list[bytes]) -> bytes | None:
        if not self._exists(key):
            return None
        del self.hashes[key]
        self.expires_at.pop(key, None)
        return b"1"

    def _run(self, sha: str, keys: Sequence[str], args: Sequence[Any]) -> Reply:
        with self._lock:
            raw = self._handlers[sha](keys[0], [_to_bytes(a) for a in args])
        return Reply.from_raw(raw)

    # -- ScriptableStore -----------------------------------------------------

    def exists(self, key: str) -> bool:
        return self._exists(key)

    def expire(self, key: str, seconds: int) -> bool:
        return self._expire(key, seconds)

    def ttl(self, key: str) -> int:
        if not self._exists(key):
            return -2
        deadline = self.expires_at.get(key)
        if deadline is None:
            return -1
        return math.ceil(deadline - self.clock.timestamp())

    def unlink(self, key: str) -> int:
        return 1 if self._remove(key, []) is not None else 0

    def hset(self, key: str, mapping: Mapping[str, Any]) -> int:
        target = self.hashes.setdefault(key, {})
        added = sum(1 for field in mapping if field not in target)
        target.update({field: _to_bytes(value) for field, value in mapping.items()})
        return added

    def hmset(self, key: str, mapping: Mapping[str, Any]) -> bool:
        self.hset(key, mapping)
        return True

    def evalsha(self, sha: str, keys: Sequence[str], args: Sequence[Any]) -> Reply:
        self.calls.append(("evalsha", self._names.get(sha, sha)))
        self._check_failure()
        if sha not in self.script_cache:
            return Reply.error(NO_SCRIPT_MESSAGE)
        return self._run(sha, keys, args)

    def eval_uncached(self, body: str, keys: Sequence[str], args: Sequence[Any]) -> Reply:
        sha = scripts.script_digest(body).hex()
        self.calls.append(("eval", self._names.get(sha, sha)))
        self._check_failure()
        self.script_cache.add(sha)
        return self._run(sha, keys, args)

    def server_version(self) -> str:
        return self.version

    def close(self) -> None:
        self.closed = True


class AsyncFakeScriptStore:
    """AsyncScriptableStore view over a :class:`FakeScriptStore`.

    Yields to the event loop before each script call so concurrent callers
    interleave at the network boundary.
    """

    def __init__(self, inner: FakeScriptStore) -> None:
        self.inner = inner

    async def exists(self, key: str) -> bool:
        return self.inner.exists(key)

    async def expire(self, key: str, seconds: int) -> bool:
        return self.inner.expire(key, seconds)

    async def ttl(self, key: str) -> int:
        return self.inner.ttl(key)

    async def unlink(self, key: str) -> int:
        return self.inner.unlink(key)

    async def hset(self, key: str, mapping: Mapping[str, Any]) -> int:
        return self.inner.hset(key, mapping)

    async def hmset(self, key: str, mapping: Mapping[str, Any]) -> bool:
        return self.inner.hmset(key, mapping)

    async def evalsha(self, sha: str, keys: Sequence[str], args: Sequence[Any]) -> Reply:
        await asyncio.sleep(0)
        return self.inner.evalsha(sha, keys, args)

    async def eval_uncached(self, body: str, keys: Sequence[str], args: Sequence[Any]) -> Reply:
        await asyncio.sleep(0)
        return self.inner.eval_uncached(body, keys, args)

    async def server_version(self) -> str:
        return self.inner.server_version()

    async def close(self) -> None:
        self.inner.close()


class RecordingLogger:
    """Log sink stub capturing structlog-style calls."""

    def __init__(self) -> None:
        self.events: list[tuple[str, str, dict[str, Any]]] = []

    def _record(self, level: str, event: str, **kwargs: Any) -> None:
        self.events.append((level, event, kwargs))

    def debug(self, event: str, **kwargs: Any) -> None:
        self._record("debug", event, **kwargs)

    def info(self, event: str, **kwargs: Any) -> None:
        self._record("info", event, **kwargs)

    def warning(self, event: str, **kwargs: Any) -> None:
        self._record("warning", event, **kwargs)

    def error(self, event: str, **kwargs: Any) -> None:
        self._record("error", event, **kwargs)

    def of_level(self, level: str) -> list[tuple[str, dict[str, Any]]]:
        return [(event, kwargs) for lvl, event, kwargs in self.events if lvl == level]


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store(clock: FakeClock) -> FakeScriptStore:
    return FakeScriptStore(clock)


@pytest.fixture
def async_store(store: FakeScriptStore) -> AsyncFakeScriptStore:
    return AsyncFakeScriptStore(store)


@pytest.fixture
def log_sink() -> RecordingLogger:
    return RecordingLogger()
