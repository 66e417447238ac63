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
"""Redis-backed store adapters."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any, cast

from redis.exceptions import NoScriptError, ResponseError

from scriptcache.cache.ports.outbound import ScriptArg
from scriptcache.cache.replies import NO_SCRIPT_PREFIX, Reply


def _error_reply(exc: ResponseError) -> Reply:
    # redis-py strips the error prefix from NoScriptError messages
    if isinstance(exc, NoScriptError):
        return Reply.error(f"{NO_SCRIPT_PREFIX} {exc}")
    return Reply.error(str(exc))


def _flatten(mapping: Mapping[str, ScriptArg]) -> list[ScriptArg]:
    flat: list[ScriptArg] = []
    for field, value in mapping.items():
        flat.extend((field, value))
    return flat


def _version_from_info(info: Mapping[str, Any]) -> str:
    return str(info.get("redis_version", "0.0.0"))


class RedisStoreAdapter:
    """Store adapter that delegates to a ``redis.Redis``-like client.

    The client should be created with ``decode_responses=False`` so payloads
    come back as bytes.
    """

    def __init__(self, client: Any) -> None:
        self._client = client

    def exists(self, key: str) -> bool:
        return cast(bool, self._client.exists(key) > 0)

    def expire(self, key: str, seconds: int) -> bool:
        return bool(self._client.expire(key, seconds))

    def ttl(self, key: str) -> int:
        return int(self._client.ttl(key))

    def unlink(self, key: str) -> int:
        return int(self._client.unlink(key))

    def hset(self, key: str, mapping: Mapping[str, ScriptArg]) -> int:
        return int(self._client.hset(key, mapping=dict(mapping)))

    def hmset(self, key: str, mapping: Mapping[str, ScriptArg]) -> bool:
        """Legacy multi-field hash write, for servers older than 4.0."""
        return bool(self._client.execute_command("HMSET", key, *_flatten(mapping)))

    def evalsha(self, sha: str, keys: Sequence[str], args: Sequence[ScriptArg]) -> Reply:
        try:
            raw = self._client.evalsha(sha, len(keys), *keys, *args)
        except ResponseError as exc:
            return _error_reply(exc)
        return Reply.from_raw(raw)

    def eval_uncached(self, body: str, keys: Sequence[str], args: Sequence[ScriptArg]) -> Reply:
        """Send the full script body with EVAL, bypassing any client-side script cache."""
        try:
            raw = self._client.eval(body, len(keys), *keys, *args)
        except ResponseError as exc:
            return _error_reply(exc)
        return Reply.from_raw(raw)

    def server_version(self) -> str:
        return _version_from_info(self._client.info("server"))

    def close(self) -> None:
        """Close the underlying Redis connection."""
        self._client.close()


class AsyncRedisStoreAdapter:
    """Store adapter that delegates to a ``redis.asyncio.Redis``-like client."""

    def __init__(self, client: Any) -> None:
        self._client = client

    async def exists(self, key: str) -> bool:
        count = await self._client.exists(key)
        return cast(bool, count > 0)

    async def expire(self, key: str, seconds: int) -> bool:
        return bool(await self._client.expire(key, seconds))

    async def ttl(self, key: str) -> int:
        return int(await self._client.ttl(key))

    async def unlink(self, key: str) -> int:
        return int(await self._client.unlink(key))

    async def hset(self, key: str, mapping: Mapping[str, ScriptArg]) -> int:
        return int(await self._client.hset(key, mapping=dict(mapping)))

    async def hmset(self, key: str, mapping: Mapping[str, ScriptArg]) -> bool:
        return bool(await self._client.execute_command("HMSET", key, *_flatten(mapping)))

    async def evalsha(self, sha: str, keys: Sequence[str], args: Sequence[ScriptArg]) -> Reply:
        try:
            raw = await self._client.evalsha(sha, len(keys), *keys, *args)
        except ResponseError as exc:
            return _error_reply(exc)
        return Reply.from_raw(raw)

    async def eval_uncached(self, body: str, keys: Sequence[str], args: Sequence[ScriptArg]) -> Reply:
        try:
            raw = await self._client.eval(body, len(keys), *keys, *args)
        except ResponseError as exc:
            return _error_reply(exc)
        return Reply.from_raw(raw)

    async def server_version(self) -> str:
        return _version_from_info(await self._client.info("server"))

    async def close(self) -> None:
        """Close the underlying Redis connection."""
        await self._client.aclose()
