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
"""Tests for the redis-py store adapters using a stub client."""

from __future__ import annotations

import pytest
from redis.exceptions import NoScriptError, ResponseError

from scriptcache.cache import scripts
from scriptcache.cache.adapters.redis import AsyncRedisStoreAdapter, RedisStoreAdapter
from scriptcache.cache.ports.outbound import AsyncScriptableStore, ScriptableStore
from scriptcache.cache.replies import ReplyKind


class FakeRedis:
    """Records commands; EVALSHA answers NOSCRIPT until the body was sent with EVAL."""

    def __init__(self, eval_result=b"1", eval_error=None) -> None:
        self.commands: list[tuple] = []
        self.known: set[str] = set()
        self.eval_result = eval_result
        self.eval_error = eval_error
        self.closed = False

    def evalsha(self, sha, numkeys, *keys_and_args):
        self.commands.append(("EVALSHA", sha, numkeys, *keys_and_args))
        if sha not in self.known:
            raise NoScriptError("No matching script. Please use EVAL.")
        return self.eval_result

    def eval(self, body, numkeys, *keys_and_args):
        self.commands.append(("EVAL", body, numkeys, *keys_and_args))
        if self.eval_error is not None:
            raise self.eval_error
        self.known.add(scripts.script_digest(body).hex())
        return self.eval_result

    def execute_command(self, *args):
        self.commands.append(args)
        return b"OK"

    def hset(self, key, mapping):
        self.commands.append(("HSET", key, mapping))
        return len(mapping)

    def exists(self, key):
        return 1

    def expire(self, key, seconds):
        return 1

    def ttl(self, key):
        return 42

    def unlink(self, key):
        return 1

    def info(self, section):
        return {"redis_version": "3.2.12"}

    def close(self):
        self.closed = True


class AsyncFakeRedis(FakeRedis):
    async def evalsha(self, sha, numkeys, *keys_and_args):
        return super().evalsha(sha, numkeys, *keys_and_args)

    async def eval(self, body, numkeys, *keys_and_args):
        return super().eval(body, numkeys, *keys_and_args)

    async def info(self, section):
        return super().info(section)

    async def aclose(self):
        self.closed = True


class TestRedisStoreAdapter:
    def test_satisfies_port(self):
        assert isinstance(RedisStoreAdapter(FakeRedis()), ScriptableStore)

    def test_no_script_error_becomes_no_script_reply(self):
        reply = RedisStoreAdapter(FakeRedis()).evalsha(scripts.REMOVE.sha, ["k"], [])
        assert reply.is_error
        assert reply.no_script
        assert reply.value.startswith("NOSCRIPT")

    def test_eval_passes_keys_then_args(self):
        client = FakeRedis()
        reply = RedisStoreAdapter(client).eval_uncached(scripts.SET.body, ["k"], [-1, 60, 60, b"v"])
        assert reply.kind is ReplyKind.SCALAR
        assert client.commands[-1] == ("EVAL", scripts.SET.body, 1, "k", -1, 60, 60, b"v")

    def test_evalsha_after_eval_hits(self):
        client = FakeRedis()
        adapter = RedisStoreAdapter(client)
        adapter.eval_uncached(scripts.REMOVE.body, ["k"], [])
        assert adapter.evalsha(scripts.REMOVE.sha, ["k"], []).as_text() == "1"

    def test_response_error_becomes_error_reply(self):
        client = FakeRedis(eval_error=ResponseError("WRONGTYPE Operation against a key"))
        reply = RedisStoreAdapter(client).eval_uncached(scripts.REMOVE.body, ["k"], [])
        assert reply.is_error
        assert not reply.no_script

    def test_hmset_sends_flat_field_list(self):
        client = FakeRedis()
        assert RedisStoreAdapter(client).hmset("k", {"absexp": -1, "data": b"v"})
        assert client.commands[-1] == ("HMSET", "k", "absexp", -1, "data", b"v")

    def test_plain_commands(self):
        adapter = RedisStoreAdapter(FakeRedis())
        assert adapter.exists("k") is True
        assert adapter.expire("k", 10) is True
        assert adapter.ttl("k") == 42
        assert adapter.unlink("k") == 1
        assert adapter.hset("k", {"data": b"v"}) == 1

    def test_server_version_and_close(self):
        client = FakeRedis()
        adapter = RedisStoreAdapter(client)
        assert adapter.server_version() == "3.2.12"
        adapter.close()
        assert client.closed


class TestAsyncRedisStoreAdapter:
    def test_satisfies_port(self):
        assert isinstance(AsyncRedisStoreAdapter(AsyncFakeRedis()), AsyncScriptableStore)

    @pytest.mark.asyncio
    async def test_no_script_then_eval(self):
        adapter = AsyncRedisStoreAdapter(AsyncFakeRedis())
        assert (await adapter.evalsha(scripts.REFRESH.sha, ["k"], [])).no_script
        assert (await adapter.eval_uncached(scripts.REFRESH.body, ["k"], [])).as_text() == "1"
        assert (await adapter.evalsha(scripts.REFRESH.sha, ["k"], [])).as_text() == "1"

    @pytest.mark.asyncio
    async def test_server_version_and_close(self):
        client = AsyncFakeRedis()
        adapter = AsyncRedisStoreAdapter(client)
        assert await adapter.server_version() == "3.2.12"
        await adapter.close()
        assert client.closed
