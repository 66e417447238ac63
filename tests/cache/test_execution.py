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
"""Tests for the digest-first script execution strategy."""

from __future__ import annotations

import pytest

from scriptcache.cache import scripts
from scriptcache.cache.execution import ScriptExecutionStrategy
from scriptcache.cache.replies import Reply


class ScriptedStore:
    """Store stub returning queued replies for digest and body calls."""

    def __init__(self, digest_replies=None, body_replies=None, digest_error=None) -> None:
        self.digest_replies = list(digest_replies or [])
        self.body_replies = list(body_replies or [])
        self.digest_error = digest_error
        self.calls: list[tuple[str, str]] = []

    def evalsha(self, sha, keys, args):
        self.calls.append(("evalsha", sha))
        if self.digest_error is not None:
            raise self.digest_error
        return self.digest_replies.pop(0)

    def eval_uncached(self, body, keys, args):
        self.calls.append(("eval", body))
        return self.body_replies.pop(0)


class AsyncScriptedStore(ScriptedStore):
    async def evalsha(self, sha, keys, args):
        return super().evalsha(sha, keys, args)

    async def eval_uncached(self, body, keys, args):
        return super().eval_uncached(body, keys, args)


NO_SCRIPT = Reply.error("NOSCRIPT No matching script. Please use EVAL.")


class TestScriptExecutionStrategy:
    def test_digest_hit_sends_no_body(self):
        store = ScriptedStore(digest_replies=[Reply.scalar("1")])
        reply = ScriptExecutionStrategy().execute(store, scripts.REMOVE, ["k"], [])
        assert reply.as_text() == "1"
        assert store.calls == [("evalsha", scripts.REMOVE.sha)]

    def test_no_script_falls_back_to_body_once(self):
        store = ScriptedStore(digest_replies=[NO_SCRIPT], body_replies=[Reply.scalar("1")])
        reply = ScriptExecutionStrategy().execute(store, scripts.REMOVE, ["k"], [])
        assert reply.as_text() == "1"
        assert store.calls == [("evalsha", scripts.REMOVE.sha), ("eval", scripts.REMOVE.body)]

    def test_no_script_from_body_is_returned_not_retried(self):
        store = ScriptedStore(digest_replies=[NO_SCRIPT], body_replies=[NO_SCRIPT])
        reply = ScriptExecutionStrategy().execute(store, scripts.REMOVE, ["k"], [])
        assert reply.no_script
        assert len(store.calls) == 2

    def test_other_error_reply_is_not_retried(self):
        store = ScriptedStore(digest_replies=[Reply.error("ERR something")])
        reply = ScriptExecutionStrategy().execute(store, scripts.REMOVE, ["k"], [])
        assert reply.is_error
        assert not reply.no_script
        assert len(store.calls) == 1

    def test_body_only_mode(self):
        store = ScriptedStore(body_replies=[Reply.nil()])
        strategy = ScriptExecutionStrategy(digest_first=False)
        assert not strategy.digest_first
        assert strategy.execute(store, scripts.REFRESH, ["k"], []).is_nil
        assert store.calls == [("eval", scripts.REFRESH.body)]

    def test_exception_propagates(self):
        store = ScriptedStore(digest_error=ConnectionError("down"))
        with pytest.raises(ConnectionError):
            ScriptExecutionStrategy().execute(store, scripts.REMOVE, ["k"], [])
        assert len(store.calls) == 1

    @pytest.mark.asyncio
    async def test_async_fallback(self):
        store = AsyncScriptedStore(digest_replies=[NO_SCRIPT], body_replies=[Reply.scalar("2")])
        reply = await ScriptExecutionStrategy().execute_async(store, scripts.REFRESH, ["k"], [])
        assert reply.as_text() == "2"
        assert [kind for kind, _ in store.calls] == ["evalsha", "eval"]

    @pytest.mark.asyncio
    async def test_async_digest_hit(self):
        store = AsyncScriptedStore(digest_replies=[Reply.nil()])
        reply = await ScriptExecutionStrategy().execute_async(store, scripts.GET_AND_REFRESH, ["k"], ["1"])
        assert reply.is_nil
        assert len(store.calls) == 1
