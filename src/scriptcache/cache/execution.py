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
"""Script execution strategy for stores behind multi-node proxies.

A proxy may front several backend nodes, each with its own script cache.
With digest-first execution enabled the strategy:

1. invokes the script by digest (EVALSHA), the cheapest call on the wire;
2. if the node answers NOSCRIPT, resends the full body exactly once (EVAL),
   which also registers the script in that node's cache;
3. returns whatever the second attempt produced; exceptions from either
   attempt propagate to the caller.

Each node therefore pays for the full body at most once per cache miss.
Concurrent callers hitting the same cold node may all fall back; EVAL is
idempotent so those calls are not deduplicated.
"""

from __future__ import annotations

from collections.abc import Sequence
from enum import Enum

import structlog

from scriptcache.cache.ports.outbound import AsyncScriptableStore, ScriptableStore, ScriptArg
from scriptcache.cache.replies import Reply
from scriptcache.cache.scripts import ScriptDescriptor

logger = structlog.get_logger(__name__)


class ExecutionStep(Enum):
    BY_DIGEST = "by_digest"
    BY_BODY = "by_body"
    DONE = "done"


class ScriptExecutionStrategy:
    """Runs scripts digest-first with a single body fallback.

    Args:
        digest_first: When ``False`` the body is always sent; correct but
            heavier on bandwidth.
    """

    def __init__(self, digest_first: bool = True) -> None:
        self._digest_first = digest_first

    @property
    def digest_first(self) -> bool:
        return self._digest_first

    def _first_step(self) -> ExecutionStep:
        return ExecutionStep.BY_DIGEST if self._digest_first else ExecutionStep.BY_BODY

    @staticmethod
    def _next_step(step: ExecutionStep, reply: Reply, script: ScriptDescriptor) -> ExecutionStep:
        if step is ExecutionStep.BY_DIGEST and reply.no_script:
            logger.debug("script_not_cached_on_node", script=script.name, sha=script.sha)
            return ExecutionStep.BY_BODY
        return ExecutionStep.DONE

    def execute(
        self,
        store: ScriptableStore,
        script: ScriptDescriptor,
        keys: Sequence[str],
        args: Sequence[ScriptArg],
    ) -> Reply:
        step = self._first_step()
        reply = Reply.nil()
        while step is not ExecutionStep.DONE:
            if step is ExecutionStep.BY_DIGEST:
                reply = store.evalsha(script.sha, keys, args)
            else:
                reply = store.eval_uncached(script.body, keys, args)
            step = self._next_step(step, reply, script)
        return reply

    async def execute_async(
        self,
        store: AsyncScriptableStore,
        script: ScriptDescriptor,
        keys: Sequence[str],
        args: Sequence[ScriptArg],
    ) -> Reply:
        step = self._first_step()
        reply = Reply.nil()
        while step is not ExecutionStep.DONE:
            if step is ExecutionStep.BY_DIGEST:
                reply = await store.evalsha(script.sha, keys, args)
            else:
                reply = await store.eval_uncached(script.body, keys, args)
            step = self._next_step(step, reply, script)
        return reply
