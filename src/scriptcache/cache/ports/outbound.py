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
"""Store ports consumed by the cache engines."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Protocol, runtime_checkable

from scriptcache.cache.replies import Reply

ScriptArg = bytes | str | int


@runtime_checkable
class ScriptableStore(Protocol):
    """Blocking key/value store with server-side scripting.

    Script calls return a :class:`Reply`. Error replies from the server
    (including NOSCRIPT) come back as ``ReplyKind.ERROR``; connection and
    timeout failures raise.
    """

    def exists(self, key: str) -> bool: ...

    def expire(self, key: str, seconds: int) -> bool: ...

    def ttl(self, key: str) -> int: ...

    def unlink(self, key: str) -> int: ...

    def hset(self, key: str, mapping: Mapping[str, ScriptArg]) -> int: ...

    def hmset(self, key: str, mapping: Mapping[str, ScriptArg]) -> bool: ...

    def evalsha(self, sha: str, keys: Sequence[str], args: Sequence[ScriptArg]) -> Reply: ...

    def eval_uncached(self, body: str, keys: Sequence[str], args: Sequence[ScriptArg]) -> Reply: ...

    def server_version(self) -> str: ...

    def close(self) -> None: ...


@runtime_checkable
class AsyncScriptableStore(Protocol):
    """Non-blocking counterpart of :class:`ScriptableStore`."""

    async def exists(self, key: str) -> bool: ...

    async def expire(self, key: str, seconds: int) -> bool: ...

    async def ttl(self, key: str) -> int: ...

    async def unlink(self, key: str) -> int: ...

    async def hset(self, key: str, mapping: Mapping[str, ScriptArg]) -> int: ...

    async def hmset(self, key: str, mapping: Mapping[str, ScriptArg]) -> bool: ...

    async def evalsha(self, sha: str, keys: Sequence[str], args: Sequence[ScriptArg]) -> Reply: ...

    async def eval_uncached(self, body: str, keys: Sequence[str], args: Sequence[ScriptArg]) -> Reply: ...

    async def server_version(self) -> str: ...

    async def close(self) -> None: ...
