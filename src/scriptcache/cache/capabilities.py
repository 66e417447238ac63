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
"""Server capabilities resolved once per client."""

from __future__ import annotations

import re
from dataclasses import dataclass

from scriptcache.cache.ports.outbound import AsyncScriptableStore, ScriptableStore
from scriptcache.kernel.exceptions import CapabilityNotResolvedException

# Multi-field HSET arrived in Redis 4.0.0
MULTI_FIELD_HSET_VERSION = (4, 0, 0)

_VERSION_RE = re.compile(r"^(\d+)(?:\.(\d+))?(?:\.(\d+))?")


def parse_version(version: str) -> tuple[int, int, int]:
    match = _VERSION_RE.match(version.strip())
    if match is None:
        return (0, 0, 0)
    major, minor, patch = (int(part) if part else 0 for part in match.groups())
    return (major, minor, patch)


@dataclass(frozen=True)
class ServerCapabilities:
    """Capabilities of the target server.

    Constructed unresolved, then replaced by a resolved instance from
    :meth:`detect` / :meth:`detect_async` or :meth:`resolved`. Reading a
    capability from an unresolved instance raises.
    """

    _legacy_hash_set: bool | None = None

    @classmethod
    def resolved(cls, legacy_hash_set: bool) -> ServerCapabilities:
        return cls(_legacy_hash_set=legacy_hash_set)

    @classmethod
    def from_version(cls, version: str) -> ServerCapabilities:
        return cls.resolved(legacy_hash_set=parse_version(version) < MULTI_FIELD_HSET_VERSION)

    @classmethod
    def detect(cls, store: ScriptableStore) -> ServerCapabilities:
        return cls.from_version(store.server_version())

    @classmethod
    async def detect_async(cls, store: AsyncScriptableStore) -> ServerCapabilities:
        return cls.from_version(await store.server_version())

    @property
    def is_resolved(self) -> bool:
        return self._legacy_hash_set is not None

    @property
    def legacy_hash_set(self) -> bool:
        """True when the server only supports the single-field HSET (use HMSET)."""
        if self._legacy_hash_set is None:
            raise CapabilityNotResolvedException(
                "Whether the server supports multi-field HSET has not been resolved yet.",
                code="CAPABILITY_NOT_RESOLVED",
            )
        return self._legacy_hash_set
