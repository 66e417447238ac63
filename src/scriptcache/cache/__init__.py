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
"""scriptcache cache: atomic, script-backed cache operations."""

from scriptcache.cache.capabilities import ServerCapabilities
from scriptcache.cache.codec import AsyncCodecCache, BytesCodec, CodecCache, Decoded, JsonCodec, StringCodec, ValueCodec
from scriptcache.cache.engine import AsyncScriptCache, ScriptCache, create_key
from scriptcache.cache.execution import ScriptExecutionStrategy
from scriptcache.cache.expiration import (
    ExpirationDefaults,
    ExpirationIntent,
    ExpirationPlan,
    compute_plan,
)
from scriptcache.cache.outcomes import Outcome, OutcomeKind
from scriptcache.cache.ports.outbound import AsyncScriptableStore, ScriptableStore
from scriptcache.cache.replies import Reply, ReplyKind
from scriptcache.cache.scripts import ScriptDescriptor

__all__ = [
    "AsyncCodecCache",
    "AsyncScriptCache",
    "AsyncScriptableStore",
    "BytesCodec",
    "CodecCache",
    "Decoded",
    "ExpirationDefaults",
    "ExpirationIntent",
    "ExpirationPlan",
    "JsonCodec",
    "Outcome",
    "OutcomeKind",
    "Reply",
    "ReplyKind",
    "ScriptCache",
    "ScriptDescriptor",
    "ScriptExecutionStrategy",
    "ScriptableStore",
    "ServerCapabilities",
    "StringCodec",
    "ValueCodec",
    "compute_plan",
    "create_key",
]
