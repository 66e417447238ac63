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
"""Value codecs and typed wrappers around the byte-level engines."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Generic, Protocol, TypeVar, runtime_checkable

import structlog

from scriptcache.cache.engine import AsyncScriptCache, ScriptCache
from scriptcache.cache.expiration import ExpirationIntent
from scriptcache.cache.outcomes import Outcome

logger = structlog.get_logger(__name__)

V = TypeVar("V")


@runtime_checkable
class ValueCodec(Protocol[V]):
    """Transforms values to and from the bytes stored in the cache."""

    def encode(self, value: V) -> bytes: ...

    def decode(self, data: bytes) -> V: ...


class BytesCodec:
    def encode(self, value: bytes) -> bytes:
        return bytes(value)

    def decode(self, data: bytes) -> bytes:
        return data


class StringCodec:
    """UTF-8 text."""

    def encode(self, value: str) -> bytes:
        return value.encode("utf-8")

    def decode(self, data: bytes) -> str:
        return data.decode("utf-8")


class JsonCodec:
    """JSON-serialized values, so any JSON-compatible object can be cached."""

    def encode(self, value: Any) -> bytes:
        return json.dumps(value, separators=(",", ":")).encode("utf-8")

    def decode(self, data: bytes) -> Any:
        return json.loads(data)


@dataclass(frozen=True)
class Decoded(Generic[V]):
    """An outcome together with the decoded value of a successful Get."""

    outcome: Outcome
    value: V | None = None


class _CodecCacheBase(Generic[V]):
    def __init__(self, codec: ValueCodec[V], cached_type: type | None = None) -> None:
        self._codec = codec
        self._cached_type = cached_type

    def _intent(self, engine: ScriptCache | AsyncScriptCache, intent: ExpirationIntent | None) -> ExpirationIntent | None:
        if intent is not None or engine.expiration_defaults is None:
            return intent
        return engine.expiration_defaults.intent_for(self._cached_type)

    def _decode(self, outcome: Outcome) -> Decoded[V]:
        if not outcome.is_success or outcome.value is None:
            return Decoded(outcome)
        try:
            return Decoded(outcome, self._codec.decode(outcome.value))
        except (ValueError, TypeError) as exc:
            logger.warning("cached_value_decode_failed", key=outcome.key, error=str(exc))
            return Decoded(Outcome.unexpected(outcome.key, f"Failed to decode cached value: {exc}", outcome.reply))


class CodecCache(_CodecCacheBase[V]):
    """Typed facade over :class:`ScriptCache`.

    When no intent is passed, the engine's per-type expiration defaults for
    ``cached_type`` apply.
    """

    def __init__(self, engine: ScriptCache, codec: ValueCodec[V], cached_type: type | None = None) -> None:
        super().__init__(codec, cached_type)
        self._engine = engine

    def set(self, key: str, value: V, intent: ExpirationIntent | None = None, error_if_exists: bool = False) -> Outcome:
        return self._engine.set(key, self._codec.encode(value), self._intent(self._engine, intent), error_if_exists)

    def get(self, key: str, refresh: bool = True) -> Decoded[V]:
        return self._decode(self._engine.get(key, refresh))


class AsyncCodecCache(_CodecCacheBase[V]):
    """Typed facade over :class:`AsyncScriptCache`."""

    def __init__(self, engine: AsyncScriptCache, codec: ValueCodec[V], cached_type: type | None = None) -> None:
        super().__init__(codec, cached_type)
        self._engine = engine

    async def set(
        self, key: str, value: V, intent: ExpirationIntent | None = None, error_if_exists: bool = False
    ) -> Outcome:
        return await self._engine.set(
            key, self._codec.encode(value), self._intent(self._engine, intent), error_if_exists
        )

    async def get(self, key: str, refresh: bool = True) -> Decoded[V]:
        return self._decode(await self._engine.get(key, refresh))
