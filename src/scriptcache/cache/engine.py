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
"""Cache operation engines.

:class:`ScriptCache` (blocking) and :class:`AsyncScriptCache` (asyncio) run
Set, Get, Refresh and Remove as single atomic scripts and turn the raw
replies into :class:`~scriptcache.cache.outcomes.Outcome` values. Both share
request planning and reply interpretation through :class:`_CacheEngineBase`
and hold no per-call state.

Only misuse raises (an invalid expiration, unresolved server capabilities).
Store exceptions are caught here and returned as ``TRANSPORT_ERROR``
outcomes; ``asyncio.CancelledError`` is not an ``Exception`` and propagates.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timezone
from typing import Any

import structlog

from scriptcache.cache import scripts
from scriptcache.cache.capabilities import ServerCapabilities
from scriptcache.cache.execution import ScriptExecutionStrategy
from scriptcache.cache.expiration import ExpirationDefaults, ExpirationIntent, compute_plan
from scriptcache.cache.outcomes import Outcome
from scriptcache.cache.ports.outbound import AsyncScriptableStore, ScriptableStore, ScriptArg
from scriptcache.cache.replies import Reply, ReplyKind
from scriptcache.cache.scripts import ScriptDescriptor
from scriptcache.kernel.exceptions import StoreReplyException

Clock = Callable[[], datetime]

_SET_EXPECTED = f"{scripts.SUCCESS_REPLY!r} or {scripts.KEY_EXISTS_REPLY!r}"
_GET_EXPECTED = "payload bytes or nil"
_REFRESH_EXPECTED = f"{scripts.SUCCESS_REPLY!r}, {scripts.NO_SLIDING_EXPIRATION_REPLY!r} or nil"
_REMOVE_EXPECTED = f"{scripts.SUCCESS_REPLY!r} or nil"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def create_key(*parts: object) -> str:
    """Join key parts in a ``part:part:part`` manner."""
    return ":".join(str(part) for part in parts)


def unexpected_message(expected: str | None, actual: str | None, actual_type: str) -> str:
    message = f"Unexpected value returned from script execution. Got {actual_type} type."
    if expected is not None:
        message += f" Expected {expected}."
    if actual is not None:
        message += f" Got {actual!r} value."
    return message


class _CacheEngineBase:
    """Planning and reply interpretation shared by both engines."""

    def __init__(
        self,
        *,
        capabilities: ServerCapabilities,
        prefix: str = "",
        strategy: ScriptExecutionStrategy | None = None,
        expiration_defaults: ExpirationDefaults | None = None,
        clock: Clock | None = None,
        logger: Any = None,
    ) -> None:
        self._capabilities = capabilities
        self._prefix = prefix
        self._strategy = strategy or ScriptExecutionStrategy()
        self._expiration_defaults = expiration_defaults.sealed() if expiration_defaults is not None else None
        self._clock = clock or utc_now
        self._logger = logger if logger is not None else structlog.get_logger("scriptcache.cache.engine")

    @property
    def prefix(self) -> str:
        return self._prefix

    @property
    def capabilities(self) -> ServerCapabilities:
        return self._capabilities

    @property
    def strategy(self) -> ScriptExecutionStrategy:
        return self._strategy

    @property
    def expiration_defaults(self) -> ExpirationDefaults | None:
        return self._expiration_defaults

    def prefixed_key(self, key: str) -> str:
        return f"{self._prefix}{key}"

    # -- request planning ---------------------------------------------------

    def _plan_set(
        self,
        value: bytes,
        intent: ExpirationIntent | None,
        error_if_exists: bool,
    ) -> tuple[ScriptDescriptor, list[ScriptArg]]:
        if intent is None and self._expiration_defaults is not None:
            intent = self._expiration_defaults.intent_for()
        plan = compute_plan(self._clock(), intent)
        legacy = self._capabilities.legacy_hash_set
        script = scripts.conditional_set_script(legacy) if error_if_exists else scripts.set_script(legacy)
        return script, [*plan.to_script_args(), value]

    @staticmethod
    def _get_args(refresh: bool) -> list[ScriptArg]:
        return [scripts.REFRESH_ARG if refresh else scripts.NO_REFRESH_ARG]

    # -- reply interpretation -----------------------------------------------

    def _interpret_set(self, key: str, reply: Reply, error_if_exists: bool) -> Outcome:
        if reply.is_error:
            return self._error_reply("set", key, reply)
        text = reply.as_text()
        if text == scripts.SUCCESS_REPLY:
            return Outcome.success(key, reply=reply)
        if text == scripts.KEY_EXISTS_REPLY and error_if_exists:
            return Outcome.key_exists(key, reply=reply)
        return self._unexpected("set", key, reply, _SET_EXPECTED)

    def _interpret_get(self, key: str, reply: Reply) -> Outcome:
        if reply.is_error:
            return self._error_reply("get", key, reply)
        if reply.kind is ReplyKind.NIL:
            return Outcome.not_found(key, reply=reply)
        if reply.kind is ReplyKind.SCALAR:
            return Outcome.success(key, value=reply.value, reply=reply)
        return self._unexpected("get", key, reply, _GET_EXPECTED)

    def _interpret_refresh(self, key: str, reply: Reply, error_if_not_exists: bool) -> Outcome:
        if reply.is_error:
            return self._error_reply("refresh", key, reply)
        if reply.kind is ReplyKind.NIL:
            return Outcome.not_found(key, reply=reply) if error_if_not_exists else Outcome.success(key, reply=reply)
        text = reply.as_text()
        if text == scripts.SUCCESS_REPLY:
            return Outcome.success(key, reply=reply)
        if text == scripts.NO_SLIDING_EXPIRATION_REPLY:
            return Outcome.no_sliding_expiration(key, reply=reply)
        return self._unexpected("refresh", key, reply, _REFRESH_EXPECTED)

    def _interpret_remove(self, key: str, reply: Reply, error_if_not_exists: bool) -> Outcome:
        if reply.is_error:
            return self._error_reply("remove", key, reply)
        removed = reply.as_text() == scripts.SUCCESS_REPLY or (
            reply.kind is ReplyKind.INTEGER and reply.value >= 1
        )
        if removed:
            return Outcome.success(key, reply=reply)
        if reply.kind is ReplyKind.NIL or (reply.kind is ReplyKind.INTEGER and reply.value == 0):
            return Outcome.not_found(key, reply=reply) if error_if_not_exists else Outcome.success(key, reply=reply)
        return self._unexpected("remove", key, reply, _REMOVE_EXPECTED)

    # -- diagnostics --------------------------------------------------------

    def _unexpected(self, operation: str, key: str, reply: Reply, expected: str) -> Outcome:
        actual = reply.as_text() if reply.kind is ReplyKind.SCALAR else None
        message = unexpected_message(expected, actual, reply.kind.value)
        self._logger.warning(
            "unexpected_script_result",
            operation=operation,
            key=key,
            expected=expected,
            actual=reply.describe(),
            actual_type=reply.kind.value,
        )
        return Outcome.unexpected(key, message, reply=reply)

    def _error_reply(self, operation: str, key: str, reply: Reply) -> Outcome:
        self._logger.error("store_error_reply", operation=operation, key=key, error=reply.value)
        return Outcome.transport_error(key, StoreReplyException(key, reply), reply=reply)

    def _transport_error(self, operation: str, key: str, exc: Exception) -> Outcome:
        self._logger.error("store_operation_failed", operation=operation, key=key, error=str(exc), exc_info=exc)
        return Outcome.transport_error(key, exc)


class ScriptCache(_CacheEngineBase):
    """Blocking cache engine over a :class:`ScriptableStore`.

    Example:
        >>> cache = ScriptCache(RedisStoreAdapter(redis.Redis()),
        ...                     capabilities=ServerCapabilities.resolved(False))
        >>> cache.set("user:1", b"...", ExpirationIntent.sliding(timedelta(minutes=5)))
        >>> cache.get("user:1").value
    """

    def __init__(self, store: ScriptableStore, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self._store = store

    @property
    def store(self) -> ScriptableStore:
        return self._store

    def _run(self, operation: str, key: str, script: ScriptDescriptor, args: list[ScriptArg]) -> Reply | Outcome:
        try:
            return self._strategy.execute(self._store, script, [key], args)
        except Exception as exc:
            return self._transport_error(operation, key, exc)

    def set(
        self,
        key: str,
        value: bytes,
        intent: ExpirationIntent | None = None,
        error_if_exists: bool = False,
    ) -> Outcome:
        """Store *value* under *key*.

        With ``error_if_exists`` the write is conditional and an existing key
        yields ``KEY_EXISTS`` without modification.

        Raises:
            InvalidExpirationException: if the intent resolves to a past deadline.
        """
        actual_key = self.prefixed_key(key)
        script, args = self._plan_set(value, intent, error_if_exists)
        result = self._run("set", actual_key, script, args)
        if isinstance(result, Outcome):
            return result
        return self._interpret_set(actual_key, result, error_if_exists)

    def get(self, key: str, refresh: bool = True) -> Outcome:
        """Read the payload; re-applies a sliding TTL in the same round trip."""
        actual_key = self.prefixed_key(key)
        result = self._run("get", actual_key, scripts.GET_AND_REFRESH, self._get_args(refresh))
        if isinstance(result, Outcome):
            return result
        return self._interpret_get(actual_key, result)

    def refresh(self, key: str, error_if_not_exists: bool = False) -> Outcome:
        """Re-apply the sliding TTL without reading the payload."""
        actual_key = self.prefixed_key(key)
        result = self._run("refresh", actual_key, scripts.REFRESH, [])
        if isinstance(result, Outcome):
            return result
        return self._interpret_refresh(actual_key, result, error_if_not_exists)

    def remove(self, key: str, error_if_not_exists: bool = False) -> Outcome:
        """Unlink the key."""
        actual_key = self.prefixed_key(key)
        result = self._run("remove", actual_key, scripts.REMOVE, [])
        if isinstance(result, Outcome):
            return result
        return self._interpret_remove(actual_key, result, error_if_not_exists)

    def close(self) -> None:
        self._store.close()

    def __enter__(self) -> ScriptCache:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


class AsyncScriptCache(_CacheEngineBase):
    """Non-blocking cache engine over an :class:`AsyncScriptableStore`.

    Suspends only at the store call. Cancelling a call unblocks the caller
    but the store may still complete a write that was already sent.
    """

    def __init__(self, store: AsyncScriptableStore, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self._store = store

    @property
    def store(self) -> AsyncScriptableStore:
        return self._store

    async def _run(
        self, operation: str, key: str, script: ScriptDescriptor, args: list[ScriptArg]
    ) -> Reply | Outcome:
        try:
            return await self._strategy.execute_async(self._store, script, [key], args)
        except Exception as exc:
            return self._transport_error(operation, key, exc)

    async def set(
        self,
        key: str,
        value: bytes,
        intent: ExpirationIntent | None = None,
        error_if_exists: bool = False,
    ) -> Outcome:
        """Store *value* under *key*; see :meth:`ScriptCache.set`."""
        actual_key = self.prefixed_key(key)
        script, args = self._plan_set(value, intent, error_if_exists)
        result = await self._run("set", actual_key, script, args)
        if isinstance(result, Outcome):
            return result
        return self._interpret_set(actual_key, result, error_if_exists)

    async def get(self, key: str, refresh: bool = True) -> Outcome:
        """Read the payload, re-applying a sliding TTL in the same round trip."""
        actual_key = self.prefixed_key(key)
        result = await self._run("get", actual_key, scripts.GET_AND_REFRESH, self._get_args(refresh))
        if isinstance(result, Outcome):
            return result
        return self._interpret_get(actual_key, result)

    async def refresh(self, key: str, error_if_not_exists: bool = False) -> Outcome:
        """Re-apply the sliding TTL without reading the payload."""
        actual_key = self.prefixed_key(key)
        result = await self._run("refresh", actual_key, scripts.REFRESH, [])
        if isinstance(result, Outcome):
            return result
        return self._interpret_refresh(actual_key, result, error_if_not_exists)

    async def remove(self, key: str, error_if_not_exists: bool = False) -> Outcome:
        """Unlink the key."""
        actual_key = self.prefixed_key(key)
        result = await self._run("remove", actual_key, scripts.REMOVE, [])
        if isinstance(result, Outcome):
            return result
        return self._interpret_remove(actual_key, result, error_if_not_exists)

    async def close(self) -> None:
        """Close the underlying store connection."""
        await self._store.close()

    async def __aenter__(self) -> AsyncScriptCache:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()
