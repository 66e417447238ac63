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
"""Builds ready-to-use cache engines from configuration."""

from __future__ import annotations

from datetime import timedelta
from typing import Any

import redis
import redis.asyncio as aioredis

from scriptcache.cache.adapters.redis import AsyncRedisStoreAdapter, RedisStoreAdapter
from scriptcache.cache.capabilities import ServerCapabilities
from scriptcache.cache.engine import AsyncScriptCache, ScriptCache
from scriptcache.cache.execution import ScriptExecutionStrategy
from scriptcache.cache.expiration import ExpirationDefaults
from scriptcache.config.properties.cache import CacheProperties
from scriptcache.config.properties.logging import LoggingProperties
from scriptcache.core.config import Config
from scriptcache.logging.port import LoggingPort
from scriptcache.logging.structlog_adapter import StructlogAdapter


def _seconds(value: int | None) -> timedelta | None:
    return timedelta(seconds=value) if value is not None else None


def expiration_defaults_from(props: CacheProperties) -> ExpirationDefaults:
    return ExpirationDefaults(
        default_absolute_expiration=_seconds(props.default_absolute_expiration_seconds),
        default_sliding_expiration=_seconds(props.default_sliding_expiration_seconds),
    )


def _engine_kwargs(props: CacheProperties, capabilities: ServerCapabilities, **overrides: Any) -> dict[str, Any]:
    kwargs: dict[str, Any] = {
        "capabilities": capabilities,
        "prefix": props.prefix,
        "strategy": ScriptExecutionStrategy(digest_first=props.digest_first),
        "expiration_defaults": expiration_defaults_from(props),
    }
    kwargs.update(overrides)
    return kwargs


def configure_logging(config: Config, logging_adapter: LoggingPort | None = None) -> bool:
    """Apply ``scriptcache.logging`` when ``scriptcache.logging.configure`` is true.

    Returns whether logging was configured.
    """
    if not config.bind(LoggingProperties).configure:
        return False
    (logging_adapter or StructlogAdapter()).configure(config)
    return True


def create_cache(
    config: Config,
    client: Any = None,
    logging_adapter: LoggingPort | None = None,
    **overrides: Any,
) -> ScriptCache:
    """Create a blocking engine.

    Logging is set up first when the config asks for it. Capabilities come
    from ``scriptcache.cache.legacy_hash_set`` when set, otherwise the server
    version is detected once here.
    """
    configure_logging(config, logging_adapter)
    props = config.bind(CacheProperties)
    store = RedisStoreAdapter(client if client is not None else redis.Redis.from_url(props.redis.url))
    if props.legacy_hash_set is not None:
        capabilities = ServerCapabilities.resolved(props.legacy_hash_set)
    else:
        capabilities = ServerCapabilities.detect(store)
    return ScriptCache(store, **_engine_kwargs(props, capabilities, **overrides))


async def create_async_cache(
    config: Config,
    client: Any = None,
    logging_adapter: LoggingPort | None = None,
    **overrides: Any,
) -> AsyncScriptCache:
    """Create a non-blocking engine (see :func:`create_cache`)."""
    configure_logging(config, logging_adapter)
    props = config.bind(CacheProperties)
    store = AsyncRedisStoreAdapter(client if client is not None else aioredis.from_url(props.redis.url))
    if props.legacy_hash_set is not None:
        capabilities = ServerCapabilities.resolved(props.legacy_hash_set)
    else:
        capabilities = await ServerCapabilities.detect_async(store)
    return AsyncScriptCache(store, **_engine_kwargs(props, capabilities, **overrides))
