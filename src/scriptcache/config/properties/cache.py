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
"""Cache client configuration properties."""

from __future__ import annotations

from pydantic import BaseModel, Field

from scriptcache.core.config import config_properties


class RedisConnectionProperties(BaseModel):
    """Connection settings handed to ``redis.from_url``."""

    url: str = "redis://localhost:6379/0"


@config_properties(prefix="scriptcache.cache")
class CacheProperties(BaseModel):
    """Configuration for the cache engine (scriptcache.cache.*)."""

    prefix: str = ""
    redis: RedisConnectionProperties = Field(default_factory=RedisConnectionProperties)
    proxy: bool = False
    bandwidth_optimization_for_proxies: bool = True
    # None means detect the server version on startup
    legacy_hash_set: bool | None = None
    default_absolute_expiration_seconds: int | None = Field(default=30, gt=0)
    default_sliding_expiration_seconds: int | None = Field(default=10, gt=0)

    @property
    def digest_first(self) -> bool:
        """Whether scripts are invoked by digest before falling back to the body."""
        return self.proxy and self.bandwidth_optimization_for_proxies
