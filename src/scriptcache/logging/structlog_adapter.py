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
"""structlog setup for the cache client, driven by ``scriptcache.logging``."""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog

from scriptcache.config.properties.logging import LoggingProperties
from scriptcache.core.config import Config


def _level_number(level: str) -> int:
    return getattr(logging, level.upper(), logging.INFO)


def _renderer(output_format: str) -> list[structlog.types.Processor]:
    if output_format == "json":
        return [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    return [structlog.dev.ConsoleRenderer()]


class StructlogAdapter:
    """LoggingPort implementation backed by structlog.

    Binds :class:`LoggingProperties` from the config, routes structlog
    through the stdlib ``logging`` module at the root level, and applies
    per-logger levels such as ``scriptcache.cache.engine: DEBUG``.
    """

    def __init__(self) -> None:
        self._properties = LoggingProperties()

    @property
    def properties(self) -> LoggingProperties:
        """Settings applied by the last :meth:`configure` call."""
        return self._properties

    def configure(self, config: Config) -> None:
        self._properties = config.bind(LoggingProperties)
        self._install()
        for name, level in self._properties.module_levels.items():
            self.set_level(name, level)

    def get_logger(self, name: str) -> Any:
        return structlog.get_logger(name)

    def set_level(self, name: str, level: str) -> None:
        logging.getLogger(name).setLevel(_level_number(level))

    def _install(self) -> None:
        structlog.configure(
            processors=[
                structlog.contextvars.merge_contextvars,
                structlog.stdlib.add_logger_name,
                structlog.stdlib.add_log_level,
                structlog.processors.TimeStamper(fmt="iso"),
                structlog.processors.StackInfoRenderer(),
                structlog.processors.UnicodeDecoder(),
                *_renderer(self._properties.format),
            ],
            logger_factory=structlog.stdlib.LoggerFactory(),
            wrapper_class=structlog.stdlib.BoundLogger,
            cache_logger_on_first_use=True,
        )
        logging.basicConfig(
            format="%(message)s",
            stream=sys.stdout,
            level=_level_number(self._properties.root_level),
            force=True,
        )
