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
"""Logging configuration (scriptcache.logging.*)."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field, field_validator

from scriptcache.core.config import config_properties

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@config_properties(prefix="scriptcache.logging")
class LoggingProperties(BaseModel):
    """How the cache client sets up structlog.

    ``level`` maps logger names to level names; the ``root`` entry sets the
    root logger. Nothing is configured unless ``configure`` is true, so an
    application that owns its logging setup is left alone.
    """

    configure: bool = False
    format: Literal["console", "json"] = "console"
    level: dict[str, str] = Field(default_factory=lambda: {"root": "INFO"})

    @field_validator("format", mode="before")
    @classmethod
    def normalize_format(cls, v: object) -> object:
        return v.lower() if isinstance(v, str) else v

    @field_validator("level")
    @classmethod
    def validate_levels(cls, v: dict[str, str]) -> dict[str, str]:
        normalized = {name: str(level).upper() for name, level in v.items()}
        for name, level in normalized.items():
            if level not in LOG_LEVELS:
                raise ValueError(f"Unknown log level '{level}' for logger '{name}'")
        return normalized

    @property
    def root_level(self) -> str:
        return self.level.get("root", "INFO")

    @property
    def module_levels(self) -> dict[str, str]:
        return {name: level for name, level in self.level.items() if name != "root"}
