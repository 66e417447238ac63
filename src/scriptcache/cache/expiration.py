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
"""Expiration math: turns an expiration intent into a concrete plan."""

from __future__ import annotations

import math
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta, timezone

from scriptcache.kernel.exceptions import ConfigurationException, InvalidExpirationException

NOT_PRESENT = -1


@dataclass(frozen=True)
class ExpirationIntent:
    """User-supplied expiration options. All fields are optional.

    When both ``absolute_expiration`` and ``absolute_expiration_relative_to_now``
    are given, the relative value wins.
    """

    absolute_expiration: datetime | None = None
    absolute_expiration_relative_to_now: timedelta | None = None
    sliding_expiration: timedelta | None = None

    @classmethod
    def sliding(cls, window: timedelta) -> ExpirationIntent:
        return cls(sliding_expiration=window)

    @classmethod
    def relative(cls, ttl: timedelta) -> ExpirationIntent:
        return cls(absolute_expiration_relative_to_now=ttl)


@dataclass(frozen=True)
class ExpirationPlan:
    """Computed expiration for one Set call.

    ``ttl_seconds`` is the value applied to the key's timeout in the store;
    the other two fields are persisted next to the payload so Refresh can
    recompute the TTL later.
    """

    absolute_expiration_unix_seconds: int | None = None
    sliding_seconds: int | None = None
    ttl_seconds: int | None = None

    def to_script_args(self) -> list[int]:
        """Render as ``[absexp, sldexp, ttl]`` with ``-1`` for absent values."""
        return [
            _or_not_present(self.absolute_expiration_unix_seconds),
            _or_not_present(self.sliding_seconds),
            _or_not_present(self.ttl_seconds),
        ]


def _or_not_present(value: int | None) -> int:
    return NOT_PRESENT if value is None else value


def _as_utc(instant: datetime) -> datetime:
    if instant.tzinfo is None:
        return instant.replace(tzinfo=timezone.utc)
    return instant


def resolve_absolute_expiration(creation_time: datetime, intent: ExpirationIntent | None) -> datetime | None:
    """Resolve the absolute deadline for an entry created at *creation_time*.

    Raises:
        InvalidExpirationException: if the resolved deadline is not strictly
            after *creation_time*.
    """
    if intent is None:
        return None

    creation_time = _as_utc(creation_time)
    if intent.absolute_expiration_relative_to_now is not None:
        absolute = creation_time + intent.absolute_expiration_relative_to_now
    elif intent.absolute_expiration is not None:
        absolute = _as_utc(intent.absolute_expiration)
    else:
        return None

    if absolute <= creation_time:
        raise InvalidExpirationException(absolute, creation_time)
    return absolute


def _whole_seconds(duration: timedelta) -> int:
    # Rounded up: a sub-second remainder must not become EXPIRE 0
    return math.ceil(duration.total_seconds())


def validate_sliding_expiration(sliding_expiration: timedelta | None) -> None:
    """Raise if a sliding window is present but not positive."""
    if sliding_expiration is not None and sliding_expiration <= timedelta(0):
        raise InvalidExpirationException(
            sliding_expiration=sliding_expiration,
            message="The sliding expiration value must be positive.",
        )


def compute_ttl_seconds(
    creation_time: datetime,
    absolute_expiration: datetime | None,
    sliding_expiration: timedelta | None,
) -> int | None:
    """TTL to apply now: the smaller of the time left and the sliding window.

    Fractions of a second round up, so a valid intent always yields a TTL of
    at least one second.
    """
    if absolute_expiration is not None:
        remaining = _as_utc(absolute_expiration) - _as_utc(creation_time)
        if sliding_expiration is not None:
            return _whole_seconds(min(remaining, sliding_expiration))
        return _whole_seconds(remaining)
    if sliding_expiration is not None:
        return _whole_seconds(sliding_expiration)
    return None


def compute_plan(creation_time: datetime, intent: ExpirationIntent | None) -> ExpirationPlan:
    """Compute the expiration plan for an entry created at *creation_time*.

    Raises:
        InvalidExpirationException: if the deadline is not in the future or
            the sliding window is not positive.
    """
    sliding = intent.sliding_expiration if intent is not None else None
    validate_sliding_expiration(sliding)
    absolute = resolve_absolute_expiration(creation_time, intent)
    return ExpirationPlan(
        absolute_expiration_unix_seconds=math.ceil(absolute.timestamp()) if absolute is not None else None,
        sliding_seconds=_whole_seconds(sliding) if sliding is not None else None,
        ttl_seconds=compute_ttl_seconds(creation_time, absolute, sliding),
    )


@dataclass
class ExpirationDefaults:
    """Default expirations applied when a Set call passes no intent.

    Holds a global default plus per-type overrides; each override can be
    configured once per type. Engines keep a :meth:`sealed` copy, which
    rejects further overrides.
    """

    default_absolute_expiration: timedelta | None = timedelta(seconds=30)
    default_sliding_expiration: timedelta | None = timedelta(seconds=10)
    _absolute: dict[type, timedelta | None] = field(default_factory=dict, repr=False)
    _sliding: dict[type, timedelta | None] = field(default_factory=dict, repr=False)
    _sealed: bool = field(default=False, repr=False)

    @property
    def is_sealed(self) -> bool:
        return self._sealed

    def sealed(self) -> ExpirationDefaults:
        """Independent copy that can no longer be changed."""
        return replace(self, _absolute=dict(self._absolute), _sliding=dict(self._sliding), _sealed=True)

    def _check_open(self, cached_type: type, overrides: dict[type, timedelta | None], kind: str) -> None:
        if self._sealed:
            raise ConfigurationException(
                "Expiration defaults are read-only once an engine uses them.",
                code="EXPIRATION_DEFAULTS_SEALED",
            )
        if cached_type in overrides:
            raise ConfigurationException(
                f"The {kind} expiration for {cached_type.__name__} has already been set.",
                code="EXPIRATION_ALREADY_SET",
            )

    def with_absolute_expiration(self, cached_type: type, expiration: timedelta | None) -> ExpirationDefaults:
        self._check_open(cached_type, self._absolute, "absolute")
        self._absolute[cached_type] = expiration
        return self

    def with_sliding_expiration(self, cached_type: type, expiration: timedelta | None) -> ExpirationDefaults:
        self._check_open(cached_type, self._sliding, "sliding")
        validate_sliding_expiration(expiration)
        self._sliding[cached_type] = expiration
        return self

    def intent_for(self, cached_type: type | None = None) -> ExpirationIntent:
        """Intent for values of *cached_type*, falling back to the global defaults."""
        return ExpirationIntent(
            absolute_expiration_relative_to_now=self._absolute.get(cached_type, self.default_absolute_expiration)
            if cached_type is not None
            else self.default_absolute_expiration,
            sliding_expiration=self._sliding.get(cached_type, self.default_sliding_expiration)
            if cached_type is not None
            else self.default_sliding_expiration,
        )
