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
"""Unified exception hierarchy for scriptcache.

All library exceptions inherit from ScriptCacheException, enabling unified
error handling across modules.

Categories:
- ConfigurationException: misuse detected before any store call is made
- BusinessException: outcomes re-raised on request (not found, key exists)
- InfrastructureException: store and transport failures
"""

from __future__ import annotations

from typing import Any

# =============================================================================
# Base Exception
# =============================================================================


class ScriptCacheException(Exception):
    """Base exception for all scriptcache errors.

    Carries an optional error code and context dict for structured error data.

    Args:
        message: Human-readable error description.
        code: Machine-readable error code (e.g. "EXPIRATION_001").
        context: Arbitrary key-value pairs for error context and debugging.
    """

    def __init__(
        self,
        message: str,
        code: str | None = None,
        context: dict | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.context: dict = context if context is not None else {}


# =============================================================================
# Configuration Exceptions
# =============================================================================


class ConfigurationException(ScriptCacheException):
    """Programmer or configuration misuse, raised synchronously."""


class InvalidExpirationException(ConfigurationException):
    """An expiration intent would expire the entry immediately.

    Raised when the resolved absolute expiration is not after the creation
    time, or when the sliding window is not positive.
    """

    def __init__(
        self,
        absolute_expiration: Any = None,
        creation_time: Any = None,
        sliding_expiration: Any = None,
        message: str = "The absolute expiration value must be in the future.",
    ) -> None:
        context = {"absolute_expiration": absolute_expiration, "creation_time": creation_time}
        if sliding_expiration is not None:
            context["sliding_expiration"] = sliding_expiration
        super().__init__(message, code="INVALID_EXPIRATION", context=context)
        self.absolute_expiration = absolute_expiration
        self.creation_time = creation_time
        self.sliding_expiration = sliding_expiration


class CapabilityNotResolvedException(ConfigurationException):
    """A server capability was queried before it was detected."""


# =============================================================================
# Business Exceptions
# =============================================================================


class BusinessException(ScriptCacheException):
    """Expected domain outcomes, raised only when a caller asks for it."""


class ResourceNotFoundException(BusinessException):
    """The requested key does not exist."""


class ConflictException(BusinessException):
    """The key already exists and the write was rejected."""


class PreconditionFailedException(BusinessException):
    """A precondition for the operation was not met (e.g. no sliding expiration)."""


# =============================================================================
# Infrastructure Exceptions
# =============================================================================


class InfrastructureException(ScriptCacheException):
    """Infrastructure failures: store, network, protocol."""


class StoreException(InfrastructureException):
    """The store failed while executing an operation."""


class StoreReplyException(StoreException):
    """The store answered with an error reply.

    Args:
        key: The (prefixed) key the operation targeted.
        reply: The raw error reply.
    """

    def __init__(self, key: str, reply: Any) -> None:
        super().__init__(
            f"Store returned an error reply for key '{key}': {reply.value}",
            code="STORE_ERROR_REPLY",
            context={"key": key, "reply": reply.value},
        )
        self.key = key
        self.reply = reply


class UnexpectedResultException(InfrastructureException):
    """A script reply violated the documented script contract."""
