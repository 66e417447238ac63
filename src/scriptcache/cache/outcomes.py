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
"""Typed operation outcomes.

Expected domain results (not found, key exists, no sliding expiration) are
ordinary outcomes, never exceptions. Callers branch on ``Outcome.kind``, or
call :meth:`Outcome.raise_for_outcome` to get exception semantics.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from scriptcache.cache.replies import Reply
from scriptcache.kernel.exceptions import (
    ConflictException,
    PreconditionFailedException,
    ResourceNotFoundException,
    ScriptCacheException,
    StoreException,
    UnexpectedResultException,
)
from scriptcache.kernel.types import ErrorCategory


class OutcomeKind(Enum):
    SUCCESS = "SUCCESS"
    NOT_FOUND = "NOT_FOUND"
    KEY_EXISTS = "KEY_EXISTS"
    NO_SLIDING_EXPIRATION_CONFIGURED = "NO_SLIDING_EXPIRATION_CONFIGURED"
    UNEXPECTED_RESULT = "UNEXPECTED_RESULT"
    TRANSPORT_ERROR = "TRANSPORT_ERROR"

    @property
    def category(self) -> ErrorCategory | None:
        return _CATEGORIES[self]


_CATEGORIES: dict[OutcomeKind, ErrorCategory | None] = {
    OutcomeKind.SUCCESS: None,
    OutcomeKind.NOT_FOUND: ErrorCategory.RESOURCE,
    OutcomeKind.KEY_EXISTS: ErrorCategory.BUSINESS,
    OutcomeKind.NO_SLIDING_EXPIRATION_CONFIGURED: ErrorCategory.BUSINESS,
    OutcomeKind.UNEXPECTED_RESULT: ErrorCategory.TECHNICAL,
    OutcomeKind.TRANSPORT_ERROR: ErrorCategory.EXTERNAL,
}


@dataclass(frozen=True)
class Outcome:
    """Result of one cache operation.

    Attributes:
        kind: Which outcome this is.
        key: The prefixed key the operation targeted.
        value: Payload bytes on a successful Get, otherwise ``None``.
        detail: Description of an unexpected result.
        reply: The raw store reply, when one was received.
        cause: The exception behind a transport error.
    """

    kind: OutcomeKind
    key: str
    value: bytes | None = None
    detail: str | None = None
    reply: Reply | None = None
    cause: BaseException | None = None

    @classmethod
    def success(cls, key: str, value: bytes | None = None, reply: Reply | None = None) -> Outcome:
        return cls(OutcomeKind.SUCCESS, key, value=value, reply=reply)

    @classmethod
    def not_found(cls, key: str, reply: Reply | None = None) -> Outcome:
        return cls(OutcomeKind.NOT_FOUND, key, reply=reply)

    @classmethod
    def key_exists(cls, key: str, reply: Reply | None = None) -> Outcome:
        return cls(OutcomeKind.KEY_EXISTS, key, reply=reply)

    @classmethod
    def no_sliding_expiration(cls, key: str, reply: Reply | None = None) -> Outcome:
        return cls(OutcomeKind.NO_SLIDING_EXPIRATION_CONFIGURED, key, reply=reply)

    @classmethod
    def unexpected(cls, key: str, detail: str, reply: Reply | None = None) -> Outcome:
        return cls(OutcomeKind.UNEXPECTED_RESULT, key, detail=detail, reply=reply)

    @classmethod
    def transport_error(cls, key: str, cause: BaseException, reply: Reply | None = None) -> Outcome:
        return cls(OutcomeKind.TRANSPORT_ERROR, key, reply=reply, cause=cause)

    @property
    def is_success(self) -> bool:
        return self.kind is OutcomeKind.SUCCESS

    @property
    def is_failure(self) -> bool:
        return self.kind in (OutcomeKind.UNEXPECTED_RESULT, OutcomeKind.TRANSPORT_ERROR)

    def raise_for_outcome(self) -> Outcome:
        """Raise the exception matching a non-success outcome; return self otherwise."""
        if self.kind is OutcomeKind.SUCCESS:
            return self

        context = {"key": self.key}
        exc: ScriptCacheException
        if self.kind is OutcomeKind.NOT_FOUND:
            exc = ResourceNotFoundException("The requested key was not found.", code="NOT_FOUND", context=context)
        elif self.kind is OutcomeKind.KEY_EXISTS:
            exc = ConflictException("The key already exists.", code="KEY_EXISTS", context=context)
        elif self.kind is OutcomeKind.NO_SLIDING_EXPIRATION_CONFIGURED:
            exc = PreconditionFailedException(
                "The key has no sliding expiration configured.",
                code="NO_SLIDING_EXPIRATION",
                context=context,
            )
        elif self.kind is OutcomeKind.UNEXPECTED_RESULT:
            exc = UnexpectedResultException(self.detail or "Unexpected result.", code="UNEXPECTED_RESULT", context=context)
        else:
            exc = StoreException(
                "An exception occurred while performing an operation against the store.",
                code="TRANSPORT_ERROR",
                context=context,
            )
        raise exc from self.cause
