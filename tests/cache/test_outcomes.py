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
"""Tests for operation outcomes and their exception mapping."""

from __future__ import annotations

import pytest

from scriptcache.cache.outcomes import Outcome, OutcomeKind
from scriptcache.kernel.exceptions import (
    ConflictException,
    PreconditionFailedException,
    ResourceNotFoundException,
    StoreException,
    UnexpectedResultException,
)
from scriptcache.kernel.types import ErrorCategory


class TestOutcome:
    def test_success_returns_self(self):
        outcome = Outcome.success("k", value=b"v")
        assert outcome.is_success
        assert not outcome.is_failure
        assert outcome.raise_for_outcome() is outcome

    def test_expected_outcomes_are_not_failures(self):
        for outcome in (Outcome.not_found("k"), Outcome.key_exists("k"), Outcome.no_sliding_expiration("k")):
            assert not outcome.is_success
            assert not outcome.is_failure

    @pytest.mark.parametrize(
        ("outcome", "exc_type", "code"),
        [
            (Outcome.not_found("k"), ResourceNotFoundException, "NOT_FOUND"),
            (Outcome.key_exists("k"), ConflictException, "KEY_EXISTS"),
            (Outcome.no_sliding_expiration("k"), PreconditionFailedException, "NO_SLIDING_EXPIRATION"),
            (Outcome.unexpected("k", "bad reply"), UnexpectedResultException, "UNEXPECTED_RESULT"),
        ],
    )
    def test_raise_for_outcome(self, outcome, exc_type, code):
        with pytest.raises(exc_type) as exc_info:
            outcome.raise_for_outcome()
        assert exc_info.value.code == code
        assert exc_info.value.context == {"key": "k"}

    def test_transport_error_chains_cause(self):
        cause = OSError("reset by peer")
        outcome = Outcome.transport_error("k", cause)
        assert outcome.is_failure
        with pytest.raises(StoreException) as exc_info:
            outcome.raise_for_outcome()
        assert exc_info.value.__cause__ is cause

    def test_categories(self):
        assert OutcomeKind.SUCCESS.category is None
        assert OutcomeKind.NOT_FOUND.category is ErrorCategory.RESOURCE
        assert OutcomeKind.TRANSPORT_ERROR.category is ErrorCategory.EXTERNAL
        assert OutcomeKind.UNEXPECTED_RESULT.category is ErrorCategory.TECHNICAL
