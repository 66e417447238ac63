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
"""scriptcache kernel: exceptions and error types with zero external dependencies."""

from scriptcache.kernel.exceptions import (
    BusinessException,
    CapabilityNotResolvedException,
    ConfigurationException,
    ConflictException,
    InfrastructureException,
    InvalidExpirationException,
    PreconditionFailedException,
    ResourceNotFoundException,
    ScriptCacheException,
    StoreException,
    StoreReplyException,
    UnexpectedResultException,
)
from scriptcache.kernel.types import ErrorCategory

__all__ = [
    # Types
    "ErrorCategory",
    # Base
    "ScriptCacheException",
    # Configuration
    "ConfigurationException",
    "InvalidExpirationException",
    "CapabilityNotResolvedException",
    # Business
    "BusinessException",
    "ResourceNotFoundException",
    "ConflictException",
    "PreconditionFailedException",
    # Infrastructure
    "InfrastructureException",
    "StoreException",
    "StoreReplyException",
    "UnexpectedResultException",
]
