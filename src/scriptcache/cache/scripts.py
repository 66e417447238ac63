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
"""Canonical Lua scripts and their content digests.

Every multi-step operation runs as a single script so the store serializes
it against other commands on the same key. Argument order is part of the
wire contract and must not change:

    KEYS[1] = prefixed key
    ARGV[1] = absolute expiration, unix seconds (-1 for none)
    ARGV[2] = sliding expiration, seconds (-1 for none)
    ARGV[3] = ttl to apply now, seconds (-1 for none)
    ARGV[4] = payload bytes

Two generations of the write scripts exist: Redis 4.0 added the multi-field
form of HSET and deprecated HMSET, so servers older than that get the HMSET
variants.
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass

SCRIPT_VERSION = 2

ABSOLUTE_EXPIRATION_FIELD = "absexp"
SLIDING_EXPIRATION_FIELD = "sldexp"
DATA_FIELD = "data"

SUCCESS_REPLY = "1"
KEY_EXISTS_REPLY = "0"
NO_SLIDING_EXPIRATION_REPLY = "2"

REFRESH_ARG = "1"
NO_REFRESH_ARG = "0"

# TTL recomputation shared by the refresh paths. Expects locals `absexp`
# and `sldexp`; the deadline may already have passed, in which case the
# key is left to expire on its own.
_APPLY_SLIDING_TTL = """
local exp = sldexp
if absexp ~= -1 then
  local relexp = absexp - tonumber(redis.call('TIME')[1])
  if relexp <= 0 then
    exp = nil
  elseif relexp < sldexp then
    exp = relexp
  end
end
if exp ~= nil then
  redis.call('EXPIRE', KEYS[1], exp)
end
"""

_WRITE_TEMPLATE = """
redis.call('{command}', KEYS[1], 'absexp', ARGV[1], 'sldexp', ARGV[2], 'data', ARGV[4])
if ARGV[3] ~= '-1' then
  redis.call('EXPIRE', KEYS[1], ARGV[3])
end
return '1'
"""

_EXISTS_GUARD = """
if redis.call('EXISTS', KEYS[1]) == 1 then
  return '0'
end"""

SET_BODY = _WRITE_TEMPLATE.format(command="HSET")
SET_LEGACY_BODY = _WRITE_TEMPLATE.format(command="HMSET")
CONDITIONAL_SET_BODY = _EXISTS_GUARD + _WRITE_TEMPLATE.format(command="HSET")
CONDITIONAL_SET_LEGACY_BODY = _EXISTS_GUARD + _WRITE_TEMPLATE.format(command="HMSET")

# ARGV[1] = '1' to re-apply the sliding TTL, '0' for a plain read
GET_AND_REFRESH_BODY = (
    """
local fields = redis.call('HMGET', KEYS[1], 'absexp', 'sldexp', 'data')
if fields[3] == false then
  return nil
end
local absexp = tonumber(fields[1])
local sldexp = tonumber(fields[2])
if ARGV[1] == '1' and sldexp ~= -1 then"""
    + _APPLY_SLIDING_TTL
    + """end
return fields[3]
"""
)

REFRESH_BODY = (
    """
local fields = redis.call('HMGET', KEYS[1], 'absexp', 'sldexp')
if fields[2] == false then
  return nil
end
local absexp = tonumber(fields[1])
local sldexp = tonumber(fields[2])
if sldexp == -1 then
  return '2'
end"""
    + _APPLY_SLIDING_TTL
    + """return '1'
"""
)

REMOVE_BODY = """
if redis.call('UNLINK', KEYS[1]) >= 1 then
  return '1'
end
return nil
"""


def script_digest(body: str) -> bytes:
    """SHA-1 of the script body, as the store computes it for EVALSHA."""
    return hashlib.sha1(body.encode("utf-8")).digest()


@dataclass(frozen=True)
class ScriptDescriptor:
    """A script body together with its content digest."""

    name: str
    body: str
    digest: bytes
    requires_legacy_hash_command: bool = False

    @classmethod
    def of(cls, name: str, body: str, requires_legacy_hash_command: bool = False) -> ScriptDescriptor:
        return cls(name, body, script_digest(body), requires_legacy_hash_command)

    @property
    def sha(self) -> str:
        """Hex digest as sent with EVALSHA."""
        return self.digest.hex()


SET = ScriptDescriptor.of("set", SET_BODY)
SET_LEGACY = ScriptDescriptor.of("set_legacy", SET_LEGACY_BODY, requires_legacy_hash_command=True)
CONDITIONAL_SET = ScriptDescriptor.of("conditional_set", CONDITIONAL_SET_BODY)
CONDITIONAL_SET_LEGACY = ScriptDescriptor.of(
    "conditional_set_legacy", CONDITIONAL_SET_LEGACY_BODY, requires_legacy_hash_command=True
)
GET_AND_REFRESH = ScriptDescriptor.of("get_and_refresh", GET_AND_REFRESH_BODY)
REFRESH = ScriptDescriptor.of("refresh", REFRESH_BODY)
REMOVE = ScriptDescriptor.of("remove", REMOVE_BODY)

ALL_SCRIPTS: tuple[ScriptDescriptor, ...] = (
    SET,
    SET_LEGACY,
    CONDITIONAL_SET,
    CONDITIONAL_SET_LEGACY,
    GET_AND_REFRESH,
    REFRESH,
    REMOVE,
)


def set_script(legacy_hash_set: bool) -> ScriptDescriptor:
    return SET_LEGACY if legacy_hash_set else SET


def conditional_set_script(legacy_hash_set: bool) -> ScriptDescriptor:
    return CONDITIONAL_SET_LEGACY if legacy_hash_set else CONDITIONAL_SET
