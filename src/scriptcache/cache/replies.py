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
"""Typed store replies.

Raw client results are classified once, at the adapter boundary, into a
small tagged union so the engine can dispatch on ``Reply.kind`` instead of
inspecting Python types.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

NO_SCRIPT_PREFIX = "NOSCRIPT"


class ReplyKind(Enum):
    NIL = "nil"
    SCALAR = "scalar"
    INTEGER = "integer"
    ARRAY = "array"
    ERROR = "error"


@dataclass(frozen=True)
class Reply:
    """One store reply.

    ``value`` is ``None`` for NIL, ``bytes`` for SCALAR, ``int`` for INTEGER,
    a list of replies for ARRAY and the error message for ERROR.
    ``no_script`` marks an ERROR reply saying the node has no cached script
    for the requested digest.
    """

    kind: ReplyKind
    value: Any = None
    no_script: bool = False

    @classmethod
    def nil(cls) -> Reply:
        return cls(ReplyKind.NIL)

    @classmethod
    def scalar(cls, value: bytes | str) -> Reply:
        return cls(ReplyKind.SCALAR, value.encode("utf-8") if isinstance(value, str) else value)

    @classmethod
    def integer(cls, value: int) -> Reply:
        return cls(ReplyKind.INTEGER, value)

    @classmethod
    def error(cls, message: str) -> Reply:
        return cls(ReplyKind.ERROR, message, no_script=message.startswith(NO_SCRIPT_PREFIX))

    @classmethod
    def from_raw(cls, raw: Any) -> Reply:
        """Classify a raw ``redis-py`` result."""
        if raw is None:
            return cls.nil()
        # bool before int: bool is an int subclass
        if isinstance(raw, bool):
            return cls.integer(int(raw))
        if isinstance(raw, int):
            return cls.integer(raw)
        if isinstance(raw, (bytes, str)):
            return cls.scalar(raw)
        if isinstance(raw, (list, tuple)):
            return cls(ReplyKind.ARRAY, [cls.from_raw(item) for item in raw])
        if isinstance(raw, Exception):
            return cls.error(str(raw))
        return cls.scalar(str(raw))

    @property
    def is_nil(self) -> bool:
        return self.kind is ReplyKind.NIL

    @property
    def is_error(self) -> bool:
        return self.kind is ReplyKind.ERROR

    def as_text(self) -> str | None:
        """Decoded scalar value, or ``None`` for any other kind."""
        if self.kind is not ReplyKind.SCALAR:
            return None
        return self.value.decode("utf-8", errors="replace")

    def describe(self) -> str:
        """Short ``kind:value`` rendering for log messages."""
        if self.kind is ReplyKind.SCALAR:
            return f"{self.kind.value}:{self.as_text()!r}"
        return f"{self.kind.value}:{self.value!r}"
