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
"""Timing-safe equality for secret-derived values."""

from __future__ import annotations

import hmac


def _as_bytes(value: str | bytes) -> bytes:
    if isinstance(value, bytes):
        return value
    return value.encode("utf-8")


def timing_safe_equal(a: str | bytes, b: str | bytes) -> bool:
    """Compare *a* and *b* in time independent of their contents.

    Both operands are padded to the longer length before the comparison, so
    the work done depends only on that length and not on where the first
    mismatch occurs. Operands that cannot be encoded compare unequal.
    """
    try:
        left, right = _as_bytes(a), _as_bytes(b)
    except (AttributeError, UnicodeEncodeError):
        return False

    length = max(len(left), len(right))
    same = hmac.compare_digest(left.ljust(length, b"\0"), right.ljust(length, b"\0"))
    return same and len(left) == len(right)
