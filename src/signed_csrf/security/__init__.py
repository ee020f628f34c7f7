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
"""Security — signed-token CSRF protection."""

from signed_csrf.security.compare import timing_safe_equal
from signed_csrf.security.csrf import SAFE_METHODS, CsrfProtection, CsrfState
from signed_csrf.security.exchange import CsrfExchange, MappingSession, PendingCookie, SessionAttributes
from signed_csrf.security.origin import OriginChecker
from signed_csrf.security.secret import ResolvedSecret, SecretCandidate, SecretResolver, SecretSource
from signed_csrf.security.token import SignedTokenCodec

__all__ = [
    "SAFE_METHODS",
    "CsrfExchange",
    "CsrfProtection",
    "CsrfState",
    "MappingSession",
    "OriginChecker",
    "PendingCookie",
    "ResolvedSecret",
    "SecretCandidate",
    "SecretResolver",
    "SecretSource",
    "SessionAttributes",
    "SignedTokenCodec",
    "timing_safe_equal",
]
