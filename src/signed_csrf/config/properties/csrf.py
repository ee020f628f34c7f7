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
"""CSRF protection configuration properties (csrf.*)."""

from __future__ import annotations

from dataclasses import dataclass, field

from signed_csrf.core.config import config_properties

ALWAYS_IGNORED_METHODS: frozenset[str] = frozenset({"HEAD", "OPTIONS"})
"""Methods that bypass every check regardless of configuration."""


@config_properties(prefix="csrf.cookie")
@dataclass(frozen=True)
class CookieProperties:
    """Attributes of the cookie carrying the session secret (csrf.cookie.*)."""

    path: str = "/"
    http_only: bool = True
    secure: bool = True
    same_site: str = "strict"
    domain: str | None = None
    max_age: int | None = None


@config_properties(prefix="csrf.token")
@dataclass(frozen=True)
class TokenProperties:
    """Signed-token codec parameters (csrf.token.*).

    A token is ``common_len`` nonce characters followed by
    ``token_len - common_len`` signature characters.
    """

    digest: str = "sha256"
    common_len: int = 24
    token_len: int = 48


@config_properties(prefix="csrf")
@dataclass(frozen=True)
class CsrfProperties:
    """Configuration for CSRF protection (csrf.*).

    ``name`` is used as session attribute, cookie name, body/query field and
    in the ``x-<name>-token`` header. ``ignore_methods`` is added to the
    always-ignored ``HEAD`` and ``OPTIONS``; a comma separated string is
    accepted so the value can come from an environment variable.
    """

    name: str = "csrf"
    cookie: CookieProperties = field(default_factory=CookieProperties)
    token: TokenProperties = field(default_factory=TokenProperties)
    ignore_methods: frozenset[str] = ALWAYS_IGNORED_METHODS
    host: str | None = None

    def __post_init__(self) -> None:
        methods = self.ignore_methods
        if isinstance(methods, str):
            methods = methods.split(",")
        normalized = {m.strip().upper() for m in methods if m.strip()}
        object.__setattr__(self, "ignore_methods", ALWAYS_IGNORED_METHODS | normalized)

    @property
    def header_name(self) -> str:
        """Request header carrying a presented token."""
        return f"x-{self.name}-token"
