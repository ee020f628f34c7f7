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
"""CsrfExchange — the request/response state one CSRF operation works on.

Web adapters build an exchange from their native request, run a
:class:`~signed_csrf.security.csrf.CsrfProtection` operation on it, then
copy ``csrf_token`` and ``cookies_to_set`` back onto the request and
response.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping, MutableMapping
from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable

from signed_csrf.config.properties import CookieProperties


@runtime_checkable
class SessionAttributes(Protocol):
    """Read/write contract of an externally managed session."""

    def get_attribute(self, name: str) -> Any | None: ...

    def set_attribute(self, name: str, value: Any) -> None: ...


class MappingSession:
    """Adapts a plain mutable mapping (e.g. Starlette's ``request.session``)."""

    __slots__ = ("_data",)

    def __init__(self, data: MutableMapping[str, Any]) -> None:
        self._data = data

    def get_attribute(self, name: str) -> Any | None:
        return self._data.get(name)

    def set_attribute(self, name: str, value: Any) -> None:
        self._data[name] = value


@dataclass(frozen=True)
class PendingCookie:
    """A cookie to be written on the response."""

    name: str
    value: str
    properties: CookieProperties


@dataclass
class CsrfExchange:
    """Explicit request context for CSRF operations.

    Attributes:
        method: HTTP method, upper-cased on construction.
        headers: Request headers; keys are lower-cased on construction and a
            repeated header keeps its first value.
        cookies: Parsed request cookies.
        query: Parsed query parameters.
        body: Parsed request body, or ``None`` when nothing upstream parsed it.
        session: The principal's session, or ``None`` when no session exists.
            Plain mappings are wrapped in :class:`MappingSession`.
        preset_token: A token placed on the request by upstream middleware.
        preset_secret: A session secret placed on the request by upstream
            middleware.
        csrf_token: Installed by ``create``; returns a fresh request token on
            every call.
        cookies_to_set: Cookies queued for the response.
    """

    method: str
    headers: Mapping[str, str] = field(default_factory=dict)
    cookies: Mapping[str, str] = field(default_factory=dict)
    query: Mapping[str, Any] = field(default_factory=dict)
    body: Mapping[str, Any] | None = None
    session: SessionAttributes | None = None
    preset_token: str | None = None
    preset_secret: str | None = None
    csrf_token: Callable[[], str] | None = None
    cookies_to_set: list[PendingCookie] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.method = self.method.upper()
        headers: dict[str, str] = {}
        for key, value in self.headers.items():
            headers.setdefault(key.lower(), value)
        self.headers = headers
        if isinstance(self.session, MutableMapping):
            self.session = MappingSession(self.session)

    def header(self, name: str) -> str | None:
        """Return a request header (case-insensitive), ``None`` if absent or empty."""
        return self.headers.get(name.lower()) or None

    def set_cookie(self, name: str, value: str, properties: CookieProperties) -> None:
        """Queue a cookie for the response."""
        self.cookies_to_set.append(PendingCookie(name, value, properties))
