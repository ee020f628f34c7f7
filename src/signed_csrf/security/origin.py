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
"""Origin check — compares the declared origin with the serving host.

A defense-in-depth layer in front of token verification. Requests marked
``X-Requested-With: XMLHttpRequest`` and requests without any ``Origin`` or
``Referer`` header pass; otherwise the origin's ``host[:port]`` must match
the configured host, ``X-Forwarded-Host`` or ``Host``.
"""

from __future__ import annotations

from urllib.parse import urlsplit

from signed_csrf.config.properties import CsrfProperties
from signed_csrf.security.exchange import CsrfExchange

XHR_HEADER: str = "x-requested-with"
XHR_VALUE: str = "XMLHttpRequest"


class OriginChecker:
    """Classifies a request's declared origin as consistent with the host or not."""

    def __init__(self, properties: CsrfProperties) -> None:
        self._host = properties.host

    def declared_origin(self, exchange: CsrfExchange) -> str:
        return (
            exchange.header("origin")
            or exchange.header("referer")
            or exchange.header("referrer")
            or ""
        )

    def declared_host(self, exchange: CsrfExchange) -> str | None:
        if self._host:
            return self._host
        forwarded = exchange.header("x-forwarded-host")
        if forwarded:
            # Proxies append; the first entry is the host the client addressed
            return forwarded.split(",")[0].strip() or None
        return exchange.header("host")

    def check(self, exchange: CsrfExchange) -> bool:
        """Return ``True`` if the request passes the origin check."""
        if exchange.header(XHR_HEADER) == XHR_VALUE:
            return True

        origin = self.declared_origin(exchange)
        if not origin:
            return True

        host = self.declared_host(exchange)
        if not host:
            return False
        return _origin_matches(origin, host)


def _origin_matches(origin: str, host: str) -> bool:
    try:
        parts = urlsplit(origin.strip())
        hostname = parts.hostname
    except ValueError:
        return False
    if not parts.scheme or not parts.netloc or hostname is None:
        return False

    netloc = parts.netloc.rpartition("@")[2].lower()
    expected = host.strip().lower()
    if netloc == expected:
        return True
    # A host without a port matches the origin on any port
    return ":" not in expected.rpartition("]")[2] and hostname == expected.strip("[]")
