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
"""CsrfProtection — signed-token CSRF protocol.

Two HMAC levels: the master secret signs a per-principal *session secret*
(kept in the session, or in a cookie when there is no session), and the
session secret signs the *request tokens* handed to the client. A request
token is therefore only valid for the principal whose secret produced it,
and neither the token nor the cookie reveals the master secret.

Operations, selected per request method:

* ``create`` — resolve or mint the session secret, expose ``csrf_token()``,
  persist the secret.  Never rejects.
* ``verify`` — check a presented token against the session secret.
* ``verify_xhr`` — check only that a valid session secret is present.
* ``protect`` — ``create`` on safe methods, ``create`` then ``verify``
  otherwise.
* ``check_origin`` — compare ``Origin``/``Referer`` with the serving host.

Methods in ``ignore_methods`` skip every operation.
"""

from __future__ import annotations

import enum
import logging
from collections.abc import Callable

from signed_csrf.config.properties import CsrfProperties
from signed_csrf.core.config import Config
from signed_csrf.kernel.exceptions import (
    BadCsrfTokenException,
    BadOriginException,
    ConfigurationException,
    MisconfiguredCsrfException,
)
from signed_csrf.security.exchange import CsrfExchange
from signed_csrf.security.origin import OriginChecker
from signed_csrf.security.secret import ResolvedSecret, SecretResolver
from signed_csrf.security.token import SignedTokenCodec

logger = logging.getLogger(__name__)

SAFE_METHODS: frozenset[str] = frozenset({"GET", "HEAD", "OPTIONS", "TRACE"})
"""HTTP methods that only receive a fresh token, never a verification."""


class CsrfState(enum.Enum):
    """Outcome of a CSRF operation for one request."""

    SKIPPED = "skipped"
    CREATED = "created"
    VERIFIED = "verified"
    CREATED_AND_VERIFIED = "created_and_verified"
    REJECTED = "rejected"


class CsrfProtection:
    """Immutable CSRF protection bound to a master secret and configuration.

    One instance serves all requests; per-request state lives in the
    :class:`CsrfExchange` passed to each operation.

    Args:
        secret: The master secret. Never sent to clients.
        properties: Configuration; defaults to ``CsrfProperties()``.

    Raises:
        ConfigurationException: *secret* is missing or the token parameters
            are invalid.

    Example::

        protection = CsrfProtection("change-me", CsrfProperties())
        exchange = CsrfExchange(method="GET", cookies=request_cookies)
        protection.protect(exchange)
        token = exchange.csrf_token()
    """

    def __init__(self, secret: str | bytes | None, properties: CsrfProperties | None = None) -> None:
        if not secret:
            raise ConfigurationException("a master secret is required for csrf protection")
        self._properties = properties or CsrfProperties()
        self._master = SignedTokenCodec(secret, self._properties.token)
        self._resolver = SecretResolver(self._master, self._properties)
        self._origin = OriginChecker(self._properties)

    @classmethod
    def from_config(cls, config: Config) -> CsrfProtection:
        """Build from the ``csrf`` section; the master secret is ``csrf.secret``."""
        return cls(config.get("csrf.secret"), config.bind(CsrfProperties))

    @property
    def properties(self) -> CsrfProperties:
        return self._properties

    def is_ignored(self, exchange: CsrfExchange) -> bool:
        return exchange.method in self._properties.ignore_methods

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def check_origin(self, exchange: CsrfExchange) -> CsrfState | None:
        """Raise :class:`BadOriginException` if the origin does not match the host.

        Returns ``CsrfState.SKIPPED`` for ignored methods, ``None`` otherwise.
        """
        if self.is_ignored(exchange):
            return CsrfState.SKIPPED
        if not self._origin.check(exchange):
            logger.warning("Rejected request: origin does not match host (method=%s)", exchange.method)
            raise BadOriginException()
        return None

    def create(self, exchange: CsrfExchange) -> CsrfState:
        """Expose ``exchange.csrf_token`` and persist the session secret."""
        if self.is_ignored(exchange):
            return CsrfState.SKIPPED

        secret = self._resolver.resolve(exchange)
        exchange.csrf_token = self._token_factory(secret)
        self._resolver.persist(exchange, secret)
        return CsrfState.CREATED

    def verify(self, exchange: CsrfExchange) -> CsrfState:
        """Verify the presented token against the request's session secret.

        Raises:
            MisconfiguredCsrfException: no token or no secret on the request.
            BadCsrfTokenException: the secret or the token is not authentic.
        """
        if self.is_ignored(exchange):
            return CsrfState.SKIPPED

        token = self._presented_token(exchange)
        candidate = self._resolver.lookup(exchange)
        if not token or candidate is None:
            logger.warning(
                "Rejected request: csrf %s missing (method=%s)",
                "token" if not token else "secret",
                exchange.method,
            )
            raise MisconfiguredCsrfException()

        # Both checks always run, whichever fails
        token_valid = SignedTokenCodec(candidate.value, self._properties.token).verify(token)
        if not (candidate.valid and token_valid):
            logger.warning(
                "Rejected request: bad csrf token (source=%s, method=%s)",
                candidate.source.value,
                exchange.method,
            )
            raise BadCsrfTokenException()
        return CsrfState.VERIFIED

    def verify_xhr(self, exchange: CsrfExchange) -> CsrfState:
        """Verify only that a valid session secret accompanies the request.

        For API clients sending credentialed same-origin requests, where the
        transport refuses credentialed cross-origin requests.
        """
        if self.is_ignored(exchange):
            return CsrfState.SKIPPED

        candidate = self._resolver.lookup(exchange)
        if candidate is None:
            logger.warning("Rejected request: csrf secret missing (method=%s)", exchange.method)
            raise MisconfiguredCsrfException()
        if not candidate.valid:
            logger.warning("Rejected request: bad csrf secret (source=%s)", candidate.source.value)
            raise BadCsrfTokenException()
        return CsrfState.VERIFIED

    def protect(self, exchange: CsrfExchange) -> CsrfState:
        """Run ``create`` and, for unsafe methods, ``verify`` afterwards.

        ``create`` runs first so a rejected request still leaves a usable
        replacement secret on the exchange.
        """
        if self.is_ignored(exchange):
            return CsrfState.SKIPPED

        self.create(exchange)
        if exchange.method in SAFE_METHODS:
            return CsrfState.CREATED

        self.verify(exchange)
        return CsrfState.CREATED_AND_VERIFIED

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _token_factory(self, secret: ResolvedSecret) -> Callable[[], str]:
        codec = SignedTokenCodec(secret.value, self._properties.token)
        return codec.sign

    def _presented_token(self, exchange: CsrfExchange) -> str | None:
        name = self._properties.name
        for value in (
            exchange.preset_token,
            exchange.body.get(name) if exchange.body is not None else None,
            exchange.query.get(name),
            exchange.header(self._properties.header_name),
        ):
            if value:
                return value if isinstance(value, str) else str(value)
        return None
