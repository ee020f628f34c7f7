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
"""Session secret lookup, validation, minting and persistence."""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass

from signed_csrf.config.properties import CsrfProperties
from signed_csrf.security.exchange import CsrfExchange
from signed_csrf.security.token import SignedTokenCodec

logger = logging.getLogger(__name__)


class SecretSource(enum.Enum):
    """Where a session secret came from."""

    PRESET = "preset"
    SESSION = "session"
    COOKIE = "cookie"
    MINTED = "minted"


@dataclass(frozen=True)
class SecretCandidate:
    """A session secret found on the request, valid or not."""

    value: str
    source: SecretSource
    valid: bool


@dataclass(frozen=True)
class ResolvedSecret:
    """A session secret known to be valid against the master secret."""

    value: str
    source: SecretSource


class SecretResolver:
    """Finds, validates and stores the per-principal session secret.

    Args:
        master: Codec keyed with the master secret.
        properties: CSRF configuration (``name`` and cookie attributes).
    """

    def __init__(self, master: SignedTokenCodec, properties: CsrfProperties) -> None:
        self._master = master
        self._properties = properties

    def lookup(self, exchange: CsrfExchange) -> SecretCandidate | None:
        """Return the first secret present on the request, or ``None``.

        Lookup order: pre-set value, session attribute, cookie. The first
        location holding a value wins even if that value is invalid.
        """
        name = self._properties.name
        if exchange.preset_secret:
            return self._candidate(exchange.preset_secret, SecretSource.PRESET)

        stored = exchange.session.get_attribute(name) if exchange.session is not None else None
        if stored:
            return self._candidate(stored, SecretSource.SESSION)

        cookie = exchange.cookies.get(name)
        if cookie:
            return self._candidate(cookie, SecretSource.COOKIE)
        return None

    def _candidate(self, value: object, source: SecretSource) -> SecretCandidate:
        valid = isinstance(value, str) and self._master.verify(value)
        return SecretCandidate(str(value), source, valid)

    def resolve(self, exchange: CsrfExchange) -> ResolvedSecret:
        """Return a valid secret, minting a new one when none is found."""
        candidate = self.lookup(exchange)
        if candidate is not None and candidate.valid:
            return ResolvedSecret(candidate.value, candidate.source)

        if candidate is not None:
            logger.info("Discarding invalid csrf secret from %s", candidate.source.value)
        return ResolvedSecret(self._master.sign(), SecretSource.MINTED)

    def persist(self, exchange: CsrfExchange, secret: ResolvedSecret) -> None:
        """Store *secret* in the session, or in a cookie when there is none.

        A session already holding the secret is not rewritten; a secret that
        came from a valid cookie is not re-sent.
        """
        name = self._properties.name
        if exchange.session is not None:
            if exchange.session.get_attribute(name) != secret.value:
                exchange.session.set_attribute(name, secret.value)
                logger.debug("Stored csrf secret in session (source=%s)", secret.source.value)
        elif secret.source is not SecretSource.COOKIE:
            exchange.set_cookie(name, secret.value, self._properties.cookie)
            logger.debug("Queued csrf secret cookie (source=%s)", secret.source.value)
