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
"""Signed-token codec — HMAC over a random nonce.

A signed token is ``nonce || mac`` where ``nonce`` is ``common_len`` random
URL-safe characters and ``mac`` is the URL-safe base64 HMAC of the nonce,
truncated to ``token_len - common_len`` characters. The same codec signs
session secrets (keyed with the master secret) and request tokens (keyed
with a session secret).
"""

from __future__ import annotations

import base64
import hashlib
import hmac
import secrets

from signed_csrf.config.properties import TokenProperties
from signed_csrf.kernel.exceptions import ConfigurationException
from signed_csrf.security.compare import timing_safe_equal


def _encoded_digest_len(digest: str) -> int:
    """Number of unpadded base64 characters produced by *digest*."""
    size = hashlib.new(digest).digest_size
    return (size * 4 + 2) // 3


class SignedTokenCodec:
    """Signs and verifies fixed-length tokens with a single key.

    Instances are immutable and safe to share between concurrent requests.

    Args:
        key: The HMAC key (master secret or session secret).
        properties: Codec parameters; defaults to ``TokenProperties()``.

    Raises:
        ConfigurationException: The key is empty or the parameters cannot
            produce a token of the requested length.
    """

    __slots__ = ("_key", "_digest", "_common_len", "_token_len")

    def __init__(self, key: str | bytes, properties: TokenProperties | None = None) -> None:
        props = properties or TokenProperties()
        if not key:
            raise ConfigurationException("signing key must not be empty")
        self._key = key.encode("utf-8") if isinstance(key, str) else bytes(key)
        self._digest = props.digest.lower()
        self._common_len = props.common_len
        self._token_len = props.token_len
        self._validate()

    def _validate(self) -> None:
        if self._digest not in hashlib.algorithms_available or self._digest.startswith("shake_"):
            raise ConfigurationException(f"unsupported digest '{self._digest}'")
        if self._common_len < 1:
            raise ConfigurationException("common_len must be at least 1")
        mac_len = self._token_len - self._common_len
        if mac_len < 1:
            raise ConfigurationException("token_len must be greater than common_len")
        if mac_len > _encoded_digest_len(self._digest):
            raise ConfigurationException(
                f"digest '{self._digest}' cannot fill a {mac_len} character signature"
            )

    @property
    def token_len(self) -> int:
        return self._token_len

    def _mac(self, nonce: str) -> str:
        raw = hmac.new(self._key, nonce.encode("ascii"), self._digest).digest()
        encoded = base64.urlsafe_b64encode(raw).decode("ascii").rstrip("=")
        return encoded[: self._token_len - self._common_len]

    def sign(self) -> str:
        """Return a fresh token; every call yields an independent value."""
        nonce = secrets.token_urlsafe(self._common_len)[: self._common_len]
        return nonce + self._mac(nonce)

    def verify(self, token: object) -> bool:
        """Return ``True`` if *token* was signed with this codec's key.

        Never raises: tokens of the wrong type, the wrong length or with
        non-ASCII characters are simply invalid.
        """
        if not isinstance(token, str) or len(token) != self._token_len:
            return False
        if not token.isascii():
            return False
        nonce = token[: self._common_len]
        return timing_safe_equal(token, nonce + self._mac(nonce))
