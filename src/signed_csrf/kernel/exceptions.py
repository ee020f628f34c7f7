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
"""Unified exception hierarchy for signed-csrf.

All package exceptions inherit from SignedCsrfException so that callers can
catch a single base type. CSRF rejections carry an HTTP status and one of the
machine-readable codes below.

Categories:
- SecurityException: request rejected for security reasons (CSRF failures)
- ConfigurationException: fatal setup errors, raised at construction time
"""

from __future__ import annotations

# Machine-readable rejection codes.
BAD_ORIGIN: str = "ECSRFBADORIGIN"
MISCONFIGURED: str = "ECSRFMISCONFIG"
BAD_TOKEN: str = "ECSRFBADTOKEN"


# =============================================================================
# Base Exception
# =============================================================================


class SignedCsrfException(Exception):
    """Base exception for all signed-csrf errors.

    Args:
        message: Human-readable error description.
        code: Machine-readable error code (e.g. ``"ECSRFBADTOKEN"``).
        context: Arbitrary key-value pairs for error context and debugging.
    """

    def __init__(
        self,
        message: str,
        code: str | None = None,
        context: dict | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.context: dict = context if context is not None else {}


class ConfigurationException(SignedCsrfException):
    """Invalid or missing configuration; the protection cannot operate."""


# =============================================================================
# Security Exceptions
# =============================================================================


class SecurityException(SignedCsrfException):
    """Request rejected for security reasons."""


class ForbiddenException(SecurityException):
    """The request is not allowed to perform the operation."""


class CsrfException(ForbiddenException):
    """A CSRF check rejected the request.

    Always terminal for the current request. ``status`` and ``status_code``
    both hold the HTTP status (403).
    """

    status_code: int = 403
    default_message: str = "csrf check failed"
    default_code: str | None = None

    def __init__(
        self,
        message: str | None = None,
        code: str | None = None,
        context: dict | None = None,
    ) -> None:
        super().__init__(
            message or self.default_message,
            code=code or self.default_code,
            context=context,
        )

    @property
    def status(self) -> int:
        return self.status_code


class BadOriginException(CsrfException):
    """Origin or referrer present but inconsistent with the serving host."""

    default_message = "bad origin"
    default_code = BAD_ORIGIN


class MisconfiguredCsrfException(CsrfException):
    """Verification attempted without a presented token or a resolvable secret."""

    default_message = "misconfigured csrf"
    default_code = MISCONFIGURED


class BadCsrfTokenException(CsrfException):
    """The presented token or the session secret failed verification."""

    default_message = "bad csrf token"
    default_code = BAD_TOKEN
