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
"""CsrfFilter — signed-token CSRF protection for Starlette applications.

Builds a :class:`~signed_csrf.security.exchange.CsrfExchange` from the
request, runs the origin check and the configured operation, then:

* exposes ``request.state.csrf_token()`` (a fresh token per call) to the
  route handler,
* records the outcome on ``request.state.csrf_state``,
* writes the queued session-secret cookie on the response, including
  rejection responses so the client can recover.

Inputs read from the request:

* session — ``request.scope["session"]`` (Starlette ``SessionMiddleware``)
  or any object on ``request.state.session`` with
  ``get_attribute``/``set_attribute``
* parsed body — ``request.state.body`` (set by upstream body parsing)
* pre-set token / secret — ``request.state.csrf`` / ``request.state.csrf_secret``
"""

from __future__ import annotations

import enum
import logging
from collections.abc import Mapping, Sequence
from typing import Any

from starlette.responses import Response

from signed_csrf.kernel.exceptions import ConfigurationException, CsrfException
from signed_csrf.security.csrf import CsrfProtection, CsrfState
from signed_csrf.security.exchange import CsrfExchange, MappingSession
from signed_csrf.web.adapters.starlette.errors import csrf_error_response
from signed_csrf.web.filters import OncePerRequestFilter
from signed_csrf.web.ports.filter import CallNext

logger = logging.getLogger(__name__)


class CsrfOperation(str, enum.Enum):
    """Which :class:`CsrfProtection` operation the filter runs."""

    PROTECT = "protect"
    CREATE = "create"
    VERIFY = "verify"
    VERIFY_XHR = "verify_xhr"


def build_exchange(request: Any) -> CsrfExchange:
    """Translate a Starlette request into a :class:`CsrfExchange`."""
    state = request.state
    session: Any = getattr(state, "session", None)
    if session is None and "session" in request.scope:
        session = MappingSession(request.scope["session"])

    body = getattr(state, "body", None)
    return CsrfExchange(
        method=request.method,
        headers=request.headers,
        cookies=request.cookies,
        query=request.query_params,
        body=body if isinstance(body, Mapping) else None,
        session=session,
        preset_token=getattr(state, "csrf", None),
        preset_secret=getattr(state, "csrf_secret", None),
    )


def apply_cookies(response: Response, exchange: CsrfExchange) -> None:
    """Write the cookies queued on *exchange* to *response*."""
    for cookie in exchange.cookies_to_set:
        props = cookie.properties
        response.set_cookie(
            key=cookie.name,
            value=cookie.value,
            max_age=props.max_age,
            path=props.path,
            domain=props.domain,
            secure=props.secure,
            httponly=props.http_only,
            samesite=props.same_site.lower() if props.same_site else None,
        )


class CsrfFilter(OncePerRequestFilter):
    """Signed-token CSRF filter.

    Args:
        protection: The configured protection.
        operation: Operation to run; ``protect`` (create, and verify on
            unsafe methods) by default.
        check_origin: Run the origin check before the operation.
        url_patterns: Only filter matching paths (all when empty).
        exclude_patterns: Never filter matching paths.

    Ordering: runs early so rejections happen before authorization and
    route handling.
    """

    __filter_order__ = -50

    def __init__(
        self,
        protection: CsrfProtection,
        operation: CsrfOperation | str = CsrfOperation.PROTECT,
        *,
        check_origin: bool = True,
        url_patterns: Sequence[str] = (),
        exclude_patterns: Sequence[str] = (),
    ) -> None:
        try:
            self._operation = CsrfOperation(operation)
        except ValueError as exc:
            raise ConfigurationException(f"unknown csrf operation '{operation}'") from exc
        self._protection = protection
        self._check_origin = check_origin
        self.url_patterns = tuple(url_patterns)
        self.exclude_patterns = tuple(exclude_patterns)

    def _run(self, exchange: CsrfExchange) -> CsrfState:
        if self._check_origin and self._protection.check_origin(exchange) is CsrfState.SKIPPED:
            return CsrfState.SKIPPED
        operation = getattr(self._protection, self._operation.value)
        return operation(exchange)

    async def do_filter(self, request: Any, call_next: CallNext) -> Any:
        exchange = build_exchange(request)
        try:
            state = self._run(exchange)
        except CsrfException as exc:
            request.state.csrf_state = CsrfState.REJECTED
            if exchange.csrf_token is not None:
                request.state.csrf_token = exchange.csrf_token
            response = csrf_error_response(request, exc, self._protection.properties.name)
            apply_cookies(response, exchange)
            return response

        request.state.csrf_state = state
        if exchange.csrf_token is not None:
            request.state.csrf_token = exchange.csrf_token
        logger.debug("csrf %s %s -> %s", request.method, request.url.path, state.value)

        response = await call_next(request)
        apply_cookies(response, exchange)
        return response
