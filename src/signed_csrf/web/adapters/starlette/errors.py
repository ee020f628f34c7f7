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
"""Error responses for CSRF rejections — RFC 7807 inspired JSON bodies."""

from __future__ import annotations

import uuid
from datetime import UTC, datetime
from typing import Any

from starlette.requests import Request
from starlette.responses import JSONResponse

from signed_csrf.kernel.exceptions import CsrfException, SecurityException, SignedCsrfException


def _get_status_code(exc: Exception) -> int:
    if isinstance(exc, CsrfException):
        return exc.status_code
    if isinstance(exc, SecurityException):
        return 403
    return 500


def csrf_error_response(request: Request, exc: Exception, token_name: str = "csrf") -> JSONResponse:
    """Render *exc* as JSON.

    When a token factory was exposed on ``request.state.csrf_token`` before
    the rejection, a fresh token is included under *token_name* so the
    client can resubmit without reloading.
    """
    status = _get_status_code(exc)
    error: dict[str, Any] = {
        "message": str(exc) if isinstance(exc, SignedCsrfException) else "Internal server error",
        "code": getattr(exc, "code", None) or "INTERNAL_ERROR",
        "transaction_id": getattr(request.state, "transaction_id", str(uuid.uuid4())),
        "timestamp": datetime.now(UTC).isoformat(),
        "status": status,
        "path": request.url.path,
    }
    if isinstance(exc, SignedCsrfException) and exc.context:
        error["context"] = exc.context

    body: dict[str, Any] = {"error": error}
    csrf_token = getattr(request.state, "csrf_token", None)
    if callable(csrf_token):
        body[token_name] = csrf_token()
    return JSONResponse(body, status_code=status)


async def csrf_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Starlette exception handler for :class:`CsrfException`.

    Register with ``app.add_exception_handler(CsrfException, csrf_exception_handler)``
    when calling :class:`~signed_csrf.security.csrf.CsrfProtection` from
    route handlers instead of through :class:`CsrfFilter`.
    """
    return csrf_error_response(request, exc)
