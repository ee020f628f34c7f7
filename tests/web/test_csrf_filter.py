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
"""Tests for CsrfFilter in isolation (mocked call_next)."""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest
from starlette.requests import Request
from starlette.responses import Response

from signed_csrf.config.properties import CookieProperties, CsrfProperties
from signed_csrf.kernel.exceptions import ConfigurationException
from signed_csrf.security.csrf import CsrfProtection, CsrfState
from signed_csrf.security.token import SignedTokenCodec
from signed_csrf.web.adapters.starlette.filters.csrf_filter import CsrfFilter, CsrfOperation

SECRET = "ssshhh"


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _make_request(
    method: str = "GET",
    path: str = "/form",
    headers: dict[str, str] | None = None,
    cookies: dict[str, str] | None = None,
    query: str = "",
) -> Request:
    raw_headers = [(k.lower().encode(), v.encode()) for k, v in (headers or {}).items()]
    if cookies:
        cookie = "; ".join(f"{k}={v}" for k, v in cookies.items())
        raw_headers.append((b"cookie", cookie.encode()))
    scope = {
        "type": "http",
        "method": method,
        "path": path,
        "root_path": "",
        "scheme": "http",
        "server": ("testserver", 80),
        "query_string": query.encode(),
        "headers": raw_headers,
    }
    return Request(scope)


def _protection(**props) -> CsrfProtection:
    props.setdefault("cookie", CookieProperties(secure=False))
    return CsrfProtection(SECRET, CsrfProperties(**props))


def _set_cookie_headers(response: Response) -> list[str]:
    return [v.decode() for k, v in response.raw_headers if k == b"set-cookie"]


async def _issue(protection: CsrfProtection) -> tuple[str, str]:
    """Run a GET through the filter; return (cookie secret, request token)."""
    request = _make_request("GET")
    call_next = AsyncMock(return_value=Response("ok"))
    response = await CsrfFilter(protection).do_filter(request, call_next)
    cookie = _set_cookie_headers(response)[0]
    secret = cookie.split(";")[0].split("=", 1)[1]
    return secret, request.state.csrf_token()


# ---------------------------------------------------------------------------
# Tests
# ---------------------------------------------------------------------------


class TestCsrfFilterCreate:
    @pytest.mark.asyncio
    async def test_get_sets_cookie_and_exposes_token(self) -> None:
        request = _make_request("GET")
        response = Response(content="ok", status_code=200)
        call_next = AsyncMock(return_value=response)

        result = await CsrfFilter(_protection()).do_filter(request, call_next)

        call_next.assert_awaited_once_with(request)
        assert result is response
        assert request.state.csrf_state is CsrfState.CREATED
        assert len(request.state.csrf_token()) == 48
        cookies = _set_cookie_headers(result)
        assert len(cookies) == 1
        assert cookies[0].startswith("csrf=")
        assert "HttpOnly" in cookies[0]
        assert "Path=/" in cookies[0]
        assert "SameSite=strict" in cookies[0]

    @pytest.mark.asyncio
    async def test_secure_cookie_by_default(self) -> None:
        request = _make_request("GET")
        call_next = AsyncMock(return_value=Response("ok"))
        result = await CsrfFilter(CsrfProtection(SECRET)).do_filter(request, call_next)
        assert "Secure" in _set_cookie_headers(result)[0]

    @pytest.mark.asyncio
    async def test_valid_cookie_not_resent(self) -> None:
        protection = _protection()
        secret, _ = await _issue(protection)
        request = _make_request("GET", cookies={"csrf": secret})
        call_next = AsyncMock(return_value=Response("ok"))
        result = await CsrfFilter(protection).do_filter(request, call_next)
        assert _set_cookie_headers(result) == []

    @pytest.mark.asyncio
    async def test_session_on_state_is_used(self) -> None:
        session: dict = {}
        request = _make_request("GET")
        request.state.session = session
        call_next = AsyncMock(return_value=Response("ok"))
        result = await CsrfFilter(_protection()).do_filter(request, call_next)
        assert _set_cookie_headers(result) == []
        assert SignedTokenCodec(SECRET).verify(session["csrf"])

    @pytest.mark.asyncio
    async def test_scope_session_is_used(self) -> None:
        request = _make_request("GET")
        request.scope["session"] = {}
        call_next = AsyncMock(return_value=Response("ok"))
        await CsrfFilter(_protection()).do_filter(request, call_next)
        assert SignedTokenCodec(SECRET).verify(request.scope["session"]["csrf"])


class TestCsrfFilterVerify:
    @pytest.mark.asyncio
    async def test_post_with_header_token(self) -> None:
        protection = _protection()
        secret, token = await _issue(protection)
        request = _make_request("POST", headers={"x-csrf-token": token}, cookies={"csrf": secret})
        response = Response("created", status_code=201)
        call_next = AsyncMock(return_value=response)

        result = await CsrfFilter(protection).do_filter(request, call_next)

        call_next.assert_awaited_once_with(request)
        assert result is response
        assert request.state.csrf_state is CsrfState.CREATED_AND_VERIFIED

    @pytest.mark.asyncio
    async def test_post_with_query_token(self) -> None:
        protection = _protection()
        secret, token = await _issue(protection)
        request = _make_request("POST", cookies={"csrf": secret}, query=f"csrf={token}")
        call_next = AsyncMock(return_value=Response("ok"))
        result = await CsrfFilter(protection).do_filter(request, call_next)
        assert result.status_code == 200

    @pytest.mark.asyncio
    async def test_post_with_parsed_body(self) -> None:
        protection = _protection()
        secret, token = await _issue(protection)
        request = _make_request("POST", cookies={"csrf": secret})
        request.state.body = {"csrf": token}
        call_next = AsyncMock(return_value=Response("ok"))
        result = await CsrfFilter(protection).do_filter(request, call_next)
        assert result.status_code == 200

    @pytest.mark.asyncio
    async def test_post_with_preset_token(self) -> None:
        protection = _protection()
        secret, token = await _issue(protection)
        request = _make_request("POST", cookies={"csrf": secret})
        request.state.csrf = token
        call_next = AsyncMock(return_value=Response("ok"))
        result = await CsrfFilter(protection).do_filter(request, call_next)
        assert result.status_code == 200

    @pytest.mark.asyncio
    async def test_bad_token_rejected_with_fresh_token(self) -> None:
        protection = _protection()
        secret, _ = await _issue(protection)
        request = _make_request("POST", headers={"x-csrf-token": "oopsy"}, cookies={"csrf": secret})
        call_next = AsyncMock()

        result = await CsrfFilter(protection).do_filter(request, call_next)

        call_next.assert_not_awaited()
        assert result.status_code == 403
        assert request.state.csrf_state is CsrfState.REJECTED
        assert b"ECSRFBADTOKEN" in result.body
        assert _set_cookie_headers(result) == []

    @pytest.mark.asyncio
    async def test_missing_everything_sets_replacement_cookie(self) -> None:
        request = _make_request("POST")
        call_next = AsyncMock()

        result = await CsrfFilter(_protection()).do_filter(request, call_next)

        call_next.assert_not_awaited()
        assert result.status_code == 403
        assert b"ECSRFMISCONFIG" in result.body
        assert len(_set_cookie_headers(result)) == 1


class TestCsrfFilterOrigin:
    @pytest.mark.asyncio
    async def test_bad_origin_rejected_before_token_work(self) -> None:
        request = _make_request("POST", headers={"host": "good.example", "origin": "https://evil.example"})
        call_next = AsyncMock()

        result = await CsrfFilter(_protection()).do_filter(request, call_next)

        assert result.status_code == 403
        assert b"ECSRFBADORIGIN" in result.body
        assert _set_cookie_headers(result) == []
        assert not hasattr(request.state, "csrf_token")

    @pytest.mark.asyncio
    async def test_origin_check_can_be_disabled(self) -> None:
        request = _make_request("GET", headers={"host": "good.example", "origin": "https://evil.example"})
        call_next = AsyncMock(return_value=Response("ok"))
        result = await CsrfFilter(_protection(), check_origin=False).do_filter(request, call_next)
        assert result.status_code == 200


class TestCsrfFilterOperations:
    @pytest.mark.asyncio
    async def test_create_only_never_verifies(self) -> None:
        request = _make_request("POST")
        call_next = AsyncMock(return_value=Response("ok"))
        result = await CsrfFilter(_protection(), "create").do_filter(request, call_next)
        assert result.status_code == 200
        assert request.state.csrf_state is CsrfState.CREATED

    @pytest.mark.asyncio
    async def test_verify_only_does_not_set_cookie(self) -> None:
        request = _make_request("POST")
        call_next = AsyncMock()
        result = await CsrfFilter(_protection(), CsrfOperation.VERIFY).do_filter(request, call_next)
        assert result.status_code == 403
        assert _set_cookie_headers(result) == []

    @pytest.mark.asyncio
    async def test_verify_xhr(self) -> None:
        protection = _protection()
        secret, _ = await _issue(protection)
        request = _make_request("POST", cookies={"csrf": secret})
        call_next = AsyncMock(return_value=Response("ok"))
        result = await CsrfFilter(protection, "verify_xhr").do_filter(request, call_next)
        assert result.status_code == 200
        assert request.state.csrf_state is CsrfState.VERIFIED

    @pytest.mark.asyncio
    async def test_ignored_method_skips(self) -> None:
        request = _make_request("DELETE", cookies={"csrf": "bad"})
        call_next = AsyncMock(return_value=Response("ok"))
        protection = _protection(ignore_methods=frozenset({"DELETE"}))
        result = await CsrfFilter(protection).do_filter(request, call_next)
        assert result.status_code == 200
        assert request.state.csrf_state is CsrfState.SKIPPED
        assert _set_cookie_headers(result) == []

    def test_unknown_operation(self) -> None:
        with pytest.raises(ConfigurationException):
            CsrfFilter(_protection(), "rotate")

    def test_patterns(self) -> None:
        csrf_filter = CsrfFilter(_protection(), exclude_patterns=["/webhooks/*"])
        assert csrf_filter.should_not_filter(_make_request("POST", path="/webhooks/stripe"))
        assert not csrf_filter.should_not_filter(_make_request("POST", path="/form"))
