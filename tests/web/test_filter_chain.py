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
"""Tests for WebFilterChainMiddleware — ordering, short-circuit, conditional skip."""

from __future__ import annotations

from starlette.applications import Starlette
from starlette.middleware import Middleware
from starlette.requests import Request
from starlette.responses import JSONResponse, PlainTextResponse
from starlette.routing import Route
from starlette.testclient import TestClient

from signed_csrf.web.adapters.starlette.filter_chain import WebFilterChainMiddleware
from signed_csrf.web.filters import OncePerRequestFilter, get_filter_order

# ---------------------------------------------------------------------------
# Test filters
# ---------------------------------------------------------------------------


class RecordingFilter(OncePerRequestFilter):
    """Appends its label to ``X-Trace`` on the way out."""

    def __init__(self, label: str, order: int) -> None:
        self.label = label
        self.__filter_order__ = order

    async def do_filter(self, request, call_next):
        response = await call_next(request)
        trace = response.headers.get("X-Trace")
        response.headers["X-Trace"] = f"{trace},{self.label}" if trace else self.label
        return response


class ApiOnlyFilter(OncePerRequestFilter):
    """Only applies to /api/* paths."""

    url_patterns = ["/api/*"]

    async def do_filter(self, request, call_next):
        response = await call_next(request)
        response.headers["X-Api-Filter"] = "applied"
        return response


class ExcludeHealthFilter(OncePerRequestFilter):
    exclude_patterns = ["/health"]

    async def do_filter(self, request, call_next):
        response = await call_next(request)
        response.headers["X-Filtered"] = "yes"
        return response


class ShortCircuitFilter(OncePerRequestFilter):
    """Returns 403 without calling next."""

    async def do_filter(self, request, call_next):
        return JSONResponse({"error": "blocked"}, status_code=403)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


async def _ok_handler(request: Request) -> PlainTextResponse:
    return PlainTextResponse("OK")


def _make_app(*filters) -> Starlette:
    return Starlette(
        routes=[
            Route("/test", _ok_handler, methods=["GET", "POST"]),
            Route("/api/data", _ok_handler),
            Route("/health", _ok_handler),
        ],
        middleware=[Middleware(WebFilterChainMiddleware, filters=list(filters))],
    )


# ---------------------------------------------------------------------------
# Tests
# ---------------------------------------------------------------------------


class TestFilterChainOrdering:
    def test_filters_sorted_by_order(self):
        """Lower order runs first, so it sees the response last."""
        app = _make_app(RecordingFilter("late", 10), RecordingFilter("early", -10))
        resp = TestClient(app).get("/test")
        assert resp.status_code == 200
        assert resp.headers["X-Trace"] == "late,early"

    def test_get_filter_order_defaults_to_zero(self):
        assert get_filter_order(ApiOnlyFilter()) == 0
        assert get_filter_order(object()) == 0


class TestFilterChainConditionalSkip:
    def test_url_pattern_filter_applies_to_matching_path(self):
        resp = TestClient(_make_app(ApiOnlyFilter())).get("/api/data")
        assert resp.headers.get("X-Api-Filter") == "applied"

    def test_url_pattern_filter_skipped_for_non_matching_path(self):
        resp = TestClient(_make_app(ApiOnlyFilter())).get("/health")
        assert "X-Api-Filter" not in resp.headers

    def test_exclude_pattern(self):
        client = TestClient(_make_app(ExcludeHealthFilter()))
        assert "X-Filtered" not in client.get("/health").headers
        assert client.get("/test").headers.get("X-Filtered") == "yes"


class TestFilterChainShortCircuit:
    def test_short_circuit_returns_early(self):
        resp = TestClient(_make_app(ShortCircuitFilter())).post("/test")
        assert resp.status_code == 403
        assert resp.json() == {"error": "blocked"}


class TestFilterChainEmpty:
    def test_no_filters_passes_through(self):
        resp = TestClient(_make_app()).get("/test")
        assert resp.status_code == 200
        assert resp.text == "OK"
