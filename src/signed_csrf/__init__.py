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
"""signed-csrf — signed-token CSRF protection for Starlette applications.

Quick start::

    from starlette.applications import Starlette
    from starlette.middleware import Middleware

    from signed_csrf import CsrfFilter, CsrfProtection, WebFilterChainMiddleware

    protection = CsrfProtection("change-me")
    app = Starlette(
        routes=routes,
        middleware=[Middleware(WebFilterChainMiddleware, filters=[CsrfFilter(protection)])],
    )

Route handlers obtain a token with ``request.state.csrf_token()``.
"""

__version__ = "1.0.0"

from signed_csrf.config.properties import CookieProperties, CsrfProperties, TokenProperties
from signed_csrf.core.config import Config
from signed_csrf.kernel.exceptions import (
    BadCsrfTokenException,
    BadOriginException,
    ConfigurationException,
    CsrfException,
    MisconfiguredCsrfException,
)
from signed_csrf.security.csrf import CsrfProtection, CsrfState
from signed_csrf.security.exchange import CsrfExchange
from signed_csrf.web.adapters.starlette import (
    CsrfFilter,
    CsrfOperation,
    WebFilterChainMiddleware,
    csrf_exception_handler,
)

__all__ = [
    "BadCsrfTokenException",
    "BadOriginException",
    "Config",
    "ConfigurationException",
    "CookieProperties",
    "CsrfException",
    "CsrfExchange",
    "CsrfFilter",
    "CsrfOperation",
    "CsrfProperties",
    "CsrfProtection",
    "CsrfState",
    "MisconfiguredCsrfException",
    "TokenProperties",
    "WebFilterChainMiddleware",
    "csrf_exception_handler",
]
