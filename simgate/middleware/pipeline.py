# -*- coding: utf-8 -*-

# Simulation Gateway
# Copyright (C) 2025 Jwadow
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE. See the
# GNU Affero General Public License for more details.
#
# You should have received a copy of the GNU Affero General Public License
# along with this program. If not, see <https://www.gnu.org/licenses/>.

"""
HTTP middleware stack installer.

This is the single place that decides middleware order.

Request order (outermost first):
  1. ContextStorageMiddleware  - Binds request context, echoes X-Correlation-ID
  2. ErrorHandlerMiddleware    - Unhandled exceptions -> 500 (still gets the correlation id)
  3. RequestLoggingMiddleware  - Access log, sees every final status
  4. SecurityHeadersMiddleware - Headers on every response produced further in
  5. BodySizeLimitMiddleware   - Rejects oversized bodies before any other work
  6. RateLimitMiddleware       - Counts requests, including unauthenticated ones
  7. TokenAuthMiddleware       - Token admission, right before the routes

Starlette wraps each added middleware around the previous ones, so they
are added innermost first.
"""

from typing import Any, Mapping, Optional

from fastapi import FastAPI
from loguru import logger

from simgate.config import MAX_BODY_SIZE_MB, RATE_LIMIT_ENABLED
from simgate.middleware.auth_token import TokenAuthMiddleware
from simgate.middleware.body_limit import BodySizeLimitMiddleware
from simgate.middleware.context_storage import ContextStorageMiddleware
from simgate.middleware.error_handler import ErrorHandlerMiddleware
from simgate.middleware.rate_limit import RateLimitMiddleware, skip_health_check
from simgate.middleware.request_logging import RequestLoggingMiddleware
from simgate.middleware.security_headers import SecurityHeadersMiddleware
from simgate.rate_limiter import RATE_LIMIT_TIERS, RateLimiter
from simgate.token_validator import TokenValidator


def install_middleware(
    app: FastAPI,
    validator: TokenValidator,
    rate_limiter: RateLimiter,
    env: Optional[Mapping[str, Any]] = None,
    rate_limit_enabled: bool = RATE_LIMIT_ENABLED,
    max_body_size_mb: float = MAX_BODY_SIZE_MB,
) -> None:
    """
    Install the gateway middleware stack on an app.

    Args:
        app: FastAPI application
        validator: Token validator used by token admission
        rate_limiter: Shared rate limit store
        env: Platform bindings published through the request context
        rate_limit_enabled: Install the global rate limiter
        max_body_size_mb: Request body limit in megabytes
    """
    app.add_middleware(TokenAuthMiddleware, validator=validator)

    if rate_limit_enabled:
        app.add_middleware(
            RateLimitMiddleware,
            limiter=rate_limiter,
            tier=RATE_LIMIT_TIERS["DEFAULT"],
            skip=skip_health_check,
        )

    app.add_middleware(BodySizeLimitMiddleware, max_size_mb=max_body_size_mb)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(ErrorHandlerMiddleware)
    app.add_middleware(ContextStorageMiddleware, env=env)

    logger.debug(
        "[Pipeline] Middleware installed (rate_limit={enabled}, body_limit={limit}MB)",
        enabled=rate_limit_enabled,
        limit=max_body_size_mb,
    )
