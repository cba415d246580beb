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
HTTP middleware for Simulation Gateway.

Every middleware is a starlette BaseHTTPMiddleware taking its collaborators
(token validator, rate limiter) as constructor arguments.
install_middleware() adds them to an app in the required order.

Middleware execution order:
    1. ContextStorage  - Request context + X-Correlation-ID
    2. ErrorHandler    - Unhandled exceptions -> 500
    3. RequestLogging  - Access log
    4. SecurityHeaders - Browser hardening headers
    5. BodySizeLimit   - 413 for oversized bodies
    6. RateLimit       - Fixed-window per-client quotas
    7. TokenAuth       - Bearer token admission
"""

from simgate.middleware.auth_token import TokenAuthMiddleware
from simgate.middleware.body_limit import BodySizeLimitMiddleware
from simgate.middleware.context_storage import ContextStorageMiddleware
from simgate.middleware.error_handler import ErrorHandlerMiddleware
from simgate.middleware.pipeline import install_middleware
from simgate.middleware.rate_limit import (
    RateLimitMiddleware,
    create_endpoint_rate_limiter,
    skip_health_check,
)
from simgate.middleware.request_logging import RequestLoggingMiddleware
from simgate.middleware.security_headers import SecurityHeadersMiddleware

__all__ = [
    "TokenAuthMiddleware",
    "BodySizeLimitMiddleware",
    "ContextStorageMiddleware",
    "ErrorHandlerMiddleware",
    "RateLimitMiddleware",
    "RequestLoggingMiddleware",
    "SecurityHeadersMiddleware",
    "create_endpoint_rate_limiter",
    "install_middleware",
    "skip_health_check",
]
