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
Simulation Gateway - request admission for the simulation content generator.

Modules:
    - config: Configuration and constants
    - errors: Rejection bodies and gateway exceptions
    - token_format: Local bearer token format checks
    - token_cache: TTL cache of token validity
    - token_validator: Remote token validation (httpx)
    - rate_limiter: Fixed-window rate limit store and tiers
    - client_ip: Client IP resolution from proxy headers
    - url_validator: X-BASE-API-URL allow-listing
    - request_context: Request-scoped context (ContextVar)
    - middleware: HTTP middleware stack
    - app: Application factory
"""

# Version is imported from config.py, the single source of truth
from simgate.config import APP_VERSION as __version__

__author__ = "Jwadow"

from simgate.app import create_app
from simgate.rate_limiter import RATE_LIMIT_TIERS, RateLimiter, RateLimitTier
from simgate.request_context import RequestContext, get_request_context
from simgate.token_cache import TokenCache
from simgate.token_validator import TokenCheck, TokenStatus, TokenValidator

__all__ = [
    "__version__",
    "create_app",
    "RATE_LIMIT_TIERS",
    "RateLimiter",
    "RateLimitTier",
    "RequestContext",
    "get_request_context",
    "TokenCache",
    "TokenCheck",
    "TokenStatus",
    "TokenValidator",
]
