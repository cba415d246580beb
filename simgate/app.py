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
Application factory for Simulation Gateway.

create_app() owns the process-wide state (token cache, rate limiter,
token validator) and hands it to the middleware. Tests build a fresh app
with their own stores; nothing lives in module globals.
"""

from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, Dict, Mapping, Optional

from fastapi import Depends, FastAPI
from loguru import logger

from simgate.config import APP_DESCRIPTION, APP_TITLE, APP_VERSION, RATE_LIMIT_ENABLED
from simgate.errors import RateLimitExceededError
from simgate.middleware.pipeline import install_middleware
from simgate.middleware.rate_limit import create_endpoint_rate_limiter, rate_limit_exceeded_handler
from simgate.rate_limiter import RateLimiter
from simgate.token_cache import TokenCache
from simgate.token_validator import TokenValidator


def create_app(
    token_cache: Optional[TokenCache] = None,
    rate_limiter: Optional[RateLimiter] = None,
    validator: Optional[TokenValidator] = None,
    env: Optional[Mapping[str, Any]] = None,
    rate_limit_enabled: bool = RATE_LIMIT_ENABLED,
) -> FastAPI:
    """
    Build the gateway application.

    Args:
        token_cache: Token cache (fresh one when None)
        rate_limiter: Rate limit store (fresh one when None)
        validator: Token validator (built on token_cache when None)
        env: Platform bindings published through the request context
        rate_limit_enabled: Install the global rate limiter

    Returns:
        Configured FastAPI application
    """
    token_cache = token_cache if token_cache is not None else TokenCache()
    rate_limiter = rate_limiter if rate_limiter is not None else RateLimiter()
    validator = validator if validator is not None else TokenValidator(token_cache)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("[App] {title} v{version} starting", title=APP_TITLE, version=APP_VERSION)
        yield
        await validator.close()
        logger.info("[App] {title} stopped", title=APP_TITLE)

    app = FastAPI(
        title=APP_TITLE,
        description=APP_DESCRIPTION,
        version=APP_VERSION,
        lifespan=lifespan,
    )
    app.state.token_cache = token_cache
    app.state.rate_limiter = rate_limiter
    app.state.token_validator = validator

    app.add_exception_handler(RateLimitExceededError, rate_limit_exceeded_handler)

    health_limit = create_endpoint_rate_limiter(rate_limiter, "HEALTH")

    @app.get("/health", dependencies=[Depends(health_limit)])
    async def health() -> Dict[str, str]:
        """Liveness probe."""
        return {
            "status": "healthy",
            "version": APP_VERSION,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    install_middleware(
        app,
        validator=validator,
        rate_limiter=rate_limiter,
        env=env,
        rate_limit_enabled=rate_limit_enabled,
    )
    return app
