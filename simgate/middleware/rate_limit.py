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
Rate limiting for Simulation Gateway.

Two entry points share the same RateLimiter store:
  - RateLimitMiddleware: one tier for every request passing through it
  - create_endpoint_rate_limiter(): FastAPI dependency for a single route

Both always set X-RateLimit-Limit / X-RateLimit-Remaining / X-RateLimit-Reset.
Rejections additionally get Retry-After and a 429 JSON body.
"""

from typing import Awaitable, Callable, Iterable, Optional

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from loguru import logger
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.types import ASGIApp

from simgate.client_ip import get_client_ip
from simgate.config import RATE_LIMIT_LOW_REMAINING_THRESHOLD
from simgate.errors import RateLimitExceededError, build_rate_limit_rejection
from simgate.rate_limiter import RATE_LIMIT_TIERS, RateLimiter, RateLimitInfo, RateLimitTier

SkipPredicate = Callable[[Request], bool]
IdentifierResolver = Callable[[Request], str]


def default_identifier(request: Request) -> str:
    """Keys rate limits by best-effort client IP."""
    return get_client_ip(request.headers)


def skip_health_check(request: Request) -> bool:
    """Skip predicate exempting the health check from rate limiting."""
    return request.url.path == "/health"


def apply_rate_limit(
    request: Request,
    limiter: RateLimiter,
    tier: RateLimitTier,
    identifier: IdentifierResolver = default_identifier,
) -> RateLimitInfo:
    """
    Count the request against the tier and log the outcome.

    Args:
        request: Incoming request
        limiter: Shared limiter store
        tier: Tier of the route
        identifier: Resolves the client key from the request

    Returns:
        RateLimitInfo for the request
    """
    client_id = identifier(request)
    info = limiter.check_and_consume(client_id, tier)

    if not info.allowed:
        logger.warning(
            "[RateLimit] Rate limit exceeded for {identifier} on {method} {path} ({current}/{limit})",
            identifier=client_id,
            current=info.current,
            limit=info.limit,
            path=request.url.path,
            method=request.method,
        )
    elif info.remaining < RATE_LIMIT_LOW_REMAINING_THRESHOLD:
        logger.info(
            "[RateLimit] Rate limit warning for {identifier} on {path}: {remaining}/{limit} requests remaining",
            identifier=client_id,
            remaining=info.remaining,
            limit=info.limit,
            path=request.url.path,
        )

    return info


def build_rate_limit_response(info: RateLimitInfo, tier: RateLimitTier) -> JSONResponse:
    """Renders a rejected RateLimitInfo as the 429 response."""
    return JSONResponse(
        status_code=429,
        content=build_rate_limit_rejection(
            message=tier.message,
            retry_after=info.retry_after or 1,
            limit=info.limit,
            current=info.current,
        ),
        headers=info.to_headers(),
    )


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    Applies one rate limit tier to every request.

    Args:
        app: Wrapped ASGI app
        limiter: Shared RateLimiter store
        tier: Tier applied to all requests (DEFAULT when omitted)
        skip: Predicate bypassing the limiter entirely (e.g. skip_health_check)
        identifier: Resolves the client key (client IP by default)
        paths: When given, only these exact paths are limited
    """

    def __init__(
        self,
        app: ASGIApp,
        limiter: RateLimiter,
        tier: Optional[RateLimitTier] = None,
        skip: Optional[SkipPredicate] = None,
        identifier: Optional[IdentifierResolver] = None,
        paths: Optional[Iterable[str]] = None,
    ):
        super().__init__(app)
        self.limiter = limiter
        self.tier = tier or RATE_LIMIT_TIERS["DEFAULT"]
        self.skip = skip
        self.identifier = identifier or default_identifier
        self.paths = frozenset(paths) if paths is not None else None

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if self.paths is not None and request.url.path not in self.paths:
            return await call_next(request)
        if self.skip is not None and self.skip(request):
            return await call_next(request)

        info = apply_rate_limit(request, self.limiter, self.tier, self.identifier)
        if not info.allowed:
            return build_rate_limit_response(info, self.tier)

        response = await call_next(request)
        response.headers.update(info.to_headers())
        return response


def create_endpoint_rate_limiter(
    limiter: RateLimiter,
    tier_name: str = "DEFAULT",
    identifier: Optional[IdentifierResolver] = None,
) -> Callable[[Request, Response], Awaitable[RateLimitInfo]]:
    """
    Build a FastAPI dependency limiting a single route.

    Example:
        >>> chat_limit = create_endpoint_rate_limiter(limiter, "CHAT")
        >>> @app.post("/chat", dependencies=[Depends(chat_limit)])
        ... async def chat(): ...

    Args:
        limiter: Shared RateLimiter store
        tier_name: Key of RATE_LIMIT_TIERS
        identifier: Resolves the client key (client IP by default)

    Returns:
        Async dependency raising RateLimitExceededError when over quota

    Raises:
        KeyError: Unknown tier name
    """
    tier = RATE_LIMIT_TIERS[tier_name]
    resolve = identifier or default_identifier

    async def rate_limit_dependency(request: Request, response: Response) -> RateLimitInfo:
        info = apply_rate_limit(request, limiter, tier, resolve)
        if not info.allowed:
            raise RateLimitExceededError(
                body=build_rate_limit_rejection(
                    message=tier.message,
                    retry_after=info.retry_after or 1,
                    limit=info.limit,
                    current=info.current,
                ),
                headers=info.to_headers(),
            )
        response.headers.update(info.to_headers())
        return info

    return rate_limit_dependency


async def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceededError) -> JSONResponse:
    """Exception handler rendering RateLimitExceededError as 429."""
    return JSONResponse(status_code=exc.status_code, content=exc.body, headers=exc.headers)
