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
Token admission middleware.

Every request goes through these steps in order; the first terminal one wins:
  1. Exempt path       - internal skip or public unauthenticated -> admit
  2. Token presence    - missing/blank token header -> 401
  3. Token format      - neither simple nor JWT-shaped -> 401
  4. Cache lookup      - cached valid -> admit, cached invalid -> 401
  5. Remote validation - 2xx -> admit, other status -> 401,
                         transport failure -> 401 (fail closed, not cached)

Steps 4 and 5 are TokenValidator.check(); TokenCheck.cached tells them apart.

The middleware never touches the downstream response and never catches
downstream exceptions.
"""

from typing import Optional

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from loguru import logger
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.types import ASGIApp

from simgate.client_ip import get_client_ip
from simgate.config import BASE_API_URL_HEADER, TOKEN_HEADER
from simgate.errors import AuthRejectionReason, build_auth_rejection
from simgate.middleware.public_endpoints import (
    is_internal_skip_path,
    is_public_unauthenticated_path,
)
from simgate.request_context import get_request_context
from simgate.token_format import check_token_format
from simgate.token_validator import TokenStatus, TokenValidator
from simgate.url_validator import resolve_base_api_url


def reject(reason: AuthRejectionReason, token_header: str = TOKEN_HEADER) -> JSONResponse:
    """Builds the 401 response for a failed admission."""
    return JSONResponse(status_code=401, content=build_auth_rejection(reason, token_header))


def resolve_validation_base_url(request: Request) -> str:
    """
    Backend base URL used for remote validation.

    Prefers the URL already resolved by ContextStorageMiddleware and
    resolves the header itself when running without it.
    """
    context = get_request_context()
    if context is not None:
        return context.base_api_url
    return resolve_base_api_url(request.headers.get(BASE_API_URL_HEADER))


class TokenAuthMiddleware(BaseHTTPMiddleware):
    """
    Admits requests carrying a token the auth backend accepts.

    Args:
        app: Wrapped ASGI app
        validator: Cache-first token validator (owns the shared TokenCache)
        token_header: Header carrying the bearer token
    """

    def __init__(
        self,
        app: ASGIApp,
        validator: TokenValidator,
        token_header: str = TOKEN_HEADER,
    ):
        super().__init__(app)
        self.validator = validator
        self.token_header = token_header

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        path = request.url.path

        if is_internal_skip_path(path):
            return await call_next(request)

        if is_public_unauthenticated_path(path):
            logger.info(
                "[AuthToken] Public unauthenticated endpoint access: {method} {path}",
                path=path,
                method=request.method,
            )
            return await call_next(request)

        rejection = await self.authenticate(request)
        if rejection is not None:
            return rejection

        return await call_next(request)

    async def authenticate(self, request: Request) -> Optional[JSONResponse]:
        """
        Runs the token checks for a protected path.

        Returns:
            None when the request is admitted, otherwise the 401 response
        """
        path = request.url.path
        raw_token = request.headers.get(self.token_header)

        if not raw_token:
            logger.warning(
                "[AuthToken] Missing token: {method} {path} (ip={ip})",
                path=path,
                method=request.method,
                ip=get_client_ip(request.headers, include_real_ip=False),
            )
            return reject(AuthRejectionReason.MISSING_TOKEN, self.token_header)

        token = raw_token.strip()
        format_check = check_token_format(token)
        if not format_check.is_valid:
            # Only length and classification are logged, never the token itself
            logger.warning(
                "[AuthToken] Invalid token format on {path}: {reason} (tokenLength={tokenLength})",
                path=path,
                tokenLength=format_check.length,
                reason=format_check.reason,
            )
            return reject(AuthRejectionReason.INVALID_FORMAT, self.token_header)

        result = await self.validator.check(token, resolve_validation_base_url(request))

        if result.status == TokenStatus.VALID:
            if result.cached:
                logger.info("[AuthToken] Token validated (cached): {path}", path=path)
            else:
                logger.info(
                    "[AuthToken] Token validated: {path} (HTTP {status})",
                    path=path,
                    status=result.status_code,
                )
            return None

        if result.status == TokenStatus.INVALID:
            if result.cached:
                logger.warning("[AuthToken] Token invalid (cached): {path}", path=path)
                return reject(AuthRejectionReason.CACHED_INVALID, self.token_header)
            logger.warning(
                "[AuthToken] Token validation failed on {path}: HTTP {status}",
                path=path,
                status=result.status_code,
            )
            return reject(AuthRejectionReason.VALIDATION_FAILED, self.token_header)

        # Fail closed: an unverifiable token is never admitted
        logger.error(
            "[AuthToken] Token validation service unavailable on {path}: {error}",
            path=path,
            error=result.error,
        )
        return reject(AuthRejectionReason.SERVICE_UNAVAILABLE, self.token_header)
