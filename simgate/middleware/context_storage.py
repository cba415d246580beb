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
Request context propagation middleware.

Runs before every other middleware. Extracts token, tenant id and
correlation id from headers, resolves the backend base URL, binds the
resulting RequestContext for the rest of the request and echoes the
correlation id on the response.
"""

import uuid
from types import MappingProxyType
from typing import Any, Mapping, Optional

from loguru import logger
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

from simgate.config import (
    BASE_API_URL_HEADER,
    COMPANY_ID_HEADER,
    CORRELATION_ID_HEADER,
    TOKEN_HEADER,
)
from simgate.request_context import (
    RequestContext,
    bind_request_context,
    reset_request_context,
)
from simgate.url_validator import resolve_base_api_url


def generate_correlation_id() -> str:
    """Returns a fresh random correlation id."""
    return str(uuid.uuid4())


def build_request_context(
    request: Request, env: Optional[Mapping[str, Any]] = None
) -> RequestContext:
    """
    Build the context for a request from its headers.

    Args:
        request: Incoming request
        env: Platform bindings shared with handlers (read-only view)

    Returns:
        RequestContext for this request
    """
    headers = request.headers
    correlation_id = (headers.get(CORRELATION_ID_HEADER) or "").strip()
    if not correlation_id:
        correlation_id = generate_correlation_id()

    return RequestContext(
        correlation_id=correlation_id,
        base_api_url=resolve_base_api_url(headers.get(BASE_API_URL_HEADER)),
        token=headers.get(TOKEN_HEADER) or None,
        company_id=headers.get(COMPANY_ID_HEADER) or None,
        env=MappingProxyType(dict(env or {})),
    )


class ContextStorageMiddleware(BaseHTTPMiddleware):
    """
    Binds a RequestContext for the duration of the downstream call chain.

    Must be the outermost gateway middleware so that every response,
    including error responses produced further in, carries the
    X-Correlation-ID header.

    An exception escaping call_next propagates without the header. Handler
    errors get it only because ErrorHandlerMiddleware, installed inside this
    middleware, turns them into a 500 response first.
    """

    def __init__(self, app: ASGIApp, env: Optional[Mapping[str, Any]] = None):
        super().__init__(app)
        self.env = dict(env or {})

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        context = build_request_context(request, self.env)
        binding = bind_request_context(context)
        logger.trace(
            "[ContextStorage] Bound request context {correlation_id} for {path}",
            correlation_id=context.correlation_id,
            path=request.url.path,
        )
        try:
            response = await call_next(request)
        finally:
            reset_request_context(binding)

        response.headers[CORRELATION_ID_HEADER] = context.correlation_id
        return response
