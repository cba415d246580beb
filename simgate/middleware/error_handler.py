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
Last-resort handler for exceptions escaping route handlers.

Clients get a generic 500 body with a support code and the request path.
Exception text and stack trace go to the log only.
"""

import traceback

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from loguru import logger
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from simgate.errors import build_internal_error, describe_exception

INTERNAL_ERROR_MESSAGE: str = "An unexpected error occurred. Please try again later."


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """Converts unhandled downstream exceptions into a 500 JSON response."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        try:
            return await call_next(request)
        except Exception as exc:
            logger.error(
                "[ErrorHandler] Unhandled error on {method} {path}: {error}\n{stack}",
                path=request.url.path,
                method=request.method,
                error=describe_exception(exc),
                stack="".join(traceback.format_exception(type(exc), exc, exc.__traceback__)),
            )
            return JSONResponse(
                status_code=500,
                content=build_internal_error(INTERNAL_ERROR_MESSAGE, request.url.path),
            )
