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
Access log middleware.

One log line per request with method, path, status and duration.
Level follows the status: info below 400, warning for 4xx, error for 5xx.
Successful health checks are logged at debug only.
"""

import time

from fastapi import Request, Response
from loguru import logger
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from simgate.errors import describe_exception


def level_for_status(status_code: int) -> str:
    """Maps an HTTP status to a loguru level name."""
    if status_code >= 500:
        return "ERROR"
    if status_code >= 400:
        return "WARNING"
    return "INFO"


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Logs every request after the downstream chain has answered."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        started = time.perf_counter()
        path = request.url.path

        try:
            response = await call_next(request)
        except Exception as exc:
            duration_ms = round((time.perf_counter() - started) * 1000)
            logger.error(
                "[RequestLogging] Request failed: {method} {path} after {duration}: {error}",
                method=request.method,
                path=path,
                durationMs=duration_ms,
                duration=f"{duration_ms}ms",
                error=describe_exception(exc),
            )
            raise

        duration_ms = round((time.perf_counter() - started) * 1000)
        status_code = response.status_code

        if path == "/health" and status_code < 400:
            logger.debug(
                "[RequestLogging] Health check: {status} in {duration}",
                method=request.method,
                path=path,
                status=status_code,
                durationMs=duration_ms,
                duration=f"{duration_ms}ms",
            )
            return response

        logger.log(
            level_for_status(status_code),
            "[RequestLogging] Request completed: {method} {path} {status} in {duration} (userAgent={userAgent})",
            method=request.method,
            path=path,
            status=status_code,
            durationMs=duration_ms,
            duration=f"{duration_ms}ms",
            userAgent=request.headers.get("user-agent") or "unknown",
        )
        return response
