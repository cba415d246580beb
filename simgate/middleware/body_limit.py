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
Request body size limit.

Checks the declared Content-Length before the body is read. A request at
exactly the limit is accepted. A missing or non-numeric Content-Length
counts as 0; the ASGI server enforces framing on its own.
"""

from typing import Optional

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from loguru import logger
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.types import ASGIApp

from simgate.config import MAX_BODY_SIZE_MB
from simgate.errors import build_payload_too_large

BYTES_PER_MB: int = 1024 * 1024


def parse_content_length(value: Optional[str]) -> int:
    """Parses a Content-Length header value, returning 0 when absent or invalid."""
    if not value:
        return 0
    try:
        return int(value.strip())
    except ValueError:
        return 0


class BodySizeLimitMiddleware(BaseHTTPMiddleware):
    """
    Rejects requests whose Content-Length exceeds the limit with 413.

    Args:
        app: Wrapped ASGI app
        max_size_mb: Limit in megabytes (1 MB = 1024 * 1024 bytes)
    """

    def __init__(self, app: ASGIApp, max_size_mb: float = MAX_BODY_SIZE_MB):
        super().__init__(app)
        self.max_size_mb = max_size_mb
        self.max_size_bytes = int(max_size_mb * BYTES_PER_MB)

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        content_length = parse_content_length(request.headers.get("content-length"))

        if content_length > self.max_size_bytes:
            request_size_mb = round(content_length / BYTES_PER_MB, 2)
            logger.warning(
                "[BodyLimit] Request body too large on {method} {path}: {size} bytes (limit={limit})",
                size=content_length,
                limit=self.max_size_bytes,
                path=request.url.path,
                method=request.method,
            )
            return JSONResponse(
                status_code=413,
                content=build_payload_too_large(self.max_size_mb, request_size_mb),
            )

        return await call_next(request)
