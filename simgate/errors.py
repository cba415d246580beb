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
Client-facing rejection bodies for Simulation Gateway.

Every rejection returned by the gateway middleware is a small JSON object
with a stable shape: {"error": ..., "message": ..., optional extras}.
Internal details (token length, upstream status, exception text) go to
the log only, never into these bodies.

Architecture:
- AuthRejectionReason: Enum of the reasons a request fails token admission
- RateLimitExceededError: Raised by per-route rate limiting, rendered as 429
- build_*(): Build the JSON-serializable bodies

Example:
    >>> build_auth_rejection(AuthRejectionReason.INVALID_FORMAT)
    {'error': 'Unauthorized', 'message': 'Invalid token format'}
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional

from simgate.config import TOKEN_HEADER

UNAUTHORIZED_ERROR: str = "Unauthorized"
RATE_LIMIT_ERROR: str = "Rate limit exceeded"
PAYLOAD_TOO_LARGE_ERROR: str = "Payload Too Large"
INTERNAL_ERROR: str = "Internal Server Error"

# Support code returned with 500 responses
INTERNAL_ERROR_CODE: str = "ERR_INTERNAL_UNEXPECTED"


class AuthRejectionReason(str, Enum):
    """Reasons a request fails token admission."""

    MISSING_TOKEN = "missing_token"
    INVALID_FORMAT = "invalid_format"
    CACHED_INVALID = "cached_invalid"
    VALIDATION_FAILED = "validation_failed"
    SERVICE_UNAVAILABLE = "service_unavailable"


_AUTH_MESSAGES: Dict[AuthRejectionReason, str] = {
    AuthRejectionReason.MISSING_TOKEN: "{header} header is required",
    AuthRejectionReason.INVALID_FORMAT: "Invalid token format",
    AuthRejectionReason.CACHED_INVALID: "Token invalid (cached)",
    AuthRejectionReason.VALIDATION_FAILED: "Token validation failed",
    # Deliberately indistinguishable from a rejection for the caller
    AuthRejectionReason.SERVICE_UNAVAILABLE: "Token validation service unavailable",
}


def build_auth_rejection(
    reason: AuthRejectionReason, token_header: str = TOKEN_HEADER
) -> Dict[str, str]:
    """
    Builds the 401 body for a failed token admission.

    Args:
        reason: Why admission failed
        token_header: Header name quoted in the missing-token message

    Returns:
        {"error": "Unauthorized", "message": <reason message>}
    """
    message = _AUTH_MESSAGES[reason].format(header=token_header)
    return {"error": UNAUTHORIZED_ERROR, "message": message}


def build_rate_limit_rejection(
    message: str, retry_after: int, limit: int, current: int
) -> Dict[str, Any]:
    """Builds the 429 body for a rate-limited request."""
    return {
        "error": RATE_LIMIT_ERROR,
        "message": message,
        "retryAfter": retry_after,
        "limit": limit,
        "current": current,
    }


def build_payload_too_large(max_size_mb: float, request_size_mb: float) -> Dict[str, Any]:
    """Builds the 413 body for an oversized request."""
    return {
        "success": False,
        "error": PAYLOAD_TOO_LARGE_ERROR,
        "message": f"Request body exceeds the {max_size_mb:g}MB limit",
        "maxSizeMB": max_size_mb,
        "requestSizeMB": request_size_mb,
    }


def build_internal_error(message: str, path: str) -> Dict[str, str]:
    """Builds the 500 body for an unhandled downstream error."""
    return {
        "error": INTERNAL_ERROR,
        "errorCode": INTERNAL_ERROR_CODE,
        "message": message,
        "path": path,
    }


@dataclass(eq=False)
class RateLimitExceededError(Exception):
    """
    Raised by per-route rate limit dependencies when a client is over quota.

    The application turns it into a 429 response with `body` as JSON
    and `headers` as response headers.

    Attributes:
        body: JSON body built by build_rate_limit_rejection()
        headers: Rate limit headers including Retry-After
    """

    body: Dict[str, Any]
    headers: Dict[str, str] = field(default_factory=dict)
    status_code: int = 429

    def __str__(self) -> str:
        return str(self.body.get("message", RATE_LIMIT_ERROR))


def describe_exception(error: Optional[BaseException]) -> str:
    """Returns a log-friendly description of an exception."""
    if error is None:
        return "Unknown error"
    text = str(error)
    return text if text else type(error).__name__
