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
Local format checks for bearer tokens.

Two shapes are accepted:
    - simple token: [a-zA-Z0-9_-]{32,}
    - JWT-shaped token: three dot-separated base64url segments, each
      optionally padded with up to two "=". No minimum length.

Passing the format check is necessary but not sufficient for admission;
the token still has to be confirmed by the auth backend.
"""

import re
from dataclasses import dataclass
from typing import Optional

from simgate.config import TOKEN_MIN_LENGTH

SIMPLE_TOKEN_PATTERN = re.compile(r"[a-zA-Z0-9_-]{%d,}" % TOKEN_MIN_LENGTH)
JWT_SEGMENT_PATTERN = re.compile(r"[A-Za-z0-9_-]+={0,2}")


@dataclass
class TokenFormatCheck:
    """
    Result of a local token format check.

    Attributes:
        is_valid: Token matches at least one accepted shape
        length: Length of the trimmed token (safe to log)
        reason: Human-readable failure reason, None when valid
    """

    is_valid: bool
    length: int
    reason: Optional[str] = None


def is_simple_token(token: str) -> bool:
    """Check the simple token shape (restricted alphabet, minimum length)."""
    return SIMPLE_TOKEN_PATTERN.fullmatch(token) is not None


def is_jwt_shaped(token: str) -> bool:
    """Check the three-segment JWT shape. Any total length is accepted."""
    segments = token.split(".")
    if len(segments) != 3:
        return False
    return all(JWT_SEGMENT_PATTERN.fullmatch(segment) for segment in segments)


def check_token_format(token: str) -> TokenFormatCheck:
    """
    Validate the format of an already-trimmed token.

    Args:
        token: Trimmed token value

    Returns:
        TokenFormatCheck with the classification and a log-safe reason
    """
    length = len(token)
    if is_jwt_shaped(token) or is_simple_token(token):
        return TokenFormatCheck(is_valid=True, length=length)

    if length < TOKEN_MIN_LENGTH:
        reason = f"too short ({length} < {TOKEN_MIN_LENGTH})"
    else:
        reason = "invalid characters or format"
    return TokenFormatCheck(is_valid=False, length=length, reason=reason)
