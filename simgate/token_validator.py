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
Token validation against the upstream auth backend.

Contract of the backend endpoint (GET {base_url}/auth/validate with
"Authorization: Bearer <token>"):
    - 2xx           -> token valid
    - other status  -> token invalid
    - unreachable   -> unknown

Results are written to the TokenCache: valid tokens with the long default
TTL, invalid tokens with the short TTL. "Unknown" is never cached.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

import httpx
from loguru import logger

from simgate.config import (
    AUTH_VALIDATION_TIMEOUT,
    TOKEN_CACHE_INVALID_TTL,
    get_auth_validation_url,
)
from simgate.errors import describe_exception
from simgate.token_cache import TokenCache


class TokenStatus(str, Enum):
    """Outcome of a token check."""

    VALID = "valid"
    INVALID = "invalid"
    UNAVAILABLE = "unavailable"


@dataclass
class TokenCheck:
    """Result of a token check.

    Attributes:
        status: Valid, invalid or unavailable (backend unreachable).
        cached: Whether the answer came from the cache.
        status_code: Upstream HTTP status when the backend answered.
        error: Transport error description when the backend was unreachable.
    """

    status: TokenStatus
    cached: bool = False
    status_code: Optional[int] = None
    error: Optional[str] = None

    @property
    def is_valid(self) -> bool:
        return self.status == TokenStatus.VALID


class TokenValidator:
    """
    Cache-first token validator backed by the auth backend.

    Issues at most one backend call per check() and never retries.
    Two concurrent checks of the same uncached token may both call the
    backend; both answers come from the same source of truth and the
    cache converges on it.

    Example:
        >>> validator = TokenValidator(TokenCache())
        >>> result = await validator.check(token, "https://api.example.com")
        >>> result.is_valid
    """

    def __init__(
        self,
        cache: TokenCache,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = AUTH_VALIDATION_TIMEOUT,
        invalid_ttl: float = TOKEN_CACHE_INVALID_TTL,
    ):
        """
        Args:
            cache: Shared token cache
            client: HTTP client to reuse. When None, a short-lived client
                    is opened for every backend call.
            timeout: Backend call timeout in seconds
            invalid_ttl: Cache TTL for rejected tokens in seconds
        """
        self.cache = cache
        self._client = client
        self._timeout = timeout
        self._invalid_ttl = invalid_ttl

    async def check(self, token: str, base_url: str) -> TokenCheck:
        """
        Check a token, consulting the cache before the backend.

        Args:
            token: Format-valid bearer token
            base_url: Already validated backend base URL

        Returns:
            TokenCheck describing the outcome
        """
        cached = self.cache.get(token)
        if cached is not None:
            status = TokenStatus.VALID if cached else TokenStatus.INVALID
            return TokenCheck(status=status, cached=True)
        return await self.validate_remote(token, base_url)

    async def validate_remote(self, token: str, base_url: str) -> TokenCheck:
        """
        Ask the auth backend about a token and record the answer in the cache.

        Args:
            token: Format-valid bearer token
            base_url: Already validated backend base URL

        Returns:
            TokenCheck with the upstream status, or UNAVAILABLE on transport failure
        """
        validation_url = get_auth_validation_url(base_url)
        logger.info("[TokenValidator] Validation URL: {url}", url=validation_url)

        try:
            response = await self._get(validation_url, token)
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            # No definitive answer: leave the cache untouched
            return TokenCheck(
                status=TokenStatus.UNAVAILABLE, error=describe_exception(exc)
            )

        logger.debug(
            "[TokenValidator] Auth validation response: HTTP {status}",
            status=response.status_code,
        )

        if response.is_success:
            self.cache.set(token, True)
            logger.debug(
                "[TokenValidator] Token cached as valid (ttl={ttl}s)",
                ttl=self.cache.default_ttl,
            )
            return TokenCheck(status=TokenStatus.VALID, status_code=response.status_code)

        self.cache.set(token, False, ttl=self._invalid_ttl)
        return TokenCheck(status=TokenStatus.INVALID, status_code=response.status_code)

    async def _get(self, url: str, token: str) -> httpx.Response:
        headers = {"Authorization": f"Bearer {token}"}
        if self._client is not None:
            return await self._client.get(url, headers=headers, timeout=self._timeout)
        async with httpx.AsyncClient(timeout=self._timeout) as client:
            return await client.get(url, headers=headers)

    async def close(self) -> None:
        """Closes the injected HTTP client, if any."""
        if self._client is not None:
            await self._client.aclose()
