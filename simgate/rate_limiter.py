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
Fixed-window request counter for Simulation Gateway.

Counts requests per (tier key prefix, client identifier) in fixed windows.
Windows are not sliding: a client can land up to 2 * max_requests around a
window boundary. Each new window gets a small random jitter so that many
clients do not reset at the same moment.

The store lives in process memory. Several gateway instances each keep
their own counters; sharing limits across instances needs an external store.
"""

import math
import random
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional

from simgate.config import (
    RATE_LIMIT_CLEANUP_FREQUENCY,
    RATE_LIMIT_DEFAULT_MESSAGE,
    RATE_LIMIT_JITTER_SECONDS,
)


@dataclass(frozen=True)
class RateLimitTier:
    """Named rate limit configuration.

    Attributes:
        max_requests: Requests allowed per window.
        window_seconds: Window length in seconds.
        key_prefix: Store key prefix, keeps tiers from sharing counters.
        message: Message returned with 429 responses.
    """

    max_requests: int
    window_seconds: float
    key_prefix: str = "ratelimit:"
    message: str = RATE_LIMIT_DEFAULT_MESSAGE


RATE_LIMIT_TIERS: Dict[str, RateLimitTier] = {
    # Chat: complex operations, generous
    "CHAT": RateLimitTier(max_requests=50, window_seconds=60, key_prefix="ratelimit:chat:"),
    # Health checks: very generous
    "HEALTH": RateLimitTier(max_requests=300, window_seconds=60, key_prefix="ratelimit:health:"),
    # Anonymous customer-facing simulation endpoints
    "PUBLIC_UNAUTH": RateLimitTier(
        max_requests=180, window_seconds=60, key_prefix="ratelimit:public:"
    ),
    # Everything else: conservative
    "DEFAULT": RateLimitTier(max_requests=100, window_seconds=60, key_prefix="ratelimit:"),
}


@dataclass
class RateLimitEntry:
    """Counter state of one (tier, identifier) pair."""

    count: int
    reset_at: float


@dataclass
class RateLimitInfo:
    """Rate limit decision with quota information."""

    allowed: bool
    limit: int
    remaining: int
    current: int
    reset_at: float  # Unix timestamp, seconds
    retry_after: Optional[int] = None  # Seconds until retry allowed

    def to_headers(self) -> Dict[str, str]:
        """Standard rate limit response headers."""
        headers = {
            "X-RateLimit-Limit": str(self.limit),
            "X-RateLimit-Remaining": str(self.remaining),
            "X-RateLimit-Reset": str(math.ceil(self.reset_at)),
        }
        if self.retry_after is not None:
            headers["Retry-After"] = str(self.retry_after)
        return headers


class RateLimiter:
    """
    In-memory fixed-window rate limiter.

    Expired entries are swept opportunistically: whenever the store size is
    a non-zero multiple of cleanup_frequency, a sweep runs before the check.
    No background task is involved.

    check_and_consume() is synchronous, so requests on one event loop never
    interleave inside it. A multi-threaded server must add a lock.

    Example:
        >>> limiter = RateLimiter()
        >>> info = limiter.check_and_consume("1.2.3.4", RATE_LIMIT_TIERS["CHAT"])
        >>> info.allowed, info.remaining
        (True, 49)
    """

    def __init__(
        self,
        clock: Callable[[], float] = time.time,
        jitter_seconds: float = RATE_LIMIT_JITTER_SECONDS,
        cleanup_frequency: int = RATE_LIMIT_CLEANUP_FREQUENCY,
        random_source: Callable[[], float] = random.random,
    ):
        """
        Args:
            clock: Time source returning seconds
            jitter_seconds: Upper bound of the random extra window length
            cleanup_frequency: Sweep expired entries at multiples of this store size
            random_source: Returns a float in [0, 1) for jitter
        """
        self._entries: Dict[str, RateLimitEntry] = {}
        self._clock = clock
        self._jitter_seconds = jitter_seconds
        self._cleanup_frequency = cleanup_frequency
        self._random = random_source

    def check_and_consume(self, identifier: str, tier: RateLimitTier) -> RateLimitInfo:
        """
        Count one request and decide whether it is allowed.

        Args:
            identifier: Client identifier (usually the client IP)
            tier: Rate limit tier of the route

        Returns:
            RateLimitInfo with decision, quota and (on rejection) retry_after
        """
        size = len(self._entries)
        if size > 0 and self._cleanup_frequency > 0 and size % self._cleanup_frequency == 0:
            self.cleanup_expired()

        key = f"{tier.key_prefix}{identifier}"
        now = self._clock()
        entry = self._entries.get(key)

        if entry is None or now >= entry.reset_at:
            jitter = self._random() * self._jitter_seconds
            entry = RateLimitEntry(count=1, reset_at=now + tier.window_seconds + jitter)
            self._entries[key] = entry
            return RateLimitInfo(
                allowed=True,
                limit=tier.max_requests,
                remaining=max(0, tier.max_requests - 1),
                current=1,
                reset_at=entry.reset_at,
            )

        entry.count += 1

        if entry.count > tier.max_requests:
            return RateLimitInfo(
                allowed=False,
                limit=tier.max_requests,
                remaining=0,
                current=entry.count,
                reset_at=entry.reset_at,
                retry_after=math.ceil(entry.reset_at - now),
            )

        return RateLimitInfo(
            allowed=True,
            limit=tier.max_requests,
            remaining=tier.max_requests - entry.count,
            current=entry.count,
            reset_at=entry.reset_at,
        )

    def cleanup_expired(self) -> int:
        """
        Drops entries whose window has elapsed.

        Returns:
            Number of removed entries
        """
        now = self._clock()
        expired = [key for key, entry in self._entries.items() if now >= entry.reset_at]
        for key in expired:
            del self._entries[key]
        return len(expired)

    def reset(self) -> None:
        """Drops all counters."""
        self._entries.clear()

    @property
    def size(self) -> int:
        """Number of tracked (tier, identifier) pairs."""
        return len(self._entries)
