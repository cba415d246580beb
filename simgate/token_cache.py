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
Token validity cache for Simulation Gateway.

In-memory storage of last-known token validity with per-entry TTL,
so that the hot path does not call the auth backend on every request.
"""

import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Callable, Optional

from simgate.config import TOKEN_CACHE_MAX_ENTRIES, TOKEN_CACHE_TTL


@dataclass
class _CacheEntry:
    is_valid: bool
    expires_at: float


class TokenCache:
    """
    TTL cache mapping a bearer token to its last-known validity.

    Expired entries behave exactly like missing ones. Positive results are
    stored with the default (long) TTL; callers pass a short TTL for
    negative results.

    All operations are synchronous and never suspend, so concurrent
    requests on one event loop cannot interleave inside them. Concurrent
    writers for the same token resolve as last-write-wins. A multi-threaded
    server must wrap this class with a lock.

    Attributes:
        default_ttl: TTL in seconds used when set() is called without one
        max_entries: Maximum number of cached tokens (oldest evicted first)

    Example:
        >>> cache = TokenCache()
        >>> cache.set("token", True)
        >>> cache.get("token")
        True
        >>> cache.set("bad-token", False, ttl=60)
    """

    def __init__(
        self,
        default_ttl: float = TOKEN_CACHE_TTL,
        max_entries: int = TOKEN_CACHE_MAX_ENTRIES,
        clock: Callable[[], float] = time.time,
    ):
        """
        Initializes the token cache.

        Args:
            default_ttl: TTL in seconds for entries stored without explicit TTL
            max_entries: Capacity bound, 0 or less disables the bound
            clock: Time source returning seconds
        """
        self._entries: "OrderedDict[str, _CacheEntry]" = OrderedDict()
        self.default_ttl = default_ttl
        self.max_entries = max_entries
        self._clock = clock

    def get(self, token: str) -> Optional[bool]:
        """
        Returns cached validity for the token.

        Args:
            token: Bearer token

        Returns:
            True/False if a live entry exists, None on miss or expiry
        """
        entry = self._entries.get(token)
        if entry is None:
            return None
        if self._clock() >= entry.expires_at:
            del self._entries[token]
            return None
        return entry.is_valid

    def set(self, token: str, is_valid: bool, ttl: Optional[float] = None) -> None:
        """
        Stores validity for the token, overwriting any previous entry.

        Args:
            token: Bearer token
            is_valid: Validity reported by the auth backend
            ttl: Entry lifetime in seconds (default_ttl when omitted)
        """
        if ttl is None:
            ttl = self.default_ttl

        # Re-inserting moves the key to the newest position
        self._entries.pop(token, None)
        if self.max_entries > 0:
            while len(self._entries) >= self.max_entries:
                self._entries.popitem(last=False)

        self._entries[token] = _CacheEntry(
            is_valid=is_valid, expires_at=self._clock() + ttl
        )

    def clear(self) -> None:
        """Drops every entry."""
        self._entries.clear()

    @property
    def size(self) -> int:
        """Number of stored entries, expired ones included until touched."""
        return len(self._entries)
