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
Endpoint classification for token admission.

Every request path falls into exactly one class:
    - internal skip: system/ops endpoints (health, hot reload, telemetry)
    - public unauthenticated: customer-facing simulation endpoints that are
      deliberately reachable without a token
    - protected: everything else

Both exempt classes bypass token admission. Only public unauthenticated
access is audit-logged; health checks would drown the log otherwise.
Matching is exact, no prefixes.
"""

from typing import FrozenSet

INTERNAL_SKIP_PATHS: FrozenSet[str] = frozenset(
    {
        "/health",
        "/__refresh",
        "/__hot-reload-status",
        "/api/telemetry",
        # Triggered by the scheduler, not by end users
        "/autonomous",
    }
)

PUBLIC_UNAUTHENTICATED_PATHS: FrozenSet[str] = frozenset(
    {
        "/code-review-validate",
        "/vishing/prompt",
        "/vishing/conversations/summary",
        "/smishing/chat",
        "/email-ir/analyze",
    }
)

SKIP_AUTH_PATHS: FrozenSet[str] = INTERNAL_SKIP_PATHS | PUBLIC_UNAUTHENTICATED_PATHS


def is_internal_skip_path(path: str) -> bool:
    """Check whether the path is an internal/system endpoint."""
    return path in INTERNAL_SKIP_PATHS


def is_public_unauthenticated_path(path: str) -> bool:
    """Check whether the path is a public endpoint that accepts anonymous traffic."""
    return path in PUBLIC_UNAUTHENTICATED_PATHS


def is_exempt_from_auth(path: str) -> bool:
    """Check whether the path bypasses token admission."""
    return path in SKIP_AUTH_PATHS
