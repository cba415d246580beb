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
Best-effort client IP resolution from proxy headers.

Used for rate-limit keying and for log lines. Never used for access
decisions, since every header here is client-controllable past the edge.
"""

from typing import Mapping

from simgate.config import FORWARDED_FOR_HEADER, REAL_IP_HEADER, TRUSTED_PROXY_IP_HEADER

UNKNOWN_CLIENT: str = "unknown"


def get_client_ip(headers: Mapping[str, str], include_real_ip: bool = True) -> str:
    """
    Resolve the client IP.

    Precedence: trusted proxy IP header, then the first hop of
    X-Forwarded-For, then X-Real-IP (when include_real_ip), then "unknown".

    Args:
        headers: Request headers (case-insensitive mapping such as starlette Headers)
        include_real_ip: Whether X-Real-IP is consulted

    Returns:
        Client IP string or "unknown"
    """
    trusted_ip = (headers.get(TRUSTED_PROXY_IP_HEADER) or "").strip()
    if trusted_ip:
        return trusted_ip

    forwarded_for = headers.get(FORWARDED_FOR_HEADER) or ""
    first_hop = forwarded_for.split(",")[0].strip()
    if first_hop:
        return first_hop

    if include_real_ip:
        real_ip = (headers.get(REAL_IP_HEADER) or "").strip()
        if real_ip:
            return real_ip

    return UNKNOWN_CLIENT
