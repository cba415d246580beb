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
Validation of the X-BASE-API-URL header.

The header lets callers point the gateway at a different backend (test vs
production). Since the gateway sends bearer tokens to that backend, only
approved hosts are accepted; anything else silently becomes the default.
"""

from typing import Iterable, Mapping, Optional
from urllib.parse import urlsplit

from loguru import logger

from simgate.config import (
    ALLOWED_BASE_API_HOSTS,
    BASE_API_HOST_REWRITES,
    DEFAULT_BASE_API_URL,
)


def is_allowed_base_api_url(
    url: str, allowed_hosts: Iterable[str] = ALLOWED_BASE_API_HOSTS
) -> bool:
    """
    Check that a URL is a bare http(s) origin on an approved host.

    Paths (other than a lone trailing slash), query strings, fragments,
    credentials and explicit ports are rejected. Host comparison is
    case-insensitive.

    Args:
        url: Trimmed URL
        allowed_hosts: Approved host names

    Returns:
        True if the URL may be used as backend base URL
    """
    try:
        parts = urlsplit(url)
        port = parts.port
    except ValueError:
        return False

    if parts.scheme.lower() not in ("http", "https"):
        return False
    if port is not None or parts.username or parts.password:
        return False
    if parts.path not in ("", "/") or parts.query or parts.fragment:
        return False

    host = (parts.hostname or "").lower()
    return host in {allowed.lower() for allowed in allowed_hosts}


def validate_base_api_url(
    raw_url: Optional[str],
    default: str = DEFAULT_BASE_API_URL,
    allowed_hosts: Iterable[str] = ALLOWED_BASE_API_HOSTS,
) -> str:
    """
    Resolve the X-BASE-API-URL header value.

    Args:
        raw_url: Header value (may be None, blank or garbage)
        default: URL used when the header cannot be used
        allowed_hosts: Approved host names

    Returns:
        The trimmed header value when approved, otherwise the default
    """
    candidate = (raw_url or "").strip()
    if not candidate:
        return default

    if not is_allowed_base_api_url(candidate, allowed_hosts):
        logger.warning(
            "[UrlValidator] Rejected X-BASE-API-URL, using default: {url}",
            url=candidate[:200],
        )
        return default

    return candidate


def rewrite_base_api_host(
    url: str, rewrites: Mapping[str, str] = BASE_API_HOST_REWRITES
) -> str:
    """
    Map customer-facing dashboard hosts to their API hosts.

    Plain case-sensitive substring replacement: an upper-cased dashboard
    URL passes validation but is left as-is.
    """
    for source, target in rewrites.items():
        if source in url:
            url = url.replace(source, target)
    return url


def resolve_base_api_url(raw_url: Optional[str]) -> str:
    """Validate the header value and apply host rewrites."""
    return rewrite_base_api_host(validate_base_api_url(raw_url))
