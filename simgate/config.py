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
Simulation Gateway Configuration.

Centralized storage for all settings, constants, and header names.
Loads environment variables and provides typed access to them.
"""

import os
from typing import Dict, List

from dotenv import load_dotenv

# Load environment variables
load_dotenv()


_TRUTHY_VALUES = ("true", "1", "yes", "enabled", "on")


def _env_flag(var_name: str, default: str) -> bool:
    """Read a boolean flag from the environment."""
    return os.getenv(var_name, default).lower() in _TRUTHY_VALUES


def _env_list(var_name: str, default: str) -> List[str]:
    """Read a comma-separated list from the environment, dropping blanks."""
    raw = os.getenv(var_name, default)
    return [value.strip() for value in raw.split(",") if value.strip()]


# ==================================================================================================
# Server Settings
# ==================================================================================================

# Server host (default: 0.0.0.0 - listen on all interfaces)
DEFAULT_SERVER_HOST: str = "0.0.0.0"
SERVER_HOST: str = os.getenv("SERVER_HOST", DEFAULT_SERVER_HOST)

# Server port (default: 8000)
# Can be overridden by CLI: python main.py --port 9000
DEFAULT_SERVER_PORT: int = 8000
SERVER_PORT: int = int(os.getenv("SERVER_PORT", str(DEFAULT_SERVER_PORT)))

# ==================================================================================================
# Request Header Names
# ==================================================================================================

# Header carrying the caller's bearer token.
# Case-insensitive on the wire, but this exact spelling is used in error messages.
TOKEN_HEADER: str = os.getenv("TOKEN_HEADER", "X-AGENTIC-ALLY-TOKEN")

# Multi-tenant scoping header (optional)
COMPANY_ID_HEADER: str = "X-COMPANY-ID"

# Client-supplied trace id. Echoed back on every response.
CORRELATION_ID_HEADER: str = "X-Correlation-ID"

# Overrides the upstream backend host (validated against ALLOWED_BASE_API_HOSTS)
BASE_API_URL_HEADER: str = "X-BASE-API-URL"

# Client IP headers in precedence order.
# TRUSTED_PROXY_IP_HEADER is set by the edge proxy and cannot be spoofed past it.
TRUSTED_PROXY_IP_HEADER: str = "cf-connecting-ip"
FORWARDED_FOR_HEADER: str = "x-forwarded-for"
REAL_IP_HEADER: str = "x-real-ip"

# ==================================================================================================
# Upstream API Settings
# ==================================================================================================

# Backend used when X-BASE-API-URL is missing, malformed or not approved
DEFAULT_BASE_API_URL: str = os.getenv(
    "DEFAULT_BASE_API_URL", "https://test-api.devkeepnet.com"
)

# Backend hosting the token validation endpoint when no override applies
DEFAULT_AUTH_URL: str = os.getenv("DEFAULT_AUTH_URL", DEFAULT_BASE_API_URL)

# Hosts accepted in X-BASE-API-URL.
# Anything else (localhost, raw IPs, look-alike domains) falls back to the default.
ALLOWED_BASE_API_HOSTS: List[str] = _env_list(
    "ALLOWED_BASE_API_HOSTS",
    "dash.keepnetlabs.com,api.keepnetlabs.com,test-api.devkeepnet.com",
)

# Customer-facing dashboard host -> API host.
# Clients often send the dashboard origin; the API lives on a sibling host.
# Substitution is a plain case-sensitive string replacement.
BASE_API_HOST_REWRITES: Dict[str, str] = {
    "dash.keepnetlabs.com": "api.keepnetlabs.com",
}

# ==================================================================================================
# Token Validation Settings
# ==================================================================================================

# Minimum length of a simple (non-JWT) token
TOKEN_MIN_LENGTH: int = 32

# Remote validation endpoint, appended to the resolved base URL
AUTH_VALIDATION_PATH: str = "/auth/validate"

# Timeout for the remote validation call (seconds).
# A timeout is a transport failure and the request is rejected (fail closed).
AUTH_VALIDATION_TIMEOUT: float = float(os.getenv("AUTH_VALIDATION_TIMEOUT", "10"))

# ==================================================================================================
# Token Cache Settings
# ==================================================================================================

# TTL for tokens the backend accepted (seconds, default 15 minutes)
TOKEN_CACHE_TTL: float = float(os.getenv("TOKEN_CACHE_TTL", "900"))

# TTL for tokens the backend rejected (seconds, default 1 minute).
# Short on purpose: a flood of bad tokens must not hammer the auth backend,
# yet a token rejected during a backend hiccup is re-checked soon.
TOKEN_CACHE_INVALID_TTL: float = float(os.getenv("TOKEN_CACHE_INVALID_TTL", "60"))

# Upper bound on cached tokens. Oldest entries are evicted first.
TOKEN_CACHE_MAX_ENTRIES: int = int(os.getenv("TOKEN_CACHE_MAX_ENTRIES", "10000"))

# ==================================================================================================
# Rate Limit Settings
# ==================================================================================================

RATE_LIMIT_ENABLED: bool = _env_flag("RATE_LIMIT_ENABLED", "true")

# Expired windows are swept whenever the store size is a multiple of this value
RATE_LIMIT_CLEANUP_FREQUENCY: int = 100

# Random extra time (seconds, upper bound) added to every new window.
# Spreads window resets so that many clients do not reset at the same instant.
RATE_LIMIT_JITTER_SECONDS: float = 1.0

# Admitted requests with fewer remaining slots than this are logged
RATE_LIMIT_LOW_REMAINING_THRESHOLD: int = 10

RATE_LIMIT_DEFAULT_MESSAGE: str = "Too many requests, please try again later."

# ==================================================================================================
# Request Body Settings
# ==================================================================================================

# Maximum accepted Content-Length in megabytes (1 MB = 1024 * 1024 bytes)
MAX_BODY_SIZE_MB: float = float(os.getenv("MAX_BODY_SIZE_MB", "1"))

# ==================================================================================================
# Logging Settings
# ==================================================================================================

# Log level for the application
# Available levels: TRACE, DEBUG, INFO, WARNING, ERROR, CRITICAL
# Default: INFO (recommended for production)
LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()

# ==================================================================================================
# Application Version
# ==================================================================================================

APP_VERSION: str = "1.0"
APP_TITLE: str = "Simulation Gateway"
APP_DESCRIPTION: str = "Request admission gateway for the phishing-simulation content generator."


def get_auth_validation_url(base_url: str) -> str:
    """Return the token validation URL for the given backend base URL."""
    return f"{base_url.rstrip('/')}{AUTH_VALIDATION_PATH}"
