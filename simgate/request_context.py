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
Request-scoped context.

ContextStorageMiddleware binds one RequestContext per request; handlers and
services read it with get_request_context() instead of threading token,
tenant and backend URL through every call. ContextVar values are copied
into every task spawned from the request, and never leak between requests.
"""

from contextvars import ContextVar, Token
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping, Optional


@dataclass(frozen=True)
class RequestContext:
    """
    Immutable per-request bundle.

    Attributes:
        correlation_id: Client-supplied or generated trace id
        base_api_url: Validated and host-rewritten backend base URL
        token: Bearer token, if the request carried one
        company_id: Tenant id, if the request carried one
        env: Read-only platform bindings (storage handles, feature flags)
    """

    correlation_id: str
    base_api_url: str
    token: Optional[str] = None
    company_id: Optional[str] = None
    env: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))


_request_context: ContextVar[Optional[RequestContext]] = ContextVar(
    "simgate_request_context", default=None
)


def get_request_context() -> Optional[RequestContext]:
    """Returns the context of the current request, or None outside a request."""
    return _request_context.get()


def bind_request_context(context: RequestContext) -> Token:
    """Binds a context to the current task. Pass the result to reset_request_context()."""
    return _request_context.set(context)


def reset_request_context(token: Token) -> None:
    """Restores the binding that was active before bind_request_context()."""
    _request_context.reset(token)
