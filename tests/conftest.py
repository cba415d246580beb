# -*- coding: utf-8 -*-

"""
Shared fixtures for Simulation Gateway tests.

The auth backend is replaced by httpx.MockTransport, so no test ever
touches the network. Time is driven by FakeClock.
"""

import io
from typing import List, Optional

import httpx
import pytest
from fastapi import FastAPI, Request
from fastapi.testclient import TestClient
from loguru import logger

from simgate.app import create_app
from simgate.rate_limiter import RateLimiter
from simgate.request_context import get_request_context
from simgate.token_cache import TokenCache
from simgate.token_validator import TokenValidator


class FakeClock:
    """Manually advanced time source (seconds)."""

    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class AuthBackendStub:
    """
    Stand-in for GET {base}/auth/validate.

    Answers with `status_code`, or raises `error` when set.
    Every received request is recorded in `requests`.
    """

    def __init__(self):
        self.status_code = 200
        self.error: Optional[Exception] = None
        self.requests: List[httpx.Request] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        return httpx.Response(self.status_code, json={"valid": self.status_code < 400})

    @property
    def call_count(self) -> int:
        return len(self.requests)


@pytest.fixture
def clock():
    """Fake clock starting at a fixed Unix timestamp."""
    return FakeClock()


@pytest.fixture
def token_cache(clock):
    """Empty token cache on the fake clock."""
    return TokenCache(clock=clock)


@pytest.fixture
def auth_backend():
    """Auth backend stub answering 200 by default."""
    return AuthBackendStub()


@pytest.fixture
def validator(token_cache, auth_backend):
    """Token validator wired to the auth backend stub."""
    client = httpx.AsyncClient(transport=httpx.MockTransport(auth_backend.handler))
    return TokenValidator(token_cache, client=client)


@pytest.fixture
def rate_limiter(clock):
    """Rate limiter on the fake clock without jitter."""
    return RateLimiter(clock=clock, random_source=lambda: 0.0)


@pytest.fixture
def valid_token():
    """Simple-format token (44 characters)."""
    return "sim_" + "A1b2C3d4e5" * 4


@pytest.fixture
def other_valid_token():
    """Second simple-format token, distinct from valid_token."""
    return "sim_" + "Z9y8X7w6v5" * 4


@pytest.fixture
def short_jwt_token():
    """JWT-shaped token shorter than the simple-token minimum length."""
    return "aGVhZA.Ym9keQ.c2ln"


@pytest.fixture
def downstream_calls():
    """Paths reached by the test routes, in order."""
    return []


@pytest.fixture
def test_app(token_cache, rate_limiter, validator, downstream_calls):
    """
    Gateway app with extra routes standing in for the content generator.

    Routes:
        POST /chat                 protected
        GET  /context              protected, returns the bound request context
        GET  /boom                 protected, raises
        POST /smishing/chat        public unauthenticated
        POST /api/telemetry        internal skip
    """
    app = create_app(
        token_cache=token_cache,
        rate_limiter=rate_limiter,
        validator=validator,
        env={"feature": "on"},
    )
    _add_generator_routes(app, downstream_calls)
    return app


def _add_generator_routes(app: FastAPI, downstream_calls: list) -> None:
    @app.post("/chat")
    async def chat(request: Request):
        downstream_calls.append(request.url.path)
        return {"reply": "ok"}

    @app.get("/context")
    async def context(request: Request):
        downstream_calls.append(request.url.path)
        ctx = get_request_context()
        return {
            "correlation_id": ctx.correlation_id,
            "base_api_url": ctx.base_api_url,
            "token": ctx.token,
            "company_id": ctx.company_id,
            "env": dict(ctx.env),
        }

    @app.get("/boom")
    async def boom(request: Request):
        downstream_calls.append(request.url.path)
        raise RuntimeError("generator exploded")

    @app.post("/smishing/chat")
    async def smishing_chat(request: Request):
        downstream_calls.append(request.url.path)
        return {"reply": "public"}

    @app.post("/api/telemetry")
    async def telemetry(request: Request):
        downstream_calls.append(request.url.path)
        return {"accepted": True}


@pytest.fixture
def test_client(test_app):
    """TestClient for the full gateway app."""
    return TestClient(test_app)


@pytest.fixture
def log_output():
    """
    Captures log lines rendered with the production sink format.

    Yields a StringIO; the sink is removed after the test.
    """
    from main import LOG_FORMAT

    stream = io.StringIO()
    sink_id = logger.add(stream, level="DEBUG", format=LOG_FORMAT, colorize=False)
    yield stream
    logger.remove(sink_id)
