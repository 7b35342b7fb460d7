"""Pytest configuration and fixtures."""

from typing import Callable, List, Union

import httpx
import pytest
from fastapi.testclient import TestClient

from app.api.dependencies import get_gateway_config, get_gateway_service
from app.main import app
from app.models.gateway import GatewayConfig
from app.services.gateway_service import GatewayService

ScriptItem = Union[httpx.Response, Exception, Callable[[httpx.Request], httpx.Response]]


class ScriptedUpstream:
    """Replays scripted responses and records every request it receives."""

    def __init__(self, *script: ScriptItem):
        self.script: List[ScriptItem] = list(script)
        self.requests: List[httpx.Request] = []

    def add(self, *script: ScriptItem) -> "ScriptedUpstream":
        self.script.extend(script)
        return self

    @property
    def call_count(self) -> int:
        return len(self.requests)

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if not self.script:
            raise AssertionError(f"Unexpected upstream call: {request.url}")
        item = self.script.pop(0)
        if isinstance(item, Exception):
            raise item
        if callable(item) and not isinstance(item, httpx.Response):
            return item(request)
        return item

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)


@pytest.fixture
def gateway_config() -> GatewayConfig:
    """Gateway configuration used across tests."""
    return GatewayConfig(
        allowed_origins=("https://app\\.example\\.com", "localhost"),
        upstream_host="www.instagram.com",
        session_id="test-session",
        tag_query_hash="tag-hash",
        user_query_hash="user-hash",
        default_first=12,
        upstream_cookie_domain="instagram.com",
        cookie_domain="api.example.com",
        api_id="test-api-id",
        image_protocol="https",
        image_path="/img",
        http_timeout=1.0,
        request_deadline=2.0,
        max_redirects=3,
    )


@pytest.fixture
def upstream() -> ScriptedUpstream:
    """Scripted upstream; tests add responses with ``upstream.add(...)``."""
    return ScriptedUpstream()


@pytest.fixture
def gateway_service(gateway_config: GatewayConfig, upstream: ScriptedUpstream) -> GatewayService:
    """Gateway service talking to the scripted upstream."""
    return GatewayService(gateway_config, transport=upstream.transport())


@pytest.fixture
def client(gateway_config: GatewayConfig, gateway_service: GatewayService):
    """Create test client with the gateway wired to the scripted upstream."""
    app.dependency_overrides[get_gateway_config] = lambda: gateway_config
    app.dependency_overrides[get_gateway_service] = lambda: gateway_service
    yield TestClient(app)
    app.dependency_overrides.clear()
