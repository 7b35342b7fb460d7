"""Tests for settings and the gateway configuration they produce."""

import pytest
from pydantic import ValidationError as PydanticValidationError

from app.config import Settings
from app.models.gateway import GatewayConfig


def test_allowed_origins_json_format(monkeypatch):
    monkeypatch.setenv("ALLOWED_DOMAIN_ORIGINS", '{"origins": ["https://a\\\\.example", "localhost"]}')
    assert Settings().allowed_origins_list == ["https://a\\.example", "localhost"]


def test_allowed_origins_comma_separated(monkeypatch):
    monkeypatch.setenv("ALLOWED_DOMAIN_ORIGINS", "https://a.example, https://b.example")
    assert Settings().allowed_origins_list == ["https://a.example", "https://b.example"]


def test_gateway_config_from_environment(monkeypatch):
    monkeypatch.setenv("IG_SESSION_ID", "sess")
    monkeypatch.setenv("IG_RETURN_FIRST", "50")
    monkeypatch.setenv("COOKIE_DOMAIN", "gw.example")
    monkeypatch.setenv("VERIFY_UPSTREAM_TLS", "false")

    config = Settings().gateway_config()

    assert config.session_id == "sess"
    assert config.default_first == 50
    assert config.cookie_domain == "gw.example"
    assert config.verify_tls is False
    assert config.upstream_host == "www.instagram.com"
    assert config.tag_query_hash == "298b92c8d7cad703f7565aa892ede943"


def test_tls_verification_is_on_by_default():
    assert GatewayConfig().verify_tls is True


def test_gateway_config_is_immutable():
    config = GatewayConfig()
    with pytest.raises(PydanticValidationError):
        config.session_id = "changed"


@pytest.mark.parametrize(
    "api_mapping, stage_id, expected",
    [
        ("", "", []),
        ("", "prod", ["/prod"]),
        ("/v1/", "prod", ["/v1", "/prod"]),
        ("/prod", "prod", ["/prod"]),
    ],
)
def test_gateway_route_prefixes(monkeypatch, api_mapping, stage_id, expected):
    monkeypatch.setenv("API_MAPPING", api_mapping)
    monkeypatch.setenv("STAGE_ID", stage_id)
    assert Settings().gateway_route_prefixes == expected


@pytest.mark.parametrize(
    "api_mapping, stage_id, host, expected",
    [
        ("/v1", "prod", "api.example.com", "/v1"),
        ("", "prod", "api.example.com", "/prod"),
        ("", "prod", "localhost:3000", ""),
        ("", "", "api.example.com", ""),
    ],
)
def test_gateway_base_path(api_mapping, stage_id, host, expected):
    config = GatewayConfig(api_mapping=api_mapping, stage_id=stage_id)
    assert config.gateway_base_path(host) == expected
