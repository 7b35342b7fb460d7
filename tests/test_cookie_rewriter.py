"""Tests for Set-Cookie domain rewriting."""

from app.services.cookie_rewriter import rewrite_cookie_domains


def test_domain_is_rewritten_and_nothing_else_changes():
    cookie = "csrftoken=abc; Domain=instagram.com; expires=Sat, 01 Jan 2028 00:00:00 GMT; Path=/; Secure"
    assert rewrite_cookie_domains([cookie], "instagram.com", "api.example.com") == [
        "csrftoken=abc; Domain=api.example.com; expires=Sat, 01 Jan 2028 00:00:00 GMT; Path=/; Secure"
    ]


def test_each_value_is_rewritten_independently():
    cookies = ["a=1; Domain=instagram.com", "b=2; Path=/", "c=3; Domain=.instagram.com"]
    assert rewrite_cookie_domains(cookies, "instagram.com", "gw.example") == [
        "a=1; Domain=gw.example",
        "b=2; Path=/",
        "c=3; Domain=.gw.example",
    ]


def test_absent_header_is_a_noop():
    assert rewrite_cookie_domains(None, "instagram.com", "gw.example") == []
    assert rewrite_cookie_domains([], "instagram.com", "gw.example") == []


def test_unconfigured_gateway_domain_passes_through():
    cookies = ["a=1; Domain=instagram.com"]
    assert rewrite_cookie_domains(cookies, "instagram.com", None) == cookies
