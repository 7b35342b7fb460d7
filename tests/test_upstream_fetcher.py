"""Tests for the redirect-chasing upstream fetcher."""

import asyncio
import json

import httpx
import pytest

from app.models.gateway import UpstreamRequestSpec
from app.services.upstream_fetcher import UpstreamFetcher, is_redirect
from app.utils.exceptions import (
    RedirectRejectedError,
    TooManyRedirectsError,
    UpstreamTimeoutError,
    UpstreamUnreachableError,
    ValidationError,
)
from tests.conftest import ScriptedUpstream

SPEC = UpstreamRequestSpec(
    host="www.instagram.com",
    path="/graphql/query/?query_hash=h",
    protocol="https",
    headers={"cookie": "sessionid=abc;"},
)


def make_fetcher(upstream: ScriptedUpstream, **kwargs) -> UpstreamFetcher:
    options = {"timeout": 1.0, "deadline": 2.0, "max_redirects": 3}
    options.update(kwargs)
    return UpstreamFetcher(transport=upstream.transport(), **options)


def test_redirect_statuses():
    assert is_redirect(301)
    assert is_redirect(302)
    assert is_redirect(307)
    assert not is_redirect(300)
    assert not is_redirect(200)
    assert not is_redirect(404)


@pytest.mark.asyncio
async def test_terminal_response_is_returned_directly():
    upstream = ScriptedUpstream(httpx.Response(200, json={"data": {}}, headers={"vary": "Accept"}))
    response = await make_fetcher(upstream).fetch(SPEC)

    assert upstream.call_count == 1
    assert response.status == 200
    assert response.header("vary") == "Accept"
    assert json.loads(response.text) == {"data": {}}
    assert str(upstream.requests[0].url).startswith("https://www.instagram.com/graphql/query/")


@pytest.mark.asyncio
async def test_follows_redirects_preserving_headers():
    upstream = ScriptedUpstream(
        httpx.Response(301, headers={"location": "https://i.instagram.com/first?a=1"}),
        httpx.Response(302, headers={"location": "/second"}),
        httpx.Response(200, content=b"final", headers={"x-hop": "last"}),
    )
    response = await make_fetcher(upstream).fetch(SPEC)

    assert upstream.call_count == 3
    assert response.body == b"final"
    assert response.header("x-hop") == "last"
    assert str(upstream.requests[1].url) == "https://i.instagram.com/first?a=1"
    # Relative location keeps the previous host and protocol
    assert str(upstream.requests[2].url) == "https://i.instagram.com/second"
    for request in upstream.requests:
        assert request.headers["cookie"] == "sessionid=abc;"
        assert request.method == "GET"


@pytest.mark.asyncio
async def test_redirect_without_location_is_terminal():
    upstream = ScriptedUpstream(httpx.Response(302))
    response = await make_fetcher(upstream).fetch(SPEC)
    assert upstream.call_count == 1
    assert response.status == 302


@pytest.mark.asyncio
async def test_redirects_up_to_the_bound_are_followed():
    upstream = ScriptedUpstream(
        *[httpx.Response(302, headers={"location": f"/hop{i}"}) for i in range(3)],
        httpx.Response(200, content=b"ok"),
    )
    response = await make_fetcher(upstream, max_redirects=3).fetch(SPEC)
    assert upstream.call_count == 4
    assert response.body == b"ok"


@pytest.mark.asyncio
async def test_too_many_redirects():
    upstream = ScriptedUpstream(
        *[httpx.Response(302, headers={"location": f"/hop{i}"}) for i in range(10)]
    )
    with pytest.raises(TooManyRedirectsError):
        await make_fetcher(upstream, max_redirects=3).fetch(SPEC)
    assert upstream.call_count == 4


@pytest.mark.asyncio
async def test_connection_error_becomes_unreachable():
    upstream = ScriptedUpstream(httpx.ConnectError("connection refused"))
    with pytest.raises(UpstreamUnreachableError):
        await make_fetcher(upstream).fetch(SPEC)


@pytest.mark.asyncio
async def test_hop_timeout_becomes_timeout_error():
    upstream = ScriptedUpstream(httpx.ReadTimeout("read timed out"))
    with pytest.raises(UpstreamTimeoutError) as exc_info:
        await make_fetcher(upstream).fetch(SPEC)
    assert exc_info.value.status_code == 504


@pytest.mark.asyncio
async def test_overall_deadline_is_enforced():
    async def slow(request: httpx.Request) -> httpx.Response:
        await asyncio.sleep(1)
        return httpx.Response(200)

    fetcher = UpstreamFetcher(transport=httpx.MockTransport(slow), deadline=0.05)
    with pytest.raises(UpstreamTimeoutError):
        await fetcher.fetch(SPEC)


@pytest.mark.asyncio
async def test_redirect_hosts_are_passed_to_validator():
    upstream = ScriptedUpstream(
        httpx.Response(302, headers={"location": "https://cdn2.example/a"}),
        httpx.Response(301, headers={"location": "/b"}),
        httpx.Response(200),
    )
    seen = []

    response = await make_fetcher(upstream).fetch(SPEC, validate_redirect=seen.append)

    assert response.status == 200
    assert seen == ["cdn2.example", "cdn2.example"]


@pytest.mark.asyncio
async def test_rejected_redirect_stops_the_chase():
    def reject(host):
        raise ValidationError(f"blocked {host}")

    upstream = ScriptedUpstream(
        httpx.Response(302, headers={"location": "http://internal.example/"}),
        httpx.Response(200),
    )
    with pytest.raises(RedirectRejectedError) as exc_info:
        await make_fetcher(upstream).fetch(SPEC, validate_redirect=reject)

    assert upstream.call_count == 1
    assert exc_info.value.url == "http://internal.example/"
    assert exc_info.value.status_code == 502


def test_redirected_spec_keeps_request_fields():
    redirected = SPEC.redirected_to("http://other.example/x?y=1")
    assert redirected.host == "other.example"
    assert redirected.path == "/x?y=1"
    assert redirected.protocol == "http"
    assert redirected.headers == SPEC.headers
    assert redirected.method == "GET"
