"""Builds browser-safe outgoing responses from upstream results."""

import json
import logging
from typing import Any, Dict, List, Optional

from app.core.request_id import get_request_id
from app.models.gateway import GatewayConfig, OutgoingResponse, UpstreamResponse
from app.utils.exceptions import GatewayException, MalformedUpstreamPayloadError, OriginRejectedError

logger = logging.getLogger(__name__)

QUERY_ALLOW_HEADERS = "Accept,Accept-Language,Content-Language,Content-Type,Authorization,x-correlation-id"
IMAGE_ALLOW_HEADERS = "Origin,X-Requested-With," + QUERY_ALLOW_HEADERS
EXPOSE_HEADERS = "x-my-header-out"
ALLOW_METHODS = "OPTIONS,GET"
IMAGE_CACHE_CONTROL = "max-age=1209600, no-transform"  # 14 days

# Upstream headers that may reach the client, besides Set-Cookie.
PASS_THROUGH_HEADERS = (
    "location",
    "vary",
    "x-frame-options",
    "x-content-type-options",
    "sniff",
    "access-control-expose-headers",
)

ORIGIN_DENIED_BODY = {"Access Denied": "Invalid origin domain"}


def query_cors_headers(origin: Optional[str], config: GatewayConfig) -> Dict[str, str]:
    """CORS header set for the query path; the origin is echoed when one was validated."""
    headers = {
        "Content-Type": "application/json",
        "Access-Control-Allow-Headers": QUERY_ALLOW_HEADERS,
        "Access-Control-Expose-Headers": EXPOSE_HEADERS,
        "Access-Control-Allow-Credentials": "true",
        "Access-Control-Allow-Methods": ALLOW_METHODS,
    }
    if origin:
        headers["Access-Control-Allow-Origin"] = origin
    if config.api_id:
        headers["Api-Id"] = config.api_id
    return headers


def image_cors_headers(config: GatewayConfig) -> Dict[str, str]:
    """CORS header set for the image path, wildcard origin."""
    headers = {
        "Access-Control-Allow-Headers": IMAGE_ALLOW_HEADERS,
        "Access-Control-Expose-Headers": EXPOSE_HEADERS,
        "Access-Control-Allow-Credentials": "true",
        "Access-Control-Allow-Methods": ALLOW_METHODS,
        "Access-Control-Allow-Origin": "*",
        "cross-origin-resource-policy": "cross-origin",
        "timing-allow-origin": "*",
    }
    if config.api_id:
        headers["Api-Id"] = config.api_id
    return headers


def assemble_query_response(
    upstream: UpstreamResponse,
    rewritten_body: str,
    cookies: List[str],
    origin: Optional[str],
    config: GatewayConfig,
) -> OutgoingResponse:
    """
    Wrap the rewritten upstream payload as ``{"graphql": <data>}``.

    Raises:
        MalformedUpstreamPayloadError: If the rewritten body is not valid JSON
    """
    try:
        payload = json.loads(rewritten_body)
    except ValueError as e:
        raise MalformedUpstreamPayloadError(
            f"Upstream body is not valid JSON: {e}", url=upstream.url
        ) from e

    data: Any = payload.get("data") if isinstance(payload, dict) else None

    multi_value_headers: Dict[str, List[str]] = {}
    if cookies:
        multi_value_headers["set-cookie"] = list(cookies)
    for name in PASS_THROUGH_HEADERS:
        values = [value for value in upstream.header_values(name) if value]
        if values:
            multi_value_headers[name] = values

    return OutgoingResponse(
        status_code=200,
        headers=query_cors_headers(origin, config),
        multi_value_headers=multi_value_headers,
        body=json.dumps({"graphql": data}, ensure_ascii=False),
        is_base64_encoded=False,
    )


def assemble_image_response(encoded_body: str, config: GatewayConfig) -> OutgoingResponse:
    """Wrap a base64 image body with caching and wildcard CORS headers."""
    headers = {
        "content-type": "image/jpeg",
        "cache-control": IMAGE_CACHE_CONTROL,
        **image_cors_headers(config),
    }
    return OutgoingResponse(
        status_code=200,
        headers=headers,
        body=encoded_body,
        is_base64_encoded=True,
    )


def assemble_origin_denied_response() -> OutgoingResponse:
    """Fixed 403 for rejected origins; carries no CORS or upstream data."""
    return OutgoingResponse(
        status_code=403,
        headers={"content-type": "application/json"},
        body=json.dumps(ORIGIN_DENIED_BODY),
        is_base64_encoded=False,
    )


def assemble_error_response(exc: GatewayException, cors_headers: Dict[str, str]) -> OutgoingResponse:
    """Turn a pipeline failure into a structured JSON response."""
    if isinstance(exc, OriginRejectedError):
        return assemble_origin_denied_response()

    headers = {
        key: value
        for key, value in cors_headers.items()
        if key.lower() not in ("content-type", "cache-control")
    }
    headers["Content-Type"] = "application/json"

    return OutgoingResponse(
        status_code=exc.status_code,
        headers=headers,
        body=json.dumps(
            {
                "error": exc.error_message,
                "detail": str(exc),
                "request_id": get_request_id() or None,
            }
        ),
        is_base64_encoded=False,
    )
