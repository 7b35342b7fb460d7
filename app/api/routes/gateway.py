"""Query and image proxy endpoints."""

import base64
import logging
from typing import Dict, Optional
from urllib.parse import unquote

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import Response

from app.api.dependencies import get_gateway_service
from app.config import settings
from app.models.gateway import OutgoingResponse, ResourceSelector
from app.services.gateway_service import GatewayService

logger = logging.getLogger(__name__)
router = APIRouter(tags=["gateway"])


def to_http_response(outgoing: OutgoingResponse) -> Response:
    """Convert a pipeline response into a Starlette response."""
    content = base64.b64decode(outgoing.body) if outgoing.is_base64_encoded else outgoing.body.encode("utf-8")
    response = Response(content=content, status_code=outgoing.status_code, headers=outgoing.headers)
    for name, values in outgoing.multi_value_headers.items():
        for value in values:
            if value:
                response.headers.append(name, value)
    return response


def raw_query_params(query: str) -> Dict[str, str]:
    """
    Parse a query string keeping ``+`` literal.

    CDN signatures can contain ``+``; form-style decoding would turn it into a space.
    """
    params: Dict[str, str] = {}
    for pair in query.split("&"):
        if not pair:
            continue
        key, _, value = pair.partition("=")
        params[unquote(key)] = unquote(value)
    return params


async def _proxy_query(
    request: Request, service: GatewayService, type_: Optional[str], value: Optional[str], after: Optional[str]
) -> Response:
    selector = ResourceSelector.from_path(type_, value, after)
    logger.info(
        "Route /search called",
        extra={
            "request_id": getattr(request.state, "request_id", None),
            "route": "/search",
            "params": {"type": selector.kind.value, "value": selector.value, "after": selector.after},
        },
    )
    outgoing = await service.handle_query(
        selector,
        origin=request.headers.get("origin"),
        host=request.headers.get("host"),
    )
    return to_http_response(outgoing)


@router.get("/search")
async def search_default(
    request: Request,
    after: Optional[str] = Query(None, description="Pagination cursor"),
    service: GatewayService = Depends(get_gateway_service),
) -> Response:
    """Query the default tag."""
    return await _proxy_query(request, service, None, None, after)


@router.get("/search/{type_}")
async def search_by_type(
    request: Request,
    type_: str,
    after: Optional[str] = Query(None, description="Pagination cursor"),
    service: GatewayService = Depends(get_gateway_service),
) -> Response:
    """Query with a selector type but no value."""
    return await _proxy_query(request, service, type_, None, after)


@router.get("/search/{type_}/{value}")
async def search(
    request: Request,
    type_: str,
    value: str,
    after: Optional[str] = Query(None, description="Pagination cursor"),
    service: GatewayService = Depends(get_gateway_service),
) -> Response:
    """
    Query the upstream by tag or user.

    - **type_**: `tag` or `user`; anything else queries the default tag
    - **value**: Tag name or user id
    - **after**: Pagination cursor from a previous page
    """
    return await _proxy_query(request, service, type_, value, after)


@router.get(settings.img_service_base_path)
async def proxy_image(
    request: Request,
    service: GatewayService = Depends(get_gateway_service),
) -> Response:
    """
    Proxy an image from the CDN.

    - **_nc_ht**: CDN host
    - **url**: CDN path
    - any other parameter is forwarded to the CDN
    """
    params = raw_query_params(request.url.query)
    logger.info(
        "Route image proxy called",
        extra={
            "request_id": getattr(request.state, "request_id", None),
            "route": settings.img_service_base_path,
            "params": {"host": params.get("_nc_ht"), "url": (params.get("url") or "")[:200]},
        },
    )
    outgoing = await service.handle_image(params, origin=request.headers.get("origin"))
    return to_http_response(outgoing)
