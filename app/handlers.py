"""
API-Gateway proxy-integration entrypoints.

Each handler takes the proxy ``event`` dict and returns the response in the
proxy shape (statusCode, headers, multiValueHeaders, body, isBase64Encoded),
running the same pipeline as the HTTP application.
"""

import asyncio
import json
import logging
from typing import Any, Dict, Mapping, Optional

from app.api.dependencies import get_gateway_config
from app.config import settings
from app.core.request_id import ensure_request_id
from app.models.gateway import OutgoingResponse, ResourceSelector
from app.services.gateway_service import GatewayService
from app.utils.logging_config import setup_logging

setup_logging(settings.log_level)
logger = logging.getLogger(__name__)


def _header(headers: Mapping[str, str], name: str) -> Optional[str]:
    return headers.get(name.title()) or headers.get(name.lower())


def _internal_error(request_id: str) -> Dict[str, Any]:
    return OutgoingResponse(
        status_code=500,
        headers={"content-type": "application/json"},
        body=json.dumps(
            {
                "error": "Internal server error",
                "detail": "An unexpected error occurred",
                "request_id": request_id,
            }
        ),
    ).to_proxy_dict()


def ig_request_handler(event: Dict[str, Any], context: Any = None) -> Dict[str, Any]:
    """Query-path handler."""
    request_id = ensure_request_id(getattr(context, "aws_request_id", "") or "")
    headers = event.get("headers") or {}
    path_params = event.get("pathParameters") or {}
    query_params = event.get("queryStringParameters") or {}

    selector = ResourceSelector.from_path(
        path_params.get("type"), path_params.get("value"), query_params.get("after")
    )
    try:
        service = GatewayService(get_gateway_config())
        outgoing = asyncio.run(
            service.handle_query(
                selector,
                origin=_header(headers, "origin"),
                host=_header(headers, "host"),
            )
        )
    except Exception as e:
        logger.error(f"Unexpected exception: {str(e)}", extra={"request_id": request_id}, exc_info=True)
        return _internal_error(request_id)

    return outgoing.to_proxy_dict()


def img_request_handler(event: Dict[str, Any], context: Any = None) -> Dict[str, Any]:
    """Image-path handler."""
    request_id = ensure_request_id(getattr(context, "aws_request_id", "") or "")
    headers = event.get("headers") or {}
    query_params = event.get("queryStringParameters") or {}

    try:
        service = GatewayService(get_gateway_config())
        outgoing = asyncio.run(service.handle_image(query_params, origin=_header(headers, "origin")))
    except Exception as e:
        logger.error(f"Unexpected exception: {str(e)}", extra={"request_id": request_id}, exc_info=True)
        return _internal_error(request_id)

    return outgoing.to_proxy_dict()
