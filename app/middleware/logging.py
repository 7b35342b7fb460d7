"""Request/response logging middleware."""

import logging
import time
from typing import Any, Callable, Dict

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from app.core.metrics import metrics
from app.core.request_id import ensure_request_id

logger = logging.getLogger(__name__)

SENSITIVE_KEYS = ("session", "cookie", "token", "secret", "auth", "password")


def mask_sensitive_data(data: Any) -> Any:
    """Recursively mask sensitive fields in data."""
    if isinstance(data, dict):
        masked = {}
        for key, value in data.items():
            key_lower = str(key).lower()
            if any(sensitive in key_lower for sensitive in SENSITIVE_KEYS):
                if isinstance(value, str) and len(value) > 8:
                    masked[key] = f"{value[:8]}..."
                else:
                    masked[key] = "***"
            else:
                masked[key] = mask_sensitive_data(value)
        return masked
    elif isinstance(data, list):
        return [mask_sensitive_data(item) for item in data]
    else:
        return data


def get_request_params(request: Request) -> Dict[str, Any]:
    """
    Extract query and path parameters for logging.

    Args:
        request: FastAPI request object

    Returns:
        Params dict
    """
    params: Dict[str, Any] = {}

    if request.query_params:
        params["query"] = dict(request.query_params)

    if request.path_params:
        params["path"] = dict(request.path_params)

    return params


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Logs requests and responses, times them and feeds the request metrics."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = ensure_request_id(request.headers.get("x-request-id", ""))
        request.state.request_id = request_id

        start_time = time.time()
        method = request.method
        path = request.url.path

        masked_params = mask_sensitive_data(get_request_params(request))
        client_ip = request.client.host if request.client else None

        logger.info(
            f"API Request: {method} {path}",
            extra={
                "request_id": request_id,
                "method": method,
                "path": path,
                "params": masked_params,
                "origin": request.headers.get("origin"),
                "client_ip": client_ip,
                "user_agent": request.headers.get("user-agent", "Unknown"),
            },
        )

        try:
            response = await call_next(request)
        except Exception as e:
            process_time = time.time() - start_time
            metrics.record(process_time, 500)
            logger.error(
                f"API Error: {method} {path} - {str(e)}",
                extra={
                    "request_id": request_id,
                    "method": method,
                    "path": path,
                    "params": masked_params,
                    "process_time_ms": round(process_time * 1000, 2),
                },
                exc_info=True,
            )
            raise

        process_time = time.time() - start_time
        process_time_ms = round(process_time * 1000, 2)
        log_data = {
            "request_id": request_id,
            "method": method,
            "path": path,
            "status_code": response.status_code,
            "process_time_ms": process_time_ms,
        }
        if metrics.record(process_time, response.status_code):
            logger.warning(f"Slow request: {method} {path} took {process_time_ms}ms", extra=log_data)
        else:
            logger.info(f"API Response: {method} {path} - {response.status_code}", extra=log_data)

        response.headers["X-Request-ID"] = request_id
        response.headers["X-Response-Time"] = f"{process_time_ms}ms"
        return response
