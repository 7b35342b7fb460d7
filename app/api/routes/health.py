"""Health check endpoint."""

import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends

from app.api.dependencies import get_gateway_config
from app.core.metrics import metrics
from app.models.gateway import GatewayConfig

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/health", tags=["health"])


@router.get("")
async def health_check() -> Dict[str, str]:
    """
    Health check endpoint.

    Returns:
        Health status
    """
    return {"status": "healthy"}


@router.get("/ready")
async def readiness_check(config: GatewayConfig = Depends(get_gateway_config)) -> Dict[str, Any]:
    """
    Readiness check.
    Reports whether the upstream credential and origin allow-list are configured.
    """
    return {
        "status": "ready",
        "dependencies": {
            "upstream_host": config.upstream_host,
            "session_configured": bool(config.session_id),
            "allowed_origins": len(config.allowed_origins),
            "verify_tls": config.verify_tls,
        },
    }


@router.get("/metrics")
async def performance_metrics() -> Dict[str, Any]:
    """
    Get performance metrics.

    Returns:
        Request counts, latency, origin rejections, upstream failures and error rate
    """
    return {
        "status": "ok",
        **metrics.get_summary()
    }
