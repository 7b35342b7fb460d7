"""Pydantic models."""

from app.models.gateway import (
    GatewayConfig,
    OutgoingResponse,
    ResourceKind,
    ResourceSelector,
    UpstreamRequestSpec,
    UpstreamResponse,
)

__all__ = [
    "GatewayConfig",
    "OutgoingResponse",
    "ResourceKind",
    "ResourceSelector",
    "UpstreamRequestSpec",
    "UpstreamResponse",
]
