"""Shared API dependencies."""

from functools import lru_cache

from app.config import settings
from app.models.gateway import GatewayConfig
from app.services.gateway_service import GatewayService


@lru_cache(maxsize=1)
def get_gateway_config() -> GatewayConfig:
    """Get the immutable gateway configuration, built once from settings."""
    return settings.gateway_config()


def get_gateway_service() -> GatewayService:
    """Get gateway service instance."""
    return GatewayService(get_gateway_config())
