"""Application configuration using pydantic-settings."""

import json
import logging
from typing import List, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

from app.models.gateway import GatewayConfig

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Server
    port: int = 8080
    host: str = "0.0.0.0"

    # Logging
    log_level: str = "INFO"

    # Origin allow-list: '{"origins": [...]}' or comma-separated patterns
    allowed_domain_origins: str = '{"origins": []}'

    # Gateway URL shape
    api_mapping: str = ""
    stage_id: str = ""
    img_service_protocol: str = "http"
    img_service_base_path: str = "/img"

    # Upstream
    ig_search_path: str = "/graphql/query"
    ig_protocol: str = "https"
    ig_host_domain: str = "www.instagram.com"
    ig_session_id: Optional[str] = None
    ig_tag_query_hash: str = "298b92c8d7cad703f7565aa892ede943"
    ig_user_query_hash: str = "472f257a40c653c64c666ce877d59d2b"
    ig_return_first: int = 20
    ig_default_tag: str = "catsofig"

    # Cookies and response tagging
    ig_cookie_domain: str = "instagram.com"
    cookie_domain: Optional[str] = None
    headers_api_id: Optional[str] = None

    # HTTP Settings
    http_timeout: float = 10.0  # seconds, per hop
    request_deadline: float = 25.0  # seconds, whole upstream exchange
    max_redirects: int = 5
    verify_upstream_tls: bool = True

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @property
    def allowed_origins_list(self) -> List[str]:
        """Get list of allowed origin patterns."""
        raw = self.allowed_domain_origins.strip()
        if not raw:
            return []
        if raw.startswith("{") or raw.startswith("["):
            parsed = json.loads(raw)
            origins = parsed.get("origins", []) if isinstance(parsed, dict) else parsed
            return [str(origin) for origin in origins or []]
        return [origin.strip() for origin in raw.split(",") if origin.strip()]

    @property
    def gateway_route_prefixes(self) -> List[str]:
        """Path prefixes that rewritten image links can carry (API mapping, stage)."""
        prefixes: List[str] = []
        for candidate in (self.api_mapping, self.stage_id):
            candidate = candidate.strip("/")
            if candidate and f"/{candidate}" not in prefixes:
                prefixes.append(f"/{candidate}")
        return prefixes

    def gateway_config(self) -> GatewayConfig:
        """Build the immutable configuration handed to the pipeline."""
        if not self.verify_upstream_tls:
            logger.warning("Upstream TLS certificate validation is disabled")
        return GatewayConfig(
            allowed_origins=tuple(self.allowed_origins_list),
            upstream_protocol=self.ig_protocol,
            upstream_host=self.ig_host_domain,
            search_path=self.ig_search_path,
            session_id=self.ig_session_id,
            tag_query_hash=self.ig_tag_query_hash,
            user_query_hash=self.ig_user_query_hash,
            default_first=self.ig_return_first,
            default_tag=self.ig_default_tag,
            upstream_cookie_domain=self.ig_cookie_domain,
            cookie_domain=self.cookie_domain,
            api_id=self.headers_api_id,
            api_mapping=self.api_mapping,
            stage_id=self.stage_id,
            image_protocol=self.img_service_protocol,
            image_path=self.img_service_base_path,
            http_timeout=self.http_timeout,
            request_deadline=self.request_deadline,
            max_redirects=self.max_redirects,
            verify_tls=self.verify_upstream_tls,
        )


# Global settings instance
settings = Settings()
