"""Gateway Pydantic models and upstream exchange types."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Tuple
from urllib.parse import urljoin, urlsplit

from pydantic import BaseModel, ConfigDict, Field


class GatewayConfig(BaseModel):
    """Immutable per-invocation configuration injected into the pipeline."""

    model_config = ConfigDict(frozen=True)

    allowed_origins: Tuple[str, ...] = Field(
        default_factory=tuple, description="Origin patterns, checked in order"
    )

    # Upstream query endpoint
    upstream_protocol: str = Field("https", description="Protocol for upstream and CDN calls")
    upstream_host: str = Field("www.instagram.com", description="Upstream query host")
    search_path: str = Field("/graphql/query", description="Upstream query path")
    session_id: Optional[str] = Field(None, description="Session credential sent as a cookie")
    tag_query_hash: str = "298b92c8d7cad703f7565aa892ede943"
    user_query_hash: str = "472f257a40c653c64c666ce877d59d2b"
    default_first: int = Field(20, description="Default page size")
    default_tag: str = Field("catsofig", description="Tag used when no selector is supplied")

    # Cookie rewrite pair
    upstream_cookie_domain: str = "instagram.com"
    cookie_domain: Optional[str] = Field(None, description="Gateway cookie domain")

    # Outgoing response
    api_id: Optional[str] = Field(None, description="Value of the Api-Id response header")

    # Gateway's own URL shape, used for rewritten image links
    api_mapping: str = Field("", description="Base path override for custom domains")
    stage_id: str = Field("", description="Deployment stage prefixed to the base path")
    image_protocol: str = "http"
    image_path: str = "/img"

    # Transport policy
    http_timeout: float = Field(10.0, gt=0, description="Per-hop timeout in seconds")
    request_deadline: float = Field(25.0, gt=0, description="Overall upstream deadline in seconds")
    max_redirects: int = Field(5, ge=0)
    verify_tls: bool = Field(True, description="Validate upstream TLS certificates")

    def gateway_base_path(self, host: Optional[str]) -> str:
        """Return the path prefix under which this gateway is reachable for ``host``."""
        if self.api_mapping:
            return self.api_mapping
        if self.stage_id and "localhost" not in str(host):
            return f"/{self.stage_id}"
        return ""


class ResourceKind(str, Enum):
    """Kinds of upstream resource a caller can select."""

    TAG = "tag"
    USER = "user"
    DEFAULT = "default"


class ResourceSelector(BaseModel):
    """Caller's discriminator plus value and pagination cursor."""

    model_config = ConfigDict(frozen=True)

    kind: ResourceKind = ResourceKind.DEFAULT
    value: Optional[str] = None
    after: Optional[str] = None

    @classmethod
    def from_path(
        cls, type_: Optional[str], value: Optional[str] = None, after: Optional[str] = None
    ) -> "ResourceSelector":
        """Build a selector from raw path parameters; unknown types select the default."""
        try:
            kind = ResourceKind(type_) if type_ else ResourceKind.DEFAULT
        except ValueError:
            kind = ResourceKind.DEFAULT
        if kind is ResourceKind.DEFAULT:
            value = None
        return cls(kind=kind, value=value, after=after or None)


@dataclass(frozen=True)
class UpstreamRequestSpec:
    """A GET against the upstream; ``path`` carries the query string."""

    host: str
    path: str
    protocol: str = "https"
    method: str = "GET"
    headers: Dict[str, str] = field(default_factory=dict)
    body: bytes = b""

    @property
    def url(self) -> str:
        return f"{self.protocol}://{self.host}{self.path}"

    def redirected_to(self, location: str) -> "UpstreamRequestSpec":
        """Return a copy targeting ``location``, resolved against the current URL."""
        target = urlsplit(urljoin(self.url, location))
        path = target.path or "/"
        if target.query:
            path = f"{path}?{target.query}"
        return UpstreamRequestSpec(
            host=target.netloc or self.host,
            path=path,
            protocol=target.scheme or self.protocol,
            method=self.method,
            headers=dict(self.headers),
            body=self.body,
        )


@dataclass
class UpstreamResponse:
    """Terminal upstream response; header names are lower-cased."""

    status: int
    headers: Dict[str, List[str]] = field(default_factory=dict)
    body: bytes = b""
    url: Optional[str] = None

    @property
    def text(self) -> str:
        return self.body.decode("utf-8", errors="replace")

    @property
    def is_success(self) -> bool:
        return 200 <= self.status < 300

    def header(self, name: str) -> Optional[str]:
        values = self.headers.get(name.lower())
        return values[0] if values else None

    def header_values(self, name: str) -> List[str]:
        return list(self.headers.get(name.lower(), []))


class OutgoingResponse(BaseModel):
    """The pipeline's only externally observable artifact."""

    status_code: int = 200
    headers: Dict[str, str] = Field(default_factory=dict)
    multi_value_headers: Dict[str, List[str]] = Field(default_factory=dict)
    body: str = ""
    is_base64_encoded: bool = False

    def to_proxy_dict(self) -> Dict[str, object]:
        """Render in the API-Gateway proxy-integration shape."""
        result: Dict[str, object] = {
            "statusCode": self.status_code,
            "headers": dict(self.headers),
            "body": self.body,
            "isBase64Encoded": self.is_base64_encoded,
        }
        if self.multi_value_headers:
            result["multiValueHeaders"] = {k: list(v) for k, v in self.multi_value_headers.items()}
        return result
