"""Image CDN proxying: query sanitizing and binary fetch."""

import base64
import logging
from typing import Mapping, Optional

from app.models.gateway import GatewayConfig, UpstreamRequestSpec
from app.services.upstream_fetcher import UpstreamFetcher
from app.utils.exceptions import InvalidImageRequestError, UpstreamStatusError
from app.utils.validators import validate_host

logger = logging.getLogger(__name__)

HOST_PARAM = "_nc_ht"
PATH_PARAM = "url"
RESERVED_PARAMS = (HOST_PARAM, PATH_PARAM)

IMAGE_ACCEPT = (
    "text/html,application/xhtml+xml,application/xml;q=0.9,image/avif,image/webp,"
    "image/apng,*/*;q=0.8,application/signed-exchange;v=b3;q=0.9"
)


def escape_image_value(value: str) -> str:
    """Escape a CDN query value; ``=`` first so later escapes are not re-escaped."""
    return value.replace("=", "%3D").replace("+", "%2B").replace("/", "%2F")


def sanitize_image_query(params: Mapping[str, str]) -> str:
    """Build the ``&key=value`` suffix for every non-reserved parameter, in order."""
    return "".join(
        f"&{key}={escape_image_value(value)}"
        for key, value in params.items()
        if key not in RESERVED_PARAMS
    )


def build_image_request(params: Mapping[str, str], config: GatewayConfig) -> UpstreamRequestSpec:
    """
    Derive the CDN request from the caller's query parameters.

    Raises:
        InvalidImageRequestError: If the CDN host or path is missing or unsafe
    """
    host = (params.get(HOST_PARAM) or "").strip()
    path = (params.get(PATH_PARAM) or "").strip()
    if not host:
        raise InvalidImageRequestError(f"Missing '{HOST_PARAM}' parameter")
    if not path:
        raise InvalidImageRequestError(f"Missing '{PATH_PARAM}' parameter")

    validate_host(host)

    return UpstreamRequestSpec(
        host=host,
        path=f"/{path.lstrip('/')}?{sanitize_image_query(params)}",
        protocol=config.upstream_protocol,
        headers={"Accept": IMAGE_ACCEPT},
    )


class ImageFetcher:
    """Fetches CDN images as base64 text."""

    def __init__(self, fetcher: UpstreamFetcher):
        self.fetcher = fetcher

    async def fetch(self, spec: UpstreamRequestSpec) -> str:
        """
        Fetch the image and base64-encode its bytes.

        Raises:
            UpstreamStatusError: If the CDN answers with a non-success status
            RedirectRejectedError: If the CDN redirects to a private or loopback host
            UpstreamError: On transport failures (see UpstreamFetcher.fetch)
        """
        response = await self.fetcher.fetch(spec, validate_redirect=validate_host)
        if not response.is_success:
            raise UpstreamStatusError(
                f"Image CDN returned HTTP {response.status}",
                status=response.status,
                url=response.url,
            )

        mime_type = detect_mime_type(response.body)
        if mime_type is None:
            logger.warning(
                "Image CDN returned unrecognised content",
                extra={"upstream_url": response.url, "content_type": response.header("content-type")},
            )

        return base64.b64encode(response.body).decode("ascii")


def detect_mime_type(content: bytes) -> Optional[str]:
    """
    Detect an image MIME type from magic bytes.

    Args:
        content: File bytes

    Returns:
        MIME type string, or None if the bytes are not a known image format
    """
    if content.startswith(b"\xff\xd8\xff"):
        return "image/jpeg"
    elif content.startswith(b"\x89PNG\r\n\x1a\n"):
        return "image/png"
    elif content.startswith(b"RIFF") and b"WEBP" in content[:12]:
        return "image/webp"
    elif content.startswith((b"GIF87a", b"GIF89a")):
        return "image/gif"
    return None
