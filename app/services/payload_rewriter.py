"""Rewriting of image URLs embedded in upstream JSON payloads."""

import json
import logging
import re
from typing import Match, Optional
from urllib.parse import urlsplit, urlunsplit

logger = logging.getLogger(__name__)

# A JSON string literal, escape sequences included.
_STRING_LITERAL = re.compile(r'"(?:[^"\\]|\\.)*"', re.DOTALL)

IMAGE_SUFFIX = ".jpg"


class PayloadRewriter:
    """
    Routes ``.jpg`` URLs found in a JSON body back through the gateway's image path.

    Only string literals are considered, so escaped quotes inside values are
    safe, and every literal that is not rewritten keeps its exact text.
    """

    def __init__(self, host: str, base_path: str = "", image_path: str = "/img", protocol: str = "http"):
        self.host = host
        self.base_path = base_path
        self.image_path = image_path
        self.protocol = protocol

    def rewrite(self, body: str) -> str:
        """Return ``body`` with every embedded image URL rewritten."""
        return _STRING_LITERAL.sub(self._rewrite_literal, body)

    def _rewrite_literal(self, match: Match[str]) -> str:
        literal = match.group(0)
        if IMAGE_SUFFIX not in literal or not literal.startswith('"http'):
            return literal

        try:
            value = json.loads(literal)
        except ValueError:
            return literal

        rewritten = self.rewrite_url(value)
        if rewritten is None:
            return literal
        return json.dumps(rewritten, ensure_ascii=False)

    def rewrite_url(self, value: str) -> Optional[str]:
        """
        Rewrite a single absolute image URL.

        The original path and query are carried in the ``url`` parameter with
        ``/`` escaped as ``%2F`` and ``?`` turned into ``&``, so the original
        query parameters become parameters of the gateway URL.

        Returns:
            The gateway URL, or None when ``value`` is not an image URL
        """
        if not value.startswith(("http://", "https://")):
            return None

        try:
            parts = urlsplit(value)
            _ = parts.port  # raises on a malformed port
        except ValueError:
            logger.debug(f"Skipping unparseable URL: {value[:200]}")
            return None

        if not parts.netloc or not parts.path.endswith(IMAGE_SUFFIX):
            return None

        original = parts.path
        if parts.query:
            original = f"{original}?{parts.query}"
        query = "url=" + original.replace("/", "%2F").replace("?", "&")

        return urlunsplit((self.protocol, self.host, f"{self.base_path}{self.image_path}", query, ""))
