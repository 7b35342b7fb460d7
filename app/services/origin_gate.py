"""Cross-origin gatekeeping against the configured allow-list."""

import logging
import re
from typing import Iterable, List, Optional, Pattern, Tuple

from app.utils.exceptions import OriginRejectedError

logger = logging.getLogger(__name__)


def _compile(pattern: str) -> Pattern[str]:
    try:
        return re.compile(pattern)
    except re.error:
        logger.warning(f"Origin pattern is not a valid regex, matching literally: {pattern}")
        return re.compile(re.escape(pattern))


class OriginGate:
    """Decides whether a caller's declared origin may use the gateway."""

    def __init__(self, allowed_origins: Iterable[str]):
        self._patterns: List[Tuple[str, Pattern[str]]] = [
            (pattern, _compile(pattern)) for pattern in allowed_origins
        ]

    def match(self, origin: str) -> Optional[str]:
        """Return the first allow-list pattern found in ``origin``, if any."""
        for pattern, compiled in self._patterns:
            if compiled.search(origin):
                return pattern
        return None

    def check(self, origin: Optional[str]) -> Optional[str]:
        """
        Validate the caller's origin.

        Requests without an origin (direct, non-browser access) always pass.

        Args:
            origin: Value of the Origin header, if present

        Returns:
            The validated origin, or None when no origin was declared

        Raises:
            OriginRejectedError: If the origin matches no allow-list pattern
        """
        if not origin:
            return None

        allowed = self.match(origin)
        if allowed is None:
            logger.warning("Rejected origin", extra={"origin": origin})
            raise OriginRejectedError(origin)

        logger.info(f"Allowed origin: {allowed}", extra={"origin": origin})
        return origin
