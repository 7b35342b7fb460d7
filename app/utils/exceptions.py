"""Custom exception classes."""

from typing import Optional


class GatewayException(Exception):
    """Base exception for the gateway application."""

    status_code: int = 500
    error_message: str = "Internal server error"


class OriginRejectedError(GatewayException):
    """Raised when the caller's origin matches no allow-list pattern."""

    status_code = 403
    error_message = "Access Denied"

    def __init__(self, origin: str):
        super().__init__(f"Invalid origin domain: {origin}")
        self.origin = origin


class ValidationError(GatewayException):
    """Raised when input validation fails."""

    status_code = 400
    error_message = "Validation error"


class InvalidImageRequestError(ValidationError):
    """Raised when an image request lacks the CDN host or path."""

    pass


class UpstreamError(GatewayException):
    """Raised when the upstream cannot produce a usable response."""

    status_code = 502
    error_message = "Upstream request failed"

    def __init__(self, message: str, url: Optional[str] = None):
        super().__init__(message)
        self.url = url


class UpstreamUnreachableError(UpstreamError):
    """Raised on connection-level failures talking to the upstream."""

    error_message = "Upstream unreachable"


class UpstreamTimeoutError(UpstreamError):
    """Raised when a hop or the whole request exceeds its time budget."""

    status_code = 504
    error_message = "Upstream timeout"


class TooManyRedirectsError(UpstreamError):
    """Raised when the redirect chase exceeds the configured bound."""

    error_message = "Too many redirects"


class UpstreamStatusError(UpstreamError):
    """Raised when a terminal upstream response has a non-success status."""

    error_message = "Upstream returned an error status"

    def __init__(self, message: str, status: int, url: Optional[str] = None):
        super().__init__(message, url=url)
        self.status = status


class MalformedUpstreamPayloadError(UpstreamError):
    """Raised when the upstream body cannot be parsed as JSON."""

    error_message = "Malformed upstream payload"


class RedirectRejectedError(UpstreamError):
    """Raised when an upstream redirect points at a host the caller may not reach."""

    error_message = "Upstream redirect rejected"
