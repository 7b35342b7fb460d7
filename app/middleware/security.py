"""Security headers and compression middleware."""

from fastapi.middleware.gzip import GZipMiddleware
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

# Upstream pass-through headers (x-frame-options, x-content-type-options) take precedence.
DEFAULT_SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Strict-Transport-Security": "max-age=31536000; includeSubDomains",
    "Referrer-Policy": "strict-origin-when-cross-origin",
}


def setup_compression(app: ASGIApp) -> None:
    """Setup GZip compression middleware."""
    app.add_middleware(GZipMiddleware, minimum_size=1000)


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Middleware to add security headers the route did not set."""

    async def dispatch(self, request, call_next):
        response = await call_next(request)

        for name, value in DEFAULT_SECURITY_HEADERS.items():
            if name not in response.headers:
                response.headers[name] = value

        return response
