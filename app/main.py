"""FastAPI application entry point."""

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from app.api.routes import gateway, health
from app.config import settings
from app.core.request_id import get_request_id
from app.middleware.logging import RequestLoggingMiddleware
from app.middleware.security import SecurityHeadersMiddleware, setup_compression
from app.services.response_assembler import ORIGIN_DENIED_BODY
from app.utils.exceptions import GatewayException, OriginRejectedError
from app.utils.logging_config import setup_logging

# Setup logging
setup_logging(settings.log_level)
logger = logging.getLogger(__name__)

# Create FastAPI app
app = FastAPI(
    title="IG Gateway",
    description="Cross-origin gateway for upstream query and image CDN endpoints",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Handle request validation errors with detailed messages."""
    request_id = get_request_id()

    logger.warning(
        f"Validation error: {str(exc)}",
        extra={
            "request_id": request_id,
            "path": request.url.path,
            "method": request.method,
            "errors": exc.errors(),
        },
    )

    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "error": "Validation error",
            "detail": exc.errors(),
            "request_id": request_id,
        },
    )


# The pipeline returns its failures as responses; this covers anything raised outside it.
@app.exception_handler(GatewayException)
async def gateway_exception_handler(request: Request, exc: GatewayException) -> JSONResponse:
    """Handle custom gateway exceptions."""
    request_id = get_request_id()

    if isinstance(exc, OriginRejectedError):
        return JSONResponse(status_code=status.HTTP_403_FORBIDDEN, content=ORIGIN_DENIED_BODY)

    logger.error(
        f"Exception: {exc.error_message}",
        extra={"request_id": request_id, "exception": str(exc)},
        exc_info=True,
    )

    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": exc.error_message,
            "detail": str(exc),
            "request_id": request_id,
        },
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions."""
    request_id = get_request_id()

    logger.error(
        f"Unexpected exception: {str(exc)}",
        extra={"request_id": request_id},
        exc_info=True,
    )

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": "Internal server error",
            "detail": "An unexpected error occurred",
            "request_id": request_id,
        },
    )


# Add middleware (order matters!)
app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(RequestLoggingMiddleware)
setup_compression(app)

def include_gateway_routes(application: FastAPI, prefixes) -> None:
    """Serve the gateway routes at the root and under every link prefix."""
    application.include_router(gateway.router)
    for prefix in prefixes:
        application.include_router(gateway.router, prefix=prefix, include_in_schema=False)


# Include routers
app.include_router(health.router)
include_gateway_routes(app, settings.gateway_route_prefixes)


@app.on_event("startup")
async def startup_event():
    """Application startup event."""
    logger.info("IG Gateway starting up...")
    logger.info(f"Log level: {settings.log_level}")
    logger.info(f"Upstream: {settings.ig_protocol}://{settings.ig_host_domain}{settings.ig_search_path}")
    if not settings.verify_upstream_tls:
        logger.warning("Upstream TLS certificate validation is disabled")


@app.on_event("shutdown")
async def shutdown_event():
    """Application shutdown event."""
    logger.info("IG Gateway shutting down...")


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "name": "IG Gateway",
        "version": "1.0.0",
        "docs": "/docs",
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host=settings.host, port=settings.port)
