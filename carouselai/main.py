"""
CarouselAI API - Main application entry point.
"""
import time
from contextlib import asynccontextmanager
from typing import Any, Dict

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from structlog.contextvars import bind_contextvars, clear_contextvars

from carouselai.api.v1.router import api_router
from carouselai.core.config import settings
from carouselai.core.dependencies import get_workspace
from carouselai.core.exceptions import CarouselAIException
from carouselai.core.logging import get_logger, log_request_details, setup_logging
from carouselai.services.export.playwright_renderer import PlaywrightRenderer

# Setup logging
setup_logging()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.
    """
    # Startup
    logger.info(
        "Starting CarouselAI API",
        version=settings.APP_VERSION,
        environment=settings.ENVIRONMENT,
    )

    renderer = None
    if settings.RENDERER_URL:
        renderer = PlaywrightRenderer(settings=settings)
        await renderer.start()
        get_workspace().renderer = renderer

    yield

    # Shutdown
    logger.info("Shutting down CarouselAI API")
    if renderer is not None:
        await renderer.close()


# Create FastAPI application
app = FastAPI(
    title=settings.PROJECT_NAME,
    version=settings.APP_VERSION,
    openapi_url=f"{settings.API_V1_PREFIX}/openapi.json" if not settings.is_production else None,
    docs_url=f"{settings.API_V1_PREFIX}/docs" if not settings.is_production else None,
    redoc_url=f"{settings.API_V1_PREFIX}/redoc" if not settings.is_production else None,
    lifespan=lifespan,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.BACKEND_CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Add request ID middleware
@app.middleware("http")
async def add_request_id(request: Request, call_next):
    """Add unique request ID to each request."""
    request_id = request.headers.get("X-Request-ID", str(time.time_ns()))

    # Bind request ID to logging context
    clear_contextvars()
    bind_contextvars(request_id=request_id)

    response = await call_next(request)
    response.headers["X-Request-ID"] = request_id
    return response


# Add request logging middleware
@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log all requests with timing information."""
    start_time = time.time()

    logger.info(
        "Request started",
        **log_request_details(
            request_id=request.headers.get("X-Request-ID", ""),
            method=request.method,
            path=request.url.path,
            client_ip=request.client.host if request.client else None,
        ),
    )

    response = await call_next(request)

    duration_ms = (time.time() - start_time) * 1000
    logger.info(
        "Request completed",
        status_code=response.status_code,
        duration_ms=round(duration_ms, 2),
    )

    return response


@app.exception_handler(CarouselAIException)
async def carouselai_exception_handler(request: Request, exc: CarouselAIException):
    """Map domain errors onto their HTTP status."""
    log = logger.warning if exc.status_code < 500 else logger.error
    log(
        "Request failed",
        error_type=type(exc).__name__,
        error=exc.message,
        status_code=exc.status_code,
        path=request.url.path,
    )
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, **exc.details},
    )


# Global exception handler
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Handle all unhandled exceptions."""
    logger.error(
        "Unhandled exception",
        exc_info=exc,
        path=request.url.path,
        method=request.method,
    )

    # Don't expose internal errors in production
    if settings.is_production:
        return JSONResponse(
            status_code=500,
            content={"detail": "An internal error occurred"},
        )

    return JSONResponse(
        status_code=500,
        content={"detail": str(exc)},
    )


# Include API router
app.include_router(api_router, prefix=settings.API_V1_PREFIX)


# Root endpoint
@app.get("/")
async def root() -> Dict[str, Any]:
    """
    Root endpoint.

    Returns:
        API information
    """
    return {
        "name": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "docs": f"{settings.API_V1_PREFIX}/docs" if not settings.is_production else "Disabled in production",
    }
