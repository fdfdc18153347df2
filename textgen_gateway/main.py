"""
Text Generation Gateway - Main Application Entry Point

FastAPI application exposing the generation core over HTTP:
/ai/providers, /ai/models, /ai/generate (JSON or SSE), /health, /metrics.

Run with:
    uvicorn textgen_gateway.main:app --host 0.0.0.0 --port 8080
"""

from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from textgen_gateway import __version__
from textgen_gateway.api.deps import build_generation_service
from textgen_gateway.api.middleware.logging import RequestLoggingMiddleware
from textgen_gateway.api.routes.generation import router as generation_router
from textgen_gateway.api.routes.health import router as health_router
from textgen_gateway.core.config import Settings, get_settings
from textgen_gateway.core.exceptions import ClassifiedError, ErrorCategory
from textgen_gateway.observability.logging import configure_logging, get_logger
from textgen_gateway.observability.metrics import MetricsMiddleware, get_metrics_app

APP_NAME = "Text Generation Gateway"
APP_DESCRIPTION = "Unified text generation over OpenAI, DeepSeek and Google Gemini"

logger = get_logger(__name__)


# =============================================================================
# Exception Handlers
# =============================================================================


async def classified_error_handler(request: Request, exc: ClassifiedError) -> JSONResponse:
    """Render a ClassifiedError as {statusCode, error, category, message, ...}."""
    headers = {}
    if exc.category is ErrorCategory.RATE_LIMITED and exc.retry_after_seconds:
        headers["Retry-After"] = str(exc.retry_after_seconds)

    logger.warning(
        "request_failed",
        path=request.url.path,
        category=exc.category.value,
        provider=exc.provider,
        status=exc.http_status,
    )
    return JSONResponse(status_code=exc.http_status, content=exc.to_dict(), headers=headers)


# =============================================================================
# Lifespan
# =============================================================================


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Configure logging and build the GenerationService on startup."""
    settings: Settings = app.state.settings
    configure_logging(level=settings.log_level)

    if getattr(app.state, "generation_service", None) is None:
        app.state.generation_service = build_generation_service(settings)

    logger.info(
        "service_starting",
        service=settings.service_name,
        version=__version__,
        environment=settings.environment,
    )

    yield

    logger.info("service_stopping", service=settings.service_name)


# =============================================================================
# Application Factory
# =============================================================================


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        settings: Settings to use (default: get_settings()).
    """
    settings = settings or get_settings()
    docs_enabled = settings.environment != "production"

    app = FastAPI(
        title=APP_NAME,
        description=APP_DESCRIPTION,
        version=__version__,
        docs_url="/docs" if docs_enabled else None,
        redoc_url="/redoc" if docs_enabled else None,
        lifespan=lifespan,
    )
    app.state.settings = settings

    app.add_exception_handler(ClassifiedError, classified_error_handler)

    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.get_cors_origins(),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(MetricsMiddleware)

    app.include_router(health_router)
    app.include_router(generation_router)
    app.mount("/metrics", get_metrics_app())

    @app.get("/", tags=["Info"])
    async def root() -> dict[str, Any]:
        """Basic service information."""
        return {
            "service": APP_NAME,
            "version": __version__,
            "docs": "/docs" if docs_enabled else "disabled",
        }

    return app


app = create_app()
