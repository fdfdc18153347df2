"""
API Dependencies

FastAPI dependency functions for the API layer. Tests replace them through
app.dependency_overrides.
"""

import logging

from fastapi import Request

from textgen_gateway.core.config import Settings, get_settings as _get_settings
from textgen_gateway.providers.registry import ProviderRegistry
from textgen_gateway.services.generation import GenerationService

logger = logging.getLogger(__name__)


def get_settings() -> Settings:
    return _get_settings()


def build_generation_service(settings: Settings) -> GenerationService:
    """
    GenerationService whose registry reads credentials from `settings`.

    The Settings object is fixed for the life of the service; a changed API
    key takes effect when the process restarts.
    """
    return GenerationService(
        registry=ProviderRegistry(settings_factory=lambda: settings)
    )


def get_generation_service(request: Request) -> GenerationService:
    """
    Get the process-wide GenerationService.

    Built by the application lifespan; created on first use when the app
    runs without its lifespan (e.g. a TestClient used outside a `with`).
    """
    service = getattr(request.app.state, "generation_service", None)
    if service is None:
        logger.debug("GenerationService not initialized by lifespan, creating it")
        settings = getattr(request.app.state, "settings", None) or _get_settings()
        service = build_generation_service(settings)
        request.app.state.generation_service = service
    return service
