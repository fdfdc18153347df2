"""
Health Router

GET /health reports service status and, per provider, whether its API key
is configured. Key values are never returned.
"""

import logging

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from textgen_gateway import __version__
from textgen_gateway.api.deps import get_generation_service
from textgen_gateway.models.catalog import PROVIDER_DESCRIPTORS
from textgen_gateway.services.generation import GenerationService

logger = logging.getLogger(__name__)


class HealthResponse(BaseModel):
    """Health check response model."""

    status: str
    version: str
    providers: dict[str, bool]


router = APIRouter(tags=["Health"])


@router.get("/health", response_model=HealthResponse)
async def health_check(
    service: GenerationService = Depends(get_generation_service),
) -> HealthResponse:
    """
    Health check endpoint.

    The service is healthy without any provider configured; requests to
    an unconfigured provider fail with an INTERNAL error naming the key.
    """
    credentials = service.registry.credentials
    providers = {
        provider_id.value: credentials.is_configured(provider_id)
        for provider_id in PROVIDER_DESCRIPTORS
    }
    if not any(providers.values()):
        logger.warning("No provider API key is configured")
    return HealthResponse(status="healthy", version=__version__, providers=providers)
