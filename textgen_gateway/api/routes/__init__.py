"""
API Routes Package

- generation: /ai/providers, /ai/models, /ai/generate
- health: /health
"""

from textgen_gateway.api.routes.generation import router as generation_router
from textgen_gateway.api.routes.health import router as health_router

__all__ = ["generation_router", "health_router"]
