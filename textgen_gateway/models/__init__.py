"""
Models Package - Catalog, request and response models.
"""

from textgen_gateway.models.catalog import (
    PROVIDER_DESCRIPTORS,
    ModelInfo,
    ProviderDescriptor,
    ProviderId,
)
from textgen_gateway.models.requests import CanonicalRequest, GenerationRequest
from textgen_gateway.models.responses import (
    DONE_MARKER,
    Completion,
    ContentFragment,
    DoneFragment,
    ErrorFragment,
    GenerationResult,
    StreamFragment,
    Usage,
)

__all__ = [
    # Catalog
    "PROVIDER_DESCRIPTORS",
    "ModelInfo",
    "ProviderDescriptor",
    "ProviderId",
    # Requests
    "CanonicalRequest",
    "GenerationRequest",
    # Responses
    "DONE_MARKER",
    "Completion",
    "ContentFragment",
    "DoneFragment",
    "ErrorFragment",
    "GenerationResult",
    "StreamFragment",
    "Usage",
]
