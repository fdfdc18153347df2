"""
Request Models

This module contains Pydantic models for generation requests.

GenerationRequest is the inbound shape: pydantic only checks types here,
semantic rules (known provider, model ownership, ranges) are applied by the
parameter normalizer, which produces a CanonicalRequest.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from textgen_gateway.models.catalog import ProviderId


# =============================================================================
# GenerationRequest
# =============================================================================


class GenerationRequest(BaseModel):
    """
    Text generation request as received from a client.

    Wire field names follow the public API (camelCase); Python attributes
    are snake_case and may be used when constructing the model directly.

    Attributes:
        provider: Provider identifier ("openai", "deepseek", "gemini")
        model: Model identifier owned by the provider
        prompt: Main user input
        system: System prompt defining model identity or style
        temperature: Sampling temperature, clamped into [0, 2]
        max_tokens: Output token limit, coerced to a positive integer
        stream: Whether to stream the response as Server-Sent Events
    """

    model_config = ConfigDict(populate_by_name=True)

    provider: str = Field(..., description="Model provider", examples=["openai"])
    model: str = Field(..., description="Model identifier", examples=["gpt-4o"])
    prompt: Optional[str] = Field(default=None, description="User prompt")
    system: Optional[str] = Field(default=None, description="System prompt")
    temperature: Optional[float] = Field(
        default=None, description="Sampling temperature (0-2)"
    )
    max_tokens: Optional[float] = Field(
        default=None,
        alias="maxTokens",
        description="Maximum tokens to generate (1-1000000)",
    )
    stream: bool = Field(default=False, description="Enable SSE streaming")


# =============================================================================
# CanonicalRequest
# =============================================================================


class CanonicalRequest(BaseModel):
    """
    Validated, normalized generation request.

    Produced only by the parameter normalizer. Strings are trimmed, an
    all-whitespace system prompt is dropped, numeric fields are coerced.
    """

    model_config = ConfigDict(frozen=True)

    provider: ProviderId
    model: str
    prompt: str = ""
    system: Optional[str] = None
    temperature: Optional[float] = None
    max_tokens: Optional[int] = None
    stream: bool = False
