"""
Response Models

This module contains Pydantic models for generation results and the
stream fragments emitted while streaming.

Stream wire shape (consumed by existing clients, must not change):
    {"content": "..."}   one content fragment
    [DONE]               terminal sentinel of a successful stream
    {"error": "..."}     terminal error of a failed stream
"""

import json
from typing import Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

DONE_MARKER = "[DONE]"


# =============================================================================
# Usage Model
# =============================================================================


class Usage(BaseModel):
    """
    Token usage statistics.

    Attributes:
        prompt_tokens: Number of tokens in the prompt
        completion_tokens: Number of tokens in the completion
        total_tokens: Total tokens used
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    prompt_tokens: int = Field(default=0, description="Tokens in prompt")
    completion_tokens: int = Field(default=0, description="Tokens in completion")
    total_tokens: int = Field(default=0, description="Total tokens")


# =============================================================================
# Completion - what a model invoker returns
# =============================================================================


class Completion(BaseModel):
    """Provider-neutral result of one non-streaming invocation."""

    text: str = ""
    finish_reason: Optional[str] = None
    usage: Optional[Usage] = None


# =============================================================================
# GenerationResult
# =============================================================================


class GenerationResult(BaseModel):
    """
    Result of a non-streaming generation.

    Attributes:
        provider: Provider that served the request
        model: Model used
        text: Generated text
        finish_reason: Why generation stopped
        usage: Token usage statistics
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    provider: str = Field(..., description="Provider id")
    model: str = Field(..., description="Model used")
    text: str = Field(..., description="Generated text")
    finish_reason: Optional[str] = Field(default=None, description="Stop reason")
    usage: Optional[Usage] = Field(default=None, description="Token usage")


# =============================================================================
# Streaming Fragments
# =============================================================================


def _compact_json(payload: dict[str, str]) -> str:
    # Same bytes as JavaScript JSON.stringify: no spaces, UTF-8 kept as-is.
    return json.dumps(payload, ensure_ascii=False, separators=(",", ":"))


class ContentFragment(BaseModel):
    """One incremental piece of generated text."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["content"] = "content"
    content: str

    def to_data(self) -> str:
        return _compact_json({"content": self.content})


class DoneFragment(BaseModel):
    """Terminal sentinel of a successful stream."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["done"] = "done"

    def to_data(self) -> str:
        return DONE_MARKER


class ErrorFragment(BaseModel):
    """Terminal error of a failed stream."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["error"] = "error"
    error: str

    def to_data(self) -> str:
        return _compact_json({"error": self.error})


StreamFragment = Union[ContentFragment, DoneFragment, ErrorFragment]
