"""
Providers Package - Model invoker adapters and the provider registry.

One ModelInvoker per backend:
- OpenAIInvoker (openai SDK)
- DeepSeekInvoker (openai SDK against the DeepSeek endpoint)
- GeminiInvoker (httpx against the Generative Language API)
"""

from textgen_gateway.providers.base import ModelInvoker, build_messages
from textgen_gateway.providers.deepseek import DeepSeekInvoker
from textgen_gateway.providers.gemini import GeminiInvoker
from textgen_gateway.providers.openai import OpenAIInvoker
from textgen_gateway.providers.registry import (
    DEFAULT_INVOKER_FACTORIES,
    InvokerFactory,
    ProviderRegistry,
)

__all__ = [
    "ModelInvoker",
    "build_messages",
    "DeepSeekInvoker",
    "GeminiInvoker",
    "OpenAIInvoker",
    "DEFAULT_INVOKER_FACTORIES",
    "InvokerFactory",
    "ProviderRegistry",
]
