"""
Provider Base Interface - Abstract Model Invoker

This module defines the abstract base class for all provider adapters.
A ModelInvoker is bound to one resolved credential and one model id. It is
created per request, used for a single generation call and then closed;
invokers are never pooled or shared between requests.

Design Pattern:
- Ports and Adapters (Hexagonal Architecture)
- ModelInvoker serves as the "port" (interface)
- Concrete invokers (openai.py, deepseek.py, gemini.py) serve as "adapters"
"""

from abc import ABC, abstractmethod
from collections.abc import AsyncIterator
from typing import Any, Optional

from textgen_gateway.models.responses import Completion


class ModelInvoker(ABC):
    """
    Abstract base class for provider adapters.

    Call parameters are passed as keyword arguments and only contain the
    fields the caller actually set:
        prompt (str), system (str), temperature (float), max_tokens (int)

    Invokers are async context managers; leaving the context releases the
    underlying HTTP client.

    Example:
        >>> async with OpenAIInvoker(api_key="sk-...", model="gpt-4o") as invoker:
        ...     completion = await invoker.complete(prompt="hi")
    """

    provider: str = ""

    def __init__(self, api_key: str, model: str) -> None:
        self._api_key = api_key
        self._model = model

    @property
    def model(self) -> str:
        """Model id this invoker is bound to."""
        return self._model

    @abstractmethod
    async def complete(self, **params: Any) -> Completion:
        """
        Generate a complete response (non-streaming).

        Raises:
            Exception: The provider's raw error, unmodified. Classification
                happens in the executor, not in adapters.
        """
        ...

    @abstractmethod
    def stream(self, **params: Any) -> AsyncIterator[str]:
        """
        Generate a streaming response.

        Returns an async iterator yielding non-empty text fragments in the
        order the provider produced them. Closing the iterator (aclose)
        must release the upstream connection.
        """
        ...

    @abstractmethod
    async def aclose(self) -> None:
        """Release the underlying client."""
        ...

    async def __aenter__(self) -> "ModelInvoker":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()


def build_messages(prompt: str = "", system: Optional[str] = None) -> list[dict[str, str]]:
    """
    Build an OpenAI-style message list from prompt and system text.

    Empty parts are left out; at least one of them is present after
    normalization.
    """
    messages: list[dict[str, str]] = []
    if system:
        messages.append({"role": "system", "content": system})
    if prompt:
        messages.append({"role": "user", "content": prompt})
    return messages
