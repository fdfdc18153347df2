"""
OpenAI Provider - OpenAI GPT Adapter

This module implements the OpenAI invoker on top of the official SDK.
DeepSeek reuses it (deepseek.py) since its API is OpenAI-compatible.

Design Patterns:
- Ports and Adapters: OpenAIInvoker implements ModelInvoker
- Adapter Pattern: Transforms OpenAI SDK responses to our response models

SDK retries are disabled (max_retries=0); a failed generation is surfaced,
never repeated.
"""

from collections.abc import AsyncIterator
from typing import Any, Optional

from openai import AsyncOpenAI

from textgen_gateway.models.responses import Completion, Usage
from textgen_gateway.providers.base import ModelInvoker, build_messages

DEFAULT_TIMEOUT_SECONDS = 120.0


class OpenAIInvoker(ModelInvoker):
    """
    OpenAI chat-completions invoker.

    Args:
        api_key: OpenAI API key.
        model: Model id the invoker is bound to.
        base_url: Optional custom endpoint URL (for Azure OpenAI or proxies).
        timeout: HTTP timeout in seconds for every request.

    Example:
        >>> invoker = OpenAIInvoker(api_key="sk-...", model="gpt-4o")
        >>> completion = await invoker.complete(prompt="hi")
        >>> print(completion.text)
    """

    provider = "openai"

    def __init__(
        self,
        api_key: str,
        model: str,
        base_url: Optional[str] = None,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
    ) -> None:
        super().__init__(api_key, model)
        self._base_url = base_url

        client_kwargs: dict[str, Any] = {
            "api_key": api_key,
            "timeout": timeout,
            "max_retries": 0,
        }
        if base_url:
            client_kwargs["base_url"] = base_url
        self._client = AsyncOpenAI(**client_kwargs)

    # =========================================================================
    # complete() method
    # =========================================================================

    async def complete(self, **params: Any) -> Completion:
        """
        Generate a chat completion (non-streaming).

        Raises:
            openai.APIError: Raw SDK errors, classified by the caller.
        """
        kwargs = self._build_request_kwargs(**params)
        response = await self._client.chat.completions.create(**kwargs)
        return self._transform_response(response)

    # =========================================================================
    # stream() method
    # =========================================================================

    async def stream(self, **params: Any) -> AsyncIterator[str]:
        """
        Stream a chat completion, yielding text deltas.

        The SDK stream is closed in all cases (completion, error, or the
        consumer closing this generator), which releases the connection.
        """
        kwargs = self._build_request_kwargs(**params)
        kwargs["stream"] = True

        stream = await self._client.chat.completions.create(**kwargs)
        try:
            async for chunk in stream:
                text = self._chunk_text(chunk)
                if text:
                    yield text
        finally:
            await stream.close()

    async def aclose(self) -> None:
        await self._client.close()

    # =========================================================================
    # Helper Methods
    # =========================================================================

    def _build_request_kwargs(
        self,
        prompt: str = "",
        system: Optional[str] = None,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
    ) -> dict[str, Any]:
        """Build SDK kwargs, leaving out every parameter that is not set."""
        kwargs: dict[str, Any] = {
            "model": self._model,
            "messages": build_messages(prompt, system),
        }
        if temperature is not None:
            kwargs["temperature"] = temperature
        if max_tokens is not None:
            kwargs["max_tokens"] = max_tokens
        return kwargs

    def _message_text(self, message: Any) -> str:
        return message.content or ""

    def _transform_response(self, response: Any) -> Completion:
        """Transform an SDK ChatCompletion into a Completion."""
        text = ""
        finish_reason = None
        if response.choices:
            choice = response.choices[0]
            text = self._message_text(choice.message)
            finish_reason = choice.finish_reason

        usage = None
        if response.usage is not None:
            usage = Usage(
                prompt_tokens=response.usage.prompt_tokens or 0,
                completion_tokens=response.usage.completion_tokens or 0,
                total_tokens=response.usage.total_tokens or 0,
            )

        return Completion(text=text, finish_reason=finish_reason, usage=usage)

    @staticmethod
    def _chunk_text(chunk: Any) -> str:
        if not chunk.choices:
            return ""
        delta = chunk.choices[0].delta
        return getattr(delta, "content", None) or ""
