"""
DeepSeek Provider - DeepSeek Adapter

DeepSeek's API is OpenAI-compatible, so the invoker is the OpenAI one
pointed at the DeepSeek endpoint.

Reference:
- https://api-docs.deepseek.com/
"""

from typing import Any

from textgen_gateway.providers.openai import DEFAULT_TIMEOUT_SECONDS, OpenAIInvoker

DEEPSEEK_BASE_URL = "https://api.deepseek.com"


class DeepSeekInvoker(OpenAIInvoker):
    """
    DeepSeek invoker.

    Args:
        api_key: DeepSeek API key.
        model: Model id the invoker is bound to.
        base_url: DeepSeek endpoint (default: https://api.deepseek.com).
        timeout: HTTP timeout in seconds for every request.
    """

    provider = "deepseek"

    def __init__(
        self,
        api_key: str,
        model: str,
        base_url: str = DEEPSEEK_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
    ) -> None:
        super().__init__(api_key, model, base_url=base_url, timeout=timeout)

    def _message_text(self, message: Any) -> str:
        # Reasoning models may leave content empty and fill reasoning_content
        content = message.content or ""
        if not content:
            content = getattr(message, "reasoning_content", None) or ""
        return content
