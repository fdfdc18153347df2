"""
Gemini Provider - Google Generative AI Adapter

This module implements the Google Gemini invoker over the Generative
Language REST API using httpx.

Design Patterns:
- Ports and Adapters: GeminiInvoker implements ModelInvoker
- Adapter: Transforms prompt/system parameters to Gemini format

Reference:
- Google Generative AI API Docs: https://ai.google.dev/api
"""

import json
import logging
from collections.abc import AsyncIterator
from typing import Any, Optional

import httpx

from textgen_gateway.core.exceptions import UpstreamError
from textgen_gateway.models.responses import Completion, Usage
from textgen_gateway.providers.base import ModelInvoker

logger = logging.getLogger(__name__)

GEMINI_API_BASE = "https://generativelanguage.googleapis.com/v1beta"
DEFAULT_TIMEOUT_SECONDS = 120.0

FINISH_REASONS = {
    "STOP": "stop",
    "MAX_TOKENS": "length",
    "SAFETY": "content_filter",
    "RECITATION": "content_filter",
    "OTHER": "stop",
}


class GeminiInvoker(ModelInvoker):
    """
    Google Gemini invoker.

    Args:
        api_key: Google AI Studio API key.
        model: Model id the invoker is bound to.
        api_base: Base URL for the Gemini API.
        timeout: HTTP timeout in seconds for every request.
        transport: Optional httpx transport (tests use httpx.MockTransport).

    Example:
        >>> async with GeminiInvoker(api_key="AIza...", model="gemini-2.5-flash") as invoker:
        ...     completion = await invoker.complete(prompt="hi")
    """

    provider = "gemini"

    def __init__(
        self,
        api_key: str,
        model: str,
        api_base: str = GEMINI_API_BASE,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        super().__init__(api_key, model)
        self._api_base = api_base.rstrip("/")
        # Key goes in a header so it never shows up in logged URLs
        self._client = httpx.AsyncClient(
            timeout=timeout,
            transport=transport,
            headers={"x-goog-api-key": api_key},
        )

    # =========================================================================
    # complete() method
    # =========================================================================

    async def complete(self, **params: Any) -> Completion:
        """
        Generate a response (non-streaming).

        Raises:
            UpstreamError: On non-200 responses.
            httpx.HTTPError: On transport failures and timeouts.
        """
        payload = self._build_request_payload(**params)
        url = f"{self._api_base}/models/{self._model}:generateContent"

        response = await self._client.post(url, json=payload)
        if response.status_code != 200:
            raise self._error_from_response(response.status_code, response.text)

        return self._transform_response(response.json())

    # =========================================================================
    # stream() method
    # =========================================================================

    async def stream(self, **params: Any) -> AsyncIterator[str]:
        """
        Stream a response over SSE, yielding text fragments.

        The HTTP response is closed when this generator finishes or is
        closed by the consumer.
        """
        payload = self._build_request_payload(**params)
        url = f"{self._api_base}/models/{self._model}:streamGenerateContent"

        async with self._client.stream(
            "POST", url, params={"alt": "sse"}, json=payload
        ) as response:
            if response.status_code != 200:
                error_text = await response.aread()
                raise self._error_from_response(
                    response.status_code, error_text.decode("utf-8", "replace")
                )

            async for line in response.aiter_lines():
                text = self._process_stream_line(line)
                if text:
                    yield text

    async def aclose(self) -> None:
        await self._client.aclose()

    # =========================================================================
    # Helper Methods
    # =========================================================================

    def _build_request_payload(
        self,
        prompt: str = "",
        system: Optional[str] = None,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
    ) -> dict[str, Any]:
        """Build the Gemini payload, leaving out every parameter that is not set."""
        payload: dict[str, Any] = {}

        if prompt:
            payload["contents"] = [{"role": "user", "parts": [{"text": prompt}]}]
            if system:
                payload["systemInstruction"] = {"parts": [{"text": system}]}
        else:
            # contents must not be empty; a system-only request becomes the user turn
            payload["contents"] = [{"role": "user", "parts": [{"text": system or ""}]}]

        gen_config: dict[str, Any] = {}
        if temperature is not None:
            gen_config["temperature"] = temperature
        if max_tokens is not None:
            gen_config["maxOutputTokens"] = max_tokens
        if gen_config:
            payload["generationConfig"] = gen_config

        return payload

    @staticmethod
    def _extract_text(data: dict[str, Any]) -> str:
        """Concatenate the text parts of the first candidate."""
        candidates = data.get("candidates") or []
        if not candidates:
            return ""
        parts = (candidates[0].get("content") or {}).get("parts") or []
        return "".join(part.get("text", "") for part in parts if "text" in part)

    def _transform_response(self, data: dict[str, Any]) -> Completion:
        """Transform a generateContent response into a Completion."""
        candidates = data.get("candidates") or []
        finish_reason = None
        if candidates and candidates[0].get("finishReason"):
            gemini_reason = candidates[0]["finishReason"]
            finish_reason = FINISH_REASONS.get(gemini_reason, gemini_reason.lower())

        usage = None
        usage_metadata = data.get("usageMetadata")
        if usage_metadata:
            usage = Usage(
                prompt_tokens=usage_metadata.get("promptTokenCount", 0),
                completion_tokens=usage_metadata.get("candidatesTokenCount", 0),
                total_tokens=usage_metadata.get("totalTokenCount", 0),
            )

        return Completion(
            text=self._extract_text(data),
            finish_reason=finish_reason,
            usage=usage,
        )

    def _process_stream_line(self, line: str) -> str:
        """Return the text carried by one SSE line ("" to skip)."""
        if not line.startswith("data:"):
            return ""

        data_str = line[5:].strip()
        if not data_str:
            return ""

        try:
            chunk_data = json.loads(data_str)
        except json.JSONDecodeError:
            logger.warning("Failed to parse Gemini stream chunk: %s", data_str[:100])
            return ""

        # Errors can arrive inside an otherwise healthy 200 stream
        if isinstance(chunk_data, dict) and "error" in chunk_data:
            raise self._error_from_body(chunk_data)

        return self._extract_text(chunk_data)

    def _error_from_response(self, status_code: int, error_text: str) -> UpstreamError:
        try:
            body = json.loads(error_text)
        except json.JSONDecodeError:
            return UpstreamError(
                error_text or f"HTTP {status_code}",
                provider=self.provider,
                status_code=status_code,
            )
        return self._error_from_body(body, status_code)

    def _error_from_body(
        self, body: Any, status_code: Optional[int] = None
    ) -> UpstreamError:
        error = body.get("error") if isinstance(body, dict) else None
        message = ""
        if isinstance(error, dict):
            message = error.get("message") or ""
            if status_code is None and isinstance(error.get("code"), int):
                status_code = error["code"]
        return UpstreamError(
            message or json.dumps(body),
            provider=self.provider,
            status_code=status_code,
            body=body,
        )
