"""
Generation Service - entry point of the gateway core.

Flow for every request:
    normalize -> registry.create_invoker -> execute (sync) or StreamExecutor
    -> on failure, ErrorClassifier -> ClassifiedError

Validation and credential errors surface before any upstream call, so a
streaming request that is rejected fails with an HTTP error instead of an
in-band error fragment.

No retries: a failed generation is reported, never repeated.
"""

import time
from typing import Any, Optional, Union

from textgen_gateway.models.catalog import ProviderId
from textgen_gateway.models.requests import CanonicalRequest, GenerationRequest
from textgen_gateway.models.responses import GenerationResult
from textgen_gateway.observability.logging import get_logger
from textgen_gateway.observability.metrics import record_generation, record_token_usage
from textgen_gateway.providers.base import ModelInvoker
from textgen_gateway.providers.registry import ProviderRegistry
from textgen_gateway.services.classifier import ErrorClassifier
from textgen_gateway.services.normalizer import normalize
from textgen_gateway.services.streaming import StreamExecutor

logger = get_logger(__name__)

AnyRequest = Union[GenerationRequest, CanonicalRequest]


def build_call_params(request: CanonicalRequest) -> dict[str, Any]:
    """
    Build invoker parameters containing only the fields that are set.

    Absent optional fields are left out, never passed as None.
    """
    params: dict[str, Any] = {}
    if request.prompt:
        params["prompt"] = request.prompt
    if request.system:
        params["system"] = request.system
    if request.temperature is not None:
        params["temperature"] = request.temperature
    if request.max_tokens is not None:
        params["max_tokens"] = request.max_tokens
    return params


class GenerationService:
    """
    Unified text generation over the supported providers.

    Args:
        registry: Provider registry (default: built from get_settings()).
        classifier: Error classifier (default: ErrorClassifier()).

    Example:
        >>> service = GenerationService()
        >>> result = await service.generate(
        ...     GenerationRequest(provider="openai", model="gpt-4o", prompt="hi")
        ... )
        >>> result.text
    """

    def __init__(
        self,
        registry: Optional[ProviderRegistry] = None,
        classifier: Optional[ErrorClassifier] = None,
    ) -> None:
        self._registry = registry or ProviderRegistry()
        self._classifier = classifier or ErrorClassifier()

    @property
    def registry(self) -> ProviderRegistry:
        return self._registry

    # =========================================================================
    # Catalog
    # =========================================================================

    def list_providers(self) -> list[dict[str, str]]:
        return self._registry.list_providers()

    def list_models(self, provider_id: Union[ProviderId, str]) -> list[dict[str, str]]:
        """
        Raises:
            GatewayValidationError: If the provider is not supported.
        """
        return self._registry.list_models(provider_id)

    # =========================================================================
    # Synchronous generation
    # =========================================================================

    async def generate(self, request: AnyRequest) -> GenerationResult:
        """
        Generate text in one call.

        Raises:
            ClassifiedError: Validation (BAD_REQUEST), missing credential
                (INTERNAL) or a classified upstream failure.
        """
        canonical = normalize(request, self._registry)
        invoker = self._registry.create_invoker(canonical.provider, canonical.model)
        return await self.execute(canonical, invoker)

    async def execute(
        self, canonical: CanonicalRequest, invoker: ModelInvoker
    ) -> GenerationResult:
        """
        Drive one non-streaming call through an invoker and close it.

        Raises:
            ClassifiedError: The classified upstream failure, chained to the
                raw error.
        """
        provider = canonical.provider.value
        params = build_call_params(canonical)
        logger.info(
            "generation_started",
            provider=provider,
            model=canonical.model,
            params=sorted(params),
        )
        start_time = time.perf_counter()

        try:
            async with invoker:
                completion = await invoker.complete(**params)
        except Exception as exc:
            classified = self._classifier.classify(canonical.provider, exc)
            record_generation(provider, canonical.model, "sync", "error")
            if classified is exc:
                raise
            raise classified from exc

        if completion.usage is not None:
            record_token_usage(
                provider, canonical.model, "prompt", completion.usage.prompt_tokens
            )
            record_token_usage(
                provider, canonical.model, "completion", completion.usage.completion_tokens
            )
        record_generation(provider, canonical.model, "sync", "success")
        logger.info(
            "generation_completed",
            provider=provider,
            model=canonical.model,
            finish_reason=completion.finish_reason,
            duration_seconds=round(time.perf_counter() - start_time, 3),
        )

        return GenerationResult(
            provider=provider,
            model=canonical.model,
            text=completion.text,
            finish_reason=completion.finish_reason,
            usage=completion.usage,
        )

    # =========================================================================
    # Streaming generation
    # =========================================================================

    def open_stream(self, request: AnyRequest) -> StreamExecutor:
        """
        Validate a request and prepare its stream.

        Nothing is sent upstream until StreamExecutor.run() is awaited.

        Raises:
            ClassifiedError: Validation (BAD_REQUEST) or missing credential
                (INTERNAL).
        """
        canonical = normalize(request, self._registry)
        invoker = self._registry.create_invoker(canonical.provider, canonical.model)
        return StreamExecutor(
            provider=canonical.provider,
            model=canonical.model,
            invoker=invoker,
            params=build_call_params(canonical),
            classifier=self._classifier,
        )
