"""
Parameter Normalizer - semantic validation of generation requests.

Rules are applied in a fixed order and the first failing rule wins:

1. provider must be a supported provider id
2. model must be non-empty after trimming
3. model must belong to the provider (checked on the raw value)
4. prompt and system may not both be empty/whitespace
5. maxTokens: finite, abs() then floor(), within [1, 1_000_000]
6. temperature: finite, clamped into [0, 2]

Negative maxTokens are sign-flipped and out-of-range temperatures are
clamped, not rejected.

normalize() is pure and idempotent: feeding a CanonicalRequest back in
returns an equal CanonicalRequest.
"""

import math
from typing import Optional, Union

from textgen_gateway.core.exceptions import GatewayValidationError
from textgen_gateway.models.catalog import ProviderId
from textgen_gateway.models.requests import CanonicalRequest, GenerationRequest
from textgen_gateway.providers.registry import ProviderRegistry

MAX_TOKENS_LIMIT = 1_000_000
TEMPERATURE_MIN = 0.0
TEMPERATURE_MAX = 2.0


def normalize(
    request: Union[GenerationRequest, CanonicalRequest],
    registry: ProviderRegistry,
) -> CanonicalRequest:
    """
    Validate a request and coerce it into canonical form.

    Args:
        request: Inbound request (or an already canonical one).
        registry: Provider registry used for provider/model lookups.

    Returns:
        The canonical request.

    Raises:
        GatewayValidationError: On the first rule the request violates.
    """
    provider_id = ProviderId.parse(request.provider)
    if provider_id is None:
        raise GatewayValidationError(
            f"Unsupported provider: {request.provider}", field="provider"
        )

    if not request.model or not request.model.strip():
        raise GatewayValidationError(
            "Model name is empty", field="model", provider=provider_id.value
        )

    if not registry.is_valid_model(provider_id, request.model):
        available = ", ".join(registry.descriptor_for(provider_id).model_ids())
        raise GatewayValidationError(
            f'Model "{request.model}" does not belong to provider '
            f'"{provider_id.value}". Available models: {available}',
            field="model",
            provider=provider_id.value,
        )

    prompt = (request.prompt or "").strip()
    system = (request.system or "").strip()
    if not prompt and not system:
        raise GatewayValidationError(
            "At least one of prompt and system is required",
            field="prompt",
            provider=provider_id.value,
        )

    max_tokens = _normalize_max_tokens(request.max_tokens, provider_id)
    temperature = _normalize_temperature(request.temperature, provider_id)

    return CanonicalRequest(
        provider=provider_id,
        model=request.model.strip(),
        prompt=prompt,
        system=system or None,
        temperature=temperature,
        max_tokens=max_tokens,
        stream=request.stream,
    )


def _normalize_max_tokens(
    value: Optional[float], provider_id: ProviderId
) -> Optional[int]:
    if value is None:
        return None
    if not math.isfinite(value):
        raise GatewayValidationError(
            "maxTokens must be a valid number",
            field="maxTokens",
            provider=provider_id.value,
        )

    max_tokens = math.floor(abs(value))
    if max_tokens < 1:
        raise GatewayValidationError(
            "maxTokens must be greater than 0",
            field="maxTokens",
            provider=provider_id.value,
        )
    if max_tokens > MAX_TOKENS_LIMIT:
        raise GatewayValidationError(
            f"maxTokens must not exceed {MAX_TOKENS_LIMIT}",
            field="maxTokens",
            provider=provider_id.value,
        )
    return max_tokens


def _normalize_temperature(
    value: Optional[float], provider_id: ProviderId
) -> Optional[float]:
    if value is None:
        return None
    if not math.isfinite(value):
        raise GatewayValidationError(
            "temperature must be a valid number",
            field="temperature",
            provider=provider_id.value,
        )
    return max(TEMPERATURE_MIN, min(TEMPERATURE_MAX, float(value)))
