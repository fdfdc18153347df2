"""Provider Registry - Maps provider ids to descriptors and invoker factories.

The set of providers is closed (see textgen_gateway.models.catalog); there
is no runtime registration. Invoker factories can be replaced at
construction time, which is how tests inject fake invokers.
"""

import logging
from typing import Callable, Mapping, Optional, Union

from textgen_gateway.core.config import Settings, get_settings
from textgen_gateway.core.credentials import CredentialResolver
from textgen_gateway.core.exceptions import GatewayValidationError
from textgen_gateway.models.catalog import (
    PROVIDER_DESCRIPTORS,
    ProviderDescriptor,
    ProviderId,
)
from textgen_gateway.providers.base import ModelInvoker
from textgen_gateway.providers.deepseek import DeepSeekInvoker
from textgen_gateway.providers.gemini import GeminiInvoker
from textgen_gateway.providers.openai import OpenAIInvoker

logger = logging.getLogger(__name__)

# (api_key, model, settings) -> ModelInvoker
InvokerFactory = Callable[[str, str, Settings], ModelInvoker]


def create_openai_invoker(api_key: str, model: str, settings: Settings) -> ModelInvoker:
    return OpenAIInvoker(
        api_key=api_key,
        model=model,
        base_url=settings.openai_base_url,
        timeout=settings.upstream_timeout_seconds,
    )


def create_deepseek_invoker(api_key: str, model: str, settings: Settings) -> ModelInvoker:
    return DeepSeekInvoker(
        api_key=api_key,
        model=model,
        base_url=settings.deepseek_base_url,
        timeout=settings.upstream_timeout_seconds,
    )


def create_gemini_invoker(api_key: str, model: str, settings: Settings) -> ModelInvoker:
    return GeminiInvoker(
        api_key=api_key,
        model=model,
        api_base=settings.gemini_api_base,
        timeout=settings.upstream_timeout_seconds,
    )


DEFAULT_INVOKER_FACTORIES: dict[ProviderId, InvokerFactory] = {
    ProviderId.OPENAI: create_openai_invoker,
    ProviderId.DEEPSEEK: create_deepseek_invoker,
    ProviderId.GEMINI: create_gemini_invoker,
}


class ProviderRegistry:
    """Read-only lookup of providers, models and invoker construction.

    Safe for concurrent use: nothing in the registry is mutated after
    construction except the credential cache, which only ever gains
    entries.

    Args:
        settings_factory: Callable returning current Settings.
        credentials: Credential resolver (built from settings_factory if omitted).
        invoker_factories: Overrides for the per-provider invoker factories.

    Example:
        >>> registry = ProviderRegistry()
        >>> registry.is_valid_model("openai", "gpt-4o")
        True
    """

    def __init__(
        self,
        settings_factory: Optional[Callable[[], Settings]] = None,
        credentials: Optional[CredentialResolver] = None,
        invoker_factories: Optional[Mapping[ProviderId, InvokerFactory]] = None,
    ) -> None:
        self._settings_factory = settings_factory or get_settings
        self._credentials = credentials or CredentialResolver(self._settings_factory)
        self._factories: dict[ProviderId, InvokerFactory] = dict(DEFAULT_INVOKER_FACTORIES)
        if invoker_factories:
            self._factories.update(invoker_factories)

    @property
    def credentials(self) -> CredentialResolver:
        return self._credentials

    def descriptor_for(self, provider_id: Union[ProviderId, str]) -> ProviderDescriptor:
        """Get the descriptor of a provider.

        Raises:
            GatewayValidationError: If the provider is not supported.
        """
        parsed = ProviderId.parse(provider_id)
        if parsed is None:
            raise GatewayValidationError(
                f"Unsupported provider: {provider_id}", field="provider"
            )
        return PROVIDER_DESCRIPTORS[parsed]

    def is_valid_model(self, provider_id: Union[ProviderId, str], model_id: str) -> bool:
        """Check whether a model belongs to a provider (exact match)."""
        parsed = ProviderId.parse(provider_id)
        if parsed is None:
            return False
        return model_id in PROVIDER_DESCRIPTORS[parsed].valid_model_ids

    def list_providers(self) -> list[dict[str, str]]:
        """List providers as [{id, displayName}] in declaration order."""
        return [descriptor.to_dict() for descriptor in PROVIDER_DESCRIPTORS.values()]

    def list_models(self, provider_id: Union[ProviderId, str]) -> list[dict[str, str]]:
        """List a provider's models as [{id, displayName}].

        Raises:
            GatewayValidationError: If the provider is not supported.
        """
        descriptor = self.descriptor_for(provider_id)
        return [model.to_dict() for model in descriptor.models]

    def create_invoker(self, provider_id: Union[ProviderId, str], model_id: str) -> ModelInvoker:
        """Create a fresh invoker bound to the provider's credential and a model.

        Raises:
            GatewayValidationError: If the provider is not supported.
            MissingCredentialError: If the provider's key is not configured.
        """
        descriptor = self.descriptor_for(provider_id)
        api_key = self._credentials.resolve(descriptor.id)
        invoker = self._factories[descriptor.id](api_key, model_id, self._settings_factory())
        logger.debug("Created %s invoker for model %s", descriptor.id.value, model_id)
        return invoker
