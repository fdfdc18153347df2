"""
Credential Resolver - per-provider API key lookup.

Keys come from the settings factory. A present key is cached for the
lifetime of the resolver; a missing key is never cached, so the factory is
consulted again on the next call. With the default factory a key added to
the environment is picked up after get_settings.cache_clear(). A resolver
given fixed Settings (as create_app does) keeps reporting them until the
process restarts.
"""

import logging
from typing import Callable, Optional

from textgen_gateway.core.config import Settings, get_settings
from textgen_gateway.core.exceptions import MissingCredentialError
from textgen_gateway.models.catalog import PROVIDER_DESCRIPTORS, ProviderId

logger = logging.getLogger(__name__)


class CredentialResolver:
    """
    Resolves the API key of a provider from process configuration.

    Args:
        settings_factory: Callable returning the current Settings. Defaults
            to the get_settings() singleton; tests inject fixed settings.

    Example:
        >>> resolver = CredentialResolver(lambda: Settings(openai_api_key="sk-..."))
        >>> resolver.resolve(ProviderId.OPENAI)
        'sk-...'
    """

    def __init__(
        self, settings_factory: Optional[Callable[[], Settings]] = None
    ) -> None:
        self._settings_factory = settings_factory or get_settings
        self._cache: dict[ProviderId, str] = {}

    def resolve(self, provider_id: ProviderId) -> str:
        """
        Return the API key for a provider.

        Raises:
            MissingCredentialError: If the key is not configured (INTERNAL).
        """
        value = self._lookup(provider_id)
        if not value:
            descriptor = PROVIDER_DESCRIPTORS[provider_id]
            logger.error(
                "Credential not configured: provider=%s env=%s",
                provider_id.value,
                descriptor.credential_env_key,
            )
            raise MissingCredentialError(
                f"Environment variable {descriptor.credential_env_key} is not "
                f"configured; cannot call {descriptor.display_name} models. "
                f"Get an API key at {descriptor.key_url}",
                provider=provider_id.value,
                env_key=descriptor.credential_env_key,
            )
        return value

    def is_configured(self, provider_id: ProviderId) -> bool:
        """Check whether a provider has a credential, without raising or logging."""
        return bool(self._lookup(provider_id))

    def _lookup(self, provider_id: ProviderId) -> str:
        """Key for a provider, or "" when it is not configured."""
        cached = self._cache.get(provider_id)
        if cached is not None:
            return cached

        descriptor = PROVIDER_DESCRIPTORS[provider_id]
        secret = getattr(self._settings_factory(), descriptor.settings_field)
        value = secret.get_secret_value().strip() if secret is not None else ""
        if value:
            self._cache[provider_id] = value
        return value
