"""
Provider Catalog - static description of the supported backends.

The set of providers and their models is closed: it is enumerated here and
never extended at runtime. Descriptors are immutable and shared by every
request.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class ProviderId(str, Enum):
    """Identifiers of the supported LLM providers."""

    OPENAI = "openai"
    DEEPSEEK = "deepseek"
    GEMINI = "gemini"

    @classmethod
    def parse(cls, value: object) -> Optional["ProviderId"]:
        """Return the matching ProviderId, or None for unknown values."""
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            return None


@dataclass(frozen=True)
class ModelInfo:
    """A model offered by a provider."""

    id: str
    display_name: str

    def to_dict(self) -> dict[str, str]:
        return {"id": self.id, "displayName": self.display_name}


@dataclass(frozen=True)
class ProviderDescriptor:
    """
    Immutable description of one provider.

    Attributes:
        id: Provider identifier.
        display_name: Human-readable provider name.
        models: Models the provider exposes, in display order.
        credential_env_key: Environment variable holding the API key.
        settings_field: Settings attribute holding the API key.
        key_url: Where an operator obtains or rotates a key.
        billing_url: Where an operator checks balance and quota.
    """

    id: ProviderId
    display_name: str
    models: tuple[ModelInfo, ...]
    credential_env_key: str
    settings_field: str
    key_url: str
    billing_url: str

    @property
    def valid_model_ids(self) -> frozenset[str]:
        return frozenset(model.id for model in self.models)

    def model_ids(self) -> list[str]:
        """Model ids in declaration order."""
        return [model.id for model in self.models]

    def to_dict(self) -> dict[str, str]:
        return {"id": self.id.value, "displayName": self.display_name}


# =============================================================================
# Descriptors
# =============================================================================

OPENAI = ProviderDescriptor(
    id=ProviderId.OPENAI,
    display_name="OpenAI",
    models=(
        ModelInfo("gpt-4o", "GPT-4o"),
        ModelInfo("gpt-4o-mini", "GPT-4o Mini"),
        ModelInfo("gpt-4", "GPT-4"),
        ModelInfo("gpt-3.5-turbo", "GPT-3.5 Turbo"),
    ),
    credential_env_key="OPENAI_API_KEY",
    settings_field="openai_api_key",
    key_url="https://platform.openai.com/api-keys",
    billing_url="https://platform.openai.com/settings/organization/billing",
)

DEEPSEEK = ProviderDescriptor(
    id=ProviderId.DEEPSEEK,
    display_name="DeepSeek",
    models=(
        ModelInfo("deepseek-v2-chat", "DeepSeek V2 Chat"),
        ModelInfo("deepseek-chat", "DeepSeek Chat"),
        ModelInfo("deepseek-coder", "DeepSeek Coder"),
    ),
    credential_env_key="DEEPSEEK_API_KEY",
    settings_field="deepseek_api_key",
    key_url="https://platform.deepseek.com/",
    billing_url="https://platform.deepseek.com/",
)

GEMINI = ProviderDescriptor(
    id=ProviderId.GEMINI,
    display_name="Google Gemini",
    models=(
        ModelInfo("gemini-3-flash-preview", "Gemini 3 Pro"),
        ModelInfo("gemini-2.5-pro", "Gemini 2.5 Pro"),
        ModelInfo("gemini-2.5-flash", "Gemini 2.5 Flash"),
    ),
    credential_env_key="GOOGLE_GENERATIVE_AI_API_KEY",
    settings_field="google_generative_ai_api_key",
    key_url="https://aistudio.google.com/app/apikey",
    billing_url="https://ai.google.dev/gemini-api/docs/billing",
)

PROVIDER_DESCRIPTORS: dict[ProviderId, ProviderDescriptor] = {
    descriptor.id: descriptor for descriptor in (OPENAI, DEEPSEEK, GEMINI)
}
