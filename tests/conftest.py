"""
Pytest configuration and shared fixtures.

Fixtures follow the FakeRepository approach: the registry gets real
Settings with fake keys and FakeInvokerFactory instances in place of the
network-backed invoker factories, so every layer above the adapters runs
for real.
"""

from typing import Callable

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from textgen_gateway.core.config import Settings, get_settings
from textgen_gateway.models.catalog import ProviderId
from textgen_gateway.providers.fake import FakeInvokerFactory
from textgen_gateway.providers.registry import ProviderRegistry
from textgen_gateway.services.classifier import ErrorClassifier
from textgen_gateway.services.generation import GenerationService


def pytest_configure(config):
    """Register custom markers for test categorization."""
    config.addinivalue_line("markers", "unit: Unit tests for individual components")
    config.addinivalue_line("markers", "integration: Integration tests for service interactions")


# =============================================================================
# Settings
# =============================================================================


@pytest.fixture(autouse=True)
def clean_provider_env(monkeypatch):
    """Keep real API keys from the developer environment out of tests."""
    for name in (
        "OPENAI_API_KEY",
        "DEEPSEEK_API_KEY",
        "GOOGLE_GENERATIVE_AI_API_KEY",
        "TEXTGEN_GATEWAY_OPENAI_API_KEY",
        "TEXTGEN_GATEWAY_DEEPSEEK_API_KEY",
        "TEXTGEN_GATEWAY_GOOGLE_GENERATIVE_AI_API_KEY",
    ):
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def test_settings() -> Settings:
    """Settings with fake keys for every provider."""
    return Settings(
        service_name="textgen-gateway-test",
        environment="development",
        openai_api_key="test-openai-key",
        deepseek_api_key="test-deepseek-key",
        google_generative_ai_api_key="test-gemini-key",
    )


@pytest.fixture
def settings_without_deepseek() -> Settings:
    """Settings where the DeepSeek key is missing."""
    return Settings(
        environment="development",
        openai_api_key="test-openai-key",
        google_generative_ai_api_key="test-gemini-key",
    )


# =============================================================================
# Fakes
# =============================================================================


@pytest.fixture
def fake_factory() -> FakeInvokerFactory:
    """Invoker factory producing FakeInvokers with default scripted output."""
    return FakeInvokerFactory(response_text="Hello from the fake model")


@pytest.fixture
def make_registry(fake_factory) -> Callable[..., ProviderRegistry]:
    """Build a registry whose providers all use the given fake factory."""

    def _make(settings: Settings, factory: FakeInvokerFactory = None) -> ProviderRegistry:
        factory = factory or fake_factory
        return ProviderRegistry(
            settings_factory=lambda: settings,
            invoker_factories={provider_id: factory for provider_id in ProviderId},
        )

    return _make


@pytest.fixture
def registry(make_registry, test_settings) -> ProviderRegistry:
    return make_registry(test_settings)


@pytest.fixture
def classifier() -> ErrorClassifier:
    return ErrorClassifier()


@pytest.fixture
def service(registry, classifier) -> GenerationService:
    return GenerationService(registry=registry, classifier=classifier)


# =============================================================================
# App
# =============================================================================


@pytest.fixture
def app(test_settings, service) -> FastAPI:
    """Full application with the fake-backed GenerationService injected."""
    from textgen_gateway.api.deps import get_generation_service
    from textgen_gateway.main import create_app

    application = create_app(test_settings)
    application.dependency_overrides[get_generation_service] = lambda: service
    return application


@pytest.fixture
def client(app) -> TestClient:
    return TestClient(app)
