"""
Tests for the generation router - /ai/providers, /ai/models, /ai/generate.

The app runs with a GenerationService whose registry uses FakeInvokers.
"""

import asyncio

import pytest
from fastapi.testclient import TestClient

from textgen_gateway.api.deps import get_generation_service
from textgen_gateway.api.routes.generation import (
    KEEP_ALIVE_COMMENT,
    SSEFragmentSink,
    format_sse_event,
    stream_sse_events,
)
from textgen_gateway.core.exceptions import UpstreamError
from textgen_gateway.models.catalog import ProviderId
from textgen_gateway.models.responses import ContentFragment, DoneFragment, ErrorFragment
from textgen_gateway.providers.fake import FakeInvoker, FakeInvokerFactory
from textgen_gateway.services.generation import GenerationService
from textgen_gateway.services.streaming import StreamExecutor, StreamState


GEMINI_QUOTA_BODY = {
    "error": {
        "code": 429,
        "status": "RESOURCE_EXHAUSTED",
        "message": "Quota exceeded. Please retry in 37.2s.",
    }
}


@pytest.fixture
def use_factory(app, make_registry, test_settings, classifier):
    """Swap the app's service for one whose invokers come from a custom factory."""

    def _use(factory: FakeInvokerFactory) -> TestClient:
        service = GenerationService(
            registry=make_registry(test_settings, factory), classifier=classifier
        )
        app.dependency_overrides[get_generation_service] = lambda: service
        return TestClient(app)

    return _use


def quota_error():
    return UpstreamError(
        GEMINI_QUOTA_BODY["error"]["message"],
        provider="gemini",
        status_code=429,
        body=GEMINI_QUOTA_BODY,
    )


# =============================================================================
# Catalog
# =============================================================================


class TestCatalogEndpoints:
    def test_providers(self, client):
        response = client.get("/ai/providers")

        assert response.status_code == 200
        assert response.json() == [
            {"id": "openai", "displayName": "OpenAI"},
            {"id": "deepseek", "displayName": "DeepSeek"},
            {"id": "gemini", "displayName": "Google Gemini"},
        ]

    def test_models(self, client):
        response = client.get("/ai/models", params={"provider": "gemini"})

        assert response.status_code == 200
        assert [m["id"] for m in response.json()] == [
            "gemini-3-flash-preview",
            "gemini-2.5-pro",
            "gemini-2.5-flash",
        ]

    def test_models_unknown_provider(self, client):
        response = client.get("/ai/models", params={"provider": "mistral"})

        assert response.status_code == 400
        body = response.json()
        assert body["category"] == "BAD_REQUEST"
        assert body["message"] == "Unsupported provider: mistral"

    def test_models_without_provider(self, client):
        assert client.get("/ai/models").status_code == 400


# =============================================================================
# Non-streaming generation
# =============================================================================


class TestGenerateJSON:
    def test_success(self, client, fake_factory):
        response = client.post(
            "/ai/generate",
            json={
                "provider": "openai",
                "model": "gpt-4o",
                "prompt": "Say hi",
                "temperature": 0.7,
                "maxTokens": 100,
            },
        )

        assert response.status_code == 200
        assert response.json() == {
            "provider": "openai",
            "model": "gpt-4o",
            "text": "Hello from the fake model",
            "finishReason": "stop",
            "usage": {"promptTokens": 3, "completionTokens": 5, "totalTokens": 8},
        }
        assert fake_factory.last.complete_calls == [
            {"prompt": "Say hi", "temperature": 0.7, "max_tokens": 100}
        ]

    def test_wrong_model_is_400_without_upstream_call(self, client, fake_factory):
        response = client.post(
            "/ai/generate",
            json={"provider": "deepseek", "model": "gpt-4o", "prompt": "hi"},
        )

        assert response.status_code == 400
        assert "Available models: deepseek-v2-chat, deepseek-chat, deepseek-coder" in (
            response.json()["message"]
        )
        assert fake_factory.created == []

    def test_missing_fields_use_framework_validation(self, client):
        response = client.post("/ai/generate", json={"prompt": "hi"})

        assert response.status_code == 422

    def test_rate_limit_sets_retry_after(self, use_factory):
        client = use_factory(FakeInvokerFactory(error=quota_error()))

        response = client.post(
            "/ai/generate",
            json={"provider": "gemini", "model": "gemini-2.5-flash", "prompt": "hi"},
        )

        assert response.status_code == 429
        assert response.headers["Retry-After"] == "38"
        body = response.json()
        assert body["category"] == "RATE_LIMITED"
        assert body["provider"] == "gemini"
        assert body["retryAfterSeconds"] == 38

    def test_unauthorized_upstream_is_502(self, use_factory):
        error = UpstreamError("bad key", provider="openai", status_code=401)
        client = use_factory(FakeInvokerFactory(error=error))

        response = client.post(
            "/ai/generate", json={"provider": "openai", "model": "gpt-4o", "prompt": "hi"}
        )

        assert response.status_code == 502
        assert response.json()["category"] == "UNAUTHORIZED"
        assert "Retry-After" not in response.headers


# =============================================================================
# Streaming generation
# =============================================================================


class TestGenerateSSE:
    def test_stream_success(self, client):
        response = client.post(
            "/ai/generate",
            json={"provider": "openai", "model": "gpt-4o", "prompt": "hi", "stream": True},
        )

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/event-stream")
        assert response.headers["cache-control"] == "no-cache"
        assert response.text == (
            ": keep-alive\n\n"
            'data: {"content":"Fake "}\n\n'
            'data: {"content":"stream"}\n\n'
            "data: [DONE]\n\n"
        )

    def test_stream_error_after_partial_output(self, use_factory):
        client = use_factory(
            FakeInvokerFactory(fragments=["one ", "two ", "three"], error=quota_error())
        )

        response = client.post(
            "/ai/generate",
            json={
                "provider": "gemini",
                "model": "gemini-2.5-flash",
                "prompt": "hi",
                "stream": True,
            },
        )

        assert response.status_code == 200
        events = [e for e in response.text.split("\n\n") if e.startswith("data: ")]
        assert events[:3] == [
            'data: {"content":"one "}',
            'data: {"content":"two "}',
            'data: {"content":"three"}',
        ]
        assert len(events) == 4
        assert events[3].startswith('data: {"error":"API quota exhausted')
        assert "[DONE]" not in response.text

    def test_stream_validation_error_is_http_error(self, client, fake_factory):
        response = client.post(
            "/ai/generate",
            json={"provider": "openai", "model": "gpt-4o", "prompt": " ", "stream": True},
        )

        assert response.status_code == 400
        assert response.json()["message"] == "At least one of prompt and system is required"
        assert fake_factory.created == []


# =============================================================================
# SSE plumbing
# =============================================================================


class TestSSEFragmentSink:
    @pytest.mark.asyncio
    async def test_drains_until_closed(self):
        sink = SSEFragmentSink()
        await sink.accept(ContentFragment(content="a"))
        await sink.accept(DoneFragment())
        sink.close()

        assert [f async for f in sink.fragments()] == [
            ContentFragment(content="a"),
            DoneFragment(),
        ]

    @pytest.mark.asyncio
    async def test_cancelled_sink_refuses(self):
        sink = SSEFragmentSink()
        sink.cancel()

        assert sink.is_cancelled() is True
        assert await sink.accept(ContentFragment(content="a")) is False

    @pytest.mark.asyncio
    async def test_closed_sink_refuses(self):
        sink = SSEFragmentSink()
        sink.close()
        sink.close()

        assert await sink.accept(ErrorFragment(error="late")) is False

    def test_format_sse_event(self):
        assert format_sse_event(DoneFragment()) == "data: [DONE]\n\n"


class TestStreamSSEEvents:
    @pytest.mark.asyncio
    async def test_client_disconnect_cancels_upstream(self, classifier):
        invoker = FakeInvoker(fragments=["a"], hang=True)
        executor = StreamExecutor(
            provider=ProviderId.OPENAI,
            model="gpt-4o",
            invoker=invoker,
            params={"prompt": "hi"},
            classifier=classifier,
        )
        events = stream_sse_events(executor)

        assert await events.__anext__() == KEEP_ALIVE_COMMENT
        assert await events.__anext__() == 'data: {"content":"a"}\n\n'
        await asyncio.sleep(0.01)
        await events.aclose()

        assert executor.state is StreamState.CANCELLED
        assert invoker.stream_closed is True
        assert invoker.closed is True

    @pytest.mark.asyncio
    async def test_closing_before_start_still_closes_invoker(self, classifier):
        invoker = FakeInvoker(fragments=["a"])
        executor = StreamExecutor(
            provider=ProviderId.OPENAI,
            model="gpt-4o",
            invoker=invoker,
            params={"prompt": "hi"},
            classifier=classifier,
        )
        events = stream_sse_events(executor)

        assert await events.__anext__() == KEEP_ALIVE_COMMENT
        await events.aclose()

        assert invoker.closed is True
