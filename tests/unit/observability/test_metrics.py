"""
Tests for textgen_gateway/observability/metrics.py - Prometheus metrics.
"""

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from prometheus_client import REGISTRY

from textgen_gateway.observability.metrics import (
    MetricsMiddleware,
    generate_metrics,
    get_metrics_app,
    record_generation,
    record_provider_error,
    record_token_usage,
)


def sample(name: str, **labels) -> float:
    return REGISTRY.get_sample_value(name, labels) or 0.0


@pytest.fixture
def metrics_client() -> TestClient:
    app = FastAPI()
    app.add_middleware(MetricsMiddleware)

    @app.get("/ping")
    async def ping():
        return {"ok": True}

    app.mount("/metrics", get_metrics_app())
    return TestClient(app)


class TestHelpers:
    def test_record_generation(self):
        labels = {
            "provider": "gemini",
            "model": "gemini-2.5-pro",
            "mode": "stream",
            "outcome": "cancelled",
        }
        before = sample("textgen_gateway_generations_total", **labels)

        record_generation("gemini", "gemini-2.5-pro", "stream", "cancelled")

        assert sample("textgen_gateway_generations_total", **labels) == before + 1

    def test_record_token_usage(self):
        labels = {"provider": "openai", "model": "gpt-4", "type": "prompt"}
        before = sample("textgen_gateway_tokens_total", **labels)

        record_token_usage("openai", "gpt-4", "prompt", 42)
        record_token_usage("openai", "gpt-4", "prompt", 0)

        assert sample("textgen_gateway_tokens_total", **labels) == before + 42

    def test_record_provider_error(self):
        labels = {"provider": "openai", "category": "INTERNAL"}
        before = sample("textgen_gateway_provider_errors_total", **labels)

        record_provider_error("openai", "INTERNAL")

        assert sample("textgen_gateway_provider_errors_total", **labels) == before + 1

    def test_generate_metrics_exposition(self):
        output = generate_metrics()

        assert "# TYPE textgen_gateway_requests_total counter" in output
        assert "textgen_gateway_request_duration_seconds" in output


class TestMetricsMiddleware:
    def test_counts_requests(self, metrics_client):
        labels = {"method": "GET", "path": "/ping", "status": "200"}
        before = sample("textgen_gateway_requests_total", **labels)

        assert metrics_client.get("/ping").status_code == 200

        assert sample("textgen_gateway_requests_total", **labels) == before + 1
        assert sample(
            "textgen_gateway_request_duration_seconds_count", method="GET", path="/ping"
        ) >= 1
        assert sample("textgen_gateway_requests_in_progress", method="GET") == 0

    def test_metrics_path_not_counted(self, metrics_client):
        labels = {"method": "GET", "path": "/metrics/", "status": "200"}
        before = sample("textgen_gateway_requests_total", **labels)

        response = metrics_client.get("/metrics/")

        assert response.status_code == 200
        assert sample("textgen_gateway_requests_total", **labels) == before

    def test_status_of_error_responses(self, metrics_client):
        labels = {"method": "GET", "path": "/missing", "status": "404"}
        before = sample("textgen_gateway_requests_total", **labels)

        metrics_client.get("/missing")

        assert sample("textgen_gateway_requests_total", **labels) == before + 1
