"""
Prometheus Metrics Module

HTTP metrics (request count, latency, in-flight requests) collected by an
ASGI middleware, and generation metrics recorded by the core:

- textgen_gateway_generations_total{provider, model, mode, outcome}
- textgen_gateway_tokens_total{provider, model, type}
- textgen_gateway_provider_errors_total{provider, category}

Exposed at /metrics via prometheus_client.make_asgi_app().
"""

import time
from typing import Any, Callable, Optional

from prometheus_client import (
    REGISTRY,
    Counter,
    Gauge,
    Histogram,
    generate_latest,
    make_asgi_app,
)

# =============================================================================
# HTTP Metrics
# =============================================================================

REQUESTS_TOTAL = Counter(
    name="textgen_gateway_requests_total",
    documentation="Total number of HTTP requests",
    labelnames=["method", "path", "status"],
)

REQUEST_DURATION_SECONDS = Histogram(
    name="textgen_gateway_request_duration_seconds",
    documentation="HTTP request duration in seconds",
    labelnames=["method", "path"],
    # Generations are slow; streams can stay open for minutes
    buckets=(0.01, 0.05, 0.1, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0, 120.0),
)

REQUESTS_IN_PROGRESS = Gauge(
    name="textgen_gateway_requests_in_progress",
    documentation="Number of HTTP requests currently being processed",
    labelnames=["method"],
)

# =============================================================================
# Generation Metrics
# =============================================================================

GENERATIONS_TOTAL = Counter(
    name="textgen_gateway_generations",
    documentation="Generations by provider, model, mode (sync/stream) and outcome",
    labelnames=["provider", "model", "mode", "outcome"],
)

TOKEN_USAGE_TOTAL = Counter(
    name="textgen_gateway_tokens",
    documentation="Tokens reported by providers",
    labelnames=["provider", "model", "type"],
)

PROVIDER_ERRORS_TOTAL = Counter(
    name="textgen_gateway_provider_errors",
    documentation="Classified upstream errors by provider and category",
    labelnames=["provider", "category"],
)


# =============================================================================
# Helper Functions
# =============================================================================


def record_generation(provider: str, model: str, mode: str, outcome: str) -> None:
    """
    Record the end of one generation.

    Args:
        provider: Provider id
        model: Model id
        mode: "sync" or "stream"
        outcome: "success", "error", or for streams the terminal state
            ("completed", "cancelled", "failed")
    """
    GENERATIONS_TOTAL.labels(
        provider=provider, model=model, mode=mode, outcome=outcome
    ).inc()


def record_token_usage(provider: str, model: str, token_type: str, count: int) -> None:
    """
    Record token usage for a generation.

    Args:
        provider: Provider id
        model: Model id
        token_type: "prompt" or "completion"
        count: Number of tokens
    """
    if count <= 0:
        return
    TOKEN_USAGE_TOTAL.labels(provider=provider, model=model, type=token_type).inc(count)


def record_provider_error(provider: str, category: str) -> None:
    PROVIDER_ERRORS_TOTAL.labels(provider=provider, category=category).inc()


# =============================================================================
# MetricsMiddleware
# =============================================================================


class MetricsMiddleware:
    """
    ASGI middleware for Prometheus HTTP metrics.

    Routes are static (no path parameters), so the raw path is used as the
    label. The /metrics path itself is excluded.
    """

    def __init__(
        self,
        app: Callable[..., Any],
        exclude_paths: Optional[list[str]] = None,
    ) -> None:
        self.app = app
        self.exclude_paths = exclude_paths or ["/metrics", "/metrics/"]

    async def __call__(
        self,
        scope: dict[str, Any],
        receive: Callable[..., Any],
        send: Callable[..., Any],
    ) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        method = scope.get("method", "GET")
        path = scope.get("path", "/")

        if path in self.exclude_paths:
            await self.app(scope, receive, send)
            return

        REQUESTS_IN_PROGRESS.labels(method=method).inc()
        start_time = time.perf_counter()
        status_code = "500"

        async def send_wrapper(message: dict[str, Any]) -> None:
            nonlocal status_code
            if message["type"] == "http.response.start":
                status_code = str(message.get("status", 500))
            await send(message)

        try:
            await self.app(scope, receive, send_wrapper)
        finally:
            duration = time.perf_counter() - start_time
            REQUESTS_TOTAL.labels(method=method, path=path, status=status_code).inc()
            REQUEST_DURATION_SECONDS.labels(method=method, path=path).observe(duration)
            REQUESTS_IN_PROGRESS.labels(method=method).dec()


def get_metrics_app() -> Callable[..., Any]:
    """ASGI app serving the Prometheus exposition format."""
    return make_asgi_app()


def generate_metrics() -> str:
    return generate_latest(REGISTRY).decode("utf-8")
