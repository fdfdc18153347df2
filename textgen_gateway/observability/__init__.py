"""
Observability Package - Structured logging and Prometheus metrics.
"""

from textgen_gateway.observability.logging import (
    configure_logging,
    correlation_id_context,
    get_correlation_id,
    get_logger,
    reset_correlation_id,
    reset_logging,
    set_correlation_id,
)
from textgen_gateway.observability.metrics import (
    GENERATIONS_TOTAL,
    PROVIDER_ERRORS_TOTAL,
    REQUEST_DURATION_SECONDS,
    REQUESTS_IN_PROGRESS,
    REQUESTS_TOTAL,
    TOKEN_USAGE_TOTAL,
    MetricsMiddleware,
    generate_metrics,
    get_metrics_app,
    record_generation,
    record_provider_error,
    record_token_usage,
)

__all__ = [
    # Logging
    "configure_logging",
    "correlation_id_context",
    "get_correlation_id",
    "get_logger",
    "reset_correlation_id",
    "reset_logging",
    "set_correlation_id",
    # Metrics
    "GENERATIONS_TOTAL",
    "PROVIDER_ERRORS_TOTAL",
    "REQUEST_DURATION_SECONDS",
    "REQUESTS_IN_PROGRESS",
    "REQUESTS_TOTAL",
    "TOKEN_USAGE_TOTAL",
    "MetricsMiddleware",
    "generate_metrics",
    "get_metrics_app",
    "record_generation",
    "record_provider_error",
    "record_token_usage",
]
