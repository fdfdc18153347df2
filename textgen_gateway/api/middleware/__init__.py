"""
API Middleware Package
"""

from textgen_gateway.api.middleware.logging import (
    RequestLoggingMiddleware,
    redact_sensitive_headers,
)

__all__ = ["RequestLoggingMiddleware", "redact_sensitive_headers"]
