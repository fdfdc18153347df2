"""
Request Logging Middleware

Logs every request (method, path, status, duration) and binds a
correlation id for the duration of the request:

- taken from the X-Request-ID header, or generated (uuid4 hex)
- available to every structured log event via the logging contextvar
- echoed back in the X-Request-ID response header

Sensitive headers are redacted before they are logged.
"""

import logging
import time
import uuid
from typing import Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from textgen_gateway.observability.logging import (
    reset_correlation_id,
    set_correlation_id,
)

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"

# Headers that should be redacted (case-insensitive substring match)
SENSITIVE_HEADER_PATTERNS = [
    "authorization",
    "api-key",
    "apikey",
    "api_key",
    "x-auth-token",
    "cookie",
]


def redact_sensitive_headers(headers: dict[str, str]) -> dict[str, str]:
    """
    Redact sensitive headers from a headers dictionary.

    Returns:
        Dictionary with sensitive values replaced with [REDACTED]
    """
    redacted = {}
    for key, value in headers.items():
        key_lower = key.lower()
        is_sensitive = any(pattern in key_lower for pattern in SENSITIVE_HEADER_PATTERNS)
        redacted[key] = "[REDACTED]" if is_sensitive else value
    return redacted


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Middleware for logging HTTP requests and binding correlation ids.

    For streaming responses the logged duration covers the time until the
    response started, not the whole stream; stream_finished events carry
    the stream duration.
    """

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Response]
    ) -> Response:
        start_time = time.perf_counter()
        correlation_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        token = set_correlation_id(correlation_id)

        method = request.method
        path = request.url.path
        client_host = request.client.host if request.client else "unknown"

        logger.debug(
            f"Request: {method} {path} from {client_host} "
            f"headers={redact_sensitive_headers(dict(request.headers))}"
        )

        try:
            response = await call_next(request)
        except Exception as e:
            duration_ms = (time.perf_counter() - start_time) * 1000
            logger.error(
                f"Request failed: {method} {path} from {client_host} "
                f"error={type(e).__name__}: {e} duration={duration_ms:.2f}ms"
            )
            raise
        finally:
            reset_correlation_id(token)

        duration_ms = (time.perf_counter() - start_time) * 1000
        log_level = logging.WARNING if response.status_code >= 400 else logging.INFO
        logger.log(
            log_level,
            f"{method} {path} {response.status_code} "
            f"from {client_host} duration={duration_ms:.2f}ms "
            f"request_id={correlation_id}",
        )

        response.headers[REQUEST_ID_HEADER] = correlation_id
        return response
