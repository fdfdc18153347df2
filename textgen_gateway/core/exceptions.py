"""
Custom exceptions for the Text Generation Gateway.

This module provides the exception hierarchy for the gateway. Every failure
that leaves the core is a ClassifiedError carrying one ErrorCategory and a
human-actionable message; raw upstream failures are translated into it by
the error classifier (textgen_gateway.services.classifier).
"""

from enum import Enum
from typing import Any, Optional


# =============================================================================
# Error Categories
# =============================================================================


class ErrorCategory(str, Enum):
    """
    Stable error taxonomy exposed by the gateway.

    The category is uniform across providers; only the message text is
    allowed to be provider-specific.
    """

    BAD_REQUEST = "BAD_REQUEST"
    UNAUTHORIZED = "UNAUTHORIZED"
    FORBIDDEN_LEAKED = "FORBIDDEN_LEAKED"
    FORBIDDEN = "FORBIDDEN"
    RATE_LIMITED = "RATE_LIMITED"
    INSUFFICIENT_BALANCE = "INSUFFICIENT_BALANCE"
    INTERNAL = "INTERNAL"


# HTTP status used by the transport layer for each category.
# Upstream credential problems are the operator's, not the caller's: 502.
CATEGORY_HTTP_STATUS: dict[ErrorCategory, int] = {
    ErrorCategory.BAD_REQUEST: 400,
    ErrorCategory.UNAUTHORIZED: 502,
    ErrorCategory.FORBIDDEN_LEAKED: 502,
    ErrorCategory.FORBIDDEN: 502,
    ErrorCategory.RATE_LIMITED: 429,
    ErrorCategory.INSUFFICIENT_BALANCE: 402,
    ErrorCategory.INTERNAL: 500,
}


# =============================================================================
# Base Exception
# =============================================================================


class GatewayException(Exception):
    """
    Base exception for all gateway errors.

    Attributes:
        message: Human-readable error message.
        error_code: Machine-readable error code.
    """

    def __init__(
        self,
        message: str,
        error_code: str = "GATEWAY_ERROR",
        **kwargs: Any,
    ) -> None:
        """
        Initialize the exception.

        Args:
            message: Human-readable error message.
            error_code: Machine-readable error code.
            **kwargs: Additional attributes to set on the exception.
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code

        for key, value in kwargs.items():
            setattr(self, key, value)


# =============================================================================
# ClassifiedError
# =============================================================================


class ClassifiedError(GatewayException):
    """
    A failure mapped to one of the fixed error categories.

    Attributes:
        category: The ErrorCategory of the failure.
        provider: Provider id the failure relates to (if any).
        retry_after_seconds: Suggested retry delay for RATE_LIMITED errors.
    """

    def __init__(
        self,
        category: ErrorCategory,
        message: str,
        provider: Optional[str] = None,
        retry_after_seconds: Optional[int] = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, error_code=category.value, **kwargs)
        self.category = category
        self.provider = provider
        self.retry_after_seconds = retry_after_seconds

    @property
    def http_status(self) -> int:
        """HTTP status code the transport layer should answer with."""
        return CATEGORY_HTTP_STATUS[self.category]

    def to_dict(self) -> dict[str, Any]:
        """Serialize for an HTTP error body."""
        body: dict[str, Any] = {
            "statusCode": self.http_status,
            "error": self.category.value,
            "category": self.category.value,
            "message": self.message,
        }
        if self.provider is not None:
            body["provider"] = self.provider
        if self.retry_after_seconds is not None:
            body["retryAfterSeconds"] = self.retry_after_seconds
        return body

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.category.value}, {self.message!r})"


class GatewayValidationError(ClassifiedError):
    """
    Request rejected by semantic validation (always BAD_REQUEST).

    Named GatewayValidationError to avoid conflict with
    pydantic.ValidationError.

    Attributes:
        field: Name of the field that failed validation.
    """

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        provider: Optional[str] = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(
            ErrorCategory.BAD_REQUEST, message, provider=provider, **kwargs
        )
        self.field = field


class MissingCredentialError(ClassifiedError):
    """
    A selected provider has no credential configured (always INTERNAL).

    This is an operator/configuration error, never the caller's.

    Attributes:
        env_key: The environment variable the operator must set.
    """

    def __init__(self, message: str, provider: str, env_key: str) -> None:
        super().__init__(ErrorCategory.INTERNAL, message, provider=provider)
        self.env_key = env_key


# =============================================================================
# UpstreamError
# =============================================================================


class UpstreamError(GatewayException):
    """
    Raw failure reported by a provider over plain HTTP.

    Raised by adapters that do not go through a vendor SDK, so the error
    classifier sees the same attributes (status_code, body) an SDK error
    exposes.

    Attributes:
        provider: Provider id that failed.
        status_code: HTTP status code from the provider API (if any).
        body: Decoded provider error payload (if any).
    """

    def __init__(
        self,
        message: str,
        provider: str,
        status_code: Optional[int] = None,
        body: Any = None,
    ) -> None:
        super().__init__(message, error_code="UPSTREAM_ERROR")
        self.provider = provider
        self.status_code = status_code
        self.body = body
