"""
Core module for the Text Generation Gateway.

This module contains configuration, exceptions, and credential resolution.
"""

from textgen_gateway.core.config import Settings, get_settings
from textgen_gateway.core.credentials import CredentialResolver
from textgen_gateway.core.exceptions import (
    CATEGORY_HTTP_STATUS,
    ClassifiedError,
    ErrorCategory,
    GatewayException,
    GatewayValidationError,
    MissingCredentialError,
    UpstreamError,
)

__all__ = [
    # Config
    "Settings",
    "get_settings",
    "CredentialResolver",
    # Exceptions
    "CATEGORY_HTTP_STATUS",
    "ClassifiedError",
    "ErrorCategory",
    "GatewayException",
    "GatewayValidationError",
    "MissingCredentialError",
    "UpstreamError",
]
