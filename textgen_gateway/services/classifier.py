"""
Error Classifier - maps raw upstream failures to ClassifiedError.

Providers fail in many shapes: OpenAI SDK exceptions (status_code, body,
param), httpx errors carrying a response, UpstreamError from the Gemini
adapter (status_code, body with a nested {"error": {...}}), plain
exceptions with only a message. classify() looks at three things:

- the HTTP status (status_code / status / statusCode / response.status_code)
- the nested provider payload (body / data / JSON response body, and its
  inner error.status and error.message)
- the message text

and runs a priority-ordered chain in which the first match wins:

    1. parameter error         -> BAD_REQUEST
    2. 402 / balance           -> INSUFFICIENT_BALANCE
    3. 429 / quota / exhausted -> RATE_LIMITED (+ retry_after_seconds)
    4. 403 / denied / leaked   -> FORBIDDEN_LEAKED or FORBIDDEN
    5. 401 / invalid / api key -> UNAUTHORIZED
    6. anything else           -> INTERNAL

A 403 whose message says "invalid API key" is FORBIDDEN, not
UNAUTHORIZED. The text checks of rules 1 and 5 read only the provider's own
message, never the serialized body the OpenAI SDK puts in its error text.
"""

import asyncio
import math
import re
from dataclasses import dataclass
from typing import Any, Optional, Union

import httpx
import openai

from textgen_gateway.core.exceptions import ClassifiedError, ErrorCategory
from textgen_gateway.models.catalog import (
    PROVIDER_DESCRIPTORS,
    ProviderDescriptor,
    ProviderId,
)
from textgen_gateway.observability.logging import get_logger
from textgen_gateway.observability.metrics import record_provider_error

logger = get_logger(__name__)

RETRY_DELAY_PATTERN = re.compile(r"Please retry in ([\d.]+)s", re.IGNORECASE)

GEMINI_USAGE_URL = "https://ai.dev/usage?tab=rate-limit"
GEMINI_RATE_LIMITS_URL = "https://ai.google.dev/gemini-api/docs/rate-limits"

TIMEOUT_ERRORS = (
    TimeoutError,
    asyncio.TimeoutError,
    httpx.TimeoutException,
    openai.APITimeoutError,
)


@dataclass(frozen=True)
class ErrorSignals:
    """What the classifier extracted from a raw error."""

    status: Optional[int]
    message: str
    payload_status: Optional[str]
    payload_message: Optional[str]
    has_param: bool

    @property
    def detail(self) -> str:
        """Provider payload message if there is one, else the exception text."""
        return self.payload_message or self.message

    @property
    def text(self) -> str:
        """All message text, for substring checks."""
        if self.payload_message and self.payload_message not in self.message:
            return f"{self.message} {self.payload_message}"
        return self.message


# =============================================================================
# Signal Extraction
# =============================================================================


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.isdigit():
        return int(value)
    return None


def extract_status(error: BaseException) -> Optional[int]:
    """HTTP status of a raw error, if it carries one."""
    for attr in ("status_code", "status", "statusCode"):
        status = _as_int(getattr(error, attr, None))
        if status is not None:
            return status
    response = getattr(error, "response", None)
    if response is not None:
        return _as_int(getattr(response, "status_code", None))
    return None


def extract_payload(error: BaseException) -> Optional[dict[str, Any]]:
    """
    Provider error payload of a raw error, narrowed to the inner error object.

    Gemini wraps errors as {"error": {"code", "message", "status"}}; the
    OpenAI SDK already unwraps to {"message", "type", "param", "code"}.
    """
    payload: Any = None
    for attr in ("body", "data"):
        value = getattr(error, attr, None)
        if isinstance(value, dict):
            payload = value
            break

    if payload is None:
        response = getattr(error, "response", None)
        if isinstance(response, httpx.Response):
            try:
                payload = response.json()
            except (ValueError, httpx.ResponseNotRead):
                payload = None

    if not isinstance(payload, dict):
        return None
    inner = payload.get("error")
    return inner if isinstance(inner, dict) else payload


def extract_message(error: BaseException) -> str:
    message = getattr(error, "message", None)
    if isinstance(message, str) and message:
        return message
    return str(error) or type(error).__name__


def extract_signals(error: BaseException) -> ErrorSignals:
    payload = extract_payload(error) or {}
    payload_status = payload.get("status")
    payload_message = payload.get("message")
    return ErrorSignals(
        status=extract_status(error),
        message=extract_message(error),
        payload_status=payload_status if isinstance(payload_status, str) else None,
        payload_message=payload_message if isinstance(payload_message, str) else None,
        has_param=bool(getattr(error, "param", None) or getattr(error, "parameter", None)),
    )


def parse_retry_after(text: str) -> Optional[int]:
    """
    Extract a retry delay from "Please retry in N.Ns" (rounded up).

    Example:
        >>> parse_retry_after("Quota exceeded. Please retry in 37.2s.")
        38
    """
    match = RETRY_DELAY_PATTERN.search(text)
    if match is None:
        return None
    try:
        return math.ceil(float(match.group(1)))
    except ValueError:
        return None


# =============================================================================
# ErrorClassifier
# =============================================================================


class ErrorClassifier:
    """
    Translates raw provider errors into ClassifiedError.

    Stateless apart from logging and metrics; a single instance is shared
    by all requests.

    Example:
        >>> classifier = ErrorClassifier()
        >>> error = classifier.classify("gemini", raw_error)
        >>> error.category
        <ErrorCategory.RATE_LIMITED: 'RATE_LIMITED'>
    """

    def classify(
        self, provider_id: Union[ProviderId, str], error: BaseException
    ) -> ClassifiedError:
        """
        Classify a raw error raised while calling a provider.

        A ClassifiedError is returned unchanged.

        Args:
            provider_id: Provider the failed call was made to.
            error: The raw exception.

        Returns:
            The ClassifiedError to raise (sync) or report (stream).
        """
        if isinstance(error, ClassifiedError):
            return error

        descriptor = PROVIDER_DESCRIPTORS[ProviderId(provider_id)]
        signals = extract_signals(error)
        classified = self._classify(descriptor, error, signals)

        logger.warning(
            "upstream_error_classified",
            provider=descriptor.id.value,
            category=classified.category.value,
            status=signals.status,
            payload_status=signals.payload_status,
            error_type=type(error).__name__,
            detail=signals.detail[:500],
        )
        record_provider_error(descriptor.id.value, classified.category.value)
        return classified

    def _classify(
        self,
        descriptor: ProviderDescriptor,
        error: BaseException,
        signals: ErrorSignals,
    ) -> ClassifiedError:
        provider = descriptor.id.value
        text = signals.text
        lowered = text.lower()
        detail = signals.detail.lower()

        if self._is_parameter_error(signals):
            return ClassifiedError(
                ErrorCategory.BAD_REQUEST,
                f"Invalid parameter: {signals.detail}",
                provider=provider,
            )

        if signals.status == 402 or "Insufficient Balance" in text:
            return ClassifiedError(
                ErrorCategory.INSUFFICIENT_BALANCE,
                self._insufficient_balance_message(descriptor),
                provider=provider,
            )

        if (
            signals.status == 429
            or signals.payload_status == "RESOURCE_EXHAUSTED"
            or "quota" in lowered
            or "rate limit" in lowered
        ):
            retry_after = parse_retry_after(signals.detail)
            return ClassifiedError(
                ErrorCategory.RATE_LIMITED,
                self._rate_limited_message(descriptor, signals.detail, retry_after),
                provider=provider,
                retry_after_seconds=retry_after,
            )

        if (
            signals.status == 403
            or signals.payload_status == "PERMISSION_DENIED"
            or "leaked" in text
        ):
            if "leaked" in text:
                return ClassifiedError(
                    ErrorCategory.FORBIDDEN_LEAKED,
                    "The API key was reported as leaked. Replace it with a new "
                    "key immediately.\n"
                    f"Environment variable: {descriptor.credential_env_key}\n"
                    f"Generate a new key at {descriptor.key_url}",
                    provider=provider,
                )
            return ClassifiedError(
                ErrorCategory.FORBIDDEN,
                "API key permission denied (403). Check that "
                f"{descriptor.credential_env_key} has sufficient permissions.",
                provider=provider,
            )

        if (
            signals.status == 401
            or "unauthorized" in detail
            or "invalid" in detail
            or "api key" in detail
        ):
            return ClassifiedError(
                ErrorCategory.UNAUTHORIZED,
                "API key authentication failed. Check that "
                f"{descriptor.credential_env_key} is configured correctly.",
                provider=provider,
            )

        if isinstance(error, TIMEOUT_ERRORS):
            message = (
                f"Call to {descriptor.display_name} model failed: "
                "the upstream request timed out"
            )
        else:
            message = f"Call to {descriptor.display_name} model failed: {signals.detail}"
        return ClassifiedError(ErrorCategory.INTERNAL, message, provider=provider)

    @staticmethod
    def _is_parameter_error(signals: ErrorSignals) -> bool:
        return (
            signals.has_param
            or "Invalid argument" in signals.detail
            or "must be" in signals.detail
        )

    @staticmethod
    def _insufficient_balance_message(descriptor: ProviderDescriptor) -> str:
        message = (
            f"Insufficient {descriptor.display_name} account balance. Check the "
            f"balance and top up at {descriptor.billing_url}"
        )
        if descriptor.id is ProviderId.DEEPSEEK:
            message += (
                "\nNewly registered accounts may need to be verified before "
                "the free quota is available."
            )
        return message

    @staticmethod
    def _rate_limited_message(
        descriptor: ProviderDescriptor, detail: str, retry_after: Optional[int]
    ) -> str:
        message = "API quota exhausted or rate limit reached."
        retry_hint = f"Retry in {retry_after} seconds" if retry_after else None

        if descriptor.id is ProviderId.GEMINI:
            message += "\n\nThe Google Gemini free tier quota is used up."
            if "preview" in detail or "gemini-3" in detail:
                message += (
                    "\nNote: preview models have a limited free tier quota."
                )
            steps = [
                "Wait for the quota to reset (usually daily)",
                f"Check quota usage: {GEMINI_USAGE_URL}",
                f"Read about rate limits: {GEMINI_RATE_LIMITS_URL}",
            ]
            if retry_hint:
                steps.append(retry_hint)
            message += "\n\nWhat you can do:"
            for number, step in enumerate(steps, start=1):
                message += f"\n{number}. {step}"
        elif descriptor.id is ProviderId.DEEPSEEK:
            message += (
                f"\n\nCheck the account quota and rate limits at {descriptor.billing_url}"
            )
            if retry_hint:
                message += f"\n{retry_hint}"
        else:
            message += "\n\nCheck the account quota and rate limit settings."
            if retry_hint:
                message += f"\n{retry_hint}"
        return message
