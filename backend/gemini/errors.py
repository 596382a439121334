"""
Gemini failure taxonomy.

Provider exceptions are classified into a FailureKind from the structured
status carried by google.genai.errors.APIError. Message matching is only
used for exceptions that carry no status code (transport errors, wrappers).

Callers see GenerationError subclasses, each with a user-facing message.
"""

import re
from enum import Enum
from typing import Optional, Sequence

from google.genai import errors as genai_errors


class FailureKind(str, Enum):
    RATE_LIMITED = "rate_limited"
    MODEL_UNAVAILABLE = "model_unavailable"
    INVALID_CREDENTIALS = "invalid_credentials"
    OTHER = "other"


# ─── Exceptions surfaced to callers ───────────────────────────────────

class GenerationError(Exception):
    """Base class for every failure the orchestrator surfaces."""

    user_message = "The AI assistant encountered an error. Please try again."

    def __init__(
        self,
        message: str,
        attempted_models: Sequence[str] = (),
        provider_message: Optional[str] = None,
    ):
        super().__init__(message)
        self.attempted_models = list(attempted_models)
        self.provider_message = provider_message


class InvalidCredentials(GenerationError):
    user_message = (
        "Invalid or missing Gemini API key. Please check your GEMINI_API_KEY in .env file."
    )


class QuotaExceeded(GenerationError):
    user_message = (
        "Gemini API quota exceeded. Please wait a moment and try again, "
        "or check your API usage limits."
    )


class NoModelAvailable(GenerationError):
    user_message = (
        "None of the available Gemini models are accessible. "
        "Please check your API key and model availability."
    )


class MalformedResponse(GenerationError):
    user_message = "Failed to parse AI response. Please try again."


class UpstreamOther(GenerationError):
    pass


class EmptyResponseError(Exception):
    """Raised by the provider when a response carries no text (e.g. safety block)."""


# ─── Classification ───────────────────────────────────────────────────

_RATE_LIMIT_STATUSES = {"RESOURCE_EXHAUSTED"}
_UNAVAILABLE_STATUSES = {"NOT_FOUND"}
_CREDENTIAL_STATUSES = {"UNAUTHENTICATED", "PERMISSION_DENIED"}

_RETRY_IN_RE = re.compile(r"retry in ([\d.]+)\s*s", re.IGNORECASE)
_DURATION_RE = re.compile(r"^([\d.]+)s$")


def error_text(exc: BaseException) -> str:
    message = getattr(exc, "message", None)
    return str(message) if message else str(exc)


def classify(exc: BaseException) -> FailureKind:
    """Map a provider exception to a FailureKind."""
    if isinstance(exc, genai_errors.APIError) or isinstance(getattr(exc, "code", None), int):
        return _classify_status(exc)
    return _classify_text(str(exc))


def _classify_status(exc: BaseException) -> FailureKind:
    code = getattr(exc, "code", None)
    status = (getattr(exc, "status", None) or "").upper()
    text = error_text(exc).lower()

    if code == 429 or status in _RATE_LIMIT_STATUSES:
        return FailureKind.RATE_LIMITED
    if code == 404 or status in _UNAVAILABLE_STATUSES:
        return FailureKind.MODEL_UNAVAILABLE
    if code in (401, 403) or status in _CREDENTIAL_STATUSES:
        return FailureKind.INVALID_CREDENTIALS
    # Gemini answers a bad key with 400 INVALID_ARGUMENT
    if code == 400 and "api key" in text:
        return FailureKind.INVALID_CREDENTIALS
    return FailureKind.OTHER


def _classify_text(text: str) -> FailureKind:
    lowered = text.lower()
    if "429" in lowered or "quota" in lowered or "too many requests" in lowered:
        return FailureKind.RATE_LIMITED
    if "404" in lowered or "not found" in lowered:
        return FailureKind.MODEL_UNAVAILABLE
    if "api key" in lowered or "403" in lowered:
        return FailureKind.INVALID_CREDENTIALS
    return FailureKind.OTHER


def suggested_retry_delay(exc: BaseException) -> Optional[float]:
    """
    Seconds the provider asked us to wait, or None.

    Looks for a google.rpc.RetryInfo entry in the error body first, then for
    a "retry in N s" phrase in the message.
    """
    body = getattr(exc, "details", None)
    if isinstance(body, dict):
        error = body.get("error", body)
        for detail in error.get("details") or []:
            if not isinstance(detail, dict):
                continue
            if not str(detail.get("@type", "")).endswith("RetryInfo"):
                continue
            match = _DURATION_RE.match(str(detail.get("retryDelay", "")).strip())
            if match:
                return float(match.group(1))

    match = _RETRY_IN_RE.search(error_text(exc))
    if match:
        try:
            return float(match.group(1))
        except ValueError:
            return None
    return None


def to_generation_error(
    kind: FailureKind,
    exc: BaseException,
    attempted_models: Sequence[str],
) -> GenerationError:
    """Wrap a classified provider failure in the matching GenerationError."""
    provider_message = error_text(exc)
    tried = ", ".join(attempted_models)
    if kind is FailureKind.RATE_LIMITED:
        return QuotaExceeded(
            f"Gemini API quota exceeded after retries (tried: {tried}): {provider_message}",
            attempted_models, provider_message,
        )
    if kind is FailureKind.INVALID_CREDENTIALS:
        return InvalidCredentials(
            f"Gemini rejected the API key: {provider_message}",
            attempted_models, provider_message,
        )
    if kind is FailureKind.MODEL_UNAVAILABLE:
        return NoModelAvailable(
            f"None of the available Gemini models are accessible. Tried: {tried}",
            attempted_models, provider_message,
        )
    return UpstreamOther(
        f"Gemini request failed: {provider_message}",
        attempted_models, provider_message,
    )
