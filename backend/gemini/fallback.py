"""
Rate-limit retry policy shared by every Gemini call.

retry_with_backoff() runs one provider call against a single model. On a
rate-limited failure it waits and calls the same model again, up to
max_retries attempts in total. The wait is whatever the provider suggested
(never less than a second) or base_delay * 2**attempt.

Every other failure, and the last rate-limited one, is re-raised unchanged
together with its FailureKind so the orchestrator can decide what to do next.
"""

import asyncio
import logging
from typing import Awaitable, Callable, TypeVar

from gemini.config import MIN_SUGGESTED_DELAY_SECONDS
from gemini.errors import FailureKind, classify, suggested_retry_delay

logger = logging.getLogger(__name__)

T = TypeVar("T")

Sleep = Callable[[float], Awaitable[None]]


class ProviderFailure(Exception):
    """A provider exception after the retry policy has given up on it."""

    def __init__(self, kind: FailureKind, cause: BaseException):
        super().__init__(str(cause))
        self.kind = kind
        self.cause = cause


def backoff_delay(exc: BaseException, attempt: int, base_delay: float) -> float:
    suggested = suggested_retry_delay(exc)
    if suggested is not None:
        return max(suggested, MIN_SUGGESTED_DELAY_SECONDS)
    return base_delay * (2 ** attempt)


async def retry_with_backoff(
    call: Callable[[], Awaitable[T]],
    *,
    max_retries: int = 3,
    base_delay: float = 1.0,
    sleep: Sleep = asyncio.sleep,
    label: str = "",
) -> T:
    """
    Await call(), retrying rate-limited failures.

    Raises:
        ProviderFailure: carrying the FailureKind and the original exception.
    """
    attempts = max(1, max_retries)
    for attempt in range(attempts):
        try:
            return await call()
        except Exception as exc:
            kind = classify(exc)
            if kind is FailureKind.RATE_LIMITED and attempt < attempts - 1:
                delay = backoff_delay(exc, attempt, base_delay)
                logger.warning(
                    "Rate limit hit%s, retrying in %.1fs (attempt %d/%d)",
                    f" on {label}" if label else "", delay, attempt + 1, attempts,
                )
                await sleep(delay)
                continue
            raise ProviderFailure(kind, exc) from exc

    # unreachable: the last attempt either returns or raises
    raise AssertionError("retry loop exited without a result")
