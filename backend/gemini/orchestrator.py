"""
Generation orchestrator.

Turns a prompt plus a response shape into a parsed result:

  1. Candidates = [cached model or default, *candidate_models or fallbacks],
     de-duplicated keeping first occurrence.
  2. Each candidate is called through the rate-limit retry policy.
       success            → cache the model, parse, return
       model unavailable  → try the next candidate
       anything else      → raise (later candidates are never contacted)
  3. Static candidates exhausted → optionally ask list-models for more.
  4. Nothing left → NoModelAvailable naming every model tried.

The cached model lives on the instance; one orchestrator is shared by the
whole process. Concurrent calls may both discover and write the same
winner, which is harmless.
"""

import asyncio
import logging
from typing import Any, Iterable, Optional, Protocol, Sequence

from gemini import config
from gemini.errors import (
    FailureKind,
    MalformedResponse,
    NoModelAvailable,
    error_text,
    to_generation_error,
)
from gemini.fallback import ProviderFailure, Sleep, retry_with_backoff
from gemini.shapes import FREE_TEXT

logger = logging.getLogger(__name__)


class Provider(Protocol):
    async def generate_text(self, model: str, prompt: str) -> str: ...

    async def list_models(self) -> list[str]: ...


class ResponseShape(Protocol):
    def parse(self, raw: str) -> Any: ...


def dedupe(models: Iterable[Optional[str]]) -> list[str]:
    return list(dict.fromkeys(m for m in models if m))


class GenerationOrchestrator:
    def __init__(
        self,
        provider: Provider,
        *,
        default_model: str = config.DEFAULT_MODEL,
        fallback_models: Sequence[str] = tuple(config.FALLBACK_MODELS),
        max_retries: int = config.MAX_RETRIES,
        base_delay: float = config.BASE_DELAY_SECONDS,
        discover_models: bool = config.DISCOVER_MODELS,
        excluded_model_markers: Sequence[str] = config.EXCLUDED_MODEL_MARKERS,
        sleep: Sleep = asyncio.sleep,
    ):
        self.provider = provider
        self.default_model = default_model
        self.fallback_models = list(fallback_models)
        self.max_retries = max_retries
        self.base_delay = base_delay
        self.discover_models = discover_models
        self.excluded_model_markers = tuple(excluded_model_markers)
        self.sleep = sleep
        self.cached_model: Optional[str] = None

    def candidates(self, candidate_models: Optional[Sequence[str]] = None) -> list[str]:
        alternates = candidate_models if candidate_models else self.fallback_models
        return dedupe([self.cached_model or self.default_model, *alternates])

    async def generate(
        self,
        prompt: str,
        shape: ResponseShape = FREE_TEXT,
        candidate_models: Optional[Sequence[str]] = None,
    ) -> Any:
        """
        Generate and parse a completion for prompt.

        Raises:
            ValueError: prompt is empty.
            GenerationError: one of InvalidCredentials, QuotaExceeded,
                NoModelAvailable, MalformedResponse, UpstreamOther.
        """
        if not isinstance(prompt, str) or not prompt.strip():
            raise ValueError("prompt must be a non-empty string")

        attempted: list[str] = []
        last_unavailable: Optional[BaseException] = None

        for model in self.candidates(candidate_models):
            raw, failure = await self._attempt(model, prompt, attempted)
            if failure is None:
                return self._parse(shape, raw, attempted)
            last_unavailable = failure

        if self.discover_models:
            for model in await self._discovered_models(exclude=attempted):
                raw, failure = await self._attempt(model, prompt, attempted)
                if failure is None:
                    return self._parse(shape, raw, attempted)
                last_unavailable = failure

        logger.error("No Gemini model answered; tried %s", attempted)
        raise NoModelAvailable(
            f"None of the available Gemini models are accessible. Tried: {', '.join(attempted)}",
            attempted,
            error_text(last_unavailable) if last_unavailable else None,
        )

    async def _attempt(
        self, model: str, prompt: str, attempted: list[str]
    ) -> tuple[Optional[str], Optional[BaseException]]:
        """
        One candidate, with retries.

        Returns (raw_text, None) on success or (None, cause) when the model is
        unavailable. Any other failure is raised as a GenerationError.
        """
        attempted.append(model)
        try:
            raw = await retry_with_backoff(
                lambda: self.provider.generate_text(model, prompt),
                max_retries=self.max_retries,
                base_delay=self.base_delay,
                sleep=self.sleep,
                label=model,
            )
        except ProviderFailure as failure:
            if failure.kind is FailureKind.MODEL_UNAVAILABLE:
                logger.warning(
                    "Model %s not available, trying alternatives: %s",
                    model, error_text(failure.cause)[:100],
                )
                return None, failure.cause
            logger.error("Gemini call on %s failed (%s): %s", model, failure.kind.value, failure.cause)
            raise to_generation_error(failure.kind, failure.cause, attempted) from failure.cause

        if self.cached_model != model:
            logger.info("Cached working model: %s", model)
        self.cached_model = model
        return raw, None

    def _parse(self, shape: ResponseShape, raw: str, attempted: list[str]) -> Any:
        try:
            return shape.parse(raw)
        except MalformedResponse as exc:
            exc.attempted_models = list(attempted)
            exc.provider_message = exc.provider_message or raw[:500]
            logger.warning("Could not parse response from %s: %s", attempted[-1], exc)
            raise

    async def _discovered_models(self, exclude: Sequence[str]) -> list[str]:
        try:
            listed = await self.provider.list_models()
        except Exception as exc:
            logger.warning("Could not list Gemini models: %s", exc)
            return []

        candidates = [
            name for name in listed
            if not any(marker in name for marker in self.excluded_model_markers)
        ]
        return [name for name in dedupe(candidates) if name not in exclude]
