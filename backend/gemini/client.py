"""
Gemini provider.

Thin async wrapper over google-genai exposing the two endpoints the
orchestrator needs: generate-content for one model, and list-models.

Edge cases handled:
  - Safety-blocked prompts and empty candidates (EmptyResponseError)
  - Model names returned as "models/<id>" by list-models
  - Non-generative models in the listing (filtered by supported actions)
"""

import logging
from typing import Optional

from google import genai
from google.genai import types

from gemini.errors import EmptyResponseError

logger = logging.getLogger(__name__)

# ─── Limits ────────────────────────────────────────────────────────────

MAX_OUTPUT_TOKENS = 4096
TEMPERATURE = 0.7


# ─── Response extractor ───────────────────────────────────────────────

def _extract_text(response) -> str:
    """
    Pull text from a Gemini response, handling:
      - Normal text responses
      - Blocked prompts (prompt_feedback.block_reason)
      - Responses whose .text is empty but candidates carry parts
    """
    text = getattr(response, "text", None)
    if text and text.strip():
        return text.strip()

    feedback = getattr(response, "prompt_feedback", None)
    block_reason = getattr(feedback, "block_reason", None) if feedback else None
    if block_reason:
        raise EmptyResponseError(f"Prompt was blocked by content filters ({block_reason})")

    for candidate in getattr(response, "candidates", None) or []:
        content = getattr(candidate, "content", None)
        for part in getattr(content, "parts", None) or []:
            part_text = getattr(part, "text", None)
            if part_text and part_text.strip():
                return part_text.strip()

    raise EmptyResponseError("Gemini returned an empty response")


# ─── Provider ─────────────────────────────────────────────────────────

class GeminiProvider:
    """Async generate/list calls against the Gemini API for a single API key."""

    def __init__(self, api_key: str, client: Optional[genai.Client] = None):
        self._client = client or genai.Client(api_key=api_key)
        self._config = types.GenerateContentConfig(
            max_output_tokens=MAX_OUTPUT_TOKENS,
            temperature=TEMPERATURE,
        )

    async def generate_text(self, model: str, prompt: str) -> str:
        response = await self._client.aio.models.generate_content(
            model=model,
            contents=[{"role": "user", "parts": [{"text": prompt}]}],
            config=self._config,
        )
        return _extract_text(response)

    async def list_models(self) -> list[str]:
        """Model ids that support generateContent, in the order the API lists them."""
        names: list[str] = []
        pager = await self._client.aio.models.list()
        async for model in pager:
            name = (model.name or "").removeprefix("models/")
            if not name:
                continue
            actions = getattr(model, "supported_actions", None)
            if actions and "generateContent" not in actions:
                continue
            names.append(name)
        logger.info("Available models from API: %s", names)
        return names
