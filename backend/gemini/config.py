"""
Gemini model and orchestration configuration.

Priority chain: GEMINI_MODEL first (or whichever model last answered in this
process), then the static fallbacks, then whatever the list-models endpoint
reports when discovery is enabled.

Override via env vars (e.g. in .env):
  GEMINI_MODEL=gemini-2.5-flash
  GEMINI_FALLBACK_MODELS=gemini-2.5-pro,gemini-2.0-flash
"""

import logging
import os

logger = logging.getLogger(__name__)


def _csv(name: str, default: str) -> list[str]:
    raw = os.environ.get(name, default)
    return [item.strip() for item in raw.split(",") if item.strip()]


def _flag(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


# ─── Models ───────────────────────────────────────────────────────────

DEFAULT_MODEL = os.environ.get("GEMINI_MODEL", "gemini-2.5-flash")
FALLBACK_MODELS = _csv("GEMINI_FALLBACK_MODELS", "gemini-2.5-pro,gemini-2.0-flash")
DISCOVER_MODELS = _flag("GEMINI_DISCOVER_MODELS", True)
EXCLUDED_MODEL_MARKERS = tuple(_csv("GEMINI_EXCLUDED_MODEL_MARKERS", "embed"))

# ─── Retry policy ─────────────────────────────────────────────────────

MAX_RETRIES = int(os.environ.get("GEMINI_MAX_RETRIES", "3"))
BASE_DELAY_SECONDS = float(os.environ.get("GEMINI_BASE_DELAY_SECONDS", "1.0"))
MIN_SUGGESTED_DELAY_SECONDS = 1.0

# Free tier allows ~5 requests/minute; 13s keeps the answer batch under it
ANSWER_DELAY_SECONDS = float(os.environ.get("ANSWER_DELAY_SECONDS", "13"))


def require_api_key() -> str:
    """Return GEMINI_API_KEY, raising RuntimeError when it is missing or blank."""
    api_key = (os.environ.get("GEMINI_API_KEY") or "").strip()
    if not api_key:
        raise RuntimeError(
            "GEMINI_API_KEY is not set. Add it to backend/.env and restart the server."
        )
    if not api_key.startswith("AIza"):
        logger.warning('GEMINI_API_KEY format looks incorrect; valid keys usually start with "AIza"')
    return api_key
