"""
Shared fixtures: a scripted Gemini provider and a recording sleep, so the
orchestrator can be exercised without network access or real delays.
"""

import pytest
from fastapi.testclient import TestClient
from google.genai import errors as genai_errors

import store
from deps import get_orchestrator
from gemini.orchestrator import GenerationOrchestrator


def api_error(code: int, status: str, message: str, details=None) -> genai_errors.APIError:
    """A real google-genai APIError as raised by client.aio.models.generate_content."""
    body = {"error": {"code": code, "message": message, "status": status}}
    if details is not None:
        body["error"]["details"] = details
    cls = genai_errors.ServerError if code >= 500 else genai_errors.ClientError
    return cls(code, body)


def rate_limited(message: str = "Resource has been exhausted (e.g. check quota).", details=None):
    return api_error(429, "RESOURCE_EXHAUSTED", message, details)


def not_found(model: str = "gemini-x"):
    return api_error(
        404, "NOT_FOUND",
        f"models/{model} is not found for API version v1beta, or is not supported for generateContent.",
    )


class ScriptedProvider:
    """
    Per-model scripts of outcomes, consumed in order. An outcome is either
    the raw text to return or an exception to raise. The last outcome of a
    script repeats once the script is exhausted.
    """

    def __init__(self, scripts=None, listed_models=None, list_error=None):
        self.scripts = {model: list(outcomes) for model, outcomes in (scripts or {}).items()}
        self.listed_models = listed_models or []
        self.list_error = list_error
        self.calls: list[tuple[str, str]] = []
        self.list_calls = 0

    async def generate_text(self, model: str, prompt: str) -> str:
        self.calls.append((model, prompt))
        script = self.scripts.get(model)
        if not script:
            raise not_found(model)
        outcome = script.pop(0) if len(script) > 1 else script[0]
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome

    async def list_models(self) -> list[str]:
        self.list_calls += 1
        if self.list_error is not None:
            raise self.list_error
        return list(self.listed_models)

    @property
    def models_called(self) -> list[str]:
        return [model for model, _ in self.calls]


class RecordingSleep:
    def __init__(self):
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


@pytest.fixture
def sleeper() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def make_orchestrator(sleeper):
    def _make(provider, **kwargs) -> GenerationOrchestrator:
        kwargs.setdefault("default_model", "model-a")
        kwargs.setdefault("fallback_models", ["model-b", "model-c"])
        kwargs.setdefault("max_retries", 3)
        kwargs.setdefault("base_delay", 1.0)
        kwargs.setdefault("discover_models", False)
        return GenerationOrchestrator(provider, sleep=sleeper, **kwargs)
    return _make


@pytest.fixture
def api(make_orchestrator):
    """
    TestClient bound to a scripted provider. Call with a ScriptedProvider;
    returns (client, orchestrator). Lifespan is not run, so no API key is needed.
    """
    from main import app

    store.clear()

    def _client(provider):
        orchestrator = make_orchestrator(provider)
        app.dependency_overrides[get_orchestrator] = lambda: orchestrator
        return TestClient(app, headers={"X-User-Id": "user-1"}), orchestrator

    yield _client

    app.dependency_overrides.clear()
    store.clear()
