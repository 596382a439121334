"""
Generation orchestrator: retry, model fallback, caching, discovery, parsing.

All provider calls go to ScriptedProvider; sleeps are recorded, not waited.
"""

import asyncio

import pytest

from conftest import ScriptedProvider, api_error, not_found, rate_limited
from gemini.errors import (
    InvalidCredentials,
    MalformedResponse,
    NoModelAvailable,
    QuotaExceeded,
    UpstreamOther,
)
from gemini.orchestrator import dedupe
from gemini.shapes import JsonStringArray
from gemini.tasks import flashcards_shape

PROMPT = "Generate two questions"


def run(coro):
    return asyncio.run(coro)


class TestCandidates:

    def test_dedupe_keeps_first_occurrence(self):
        assert dedupe(["a", "b", "a", None, "c", "b"]) == ["a", "b", "c"]

    def test_default_then_fallbacks(self, make_orchestrator):
        orch = make_orchestrator(ScriptedProvider())
        assert orch.candidates() == ["model-a", "model-b", "model-c"]

    def test_cached_model_goes_first(self, make_orchestrator):
        orch = make_orchestrator(ScriptedProvider())
        orch.cached_model = "model-c"
        assert orch.candidates(["model-b", "model-c"]) == ["model-c", "model-b"]

    def test_empty_prompt_rejected(self, make_orchestrator):
        orch = make_orchestrator(ScriptedProvider({"model-a": ["x"]}))
        with pytest.raises(ValueError):
            run(orch.generate("   "))


class TestSuccess:

    def test_free_text_caches_model(self, make_orchestrator):
        provider = ScriptedProvider({"model-a": ["  hello  "]})
        orch = make_orchestrator(provider)

        assert run(orch.generate(PROMPT)) == "hello"
        assert orch.cached_model == "model-a"
        assert provider.calls == [("model-a", PROMPT)]

    def test_string_array_result_truncated(self, make_orchestrator):
        provider = ScriptedProvider({"model-a": ['["Q1?", "Q2?", "Q3?"]']})
        orch = make_orchestrator(provider)

        assert run(orch.generate(PROMPT, JsonStringArray(2))) == ["Q1?", "Q2?"]

    def test_identical_output_is_idempotent(self, make_orchestrator):
        provider = ScriptedProvider({"model-a": ['["Same?"]']})
        orch = make_orchestrator(provider)

        first = run(orch.generate(PROMPT, JsonStringArray(2)))
        second = run(orch.generate(PROMPT, JsonStringArray(2)))
        assert first == second == ["Same?"]


class TestRateLimitRetry:

    def test_retries_same_model_with_backoff(self, make_orchestrator, sleeper):
        provider = ScriptedProvider({"model-a": [rate_limited(), rate_limited(), "ok"]})
        orch = make_orchestrator(provider)

        assert run(orch.generate(PROMPT)) == "ok"
        assert provider.models_called == ["model-a", "model-a", "model-a"]
        assert sleeper.delays == [1.0, 2.0]

    def test_uses_provider_suggested_delay(self, make_orchestrator, sleeper):
        retry_info = [{"@type": "type.googleapis.com/google.rpc.RetryInfo", "retryDelay": "7s"}]
        provider = ScriptedProvider({"model-a": [rate_limited(details=retry_info), "ok"]})
        orch = make_orchestrator(provider)

        run(orch.generate(PROMPT))
        assert sleeper.delays == [7.0]

    def test_text_only_rate_limit_is_retried(self, make_orchestrator, sleeper):
        provider = ScriptedProvider({"model-a": [RuntimeError("429 Too Many Requests, retry in 2s"), "ok"]})
        orch = make_orchestrator(provider)

        assert run(orch.generate(PROMPT)) == "ok"
        assert sleeper.delays == [2.0]

    def test_exhausted_retries_do_not_fall_through(self, make_orchestrator, sleeper):
        provider = ScriptedProvider({"model-a": [rate_limited()], "model-b": ["should not be used"]})
        orch = make_orchestrator(provider)

        with pytest.raises(QuotaExceeded) as excinfo:
            run(orch.generate(PROMPT))

        assert provider.models_called == ["model-a"] * 3
        assert "model-b" not in provider.models_called
        assert sleeper.delays == [1.0, 2.0]
        assert excinfo.value.attempted_models == ["model-a"]
        assert orch.cached_model is None

    def test_max_retries_one_means_single_attempt(self, make_orchestrator, sleeper):
        provider = ScriptedProvider({"model-a": [rate_limited()]})
        orch = make_orchestrator(provider, max_retries=1)

        with pytest.raises(QuotaExceeded):
            run(orch.generate(PROMPT))
        assert provider.models_called == ["model-a"]
        assert sleeper.delays == []


class TestModelFallback:

    def test_unavailable_model_falls_through_and_caches_winner(self, make_orchestrator):
        provider = ScriptedProvider({"model-a": [not_found("model-a")], "model-b": ['["From B?"]']})
        orch = make_orchestrator(provider)

        assert run(orch.generate(PROMPT, JsonStringArray(2))) == ["From B?"]
        assert orch.cached_model == "model-b"

        # next call with no candidate list starts from the cached model
        provider.calls.clear()
        run(orch.generate(PROMPT, JsonStringArray(2)))
        assert provider.models_called == ["model-b"]

    def test_unavailable_is_not_retried(self, make_orchestrator, sleeper):
        provider = ScriptedProvider({"model-a": [not_found("model-a")], "model-b": ["ok"]})
        orch = make_orchestrator(provider)

        run(orch.generate(PROMPT))
        assert provider.models_called == ["model-a", "model-b"]
        assert sleeper.delays == []

    def test_explicit_candidates_replace_fallbacks(self, make_orchestrator):
        provider = ScriptedProvider({"model-z": ["ok"]})
        orch = make_orchestrator(provider)

        assert run(orch.generate(PROMPT, candidate_models=["model-a", "model-z"])) == "ok"
        assert provider.models_called == ["model-a", "model-z"]

    def test_all_unavailable_names_every_model(self, make_orchestrator):
        orch = make_orchestrator(ScriptedProvider())

        with pytest.raises(NoModelAvailable) as excinfo:
            run(orch.generate(PROMPT))

        assert excinfo.value.attempted_models == ["model-a", "model-b", "model-c"]
        for model in ("model-a", "model-b", "model-c"):
            assert model in str(excinfo.value)
        assert orch.cached_model is None

    def test_stale_cache_rediscovers(self, make_orchestrator):
        provider = ScriptedProvider({"model-a": [not_found("model-a")], "model-c": ["ok"]})
        orch = make_orchestrator(provider)
        orch.cached_model = "model-b"

        assert run(orch.generate(PROMPT)) == "ok"
        assert provider.models_called == ["model-b", "model-c"]
        assert orch.cached_model == "model-c"

    def test_other_failure_aborts(self, make_orchestrator):
        provider = ScriptedProvider({
            "model-a": [api_error(500, "INTERNAL", "An internal error has occurred.")],
            "model-b": ["unused"],
        })
        orch = make_orchestrator(provider)

        with pytest.raises(UpstreamOther) as excinfo:
            run(orch.generate(PROMPT))
        assert provider.models_called == ["model-a"]
        assert "internal error" in excinfo.value.provider_message

    def test_invalid_credentials_abort(self, make_orchestrator):
        provider = ScriptedProvider({"model-a": [api_error(403, "PERMISSION_DENIED", "Permission denied")]})
        orch = make_orchestrator(provider)

        with pytest.raises(InvalidCredentials):
            run(orch.generate(PROMPT))
        assert provider.models_called == ["model-a"]


class TestDiscovery:

    def test_listed_models_tried_after_static_list(self, make_orchestrator):
        provider = ScriptedProvider(
            {"listed-flash": ["from listing"]},
            listed_models=["text-embedding-004", "model-b", "listed-flash"],
        )
        orch = make_orchestrator(provider, discover_models=True)

        assert run(orch.generate(PROMPT)) == "from listing"
        assert provider.models_called == ["model-a", "model-b", "model-c", "listed-flash"]
        assert orch.cached_model == "listed-flash"

    def test_listing_not_consulted_when_static_list_succeeds(self, make_orchestrator):
        provider = ScriptedProvider({"model-a": ["ok"]}, listed_models=["other"])
        orch = make_orchestrator(provider, discover_models=True)

        run(orch.generate(PROMPT))
        assert provider.list_calls == 0

    def test_listing_failure_yields_no_model(self, make_orchestrator):
        provider = ScriptedProvider(list_error=RuntimeError("network down"))
        orch = make_orchestrator(provider, discover_models=True)

        with pytest.raises(NoModelAvailable) as excinfo:
            run(orch.generate(PROMPT))
        assert excinfo.value.attempted_models == ["model-a", "model-b", "model-c"]

    def test_excluded_markers_are_configurable(self, make_orchestrator):
        provider = ScriptedProvider(
            {"aqa": ["unused"], "flash-lite": ["ok"]},
            listed_models=["aqa", "flash-lite"],
        )
        orch = make_orchestrator(provider, discover_models=True, excluded_model_markers=("embed", "aqa"))

        assert run(orch.generate(PROMPT)) == "ok"
        assert "aqa" not in provider.models_called


class TestMalformedResponse:

    def test_shape_failure_is_not_retried_or_fallen_through(self, make_orchestrator, sleeper):
        provider = ScriptedProvider({"model-a": ["I cannot produce flashcards."], "model-b": ['[{"front": "x"}]']})
        orch = make_orchestrator(provider)

        with pytest.raises(MalformedResponse) as excinfo:
            run(orch.generate(PROMPT, flashcards_shape(3)))

        assert excinfo.value.attempted_models == ["model-a"]
        assert provider.models_called == ["model-a"]
        assert sleeper.delays == []
        # the provider answered, so the model is still recorded as working
        assert orch.cached_model == "model-a"
