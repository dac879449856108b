"""Tests for the ingredient classifier clients and router."""

import os
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import anthropic
import httpx
import pytest

from label_lens.classifier.classifier_types import (
    ClassificationResult,
    parse_classification,
    parse_json_response,
)
from label_lens.classifier.classifier_router import (
    ClassifierRouter,
    ClassifierStats,
    get_classifier_router,
    reset_classifier_router,
)
from label_lens.classifier.claude_classifier import ClaudeClassifier
from label_lens.classifier.http_classifier import HttpClassifier
from label_lens.classifier.ollama_classifier import OllamaClassifier
from label_lens.config import LensConfig


# ---------------------------------------------------------------------------
# Wire contract
# ---------------------------------------------------------------------------

class TestParseClassification:
    def test_list(self):
        result = parse_classification({"bad_ingredients": ["Sugar", "Red 40"]})
        assert result.ok
        assert result.bad_ingredients == ["Sugar", "Red 40"]

    def test_absent_is_empty(self):
        result = parse_classification({})
        assert result.ok
        assert result.bad_ingredients == []

    def test_null_is_empty(self):
        assert parse_classification({"bad_ingredients": None}).bad_ingredients == []

    def test_single_string(self):
        assert parse_classification({"bad_ingredients": "Dextrose"}).bad_ingredients == [
            "Dextrose"
        ]

    def test_junk_items_dropped(self):
        result = parse_classification({"bad_ingredients": [" Sugar ", "", 7, None]})
        assert result.bad_ingredients == ["Sugar"]

    def test_error(self):
        result = parse_classification({"error": "Failed to analyze"})
        assert result.ok is False
        assert result.error == "Failed to analyze"

    def test_parse_error(self):
        result = parse_classification({"parse_error": "not json"})
        assert result.ok is False

    def test_non_dict(self):
        assert parse_classification(["Sugar"]).ok is False


class TestParseJsonResponse:
    def test_direct(self):
        assert parse_json_response('{"bad_ingredients": []}') == {"bad_ingredients": []}

    def test_markdown(self):
        text = '```json\n{"bad_ingredients": ["Sugar"]}\n```'
        assert parse_json_response(text)["bad_ingredients"] == ["Sugar"]

    def test_bare_object(self):
        text = 'Here you go: {"bad_ingredients": ["Syrup"]} hope that helps'
        assert parse_json_response(text)["bad_ingredients"] == ["Syrup"]

    def test_invalid(self):
        assert "parse_error" in parse_json_response("no json here")


# ---------------------------------------------------------------------------
# HttpClassifier
# ---------------------------------------------------------------------------

def _mock_transport(handler):
    """Patch httpx.AsyncClient so every client uses a MockTransport."""
    real_client = httpx.AsyncClient

    def factory(*args, **kwargs):
        kwargs["transport"] = httpx.MockTransport(handler)
        return real_client(*args, **kwargs)

    return patch("httpx.AsyncClient", side_effect=factory)


class TestHttpClassifier:
    @pytest.mark.asyncio
    async def test_posts_text(self):
        seen = {}

        def handler(request):
            seen["body"] = request.content
            return httpx.Response(200, json={"bad_ingredients": ["Sugar"]})

        client = HttpClassifier("http://analyze.test/api/analyze")
        with _mock_transport(handler):
            result = await client.classify("INGREDIENTS: SUGAR")

        assert result.bad_ingredients == ["Sugar"]
        assert result.provider == "http"
        assert b'"text"' in seen["body"]
        assert client.call_count == 1

    @pytest.mark.asyncio
    async def test_server_error(self):
        def handler(request):
            return httpx.Response(500, json={"error": "Failed to analyze"})

        client = HttpClassifier("http://analyze.test/api/analyze")
        with _mock_transport(handler):
            result = await client.classify("SUGAR")

        assert result.ok is False
        assert result.error == "Failed to analyze"

    @pytest.mark.asyncio
    async def test_status_without_body(self):
        def handler(request):
            return httpx.Response(502, text="bad gateway")

        client = HttpClassifier("http://analyze.test/api/analyze")
        with _mock_transport(handler):
            result = await client.classify("SUGAR")

        assert result.error == "API Error 502"

    @pytest.mark.asyncio
    async def test_connection_error(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        client = HttpClassifier("http://analyze.test/api/analyze")
        with _mock_transport(handler):
            result = await client.classify("SUGAR")

        assert result.ok is False
        assert "refused" in result.error

    def test_stats_initial(self):
        stats = HttpClassifier("http://analyze.test").get_stats()
        assert stats["call_count"] == 0
        assert stats["avg_time_ms"] == 0.0


# ---------------------------------------------------------------------------
# OllamaClassifier
# ---------------------------------------------------------------------------

class TestOllamaClassifier:
    @pytest.fixture
    def client(self):
        return OllamaClassifier(
            ollama_host="http://localhost:11434",
            model="qwen2.5:7b",
            verbose=False,
        )

    @pytest.mark.asyncio
    async def test_is_available_when_down(self):
        client = OllamaClassifier(ollama_host="http://127.0.0.1:1", verbose=False)
        assert await client.is_available() is False

    @pytest.mark.asyncio
    async def test_is_available_cached(self, client):
        client._available = True
        assert await client.is_available() is True
        client._available = False
        assert await client.is_available() is False

    @pytest.mark.asyncio
    async def test_is_available_checks_model(self, client):
        def handler(request):
            return httpx.Response(200, json={"models": [{"name": "qwen2.5:7b"}]})

        with _mock_transport(handler):
            assert await client.is_available() is True

    @pytest.mark.asyncio
    async def test_unavailable_returns_error(self, client):
        client._available = False
        result = await client.classify("SUGAR")
        assert result.ok is False
        assert result.provider == "ollama"

    @pytest.mark.asyncio
    async def test_classify_with_mock(self, client):
        client._available = True
        client._call_ollama = AsyncMock(return_value={"bad_ingredients": ["Corn Syrup"]})

        result = await client.classify("CORN SYRUP, SALT")
        assert result.bad_ingredients == ["Corn Syrup"]
        client._call_ollama.assert_awaited_once_with("CORN SYRUP, SALT")

    @pytest.mark.asyncio
    async def test_classify_call_failure(self, client):
        client._available = True
        client._call_ollama = AsyncMock(side_effect=RuntimeError("Ollama error: 500"))

        result = await client.classify("SUGAR")
        assert result.ok is False
        assert "500" in result.error

    @pytest.mark.asyncio
    async def test_call_ollama_parses_response(self, client):
        def handler(request):
            return httpx.Response(
                200, json={"response": '{"bad_ingredients": ["Dextrose"]}'}
            )

        with _mock_transport(handler):
            payload = await client._call_ollama("DEXTROSE")
        assert payload == {"bad_ingredients": ["Dextrose"]}
        assert client.call_count == 1

    def test_get_stats_initial(self, client):
        stats = client.get_stats()
        assert stats["call_count"] == 0
        assert stats["cost"] == 0.0
        assert stats["model"] == "qwen2.5:7b"


# ---------------------------------------------------------------------------
# ClaudeClassifier
# ---------------------------------------------------------------------------

class TestClaudeClassifier:
    @pytest.fixture
    def client(self, monkeypatch):
        monkeypatch.setenv("ANTHROPIC_API_KEY", "test-key")
        client = ClaudeClassifier(verbose=False)
        client.client = MagicMock()
        return client

    def _reply(self, *content):
        return SimpleNamespace(content=list(content))

    def test_requires_key(self, monkeypatch):
        monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)
        with pytest.raises(ValueError, match="ANTHROPIC_API_KEY"):
            ClaudeClassifier(verbose=False)

    def test_classify_sync(self, client):
        client.client.messages.create.return_value = self._reply(
            SimpleNamespace(type="text", text='```json\n{"bad_ingredients": ["Red 40"]}\n```')
        )

        result = client.classify_sync("SUGAR, RED 40")
        assert result.bad_ingredients == ["Red 40"]
        assert result.provider == "claude"
        assert client.get_call_count() == 1
        kwargs = client.client.messages.create.call_args.kwargs
        assert kwargs["messages"] == [{"role": "user", "content": "SUGAR, RED 40"}]

    def test_api_error(self, client):
        request = httpx.Request("POST", "https://api.anthropic.com/v1/messages")
        client.client.messages.create.side_effect = anthropic.APIConnectionError(
            request=request
        )

        result = client.classify_sync("SUGAR")
        assert result.ok is False
        assert result.provider == "claude"

    def test_empty_content(self, client):
        client.client.messages.create.return_value = self._reply()

        result = client.classify_sync("SUGAR")
        assert result.ok is False
        assert "no text content" in result.error

    def test_non_text_content(self, client):
        client.client.messages.create.return_value = self._reply(
            SimpleNamespace(type="tool_use")
        )

        result = client.classify_sync("SUGAR")
        assert result.ok is False

    @pytest.mark.asyncio
    async def test_empty_content_through_router(self, client):
        client.client.messages.create.return_value = self._reply()
        router = ClassifierRouter(provider="claude", verbose=False)
        router._claude_client = client

        result = await router.classify("SUGAR")
        assert result.ok is False
        assert router.stats.errors == 1
        assert router.stats.claude_calls == 1


# ---------------------------------------------------------------------------
# ClassifierRouter
# ---------------------------------------------------------------------------

class TestClassifierRouter:
    @pytest.fixture
    def router(self):
        return ClassifierRouter(provider="ollama", verbose=False)

    def _ollama(self, result):
        client = OllamaClassifier(verbose=False)
        client._available = True
        client._call_ollama = AsyncMock(return_value=result)
        return client

    def test_init(self):
        assert ClassifierRouter(provider="AUTO", verbose=False).provider == "auto"

    def test_stats_initial(self, router):
        stats = router.get_stats()
        assert stats["total_calls"] == 0
        assert stats["total_cost_usd"] == 0.0
        assert stats["provider"] == "ollama"

    def test_ollama_property(self, router):
        assert isinstance(router.ollama, OllamaClassifier)

    def test_http_requires_url(self, router):
        assert router.http is None
        r = ClassifierRouter(provider="http", classifier_url="http://x.test", verbose=False)
        assert isinstance(r.http, HttpClassifier)

    def test_claude_property_no_key(self):
        old_key = os.environ.pop("ANTHROPIC_API_KEY", None)
        try:
            r = ClassifierRouter(provider="claude", verbose=False)
            assert r.claude is None
        finally:
            if old_key:
                os.environ["ANTHROPIC_API_KEY"] = old_key

    @pytest.mark.asyncio
    async def test_ollama_provider(self, router):
        router._ollama_client = self._ollama({"bad_ingredients": ["Sugar"]})

        result = await router.classify("SUGAR")
        assert result.bad_ingredients == ["Sugar"]
        assert router.stats.ollama_calls == 1
        assert router.get_call_count() == 1

    @pytest.mark.asyncio
    async def test_http_provider_without_url(self):
        r = ClassifierRouter(provider="http", verbose=False)
        result = await r.classify("SUGAR")
        assert result.ok is False
        assert r.stats.errors == 1

    @pytest.mark.asyncio
    async def test_auto_prefers_endpoint(self):
        r = ClassifierRouter(provider="auto", classifier_url="http://x.test", verbose=False)
        r._http_client = MagicMock()
        r._http_client.classify = AsyncMock(
            return_value=ClassificationResult(bad_ingredients=["Salt"], provider="http")
        )
        r._ollama_client = self._ollama({"bad_ingredients": ["Sugar"]})

        result = await r.classify("SALT")
        assert result.bad_ingredients == ["Salt"]
        assert r.stats.http_calls == 1
        assert r.stats.ollama_calls == 0

    @pytest.mark.asyncio
    async def test_auto_uses_ollama(self):
        r = ClassifierRouter(provider="auto", verbose=False)
        r._ollama_client = self._ollama({"bad_ingredients": ["Syrup"]})

        result = await r.classify("SYRUP")
        assert result.bad_ingredients == ["Syrup"]
        assert r.stats.claude_calls == 0

    @pytest.mark.asyncio
    async def test_auto_falls_back_to_claude(self):
        r = ClassifierRouter(provider="auto", verbose=False)
        r._ollama_client = self._ollama({"error": "model crashed"})
        r._claude_client = MagicMock()
        r._claude_client.classify = AsyncMock(
            return_value=ClassificationResult(bad_ingredients=["Red 40"], provider="claude")
        )

        result = await r.classify("RED 40")
        assert result.bad_ingredients == ["Red 40"]
        assert r.stats.claude_calls == 1
        assert r.stats.errors == 1

    @pytest.mark.asyncio
    async def test_auto_ollama_failure_counted_once(self, monkeypatch):
        monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)
        r = ClassifierRouter(provider="auto", verbose=False)
        r._ollama_client = self._ollama({"error": "model crashed"})

        result = await r.classify("SUGAR")
        assert result.ok is False
        assert result.error == "model crashed"
        assert r.stats.errors == 1

    def test_from_config(self):
        config = LensConfig(provider="HTTP", classifier_url="http://x.test/analyze")
        r = ClassifierRouter.from_config(config, verbose=False)
        assert r.provider == "http"
        assert r.http.endpoint == "http://x.test/analyze"

    @pytest.mark.asyncio
    async def test_auto_nothing_available(self):
        old_key = os.environ.pop("ANTHROPIC_API_KEY", None)
        try:
            r = ClassifierRouter(provider="auto", verbose=False)
            r._ollama_client = OllamaClassifier(verbose=False)
            r._ollama_client._available = False

            result = await r.classify("SUGAR")
            assert result.ok is False
            assert "No classifier provider" in result.error
        finally:
            if old_key:
                os.environ["ANTHROPIC_API_KEY"] = old_key


class TestClassifierSingleton:
    def test_reads_config(self):
        config = LensConfig(provider="http", classifier_url="http://x.test/analyze")
        router = get_classifier_router(config)
        assert router.provider == "http"
        assert router.http.endpoint == "http://x.test/analyze"
        assert get_classifier_router() is router

    def test_reset(self):
        first = get_classifier_router(LensConfig(provider="ollama"))
        reset_classifier_router()
        assert get_classifier_router(LensConfig(provider="ollama")) is not first


class TestClassifierStats:
    def test_defaults(self):
        s = ClassifierStats()
        assert s.http_calls == 0
        assert s.ollama_calls == 0
        assert s.claude_calls == 0
        assert s.errors == 0
