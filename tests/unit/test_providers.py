"""Unit tests for LLM provider routing -- no real API calls."""

import asyncio
import json
from unittest.mock import AsyncMock, patch

import httpx
import pytest

from ohmyfix.core.llm import providers
from ohmyfix.core.llm.config import ModelConfig
from ohmyfix.core.llm.providers import ProviderError, call_provider, retry_api_call


def _status_error(status):
    request = httpx.Request("POST", "https://example.invalid/v1")
    response = httpx.Response(status, request=request)
    return httpx.HTTPStatusError(f"HTTP {status}", request=request, response=response)


class TestGetKey:
    def test_secure_store_first(self, monkeypatch):
        monkeypatch.setenv("GOOGLE_API_KEY", "AIenv")
        store = type("Store", (), {"get_key": lambda self, p: "AIstore"})()
        with patch("ohmyfix.security.store.get_secure_store", return_value=store):
            assert providers._get_key("google") == "AIstore"

    def test_env_fallback(self, monkeypatch):
        monkeypatch.setenv("OPENAI_API_KEY", "sk-env")
        store = type("Store", (), {"get_key": lambda self, p: None})()
        with patch("ohmyfix.security.store.get_secure_store", return_value=store):
            assert providers._get_key("openai") == "sk-env"


class TestCallProviderRouting:
    def test_unknown_provider_raises(self):
        cfg = ModelConfig(provider="nonexistent_provider", model="fake-model")
        with pytest.raises(ProviderError, match="Unknown provider"):
            asyncio.run(call_provider(cfg, "sys", "user"))

    def test_missing_key_raises(self):
        with patch.object(providers, "_get_key", return_value=None):
            with pytest.raises(ProviderError, match="not configured"):
                asyncio.run(call_provider(ModelConfig(), "sys", "user"))

    def test_google_routing(self):
        with patch.object(providers, "_get_key", return_value="AIkey"), \
             patch.object(providers, "_call_google", new=AsyncMock(return_value="No errors found")) as call:
            result = asyncio.run(call_provider(ModelConfig(), "sys", "user", max_tokens=10))
        assert result == "No errors found"
        call.assert_awaited_once_with("gemini-2.5-flash", "sys", "user", "AIkey", 10, 0.2)

    def test_groq_uses_openai_compatible_endpoint(self):
        cfg = ModelConfig(provider="groq", model="llama-3.1-8b-instant")
        with patch.object(providers, "_get_key", return_value="gsk_key"), \
             patch.object(providers, "_call_openai", new=AsyncMock(return_value="ok")) as call:
            asyncio.run(call_provider(cfg, "sys", "user"))
        assert call.await_args.args[-1] == "https://api.groq.com/openai/v1"

    def test_ollama_needs_no_key(self):
        cfg = ModelConfig(provider="ollama", model="qwen2.5-coder:7b")
        with patch.object(providers, "_get_key", side_effect=AssertionError("no key lookup")), \
             patch.object(providers, "_call_ollama", new=AsyncMock(return_value="ok")):
            assert asyncio.run(call_provider(cfg, "sys", "user")) == "ok"


class TestRetry:
    def test_success_first_try(self):
        func = AsyncMock(return_value="ok")
        assert asyncio.run(retry_api_call(func, delay_seconds=0)) == "ok"
        assert func.await_count == 1

    def test_retries_server_errors(self):
        func = AsyncMock(side_effect=[_status_error(503), _status_error(429), "ok"])
        assert asyncio.run(retry_api_call(func, delay_seconds=0)) == "ok"
        assert func.await_count == 3

    def test_auth_error_not_retried(self):
        func = AsyncMock(side_effect=_status_error(401))
        with pytest.raises(ProviderError, match="invalid or expired"):
            asyncio.run(retry_api_call(func, delay_seconds=0))
        assert func.await_count == 1

    def test_not_found_not_retried(self):
        func = AsyncMock(side_effect=_status_error(404))
        with pytest.raises(ProviderError, match="404"):
            asyncio.run(retry_api_call(func, delay_seconds=0))
        assert func.await_count == 1

    def test_gives_up_after_max_retries(self):
        func = AsyncMock(side_effect=httpx.ConnectError("refused"))
        with pytest.raises(ProviderError, match="after 3 attempt"):
            asyncio.run(retry_api_call(func, max_retries=3, delay_seconds=0))
        assert func.await_count == 3

    def test_malformed_payload_not_retried(self):
        func = AsyncMock(side_effect=KeyError("candidates"))
        with pytest.raises(ProviderError):
            asyncio.run(retry_api_call(func, delay_seconds=0))
        assert func.await_count == 1


class TestGoogleTransport:
    def test_request_shape(self, monkeypatch):
        seen = {}

        def handler(request):
            seen["url"] = str(request.url)
            seen["key"] = request.headers["x-goog-api-key"]
            seen["body"] = json.loads(request.content)
            return httpx.Response(
                200, json={"candidates": [{"content": {"parts": [{"text": "No errors found"}]}}]}
            )

        real_client = httpx.AsyncClient
        monkeypatch.setattr(
            providers.httpx,
            "AsyncClient",
            lambda timeout=None: real_client(transport=httpx.MockTransport(handler)),
        )
        text = asyncio.run(providers._call_google("gemini-1.5-flash", "sys", "user", "AIkey", 50))
        assert text == "No errors found"
        assert seen["url"].endswith("/models/gemini-1.5-flash:generateContent")
        assert seen["key"] == "AIkey"
        assert seen["body"]["contents"][0]["parts"][0]["text"] == "sys\n\nuser"
        assert seen["body"]["generationConfig"]["maxOutputTokens"] == 50
