"""
Tests for the HTTP provider implementations.

Requests are served by httpx.MockTransport, no network access.
"""

import asyncio
import json

import httpx
import pytest

from grim_translator.ai.exceptions import TranslationError
from grim_translator.ai.providers import (
    AnthropicProvider,
    GeminiProvider,
    OpenAIProvider,
    create_provider,
    get_available_models,
    verify_api_key,
)
from grim_translator.ai.retry import ErrorKind, classify_error


def run_with_transport(handler, func):
    """Run func(client) with an AsyncClient backed by handler."""
    async def scenario():
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            return await func(client)
    return asyncio.run(scenario())


def recording(handler, requests):
    def wrapped(request):
        requests.append(request)
        return handler(request)
    return wrapped


class TestInvoke:
    """Tests for AIProvider.invoke."""

    def test_gemini_generate_content(self):
        requests = []

        def handler(request):
            return httpx.Response(200, json={
                "candidates": [{"content": {"parts": [{"text": '{"hello": "Hallo"}'}]}}],
                "usageMetadata": {"promptTokenCount": 10},
            })

        text = run_with_transport(
            recording(handler, requests),
            lambda client: GeminiProvider("gem-key", client=client).invoke("PROMPT"),
        )

        assert text == '{"hello": "Hallo"}'
        request = requests[0]
        assert request.method == "POST"
        assert request.url.path == "/v1beta/models/gemini-2.0-flash:generateContent"
        assert request.url.params["key"] == "gem-key"
        assert json.loads(request.content)["contents"][0]["parts"][0]["text"] == "PROMPT"

    def test_openai_chat_completion(self):
        requests = []

        def handler(request):
            return httpx.Response(200, json={"choices": [{"message": {"content": "Bonjour"}}]})

        text = run_with_transport(
            recording(handler, requests),
            lambda client: OpenAIProvider("sk-test", model="gpt-4o", client=client).invoke("PROMPT"),
        )

        assert text == "Bonjour"
        request = requests[0]
        assert request.url.host == "api.openai.com"
        assert request.headers["authorization"] == "Bearer sk-test"
        body = json.loads(request.content)
        assert body["model"] == "gpt-4o"
        assert body["messages"] == [{"role": "user", "content": "PROMPT"}]

    def test_anthropic_messages(self):
        requests = []

        def handler(request):
            return httpx.Response(200, json={"content": [
                {"type": "text", "text": "Hal"},
                {"type": "text", "text": "lo"},
            ]})

        text = run_with_transport(
            recording(handler, requests),
            lambda client: AnthropicProvider("ant-key", client=client).invoke("PROMPT"),
        )

        assert text == "Hallo"
        request = requests[0]
        assert request.url.host == "api.anthropic.com"
        assert request.headers["x-api-key"] == "ant-key"
        assert "anthropic-version" in request.headers

    def test_http_429_is_classified_as_rate_limit(self):
        def handler(request):
            return httpx.Response(429, json={"error": {"message": "Resource has been exhausted"}})

        with pytest.raises(TranslationError) as exc_info:
            run_with_transport(handler, lambda client: GeminiProvider("k", client=client).invoke("P"))

        assert "(429)" in str(exc_info.value)
        assert "Resource has been exhausted" in str(exc_info.value)
        assert exc_info.value.details["status_code"] == 429
        assert classify_error(exc_info.value) is ErrorKind.RATE_LIMITED

    def test_http_401_is_fatal(self):
        def handler(request):
            return httpx.Response(401, text="Unauthorized")

        with pytest.raises(TranslationError) as exc_info:
            run_with_transport(handler, lambda client: OpenAIProvider("bad", client=client).invoke("P"))

        assert "OpenAI API error (401)" in str(exc_info.value)
        assert classify_error(exc_info.value) is ErrorKind.FATAL

    def test_network_error_raises_translation_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(TranslationError, match="Gemini API call failed"):
            run_with_transport(handler, lambda client: GeminiProvider("k", client=client).invoke("P"))

    def test_unexpected_payload_raises(self):
        def handler(request):
            return httpx.Response(200, json={"choices": []})

        with pytest.raises(TranslationError, match="No content"):
            run_with_transport(handler, lambda client: OpenAIProvider("k", client=client).invoke("P"))


class TestVerifyApiKey:
    """Tests for verify_api_key."""

    def test_valid_gemini_key(self):
        def handler(request):
            if request.url.params.get("key") == "valid-key":
                return httpx.Response(200, json={})
            return httpx.Response(400)

        assert run_with_transport(handler, lambda client: verify_api_key("valid-key", "gemini", client=client))
        assert not run_with_transport(handler, lambda client: verify_api_key("invalid-key", "gemini", client=client))

    def test_valid_openai_key(self):
        def handler(request):
            if request.url.host == "api.openai.com" and request.headers.get("authorization") == "Bearer valid-key":
                return httpx.Response(200, json={"data": []})
            return httpx.Response(401)

        assert run_with_transport(handler, lambda client: verify_api_key("valid-key", "openai", client=client))
        assert not run_with_transport(handler, lambda client: verify_api_key("other", "openai", client=client))

    def test_valid_anthropic_key(self):
        def handler(request):
            if request.url.host == "api.anthropic.com" and request.headers.get("x-api-key") == "valid-key":
                return httpx.Response(200, json={})
            return httpx.Response(401)

        assert run_with_transport(handler, lambda client: verify_api_key("valid-key", "anthropic", client=client))

    def test_network_error_is_invalid(self):
        def handler(request):
            raise httpx.ConnectError("Network error", request=request)

        assert not run_with_transport(handler, lambda client: verify_api_key("k", "gemini", client=client))


class TestGetAvailableModels:
    """Tests for get_available_models."""

    def test_gemini_models_support_generate_content(self):
        def handler(request):
            return httpx.Response(200, json={"models": [
                {"name": "models/gemini-pro", "displayName": "Gemini Pro",
                 "supportedGenerationMethods": ["generateContent"]},
                {"name": "models/gemini-flash", "displayName": "Gemini Flash",
                 "supportedGenerationMethods": ["generateContent", "countTokens"]},
                {"name": "models/embedding-001", "displayName": "Embedding",
                 "supportedGenerationMethods": ["embedContent"]},
            ]})

        models = run_with_transport(handler, lambda client: get_available_models("k", "gemini", client=client))

        assert models == [
            {"value": "gemini-pro", "label": "Gemini Pro"},
            {"value": "gemini-flash", "label": "Gemini Flash"},
        ]

    def test_openai_only_gpt_models(self):
        def handler(request):
            return httpx.Response(200, json={"data": [
                {"id": "gpt-4o", "owned_by": "openai"},
                {"id": "gpt-4-turbo", "owned_by": "openai"},
                {"id": "gpt-3.5-turbo", "owned_by": "openai"},
                {"id": "dall-e-3", "owned_by": "openai"},
            ]})

        models = run_with_transport(handler, lambda client: get_available_models("k", "openai", client=client))

        assert [m["value"] for m in models] == ["gpt-4o", "gpt-4-turbo", "gpt-3.5-turbo"]

    def test_anthropic_static_list_without_request(self):
        def handler(request):
            raise AssertionError("no request expected")

        models = run_with_transport(handler, lambda client: get_available_models("k", "anthropic", client=client))

        assert models
        assert all("claude" in m["value"] for m in models)

    def test_error_returns_empty_list(self):
        def handler(request):
            raise httpx.ConnectError("Network error", request=request)

        assert run_with_transport(handler, lambda client: get_available_models("k", "gemini", client=client)) == []

    def test_error_status_returns_empty_list(self):
        def handler(request):
            return httpx.Response(403, json={"error": "forbidden"})

        assert run_with_transport(handler, lambda client: get_available_models("k", "openai", client=client)) == []


class TestCreateProvider:
    """Tests for create_provider."""

    def test_known_providers(self):
        assert isinstance(create_provider("gemini", "k"), GeminiProvider)
        assert isinstance(create_provider("openai", "k"), OpenAIProvider)
        assert create_provider("anthropic", "k", model="claude-x").model == "claude-x"

    def test_default_model(self):
        assert create_provider("gemini", "k").model == GeminiProvider.default_model

    def test_unknown_provider(self):
        with pytest.raises(TranslationError) as exc_info:
            create_provider("mystery", "k")
        assert exc_info.value.code == "unknown_provider"
