"""
Tests for the vendor clients, driven through ``httpx.MockTransport``.
"""
import json

import httpx
import pytest

from autoresponder.errors import ProviderError
from autoresponder.options import ResponderOptions
from autoresponder.providers import GeminiProvider, OpenAIProvider, OpenRouterProvider
from autoresponder.providers.base import extract_error_message, sanitize_response, strip_markup


def _client(handler) -> httpx.Client:
    return httpx.Client(transport=httpx.MockTransport(handler))


def _chat_completion(content: str) -> dict:
    return {
        "id": "chatcmpl-1",
        "object": "chat.completion",
        "created": 1700000000,
        "model": "gpt-3.5-turbo",
        "choices": [{
            "index": 0,
            "message": {"role": "assistant", "content": content},
            "finish_reason": "stop",
        }],
    }


def _gemini_body(text: str) -> dict:
    return {"candidates": [{"content": {"parts": [{"text": text}], "role": "model"}}]}


class TestSanitize:
    def test_strips_tags_and_scripts(self):
        assert strip_markup("<p>Hi <b>there</b></p><script>alert(1)</script>") == "Hi there"

    def test_decodes_entities(self):
        assert strip_markup("Fish &amp; chips") == "Fish & chips"

    def test_truncates_after_stripping(self):
        assert sanitize_response("<b>" + "a" * 40 + "</b>", 20) == "a" * 20

    def test_error_message_from_nested_error(self):
        response = httpx.Response(400, json={"error": {"message": "Bad key"}})
        assert extract_error_message(response) == "Bad key"


class TestOpenAIProvider:
    def test_generate_returns_sanitized_text(self, options):
        seen = {}

        def handler(request):
            seen["url"] = str(request.url)
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json=_chat_completion("<p>Thanks for the <b>review</b>!</p>"))

        provider = OpenAIProvider(options, http_client=_client(handler))
        assert provider.generate("Review: nice", {"review_id": 1}) == "Thanks for the review!"
        assert seen["url"].endswith("/chat/completions")
        assert seen["body"]["model"] == "gpt-3.5-turbo"
        assert seen["body"]["temperature"] == 0.7
        assert seen["body"]["max_tokens"] == 500
        assert seen["body"]["messages"][0]["role"] == "system"
        assert seen["body"]["messages"][1]["content"].startswith("Review: nice")
        assert "Response Guidelines:" in seen["body"]["messages"][1]["content"]

    def test_http_error_carries_status_and_message(self, options):
        def handler(request):
            return httpx.Response(401, json={"error": {"message": "Invalid API key", "type": "invalid_request_error"}})

        provider = OpenAIProvider(options, http_client=_client(handler))
        with pytest.raises(ProviderError) as exc_info:
            provider.generate("Review: nice")
        assert exc_info.value.status_code == 401
        assert "Invalid API key" in str(exc_info.value)

    def test_missing_choices_is_malformed(self, options):
        def handler(request):
            return httpx.Response(200, json={**_chat_completion("x"), "choices": []})

        provider = OpenAIProvider(options, http_client=_client(handler))
        with pytest.raises(ProviderError, match="Malformed"):
            provider.generate("Review: nice")

    def test_transport_failure(self, options):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        provider = OpenAIProvider(options, http_client=_client(handler))
        with pytest.raises(ProviderError) as exc_info:
            provider.generate("Review: nice")
        assert exc_info.value.status_code is None

    def test_availability_needs_key_and_consent(self):
        assert not OpenAIProvider(ResponderOptions()).is_available()
        options = ResponderOptions(api_keys={"openai": "sk-test"})
        assert OpenAIProvider(options).is_available()
        options.privacy_settings.allow_external_data = False
        assert not OpenAIProvider(options).is_available()


class TestGeminiProvider:
    def test_generate_request_shape(self, options):
        seen = {}

        def handler(request):
            seen["url"] = str(request.url)
            seen["key"] = request.headers.get("x-goog-api-key")
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json=_gemini_body("Thank you for the kind words!"))

        provider = GeminiProvider(options, http_client=_client(handler))
        assert provider.generate("Review: nice") == "Thank you for the kind words!"
        assert "gemini-pro:generateContent" in seen["url"]
        assert seen["key"] == "g-test"
        assert len(seen["body"]["safetySettings"]) == 4
        assert seen["body"]["generationConfig"]["maxOutputTokens"] == 500
        assert seen["body"]["contents"][0]["parts"][0]["text"].startswith("Review: nice")

    def test_http_error(self, options):
        def handler(request):
            return httpx.Response(
                400,
                json={"error": {"code": 400, "message": "API key not valid", "status": "INVALID_ARGUMENT"}},
            )

        provider = GeminiProvider(options, http_client=_client(handler))
        with pytest.raises(ProviderError) as exc_info:
            provider.generate("Review: nice")
        assert exc_info.value.status_code == 400
        assert str(exc_info.value) == "API Error (400): API key not valid"

    def test_missing_candidates(self, options):
        provider = GeminiProvider(options, http_client=_client(lambda r: httpx.Response(200, json={})))
        with pytest.raises(ProviderError, match="Malformed"):
            provider.generate("Review: nice")

    def test_availability_check_uses_one_token(self, options):
        seen = {}

        def handler(request):
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json=_gemini_body("ok"))

        assert GeminiProvider(options, http_client=_client(handler)).is_available()
        assert seen["body"]["generationConfig"]["maxOutputTokens"] == 1

    def test_failed_availability_check_means_unavailable(self, options):
        provider = GeminiProvider(options, http_client=_client(lambda r: httpx.Response(503, text="down")))
        assert not provider.is_available()


class TestOpenRouterProvider:
    def test_attribution_headers_and_endpoint(self, options):
        seen = {}

        def handler(request):
            seen["url"] = str(request.url)
            seen["referer"] = request.headers.get("HTTP-Referer")
            seen["title"] = request.headers.get("X-Title")
            return httpx.Response(200, json=_chat_completion("Thanks!"))

        provider = OpenRouterProvider(
            options,
            http_client=_client(handler),
            site_url="https://shop.example.com",
            site_name="Example Shop",
        )
        assert provider.generate("Review: nice") == "Thanks!"
        assert seen["url"] == "https://openrouter.ai/api/v1/chat/completions"
        assert seen["referer"] == "https://shop.example.com"
        assert seen["title"] == "Example Shop"

    def test_failed_availability_check_means_unavailable(self, options):
        provider = OpenRouterProvider(
            options,
            http_client=_client(lambda r: httpx.Response(500, json={"error": {"message": "boom"}})),
        )
        assert not provider.is_available()

    def test_unavailable_without_key(self):
        assert not OpenRouterProvider(ResponderOptions()).is_available()
