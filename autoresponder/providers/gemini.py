from typing import Any, Optional
import logging

import httpx

from autoresponder.constants import (
    HTTP_TIMEOUT,
    PROVIDER_MAX_OUTPUT_TOKENS,
    PROVIDER_TEMPERATURE,
)
from autoresponder.errors import ProviderError
from autoresponder.options import ResponderOptions
from autoresponder.providers.base import post_json, sanitize_response, with_response_guidelines

logger = logging.getLogger(__name__)

GEMINI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta/models"

_SAFETY_CATEGORIES = (
    "HARM_CATEGORY_HARASSMENT",
    "HARM_CATEGORY_HATE_SPEECH",
    "HARM_CATEGORY_SEXUALLY_EXPLICIT",
    "HARM_CATEGORY_DANGEROUS_CONTENT",
)


def build_gemini_payload(prompt: str, max_output_tokens: int = PROVIDER_MAX_OUTPUT_TOKENS) -> dict[str, Any]:
    return {
        "contents": [{"parts": [{"text": prompt}]}],
        "generationConfig": {
            "temperature": PROVIDER_TEMPERATURE,
            "topK": 40,
            "topP": 0.95,
            "maxOutputTokens": max_output_tokens,
        },
        "safetySettings": [
            {"category": category, "threshold": "BLOCK_MEDIUM_AND_ABOVE"}
            for category in _SAFETY_CATEGORIES
        ],
    }


class GeminiProvider:
    """Google Gemini ``generateContent`` over plain HTTP."""

    name = "gemini"

    def __init__(
        self,
        options: ResponderOptions,
        timeout: float = HTTP_TIMEOUT,
        http_client: Optional[httpx.Client] = None,
    ):
        self.options = options
        self._client = http_client or httpx.Client(timeout=timeout)

    def _url(self) -> str:
        return f"{GEMINI_BASE_URL}/{self.model_name()}:generateContent"

    def _request(self, payload: dict[str, Any]) -> dict[str, Any]:
        api_key = self.options.api_key(self.name)
        if not api_key:
            raise ProviderError(self.name, "API key not configured")
        return post_json(
            self._client,
            self.name,
            self._url(),
            payload,
            headers={"x-goog-api-key": api_key},
        )

    def model_name(self) -> str:
        return self.options.model_for(self.name)

    def is_available(self) -> bool:
        if not self.options.api_key(self.name) or not self.options.is_external_data_allowed():
            return False
        try:
            self._request(build_gemini_payload("Test", max_output_tokens=1))
        except ProviderError as e:
            logger.warning(f"Gemini availability check failed: {e}")
            return False
        return True

    def generate(self, prompt: str, context: Optional[dict[str, Any]] = None) -> str:
        review_id = (context or {}).get("review_id", "unknown")
        logger.debug(f"Review {review_id}: Requesting completion from Gemini ({self.model_name()})")
        body = self._request(build_gemini_payload(with_response_guidelines(prompt, self.options)))
        try:
            text = body["candidates"][0]["content"]["parts"][0]["text"]
        except (KeyError, IndexError, TypeError) as e:
            raise ProviderError(self.name, "Malformed response: no candidates in API response") from e
        if not isinstance(text, str) or not text:
            raise ProviderError(self.name, "Malformed response: empty candidate text")
        return sanitize_response(text, self.options.advanced_settings.max_response_length)
