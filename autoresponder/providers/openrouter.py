from typing import Any, Optional
import logging

import httpx
from openai import OpenAI

from autoresponder.constants import HTTP_TIMEOUT
from autoresponder.errors import ProviderError
from autoresponder.options import ResponderOptions
from autoresponder.providers.base import sanitize_response, with_response_guidelines
from autoresponder.providers.openai_chat import create_chat_completion

logger = logging.getLogger(__name__)

OPENROUTER_BASE_URL = "https://openrouter.ai/api/v1"


class OpenRouterProvider:
    """OpenRouter through its OpenAI-compatible endpoint, with attribution headers."""

    name = "openrouter"

    def __init__(
        self,
        options: ResponderOptions,
        timeout: float = HTTP_TIMEOUT,
        http_client: Optional[httpx.Client] = None,
        site_url: str = "",
        site_name: str = "",
    ):
        self.options = options
        self.timeout = timeout
        self.site_url = site_url
        self.site_name = site_name
        self._http_client = http_client
        self._client: Optional[OpenAI] = None
        self._client_key: Optional[str] = None

    def _get_client(self) -> OpenAI:
        api_key = self.options.api_key(self.name)
        if not api_key:
            raise ProviderError(self.name, "API key not configured")
        if self._client is None or self._client_key != api_key:
            headers = {}
            if self.site_url:
                headers["HTTP-Referer"] = self.site_url
            if self.site_name:
                headers["X-Title"] = self.site_name
            self._client = OpenAI(
                api_key=api_key,
                base_url=OPENROUTER_BASE_URL,
                timeout=self.timeout,
                max_retries=0,
                default_headers=headers,
                http_client=self._http_client,
            )
            self._client_key = api_key
        return self._client

    def model_name(self) -> str:
        return self.options.model_for(self.name)

    def is_available(self) -> bool:
        if not self.options.api_key(self.name) or not self.options.is_external_data_allowed():
            return False
        # One-token test request; any failure means unavailable
        try:
            create_chat_completion(self._get_client(), self.name, self.model_name(), "Test", max_tokens=1)
        except ProviderError as e:
            logger.warning(f"OpenRouter availability check failed: {e}")
            return False
        return True

    def generate(self, prompt: str, context: Optional[dict[str, Any]] = None) -> str:
        review_id = (context or {}).get("review_id", "unknown")
        logger.debug(f"Review {review_id}: Requesting completion from OpenRouter ({self.model_name()})")
        text = create_chat_completion(
            self._get_client(),
            self.name,
            self.model_name(),
            with_response_guidelines(prompt, self.options),
        )
        return sanitize_response(text, self.options.advanced_settings.max_response_length)
