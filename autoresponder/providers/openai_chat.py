"""
OpenAI chat-completions client.

The chat-completion call itself is shared with the OpenRouter client, which
speaks the same wire format through the same SDK.
"""
from typing import Any, Optional
import logging

import httpx
from openai import OpenAI, APIError, APIStatusError

from autoresponder.constants import (
    HTTP_TIMEOUT,
    PROVIDER_MAX_OUTPUT_TOKENS,
    PROVIDER_TEMPERATURE,
)
from autoresponder.errors import ProviderError
from autoresponder.options import ResponderOptions
from autoresponder.providers.base import sanitize_response, with_response_guidelines

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are a helpful customer service representative for an e-commerce store. "
    "You respond to product reviews with helpful, professional, and brand-appropriate messages."
)


def _status_error_message(error: APIStatusError) -> str:
    body = error.body
    if isinstance(body, dict) and body.get("message"):
        return str(body["message"])
    return error.message


def create_chat_completion(
    client: OpenAI,
    provider: str,
    model: str,
    prompt: str,
    max_tokens: int = PROVIDER_MAX_OUTPUT_TOKENS,
) -> str:
    """Run one chat completion and return the raw message content."""
    try:
        completion = client.chat.completions.create(
            model=model,
            messages=[
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            max_tokens=max_tokens,
            temperature=PROVIDER_TEMPERATURE,
            top_p=1,
        )
    except APIStatusError as e:
        raise ProviderError(provider, _status_error_message(e), status_code=e.status_code) from e
    except (APIError, ValueError) as e:
        raise ProviderError(provider, f"Request failed: {e}") from e

    try:
        content = completion.choices[0].message.content
    except (AttributeError, IndexError, TypeError) as e:
        raise ProviderError(provider, "Malformed response: no choices in API response") from e
    if not content:
        raise ProviderError(provider, "Malformed response: empty message content")
    return content


class OpenAIProvider:
    name = "openai"

    def __init__(
        self,
        options: ResponderOptions,
        timeout: float = HTTP_TIMEOUT,
        http_client: Optional[httpx.Client] = None,
    ):
        self.options = options
        self.timeout = timeout
        self._http_client = http_client
        self._client: Optional[OpenAI] = None
        self._client_key: Optional[str] = None

    def _get_client(self) -> OpenAI:
        api_key = self.options.api_key(self.name)
        if not api_key:
            raise ProviderError(self.name, "API key not configured")
        # Rebuild when the key changes at runtime
        if self._client is None or self._client_key != api_key:
            self._client = OpenAI(
                api_key=api_key,
                timeout=self.timeout,
                max_retries=0,
                http_client=self._http_client,
            )
            self._client_key = api_key
        return self._client

    def model_name(self) -> str:
        return self.options.model_for(self.name)

    def is_available(self) -> bool:
        return bool(self.options.api_key(self.name)) and self.options.is_external_data_allowed()

    def generate(self, prompt: str, context: Optional[dict[str, Any]] = None) -> str:
        review_id = (context or {}).get("review_id", "unknown")
        logger.debug(f"Review {review_id}: Requesting completion from OpenAI ({self.model_name()})")
        text = create_chat_completion(
            self._get_client(),
            self.name,
            self.model_name(),
            with_response_guidelines(prompt, self.options),
        )
        return sanitize_response(text, self.options.advanced_settings.max_response_length)
