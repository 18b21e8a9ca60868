"""
Primary-then-fallback dispatch across the configured text-generation vendors.
"""
from dataclasses import dataclass
from typing import Any, Mapping, Optional
import time
import logging

import httpx

from autoresponder.config import Settings
from autoresponder.constants import PROVIDER_TEST_PROMPT
from autoresponder.errors import AllProvidersUnavailable, ProviderError
from autoresponder.models import AuditAction
from autoresponder.options import ResponderOptions
from autoresponder.providers.base import ProviderClient
from autoresponder.providers.gemini import GeminiProvider
from autoresponder.providers.openai_chat import OpenAIProvider
from autoresponder.providers.openrouter import OpenRouterProvider
from autoresponder.services.store import ResponseStore

logger = logging.getLogger(__name__)


@dataclass
class GenerationResult:
    text: str
    provider: str
    model: str
    elapsed: float
    used_fallback: bool


def build_providers(
    options: ResponderOptions,
    settings: Settings,
    http_client: Optional[httpx.Client] = None,
) -> dict[str, ProviderClient]:
    """Instantiate one client per supported vendor."""
    timeout = settings.provider_timeout_seconds
    return {
        "openai": OpenAIProvider(options, timeout=timeout, http_client=http_client),
        "gemini": GeminiProvider(options, timeout=timeout, http_client=http_client),
        "openrouter": OpenRouterProvider(
            options,
            timeout=timeout,
            http_client=http_client,
            site_url=settings.openrouter_site_url,
            site_name=settings.site_name,
        ),
    }


class ProviderManager:
    def __init__(
        self,
        options: ResponderOptions,
        store: ResponseStore,
        providers: Mapping[str, ProviderClient],
    ):
        self.options = options
        self.store = store
        self.providers = dict(providers)

    def candidates(self) -> list[str]:
        """Primary first, then the fallbacks in configured order, without repeats."""
        ordered = [self.options.ai_provider]
        for name in self.options.fallback_providers:
            if name not in ordered:
                ordered.append(name)
        return ordered

    def generate_response(
        self,
        prompt: str,
        context: Optional[dict[str, Any]] = None,
    ) -> GenerationResult:
        """
        Try the primary provider, then each fallback, returning the first success.

        Every unavailable or failing candidate is logged as ``provider_error``;
        text that is empty once sanitized counts as a failure.
        Raises ``AllProvidersUnavailable`` when no candidate produced text; no
        retry happens within this call.
        """
        context = context or {}
        review_id = context.get("review_id")
        errors: dict[str, str] = {}

        for index, name in enumerate(self.candidates()):
            provider = self.providers.get(name)
            if provider is None:
                error = f"Unknown provider '{name}'"
            else:
                try:
                    if provider.is_available():
                        started = time.perf_counter()
                        text = provider.generate(prompt, context)
                        elapsed = time.perf_counter() - started
                        if not (text or "").strip().strip(".…"):
                            raise ProviderError(name, "Malformed response: empty text after sanitization")
                        if index > 0:
                            logger.info(f"Review {review_id}: Generated with fallback provider {name}")
                        return GenerationResult(
                            text=text,
                            provider=name,
                            model=provider.model_name(),
                            elapsed=round(elapsed, 3),
                            used_fallback=index > 0,
                        )
                    error = "Provider unavailable (missing API key or external data sharing disabled)"
                except ProviderError as e:
                    error = str(e)
                except Exception as e:
                    logger.error(f"Review {review_id}: Unexpected error from provider {name}", exc_info=True)
                    error = f"Unexpected error: {e}"

            errors[name] = error
            logger.warning(f"Review {review_id}: Provider {name} failed: {error}")
            self.store.log(
                AuditAction.PROVIDER_ERROR,
                review_id=review_id,
                details={"provider": name, "error": error},
            )

        raise AllProvidersUnavailable(errors)

    def get_provider_status(self) -> dict[str, dict[str, Any]]:
        """Availability, model and key presence per provider. Never raises."""
        status = {}
        for name, provider in self.providers.items():
            try:
                available = provider.is_available()
            except Exception as e:
                logger.warning(f"Status check for provider {name} failed: {e}")
                available = False
            status[name] = {
                "available": available,
                "model": provider.model_name(),
                "has_api_key": bool(self.options.api_key(name)),
            }
        return status

    def test_provider(self, name: str) -> dict[str, Any]:
        """Run the fixed test prompt through one provider and report the outcome."""
        provider = self.providers.get(name)
        if provider is None:
            return {"success": False, "message": "Provider not found."}
        try:
            response = provider.generate(PROVIDER_TEST_PROMPT, {"test": True})
        except Exception as e:
            logger.warning(f"Connection test for provider {name} failed: {e}")
            return {"success": False, "message": f"Connection test failed: {e}"}
        return {"success": True, "message": "Connection successful.", "response": response}
