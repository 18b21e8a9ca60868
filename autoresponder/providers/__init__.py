"""
Text-generation vendor clients.

Each client satisfies ``ProviderClient``: ``generate(prompt, context)``,
``is_available()`` and ``model_name()``. Request shaping, error extraction and
output sanitization live in ``autoresponder.providers.base`` and are shared by
composition, not inheritance.
"""
from autoresponder.providers.base import ProviderClient
from autoresponder.providers.gemini import GeminiProvider
from autoresponder.providers.openai_chat import OpenAIProvider
from autoresponder.providers.openrouter import OpenRouterProvider

__all__ = [
    "ProviderClient",
    "GeminiProvider",
    "OpenAIProvider",
    "OpenRouterProvider",
]
