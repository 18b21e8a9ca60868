"""
Responder options: the typed configuration tree the pipeline reads.

``ResponderOptions`` is passed explicitly to every component that needs it.
``OptionsStore`` owns the single process-wide instance, merges persisted
overrides from Redis over the defaults and writes changes back.
"""
from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator
from typing import Any, Optional
import enum
import json
import logging

import redis

from autoresponder.constants import OPTIONS_REDIS_KEY

logger = logging.getLogger(__name__)

PROVIDER_NAMES = ("openai", "gemini", "openrouter")

DEFAULT_MODELS = {
    "openai": "gpt-3.5-turbo",
    "gemini": "gemini-pro",
    "openrouter": "openai/gpt-3.5-turbo",
}


class WorkflowMode(str, enum.Enum):
    AUTO = "auto"
    SEMI_AUTO = "semi_auto"
    DRAFT = "draft"


class Tone(str, enum.Enum):
    PROFESSIONAL = "professional"
    FRIENDLY = "friendly"
    CASUAL = "casual"
    TECHNICAL = "technical"
    PROMOTIONAL = "promotional"


class _Section(BaseModel):
    model_config = ConfigDict(validate_assignment=True)


class ReviewFilterOptions(_Section):
    min_rating: int = Field(1, ge=0, le=5)
    max_rating: int = Field(5, ge=0, le=5)
    exclude_spam: bool = True
    exclude_negative_only: bool = False
    exclude_questions: bool = False

    @model_validator(mode="after")
    def check_rating_bounds(self) -> "ReviewFilterOptions":
        if self.min_rating > self.max_rating:
            raise ValueError(
                f"min_rating ({self.min_rating}) must not exceed max_rating ({self.max_rating})"
            )
        return self


class ProductFieldOptions(_Section):
    title: bool = True
    description: bool = True
    short_description: bool = True
    attributes: bool = True
    sku: bool = False
    price: bool = False
    categories: bool = True
    tags: bool = True


class PrivacyOptions(_Section):
    allow_external_data: bool = True
    anonymize_customer_data: bool = True
    data_retention_days: int = Field(365, ge=1)


class NotificationOptions(_Section):
    notifications_enabled: bool = True
    notification_email: str = ""
    webhook_url: str = ""
    notify_on_errors: bool = True
    notify_on_high_volume: bool = True
    high_volume_threshold: int = Field(50, ge=1)
    error_threshold: int = Field(1, ge=1)


class AdvancedOptions(_Section):
    max_response_length: int = Field(300, ge=20, le=5000)
    include_product_links: bool = True
    include_contact_info: bool = True
    include_ai_attribution: bool = False
    process_unapproved_reviews: bool = True
    pending_batch_size: int = Field(50, ge=1, le=500)


class ResponderOptions(_Section):
    automation_enabled: bool = True
    workflow_mode: WorkflowMode = WorkflowMode.SEMI_AUTO
    ai_provider: str = "openai"
    fallback_providers: list[str] = Field(default_factory=lambda: ["gemini", "openrouter"])
    ai_models: dict[str, str] = Field(default_factory=lambda: dict(DEFAULT_MODELS))
    api_keys: dict[str, str] = Field(default_factory=dict, exclude=True)
    # Free-form so unknown tones fall back to the generic directive
    tone_style: str = Tone.PROFESSIONAL.value

    review_filters: ReviewFilterOptions = Field(default_factory=ReviewFilterOptions)
    product_fields: ProductFieldOptions = Field(default_factory=ProductFieldOptions)
    privacy_settings: PrivacyOptions = Field(default_factory=PrivacyOptions)
    notification_settings: NotificationOptions = Field(default_factory=NotificationOptions)
    advanced_settings: AdvancedOptions = Field(default_factory=AdvancedOptions)

    def get(self, path: str, default: Any = None) -> Any:
        """Read a value by dotted path, e.g. ``review_filters.min_rating``."""
        node: Any = self
        for part in path.split("."):
            if isinstance(node, BaseModel):
                if part not in type(node).model_fields:
                    return default
                node = getattr(node, part)
            elif isinstance(node, dict):
                if part not in node:
                    return default
                node = node[part]
            else:
                return default
        return node

    def set(self, path: str, value: Any) -> None:
        """
        Assign a value by dotted path. The assignment is validated against the
        field type; unknown paths raise ``KeyError``.
        """
        parts = path.split(".")
        owner: BaseModel = self
        for i, part in enumerate(parts[:-1]):
            if part not in type(owner).model_fields:
                raise KeyError(path)
            child = getattr(owner, part)
            if isinstance(child, BaseModel):
                owner = child
                continue
            if isinstance(child, dict) and i == len(parts) - 2:
                setattr(owner, part, {**child, parts[-1]: value})
                return
            raise KeyError(path)
        if parts[-1] not in type(owner).model_fields:
            raise KeyError(path)
        previous = getattr(owner, parts[-1])
        try:
            setattr(owner, parts[-1], value)
        except ValidationError:
            # Model-level validators run after the field was already assigned
            owner.__dict__[parts[-1]] = previous
            raise

    def api_key(self, provider: str) -> str:
        return self.api_keys.get(provider, "")

    def model_for(self, provider: str) -> str:
        return self.ai_models.get(provider) or DEFAULT_MODELS.get(provider, "")

    def is_external_data_allowed(self) -> bool:
        return self.privacy_settings.allow_external_data

    def is_configured(self) -> bool:
        """True when the primary provider has a key and automation is on."""
        return self.automation_enabled and bool(self.api_key(self.ai_provider))

    def enable_automation(self) -> None:
        self.automation_enabled = True
        self.workflow_mode = WorkflowMode.SEMI_AUTO


class OptionsStore:
    """
    Redis-backed holder of the process-wide ``ResponderOptions``.

    Loading is lazy. Persisted overrides are validated over the defaults, so a
    partial section such as ``{"review_filters": {"exclude_questions": true}}``
    keeps every other default. API keys come from the environment only.
    """

    def __init__(
        self,
        redis_client: redis.Redis,
        api_keys: Optional[dict[str, str]] = None,
        key: str = OPTIONS_REDIS_KEY,
    ):
        self._redis = redis_client
        self._api_keys = {k: v for k, v in (api_keys or {}).items() if v}
        self._key = key
        self._options: Optional[ResponderOptions] = None

    def get(self) -> ResponderOptions:
        if self._options is None:
            self._options = self._load()
        return self._options

    def set(self, path: str, value: Any) -> None:
        self.get().set(path, value)
        self.save()

    def save(self) -> None:
        self._redis.set(self._key, self.get().model_dump_json())

    def refresh(self) -> ResponderOptions:
        """Re-read persisted overrides into the existing instance."""
        options = self.get()
        fresh = self._load()
        for name in type(fresh).model_fields:
            setattr(options, name, getattr(fresh, name))
        return options

    def reset(self) -> None:
        self._redis.delete(self._key)
        self.refresh()

    def _load(self) -> ResponderOptions:
        raw = self._redis.get(self._key)
        overrides: dict[str, Any] = {}
        if raw:
            try:
                overrides = json.loads(raw)
            except json.JSONDecodeError:
                logger.error(f"Ignoring unreadable options stored under {self._key}")
        overrides["api_keys"] = dict(self._api_keys)
        try:
            return ResponderOptions.model_validate(overrides)
        except ValidationError as e:
            logger.error(f"Stored options failed validation, using defaults: {e}")
            return ResponderOptions(api_keys=dict(self._api_keys))
