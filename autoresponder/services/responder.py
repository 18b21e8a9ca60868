"""
Composition root: wires options, storage, providers, storefront and pipeline
into the ``Responder`` that the API and the Celery tasks act through.

A single ``Responder`` is created lazily per process by ``get_responder()``.
"""
from datetime import datetime, timezone
from typing import Any, Mapping, Optional
import logging

import redis
from sqlalchemy.orm import sessionmaker

from autoresponder.config import Settings, settings as default_settings
from autoresponder.db.session import SessionLocal
from autoresponder.models import AuditAction, FeedbackType
from autoresponder.options import OptionsStore, ResponderOptions
from autoresponder.pipeline.events import EventOutcome, ReviewEvent, ReviewEventHandler
from autoresponder.pipeline.nodes import PipelineContext
from autoresponder.pipeline.processor import ProcessingOutcome, ReviewProcessor
from autoresponder.pipeline.prompt_builder import PromptBuilder
from autoresponder.pipeline.publishing import ReplyPublisher
from autoresponder.pipeline.review_filter import ReviewFilter
from autoresponder.providers.base import ProviderClient
from autoresponder.providers.manager import ProviderManager, build_providers
from autoresponder.services.notifications import Notifier
from autoresponder.services.review_queue import DrainReport, ReviewQueue
from autoresponder.services.store import ResponseStore
from autoresponder.services.storefront import Storefront, WooCommerceStorefront

logger = logging.getLogger(__name__)


class Responder:
    def __init__(
        self,
        options_store: OptionsStore,
        store: ResponseStore,
        storefront: Storefront,
        manager: ProviderManager,
        processor: ReviewProcessor,
        queue: ReviewQueue,
        events: ReviewEventHandler,
        notifier: Notifier,
    ):
        self.options_store = options_store
        self.store = store
        self.storefront = storefront
        self.manager = manager
        self.processor = processor
        self.queue = queue
        self.events = events
        self.notifier = notifier

    @property
    def options(self) -> ResponderOptions:
        return self.options_store.get()

    def refresh_options(self) -> None:
        self.options_store.refresh()

    # ── Actions exposed to the approval UI and automation ──

    def generate(self, review_id: int) -> Optional[str]:
        return self.processor.generate(review_id)

    def process(self, review_id: int) -> ProcessingOutcome:
        """Like ``generate``, but reporting provider, fallback use and publish failures."""
        return self.processor.run(review_id)

    def approve(
        self,
        response_id: Optional[int] = None,
        review_id: Optional[int] = None,
        text: Optional[str] = None,
        actor_id: Optional[str] = None,
    ) -> bool:
        return self.processor.approve(response_id=response_id, review_id=review_id,
                                      text=text, actor_id=actor_id)

    def reject(self, review_id: int, reason: Optional[str] = None, actor_id: Optional[str] = None) -> bool:
        return self.processor.reject(review_id, reason=reason, actor_id=actor_id)

    def record_feedback(
        self,
        response_id: int,
        feedback_type: str,
        text: Optional[str] = None,
        user_id: str = "anonymous",
    ) -> bool:
        """Record feedback; unknown feedback types raise ``ValueError``."""
        return self.store.record_feedback(response_id, user_id, FeedbackType(feedback_type), text)

    def get_status(self) -> dict[str, Any]:
        return {
            "automation_enabled": self.options.automation_enabled,
            "workflow_mode": self.options.workflow_mode.value,
            "configured": self.options.is_configured(),
            "providers": self.manager.get_provider_status(),
            "stats": self.store.stats(),
            "queue_size": self.queue.size(),
        }

    def trigger_queue_drain(self) -> Optional[DrainReport]:
        """Drain the retry queue once. ``None`` when automation is disabled."""
        if not self.options.automation_enabled:
            logger.info("Automation disabled, skipping queue drain")
            return None
        return self.queue.drain(self.processor.run)

    def handle_event(self, review_id: int, event: str = ReviewEvent.CREATED.value) -> EventOutcome:
        return self.events.handle(review_id, ReviewEvent(event))

    def process_pending_reviews(self, limit: Optional[int] = None) -> list[dict[str, Any]]:
        return self.events.process_pending_reviews(limit)

    # ── Maintenance ──

    def cleanup(self) -> dict[str, Any]:
        retention_days = self.options.privacy_settings.data_retention_days
        cleaned_logs = self.store.cleanup(retention_days)
        expired = self.queue.purge_expired()
        self.store.log(
            AuditAction.DATA_CLEANUP,
            details={
                "retention_days": retention_days,
                "cleaned_logs": cleaned_logs,
                "expired_queue_items": expired,
                "ran_at": datetime.now(timezone.utc).isoformat(),
            },
        )
        return {"retention_days": retention_days, "cleaned_logs": cleaned_logs,
                "expired_queue_items": expired}

    def notify(self) -> dict[str, bool]:
        return self.notifier.check()


def build_responder(
    settings: Settings,
    redis_client: redis.Redis,
    session_factory: sessionmaker,
    storefront: Optional[Storefront] = None,
    providers: Optional[Mapping[str, ProviderClient]] = None,
) -> Responder:
    options_store = OptionsStore(
        redis_client,
        api_keys={
            "openai": settings.openai_api_key,
            "gemini": settings.gemini_api_key,
            "openrouter": settings.openrouter_api_key,
        },
    )
    options = options_store.get()
    store = ResponseStore(session_factory)
    storefront = storefront or WooCommerceStorefront(
        settings.storefront_url,
        username=settings.storefront_username,
        password=settings.storefront_password,
        author_name=settings.site_name,
        timeout=settings.storefront_timeout_seconds,
    )
    manager = ProviderManager(
        options,
        store,
        providers if providers is not None else build_providers(options, settings),
    )
    ctx = PipelineContext(
        options=options,
        storefront=storefront,
        store=store,
        manager=manager,
        publisher=ReplyPublisher(options, storefront, store),
        review_filter=ReviewFilter(options),
        prompt_builder=PromptBuilder(),
    )
    processor = ReviewProcessor(ctx)
    queue = ReviewQueue(redis_client, store, ttl_seconds=settings.queue_ttl_seconds)
    events = ReviewEventHandler(
        options, storefront, store, queue, processor, redis_client,
        marker_ttl=settings.processing_marker_ttl_seconds,
    )
    notifier = Notifier(options, store, site_name=settings.site_name)
    return Responder(options_store, store, storefront, manager, processor, queue, events, notifier)


_responder: Optional[Responder] = None


def get_responder() -> Responder:
    """
    Get or create the process-wide responder.
    Lazily initialized so importing the API or tasks never touches Redis.
    """
    global _responder
    if _responder is None:
        _responder = build_responder(
            default_settings,
            redis.from_url(default_settings.redis_url),
            SessionLocal,
        )
    return _responder
