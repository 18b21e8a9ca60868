"""
Review event intake.

The storefront reports reviews through several overlapping hooks (created,
approved, held). They collapse into one ``handle`` call that decides once,
guarded by a short-lived Redis marker, whether the review is processed now,
queued, or ignored.
"""
from typing import Any, Optional
import enum
import logging

import redis

from autoresponder.constants import PROCESSING_MARKER_PREFIX
from autoresponder.errors import StorefrontError
from autoresponder.options import ResponderOptions, WorkflowMode
from autoresponder.pipeline.processor import ReviewProcessor
from autoresponder.schemas.review import Review
from autoresponder.services.review_queue import ReviewQueue
from autoresponder.services.store import ResponseStore
from autoresponder.services.storefront import Storefront

logger = logging.getLogger(__name__)


class ReviewEvent(str, enum.Enum):
    CREATED = "created"
    APPROVED = "approved"
    HELD = "held"


class EventOutcome(str, enum.Enum):
    DISABLED = "disabled"
    MISSING = "missing"
    IGNORED = "ignored"
    EXISTS = "exists"
    DUPLICATE = "duplicate"
    PROCESSED = "processed"
    QUEUED = "queued"


class ReviewEventHandler:
    def __init__(
        self,
        options: ResponderOptions,
        storefront: Storefront,
        store: ResponseStore,
        queue: ReviewQueue,
        processor: ReviewProcessor,
        redis_client: redis.Redis,
        marker_ttl: int = 300,
    ):
        self.options = options
        self.storefront = storefront
        self.store = store
        self.queue = queue
        self.processor = processor
        self._redis = redis_client
        self.marker_ttl = marker_ttl

    def accepts(self, event: ReviewEvent, review: Review) -> bool:
        """Whether this hook should trigger processing under the current mode."""
        mode = self.options.workflow_mode
        process_unapproved = self.options.advanced_settings.process_unapproved_reviews

        if event == ReviewEvent.APPROVED:
            return True
        if event == ReviewEvent.HELD:
            return process_unapproved and mode in (WorkflowMode.SEMI_AUTO, WorkflowMode.DRAFT)
        if mode in (WorkflowMode.AUTO, WorkflowMode.SEMI_AUTO):
            return True
        return review.approved or process_unapproved

    def claim(self, review_id: int) -> bool:
        """
        Set the processing marker. False if another trigger set it within the
        TTL. Best-effort only: the marker expires and is never cleared early.
        """
        key = f"{PROCESSING_MARKER_PREFIX}:{review_id}"
        return bool(self._redis.set(key, "1", nx=True, ex=self.marker_ttl))

    def handle(self, review_id: int, event: ReviewEvent = ReviewEvent.CREATED) -> EventOutcome:
        event = ReviewEvent(event)
        if not self.options.automation_enabled:
            return EventOutcome.DISABLED

        review = self.storefront.get_review(review_id)
        if review is None:
            logger.warning(f"Review {review_id}: Not found in storefront, ignoring {event.value} event")
            return EventOutcome.MISSING

        if not self.accepts(event, review):
            logger.debug(f"Review {review_id}: {event.value} event not handled in current mode")
            return EventOutcome.IGNORED

        if self.store.has_response(review_id):
            logger.info(f"Review {review_id}: Response already exists")
            return EventOutcome.EXISTS

        if not self.claim(review_id):
            logger.info(f"Review {review_id}: Already being processed")
            return EventOutcome.DUPLICATE

        if self.options.workflow_mode == WorkflowMode.AUTO:
            outcome = self.processor.run(review_id)
            if outcome.succeeded:
                return EventOutcome.PROCESSED
            logger.warning(f"Review {review_id}: Immediate processing failed, queueing for retry")

        self.queue.enqueue(review_id)
        return EventOutcome.QUEUED

    def process_pending_reviews(self, limit: Optional[int] = None) -> list[dict[str, Any]]:
        """Generate responses for held reviews that do not have one yet."""
        limit = limit or self.options.advanced_settings.pending_batch_size
        try:
            reviews = self.storefront.list_pending_reviews(limit)
        except StorefrontError as e:
            logger.error(f"Could not list held reviews: {e}")
            return []

        results = []
        for review in reviews[:limit]:
            if self.store.has_response(review.id):
                results.append({"review_id": review.id, "status": "skipped",
                                "message": "Response already exists"})
                continue
            outcome = self.processor.run(review.id)
            if outcome.succeeded:
                results.append({"review_id": review.id, "status": "success",
                                "message": "Response generated successfully"})
            else:
                results.append({"review_id": review.id, "status": "failed",
                                "message": "Failed to generate response"})

        logger.info(f"Processed {len(results)} held reviews")
        return results
