"""
Celery tasks for review events and the held-review backfill.
"""
from typing import Any, Optional
import logging

from autoresponder.celery_app import celery_app
from autoresponder.services.responder import get_responder

logger = logging.getLogger(__name__)


@celery_app.task(name="handle_review_event")
def handle_review_event_task(review_id: int, event: str = "created") -> dict[str, Any]:
    """
    Process one storefront review event.

    Args:
        review_id: Storefront review id
        event: One of ``created``, ``approved``, ``held``

    Returns:
        Dict with review_id and the handling outcome
    """
    responder = get_responder()
    responder.refresh_options()
    outcome = responder.handle_event(review_id, event)
    logger.info(f"Review {review_id}: {event} event -> {outcome.value}")
    return {"review_id": review_id, "event": event, "outcome": outcome.value}


@celery_app.task(name="process_pending_reviews")
def process_pending_reviews_task(limit: Optional[int] = None) -> dict[str, Any]:
    responder = get_responder()
    responder.refresh_options()
    results = responder.process_pending_reviews(limit)
    return {
        "processed": sum(1 for r in results if r["status"] == "success"),
        "results": results,
    }
