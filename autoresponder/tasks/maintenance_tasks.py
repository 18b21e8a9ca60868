"""
Celery Beat tasks: retry-queue drain, retention cleanup and notifications.

Scheduled from ``celery_app.conf.beat_schedule``; each task re-reads the
responder options first so changes made through the API apply.
"""
from typing import Any
import logging

from autoresponder.celery_app import celery_app
from autoresponder.services.responder import get_responder

logger = logging.getLogger(__name__)


@celery_app.task(name="process_review_queue")
def process_review_queue() -> dict[str, Any]:
    responder = get_responder()
    responder.refresh_options()
    report = responder.trigger_queue_drain()
    if report is None:
        return {"skipped": True, "reason": "automation disabled"}
    return report.as_dict()


@celery_app.task(name="cleanup_old_data")
def cleanup_old_data() -> dict[str, Any]:
    responder = get_responder()
    responder.refresh_options()
    result = responder.cleanup()
    logger.info(
        f"Cleanup removed {result['cleaned_logs']} audit entries "
        f"(retention {result['retention_days']} days)"
    )
    return result


@celery_app.task(name="send_notifications")
def send_notifications() -> dict[str, Any]:
    responder = get_responder()
    responder.refresh_options()
    return responder.notify()
