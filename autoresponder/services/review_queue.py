"""
Retry queue for reviews whose processing was deferred or failed.

The queue is a JSON snapshot under one Redis key. Items carry their own
``queued_at`` and expire after ``ttl_seconds``; Redis key expiry is not used.
Every read-modify-write runs inside a WATCH/MULTI transaction.
"""
from dataclasses import dataclass, field
from typing import Callable, Optional
import json
import logging
import time

import redis
from pydantic import BaseModel, ValidationError

from autoresponder.constants import MAX_QUEUE_ATTEMPTS, QUEUE_REDIS_KEY
from autoresponder.models import AuditAction
from autoresponder.pipeline.processor import ProcessingOutcome
from autoresponder.services.store import ResponseStore

logger = logging.getLogger(__name__)


class QueueItem(BaseModel):
    review_id: int
    queued_at: float
    attempts: int = 0
    last_error: Optional[str] = None


@dataclass
class DrainReport:
    processed: list[int] = field(default_factory=list)
    failed: list[int] = field(default_factory=list)   # kept for another attempt
    dropped: list[int] = field(default_factory=list)  # reached the attempt limit

    def as_dict(self) -> dict:
        return {
            "processed_count": len(self.processed),
            "failed_count": len(self.failed) + len(self.dropped),
            "processed_reviews": self.processed,
            "retrying_reviews": self.failed,
            "dropped_reviews": self.dropped,
        }


class ReviewQueue:
    def __init__(
        self,
        redis_client: redis.Redis,
        store: ResponseStore,
        ttl_seconds: int = 3600,
        max_attempts: int = MAX_QUEUE_ATTEMPTS,
        key: str = QUEUE_REDIS_KEY,
        clock: Callable[[], float] = time.time,
    ):
        self._redis = redis_client
        self.store = store
        self.ttl_seconds = ttl_seconds
        self.max_attempts = max_attempts
        self.key = key
        self._clock = clock

    def _decode(self, raw) -> list[QueueItem]:
        if not raw:
            return []
        try:
            return [QueueItem.model_validate(item) for item in json.loads(raw)]
        except (json.JSONDecodeError, TypeError, ValidationError):
            logger.error(f"Discarding unreadable review queue snapshot under {self.key}")
            return []

    @staticmethod
    def _encode(items: list[QueueItem]) -> str:
        return json.dumps([item.model_dump() for item in items])

    def _live(self, items: list[QueueItem]) -> list[QueueItem]:
        cutoff = self._clock() - self.ttl_seconds
        return [item for item in items if item.queued_at > cutoff]

    def _store_items(self, pipe, items: list[QueueItem]) -> None:
        pipe.multi()
        if items:
            pipe.set(self.key, self._encode(items))
        else:
            pipe.delete(self.key)

    def items(self) -> list[QueueItem]:
        """Unexpired items in queue order."""
        return self._live(self._decode(self._redis.get(self.key)))

    def size(self) -> int:
        return len(self.items())

    def enqueue(self, review_id: int) -> bool:
        """Append a review unless it is already queued. Returns True if added."""

        def update(pipe) -> bool:
            items = self._live(self._decode(pipe.get(self.key)))
            if any(item.review_id == review_id for item in items):
                return False
            items.append(QueueItem(review_id=review_id, queued_at=self._clock()))
            self._store_items(pipe, items)
            return True

        added = self._redis.transaction(update, self.key, value_from_callable=True)
        if added:
            logger.info(f"Review {review_id}: Queued for processing")
        else:
            logger.debug(f"Review {review_id}: Already queued")
        return added

    def purge_expired(self) -> int:
        """Drop items older than the TTL; returns how many were removed."""

        def update(pipe) -> int:
            items = self._decode(pipe.get(self.key))
            live = self._live(items)
            self._store_items(pipe, live)
            return len(items) - len(live)

        removed = self._redis.transaction(update, self.key, value_from_callable=True)
        if removed:
            logger.info(f"Purged {removed} expired review queue items")
        return removed

    def drain(self, run: Callable[[int], ProcessingOutcome]) -> DrainReport:
        """
        Process every queued review once with ``run``.

        Successes leave the queue. Failures are kept with ``attempts`` and
        ``last_error`` updated until they reach ``max_attempts``, at which point
        they are dropped and logged as ``review_processing_failed``. Only the
        still-failed subset (plus anything enqueued meanwhile) is written back.
        """
        snapshot = self.items()
        report = DrainReport()
        if not snapshot:
            return report

        still_failed: list[QueueItem] = []
        for item in snapshot:
            outcome = run(item.review_id)
            if outcome.succeeded:
                report.processed.append(item.review_id)
                continue

            item.attempts += 1
            item.last_error = outcome.error or "Processing failed"
            if item.attempts >= self.max_attempts:
                logger.error(
                    f"Review {item.review_id}: Giving up after {item.attempts} attempts: {item.last_error}"
                )
                self.store.log(
                    AuditAction.REVIEW_PROCESSING_FAILED,
                    review_id=item.review_id,
                    details={"error": item.last_error, "attempts": item.attempts},
                )
                report.dropped.append(item.review_id)
            else:
                still_failed.append(item)
                report.failed.append(item.review_id)

        drained_ids = {item.review_id for item in snapshot}
        failed_ids = {item.review_id for item in still_failed}

        def write_back(pipe) -> None:
            arrived = [
                item for item in self._live(self._decode(pipe.get(self.key)))
                if item.review_id not in drained_ids and item.review_id not in failed_ids
            ]
            self._store_items(pipe, still_failed + arrived)

        self._redis.transaction(write_back, self.key)

        logger.info(
            f"Queue drain: {len(report.processed)} processed, "
            f"{len(report.failed)} retrying, {len(report.dropped)} dropped"
        )
        self.store.log(AuditAction.BATCH_PROCESSING_COMPLETED, details=report.as_dict())
        return report

    def clear(self) -> None:
        self._redis.delete(self.key)
