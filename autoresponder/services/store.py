"""
Response store: generated responses, their status transitions, the audit
log and the feedback ledger, over synchronous SQLAlchemy sessions.

Every SQLAlchemy failure surfaces as ``StorageError`` except in ``log()``,
which reports the failure and returns ``None`` so audit writes never abort
the pipeline step that triggered them.
"""
from contextlib import contextmanager
from datetime import datetime, timedelta, timezone
from typing import Any, Iterable, Iterator, Optional, Union
import json
import logging

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from autoresponder.constants import (
    MAX_LOG_DETAILS_LENGTH,
    MAX_MODEL_NAME_LENGTH,
    MAX_REASON_LENGTH,
    MAX_RESPONSE_TEXT_LENGTH,
    RECENT_ACTIVITY_DAYS,
    TRUNCATION_MARKER,
)
from autoresponder.errors import StorageError
from autoresponder.models import (
    AuditAction,
    AuditLogEntry,
    FeedbackEntry,
    FeedbackType,
    GeneratedResponse,
    ResponseStatus,
)

logger = logging.getLogger(__name__)

_STATUS_ACTIONS = {
    ResponseStatus.APPROVED: AuditAction.RESPONSE_APPROVED,
    ResponseStatus.REJECTED: AuditAction.RESPONSE_REJECTED,
    ResponseStatus.PUBLISHED: AuditAction.RESPONSE_PUBLISHED,
}


def truncate_with_marker(value: Optional[str], max_length: int) -> Optional[str]:
    """Cap ``value`` at ``max_length`` characters, ending in a visible marker."""
    if value is None or len(value) <= max_length:
        return value
    return value[: max_length - len(TRUNCATION_MARKER)] + TRUNCATION_MARKER


def _cap_details(details: Optional[dict[str, Any]]) -> Optional[dict[str, Any]]:
    if details is None:
        return None
    encoded = json.dumps(details, default=str)
    if len(encoded) > MAX_LOG_DETAILS_LENGTH:
        return {"error": "Details too large, truncated", "original_size": len(encoded)}
    # Round-trip so non-JSON values (datetimes, enums) are stored as strings
    return json.loads(encoded)


class ResponseStore:
    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory

    @contextmanager
    def _session(self) -> Iterator[Session]:
        db = self._session_factory()
        try:
            yield db
        except SQLAlchemyError as e:
            db.rollback()
            raise StorageError(str(e)) from e
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    # ── Responses ──

    def save(
        self,
        review_id: int,
        product_id: int,
        text: str,
        provider: str,
        model: str,
        elapsed: Optional[float],
    ) -> int:
        """Persist a new pending response and return its id."""
        response = GeneratedResponse(
            review_id=review_id,
            product_id=product_id,
            response_text=truncate_with_marker(text, MAX_RESPONSE_TEXT_LENGTH),
            status=ResponseStatus.PENDING,
            ai_provider=provider,
            model_used=truncate_with_marker(model, MAX_MODEL_NAME_LENGTH),
            generation_time=elapsed,
        )
        with self._session() as db:
            db.add(response)
            db.commit()
            response_id = response.id

        logger.info(f"Review {review_id}: Saved response {response_id} ({provider}/{model})")
        self.log(
            AuditAction.RESPONSE_GENERATED,
            review_id=review_id,
            response_id=response_id,
            details={"provider": provider, "model": model, "generation_time": elapsed},
        )
        return response_id

    def get(self, response_id: int) -> Optional[GeneratedResponse]:
        with self._session() as db:
            return db.get(GeneratedResponse, response_id)

    def list_by_review(self, review_id: int) -> list[GeneratedResponse]:
        with self._session() as db:
            return (
                db.query(GeneratedResponse)
                .filter(GeneratedResponse.review_id == review_id)
                .order_by(GeneratedResponse.created_at.desc(), GeneratedResponse.id.desc())
                .all()
            )

    def latest_for_review(self, review_id: int) -> Optional[GeneratedResponse]:
        """The response approval actions target when addressed by review id."""
        with self._session() as db:
            return (
                db.query(GeneratedResponse)
                .filter(GeneratedResponse.review_id == review_id)
                .order_by(GeneratedResponse.created_at.desc(), GeneratedResponse.id.desc())
                .first()
            )

    def has_response(self, review_id: int) -> bool:
        with self._session() as db:
            return db.query(
                db.query(GeneratedResponse.id)
                .filter(GeneratedResponse.review_id == review_id)
                .exists()
            ).scalar()

    def list_by_status(
        self,
        status: Union[ResponseStatus, str],
        limit: int = 50,
        offset: int = 0,
    ) -> list[GeneratedResponse]:
        with self._session() as db:
            return (
                db.query(GeneratedResponse)
                .filter(GeneratedResponse.status == ResponseStatus(status))
                .order_by(GeneratedResponse.created_at.desc(), GeneratedResponse.id.desc())
                .limit(limit)
                .offset(offset)
                .all()
            )

    def set_status(
        self,
        response_id: int,
        status: Union[ResponseStatus, str],
        actor: Optional[str] = None,
        reason: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> bool:
        """
        Transition a response to ``status``.

        Approval requires an actor and stamps ``approved_by``/``approved_at``.
        Rejection records the (length-capped) reason. Returns False when the
        response does not exist.
        """
        status = ResponseStatus(status)
        if status == ResponseStatus.APPROVED and not actor:
            raise ValueError("Approving a response requires an actor id")

        with self._session() as db:
            response = db.get(GeneratedResponse, response_id)
            if response is None:
                return False
            previous = response.status
            response.status = status
            if status == ResponseStatus.APPROVED:
                response.approved_by = actor
                response.approved_at = datetime.now(timezone.utc)
            elif status == ResponseStatus.REJECTED:
                response.rejection_reason = truncate_with_marker(reason, MAX_REASON_LENGTH)
            db.commit()
            review_id = response.review_id

        logger.info(
            f"Response {response_id}: {previous.value if previous else None} -> {status.value}"
        )
        action = _STATUS_ACTIONS.get(status)
        if action is not None:
            log_details = {"previous_status": previous.value if previous else None}
            if reason:
                log_details["reason"] = reason
            log_details.update(details or {})
            self.log(action, review_id=review_id, response_id=response_id,
                     actor_id=actor, details=log_details)
        return True

    def attach_reply(self, response_id: int, reply_id: int) -> None:
        with self._session() as db:
            response = db.get(GeneratedResponse, response_id)
            if response is None:
                raise StorageError(f"Response {response_id} not found")
            response.reply_id = reply_id
            db.commit()

    def count_responses_since(self, since: datetime) -> int:
        with self._session() as db:
            return (
                db.query(func.count(GeneratedResponse.id))
                .filter(GeneratedResponse.created_at >= since)
                .scalar()
            ) or 0

    # ── Audit log ──

    def log(
        self,
        action: Union[AuditAction, str],
        review_id: Optional[int] = None,
        response_id: Optional[int] = None,
        details: Optional[dict[str, Any]] = None,
        actor_id: Optional[str] = None,
    ) -> Optional[int]:
        action = AuditAction(action)
        entry = AuditLogEntry(
            action=action.value,
            review_id=review_id,
            response_id=response_id,
            actor_id=actor_id,
            details=_cap_details(details),
        )
        try:
            with self._session() as db:
                db.add(entry)
                db.commit()
                return entry.id
        except StorageError as e:
            logger.error(f"Failed to write audit entry {action.value}: {e}")
            return None

    def get_logs(self, limit: int = 50, offset: int = 0) -> list[AuditLogEntry]:
        with self._session() as db:
            return (
                db.query(AuditLogEntry)
                .order_by(AuditLogEntry.created_at.desc(), AuditLogEntry.id.desc())
                .limit(limit)
                .offset(offset)
                .all()
            )

    def count_logs(
        self,
        actions: Iterable[Union[AuditAction, str]],
        since: Optional[datetime] = None,
    ) -> int:
        values = [AuditAction(a).value for a in actions]
        with self._session() as db:
            query = db.query(func.count(AuditLogEntry.id)).filter(AuditLogEntry.action.in_(values))
            if since is not None:
                query = query.filter(AuditLogEntry.created_at >= since)
            return query.scalar() or 0

    def cleanup(self, retention_days: int) -> int:
        """Delete audit entries older than the retention window. Responses are kept."""
        cutoff = datetime.now(timezone.utc) - timedelta(days=retention_days)
        with self._session() as db:
            removed = (
                db.query(AuditLogEntry)
                .filter(AuditLogEntry.created_at < cutoff)
                .delete(synchronize_session=False)
            )
            db.commit()
        logger.info(f"Removed {removed} audit entries older than {retention_days} days")
        return removed

    # ── Feedback ──

    def record_feedback(
        self,
        response_id: int,
        user_id: str,
        feedback_type: Union[FeedbackType, str],
        text: Optional[str] = None,
    ) -> bool:
        """Insert or replace the feedback of ``user_id`` on a response."""
        feedback_type = FeedbackType(feedback_type)
        with self._session() as db:
            if db.get(GeneratedResponse, response_id) is None:
                return False
            entry = (
                db.query(FeedbackEntry)
                .filter(FeedbackEntry.response_id == response_id, FeedbackEntry.user_id == user_id)
                .one_or_none()
            )
            if entry is None:
                entry = FeedbackEntry(response_id=response_id, user_id=user_id)
                db.add(entry)
            entry.feedback_type = feedback_type.value
            entry.feedback_text = text
            entry.created_at = datetime.now(timezone.utc)
            db.commit()

        self.log(
            AuditAction.FEEDBACK_RECORDED,
            response_id=response_id,
            actor_id=user_id,
            details={"feedback_type": feedback_type.value},
        )
        return True

    def feedback_stats(self) -> dict[str, Any]:
        with self._session() as db:
            rows = (
                db.query(FeedbackEntry.feedback_type, func.count(FeedbackEntry.id))
                .group_by(FeedbackEntry.feedback_type)
                .all()
            )
        counts = {feedback_type: count for feedback_type, count in rows}
        positive = counts.get(FeedbackType.POSITIVE.value, 0)
        negative = counts.get(FeedbackType.NEGATIVE.value, 0)
        total = positive + negative
        return {
            "total": total,
            "positive": positive,
            "negative": negative,
            "positive_rate": round(positive / total * 100, 1) if total else 0.0,
        }

    # ── Statistics ──

    def stats(self) -> dict[str, Any]:
        since = datetime.now(timezone.utc) - timedelta(days=RECENT_ACTIVITY_DAYS)
        with self._session() as db:
            total = db.query(func.count(GeneratedResponse.id)).scalar() or 0
            by_status = (
                db.query(GeneratedResponse.status, func.count(GeneratedResponse.id))
                .group_by(GeneratedResponse.status)
                .all()
            )
            by_provider = (
                db.query(GeneratedResponse.ai_provider, func.count(GeneratedResponse.id))
                .group_by(GeneratedResponse.ai_provider)
                .all()
            )
            avg_time = (
                db.query(func.avg(GeneratedResponse.generation_time))
                .filter(GeneratedResponse.generation_time.isnot(None))
                .scalar()
            )
            recent = (
                db.query(func.count(GeneratedResponse.id))
                .filter(GeneratedResponse.created_at >= since)
                .scalar()
            ) or 0

        return {
            "total_responses": total,
            "by_status": {ResponseStatus(s).value: n for s, n in by_status},
            "by_provider": {p: n for p, n in by_provider},
            "avg_generation_time": round(float(avg_time), 3) if avg_time is not None else None,
            "recent_activity": recent,
            "feedback": self.feedback_stats(),
        }
