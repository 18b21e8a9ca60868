from sqlalchemy import Column, Integer, String, DateTime, JSON
import enum

from autoresponder.db.session import Base
from autoresponder.models.response import utcnow


class AuditAction(str, enum.Enum):
    RESPONSE_GENERATED = "response_generated"
    RESPONSE_APPROVED = "response_approved"
    RESPONSE_REJECTED = "response_rejected"
    RESPONSE_PUBLISHED = "response_published"
    PROVIDER_ERROR = "provider_error"
    REVIEW_PROCESSING_ERROR = "review_processing_error"
    REVIEW_PROCESSING_FAILED = "review_processing_failed"
    BATCH_PROCESSING_COMPLETED = "batch_processing_completed"
    DATA_CLEANUP = "data_cleanup"
    FEEDBACK_RECORDED = "feedback_recorded"
    HIGH_VOLUME_NOTIFICATION = "high_volume_notification"
    ERROR_NOTIFICATION = "error_notification"
    AI_COMMENT_CREATED = "ai_comment_created"


# Actions that count towards the hourly error notification
ERROR_ACTIONS = (
    AuditAction.PROVIDER_ERROR,
    AuditAction.REVIEW_PROCESSING_ERROR,
    AuditAction.REVIEW_PROCESSING_FAILED,
)


class AuditLogEntry(Base):
    """Append-only pipeline audit trail, pruned by the retention job."""
    __tablename__ = "ai_logs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    action = Column(String(64), nullable=False, index=True)
    review_id = Column(Integer, nullable=True, index=True)
    response_id = Column(Integer, nullable=True, index=True)
    actor_id = Column(String(255), nullable=True)
    details = Column(JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False, index=True)
