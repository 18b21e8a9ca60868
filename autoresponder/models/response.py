from sqlalchemy import Column, Integer, String, Text, Float, DateTime, Index, Enum as SQLEnum
from datetime import datetime, timezone
import enum

from autoresponder.db.session import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ResponseStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    PUBLISHED = "published"


class GeneratedResponse(Base):
    """An AI-drafted (or fallback) reply candidate for one storefront review."""
    __tablename__ = "ai_responses"
    __table_args__ = (
        Index("ix_ai_responses_review_created", "review_id", "created_at"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    review_id = Column(Integer, nullable=False, index=True)
    product_id = Column(Integer, nullable=False, index=True)
    response_text = Column(Text, nullable=False)
    status = Column(
        SQLEnum(ResponseStatus, name="response_status", values_callable=lambda e: [m.value for m in e]),
        default=ResponseStatus.PENDING,
        nullable=False,
        index=True,
    )
    ai_provider = Column(String(50), nullable=False)
    model_used = Column(String(100), nullable=False)
    generation_time = Column(Float, nullable=True)  # seconds
    reply_id = Column(Integer, nullable=True)       # storefront comment created for this response
    approved_by = Column(String(255), nullable=True)
    approved_at = Column(DateTime(timezone=True), nullable=True)
    rejection_reason = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False, index=True)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)
