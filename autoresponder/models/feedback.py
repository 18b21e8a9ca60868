from sqlalchemy import Column, Integer, String, Text, DateTime, UniqueConstraint
import enum

from autoresponder.db.session import Base
from autoresponder.models.response import utcnow


class FeedbackType(str, enum.Enum):
    POSITIVE = "positive"
    NEGATIVE = "negative"


class FeedbackEntry(Base):
    """One reviewer's verdict on a generated response; resubmission replaces it."""
    __tablename__ = "ai_feedback"
    __table_args__ = (
        UniqueConstraint("response_id", "user_id", name="uq_ai_feedback_response_user"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    response_id = Column(Integer, nullable=False, index=True)
    user_id = Column(String(255), nullable=False)
    feedback_type = Column(String(20), nullable=False)  # positive / negative
    feedback_text = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
