"""
Pydantic schemas for the response, event and admin endpoints.
"""
from pydantic import BaseModel, ConfigDict, Field, model_validator
from typing import Any, Optional, List
from datetime import datetime

from autoresponder.models import FeedbackType, ResponseStatus
from autoresponder.pipeline.events import ReviewEvent


# ── Request Schemas ──


class ReviewEventRequest(BaseModel):
    """Storefront notification that a review was created or changed state."""
    review_id: int = Field(..., gt=0)
    event: ReviewEvent = ReviewEvent.CREATED


class GenerateRequest(BaseModel):
    review_id: int = Field(..., gt=0)


class ApproveRequest(BaseModel):
    """Approve by explicit response id, or the latest response of a review."""
    response_id: Optional[int] = Field(None, gt=0)
    review_id: Optional[int] = Field(None, gt=0)
    response_text: Optional[str] = Field(None, min_length=1, description="Edited reply text")
    actor_id: str = Field(..., min_length=1, description="ID of the approving user")

    @model_validator(mode="after")
    def _require_target(self):
        if self.response_id is None and self.review_id is None:
            raise ValueError("Either response_id or review_id is required")
        return self


class RejectRequest(BaseModel):
    response_id: Optional[int] = Field(None, gt=0)
    review_id: Optional[int] = Field(None, gt=0)
    reason: Optional[str] = None
    actor_id: Optional[str] = None

    @model_validator(mode="after")
    def _require_target(self):
        if self.response_id is None and self.review_id is None:
            raise ValueError("Either response_id or review_id is required")
        return self


class FeedbackRequest(BaseModel):
    user_id: str = Field(..., min_length=1)
    feedback_type: FeedbackType
    feedback_text: Optional[str] = None


class OptionUpdateRequest(BaseModel):
    path: str = Field(..., min_length=1, description="Dotted option path, e.g. review_filters.min_rating")
    value: Any


# ── Response Schemas ──


class ActionResponse(BaseModel):
    success: bool
    message: str


class GenerateResponse(BaseModel):
    review_id: int
    success: bool
    response_text: Optional[str] = None
    provider: Optional[str] = None
    used_fallback: bool = False
    message: str


class EventAcceptedResponse(BaseModel):
    review_id: int
    event: ReviewEvent
    task_id: str
    message: str


class GeneratedResponseOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    review_id: int
    product_id: int
    response_text: str
    status: ResponseStatus
    ai_provider: str
    model_used: str
    generation_time: Optional[float] = None
    reply_id: Optional[int] = None
    approved_by: Optional[str] = None
    approved_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class ResponseListOut(BaseModel):
    responses: List[GeneratedResponseOut]
    total: int


class AuditLogOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    action: str
    review_id: Optional[int] = None
    response_id: Optional[int] = None
    actor_id: Optional[str] = None
    details: Optional[dict[str, Any]] = None
    created_at: datetime


class ProviderTestResponse(BaseModel):
    success: bool
    message: str
    response: Optional[str] = None


class DrainResponse(BaseModel):
    skipped: bool = False
    processed_count: int = 0
    failed_count: int = 0
    processed_reviews: List[int] = []
    retrying_reviews: List[int] = []
    dropped_reviews: List[int] = []
