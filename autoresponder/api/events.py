"""
Storefront event intake.

- POST /events/reviews: a review was created, approved or put on hold
"""
from fastapi import APIRouter, Depends, status
import logging

from autoresponder.api.auth import verify_api_key
from autoresponder.schemas.responses import EventAcceptedResponse, ReviewEventRequest
from autoresponder.tasks.review_tasks import handle_review_event_task

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/events",
    tags=["events"],
    dependencies=[Depends(verify_api_key)],
)


@router.post(
    "/reviews",
    response_model=EventAcceptedResponse,
    status_code=status.HTTP_202_ACCEPTED,
)
async def receive_review_event(event: ReviewEventRequest):
    """Queue handling of a review event on the worker. Duplicates are tolerated."""
    task = handle_review_event_task.delay(event.review_id, event.event.value)
    logger.info(f"Review {event.review_id}: {event.event.value} event dispatched as task {task.id}")
    return EventAcceptedResponse(
        review_id=event.review_id,
        event=event.event,
        task_id=str(task.id),
        message="Review event accepted for processing",
    )
