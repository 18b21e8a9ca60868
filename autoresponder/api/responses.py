"""
Response API endpoints for the approval UI.

Provides:
- POST /responses/generate         : Generate a reply for a review now
- POST /responses/approve          : Approve (optionally edit) and publish
- POST /responses/reject           : Reject the latest response of a review
- POST /responses/{id}/feedback    : Record reviewer feedback on a response
- GET  /responses/pending          : Responses awaiting approval
- GET  /responses/{id}             : One response
"""
from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
import asyncio
import logging

from autoresponder.api.auth import verify_api_key
from autoresponder.api.deps import get_db_session, get_responder_dep
from autoresponder.config import limiter, settings
from autoresponder.errors import ResponderError
from autoresponder.models import GeneratedResponse, ResponseStatus
from autoresponder.schemas.responses import (
    ActionResponse,
    ApproveRequest,
    FeedbackRequest,
    GeneratedResponseOut,
    GenerateRequest,
    GenerateResponse,
    RejectRequest,
    ResponseListOut,
)
from autoresponder.services.responder import Responder

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/responses",
    tags=["responses"],
    dependencies=[Depends(verify_api_key)],
)


@router.post("/generate", response_model=GenerateResponse)
@limiter.limit(settings.generate_rate_limit)
async def generate_response(
    request: Request,
    body: GenerateRequest,
    responder: Responder = Depends(get_responder_dep),
):
    """Run the full pipeline for one review, including the workflow-mode action."""
    outcome = await asyncio.to_thread(responder.process, body.review_id)
    if outcome.text is None:
        return GenerateResponse(
            review_id=body.review_id,
            success=False,
            message="Failed to generate a response. Please check the AI provider configuration.",
        )
    message = "Response generated successfully"
    if outcome.publish_error:
        message = f"Response generated, but the reply could not be published: {outcome.publish_error}"
    return GenerateResponse(
        review_id=body.review_id,
        success=True,
        response_text=outcome.text,
        provider=outcome.provider,
        used_fallback=outcome.used_fallback,
        message=message,
    )


@router.post("/approve", response_model=ActionResponse)
async def approve_response(
    body: ApproveRequest,
    responder: Responder = Depends(get_responder_dep),
):
    try:
        approved = await asyncio.to_thread(
            responder.approve,
            body.response_id,
            body.review_id,
            body.response_text,
            body.actor_id,
        )
    except ResponderError as e:
        logger.error(f"Approve failed (response_id={body.response_id}, review_id={body.review_id}): {e}")
        return ActionResponse(success=False, message="Failed to approve the response. Please try again.")

    if not approved:
        return ActionResponse(success=False, message="Failed to approve and publish the response.")
    return ActionResponse(success=True, message="Response approved and published successfully.")


@router.post("/reject", response_model=ActionResponse)
async def reject_response(
    body: RejectRequest,
    responder: Responder = Depends(get_responder_dep),
):
    review_id = body.review_id
    if review_id is None:
        response = await asyncio.to_thread(responder.store.get, body.response_id)
        if response is None:
            return ActionResponse(success=False, message="Response not found.")
        review_id = response.review_id

    try:
        rejected = await asyncio.to_thread(responder.reject, review_id, body.reason, body.actor_id)
    except ResponderError as e:
        logger.error(f"Review {review_id}: Reject failed: {e}")
        return ActionResponse(success=False, message="Failed to reject the response. Please try again.")

    if not rejected:
        return ActionResponse(success=False, message="No response found for this review.")
    return ActionResponse(success=True, message="Response rejected.")


@router.post("/{response_id}/feedback", response_model=ActionResponse)
async def record_feedback(
    response_id: int,
    body: FeedbackRequest,
    responder: Responder = Depends(get_responder_dep),
):
    recorded = await asyncio.to_thread(
        responder.record_feedback,
        response_id,
        body.feedback_type.value,
        body.feedback_text,
        body.user_id,
    )
    if not recorded:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Response {response_id} not found",
        )
    return ActionResponse(success=True, message="Feedback recorded. Thank you!")


@router.get("/pending", response_model=ResponseListOut)
async def list_pending_responses(
    limit: int = 50,
    offset: int = 0,
    db: AsyncSession = Depends(get_db_session),
):
    """Responses awaiting approval, newest first."""
    total = await db.scalar(
        select(func.count(GeneratedResponse.id))
        .where(GeneratedResponse.status == ResponseStatus.PENDING)
    )
    result = await db.execute(
        select(GeneratedResponse)
        .where(GeneratedResponse.status == ResponseStatus.PENDING)
        .order_by(GeneratedResponse.created_at.desc(), GeneratedResponse.id.desc())
        .limit(limit)
        .offset(offset)
    )
    responses = result.scalars().all()
    return ResponseListOut(
        responses=[GeneratedResponseOut.model_validate(r) for r in responses],
        total=total or 0,
    )


@router.get("/{response_id}", response_model=GeneratedResponseOut)
async def get_response(
    response_id: int,
    db: AsyncSession = Depends(get_db_session),
):
    response = await db.get(GeneratedResponse, response_id)
    if response is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Response {response_id} not found",
        )
    return GeneratedResponseOut.model_validate(response)
