"""
Operational endpoints: status, provider checks, queue and options.

Provides:
- GET   /status                  : Providers, statistics and queue size
- POST  /providers/{name}/test   : Send the fixed test prompt to one provider
- POST  /queue/drain             : Drain the retry queue now
- POST  /reviews/process-pending : Backfill replies for held reviews (worker)
- GET   /logs                    : Audit log page, newest first
- GET   /options                 : Current responder options (no API keys)
- PATCH /options                 : Set one option by dotted path
"""
from typing import Any, Optional
from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import ValidationError
import asyncio
import logging

from autoresponder.api.auth import verify_api_key
from autoresponder.api.deps import get_responder_dep
from autoresponder.schemas.responses import (
    AuditLogOut,
    DrainResponse,
    OptionUpdateRequest,
    ProviderTestResponse,
)
from autoresponder.services.responder import Responder
from autoresponder.tasks.review_tasks import process_pending_reviews_task
from autoresponder.utils.security import UnsafeURLError, validate_webhook_url_no_ssrf

logger = logging.getLogger(__name__)

router = APIRouter(
    tags=["admin"],
    dependencies=[Depends(verify_api_key)],
)


@router.get("/status")
async def get_status(responder: Responder = Depends(get_responder_dep)) -> dict[str, Any]:
    return await asyncio.to_thread(responder.get_status)


@router.post("/providers/{name}/test", response_model=ProviderTestResponse)
async def test_provider(name: str, responder: Responder = Depends(get_responder_dep)):
    result = await asyncio.to_thread(responder.manager.test_provider, name)
    return ProviderTestResponse(**result)


@router.post("/queue/drain", response_model=DrainResponse)
async def drain_queue(responder: Responder = Depends(get_responder_dep)):
    report = await asyncio.to_thread(responder.trigger_queue_drain)
    if report is None:
        return DrainResponse(skipped=True)
    return DrainResponse(**report.as_dict())


@router.post("/reviews/process-pending", status_code=status.HTTP_202_ACCEPTED)
async def process_pending_reviews(limit: Optional[int] = None) -> dict[str, Any]:
    task = process_pending_reviews_task.delay(limit)
    return {"task_id": str(task.id), "message": "Processing of held reviews started"}


@router.get("/logs", response_model=list[AuditLogOut])
async def get_logs(
    limit: int = 50,
    offset: int = 0,
    responder: Responder = Depends(get_responder_dep),
):
    entries = await asyncio.to_thread(responder.store.get_logs, min(limit, 500), offset)
    return [AuditLogOut.model_validate(e) for e in entries]


@router.get("/options")
async def get_options(responder: Responder = Depends(get_responder_dep)) -> dict[str, Any]:
    return responder.options.model_dump(mode="json")


@router.patch("/options")
async def update_option(
    body: OptionUpdateRequest,
    responder: Responder = Depends(get_responder_dep),
) -> dict[str, Any]:
    if body.path == "notification_settings.webhook_url" and body.value:
        try:
            await asyncio.to_thread(validate_webhook_url_no_ssrf, str(body.value))
        except UnsafeURLError as e:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    try:
        await asyncio.to_thread(responder.options_store.set, body.path, body.value)
    except KeyError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Unknown option '{body.path}'",
        )
    except ValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid value for '{body.path}': {e.errors()[0]['msg']}",
        )

    logger.info(f"Option {body.path} updated")
    return {"path": body.path, "value": responder.options.get(body.path)}
