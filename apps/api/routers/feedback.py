"""Star rating ingestion router."""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, ConfigDict

from config import settings
from routers.rate_limit import rate_limit
from services.event_store import EventStore, get_event_store
from services.ingestion import list_feedback_service, record_feedback_service

router = APIRouter()
logger = logging.getLogger(__name__)


class FeedbackRequest(BaseModel):
    model_config = ConfigDict(extra="allow")

    slug: Any = None
    rating: Any = None
    sessionId: Any = None


@router.get("")
async def list_feedback(store: EventStore = Depends(get_event_store)):
    try:
        return await list_feedback_service(store=store)
    except Exception:
        logger.exception("Failed to read feedback")
        raise HTTPException(status_code=500, detail="Failed to read feedback")


@router.post("")
async def submit_feedback(
    request: FeedbackRequest,
    _rate_limit: None = Depends(rate_limit("feedback", limit=settings.FEEDBACK_RATE_LIMIT_PER_HOUR, window_seconds=3600)),
    store: EventStore = Depends(get_event_store),
):
    try:
        return await record_feedback_service(payload=request.model_dump(), store=store)
    except HTTPException:
        raise
    except Exception:
        logger.exception("Failed to save feedback")
        raise HTTPException(status_code=500, detail="Failed to save feedback")
