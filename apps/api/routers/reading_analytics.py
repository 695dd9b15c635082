"""Reading engagement (scroll depth / time on page) ingestion router."""

from __future__ import annotations

import logging
from typing import Any, Optional

from fastapi import APIRouter, Depends, Header, HTTPException
from pydantic import BaseModel, ConfigDict

from config import settings
from routers.rate_limit import rate_limit
from services.event_store import EventStore, get_event_store
from services.ingestion import list_readings_service, record_reading_service

router = APIRouter()
logger = logging.getLogger(__name__)


class ReadingAnalyticsRequest(BaseModel):
    model_config = ConfigDict(extra="allow")

    slug: Any = None
    sessionId: Any = None
    maxScrollDepth: Any = None
    reached25: Any = None
    reached50: Any = None
    reached75: Any = None
    reached100: Any = None
    timeOnPage: Any = None
    exitScrollPosition: Any = None


@router.get("")
async def list_reading_analytics(store: EventStore = Depends(get_event_store)):
    try:
        return await list_readings_service(store=store)
    except Exception:
        logger.exception("Failed to read reading analytics")
        raise HTTPException(status_code=500, detail="Failed to read analytics")


@router.post("")
async def record_reading_analytics(
    request: ReadingAnalyticsRequest,
    user_agent: Optional[str] = Header(default=None),
    _rate_limit: None = Depends(rate_limit("reading", limit=settings.READING_RATE_LIMIT_PER_HOUR, window_seconds=3600)),
    store: EventStore = Depends(get_event_store),
):
    try:
        return await record_reading_service(
            payload=request.model_dump(),
            user_agent=user_agent,
            store=store,
        )
    except HTTPException:
        raise
    except Exception:
        logger.exception("Failed to save reading analytics")
        raise HTTPException(status_code=500, detail="Failed to save analytics")
