"""Page view ingestion router."""

from __future__ import annotations

import logging
from typing import Any, Optional

from fastapi import APIRouter, Depends, Header, HTTPException
from pydantic import BaseModel, ConfigDict

from config import settings
from routers.rate_limit import rate_limit
from services.event_store import EventStore, get_event_store
from services.ingestion import list_views_service, record_view_service

router = APIRouter()
logger = logging.getLogger(__name__)


class ViewEventRequest(BaseModel):
    # Shape is checked in the service so bad payloads get a 400, not a 422.
    model_config = ConfigDict(extra="allow")

    slug: Any = None
    sessionId: Any = None


@router.get("")
async def list_views(store: EventStore = Depends(get_event_store)):
    try:
        return await list_views_service(store=store)
    except Exception:
        logger.exception("Failed to read views")
        raise HTTPException(status_code=500, detail="Failed to read views")


@router.post("")
async def track_view(
    request: ViewEventRequest,
    user_agent: Optional[str] = Header(default=None),
    _rate_limit: None = Depends(rate_limit("view", limit=settings.VIEW_RATE_LIMIT_PER_HOUR, window_seconds=3600)),
    store: EventStore = Depends(get_event_store),
):
    """Count a page view unless this session already viewed the post recently."""
    try:
        return await record_view_service(
            payload=request.model_dump(),
            user_agent=user_agent,
            store=store,
        )
    except HTTPException:
        raise
    except Exception:
        logger.exception("Failed to save view")
        raise HTTPException(status_code=500, detail="Failed to save view")
