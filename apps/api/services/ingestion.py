"""Validation and persistence of browser telemetry events."""

from __future__ import annotations

import logging
import math
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from fastapi import HTTPException

from config import settings
from models.feedback import Feedback
from models.reading_analytics import ReadingAnalytics
from models.view import View
from services.event_store import EventStore

logger = logging.getLogger(__name__)

ANONYMOUS_SESSION = "anonymous"
UNKNOWN_USER_AGENT = "Unknown"
# Upper bound of the INTEGER time_on_page column.
MAX_TIME_ON_PAGE = 2**31 - 1


def _is_number(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    try:
        return math.isfinite(value)
    except OverflowError:
        return False


def _clean_slug(value: Any) -> Optional[str]:
    if not isinstance(value, str):
        return None
    slug = value.strip()
    return slug or None


def _clean_session(value: Any) -> Optional[str]:
    if value is None:
        return None
    session_id = str(value).strip()
    return session_id or None


def _clip_percent(value: float) -> int:
    return int(round(max(0.0, min(100.0, float(value)))))


def _now() -> datetime:
    return datetime.now(timezone.utc)


def serialize_view(view: View) -> Dict[str, Any]:
    return {
        "id": view.id,
        "slug": view.slug,
        "timestamp": view.timestamp.isoformat() if view.timestamp else None,
        "sessionId": view.session_id,
        "userAgent": view.user_agent,
    }


def serialize_feedback(feedback: Feedback) -> Dict[str, Any]:
    return {
        "id": feedback.id,
        "slug": feedback.slug,
        "rating": feedback.rating,
        "timestamp": feedback.timestamp.isoformat() if feedback.timestamp else None,
        "sessionId": feedback.session_id,
    }


def serialize_reading(reading: ReadingAnalytics) -> Dict[str, Any]:
    return {
        "id": reading.id,
        "slug": reading.slug,
        "sessionId": reading.session_id,
        "timestamp": reading.timestamp.isoformat() if reading.timestamp else None,
        "maxScrollDepth": reading.max_scroll_depth,
        "reached25": bool(reading.reached_25),
        "reached50": bool(reading.reached_50),
        "reached75": bool(reading.reached_75),
        "reached100": bool(reading.reached_100),
        "timeOnPage": reading.time_on_page,
        "exitScrollPosition": reading.exit_scroll_position,
        "userAgent": reading.user_agent,
    }


async def record_view_service(
    *,
    payload: Dict[str, Any],
    user_agent: Optional[str],
    store: EventStore,
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    """Store a page view unless the same session saw the post inside the dedup window."""
    slug = _clean_slug(payload.get("slug"))
    if not slug:
        raise HTTPException(status_code=400, detail="Invalid view data")

    session_id = _clean_session(payload.get("sessionId"))
    timestamp = now or _now()

    # Views without a session id cannot be attributed, so they are never deduplicated.
    if session_id and await store.has_recent_view(
        session_id,
        slug,
        settings.DUPLICATE_VIEW_WINDOW_MINUTES,
        now=timestamp,
    ):
        return {"success": True, "counted": False}

    view = View(
        id=str(uuid.uuid4()),
        slug=slug,
        timestamp=timestamp,
        session_id=session_id or ANONYMOUS_SESSION,
        user_agent=user_agent or UNKNOWN_USER_AGENT,
    )
    await store.insert_view(view)
    logger.info("view_recorded slug=%s session=%s", slug, view.session_id)
    return {"success": True, "counted": True, "view": serialize_view(view)}


async def record_feedback_service(
    *,
    payload: Dict[str, Any],
    store: EventStore,
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    slug = _clean_slug(payload.get("slug"))
    rating = payload.get("rating")
    if (
        not slug
        or not _is_number(rating)
        or float(rating) != int(rating)
        or not 1 <= int(rating) <= 5
    ):
        raise HTTPException(status_code=400, detail="Invalid feedback data")

    feedback = Feedback(
        id=str(uuid.uuid4()),
        slug=slug,
        rating=int(rating),
        timestamp=now or _now(),
        session_id=_clean_session(payload.get("sessionId")) or ANONYMOUS_SESSION,
    )
    await store.insert_feedback(feedback)
    logger.info("feedback_recorded slug=%s rating=%s", slug, feedback.rating)
    return {"success": True, "feedback": serialize_feedback(feedback)}


async def record_reading_service(
    *,
    payload: Dict[str, Any],
    user_agent: Optional[str],
    store: EventStore,
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    """Store one reading-analytics record.

    Milestones are derived from ``maxScrollDepth`` so ``reached_N`` can only be
    true when the reader actually scrolled at least N percent.
    """
    slug = _clean_slug(payload.get("slug"))
    max_scroll_depth = payload.get("maxScrollDepth")
    time_on_page = payload.get("timeOnPage")
    exit_scroll_position = payload.get("exitScrollPosition")
    if (
        not slug
        or not _is_number(max_scroll_depth)
        or not _is_number(time_on_page)
        or not 0 <= time_on_page <= MAX_TIME_ON_PAGE
        or (exit_scroll_position is not None and not _is_number(exit_scroll_position))
    ):
        raise HTTPException(status_code=400, detail="Invalid analytics data")

    depth = _clip_percent(max_scroll_depth)
    exit_position = _clip_percent(exit_scroll_position) if exit_scroll_position is not None else depth

    reading = ReadingAnalytics(
        id=str(uuid.uuid4()),
        slug=slug,
        session_id=_clean_session(payload.get("sessionId")) or ANONYMOUS_SESSION,
        timestamp=now or _now(),
        max_scroll_depth=depth,
        reached_25=depth >= 25,
        reached_50=depth >= 50,
        reached_75=depth >= 75,
        reached_100=depth >= 100,
        time_on_page=int(round(float(time_on_page))),
        exit_scroll_position=exit_position,
        user_agent=user_agent or UNKNOWN_USER_AGENT,
    )
    await store.insert_reading(reading)
    logger.info(
        "reading_recorded slug=%s depth=%s time_on_page=%s",
        slug,
        reading.max_scroll_depth,
        reading.time_on_page,
    )
    return {"success": True}


async def list_views_service(*, store: EventStore) -> List[Dict[str, Any]]:
    return [serialize_view(view) for view in await store.list_views()]


async def list_feedback_service(*, store: EventStore) -> List[Dict[str, Any]]:
    return [serialize_feedback(item) for item in await store.list_feedback()]


async def list_readings_service(*, store: EventStore) -> List[Dict[str, Any]]:
    return [serialize_reading(item) for item in await store.list_readings()]
