"""Dashboard aggregation services: fetch events, then summarize them."""

from __future__ import annotations

import asyncio
from datetime import datetime
from typing import Optional

from analysis.metrics import aggregate_post, aggregate_site
from analysis.models import PostAnalyticsDetail, SiteAnalytics
from config import settings
from services.event_store import EventStore
from services.posts import get_all_posts, get_post_by_slug


async def get_site_analytics_service(
    *,
    store: EventStore,
    posts_dir: Optional[str] = None,
    now: Optional[datetime] = None,
) -> SiteAnalytics:
    """Aggregate every stored event against every post on disk.

    Store errors propagate; callers never get partial results.
    """
    feedback = await store.list_feedback()
    views = await store.list_views()
    readings = await store.list_readings()
    posts = await asyncio.to_thread(get_all_posts, posts_dir)

    return aggregate_site(
        posts,
        views,
        feedback,
        readings,
        now=now,
        window_days=settings.TREND_WINDOW_DAYS,
    )


async def get_post_analytics_service(
    *,
    slug: str,
    store: EventStore,
    posts_dir: Optional[str] = None,
    now: Optional[datetime] = None,
) -> PostAnalyticsDetail:
    """Aggregate the events of one post. Raises LookupError for an unknown slug."""
    post = await asyncio.to_thread(get_post_by_slug, slug, posts_dir)
    if post is None:
        raise LookupError(slug)

    views = await store.list_views(slug)
    feedback = await store.list_feedback(slug)
    readings = await store.list_readings(slug)

    return aggregate_post(
        post,
        views,
        feedback,
        readings,
        now=now,
        window_days=settings.TREND_WINDOW_DAYS,
    )
