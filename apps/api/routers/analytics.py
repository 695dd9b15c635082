"""
Router for the dashboard aggregations.
"""

import logging
from fastapi import APIRouter, Depends, HTTPException

from analysis.models import PostAnalyticsDetail, SiteAnalytics
from routers.auth_scope import DashboardContext, require_dashboard_session
from services.analytics import get_post_analytics_service, get_site_analytics_service
from services.event_store import EventStore, get_event_store

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("", response_model=SiteAnalytics)
async def get_site_analytics(
    _dashboard: DashboardContext = Depends(require_dashboard_session),
    store: EventStore = Depends(get_event_store),
):
    """Overall stats, per-post breakdown, rating trend and rating distribution."""
    try:
        return await get_site_analytics_service(store=store)
    except Exception:
        logger.exception("Failed to generate analytics")
        raise HTTPException(status_code=500, detail="Failed to generate analytics")


@router.get("/{slug}", response_model=PostAnalyticsDetail)
async def get_post_analytics(
    slug: str,
    _dashboard: DashboardContext = Depends(require_dashboard_session),
    store: EventStore = Depends(get_event_store),
):
    """Engagement detail for one post."""
    try:
        return await get_post_analytics_service(slug=slug, store=store)
    except LookupError:
        raise HTTPException(status_code=404, detail="Post not found")
    except Exception:
        logger.exception("Failed to generate analytics for post %s", slug)
        raise HTTPException(status_code=500, detail="Failed to generate analytics")
