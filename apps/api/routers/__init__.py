"""Routers package."""

from . import (
    health,
    analytics,
    dashboard,
    feedback,
    reading_analytics,
    views,
)
