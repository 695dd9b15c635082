"""
Analytics response models and schemas.
"""

from typing import Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Serializes snake_case fields as the camelCase keys the dashboard reads."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class PostAnalytics(CamelModel):
    """Per-post row of the site-wide dashboard table."""
    slug: str
    title: str
    total_views: int
    total_ratings: int
    average_rating: float
    engagement_rate: float  # ratings / views * 100
    rating_distribution: Dict[int, int]
    category: Optional[str] = None
    completion_rate: float
    avg_scroll_depth: int
    avg_time: int


class OverallStats(CamelModel):
    total_views: int
    total_feedback: int
    total_posts: int
    average_rating: float
    posts_with_feedback: int
    overall_engagement_rate: float


class RatingTrend(CamelModel):
    date: str  # YYYY-MM-DD (UTC)
    count: int
    average_rating: float


class SiteAnalytics(CamelModel):
    """Output of the site-wide aggregation."""
    overall_stats: OverallStats
    post_analytics: List[PostAnalytics]
    trends: List[RatingTrend]
    overall_distribution: Dict[int, int]


class PostSummary(CamelModel):
    slug: str
    title: str
    category: Optional[str] = None
    published_at: Optional[str] = None


class PostOverview(CamelModel):
    total_views: int
    total_readings: int
    total_ratings: int
    completion_rate: float
    avg_scroll_depth: int
    avg_time: int
    average_rating: float
    engagement_rate: float


class ScrollDepthDistribution(BaseModel):
    """How many reading sessions passed each scroll milestone."""
    model_config = ConfigDict(populate_by_name=True)

    reached_25: int = Field(alias="reached25")
    reached_50: int = Field(alias="reached50")
    reached_75: int = Field(alias="reached75")
    reached_100: int = Field(alias="reached100")


class DropOffBucket(CamelModel):
    position: str  # "{start}-{end}%"
    count: int


class ReadingTrend(CamelModel):
    date: str
    views: int
    completion_rate: float


class PostAnalyticsDetail(CamelModel):
    """Output of the single-post aggregation."""
    post: PostSummary
    overview: PostOverview
    scroll_depth_distribution: ScrollDepthDistribution
    time_distribution: Dict[str, int]
    drop_off_curve: List[DropOffBucket]
    rating_distribution: Dict[int, int]
    trends: List[ReadingTrend]
