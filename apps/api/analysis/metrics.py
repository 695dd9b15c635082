"""
Core analytics aggregation logic.

Every function here works on rows that were already fetched from the event
store, so the site-wide dashboard and the single-post dashboard share one set
of routines and differ only in which rows they hand in.
"""

import math
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

import numpy as np

from .models import (
    DropOffBucket,
    OverallStats,
    PostAnalytics,
    PostAnalyticsDetail,
    PostOverview,
    PostSummary,
    RatingTrend,
    ReadingTrend,
    ScrollDepthDistribution,
    SiteAnalytics,
)


RATING_VALUES = (1, 2, 3, 4, 5)
SCROLL_MILESTONES = (25, 50, 75, 100)
# Half-open [lower, next) buckets in seconds; the last one is open-ended.
TIME_BUCKET_EDGES = (0, 30, 60, 120, 180, 300)
TIME_BUCKET_LABELS = ("under30", "30to60", "60to120", "120to180", "180to300", "over300")
DROP_OFF_BUCKET_WIDTH = 10
DROP_OFF_BUCKET_COUNT = 10
DEFAULT_TREND_WINDOW_DAYS = 30


def round_half_up(value: float, digits: int = 1) -> float:
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor


def round_to_int(value: float) -> int:
    return int(math.floor(value + 0.5))


def ratio(numerator: float, denominator: float) -> float:
    """Division that yields 0 for an empty denominator."""
    if not denominator:
        return 0.0
    return numerator / denominator


def parse_event_time(value: Any) -> Optional[datetime]:
    """Normalize a stored timestamp to an aware UTC datetime, or None if unusable."""
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str) and value.strip():
        try:
            parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError:
            return None
    else:
        return None
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def event_date(value: Any) -> Optional[str]:
    """Calendar date (UTC) of an event as ``YYYY-MM-DD``."""
    parsed = parse_event_time(value)
    if parsed is None:
        return None
    return parsed.date().isoformat()


def rating_distribution(feedback: Iterable[Any]) -> Dict[int, int]:
    counts = {value: 0 for value in RATING_VALUES}
    for item in feedback:
        if item.rating in counts:
            counts[item.rating] += 1
    return counts


def scroll_depth_distribution(readings: Sequence[Any]) -> ScrollDepthDistribution:
    return ScrollDepthDistribution(
        reached_25=sum(1 for r in readings if r.reached_25),
        reached_50=sum(1 for r in readings if r.reached_50),
        reached_75=sum(1 for r in readings if r.reached_75),
        reached_100=sum(1 for r in readings if r.reached_100),
    )


def time_distribution(readings: Sequence[Any]) -> Dict[str, int]:
    """Bucket time-on-page into the fixed [0,30,60,120,180,300,inf) seconds bins."""
    times = np.asarray([float(r.time_on_page or 0) for r in readings], dtype=float)
    edges = np.asarray(TIME_BUCKET_EDGES, dtype=float)
    indexes = np.searchsorted(edges, times, side="right") - 1
    counts = np.bincount(indexes[indexes >= 0], minlength=len(TIME_BUCKET_LABELS))
    return {label: int(counts[i]) for i, label in enumerate(TIME_BUCKET_LABELS)}


def drop_off_curve(readings: Sequence[Any]) -> List[DropOffBucket]:
    """Count exit positions in 10% bins over [0, 100). An exit at exactly 100 lands in no bin."""
    positions = np.asarray(
        [np.nan if r.exit_scroll_position is None else float(r.exit_scroll_position) for r in readings],
        dtype=float,
    )
    upper = DROP_OFF_BUCKET_WIDTH * DROP_OFF_BUCKET_COUNT
    with np.errstate(invalid="ignore"):
        in_range = positions[(positions >= 0) & (positions < upper)]
    indexes = (in_range // DROP_OFF_BUCKET_WIDTH).astype(int)
    counts = np.bincount(indexes, minlength=DROP_OFF_BUCKET_COUNT)

    curve: List[DropOffBucket] = []
    for i in range(DROP_OFF_BUCKET_COUNT):
        start = i * DROP_OFF_BUCKET_WIDTH
        end = start + DROP_OFF_BUCKET_WIDTH
        curve.append(DropOffBucket(position=f"{start}-{end}%", count=int(counts[i])))
    return curve


@dataclass
class EngagementSummary:
    """Raw counters for one scope (a single post, or the whole site)."""

    total_views: int = 0
    total_ratings: int = 0
    total_readings: int = 0
    rating_sum: int = 0
    completed_readings: int = 0
    scroll_depth_sum: float = 0.0
    time_on_page_sum: float = 0.0
    distribution: Dict[int, int] = field(default_factory=lambda: {value: 0 for value in RATING_VALUES})

    @property
    def average_rating(self) -> float:
        return round_half_up(ratio(self.rating_sum, self.total_ratings))

    @property
    def engagement_rate(self) -> float:
        return round_half_up(ratio(self.total_ratings, self.total_views) * 100)

    @property
    def completion_rate(self) -> float:
        return round_half_up(ratio(self.completed_readings, self.total_readings) * 100)

    @property
    def avg_scroll_depth(self) -> int:
        return round_to_int(ratio(self.scroll_depth_sum, self.total_readings))

    @property
    def avg_time(self) -> int:
        return round_to_int(ratio(self.time_on_page_sum, self.total_readings))


def summarize_engagement(
    views: Sequence[Any],
    feedback: Sequence[Any],
    readings: Sequence[Any],
) -> EngagementSummary:
    """Shared overview math for both the site-wide and single-post scopes."""
    return EngagementSummary(
        total_views=len(views),
        total_ratings=len(feedback),
        total_readings=len(readings),
        rating_sum=sum(int(f.rating) for f in feedback),
        completed_readings=sum(1 for r in readings if r.reached_100),
        scroll_depth_sum=sum(float(r.max_scroll_depth or 0) for r in readings),
        time_on_page_sum=sum(float(r.time_on_page or 0) for r in readings),
        distribution=rating_distribution(feedback),
    )


def group_by_date(
    rows: Iterable[Any],
    *,
    now: Optional[datetime] = None,
    window_days: int = DEFAULT_TREND_WINDOW_DAYS,
) -> List[Tuple[str, List[Any]]]:
    """Group rows from the trailing window by UTC calendar date, oldest date first.

    Rows whose timestamp cannot be parsed are skipped.
    """
    cutoff = (now or datetime.now(timezone.utc)) - timedelta(days=window_days)
    grouped: Dict[str, List[Any]] = defaultdict(list)
    for row in rows:
        timestamp = parse_event_time(row.timestamp)
        if timestamp is None or timestamp < cutoff:
            continue
        grouped[timestamp.date().isoformat()].append(row)
    return sorted(grouped.items(), key=lambda item: item[0])


def rating_trends(
    feedback: Iterable[Any],
    *,
    now: Optional[datetime] = None,
    window_days: int = DEFAULT_TREND_WINDOW_DAYS,
) -> List[RatingTrend]:
    return [
        RatingTrend(
            date=date,
            count=len(rows),
            average_rating=round_half_up(ratio(sum(int(r.rating) for r in rows), len(rows))),
        )
        for date, rows in group_by_date(feedback, now=now, window_days=window_days)
    ]


def reading_trends(
    readings: Iterable[Any],
    *,
    now: Optional[datetime] = None,
    window_days: int = DEFAULT_TREND_WINDOW_DAYS,
) -> List[ReadingTrend]:
    trends: List[ReadingTrend] = []
    for date, rows in group_by_date(readings, now=now, window_days=window_days):
        completions = sum(1 for r in rows if r.reached_100)
        trends.append(
            ReadingTrend(
                date=date,
                views=len(rows),
                completion_rate=round_half_up(ratio(completions, len(rows)) * 100),
            )
        )
    return trends


def _group_by_slug(rows: Iterable[Any]) -> Dict[str, List[Any]]:
    grouped: Dict[str, List[Any]] = defaultdict(list)
    for row in rows:
        grouped[row.slug].append(row)
    return grouped


def aggregate_site(
    posts: Sequence[Any],
    views: Sequence[Any],
    feedback: Sequence[Any],
    readings: Sequence[Any],
    *,
    now: Optional[datetime] = None,
    window_days: int = DEFAULT_TREND_WINDOW_DAYS,
) -> SiteAnalytics:
    """Site-wide dashboard: per-post breakdown, overall stats and rating trend.

    Events whose slug matches no post still count toward the overall totals
    but do not appear in the per-post breakdown.
    """
    views_by_slug = _group_by_slug(views)
    feedback_by_slug = _group_by_slug(feedback)
    readings_by_slug = _group_by_slug(readings)

    post_analytics: List[PostAnalytics] = []
    for post in posts:
        summary = summarize_engagement(
            views_by_slug.get(post.slug, []),
            feedback_by_slug.get(post.slug, []),
            readings_by_slug.get(post.slug, []),
        )
        post_analytics.append(
            PostAnalytics(
                slug=post.slug,
                title=post.title,
                total_views=summary.total_views,
                total_ratings=summary.total_ratings,
                average_rating=summary.average_rating,
                engagement_rate=summary.engagement_rate,
                rating_distribution=summary.distribution,
                category=post.category,
                completion_rate=summary.completion_rate,
                avg_scroll_depth=summary.avg_scroll_depth,
                avg_time=summary.avg_time,
            )
        )

    overall = summarize_engagement(views, feedback, readings)
    overall_stats = OverallStats(
        total_views=overall.total_views,
        total_feedback=overall.total_ratings,
        total_posts=len(posts),
        average_rating=overall.average_rating,
        posts_with_feedback=sum(1 for item in post_analytics if item.total_ratings > 0),
        overall_engagement_rate=overall.engagement_rate,
    )

    return SiteAnalytics(
        overall_stats=overall_stats,
        post_analytics=sorted(post_analytics, key=lambda item: item.total_ratings, reverse=True),
        trends=rating_trends(feedback, now=now, window_days=window_days),
        overall_distribution=overall.distribution,
    )


def aggregate_post(
    post: Any,
    views: Sequence[Any],
    feedback: Sequence[Any],
    readings: Sequence[Any],
    *,
    now: Optional[datetime] = None,
    window_days: int = DEFAULT_TREND_WINDOW_DAYS,
) -> PostAnalyticsDetail:
    """Single-post dashboard over rows already scoped to ``post.slug``."""
    summary = summarize_engagement(views, feedback, readings)
    return PostAnalyticsDetail(
        post=PostSummary(
            slug=post.slug,
            title=post.title,
            category=post.category,
            published_at=post.date,
        ),
        overview=PostOverview(
            total_views=summary.total_views,
            total_readings=summary.total_readings,
            total_ratings=summary.total_ratings,
            completion_rate=summary.completion_rate,
            avg_scroll_depth=summary.avg_scroll_depth,
            avg_time=summary.avg_time,
            average_rating=summary.average_rating,
            engagement_rate=summary.engagement_rate,
        ),
        scroll_depth_distribution=scroll_depth_distribution(readings),
        time_distribution=time_distribution(readings),
        drop_off_curve=drop_off_curve(readings),
        rating_distribution=summary.distribution,
        trends=reading_trends(readings, now=now, window_days=window_days),
    )
