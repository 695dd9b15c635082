import pytest
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

from analysis.metrics import (
    aggregate_post,
    aggregate_site,
    drop_off_curve,
    event_date,
    group_by_date,
    rating_distribution,
    rating_trends,
    round_half_up,
    time_distribution,
)
from models.feedback import Feedback
from models.reading_analytics import ReadingAnalytics
from models.view import View

NOW = datetime(2024, 1, 15, 12, 0, tzinfo=timezone.utc)


def _post(slug, title=None, category=None, date=None):
    return SimpleNamespace(slug=slug, title=title or slug.title(), category=category, date=date)


def _view(slug, timestamp=NOW, session_id="s1"):
    return View(id=f"v-{slug}-{timestamp}", slug=slug, timestamp=timestamp, session_id=session_id)


def _feedback(slug, rating, timestamp=NOW):
    return Feedback(id=f"f-{slug}-{rating}-{timestamp}", slug=slug, rating=rating, timestamp=timestamp, session_id="s1")


def _reading(slug, depth=50, time_on_page=45, exit_position=None, timestamp=NOW):
    return ReadingAnalytics(
        id=f"r-{slug}-{depth}-{time_on_page}",
        slug=slug,
        session_id="s1",
        timestamp=timestamp,
        max_scroll_depth=depth,
        reached_25=depth >= 25,
        reached_50=depth >= 50,
        reached_75=depth >= 75,
        reached_100=depth >= 100,
        time_on_page=time_on_page,
        exit_scroll_position=depth if exit_position is None else exit_position,
    )


@pytest.fixture
def sample_posts():
    return [_post("a", category="python"), _post("b")]


def test_single_post_overview_example():
    result = aggregate_site(
        [_post("a")],
        [_view("a"), _view("a"), _view("a")],
        [_feedback("a", 4), _feedback("a", 2)],
        [],
        now=NOW,
    )

    row = result.post_analytics[0]
    assert row.total_views == 3
    assert row.total_ratings == 2
    assert row.average_rating == 3.0
    assert row.engagement_rate == 66.7
    assert result.overall_stats.overall_engagement_rate == 66.7


def test_engagement_rate_is_zero_without_views(sample_posts):
    result = aggregate_site(sample_posts, [], [_feedback("a", 5), _feedback("a", 1)], [], now=NOW)

    row = next(item for item in result.post_analytics if item.slug == "a")
    assert row.total_ratings == 2
    assert row.engagement_rate == 0
    assert result.overall_stats.overall_engagement_rate == 0


def test_unmatched_views_count_toward_overall_total_only(sample_posts):
    views = [_view("a"), _view("b"), _view("deleted-post"), _view("deleted-post")]
    result = aggregate_site(sample_posts, views, [], [], now=NOW)

    assert result.overall_stats.total_views == len(views)
    assert sum(item.total_views for item in result.post_analytics) == 2
    assert result.overall_stats.total_posts == 2


def test_overall_stats_and_sorting(sample_posts):
    feedback = [_feedback("b", 5), _feedback("b", 4), _feedback("a", 1)]
    result = aggregate_site(sample_posts, [_view("a"), _view("b")], feedback, [], now=NOW)

    assert [item.slug for item in result.post_analytics] == ["b", "a"]
    assert result.overall_stats.total_feedback == 3
    assert result.overall_stats.posts_with_feedback == 2
    assert result.overall_stats.average_rating == 3.3
    assert result.overall_distribution == {1: 1, 2: 0, 3: 0, 4: 1, 5: 1}


def test_rating_histogram_sums_to_total_ratings():
    feedback = [_feedback("a", rating) for rating in (1, 2, 2, 3, 5, 5, 5, 4)]
    distribution = rating_distribution(feedback)
    assert sum(distribution.values()) == len(feedback)
    assert distribution == {1: 1, 2: 2, 3: 1, 4: 1, 5: 3}


def test_reading_metrics_in_site_breakdown(sample_posts):
    readings = [
        _reading("a", depth=100, time_on_page=120),
        _reading("a", depth=40, time_on_page=31),
        _reading("a", depth=75, time_on_page=10),
    ]
    result = aggregate_site(sample_posts, [], [], readings, now=NOW)

    row = next(item for item in result.post_analytics if item.slug == "a")
    assert row.completion_rate == 33.3
    assert row.avg_scroll_depth == 72  # 215 / 3 = 71.67
    assert row.avg_time == 54  # 161 / 3 = 53.67
    empty = next(item for item in result.post_analytics if item.slug == "b")
    assert empty.completion_rate == 0
    assert empty.avg_time == 0


def test_trend_groups_feedback_by_utc_date():
    feedback = [
        _feedback("a", 5, timestamp="2024-01-01T10:00Z"),
        _feedback("a", 3, timestamp="2024-01-01T15:00Z"),
        _feedback("a", 4, timestamp="2024-01-03T23:30:00-02:00"),  # 2024-01-04 in UTC
    ]
    trends = rating_trends(feedback, now=NOW)

    assert [t.date for t in trends] == ["2024-01-01", "2024-01-04"]
    assert trends[0].count == 2
    assert trends[0].average_rating == 4.0


def test_trend_skips_unparseable_and_old_dates_but_totals_keep_them(sample_posts):
    feedback = [
        _feedback("a", 5, timestamp="not-a-date"),
        _feedback("a", 4, timestamp=None),
        _feedback("a", 2, timestamp=NOW - timedelta(days=45)),
        _feedback("a", 3, timestamp=NOW - timedelta(days=2)),
    ]
    result = aggregate_site(sample_posts, [], feedback, [], now=NOW)

    assert result.overall_stats.total_feedback == 4
    assert len(result.trends) == 1
    assert result.trends[0].date == (NOW - timedelta(days=2)).date().isoformat()


def test_group_by_date_sorted_ascending():
    rows = [
        _feedback("a", 1, timestamp=NOW - timedelta(days=1)),
        _feedback("a", 1, timestamp=NOW - timedelta(days=5)),
        _feedback("a", 1, timestamp=NOW - timedelta(days=3)),
    ]
    dates = [date for date, _ in group_by_date(rows, now=NOW)]
    assert dates == sorted(dates)


def test_event_date_handles_naive_and_aware_values():
    assert event_date(datetime(2024, 3, 1, 23, 0)) == "2024-03-01"
    assert event_date("2024-03-01T23:00:00-05:00") == "2024-03-02"
    assert event_date("garbage") is None
    assert event_date(None) is None


def test_time_distribution_half_open_buckets():
    times = [0, 29, 30, 59, 60, 119, 120, 179, 180, 299, 300, 5000]
    readings = [_reading("a", time_on_page=t) for t in times]
    distribution = time_distribution(readings)

    assert distribution == {
        "under30": 2,
        "30to60": 2,
        "60to120": 2,
        "120to180": 2,
        "180to300": 2,
        "over300": 2,
    }
    assert sum(distribution.values()) == len(readings)


def test_drop_off_curve_labels_and_boundaries():
    readings = [_reading("a", depth=100, exit_position=p) for p in (0, 9, 10, 55, 99, 100)]
    curve = drop_off_curve(readings)

    assert [bucket.position for bucket in curve][:2] == ["0-10%", "10-20%"]
    assert curve[-1].position == "90-100%"
    assert curve[0].count == 2
    assert curve[1].count == 1
    assert curve[5].count == 1
    assert curve[9].count == 1
    # An exit at exactly 100% falls outside every bucket.
    assert sum(bucket.count for bucket in curve) == len(readings) - 1


def test_drop_off_curve_sums_to_readings_below_100():
    readings = [_reading("a", exit_position=p) for p in range(0, 100, 7)]
    assert sum(bucket.count for bucket in drop_off_curve(readings)) == len(readings)


def test_aggregate_post_detail():
    post = _post("a", title="Post A", category="python", date="2024-01-02")
    readings = [
        _reading("a", depth=100, time_on_page=200, timestamp=NOW - timedelta(days=1)),
        _reading("a", depth=60, time_on_page=20, timestamp=NOW - timedelta(days=1)),
        _reading("a", depth=20, time_on_page=5, timestamp=NOW),
    ]
    detail = aggregate_post(
        post,
        [_view("a"), _view("a")],
        [_feedback("a", 5)],
        readings,
        now=NOW,
    )

    assert detail.post.title == "Post A"
    assert detail.post.published_at == "2024-01-02"
    assert detail.overview.total_readings == 3
    assert detail.overview.engagement_rate == 50.0
    assert detail.overview.completion_rate == 33.3
    assert detail.scroll_depth_distribution.reached_25 == 2
    assert detail.scroll_depth_distribution.reached_100 == 1
    assert detail.time_distribution["under30"] == 2
    assert detail.time_distribution["180to300"] == 1
    assert len(detail.drop_off_curve) == 10
    assert detail.rating_distribution[5] == 1
    assert [(t.date, t.views, t.completion_rate) for t in detail.trends] == [
        ("2024-01-14", 2, 50.0),
        ("2024-01-15", 1, 0.0),
    ]


def test_aggregate_post_serializes_camel_case():
    detail = aggregate_post(_post("a"), [], [], [], now=NOW)
    payload = detail.model_dump(by_alias=True)

    assert set(payload) == {
        "post",
        "overview",
        "scrollDepthDistribution",
        "timeDistribution",
        "dropOffCurve",
        "ratingDistribution",
        "trends",
    }
    assert payload["scrollDepthDistribution"] == {"reached25": 0, "reached50": 0, "reached75": 0, "reached100": 0}
    assert payload["overview"]["averageRating"] == 0
    assert payload["overview"]["engagementRate"] == 0


def test_round_half_up_matches_dashboard_rounding():
    assert round_half_up(0.25) == 0.3
    assert round_half_up(66.666) == 66.7
    assert round_half_up(0.0) == 0.0
