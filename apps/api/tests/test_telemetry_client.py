import httpx
import pytest
import pytest_asyncio
from httpx import ASGITransport

from main import app
from services.event_store import MemoryEventStore, get_event_store
from services.telemetry_client import (
    ReadingTracker,
    TelemetryClient,
    compute_scroll_depth,
    new_session_id,
)


class FakeClock:
    def __init__(self, start: float = 100.0):
        self.now = start

    def __call__(self) -> float:
        return self.now


@pytest_asyncio.fixture
async def memory_store():
    store = MemoryEventStore()

    async def override_get_event_store():
        yield store

    app.dependency_overrides[get_event_store] = override_get_event_store
    yield store
    app.dependency_overrides.pop(get_event_store, None)


def test_session_ids_are_unique():
    assert new_session_id() != new_session_id()


def test_scroll_depth_edges():
    assert compute_scroll_depth(0, 800, 600) == 100  # nothing to scroll
    assert compute_scroll_depth(0, 800, 2800) == 0
    assert compute_scroll_depth(1000, 800, 2800) == 50
    assert compute_scroll_depth(1960, 800, 2800) == 100  # within 50px of the bottom


def test_tracker_milestones_are_monotonic():
    clock = FakeClock()
    tracker = ReadingTracker("hello-world", clock=clock)

    tracker.update(30)
    tracker.update(80)
    tracker.update(10)  # scrolling back up
    clock.now += 42.4

    payload = tracker.payload("session-x")
    assert payload["maxScrollDepth"] == 80
    assert payload["reached25"] and payload["reached50"] and payload["reached75"]
    assert payload["reached100"] is False
    assert payload["timeOnPage"] == 42
    assert payload["exitScrollPosition"] == 10
    assert payload["sessionId"] == "session-x"


@pytest.mark.asyncio
async def test_client_threads_session_id_through_every_event(memory_store):
    session_id = new_session_id()
    client = TelemetryClient("http://test", session_id, transport=ASGITransport(app=app))

    first = await client.track_view("hello-world")
    second = await client.track_view("hello-world")
    rating = await client.submit_rating("hello-world", 5)

    assert first["counted"] is True
    assert second["counted"] is False
    assert rating["success"] is True
    assert [view.session_id for view in memory_store.views] == [session_id]
    assert memory_store.feedback[0].session_id == session_id


@pytest.mark.asyncio
async def test_reading_is_sent_at_most_once_per_page_load(memory_store):
    client = TelemetryClient("http://test", "session-r", transport=ASGITransport(app=app))
    tracker = ReadingTracker("hello-world", clock=FakeClock())
    tracker.update(100)

    assert await client.send_reading(tracker) == {"success": True}
    assert await client.send_reading(tracker) is None
    assert tracker.sent is True
    assert len(memory_store.readings) == 1
    assert memory_store.readings[0].reached_100 is True


@pytest.mark.asyncio
async def test_failed_sends_are_dropped_silently():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("offline", request=request)

    client = TelemetryClient("http://test", "session-z", transport=httpx.MockTransport(handler))
    assert await client.track_view("hello-world") is None

    rejected = TelemetryClient(
        "http://test",
        "session-z",
        transport=httpx.MockTransport(lambda request: httpx.Response(400, json={"error": "Invalid view data"})),
    )
    assert await rejected.submit_rating("hello-world", 9) is None
