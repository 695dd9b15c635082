"""Client side of the reader telemetry pipeline.

The session id is generated once per client with :func:`new_session_id` and
passed explicitly into :class:`TelemetryClient`; every event it sends carries
that id. Sends are best effort: a failed request is logged and dropped.
"""

from __future__ import annotations

import logging
import secrets
import time
from typing import Any, Callable, Dict, Optional

import httpx

logger = logging.getLogger(__name__)

MILESTONES = (25, 50, 75, 100)
BOTTOM_TOLERANCE_PX = 50


def new_session_id() -> str:
    """Pseudo-random, identity-free session identifier."""
    return f"{int(time.time() * 1000)}-{secrets.token_hex(5)}"


def compute_scroll_depth(scroll_top: float, viewport_height: float, document_height: float) -> int:
    """Percentage of the scrollable document the reader has passed, capped at 100."""
    track_height = document_height - viewport_height
    if track_height <= 0:
        return 100
    if scroll_top + viewport_height >= document_height - BOTTOM_TOLERANCE_PX:
        return 100
    depth = int(round(scroll_top / track_height * 100))
    return max(0, min(depth, 100))


class ReadingTracker:
    """Accumulates scroll and time engagement for one page load of one post."""

    def __init__(self, slug: str, clock: Callable[[], float] = time.monotonic):
        self.slug = slug
        self._clock = clock
        self._started_at = clock()
        self.max_scroll_depth = 0
        self.current_depth = 0
        self.milestones: Dict[int, bool] = {mark: False for mark in MILESTONES}
        self._sent = False

    def update(self, depth: int) -> None:
        """Record the current scroll depth. Milestones never reset once reached."""
        self.current_depth = depth
        if depth > self.max_scroll_depth:
            self.max_scroll_depth = depth
        for mark in MILESTONES:
            if depth >= mark:
                self.milestones[mark] = True

    @property
    def sent(self) -> bool:
        return self._sent

    def mark_sent(self) -> bool:
        """One-shot guard: True the first time it is called, False afterwards."""
        if self._sent:
            return False
        self._sent = True
        return True

    def payload(self, session_id: str, exit_scroll_position: Optional[int] = None) -> Dict[str, Any]:
        return {
            "slug": self.slug,
            "sessionId": session_id,
            "maxScrollDepth": self.max_scroll_depth,
            "reached25": self.milestones[25],
            "reached50": self.milestones[50],
            "reached75": self.milestones[75],
            "reached100": self.milestones[100],
            "timeOnPage": int(round(self._clock() - self._started_at)),
            "exitScrollPosition": self.current_depth if exit_scroll_position is None else exit_scroll_position,
        }


class TelemetryClient:
    """Fire-and-forget sender for view, rating and reading events."""

    def __init__(
        self,
        base_url: str,
        session_id: str,
        *,
        timeout: float = 5.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.session_id = session_id
        self.timeout = timeout
        self.transport = transport

    async def _emit(self, path: str, body: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        try:
            async with httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                transport=self.transport,
            ) as client:
                response = await client.post(path, json=body)
                response.raise_for_status()
                return response.json()
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("Dropped telemetry event %s: %s", path, exc)
            return None

    async def track_view(self, slug: str) -> Optional[Dict[str, Any]]:
        return await self._emit("/views", {"slug": slug, "sessionId": self.session_id})

    async def submit_rating(self, slug: str, rating: int) -> Optional[Dict[str, Any]]:
        return await self._emit("/feedback", {"slug": slug, "rating": rating, "sessionId": self.session_id})

    async def send_reading(
        self,
        tracker: ReadingTracker,
        exit_scroll_position: Optional[int] = None,
    ) -> Optional[Dict[str, Any]]:
        """Send the tracker's summary once; later calls for the same page load are no-ops."""
        if not tracker.mark_sent():
            return None
        return await self._emit(
            "/reading-analytics",
            tracker.payload(self.session_id, exit_scroll_position),
        )
