"""Append-only event store for views, feedback and reading analytics.

Two interchangeable implementations sit behind :class:`EventStore`:

* :class:`SqlEventStore` runs against the SQLAlchemy models (Postgres in
  production, SQLite in tests).
* :class:`MemoryEventStore` keeps rows in process-local lists for local
  development.

The backend is chosen once at startup via :func:`configure_event_store`; routes
only ever see the ``get_event_store`` dependency.
"""

from __future__ import annotations

import abc
from contextlib import asynccontextmanager
from datetime import datetime, timedelta, timezone
from typing import AsyncContextManager, AsyncIterator, Callable, Dict, List, Optional

from sqlalchemy import delete, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from config import validate_store_backend
from database import async_session_maker
from models.feedback import Feedback
from models.reading_analytics import ReadingAnalytics
from models.view import View


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class EventStore(abc.ABC):
    """Storage contract shared by the ingestion and aggregation services."""

    @abc.abstractmethod
    async def insert_view(self, view: View) -> None: ...

    @abc.abstractmethod
    async def insert_feedback(self, feedback: Feedback) -> None: ...

    @abc.abstractmethod
    async def insert_reading(self, reading: ReadingAnalytics) -> None: ...

    @abc.abstractmethod
    async def list_views(self, slug: Optional[str] = None) -> List[View]: ...

    @abc.abstractmethod
    async def list_feedback(self, slug: Optional[str] = None) -> List[Feedback]: ...

    @abc.abstractmethod
    async def list_readings(self, slug: Optional[str] = None) -> List[ReadingAnalytics]: ...

    @abc.abstractmethod
    async def has_recent_view(
        self,
        session_id: str,
        slug: str,
        window_minutes: int,
        now: Optional[datetime] = None,
    ) -> bool:
        """True when the session already viewed ``slug`` inside the trailing window."""

    @abc.abstractmethod
    async def clear(self) -> Dict[str, int]:
        """Delete every stored event and return per-table counts."""


class SqlEventStore(EventStore):
    """Event store backed by an async SQLAlchemy session."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _insert(self, row) -> None:
        self.db.add(row)
        await self.db.commit()

    async def insert_view(self, view: View) -> None:
        await self._insert(view)

    async def insert_feedback(self, feedback: Feedback) -> None:
        await self._insert(feedback)

    async def insert_reading(self, reading: ReadingAnalytics) -> None:
        await self._insert(reading)

    async def _list(self, model, slug: Optional[str]):
        query = select(model)
        if slug is not None:
            query = query.where(model.slug == slug)
        result = await self.db.execute(query.order_by(model.timestamp.desc()))
        return list(result.scalars().all())

    async def list_views(self, slug: Optional[str] = None) -> List[View]:
        return await self._list(View, slug)

    async def list_feedback(self, slug: Optional[str] = None) -> List[Feedback]:
        return await self._list(Feedback, slug)

    async def list_readings(self, slug: Optional[str] = None) -> List[ReadingAnalytics]:
        return await self._list(ReadingAnalytics, slug)

    async def has_recent_view(
        self,
        session_id: str,
        slug: str,
        window_minutes: int,
        now: Optional[datetime] = None,
    ) -> bool:
        cutoff = (now or datetime.now(timezone.utc)) - timedelta(minutes=window_minutes)
        result = await self.db.execute(
            select(func.count(View.id)).where(
                View.session_id == session_id,
                View.slug == slug,
                View.timestamp > cutoff,
            )
        )
        return int(result.scalar_one() or 0) > 0

    async def clear(self) -> Dict[str, int]:
        counts: Dict[str, int] = {}
        for model in (ReadingAnalytics, View, Feedback):
            result = await self.db.execute(delete(model))
            counts[model.__tablename__] = int(result.rowcount or 0)
        await self.db.commit()
        return counts


class MemoryEventStore(EventStore):
    """Process-local event store. Rows are lost on restart."""

    def __init__(self):
        self.views: List[View] = []
        self.feedback: List[Feedback] = []
        self.readings: List[ReadingAnalytics] = []

    async def insert_view(self, view: View) -> None:
        self.views.append(view)

    async def insert_feedback(self, feedback: Feedback) -> None:
        self.feedback.append(feedback)

    async def insert_reading(self, reading: ReadingAnalytics) -> None:
        self.readings.append(reading)

    @staticmethod
    def _select(rows, slug: Optional[str]):
        scoped = [row for row in rows if slug is None or row.slug == slug]
        epoch = datetime.min.replace(tzinfo=timezone.utc)
        return sorted(scoped, key=lambda row: as_utc(row.timestamp) or epoch, reverse=True)

    async def list_views(self, slug: Optional[str] = None) -> List[View]:
        return self._select(self.views, slug)

    async def list_feedback(self, slug: Optional[str] = None) -> List[Feedback]:
        return self._select(self.feedback, slug)

    async def list_readings(self, slug: Optional[str] = None) -> List[ReadingAnalytics]:
        return self._select(self.readings, slug)

    async def has_recent_view(
        self,
        session_id: str,
        slug: str,
        window_minutes: int,
        now: Optional[datetime] = None,
    ) -> bool:
        cutoff = (now or datetime.now(timezone.utc)) - timedelta(minutes=window_minutes)
        for view in self.views:
            timestamp = as_utc(view.timestamp)
            if view.session_id == session_id and view.slug == slug and timestamp is not None and timestamp > cutoff:
                return True
        return False

    async def clear(self) -> Dict[str, int]:
        counts = {
            "reading_analytics": len(self.readings),
            "views": len(self.views),
            "feedback": len(self.feedback),
        }
        self.views.clear()
        self.feedback.clear()
        self.readings.clear()
        return counts


_memory_store = MemoryEventStore()


@asynccontextmanager
async def _open_sql_store() -> AsyncIterator[EventStore]:
    async with async_session_maker() as session:
        yield SqlEventStore(session)


@asynccontextmanager
async def _open_memory_store() -> AsyncIterator[EventStore]:
    yield _memory_store


_store_factories: Dict[str, Callable[[], AsyncContextManager[EventStore]]] = {
    "sql": _open_sql_store,
    "memory": _open_memory_store,
}
_open_store = _open_sql_store


def configure_event_store(backend: str) -> str:
    """Select the store implementation used by every request."""
    global _open_store
    normalized = validate_store_backend(backend)
    _open_store = _store_factories[normalized]
    return normalized


def memory_event_store() -> MemoryEventStore:
    return _memory_store


async def get_event_store() -> AsyncIterator[EventStore]:
    """FastAPI dependency yielding the configured event store."""
    async with _open_store() as store:
        yield store
