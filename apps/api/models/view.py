"""View model for page view events."""

from sqlalchemy import Column, String, DateTime, Index
from sqlalchemy.sql import func
import uuid

from database import Base


class View(Base):
    """One counted page load of a post."""

    __tablename__ = "views"
    __table_args__ = (
        Index("idx_views_session_slug", "session_id", "slug"),
    )

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    slug = Column(String, nullable=False, index=True)
    timestamp = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), index=True)
    session_id = Column(String, nullable=False)
    user_agent = Column(String, nullable=True)
