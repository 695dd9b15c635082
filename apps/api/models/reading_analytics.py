"""ReadingAnalytics model for scroll depth and time-on-page records."""

from sqlalchemy import Boolean, Column, String, DateTime, Integer
from sqlalchemy.sql import func
import uuid

from database import Base


class ReadingAnalytics(Base):
    """Engagement summary sent once when a reader leaves a post."""

    __tablename__ = "reading_analytics"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    slug = Column(String, nullable=False, index=True)
    session_id = Column(String, nullable=False)
    timestamp = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), index=True)
    max_scroll_depth = Column(Integer, nullable=False)  # 0-100
    reached_25 = Column(Boolean, default=False)
    reached_50 = Column(Boolean, default=False)
    reached_75 = Column(Boolean, default=False)
    reached_100 = Column(Boolean, default=False, index=True)
    time_on_page = Column(Integer, nullable=False)  # seconds
    exit_scroll_position = Column(Integer, nullable=False)  # 0-100
    user_agent = Column(String, nullable=True)
