"""Feedback model for star ratings."""

from sqlalchemy import CheckConstraint, Column, String, DateTime, Index, Integer
from sqlalchemy.sql import func
import uuid

from database import Base


class Feedback(Base):
    """A single 1-5 star rating left on a post."""

    __tablename__ = "feedback"
    __table_args__ = (
        CheckConstraint("rating >= 1 AND rating <= 5", name="ck_feedback_rating_range"),
        Index("idx_feedback_session_slug", "session_id", "slug"),
    )

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    slug = Column(String, nullable=False, index=True)
    rating = Column(Integer, nullable=False)
    timestamp = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), index=True)
    session_id = Column(String, nullable=False)
