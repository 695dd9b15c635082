"""Models package."""

from .view import View
from .feedback import Feedback
from .reading_analytics import ReadingAnalytics
