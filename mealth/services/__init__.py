"""
Service layer for Mealth.

Every write to the document store goes through these services and the
shared WriteQueue. Services never touch views; results arrive as snapshots.
"""

from mealth.services.articles import ArticleService
from mealth.services.chat import ChatService
from mealth.services.consultations import ConsultationService, ConsultationThread
from mealth.services.goals import GoalService, completion_ratio
from mealth.services.gratitude import GratitudeService
from mealth.services.moods import MoodService

__all__ = [
    "ArticleService",
    "ChatService",
    "ConsultationService",
    "ConsultationThread",
    "GoalService",
    "GratitudeService",
    "MoodService",
    "completion_ratio",
]
