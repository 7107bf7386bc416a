"""
Pydantic models for Mealth.

All data shapes defined here. No imports from services, client or routes.
"""

from mealth.models.article import Article
from mealth.models.chat import ChatMessage, Consultation, ConsultationMessage
from mealth.models.goal import Goal
from mealth.models.live import ActionResult, LiveRequest, SessionMessage, SnapshotMessage
from mealth.models.mood import MOOD_SCORES, GratitudeEntry, JournalEntry, Mood, MoodEntry
from mealth.models.session import Session, SessionResponse

__all__ = [
    # Entities
    "MoodEntry",
    "Mood",
    "MOOD_SCORES",
    "JournalEntry",
    "GratitudeEntry",
    "Goal",
    "ChatMessage",
    "Consultation",
    "ConsultationMessage",
    "Article",
    # Session
    "Session",
    "SessionResponse",
    # Live socket
    "LiveRequest",
    "SnapshotMessage",
    "SessionMessage",
    "ActionResult",
]
