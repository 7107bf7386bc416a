"""
Collection catalog — how each collection is named, ordered and mapped.

Paths:
  private  <namespace>/<sessionId>/<name>
  public   <namespace>/public/<name>
"""

from __future__ import annotations

from livesync.types import CollectionSpec, OrderSpec
from mealth.models import (
    Article,
    ChatMessage,
    Consultation,
    ConsultationMessage,
    Goal,
    GratitudeEntry,
    JournalEntry,
    MoodEntry,
)

MOODS = CollectionSpec("moods", OrderSpec("date", "desc"), MoodEntry.from_document)
JOURNAL = CollectionSpec("journal_entries", OrderSpec("date", "desc"), JournalEntry.from_document)
GRATITUDE = CollectionSpec("gratitude_entries", OrderSpec("date", "desc"), GratitudeEntry.from_document)
GOALS = CollectionSpec("goals", OrderSpec("createdAt", "asc"), Goal.from_document)
CHAT = CollectionSpec("chat_messages", OrderSpec("timestamp", "asc"), ChatMessage.from_document)
CONSULTATIONS = CollectionSpec("consultations", OrderSpec("date", "asc"), Consultation.from_document)
# Always opened with a consultationId filter
CONSULTATION_MESSAGES = CollectionSpec(
    "consultation_messages", OrderSpec("timestamp", "asc"), ConsultationMessage.from_document
)
ARTICLES = CollectionSpec("articles", OrderSpec("date", "desc"), Article.from_document, public=True)

ALL: tuple[CollectionSpec, ...] = (
    MOODS,
    JOURNAL,
    GRATITUDE,
    GOALS,
    CHAT,
    CONSULTATIONS,
    CONSULTATION_MESSAGES,
    ARTICLES,
)
