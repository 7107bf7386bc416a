"""Chat and consultation models."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import Field, field_validator

from mealth.models.base import Instant, StoredModel

# Sender names written by earlier clients
_LEGACY_SENDERS = {"ai": "assistant", "therapist": "counterpart"}


def _normalize_sender(value: Any) -> Any:
    if isinstance(value, str):
        return _LEGACY_SENDERS.get(value, value)
    return value


class ChatMessage(StoredModel):
    """One message in the assistant chat, ordered by timestamp."""

    content: str = Field(min_length=1)
    sender: Literal["user", "assistant"]
    timestamp: Instant

    @field_validator("sender", mode="before")
    @classmethod
    def _sender(cls, value: Any) -> Any:
        return _normalize_sender(value)


class Consultation(StoredModel):
    """A booked session with a therapist."""

    therapist_name: str = Field(alias="therapistName")
    status: Literal["scheduled", "active", "closed"] = "scheduled"
    date: Instant
    time: str
    type: str


class ConsultationMessage(StoredModel):
    """A message inside one consultation thread."""

    consultation_id: str = Field(alias="consultationId")
    content: str = Field(min_length=1)
    sender: Literal["user", "counterpart"]
    timestamp: Instant

    @field_validator("sender", mode="before")
    @classmethod
    def _sender(cls, value: Any) -> Any:
        return _normalize_sender(value)
