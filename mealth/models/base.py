"""Shared base for entities stored as documents."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Annotated, Any, Self

from pydantic import BaseModel, ConfigDict, PlainSerializer

from livesync.types import Document, to_iso


def _as_utc(value: datetime) -> datetime:
    return value if value.tzinfo else value.replace(tzinfo=UTC)


# Instants are stored as fixed-width ISO strings so they order correctly as text
Instant = Annotated[datetime, PlainSerializer(lambda v: to_iso(_as_utc(v)), return_type=str)]


class StoredModel(BaseModel):
    """
    An entity that lives in a document collection.

    Field names are snake_case in Python and camelCase in the store.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str | None = None

    @classmethod
    def from_document(cls, doc: Document) -> Self:
        """Map a store document into the entity, keeping its full id."""
        return cls.model_validate({**doc.data, "id": doc.id})

    def to_payload(self) -> dict[str, Any]:
        """Document body for a write; the id is assigned by the store."""
        return self.model_dump(mode="json", by_alias=True, exclude={"id"})
