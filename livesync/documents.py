"""
Livesync — Document and Snapshot Construction

Factory functions for creating well-formed documents and snapshots.
Used by the Postgres backend to wrap rows, and by tests to build
snapshots concisely.
"""

from __future__ import annotations

import json
from collections.abc import Iterable, Mapping
from typing import Any

from livesync.types import Document, Snapshot


def make_document(seq: int, data: dict[str, Any] | None = None, *, doc_id: str | None = None) -> Document:
    """
    Build a Document from minimal inputs.

    seq determines the default id (doc_001, doc_002, ...), so ids sort in
    creation order unless given explicitly.
    """
    return Document(id=doc_id or f"doc_{seq:03d}", data=dict(data or {}))


def make_snapshot(path: str, documents: Iterable[Document | dict[str, Any]], *, sequence: int = 1) -> Snapshot:
    """
    Build a Snapshot. Plain dicts become documents numbered in order;
    a dict may carry its own "id".
    """
    docs: list[Document] = []
    for i, item in enumerate(documents, start=1):
        if isinstance(item, Document):
            docs.append(item)
        else:
            data = dict(item)
            doc_id = data.pop("id", None)
            docs.append(make_document(i, data, doc_id=doc_id))
    return Snapshot(path=path, documents=tuple(docs), sequence=sequence)


def document_from_row(row: Mapping[str, Any]) -> Document:
    """Convert a database row (id, data) to a Document."""
    data = row["data"]
    # JSONB comes back as a dict when the codec is installed
    if isinstance(data, str):
        data = json.loads(data)
    return Document(id=row["id"], data=dict(data))
