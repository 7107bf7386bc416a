"""
Livesync — the subscription and write core.

Components:
  store          — DocumentStore protocol + MemoryDocumentStore
  view           — (ViewState, snapshot) → ViewState  (pure, wholesale replace)
  subscriptions  — one live query per (session, collection, filter)
  writes         — single-attempt writes reconciled through the next snapshot
  seed           — at-most-once default population
  responder      — scripted counterpart replies with cancellation

postgres_store is imported explicitly; it needs asyncpg.
"""

from livesync.responder import CancelToken, SimulatedResponder
from livesync.seed import SeedOnceGuard, SeedOutcome, seed_documents
from livesync.store import DocumentStore, MemoryDocumentStore, SubscriptionHandle
from livesync.subscriptions import SubscriptionManager, SubscriptionState
from livesync.types import (
    AuthUnavailable,
    CollectionSpec,
    Document,
    DuplicateSubscription,
    Filter,
    OrderSpec,
    QueryKey,
    Snapshot,
    StoreError,
    SubscriptionFailure,
    SyncError,
    WriteFailure,
    WriteResult,
)
from livesync.view import CollectionView, ViewState, apply_snapshot, chronological, head, most_recent
from livesync.writes import WriteQueue

__all__ = [
    "AuthUnavailable",
    "CancelToken",
    "CollectionSpec",
    "CollectionView",
    "Document",
    "DocumentStore",
    "DuplicateSubscription",
    "Filter",
    "MemoryDocumentStore",
    "OrderSpec",
    "QueryKey",
    "SeedOnceGuard",
    "SeedOutcome",
    "SimulatedResponder",
    "Snapshot",
    "StoreError",
    "SubscriptionFailure",
    "SubscriptionHandle",
    "SubscriptionManager",
    "SubscriptionState",
    "SyncError",
    "ViewState",
    "WriteFailure",
    "WriteQueue",
    "WriteResult",
    "apply_snapshot",
    "chronological",
    "head",
    "most_recent",
    "seed_documents",
]
