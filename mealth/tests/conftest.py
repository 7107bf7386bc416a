"""
Pytest configuration and fixtures for Mealth tests.

Everything runs against MemoryDocumentStore; consultation replies use a
short delay so cancellation can be exercised without slowing the suite.
"""

from __future__ import annotations

import os
import random

# Set test environment variables before importing config
os.environ["TESTING"] = "true"
os.environ.setdefault("STORE_BACKEND", "memory")
os.environ.setdefault("JWT_SECRET", "test-secret-key-for-testing-only")

import pytest  # noqa: E402

from livesync.responder import SimulatedResponder  # noqa: E402
from livesync.store import MemoryDocumentStore  # noqa: E402
from livesync.writes import WriteQueue  # noqa: E402
from mealth.client import MealthClient  # noqa: E402
from mealth.services.consultations import COUNTERPART_PHRASES  # noqa: E402

NAMESPACE = "test-app"
REPLY_DELAY = 0.05


async def settle(client: MealthClient) -> None:
    """Let every pending write, seeding and snapshot delivery finish."""
    await client.store.flush()
    await client.writes.drain()
    await client.guard.wait()
    await client.store.flush()


@pytest.fixture
def store() -> MemoryDocumentStore:
    return MemoryDocumentStore()


@pytest.fixture
def writes(store) -> WriteQueue:
    return WriteQueue(store)


@pytest.fixture
def counterpart() -> SimulatedResponder:
    return SimulatedResponder(COUNTERPART_PHRASES, delay=REPLY_DELAY, rng=random.Random(1))


@pytest.fixture
async def client(store, counterpart):
    client = MealthClient(store, namespace=NAMESPACE, counterpart_responder=counterpart)
    yield client
    await client.close()


@pytest.fixture
async def signed_in(client):
    """A client with an anonymous session, showing the dashboard."""
    client.sign_in()
    await settle(client)
    return client
