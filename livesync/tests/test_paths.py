"""Tests for collection paths, query keys and timestamps."""

from __future__ import annotations

import pytest

from livesync.tests.conftest import ENTRIES, NAMESPACE, SHARED
from livesync.types import (
    Filter,
    QueryKey,
    collection_path,
    monotonic_now,
    now_iso,
    public_path,
    to_iso,
)


class TestPaths:
    def test_private_path(self):
        assert collection_path("demo-app", "abc123", "moods") == "demo-app/abc123/moods"

    def test_public_path(self):
        assert public_path("demo-app", "articles") == "demo-app/public/articles"

    def test_session_cannot_alias_public(self):
        with pytest.raises(ValueError):
            collection_path("demo-app", "public", "moods")

    @pytest.mark.parametrize("session_id", ["", "a/b", "..", "x y"])
    def test_invalid_session_segment(self, session_id):
        with pytest.raises(ValueError):
            collection_path("demo-app", session_id, "moods")

    def test_spec_path_private(self):
        assert ENTRIES.path(NAMESPACE, "s1") == f"{NAMESPACE}/s1/entries"

    def test_spec_path_public_ignores_session(self):
        assert SHARED.path(NAMESPACE, "s1") == SHARED.path(NAMESPACE, "s2") == f"{NAMESPACE}/public/shared"


class TestQueryKey:
    def test_filter_is_part_of_identity(self):
        a = QueryKey("s1", "messages", Filter("consultationId", "c1"))
        b = QueryKey("s1", "messages", Filter("consultationId", "c2"))
        assert a != b
        assert a == QueryKey("s1", "messages", Filter("consultationId", "c1"))

    def test_str(self):
        assert str(QueryKey("s1", "goals")) == "s1/goals"
        assert str(QueryKey("s1", "messages", Filter("consultationId", "c1"))) == "s1/messages[consultationId=c1]"


class TestTimestamps:
    def test_monotonic_now_strictly_increases(self):
        stamps = [monotonic_now() for _ in range(1000)]
        assert all(a < b for a, b in zip(stamps, stamps[1:]))

    def test_iso_strings_sort_like_instants(self):
        stamps = [now_iso() for _ in range(200)]
        assert stamps == sorted(stamps)
        assert len(set(stamps)) == len(stamps)

    def test_to_iso_is_fixed_width(self):
        value = to_iso(monotonic_now())
        assert value.endswith("Z")
        assert len(value) == len("2024-01-15T10:00:00.000000Z")
