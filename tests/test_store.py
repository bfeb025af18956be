"""Unit tests for the in-memory conversion store.

WHY: The store owns every temp directory the API creates. Missing cleanup
leaks disk; a broken lookup breaks downloads.

RULES:
- Each test creates its own ConversionStore instance
- Temp directories are removed by the store or explicitly in tests
"""

import time

import pytest

from cwr_converter.server.store import ConversionStore


@pytest.fixture
def store():
    store = ConversionStore(ttl_seconds=60, max_conversions=3)
    yield store
    store.clear()


class TestCreate:
    """create() stores a conversion with its own temp dir."""

    def test_creates_temp_directory(self, store):
        conversion = store.create("works.csv")
        assert conversion.output_dir.is_dir()
        assert conversion.filename == "works.csv"
        assert conversion.output_filename == ""

    def test_assigns_unique_ids(self, store):
        first = store.create("a.csv")
        second = store.create("b.csv")
        assert first.id != second.id
        assert first.output_dir != second.output_dir

    def test_max_conversions(self, store):
        for name in ("a.csv", "b.csv", "c.csv"):
            store.create(name)
        with pytest.raises(ValueError, match="Maximum number"):
            store.create("d.csv")


class TestLookup:
    """get() and list_conversions()."""

    def test_get_existing(self, store):
        conversion = store.create("works.csv")
        assert store.get(conversion.id) is conversion

    def test_get_missing_returns_none(self, store):
        assert store.get("nope") is None

    def test_list_oldest_first(self, store):
        first = store.create("a.csv")
        second = store.create("b.csv")
        first.created_at, second.created_at = 200.0, 100.0
        assert [c.id for c in store.list_conversions()] == [second.id, first.id]


class TestDelete:
    """delete() and clear() remove entries and directories."""

    def test_delete_removes_directory(self, store):
        conversion = store.create("works.csv")
        (conversion.output_dir / "works.cwr").write_text("HDR\n")
        assert store.delete(conversion.id) is True
        assert not conversion.output_dir.exists()
        assert store.get(conversion.id) is None

    def test_delete_missing(self, store):
        assert store.delete("nope") is False

    def test_clear(self, store):
        conversions = [store.create("a.csv"), store.create("b.csv")]
        store.clear()
        assert store.list_conversions() == []
        assert not any(c.output_dir.exists() for c in conversions)


class TestExpiry:
    """cleanup_expired() removes conversions older than the TTL."""

    def test_expires_old_conversions_only(self, store):
        old = store.create("old.csv")
        fresh = store.create("fresh.csv")
        old.created_at = time.time() - 120

        assert store.cleanup_expired() == 1
        assert store.get(old.id) is None
        assert not old.output_dir.exists()
        assert store.get(fresh.id) is fresh

    def test_nothing_to_expire(self, store):
        store.create("fresh.csv")
        assert store.cleanup_expired() == 0
