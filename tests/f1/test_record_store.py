"""Tests for the key-value record store engines (F1)."""

import pytest

from edumate.core.errors import StorageFullError
from edumate.db.record_store import MemoryRecordStore, SqliteRecordStore


@pytest.fixture(params=["memory", "sqlite"])
def any_store(request, tmp_path):
    """Each engine with the same contract."""
    if request.param == "memory":
        return MemoryRecordStore()
    return SqliteRecordStore(db_path=tmp_path / "state" / "edumate.db")


@pytest.fixture(params=["memory", "sqlite"])
def small_store(request, tmp_path):
    """Engines with a 40-byte quota."""
    if request.param == "memory":
        return MemoryRecordStore(quota_bytes=40)
    return SqliteRecordStore(db_path=tmp_path / "small.db", quota_bytes=40)


class TestRecordStoreContract:
    """Tests shared by every engine."""

    def test_get_absent_returns_none(self, any_store):
        assert any_store.get("account:nobody@x.com") is None

    def test_set_then_get(self, any_store):
        any_store.set("notes:a@x.com", [{"id": "n1", "content": "Algebra"}])

        assert any_store.get("notes:a@x.com") == [{"id": "n1", "content": "Algebra"}]

    def test_set_overwrites(self, any_store):
        any_store.set("activeIdentity", "a@x.com")
        any_store.set("activeIdentity", "b@x.com")

        assert any_store.get("activeIdentity") == "b@x.com"

    def test_unicode_round_trip(self, any_store):
        any_store.set("notes:a@x.com", "x = (-b ± √(b²-4ac)) / 2a")

        assert any_store.get("notes:a@x.com") == "x = (-b ± √(b²-4ac)) / 2a"

    def test_delete_removes_key(self, any_store):
        any_store.set("results:a@x.com", [])
        any_store.delete("results:a@x.com")

        assert any_store.get("results:a@x.com") is None

    def test_delete_absent_is_noop(self, any_store):
        any_store.delete("results:ghost@x.com")

        assert any_store.list_keys() == []

    def test_list_keys_by_prefix(self, any_store):
        any_store.set("account:b@x.com", {})
        any_store.set("account:a@x.com", {})
        any_store.set("notes:a@x.com", [])
        any_store.set("activeIdentity", "a@x.com")

        assert any_store.list_keys("account:") == ["account:a@x.com", "account:b@x.com"]
        assert len(any_store.list_keys()) == 4

    def test_corrupt_value_reads_as_absent(self, any_store):
        any_store._write("schedule:a@x.com", "{not json")

        assert any_store.get("schedule:a@x.com") is None

    def test_used_bytes_counts_keys_and_values(self, any_store):
        assert any_store.used_bytes() == 0

        any_store.set("k", "ab")

        # key "k" + value '"ab"'
        assert any_store.used_bytes() == 5


class TestQuota:
    """Tests for storage quota enforcement."""

    def test_write_within_quota(self, small_store):
        small_store.set("k", "a" * 30)

        assert small_store.get("k") == "a" * 30

    def test_overwrite_does_not_count_old_value(self, small_store):
        small_store.set("k", "a" * 30)
        small_store.set("k", "b" * 30)

        assert small_store.get("k") == "b" * 30

    def test_new_key_over_quota_raises(self, small_store):
        small_store.set("k", "a" * 30)

        with pytest.raises(StorageFullError) as exc_info:
            small_store.set("j", "c" * 10)

        assert exc_info.value.key == "j"
        assert exc_info.value.quota == 40
        assert small_store.get("j") is None

    def test_failed_overwrite_keeps_previous_value(self, small_store):
        small_store.set("k", "a" * 30)

        with pytest.raises(StorageFullError):
            small_store.set("k", "d" * 50)

        assert small_store.get("k") == "a" * 30


class TestSqliteDurability:
    """Tests for the SQLite engine across process restarts."""

    def test_values_survive_reopen(self, tmp_path):
        db_path = tmp_path / "edumate.db"
        first = SqliteRecordStore(db_path=db_path)
        first.set("activeIdentity", "a@x.com")

        second = SqliteRecordStore(db_path=db_path)

        assert second.get("activeIdentity") == "a@x.com"

    def test_creates_parent_directory(self, tmp_path):
        db_path = tmp_path / "nested" / "state" / "edumate.db"

        SqliteRecordStore(db_path=db_path)

        assert db_path.exists()
