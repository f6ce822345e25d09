"""Tests for the AccessStore implementations."""

import sqlite3

import pytest

from gradegate.classroom import (
    AccessStore,
    InMemoryAccessStore,
    SqliteAccessStore,
    TransientIOFailure,
)


class TestInMemoryAccessStore:

    def test_get_missing_key(self, memory_store):
        assert memory_store.get("user_class_access_u1") is None

    def test_set_and_overwrite(self, memory_store):
        memory_store.set("k", "one")
        memory_store.set("k", "two")
        assert memory_store.get("k") == "two"
        assert memory_store.write_count == 2

    def test_keys_by_prefix(self, memory_store):
        memory_store.set("user_class_access_u1", "[]")
        memory_store.set("user_class_access_u2", "[]")
        memory_store.set("available_classes", "[]")
        assert memory_store.keys("user_class_access_") == [
            "user_class_access_u1", "user_class_access_u2",
        ]

    def test_busy_store_times_out(self, memory_store):
        memory_store._lock.acquire()
        try:
            with pytest.raises(TransientIOFailure):
                memory_store.get("k", timeout=0.05)
        finally:
            memory_store._lock.release()

    def test_satisfies_protocol(self, memory_store):
        assert isinstance(memory_store, AccessStore)


class TestSqliteAccessStore:

    def test_creates_database(self, tmp_path):
        db_path = tmp_path / "nested" / "access.db"
        SqliteAccessStore(db_path)
        assert db_path.exists()

    def test_get_missing_key(self, sqlite_store):
        assert sqlite_store.get("user_class_access_u1") is None

    def test_set_and_overwrite(self, sqlite_store):
        sqlite_store.set("k", "one")
        sqlite_store.set("k", "two")
        assert sqlite_store.get("k") == "two"

    def test_values_survive_new_instance(self, tmp_path):
        SqliteAccessStore(tmp_path / "access.db").set("k", "[1, 2]")
        assert SqliteAccessStore(tmp_path / "access.db").get("k") == "[1, 2]"

    def test_keys_by_prefix_escapes_wildcards(self, sqlite_store):
        sqlite_store.set("user_class_access_u1", "[]")
        sqlite_store.set("userXclass_access_u2", "[]")
        assert sqlite_store.keys("user_class_access_") == ["user_class_access_u1"]

    def test_locked_database_is_transient_failure(self, sqlite_store):
        blocker = sqlite3.connect(str(sqlite_store.db_path), isolation_level=None)
        blocker.execute("BEGIN EXCLUSIVE")
        try:
            with pytest.raises(TransientIOFailure):
                sqlite_store.set("k", "v", timeout=0.05)
        finally:
            blocker.execute("ROLLBACK")
            blocker.close()
        sqlite_store.set("k", "v")
        assert sqlite_store.get("k") == "v"

    def test_satisfies_protocol(self, sqlite_store):
        assert isinstance(sqlite_store, AccessStore)
