"""Tests for SQLite snapshot backend."""

from datetime import datetime

import pytest

from genai_chat.core.session_store import SessionStore
from genai_chat.storage.sqlite import SQLiteSnapshotStore


@pytest.fixture
def store(tmp_sqlite_db):
    s = SQLiteSnapshotStore(db_path=tmp_sqlite_db)
    yield s
    s.close()


class TestSQLiteSnapshotStore:
    def test_load_missing(self, store):
        assert store.load("genai-chats") is None
        assert store.saved_at("genai-chats") is None

    def test_save_and_load(self, store):
        store.save("genai-chats", "[]")
        assert store.load("genai-chats") == "[]"

    def test_save_replaces(self, store):
        store.save("k", "one")
        store.save("k", "two")
        assert store.load("k") == "two"
        count = store._get_conn().execute("SELECT COUNT(*) FROM snapshots").fetchone()[0]
        assert count == 1

    def test_saved_at_recorded(self, store):
        store.save("k", "v")
        stamp = store.saved_at("k")
        assert isinstance(stamp, datetime)
        assert stamp.tzinfo is not None

    def test_delete(self, store):
        store.save("k", "v")
        store.delete("k")
        assert store.load("k") is None

    def test_persists_across_connections(self, tmp_sqlite_db):
        first = SQLiteSnapshotStore(db_path=tmp_sqlite_db)
        first.save("k", "ñandú")
        first.close()
        second = SQLiteSnapshotStore(db_path=tmp_sqlite_db)
        try:
            assert second.load("k") == "ñandú"
        finally:
            second.close()

    def test_creates_parent_directory(self, tmp_store_dir):
        s = SQLiteSnapshotStore(db_path=tmp_store_dir / "nested" / "dir" / "chats.db")
        try:
            s.save("k", "v")
            assert (tmp_store_dir / "nested" / "dir" / "chats.db").is_file()
        finally:
            s.close()

    def test_session_store_round_trip(self, tmp_sqlite_db):
        snapshots = SQLiteSnapshotStore(db_path=tmp_sqlite_db)
        first = SessionStore(snapshots)
        first.initialize()
        first.append_message("user", "what is a monad")
        first.create_conversation()
        snapshots.close()

        reopened = SQLiteSnapshotStore(db_path=tmp_sqlite_db)
        try:
            second = SessionStore(reopened)
            second.initialize()
            assert dict(second.conversations) == dict(first.conversations)
            assert {c.name for c in second} == {"Is a monad", "Chat 2"}
        finally:
            reopened.close()
