"""Tests for FilesystemSnapshotStore."""

from unittest.mock import patch

import pytest

from genai_chat.core.session_store import SessionStore
from genai_chat.storage.filesystem import FilesystemSnapshotStore


@pytest.fixture
def fs_store(tmp_store_dir):
    return FilesystemSnapshotStore(root=tmp_store_dir / "chats")


class TestFilesystemSnapshotStore:
    def test_root_created(self, tmp_store_dir, fs_store):
        assert (tmp_store_dir / "chats").is_dir()

    def test_load_missing_returns_none(self, fs_store):
        assert fs_store.load("genai-chats") is None

    def test_save_and_load(self, fs_store):
        fs_store.save("genai-chats", '[{"name": "Café"}]')
        assert fs_store.load("genai-chats") == '[{"name": "Café"}]'
        assert (fs_store.root / "genai-chats.json").is_file()

    def test_save_replaces_whole_value(self, fs_store):
        fs_store.save("k", "first")
        fs_store.save("k", "second")
        assert fs_store.load("k") == "second"

    def test_keys_are_independent(self, fs_store):
        fs_store.save("a", "1")
        fs_store.save("b", "2")
        assert fs_store.load("a") == "1"
        assert fs_store.load("b") == "2"

    def test_unsafe_key_sanitized(self, fs_store):
        fs_store.save("../escape/me", "x")
        assert fs_store.load("../escape/me") == "x"
        assert all(p.parent == fs_store.root for p in fs_store.root.iterdir())

    def test_delete(self, fs_store):
        fs_store.save("k", "v")
        fs_store.delete("k")
        assert fs_store.load("k") is None
        fs_store.delete("k")

    def test_failed_write_keeps_previous_and_no_temp_files(self, fs_store):
        fs_store.save("k", "good")
        with patch("genai_chat.storage.filesystem.os.replace", side_effect=OSError("boom")):
            with pytest.raises(OSError):
                fs_store.save("k", "bad")
        assert fs_store.load("k") == "good"
        assert [p.name for p in fs_store.root.iterdir()] == ["k.json"]

    def test_session_store_round_trip(self, fs_store):
        first = SessionStore(fs_store)
        first.initialize()
        first.append_message("user", "¿Dónde está Lima?")
        first.append_message("assistant", "En Perú.")

        second = SessionStore(FilesystemSnapshotStore(root=fs_store.root))
        second.initialize()
        assert dict(second.conversations) == dict(first.conversations)
        assert second.active_conversation().name == "Está Lima?"
