"""MemorySnapshotStore: process-local snapshots, nothing touches disk."""

from __future__ import annotations

from ..core.store import SnapshotStore


class MemorySnapshotStore(SnapshotStore):
    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._data: dict[str, str] = dict(initial or {})
        self.save_count = 0

    def load(self, key: str) -> str | None:
        return self._data.get(key)

    def save(self, key: str, payload: str) -> None:
        self._data[key] = payload
        self.save_count += 1

    def delete(self, key: str) -> None:
        self._data.pop(key, None)
