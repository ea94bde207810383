"""SnapshotStore abstract base class: one whole value per key."""

from __future__ import annotations

from abc import ABC, abstractmethod


class SnapshotStore(ABC):
    """Pluggable storage medium for serialized conversation snapshots.

    ``save`` replaces the entire value under ``key`` atomically; there is no
    partial or incremental write.
    """

    @abstractmethod
    def load(self, key: str) -> str | None:
        """Return the stored payload, or None if nothing was saved."""

    @abstractmethod
    def save(self, key: str, payload: str) -> None:
        """Replace the payload stored under key."""

    @abstractmethod
    def delete(self, key: str) -> None:
        """Remove key. No error if absent."""

    def close(self) -> None:
        """Release any held resources."""
