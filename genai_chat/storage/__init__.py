from ..config import STORAGE_BACKENDS
from ..core.store import SnapshotStore
from ..types import StorageConfig
from .filesystem import FilesystemSnapshotStore
from .memory import MemorySnapshotStore
from .sqlite import SQLiteSnapshotStore


def build_snapshot_store(config: StorageConfig) -> SnapshotStore:
    """Instantiate the backend named by ``config.backend``."""
    if config.backend == "sqlite":
        return SQLiteSnapshotStore(db_path=config.sqlite_path)
    if config.backend == "memory":
        return MemorySnapshotStore()
    if config.backend == "filesystem":
        return FilesystemSnapshotStore(root=config.root)
    raise ValueError(
        f"Unknown storage backend: {config.backend!r} "
        f"(expected one of: {', '.join(STORAGE_BACKENDS)})"
    )


__all__ = [
    "FilesystemSnapshotStore",
    "MemorySnapshotStore",
    "SQLiteSnapshotStore",
    "SnapshotStore",
    "build_snapshot_store",
]
