"""FilesystemSnapshotStore: one JSON file per key, replaced atomically."""

from __future__ import annotations

import os
import re
import tempfile
from pathlib import Path

from ..core.store import SnapshotStore

_UNSAFE_CHARS_RE = re.compile(r"[^A-Za-z0-9._-]")


class FilesystemSnapshotStore(SnapshotStore):
    def __init__(self, root: str | Path) -> None:
        self.root = Path(root)
        self.root.mkdir(parents=True, exist_ok=True)

    def _path(self, key: str) -> Path:
        return self.root / f"{_UNSAFE_CHARS_RE.sub('_', key)}.json"

    def load(self, key: str) -> str | None:
        path = self._path(key)
        if not path.is_file():
            return None
        return path.read_text(encoding="utf-8")

    def save(self, key: str, payload: str) -> None:
        path = self._path(key)
        fd, tmp_name = tempfile.mkstemp(
            dir=self.root, prefix=f".{path.stem}.", suffix=".tmp",
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(payload)
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def delete(self, key: str) -> None:
        self._path(key).unlink(missing_ok=True)
