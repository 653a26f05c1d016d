"""
JSON File Storage Implementation

DESIGN DECISION: A local JSON file is the default backend because:
1. The whole ledger is small enough to rewrite on every mutation
2. No database setup required
3. The user can open and back up the file directly

TRADEOFFS:
- Full rewrite per mutation (fine for personal-scale data)
- Single process only; there is no file locking

Atomicity comes from writing a temp file in the same directory,
fsyncing it, and os.replace()-ing it over the target.
"""

import os
import tempfile
from pathlib import Path
from typing import Optional, Union

from pocketledger.services.storage.interface import (
    PersistenceError,
    SnapshotStorageInterface,
    StorageError,
)


class JsonFileSnapshotStorage(SnapshotStorageInterface):
    """
    Stores each key as <directory>/<key>.json.
    """

    def __init__(self, directory: Union[str, Path]):
        self._directory = Path(directory).expanduser()

    @property
    def directory(self) -> Path:
        return self._directory

    def path_for(self, key: str) -> Path:
        """File path backing key."""
        if not key or "/" in key or "\\" in key or key.startswith("."):
            raise StorageError(f"Invalid snapshot key: {key!r}")
        return self._directory / f"{key}.json"

    def read(self, key: str) -> Optional[str]:
        """Read the snapshot document, or None if the file doesn't exist."""
        path = self.path_for(key)
        if not path.exists():
            return None
        try:
            return path.read_text(encoding="utf-8")
        except OSError as e:
            raise StorageError(f"Failed to read snapshot {path}: {e}")

    def write(self, key: str, document: str) -> None:
        """Atomically replace the snapshot document."""
        path = self.path_for(key)
        try:
            self._directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{key}.", suffix=".tmp", dir=self._directory
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as handle:
                    handle.write(document)
                    handle.flush()
                    os.fsync(handle.fileno())
                os.replace(tmp_name, path)
            except BaseException:
                # Never leave a half-written temp file behind
                try:
                    os.unlink(tmp_name)
                except OSError:
                    pass
                raise
        except OSError as e:
            raise PersistenceError(f"Failed to write snapshot {path}: {e}")

    def delete(self, key: str) -> bool:
        path = self.path_for(key)
        try:
            path.unlink()
            return True
        except FileNotFoundError:
            return False
        except OSError as e:
            raise StorageError(f"Failed to delete snapshot {path}: {e}")
