"""In-memory snapshot storage, for tests and throwaway sessions."""

from typing import Optional

from pocketledger.services.storage.interface import (
    PersistenceError,
    SnapshotStorageInterface,
)


class InMemorySnapshotStorage(SnapshotStorageInterface):
    """
    Keeps documents in a dict.

    fail_writes makes every write raise PersistenceError, which lets tests
    exercise the "persist failed, memory stays authoritative" path.
    """

    def __init__(self, documents: Optional[dict[str, str]] = None):
        self.documents: dict[str, str] = dict(documents or {})
        self.fail_writes = False
        self.write_count = 0

    def read(self, key: str) -> Optional[str]:
        return self.documents.get(key)

    def write(self, key: str, document: str) -> None:
        if self.fail_writes:
            raise PersistenceError(f"Write rejected for key {key!r}")
        self.documents[key] = document
        self.write_count += 1

    def delete(self, key: str) -> bool:
        return self.documents.pop(key, None) is not None
