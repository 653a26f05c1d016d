"""
Abstract Storage Interface

DESIGN DECISION: The ledger persists one document under one key.
The backend only moves that document in and out; it knows nothing
about expenses or goals. This allows us to:
1. Swap a JSON file for a keychain, a database row or a cloud blob
2. Use in-memory storage for testing
3. Keep the atomic-write concern in exactly one place

Encoding/decoding the snapshot is the codec's job, not the backend's.
"""

from abc import ABC, abstractmethod
from typing import Optional


class SnapshotStorageInterface(ABC):
    """
    Abstract interface for snapshot document storage.

    Any storage implementation must implement these methods.
    """

    @abstractmethod
    def read(self, key: str) -> Optional[str]:
        """
        Read the document stored under key.

        Returns:
            The document text, or None if nothing was ever stored

        Raises:
            StorageError: If the backend exists but can't be read
        """
        pass

    @abstractmethod
    def write(self, key: str, document: str) -> None:
        """
        Replace the document stored under key.

        The write must be atomic: a reader (or a crash) sees either the
        previous document or the new one, never a mix or a truncation.

        Raises:
            PersistenceError: If the document could not be written
        """
        pass

    @abstractmethod
    def delete(self, key: str) -> bool:
        """
        Remove the document stored under key.

        Returns:
            True if something was removed
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class PersistenceError(StorageError):
    """The snapshot could not be encoded or written."""
    pass
