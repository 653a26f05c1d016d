"""
Storage Services Package

Provides the abstract snapshot storage interface, the snapshot codec,
and the concrete JSON-file and in-memory backends.
"""

from pocketledger.services.storage.interface import (
    PersistenceError,
    SnapshotStorageInterface,
    StorageError,
)
from pocketledger.services.storage.codec import (
    DecodeResult,
    SkippedRecord,
    decode_snapshot,
    encode_snapshot,
)
from pocketledger.services.storage.json_file import JsonFileSnapshotStorage
from pocketledger.services.storage.memory import InMemorySnapshotStorage

__all__ = [
    # Interfaces
    "SnapshotStorageInterface",
    # Exceptions
    "PersistenceError",
    "StorageError",
    # Codec
    "DecodeResult",
    "SkippedRecord",
    "decode_snapshot",
    "encode_snapshot",
    # Implementations
    "InMemorySnapshotStorage",
    "JsonFileSnapshotStorage",
]
