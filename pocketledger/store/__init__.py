"""Store package."""

from pocketledger.store import transforms
from pocketledger.store.entity_store import LedgerStore

__all__ = [
    "LedgerStore",
    "transforms",
]
