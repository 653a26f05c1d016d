"""
Snapshot Codec

Turns an AppData snapshot into the persisted JSON document and back.

DESIGN DECISION: Decoding is lenient per record.
A single malformed expense must not wipe out the whole ledger, so each
record is validated on its own and skipped (and reported) if it fails.
Only a document that isn't a JSON object at all resets to an empty snapshot.
"""

import json
from typing import Any, NamedTuple, Optional

from pydantic import ValidationError
from pydantic.alias_generators import to_camel

from pocketledger.models.entities import Budget, ExpenseCategory
from pocketledger.models.snapshot import COLLECTION_TYPES, AppData
from pocketledger.services.storage.interface import PersistenceError


class SkippedRecord(NamedTuple):
    collection: str
    index: int
    reason: str


class DecodeResult(NamedTuple):
    snapshot: AppData
    skipped: list[SkippedRecord]
    reset_reason: Optional[str] = None


def encode_snapshot(snapshot: AppData) -> str:
    """
    Serialize a snapshot to the persisted document (camelCase keys).

    Raises:
        PersistenceError: If the snapshot can't be serialized
    """
    try:
        return snapshot.model_dump_json(by_alias=True, indent=2)
    except Exception as e:
        raise PersistenceError(f"Failed to encode snapshot: {e}")


def _field(raw: dict, name: str) -> Any:
    """Look a field up by its persisted (camelCase) name, then its attribute name."""
    alias = to_camel(name)
    if alias in raw:
        return raw[alias]
    return raw.get(name)


def _decode_budget(raw: Any, skipped: list[SkippedRecord]) -> Optional[Budget]:
    if not isinstance(raw, dict):
        skipped.append(SkippedRecord("budget", 0, "budget is not an object"))
        return None

    raw = dict(raw)
    limits = raw.pop("categoryLimits", None)
    snake_limits = raw.pop("category_limits", None)
    limits = limits if limits is not None else snake_limits

    if isinstance(limits, dict):
        known = {category.value for category in ExpenseCategory}
        for key in limits:
            if key not in known:
                skipped.append(SkippedRecord("budget", 0, f"unknown category limit: {key}"))
        raw["categoryLimits"] = {k: v for k, v in limits.items() if k in known}
    elif limits is not None:
        skipped.append(SkippedRecord("budget", 0, "categoryLimits is not an object"))

    try:
        return Budget.model_validate(raw)
    except ValidationError as e:
        skipped.append(SkippedRecord("budget", 0, str(e)))
        return None


def decode_snapshot(document: Optional[str]) -> DecodeResult:
    """
    Parse a persisted document into a snapshot.

    Never raises: a missing document gives an empty snapshot, an
    undecodable one gives an empty snapshot plus reset_reason.
    """
    if document is None or not document.strip():
        return DecodeResult(AppData(), [])

    try:
        raw = json.loads(document)
    except json.JSONDecodeError as e:
        return DecodeResult(AppData(), [], f"Invalid JSON: {e}")

    if not isinstance(raw, dict):
        return DecodeResult(AppData(), [], "Snapshot document is not a JSON object")

    skipped: list[SkippedRecord] = []
    values: dict[str, Any] = {}

    for collection, model in COLLECTION_TYPES.items():
        items = _field(raw, collection.value)
        if items is None:
            continue
        if not isinstance(items, list):
            skipped.append(SkippedRecord(collection.value, -1, "collection is not a list"))
            continue

        records = []
        for index, item in enumerate(items):
            try:
                records.append(model.model_validate(item))
            except ValidationError as e:
                skipped.append(SkippedRecord(collection.value, index, str(e)))
        values[collection.value] = records

    budget_raw = _field(raw, "budget")
    if budget_raw is not None:
        values["budget"] = _decode_budget(budget_raw, skipped)

    return DecodeResult(AppData(**values), skipped)
