"""
Pure snapshot transforms.

Each function takes a snapshot and returns a new one; nothing here touches
storage. When a transform has nothing to do it returns the *same* snapshot
object, which lets the store tell a no-op from a change.
"""

from uuid import UUID

from pocketledger.models.snapshot import AppData, SnapshotCollection


def append(records: list, record) -> list:
    return [*records, record]


def update_by_id(records: list, record) -> tuple[list, bool]:
    """Replace the first record with the same id in place; order is kept."""
    result = []
    replaced = False
    for existing in records:
        if not replaced and existing.id == record.id:
            result.append(record)
            replaced = True
        else:
            result.append(existing)
    return result, replaced


def delete_by_id(records: list, record_id: UUID) -> tuple[list, bool]:
    result = [r for r in records if r.id != record_id]
    return result, len(result) != len(records)


def append_record(snapshot: AppData, collection: SnapshotCollection, record) -> AppData:
    return snapshot.model_copy(
        update={collection.value: append(snapshot.records(collection), record)}
    )


def update_record(snapshot: AppData, collection: SnapshotCollection, record) -> AppData:
    records, replaced = update_by_id(snapshot.records(collection), record)
    if not replaced:
        return snapshot
    return snapshot.model_copy(update={collection.value: records})


def delete_record(snapshot: AppData, collection: SnapshotCollection, record_id: UUID) -> AppData:
    records, deleted = delete_by_id(snapshot.records(collection), record_id)
    if not deleted:
        return snapshot
    return snapshot.model_copy(update={collection.value: records})


def delete_goal_cascade(snapshot: AppData, goal_id: UUID) -> AppData:
    """Remove a goal and every transaction that references it."""
    goals, deleted = delete_by_id(snapshot.savings_goals, goal_id)
    if not deleted:
        return snapshot
    return snapshot.model_copy(update={
        "savings_goals": goals,
        "savings_transactions": [
            t for t in snapshot.savings_transactions if t.goal_id != goal_id
        ],
    })
