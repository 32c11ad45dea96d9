# muster/services/recovery.py
"""
Soft delete / restore / purge.

Active -> SoftDeleted -> Restored (Active again) | Purged (gone).
Only Active records reach the grouping engine.
"""
from typing import Dict, List, Mapping, Tuple

from muster.domain.errors import UnknownParticipant
from muster.domain.models import ParticipantRecord, RecordPatch

DAY_MS = 24 * 60 * 60 * 1000
DEFAULT_PURGE_AGE_MS = 30 * DAY_MS


def live_records(records: Mapping[str, ParticipantRecord]) -> Dict[str, ParticipantRecord]:
    return {name: r for name, r in records.items() if not r.deleted}


def deleted_records(records: Mapping[str, ParticipantRecord]) -> List[Tuple[str, ParticipantRecord]]:
    """Soft-deleted records, most recently deleted first."""
    deleted = [(name, r) for name, r in records.items() if r.deleted]
    deleted.sort(key=lambda item: item[1].deleted_at or 0, reverse=True)
    return deleted


def soft_delete(
    name: str, records: Mapping[str, ParticipantRecord], actor: str, now: int
) -> RecordPatch:
    record = records.get(name)
    if record is None or record.deleted:
        raise UnknownParticipant(f"Unknown participant: {name}")
    return {name: {"deleted": True, "deleted_at": now, "deleted_by": actor}}


def restore(
    name: str, records: Mapping[str, ParticipantRecord], actor: str, now: int
) -> RecordPatch:
    record = records.get(name)
    if record is None or not record.deleted:
        raise UnknownParticipant(f"No deleted participant named {name}")
    return {
        name: {
            "deleted": None,
            "deleted_at": None,
            "deleted_by": None,
            "restored_at": now,
            "restored_by": actor,
        }
    }


def purge(name: str, records: Mapping[str, ParticipantRecord]) -> str:
    if name not in records:
        raise UnknownParticipant(f"Unknown participant: {name}")
    return name


def purge_older_than(
    records: Mapping[str, ParticipantRecord], age_ms: int, now: int
) -> List[str]:
    cutoff = now - age_ms
    return [
        name for name, r in records.items()
        if r.deleted and r.deleted_at is not None and r.deleted_at < cutoff
    ]
