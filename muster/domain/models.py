# muster/domain/models.py
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

# name -> {field: value}; a None value deletes the field
RecordPatch = Dict[str, Dict[str, Any]]


def now_ms() -> int:
    """Current UTC time in epoch milliseconds."""
    return int(datetime.now(timezone.utc).timestamp() * 1000)


class ParticipantRecord(BaseModel):
    capacity_tag: str
    time_tag: Optional[str] = None
    timestamp: int = 0
    override_group_id: Optional[str] = None
    custom_group_label: Optional[str] = None
    is_manual_split: bool = False
    deleted: bool = False
    deleted_at: Optional[int] = None
    deleted_by: Optional[str] = None
    restored_at: Optional[int] = None
    restored_by: Optional[str] = None


class GroupMember(BaseModel):
    name: str
    capacity_tag: str
    time_tag: str
    timestamp: int
    override_group_id: Optional[str] = None
    custom_group_label: Optional[str] = None
    record: Optional[ParticipantRecord] = Field(default=None, exclude=True)


class Group(BaseModel):
    index: int
    members: List[GroupMember] = Field(default_factory=list)
    capacity_tag: str
    time_tag: str
    max_size: int
    is_full: bool = False
    label: str
    custom_label: Optional[str] = None
    override_group_id: Optional[str] = None

    @property
    def member_names(self) -> List[str]:
        return [m.name for m in self.members]

    def contains(self, name: str) -> bool:
        return any(m.name == name for m in self.members)


def apply_patches(
    records: Mapping[str, ParticipantRecord], patches: RecordPatch
) -> Dict[str, ParticipantRecord]:
    """
    Return a new snapshot with field patches applied.

    A None value resets the field to its default. Patches addressed to
    unknown names are skipped, input records are never mutated.
    """
    result = dict(records)
    fields = ParticipantRecord.model_fields
    for name, changes in patches.items():
        current = result.get(name)
        if current is None:
            logger.warning("Patch for unknown participant %r skipped", name)
            continue
        data = current.model_dump()
        for field, value in changes.items():
            if field not in fields:
                raise KeyError(f"Unknown record field: {field}")
            if value is None:
                if fields[field].is_required():
                    raise ValueError(f"Cannot delete required field: {field}")
                data[field] = fields[field].default
            else:
                data[field] = value
        result[name] = ParticipantRecord(**data)
    return result

