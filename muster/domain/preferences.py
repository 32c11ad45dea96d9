# muster/domain/preferences.py
"""
Preference normalization.

Older records mark a manually split group by appending a marker to the
capacity tag ("3_newgroup_1699999999"). The canonical tag is the prefix
before the marker; the split itself now lives in ParticipantRecord.is_manual_split.
"""
from typing import Optional

from muster.domain.errors import MalformedCapacityTag
from muster.domain.models import ParticipantRecord

NEW_GROUP_MARKER = "_newgroup_"
DEFAULT_TIME_TAG = "at all times"


def canonical_capacity(tag) -> str:
    """
    >>> canonical_capacity("3_newgroup_17000")
    '3'
    >>> canonical_capacity("3")
    '3'
    """
    return str(tag).split(NEW_GROUP_MARKER, 1)[0]


def resolve_time_tag(tag: Optional[str], default: str = DEFAULT_TIME_TAG) -> str:
    return tag if tag else default


def capacity_value(tag, min_capacity: int = 1, max_capacity: int = 6) -> int:
    canonical = canonical_capacity(tag)
    try:
        value = int(canonical)
    except (TypeError, ValueError):
        raise MalformedCapacityTag(f"Capacity tag {tag!r} is not numeric") from None
    if not min_capacity <= value <= max_capacity:
        raise MalformedCapacityTag(
            f"Capacity {value} outside [{min_capacity}, {max_capacity}]"
        )
    return value


def is_legacy_split(tag) -> bool:
    return NEW_GROUP_MARKER in str(tag)


def normalize_record(record: ParticipantRecord) -> ParticipantRecord:
    """Move a legacy marker out of the capacity tag into is_manual_split."""
    if not is_legacy_split(record.capacity_tag):
        return record
    return record.model_copy(update={
        "capacity_tag": canonical_capacity(record.capacity_tag),
        "is_manual_split": True,
    })
