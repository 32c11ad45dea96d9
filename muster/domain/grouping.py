# muster/domain/grouping.py
"""
Group formation engine.

Pure function from a record snapshot to an ordered list of groups. Nothing
here touches the store: callers pass a snapshot in and get disposable Group
views back, so any number of observers can recompute independently.

Order of emission:
- override groups first, in the order their first member shows up in the
  timestamp-sorted list
- then matching groups, in the order their seed record was visited
"""
from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional

from muster.domain.models import Group, GroupMember, ParticipantRecord
from muster.domain.preferences import (
    DEFAULT_TIME_TAG,
    canonical_capacity,
    capacity_value,
    resolve_time_tag,
)


@dataclass
class GroupingOptions:
    proximity_threshold_ms: int = 10_000
    default_time_tag: str = DEFAULT_TIME_TAG
    match_time_tags: bool = True
    soft_delete: bool = True
    # matching groups reserve capacity + 1 slots (leader slot)
    leader_slot: bool = True
    min_capacity: int = 1
    max_capacity: int = 6
    label_template: str = "Group {index}"

    @classmethod
    def from_settings(cls, settings, label_prefix: Optional[str] = None) -> "GroupingOptions":
        template = settings.GROUP_LABEL_TEMPLATE
        if label_prefix:
            template = f"{label_prefix} {template}"
        return cls(
            proximity_threshold_ms=settings.PROXIMITY_THRESHOLD_MS,
            default_time_tag=settings.DEFAULT_TIME_SLOT,
            match_time_tags=settings.MATCH_TIME_SLOTS,
            soft_delete=settings.SOFT_DELETE,
            leader_slot=settings.LEADER_SLOT,
            min_capacity=settings.MIN_CAPACITY,
            max_capacity=settings.MAX_CAPACITY,
            label_template=template,
        )


@dataclass
class _Entry:
    name: str
    capacity_tag: str
    capacity: int
    time_tag: str
    timestamp: int
    override_group_id: Optional[str]
    record: ParticipantRecord

    def to_member(self) -> GroupMember:
        return GroupMember(
            name=self.name,
            capacity_tag=self.capacity_tag,
            time_tag=self.time_tag,
            timestamp=self.timestamp,
            override_group_id=self.override_group_id,
            custom_group_label=self.record.custom_group_label,
            record=self.record,
        )


def _entries(records: Mapping[str, ParticipantRecord], options: GroupingOptions) -> List[_Entry]:
    entries = []
    for name, record in records.items():
        if record.deleted:
            continue
        entries.append(_Entry(
            name=name,
            capacity_tag=canonical_capacity(record.capacity_tag),
            capacity=capacity_value(record.capacity_tag, options.min_capacity, options.max_capacity),
            time_tag=resolve_time_tag(record.time_tag, options.default_time_tag),
            timestamp=record.timestamp or 0,
            override_group_id=record.override_group_id or None,
            record=record,
        ))
    # stable: equal timestamps keep snapshot order (first come, first served)
    entries.sort(key=lambda e: e.timestamp)
    return entries


def _same_tags(a: _Entry, b: _Entry, options: GroupingOptions) -> bool:
    if a.capacity_tag != b.capacity_tag:
        return False
    return not options.match_time_tags or a.time_tag == b.time_tag


def _override_groups(entries: List[_Entry]) -> List[List[_Entry]]:
    buckets: Dict[str, List[_Entry]] = {}
    for entry in entries:
        if entry.override_group_id:
            buckets.setdefault(entry.override_group_id, []).append(entry)
    return [sorted(bucket, key=lambda e: e.timestamp) for bucket in buckets.values()]


def _matching_groups(entries: List[_Entry], consumed: set, options: GroupingOptions):
    for seed in entries:
        if seed.name in consumed:
            continue
        group_size = seed.capacity + (1 if options.leader_slot else 0)

        candidates = [
            c for c in entries
            if c.name not in consumed
            and not c.override_group_id
            and _same_tags(c, seed, options)
        ]
        candidates.sort(key=lambda e: e.timestamp)

        members: List[_Entry] = []
        window = seed.timestamp
        for candidate in candidates:
            if len(members) >= group_size:
                break
            if abs(candidate.timestamp - window) < options.proximity_threshold_ms:
                members.append(candidate)
                consumed.add(candidate.name)
                if candidate.timestamp > window:
                    window = candidate.timestamp

        if not members:
            members.append(seed)
            consumed.add(seed.name)

        yield seed, members, group_size


def form_groups(
    records: Mapping[str, ParticipantRecord], options: Optional[GroupingOptions] = None
) -> List[Group]:
    """
    Partition live records into capacity-bounded groups.

    Raises MalformedCapacityTag when a live record carries a capacity tag
    that is not an integer inside the configured range.
    """
    options = options or GroupingOptions()
    entries = _entries(records, options)

    # (seed, members, max_size, override id)
    raw = []
    consumed = set()
    for bucket in _override_groups(entries):
        raw.append((bucket[0], bucket, bucket[0].capacity + 1, bucket[0].override_group_id))
        consumed.update(e.name for e in bucket)

    for seed, members, group_size in _matching_groups(entries, consumed, options):
        raw.append((seed, members, group_size, None))

    groups = []
    for position, (seed, members, max_size, override_id) in enumerate(raw, start=1):
        custom = next(
            (m.record.custom_group_label for m in members if m.record.custom_group_label),
            None,
        )
        groups.append(Group(
            index=position,
            members=[m.to_member() for m in members],
            capacity_tag=seed.capacity_tag,
            time_tag=seed.time_tag,
            max_size=max_size,
            is_full=len(members) >= max_size,
            label=custom or options.label_template.format(index=position),
            custom_label=custom,
            override_group_id=override_id,
        ))
    return groups


# ----------------------------
# Lookups over a group view
# ----------------------------

def find_group(groups: List[Group], name: str) -> Optional[Group]:
    for group in groups:
        if group.contains(name):
            return group
    return None


def group_at(groups: List[Group], index: int) -> Optional[Group]:
    """1-based lookup, matching Group.index."""
    if 1 <= index <= len(groups):
        return groups[index - 1]
    return None


def search_groups(groups: List[Group], term: str) -> List[Group]:
    """Groups with at least one member whose name contains term (case-insensitive)."""
    term = (term or "").strip().lower()
    if not term:
        return list(groups)
    return [g for g in groups if any(term in m.name.lower() for m in g.members)]


def summarize(groups: List[Group]) -> Dict[str, int]:
    return {
        "players": sum(len(g.members) for g in groups),
        "groups": len(groups),
        "full_groups": sum(1 for g in groups if g.is_full),
        "open_slots": sum(max(0, g.max_size - len(g.members)) for g in groups),
    }
