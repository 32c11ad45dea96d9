# muster/services/overrides.py
"""
Admin override intents.

Each operation is validated against a freshly computed group view and
returns a RecordPatch. Nothing is written here: the event service either
sends the patch to the store or applies it to its local snapshot.

Preference tags (capacity_tag, time_tag) are never part of a patch.
"""
import logging
import random
import string
from typing import Callable, List, Mapping, Optional

from muster.domain.errors import (
    AlreadyIsolated,
    CapacityExceeded,
    UnknownParticipant,
    ValidationError,
)
from muster.domain.grouping import find_group
from muster.domain.models import Group, ParticipantRecord, RecordPatch, now_ms

logger = logging.getLogger(__name__)

_ID_ALPHABET = string.ascii_lowercase + string.digits


class OverrideMutator:
    def __init__(
        self,
        clock: Callable[[], int] = now_ms,
        rng: Optional[random.Random] = None,
        new_group_offset_ms: int = 60_000,
        new_group_jitter_ms: int = 60_000,
    ):
        self.clock = clock
        self.rng = rng or random.Random()
        self.new_group_offset_ms = new_group_offset_ms
        self.new_group_jitter_ms = new_group_jitter_ms

    def new_override_id(self) -> str:
        token = "".join(self.rng.choice(_ID_ALPHABET) for _ in range(9))
        return f"admin_group_{self.clock()}_{token}"

    def force_join(
        self, name: str, target: Group, records: Mapping[str, ParticipantRecord]
    ) -> RecordPatch:
        """
        Anchor name and every current member of target under one new override id.
        """
        record = records.get(name)
        if record is None or record.deleted:
            raise UnknownParticipant(f"Unknown participant: {name}")
        if len(target.members) >= target.max_size:
            raise CapacityExceeded(
                f"{target.label} is full ({len(target.members)}/{target.max_size})"
            )

        override_id = self.new_override_id()
        patch: RecordPatch = {
            member.name: {"override_group_id": override_id}
            for member in target.members
        }
        patch[name] = {"override_group_id": override_id, "timestamp": self.clock()}
        logger.info("force_join %s -> %s (%s)", name, target.label, override_id)
        return patch

    def force_new_group(self, name: str, groups: List[Group]) -> RecordPatch:
        current = find_group(groups, name)
        if current is None:
            raise UnknownParticipant(f"Unknown participant: {name}")
        if len(current.members) <= 1:
            raise AlreadyIsolated(f"{name} is already alone in their group")

        jitter = self.rng.randrange(self.new_group_jitter_ms) if self.new_group_jitter_ms > 0 else 0
        timestamp = self.clock() + jitter + self.new_group_offset_ms
        logger.info("force_new_group %s leaves %s", name, current.label)
        return {
            name: {
                "override_group_id": None,
                "custom_group_label": None,
                "is_manual_split": True,
                "timestamp": timestamp,
            }
        }

    def swap(self, name_a: str, name_b: str, records: Mapping[str, ParticipantRecord]) -> RecordPatch:
        if name_a == name_b:
            raise UnknownParticipant(f"Cannot swap {name_a} with itself")
        a, b = records.get(name_a), records.get(name_b)
        if a is None or a.deleted:
            raise UnknownParticipant(f"Unknown participant: {name_a}")
        if b is None or b.deleted:
            raise UnknownParticipant(f"Unknown participant: {name_b}")

        logger.info("swap %s <-> %s", name_a, name_b)
        return {
            name_a: {"timestamp": b.timestamp, "override_group_id": b.override_group_id},
            name_b: {"timestamp": a.timestamp, "override_group_id": a.override_group_id},
        }

    def rename_group(self, group: Group, label: Optional[str]) -> RecordPatch:
        label = (label or "").strip()
        if not label:
            raise ValidationError("Group name must not be empty")
        if label == group.label:
            return {}
        return {member.name: {"custom_group_label": label} for member in group.members}

    def reset_group_name(self, group: Group) -> RecordPatch:
        if not group.custom_label:
            return {}
        return {member.name: {"custom_group_label": None} for member in group.members}
