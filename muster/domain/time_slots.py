# muster/domain/time_slots.py
"""
Time slot catalog.

Every mutation returns a new catalog together with the record patches that
keep participants consistent with it (renamed slot follows its participants,
deleted slot sends them to the default label).
"""
from typing import Iterable, List, Mapping, Optional, Tuple

from muster.domain.errors import ValidationError
from muster.domain.models import ParticipantRecord, RecordPatch
from muster.domain.preferences import DEFAULT_TIME_TAG

BUILTIN_TIME_SLOTS = (DEFAULT_TIME_TAG, "offline")


class TimeSlotCatalog:
    def __init__(
        self,
        labels: Optional[Iterable[str]] = None,
        default_label: str = DEFAULT_TIME_TAG,
        builtin: Iterable[str] = BUILTIN_TIME_SLOTS,
    ):
        self.default_label = default_label
        self.builtin = list(builtin)
        ordered = []
        for label in (list(labels) if labels is not None else self.builtin):
            if label and label not in ordered:
                ordered.append(label)
        if default_label not in ordered:
            ordered.insert(0, default_label)
        self._labels = ordered

    @property
    def labels(self) -> List[str]:
        return list(self._labels)

    def __contains__(self, label) -> bool:
        return label in self._labels

    def __iter__(self):
        return iter(self._labels)

    def __len__(self):
        return len(self._labels)

    def __eq__(self, other):
        if not isinstance(other, TimeSlotCatalog):
            return NotImplemented
        return self._labels == other._labels and self.default_label == other.default_label

    def __repr__(self):
        return f"TimeSlotCatalog({self._labels!r}, default={self.default_label!r})"

    def _with(self, labels: List[str]) -> "TimeSlotCatalog":
        return TimeSlotCatalog(labels, self.default_label, self.builtin)

    def _clean(self, label: Optional[str]) -> str:
        cleaned = (label or "").strip()
        if not cleaned:
            raise ValidationError("Time slot label must not be empty")
        return cleaned

    # ----------------------------
    # Mutations
    # ----------------------------

    def add(self, label: str) -> Tuple["TimeSlotCatalog", RecordPatch]:
        label = self._clean(label)
        if label in self._labels:
            raise ValidationError(f"Time slot {label!r} already exists")
        return self._with(self._labels + [label]), {}

    def rename(
        self, old: str, new: str, records: Mapping[str, ParticipantRecord]
    ) -> Tuple["TimeSlotCatalog", RecordPatch]:
        new = self._clean(new)
        if old not in self._labels:
            raise ValidationError(f"Unknown time slot {old!r}")
        if old == self.default_label:
            raise ValidationError("The default time slot cannot be renamed")
        if new == old:
            return self, {}
        if new in self._labels:
            raise ValidationError(f"Time slot {new!r} already exists")

        labels = [new if label == old else label for label in self._labels]
        patches = {
            name: {"time_tag": new}
            for name, record in records.items()
            if record.time_tag == old
        }
        return self._with(labels), patches

    def delete(
        self, label: str, records: Mapping[str, ParticipantRecord]
    ) -> Tuple["TimeSlotCatalog", RecordPatch]:
        if label == self.default_label:
            raise ValidationError("The default time slot cannot be deleted")
        if label not in self._labels:
            raise ValidationError(f"Unknown time slot {label!r}")

        labels = [l for l in self._labels if l != label]
        patches = {
            name: {"time_tag": self.default_label}
            for name, record in records.items()
            if record.time_tag == label
        }
        return self._with(labels), patches

    def reset(self, records: Mapping[str, ParticipantRecord]) -> Tuple["TimeSlotCatalog", RecordPatch]:
        catalog = self._with(self.builtin)
        patches = {
            name: {"time_tag": self.default_label}
            for name, record in records.items()
            if record.time_tag and record.time_tag not in catalog
        }
        return catalog, patches

    def users_of(self, label: str, records: Mapping[str, ParticipantRecord]) -> List[str]:
        return [name for name, record in records.items() if record.time_tag == label]
