# muster/infrastructure/store.py
"""
Record store boundary.

The store is the authoritative name -> record mapping for one alliance.
Writes are whole-record set, field-level update (None deletes a field) or
remove; after each write every subscriber receives a full snapshot.
"""
import logging
from abc import ABC, abstractmethod
from typing import Callable, Dict, Iterable, List, Optional

from muster.domain.models import ParticipantRecord, RecordPatch, apply_patches

logger = logging.getLogger(__name__)

Snapshot = Dict[str, ParticipantRecord]
Listener = Callable[[Snapshot], None]


class RecordStore(ABC):
    def __init__(self):
        self._listeners: List[Listener] = []

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register listener and push the current snapshot to it right away."""
        snapshot = self.snapshot()
        self._listeners.append(listener)
        listener(snapshot)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _publish(self):
        if not self._listeners:
            return
        snapshot = self.snapshot()
        for listener in list(self._listeners):
            listener(dict(snapshot))

    @abstractmethod
    def snapshot(self) -> Snapshot:
        ...

    @abstractmethod
    def set(self, name: str, record: ParticipantRecord) -> None:
        ...

    @abstractmethod
    def update(self, patches: RecordPatch) -> None:
        ...

    @abstractmethod
    def remove(self, name: str) -> None:
        ...

    @abstractmethod
    def clear(self) -> None:
        ...

    @abstractmethod
    def time_slots(self) -> Optional[List[str]]:
        """Stored catalog labels, None when nothing was stored yet."""

    @abstractmethod
    def set_time_slots(self, labels: Iterable[str]) -> None:
        ...


class MemoryRecordStore(RecordStore):
    def __init__(self, records: Optional[Snapshot] = None, time_slots: Optional[List[str]] = None):
        super().__init__()
        self._records: Snapshot = dict(records or {})
        self._time_slots = list(time_slots) if time_slots is not None else None

    def snapshot(self) -> Snapshot:
        return dict(self._records)

    def set(self, name: str, record: ParticipantRecord) -> None:
        self._records[name] = record
        self._publish()

    def update(self, patches: RecordPatch) -> None:
        if not patches:
            return
        self._records = apply_patches(self._records, patches)
        self._publish()

    def remove(self, name: str) -> None:
        self._records.pop(name, None)
        self._publish()

    def clear(self) -> None:
        self._records = {}
        self._publish()

    def time_slots(self) -> Optional[List[str]]:
        return list(self._time_slots) if self._time_slots is not None else None

    def set_time_slots(self, labels: Iterable[str]) -> None:
        self._time_slots = list(labels)
