# muster/services/event_service.py
"""
Per-alliance orchestration.

Holds the last known full snapshot (soft-deleted records included) and the
time slot catalog. While connected, writes go to the record store and the
snapshot is refreshed from its subscription; once a store call fails the
service keeps working in local-only mode on its own copy until reconnect()
fetches a fresh snapshot and drops the local state.

Mutations hold a per-service lock for their whole read-validate-write
sequence. Reads never take it: the snapshot dict is replaced, never mutated.
"""
import functools
import logging
import random
import threading
from typing import Callable, Dict, List, Optional, Tuple

from muster.domain.errors import (
    StoreUnavailable,
    UnknownGroup,
    ValidationError,
)
from muster.domain.grouping import (
    GroupingOptions,
    form_groups,
    group_at,
    search_groups,
    summarize,
)
from muster.domain.models import Group, ParticipantRecord, RecordPatch, apply_patches, now_ms
from muster.domain.placement import choose_arrival
from muster.domain.preferences import canonical_capacity, capacity_value, normalize_record
from muster.domain.time_slots import BUILTIN_TIME_SLOTS, TimeSlotCatalog
from muster.infrastructure.store import RecordStore, Snapshot
from muster.services import recovery
from muster.services.overrides import OverrideMutator

logger = logging.getLogger(__name__)


def synchronized(method):
    """Serialise a read-validate-write sequence on the service lock."""
    @functools.wraps(method)
    def wrapper(self, *args, **kwargs):
        with self._lock:
            return method(self, *args, **kwargs)
    return wrapper


class EventService:
    def __init__(
        self,
        store: RecordStore,
        options: Optional[GroupingOptions] = None,
        alliance: str = "COB",
        default_time_slots: Tuple[str, ...] = BUILTIN_TIME_SLOTS,
        clock: Callable[[], int] = now_ms,
        rng: Optional[random.Random] = None,
        join_jitter_ms: int = 1000,
        new_group_offset_ms: int = 60_000,
        new_group_jitter_ms: int = 60_000,
        purge_age_ms: int = recovery.DEFAULT_PURGE_AGE_MS,
    ):
        self.store = store
        self.options = options or GroupingOptions()
        self.alliance = alliance
        self.default_time_slots = tuple(default_time_slots)
        self.clock = clock
        self.rng = rng or random.Random()
        self.join_jitter_ms = join_jitter_ms
        self.purge_age_ms = purge_age_ms
        self.mutator = OverrideMutator(
            clock=clock,
            rng=self.rng,
            new_group_offset_ms=new_group_offset_ms,
            new_group_jitter_ms=new_group_jitter_ms,
        )

        self._lock = threading.RLock()
        self.connected = False
        self.last_error: Optional[StoreUnavailable] = None
        self._records: Snapshot = {}
        self.catalog = self._empty_catalog()
        self._unsubscribe = None
        self.reconnect()

    @classmethod
    def from_settings(cls, store: RecordStore, settings, alliance: str, **kwargs) -> "EventService":
        return cls(
            store,
            options=GroupingOptions.from_settings(settings, label_prefix=alliance),
            alliance=alliance,
            default_time_slots=tuple(settings.DEFAULT_TIME_SLOTS),
            join_jitter_ms=settings.JOIN_JITTER_MS,
            new_group_offset_ms=settings.NEW_GROUP_OFFSET_MS,
            new_group_jitter_ms=settings.NEW_GROUP_JITTER_MS,
            purge_age_ms=settings.PURGE_AFTER_DAYS * recovery.DAY_MS,
            **kwargs,
        )

    # ----------------------------
    # Connection handling
    # ----------------------------

    def _empty_catalog(self, labels=None) -> TimeSlotCatalog:
        return TimeSlotCatalog(
            labels, default_label=self.options.default_time_tag, builtin=self.default_time_slots
        )

    @synchronized
    def _on_snapshot(self, snapshot: Snapshot):
        if self.connected:
            self._records = {name: normalize_record(r) for name, r in snapshot.items()}

    def _go_local(self, error: StoreUnavailable):
        logger.warning("[%s] store unavailable, switching to local mode: %s", self.alliance, error)
        self.connected = False
        self.last_error = error
        if self._unsubscribe:
            self._unsubscribe()
            self._unsubscribe = None

    @synchronized
    def reconnect(self) -> bool:
        """Fetch a fresh snapshot from the store; local-only state is discarded."""
        if self._unsubscribe:
            self._unsubscribe()
            self._unsubscribe = None
        try:
            self.connected = True
            self._unsubscribe = self.store.subscribe(self._on_snapshot)
            self.catalog = self._empty_catalog(self.store.time_slots())
        except StoreUnavailable as e:
            self._go_local(e)
            return False
        self.last_error = None
        logger.info("[%s] connected, %d records", self.alliance, len(self._records))
        return True

    def _write(self, local: Callable[[Snapshot], Snapshot], remote: Callable[[], None]):
        if self.connected:
            try:
                remote()
                return
            except StoreUnavailable as e:
                self._go_local(e)
        self._records = local(self._records)

    def _update(self, patches: RecordPatch):
        if patches:
            self._write(lambda records: apply_patches(records, patches),
                        lambda: self.store.update(patches))

    def _set(self, name: str, record: ParticipantRecord):
        def local(records):
            records = dict(records)
            records[name] = record
            return records
        self._write(local, lambda: self.store.set(name, record))

    def _remove(self, names: List[str]):
        def local(records):
            return {n: r for n, r in records.items() if n not in names}

        def remote():
            for name in names:
                self.store.remove(name)

        if names:
            self._write(local, remote)

    def _save_catalog(self, catalog: TimeSlotCatalog, patches: RecordPatch):
        if self.connected:
            try:
                self.store.set_time_slots(catalog.labels)
            except StoreUnavailable as e:
                self._go_local(e)
        self.catalog = catalog
        self._update(patches)

    # ----------------------------
    # Read side
    # ----------------------------

    @property
    def records(self) -> Snapshot:
        return dict(self._records)

    def live_records(self) -> Snapshot:
        return recovery.live_records(self._records)

    def groups(self) -> List[Group]:
        return form_groups(self.live_records(), self.options)

    def search(self, term: str) -> List[Group]:
        return search_groups(self.groups(), term)

    def stats(self) -> Dict[str, int]:
        return summarize(self.groups())

    def _group(self, index: int) -> Group:
        group = group_at(self.groups(), index)
        if group is None:
            raise UnknownGroup(f"No group at position {index}")
        return group

    # ----------------------------
    # Registration
    # ----------------------------

    @synchronized
    def register(self, name: str, capacity, time_tag: Optional[str] = None) -> ParticipantRecord:
        name = (name or "").strip()
        if not name:
            raise ValidationError("Participant name must not be empty")
        existing = self._records.get(name)
        if existing is not None and not existing.deleted:
            raise ValidationError(f"{name} is already registered in {self.alliance}")

        capacity_tag = canonical_capacity(capacity)
        try:
            capacity_value(capacity_tag, self.options.min_capacity, self.options.max_capacity)
        except ValueError as e:
            raise ValidationError(str(e)) from None

        time_tag = time_tag or self.catalog.default_label
        if time_tag not in self.catalog:
            raise ValidationError(f"Unknown time slot {time_tag!r}")

        timestamp, override_id = choose_arrival(
            self.groups(), capacity_tag, time_tag, self.clock(),
            options=self.options, rng=self.rng, jitter_ms=self.join_jitter_ms,
        )
        record = ParticipantRecord(
            capacity_tag=capacity_tag,
            time_tag=time_tag,
            timestamp=timestamp,
            override_group_id=override_id,
        )
        self._set(name, record)
        logger.info("[%s] registered %s (capacity=%s, time=%s)", self.alliance, name, capacity_tag, time_tag)
        return record

    # ----------------------------
    # Recovery
    # ----------------------------

    @synchronized
    def remove(self, name: str, is_admin: bool = False):
        if not self.options.soft_delete:
            self._remove([recovery.purge(name, self.live_records())])
            return
        actor = "admin" if is_admin else "user"
        self._update(recovery.soft_delete(name, self._records, actor, self.clock()))
        logger.info("[%s] %s removed by %s", self.alliance, name, actor)

    def deleted(self) -> List[Tuple[str, ParticipantRecord]]:
        return recovery.deleted_records(self._records)

    @synchronized
    def restore(self, name: str):
        self._update(recovery.restore(name, self._records, "admin", self.clock()))
        logger.info("[%s] %s restored", self.alliance, name)

    @synchronized
    def purge(self, name: str):
        self._remove([recovery.purge(name, self._records)])
        logger.info("[%s] %s purged", self.alliance, name)

    @synchronized
    def purge_older_than(self, age_ms: Optional[int] = None) -> List[str]:
        age_ms = self.purge_age_ms if age_ms is None else age_ms
        names = recovery.purge_older_than(self._records, age_ms, self.clock())
        self._remove(names)
        if names:
            logger.info("[%s] purged %d old deleted participant(s)", self.alliance, len(names))
        return names

    @synchronized
    def clear_all(self):
        self._write(lambda records: {}, self.store.clear)
        logger.info("[%s] all participants cleared", self.alliance)

    # ----------------------------
    # Overrides
    # ----------------------------

    @synchronized
    def force_join(self, name: str, group_index: int):
        self._update(self.mutator.force_join(name, self._group(group_index), self._records))

    @synchronized
    def force_new_group(self, name: str):
        self._update(self.mutator.force_new_group(name, self.groups()))

    @synchronized
    def swap(self, name_a: str, name_b: str):
        self._update(self.mutator.swap(name_a, name_b, self._records))

    @synchronized
    def rename_group(self, group_index: int, label: str):
        self._update(self.mutator.rename_group(self._group(group_index), label))

    @synchronized
    def reset_group_name(self, group_index: int):
        self._update(self.mutator.reset_group_name(self._group(group_index)))

    # ----------------------------
    # Time slots
    # ----------------------------

    def time_slots(self) -> List[str]:
        return self.catalog.labels

    @synchronized
    def add_time_slot(self, label: str):
        self._save_catalog(*self.catalog.add(label))

    @synchronized
    def rename_time_slot(self, old: str, new: str):
        self._save_catalog(*self.catalog.rename(old, new, self._records))

    @synchronized
    def delete_time_slot(self, label: str) -> List[str]:
        moved = self.catalog.users_of(label, self._records)
        self._save_catalog(*self.catalog.delete(label, self._records))
        return moved

    @synchronized
    def reset_time_slots(self):
        self._save_catalog(*self.catalog.reset(self._records))
