# tests/test_event_service.py
import random
from concurrent.futures import ThreadPoolExecutor

import pytest

from conftest import Clock, FlakyStore, rec
from muster.domain.errors import (
    CapacityExceeded,
    UnknownGroup,
    UnknownParticipant,
    ValidationError,
)
from muster.domain.grouping import GroupingOptions
from muster.infrastructure.store import MemoryRecordStore
from muster.services.event_service import EventService
from muster.services.recovery import DAY_MS

SPACING = 2000


def names(service):
    return [g.member_names for g in service.groups()]


def register_all(service, clock, players):
    for name, capacity in players:
        service.register(name, capacity)
        clock.advance(SPACING)


# -------------------------------
# Registration
# -------------------------------

def test_register_fills_then_overflows(make_service, clock):
    service = make_service()
    register_all(service, clock, [("A", 2), ("B", 2), ("C", 2), ("D", 2)])
    assert names(service) == [["A", "B", "C"], ["D"]]

    record = service.records["B"]
    assert record.capacity_tag == "2"
    assert record.time_tag == "at all times"
    assert 1_000 <= record.timestamp < 2_000


def test_register_joins_matching_open_group(make_service, clock):
    service = make_service()
    register_all(service, clock, [("A", 2), ("B", 3), ("C", 2), ("D", 3)])
    assert names(service) == [["A", "C"], ["B", "D"]]


def test_register_writes_to_store(make_service):
    store = MemoryRecordStore()
    service = make_service(store)
    service.register("  Astrid  ", "4_newgroup_5")
    assert list(store.snapshot()) == ["Astrid"]
    assert store.snapshot()["Astrid"].capacity_tag == "4"
    assert service.connected is True


@pytest.mark.parametrize("name", ["", "   ", None])
def test_register_rejects_empty_name(make_service, name):
    with pytest.raises(ValidationError):
        make_service().register(name, 2)


@pytest.mark.parametrize("capacity", [0, 7, "abc"])
def test_register_rejects_bad_capacity(make_service, capacity):
    with pytest.raises(ValidationError):
        make_service().register("A", capacity)


def test_register_rejects_duplicate_and_unknown_slot(make_service):
    service = make_service()
    service.register("A", 2)
    with pytest.raises(ValidationError):
        service.register("A", 3)
    with pytest.raises(ValidationError):
        service.register("B", 2, "never")


def test_register_over_soft_deleted_name(make_service, clock):
    service = make_service()
    service.register("A", 2)
    service.remove("A")
    clock.advance(SPACING)

    record = service.register("A", 5, "offline")
    assert record.deleted is False
    assert service.records["A"].capacity_tag == "5"
    assert service.deleted() == []


def test_register_joins_open_override_group(make_service, clock):
    service = make_service()
    register_all(service, clock, [("A", 2), ("B", 2), ("C", 2), ("D", 2)])
    service.force_join("A", 2)
    override_id = service.records["A"].override_group_id
    assert names(service) == [["D", "A"], ["B", "C"]]

    service.register("E", 2)
    assert service.records["E"].override_group_id == override_id
    assert names(service) == [["D", "E", "A"], ["B", "C"]]


# -------------------------------
# Removal and recovery
# -------------------------------

def test_remove_records_actor(make_service, clock):
    service = make_service()
    register_all(service, clock, [("A", 2), ("B", 2), ("C", 2)])
    service.remove("B")
    clock.advance(10)
    service.remove("C", is_admin=True)

    assert service.records["B"].deleted_by == "user"
    assert service.records["C"].deleted_by == "admin"
    assert [name for name, _ in service.deleted()] == ["C", "B"]
    assert names(service) == [["A"]]

    with pytest.raises(UnknownParticipant):
        service.remove("B")


def test_remove_without_soft_delete_purges(make_service, clock):
    service = make_service(options=GroupingOptions(soft_delete=False))
    register_all(service, clock, [("A", 2), ("B", 2)])
    service.remove("B")
    assert "B" not in service.records
    assert service.deleted() == []


def test_purge_and_purge_older_than(make_service, clock):
    service = make_service()
    register_all(service, clock, [("A", 2), ("B", 2), ("C", 2)])
    service.remove("A")
    clock.advance(31 * DAY_MS)
    service.remove("B")

    assert service.purge_older_than() == ["A"]
    assert "A" not in service.records

    service.purge("B")
    assert "B" not in service.records
    with pytest.raises(UnknownParticipant):
        service.purge("B")


def test_clear_all(make_service, clock):
    store = MemoryRecordStore()
    service = make_service(store)
    register_all(service, clock, [("A", 2), ("B", 2)])
    service.clear_all()
    assert service.records == {}
    assert store.snapshot() == {}


# -------------------------------
# Overrides by group position
# -------------------------------

def test_unknown_group_index(make_service, clock):
    service = make_service()
    register_all(service, clock, [("A", 2)])
    with pytest.raises(UnknownGroup):
        service.force_join("A", 9)
    with pytest.raises(UnknownGroup):
        service.rename_group(0, "x")


def test_force_join_full_group(make_service, clock):
    service = make_service()
    register_all(service, clock, [("A", 2), ("B", 2), ("C", 2), ("D", 2)])
    with pytest.raises(CapacityExceeded):
        service.force_join("D", 1)


def test_force_new_group_and_swap(make_service, clock):
    service = make_service()
    register_all(service, clock, [("A", 2), ("B", 2), ("C", 2), ("D", 2)])

    service.swap("A", "D")
    groups = service.groups()
    assert set(groups[0].member_names) == {"B", "C", "D"}
    assert groups[1].member_names == ["A"]

    service.force_new_group("C")
    groups = service.groups()
    assert set(groups[0].member_names) == {"A", "B", "D"}
    assert groups[1].member_names == ["C"]
    assert service.records["C"].is_manual_split is True


def test_rename_and_reset_group(make_service, clock):
    service = make_service()
    register_all(service, clock, [("A", 2), ("B", 2)])
    service.rename_group(1, "Raiders")
    assert service.groups()[0].label == "Raiders"
    service.reset_group_name(1)
    assert service.groups()[0].label == "Group 1"


def test_search_and_stats(make_service, clock):
    service = make_service()
    register_all(service, clock, [("Astrid", 2), ("Bjorn", 2), ("Carl", 2), ("Dagny", 2)])
    assert [g.index for g in service.search("dag")] == [2]
    assert service.stats() == {"players": 4, "groups": 2, "full_groups": 1, "open_slots": 2}


# -------------------------------
# Time slots
# -------------------------------

def test_time_slot_cascade(make_service, clock):
    store = MemoryRecordStore()
    service = make_service(store)
    service.add_time_slot("20:00")
    assert store.time_slots() == ["at all times", "offline", "20:00"]

    service.register("X", 2, "20:00")
    service.rename_time_slot("20:00", "21:00")
    assert service.records["X"].time_tag == "21:00"
    assert service.time_slots() == ["at all times", "offline", "21:00"]

    assert service.delete_time_slot("21:00") == ["X"]
    assert service.records["X"].time_tag == "at all times"

    service.add_time_slot("22:00")
    service.reset_time_slots()
    assert service.time_slots() == ["at all times", "offline"]


def test_catalog_is_loaded_from_store(make_service):
    store = MemoryRecordStore(time_slots=["at all times", "19:30"])
    service = make_service(store)
    assert service.time_slots() == ["at all times", "19:30"]
    service.register("A", 2, "19:30")


# -------------------------------
# Store connection
# -------------------------------

def test_external_writes_are_observed(make_service):
    store = MemoryRecordStore()
    service = make_service(store)
    store.set("Z", rec(2, 5))
    assert list(service.records) == ["Z"]


def test_legacy_records_normalised_on_read(make_service):
    store = MemoryRecordStore({"X": rec("3_newgroup_123", 0)})
    service = make_service(store)
    assert service.records["X"].capacity_tag == "3"
    assert service.records["X"].is_manual_split is True


def test_store_failure_switches_to_local_mode(make_service):
    store = FlakyStore()
    service = make_service(store)
    store.failing = True

    service.register("A", 2)
    assert service.connected is False
    assert service.last_error is not None
    assert list(service.records) == ["A"]
    assert store.snapshot() == {}

    # later writes stay local
    service.add_time_slot("20:00")
    service.remove("A")
    assert service.records["A"].deleted is True
    assert "20:00" in service.time_slots()


def script(service, clock):
    register_all(service, clock, [("A", 2), ("B", 2), ("C", 2), ("D", 2), ("E", 3), ("F", 3)])
    service.force_join("A", 2)
    service.swap("B", "E")
    service.rename_group(1, "Raiders")
    service.remove("F")


def test_local_mode_matches_connected_mode():
    clock_a, clock_b = Clock(), Clock()
    connected = EventService(MemoryRecordStore(), clock=clock_a, rng=random.Random(7))
    flaky = FlakyStore()
    local = EventService(flaky, clock=clock_b, rng=random.Random(7))
    flaky.failing = True

    script(connected, clock_a)
    script(local, clock_b)

    assert connected.connected is True
    assert local.connected is False
    assert connected.records == local.records
    assert [g.model_dump() for g in connected.groups()] == [g.model_dump() for g in local.groups()]


def test_reconnect_discards_local_state(make_service, clock):
    store = FlakyStore({"A": rec(2, 0)})
    service = make_service(store)
    store.failing = True
    service.register("B", 2)
    assert set(service.records) == {"A", "B"}

    store.failing = False
    assert service.reconnect() is True
    assert service.connected is True
    assert service.last_error is None
    assert list(service.records) == ["A"]

    # writes reach the store again
    service.register("C", 2)
    assert set(store.snapshot()) == {"A", "C"}


# -------------------------------
# Concurrent callers
# -------------------------------

def test_same_name_registered_once_under_contention(make_service):
    service = make_service()

    def attempt(_):
        try:
            service.register("Astrid", 2)
            return True
        except ValidationError:
            return False

    with ThreadPoolExecutor(max_workers=8) as pool:
        outcomes = list(pool.map(attempt, range(16)))

    assert outcomes.count(True) == 1
    assert list(service.records) == ["Astrid"]


def test_concurrent_overrides_keep_every_player(make_service, clock):
    service = make_service()
    players = [(f"p{i}", 2) for i in range(12)]
    register_all(service, clock, players)
    before = sorted(r.timestamp for r in service.records.values())

    def shuffle(i):
        a, b = f"p{i}", f"p{(i + 5) % 12}"
        service.swap(a, b)
        return len(service.groups())

    with ThreadPoolExecutor(max_workers=6) as pool:
        list(pool.map(shuffle, range(12)))

    placed = sorted(n for g in service.groups() for n in g.member_names)
    assert placed == sorted(name for name, _ in players)
    # swaps only exchange positions, none is lost or duplicated
    assert sorted(r.timestamp for r in service.records.values()) == before
