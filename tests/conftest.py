# tests/conftest.py
import random

import pytest

from muster.domain.errors import StoreUnavailable
from muster.domain.grouping import GroupingOptions
from muster.domain.models import ParticipantRecord
from muster.infrastructure.store import MemoryRecordStore
from muster.services.event_service import EventService


class Clock:
    """Settable millisecond clock."""

    def __init__(self, now: int = 1_000):
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> int:
        self.now += ms
        return self.now


class FlakyStore(MemoryRecordStore):
    """Memory store whose writes fail while `failing` is set."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.failing = False

    def _check(self):
        if self.failing:
            raise StoreUnavailable("connection lost")

    def set(self, name, record):
        self._check()
        super().set(name, record)

    def update(self, patches):
        self._check()
        super().update(patches)

    def remove(self, name):
        self._check()
        super().remove(name)

    def clear(self):
        self._check()
        super().clear()

    def set_time_slots(self, labels):
        self._check()
        super().set_time_slots(labels)


def rec(capacity, timestamp, time_tag=None, **kwargs) -> ParticipantRecord:
    return ParticipantRecord(
        capacity_tag=str(capacity), time_tag=time_tag, timestamp=timestamp, **kwargs
    )


@pytest.fixture
def options():
    return GroupingOptions()


@pytest.fixture
def clock():
    return Clock()


@pytest.fixture
def basic_records():
    # A, B, C: capacity 2, arriving 100ms apart
    return {"A": rec(2, 0), "B": rec(2, 100), "C": rec(2, 200)}


@pytest.fixture
def make_service(clock):
    def factory(store=None, options=None, seed=0):
        return EventService(
            store if store is not None else MemoryRecordStore(),
            options=options,
            clock=clock,
            rng=random.Random(seed),
        )
    return factory
