# scripts/simulate.py
"""
Simulation script: registers X fake players with random capacities and time
slots, lets an admin shuffle a few of them, and prints the resulting groups.

Uses the event service directly on an in-memory store (no HTTP calls).
Needs Faker: pip install -e ".[scripts]"
"""
import random

from faker import Faker

from muster.config.settings import settings
from muster.domain.errors import MusterError
from muster.infrastructure.store import MemoryRecordStore
from muster.services.event_service import EventService

fake = Faker()
NUM_PLAYERS = 40
ARRIVAL_GAP_MS = 4000
ADMIN_MOVES = 5


def run_simulation(seed: int = 7):
    rng = random.Random(seed)
    Faker.seed(seed)
    clock = [1_700_000_000_000]

    service = EventService.from_settings(
        MemoryRecordStore(), settings, "COB", clock=lambda: clock[0], rng=rng
    )
    service.add_time_slot("20:00 UTC")

    names = []
    for _ in range(NUM_PLAYERS):
        clock[0] += rng.randrange(ARRIVAL_GAP_MS)
        name = fake.unique.user_name()
        capacity = rng.randint(settings.MIN_CAPACITY, settings.MAX_CAPACITY)
        service.register(name, capacity, rng.choice(service.time_slots()))
        names.append(name)

    for _ in range(ADMIN_MOVES):
        a, b = rng.sample(names, 2)
        try:
            service.swap(a, b)
            service.force_new_group(rng.choice(names))
        except MusterError as e:
            print(f"admin move skipped: {e}")

    for group in service.groups():
        state = "full" if group.is_full else "open"
        print(f"{group.label} [{group.capacity_tag} / {group.time_tag}] "
              f"{len(group.members)}/{group.max_size} {state}: {', '.join(group.member_names)}")
    print(service.stats())


if __name__ == "__main__":
    run_simulation()
