# muster/domain/placement.py
"""
Arrival placement for new registrations.

A newcomer joins the oldest open group carrying the same tags by taking a
timestamp just after that group's first member; admin-anchored groups are
tried before regular ones. Otherwise they arrive "now" and seed a new group
on the next recomputation.
"""
import random
from typing import List, Optional, Tuple

from muster.domain.grouping import GroupingOptions
from muster.domain.models import Group


def _tags_match(group: Group, capacity_tag: str, time_tag: str, options: GroupingOptions) -> bool:
    if group.capacity_tag != capacity_tag:
        return False
    return not options.match_time_tags or group.time_tag == time_tag


def choose_arrival(
    groups: List[Group],
    capacity_tag: str,
    time_tag: str,
    now: int,
    options: Optional[GroupingOptions] = None,
    rng: Optional[random.Random] = None,
    jitter_ms: int = 1000,
) -> Tuple[int, Optional[str]]:
    """
    Returns (timestamp, override_group_id) for a newcomer with canonical
    capacity_tag and resolved time_tag.
    """
    options = options or GroupingOptions()
    rng = rng or random.Random()
    jitter = rng.randrange(jitter_ms) if jitter_ms > 0 else 0

    for group in groups:
        if group.override_group_id and not group.is_full and _tags_match(group, capacity_tag, time_tag, options):
            return group.members[0].timestamp + jitter, group.override_group_id

    for group in groups:
        if group.override_group_id is None and not group.is_full and _tags_match(group, capacity_tag, time_tag, options):
            return group.members[0].timestamp + jitter, None

    return now, None
