# tests/test_preferences.py
import pytest

from muster.domain.errors import MalformedCapacityTag
from muster.domain.models import ParticipantRecord
from muster.domain.preferences import (
    canonical_capacity,
    capacity_value,
    is_legacy_split,
    normalize_record,
    resolve_time_tag,
)

# -------------------------------
# Canonical capacity
# -------------------------------

def test_canonical_strips_new_group_marker():
    assert canonical_capacity("3_newgroup_1699999999") == "3"


def test_canonical_is_noop_on_clean_tag():
    assert canonical_capacity("3") == "3"
    assert canonical_capacity(canonical_capacity("5_newgroup_1")) == "5"


def test_canonical_accepts_ints():
    assert canonical_capacity(4) == "4"


def test_canonical_strips_from_first_marker_only():
    assert canonical_capacity("2_newgroup_a_newgroup_b") == "2"


# -------------------------------
# Time tags
# -------------------------------

def test_resolve_time_tag_defaults():
    assert resolve_time_tag(None) == "at all times"
    assert resolve_time_tag("") == "at all times"
    assert resolve_time_tag(None, "anytime") == "anytime"


def test_resolve_time_tag_keeps_value():
    assert resolve_time_tag("offline") == "offline"


# -------------------------------
# Capacity values
# -------------------------------

def test_capacity_value_in_range():
    assert capacity_value("1") == 1
    assert capacity_value("6_newgroup_42") == 6


@pytest.mark.parametrize("tag", ["abc", "", "0", "7", "-1", "2.5"])
def test_capacity_value_rejects_malformed(tag):
    with pytest.raises(MalformedCapacityTag):
        capacity_value(tag)


def test_capacity_value_custom_range():
    assert capacity_value("10", min_capacity=1, max_capacity=10) == 10


# -------------------------------
# Legacy migration
# -------------------------------

def test_normalize_moves_marker_into_flag():
    legacy = ParticipantRecord(capacity_tag="3_newgroup_17000", timestamp=5)
    assert is_legacy_split(legacy.capacity_tag)

    clean = normalize_record(legacy)
    assert clean.capacity_tag == "3"
    assert clean.is_manual_split is True
    assert clean.timestamp == 5
    # input untouched
    assert legacy.capacity_tag == "3_newgroup_17000"


def test_normalize_returns_clean_record_as_is():
    record = ParticipantRecord(capacity_tag="2")
    assert normalize_record(record) is record
