from __future__ import annotations

from datetime import timedelta

import pytest

from conftest import GYMS, NOW, make_boss

from raidwatch.errors import RaidStateError, ValidationError
from raidwatch.pogo.raid import (
    MAX_EGG_HATCH_TIME,
    Raid,
    RaidState,
    RaidType,
    derive_state,
    validate_raid_state,
    validate_raid_type,
)
from raidwatch.util.dates import DateRange

GYM = GYMS[0]
MEWTWO = make_boss("Mewtwo", tier=5)
MACHAMP = make_boss("Machamp", tier=3)
GENGAR = make_boss("Gengar", tier=3)


def minutes(n: float) -> timedelta:
    return timedelta(minutes=n)


# ---------------------------------------------------------------------------
# State derivation
# ---------------------------------------------------------------------------

@pytest.mark.parametrize(
    ("offset", "expected"),
    [
        (-90, RaidState.FUTURE),
        (-MAX_EGG_HATCH_TIME - 1, RaidState.FUTURE),
        (-MAX_EGG_HATCH_TIME, RaidState.EGG),
        (-30, RaidState.EGG),
        (0, RaidState.HATCHED),
        (10, RaidState.HATCHED),
        (45, RaidState.EXPIRED),
        (50, RaidState.EXPIRED),
    ],
)
def test_state_is_a_function_of_time(offset: int, expected: RaidState) -> None:
    times = DateRange.from_start(NOW, 45)
    assert derive_state(times, NOW + minutes(offset)) is expected


def test_raid_hour_window() -> None:
    times = DateRange.from_start(NOW, 60)
    assert derive_state(times, NOW + minutes(50), RaidType.RAID_HOUR) is RaidState.HATCHED
    with pytest.raises(ValidationError):
        derive_state(times, NOW)


def test_invalid_durations() -> None:
    with pytest.raises(ValidationError):
        derive_state(DateRange.from_start(NOW, 30), NOW)
    with pytest.raises(ValidationError):
        derive_state(DateRange(start=NOW), NOW)


def test_validate_type_and_state() -> None:
    assert validate_raid_type(None) is RaidType.NORMAL
    assert validate_raid_type(" Raid-Hour ") is RaidType.RAID_HOUR
    assert validate_raid_state("upcoming") is RaidState.EGG
    assert validate_raid_state("active") is RaidState.HATCHED
    with pytest.raises(ValidationError):
        validate_raid_type("mega")
    with pytest.raises(ValidationError):
        validate_raid_state("sleeping")


# ---------------------------------------------------------------------------
# Factories
# ---------------------------------------------------------------------------

def test_future_raid_from_egg_timer() -> None:
    raid = Raid.create_future_raid(30, GYM, 5, now=NOW)
    assert raid.hatch_time == NOW + minutes(30)
    assert raid.expiry_time == NOW + minutes(75)
    assert raid.state_at(NOW) is RaidState.EGG
    assert raid.boss is None
    assert raid.primary_key == GYM.primary_key


@pytest.mark.parametrize("timer", [0, 0.5, MAX_EGG_HATCH_TIME + 1])
def test_egg_timer_out_of_range(timer) -> None:
    with pytest.raises(RaidStateError):
        Raid.create_future_raid(timer, GYM, 5, now=NOW)


def test_future_raid_from_start_time() -> None:
    raid = Raid.create_future_raid(NOW + minutes(60), GYM, 5, RaidType.RAID_HOUR, now=NOW)
    assert raid.raid_times.duration_minutes() == 60

    # a report right at hatch is tolerated
    Raid.create_future_raid(NOW - timedelta(seconds=30), GYM, 5, now=NOW)

    with pytest.raises(RaidStateError):
        Raid.create_future_raid(NOW + minutes(61), GYM, 5, now=NOW)
    with pytest.raises(RaidStateError):
        Raid.create_future_raid(NOW - minutes(2), GYM, 5, now=NOW)


def test_active_raid() -> None:
    raid = Raid.create_active_raid(20, GYM, MEWTWO, now=NOW)
    assert raid.expiry_time == NOW + minutes(20)
    assert raid.hatch_time == NOW - minutes(25)
    assert raid.state_at(NOW) is RaidState.HATCHED
    assert raid.tier == 5
    assert raid.boss is MEWTWO

    Raid.create_active_raid(55, GYM, MEWTWO, "raid-hour", now=NOW)
    with pytest.raises(RaidStateError):
        Raid.create_active_raid(46, GYM, MEWTWO, now=NOW)
    with pytest.raises(RaidStateError):
        Raid.create_active_raid(0, GYM, MEWTWO, now=NOW)


def test_constructor_rejects_mismatched_boss() -> None:
    with pytest.raises(ValidationError):
        Raid(GYM, 3, DateRange.from_start(NOW, 45), boss=MEWTWO, now=NOW)


# ---------------------------------------------------------------------------
# Mutation
# ---------------------------------------------------------------------------

def test_tier_changes_only_without_boss() -> None:
    raid = Raid.create_future_raid(10, GYM, 5, now=NOW)
    assert raid.update(3) == 5
    assert raid.tier == 3
    assert raid.update("T4") == 3

    hatched = Raid.create_active_raid(20, GYM, MEWTWO, now=NOW)
    with pytest.raises(RaidStateError):
        hatched.update(3)
    assert hatched.tier == 5


def test_boss_cannot_be_assigned_before_hatch() -> None:
    raid = Raid.create_future_raid(10, GYM, 5, now=NOW)
    with pytest.raises(RaidStateError):
        raid.update(MEWTWO, now=NOW)
    assert raid.boss is None


def test_boss_assignment_after_hatch() -> None:
    raid = Raid.create_future_raid(10, GYM, 3, now=NOW)
    later = NOW + minutes(15)
    assert raid.update(MACHAMP, now=later) is None
    assert raid.boss is MACHAMP

    assert raid.update(GENGAR, now=later) is MACHAMP
    assert raid.boss is GENGAR

    # still allowed once expired
    assert raid.update(MACHAMP, now=NOW + minutes(120)) is GENGAR


def test_boss_of_another_tier_is_rejected() -> None:
    raid = Raid.create_active_raid(30, GYM, MEWTWO, now=NOW)
    with pytest.raises(ValidationError, match="Mismatched tier"):
        raid.update(MACHAMP, now=NOW)
    assert raid.tier == 5
    assert raid.boss is MEWTWO

    egg = Raid.create_future_raid(10, GYM, 5, now=NOW)
    with pytest.raises(ValidationError):
        egg.update(MACHAMP, now=NOW + minutes(15))
    assert egg.boss is None
    assert egg.tier == 5


def test_refresh_state_reports_prior_state() -> None:
    raid = Raid.create_future_raid(10, GYM, 5, now=NOW)
    assert raid.last_state is RaidState.EGG
    assert raid.refresh_state(NOW + minutes(11)) is RaidState.EGG
    assert raid.last_state is RaidState.HATCHED
    assert raid.refresh_state(NOW + minutes(60)) is RaidState.HATCHED
    assert raid.last_state is RaidState.EXPIRED


# ---------------------------------------------------------------------------
# Ordering / serialization
# ---------------------------------------------------------------------------

def test_raids_sort_by_hatch_then_name() -> None:
    early = Raid.create_future_raid(5, GYMS[4], 5, now=NOW)
    late_a = Raid.create_future_raid(20, GYMS[1], 5, now=NOW)
    late_b = Raid.create_future_raid(20, GYMS[3], 5, now=NOW)

    assert sorted([late_b, late_a, early]) == [early, late_a, late_b]
    assert early.compare(late_a) == -1
    assert late_b.compare(late_a) == 1
    assert late_a.compare(late_a) == 0


def test_serialization() -> None:
    egg = Raid.create_future_raid(30, GYM, 5, now=NOW)
    assert egg.to_array() == ["2026-05-01T12:30:00Z", "cityhall", 5, "normal"]
    assert egg.to_json() == {"gym": "cityhall", "tier": 5, "hatch": "2026-05-01T12:30:00Z", "type": "normal"}

    active = Raid.create_active_raid(45, GYM, MEWTWO, RaidType.RAID_HOUR, now=NOW)
    assert active.to_array() == ["2026-05-01T11:45:00Z", "cityhall", "mewtwot5", "raid-hour"]
    assert active.to_json()["boss"] == "mewtwot5"
