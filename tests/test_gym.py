from __future__ import annotations

import pytest

from conftest import GYMS

from raidwatch.errors import ValidationError
from raidwatch.pogo.converters import gym_from_any, gym_from_array, gym_from_legacy_array, gym_from_object
from raidwatch.pogo.gym import parse_ex_status
from raidwatch.pogo.gym_directory import GymDirectory, GymLookupOptions


@pytest.mark.parametrize(
    ("raw", "expected"),
    [("exEligible", True), ("EX", True), ("nonEx", False), ("non-ex", False), (True, True)],
)
def test_parse_ex_status(raw, expected) -> None:
    assert parse_ex_status(raw) is expected


@pytest.mark.parametrize("raw", ["maybe", "", None, 1])
def test_parse_ex_status_rejects(raw) -> None:
    with pytest.raises(ValidationError):
        parse_ex_status(raw)


@pytest.mark.parametrize("gym", GYMS, ids=lambda g: g.name)
def test_gym_round_trips(gym) -> None:
    assert gym_from_array(gym.to_array()) == gym
    assert gym_from_object(gym.to_json()) == gym


def test_gym_serialized_shapes() -> None:
    gym = GYMS[2]
    assert gym.to_array() == [
        "Downtown|Overlake",
        "Redmond",
        "Painted Parking Lot|PPL",
        47.6745,
        -122.12,
        "nonEx",
    ]
    assert gym.to_json()["isExEligible"] is False
    assert gym.to_json()["alternateNames"] == ["PPL"]


def test_legacy_array_swaps_names_and_coordinates() -> None:
    gym = gym_from_legacy_array([
        "uid-1", "Downtown", "Redmond", "Redmond City Hall", "City Hall|Town Hall",
        "-122.1306", "47.6787", "exEligible",
    ])
    assert gym.name == "City Hall"
    assert gym.alternate_names == ("Redmond City Hall", "Town Hall")
    assert gym.coord.latitude == pytest.approx(47.6787)
    assert gym.coord.longitude == pytest.approx(-122.1306)
    assert gym.is_ex_eligible

    same = gym_from_any(["uid-2", "Downtown", "Redmond", "Annex", "Annex", 1.0, 2.0, "nonEx"])
    assert same.alternate_names == ()


def test_malformed_gym_records() -> None:
    with pytest.raises(ValidationError):
        gym_from_array(["Downtown", "Redmond", "City Hall", 47.6, -122.1])
    with pytest.raises(ValidationError):
        gym_from_object({"name": "City Hall", "city": "Redmond", "zones": ["Downtown"]})
    with pytest.raises(ValidationError):
        gym_from_object({
            "name": "City Hall", "city": "Redmond", "zones": ["Downtown"],
            "coord": {"latitude": 147, "longitude": 0},
        })


def test_gym_directory_ex_filter(gyms) -> None:
    ex_only = gyms.get_all({"ex_filter": "exEligible"}).all_items()
    assert sorted(g.name for g in ex_only) == ["City Hall", "Library Fountain"]

    non_ex = gyms.get_all(GymLookupOptions(ex_filter="nonEx")).all_items()
    assert "City Hall" not in {g.name for g in non_ex}
    assert len(ex_only) + len(non_ex) == len(GYMS)

    with pytest.raises(ValidationError):
        GymLookupOptions(ex_filter="sometimes")


def test_gym_lookup_prefers_exact_match(gyms) -> None:
    results = gyms.lookup("City Hall")
    assert len(results) == 1
    assert results.single_item().name == "City Hall"


def test_gym_directory_default_options() -> None:
    directory = GymDirectory({"allowed_cities": ["Redmond"]}, GYMS)
    assert len(directory) == 3
    assert directory.lookup("Marina Gazebo") == []
    assert directory.lookup("Painted Parking", {"ex_filter": "exEligible"}) == []


def test_directory_defaults_survive_option_objects() -> None:
    directory = GymDirectory({"required_cities": ["Redmond"], "preferred_zones": ["Overlake"]}, GYMS)
    assert len(directory) == len(GYMS)

    effective = directory.effective_options(GymLookupOptions(ex_filter="nonEx"))
    assert effective.required_cities == ["redmond"]
    assert effective.preferred_zones == ["overlake"]
    assert effective.ex_filter == "nonEx"

    found = directory.get_all(GymLookupOptions(ex_filter="nonEx")).all_items()
    assert sorted(g.name for g in found) == ["City Hall Annex", "Painted Parking Lot"]
