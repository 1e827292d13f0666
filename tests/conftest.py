from __future__ import annotations

import json
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import pytest

from raidwatch.pogo.boss import Boss
from raidwatch.pogo.boss_directory import BossDirectory
from raidwatch.pogo.gym import Gym
from raidwatch.pogo.gym_directory import GymDirectory
from raidwatch.spatial.geo import Coordinate

NOW = datetime(2026, 5, 1, 12, 0, tzinfo=timezone.utc)


# ---------------------------------------------------------------------------
# Builders
# ---------------------------------------------------------------------------

def make_gym(
    name: str,
    city: str = "Redmond",
    zones: Tuple[str, ...] = ("Downtown",),
    coord: Tuple[float, float] = (47.6787, -122.1306),
    alternate_names: Tuple[str, ...] = (),
    ex: bool = False,
) -> Gym:
    return Gym(
        name=name,
        city=city,
        zones=zones,
        coord=Coordinate(*coord),
        alternate_names=alternate_names,
        is_ex_eligible=ex,
    )


def make_boss(name: str, tier: int = 5, active: Any = True, **kwargs: Any) -> Boss:
    return Boss(name=name, tier=tier, active=active, **kwargs)


GYMS: List[Gym] = [
    make_gym("City Hall", alternate_names=("Town Hall",), ex=True),
    make_gym("City Hall Annex", coord=(47.6790, -122.1310)),
    make_gym(
        "Painted Parking Lot",
        zones=("Downtown", "Overlake"),
        coord=(47.6745, -122.1200),
        alternate_names=("PPL",),
    ),
    make_gym("Library Fountain", city="Bellevue", zones=("Overlake",), coord=(47.6170, -122.2000), ex=True),
    make_gym("Marina Gazebo", city="Kirkland", zones=("Lakeside",), coord=(47.6769, -122.2060)),
]


GYMS_JSON: List[Any] = [
    GYMS[0].to_json(),
    GYMS[1].to_array(),
    GYMS[2].to_json(),
    GYMS[3].to_array(),
    GYMS[4].to_json(),
]


BOSSES_JSON: List[Dict[str, Any]] = [
    {
        "tier": 5,
        "status": [{"active": True, "bosses": ["Mewtwo"]}],
        "bosses": [
            ["Mewtwo", 150, 20, 2275, 2387, 2844, 2984, ["psychic"]],
        ],
    },
    {
        "tier": 3,
        "status": [{"active": True, "bosses": ["Machamp", "Gengar"]}],
        "bosses": [
            {"name": "Machamp", "pokedexNumber": 68, "types": ["fighting"]},
            {"name": "Gengar", "alternateNames": ["Ghost Boss"], "types": ["ghost", "poison"]},
            ["Mewtwo", 150, 5, 1000, 1100, 1200, 1300],
        ],
    },
    {
        "tier": 1,
        "bosses": [{"name": "Magikarp", "pokedexNumber": 129}],
    },
]


class FakeClock:
    def __init__(self, now: datetime = NOW):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, minutes: float) -> None:
        self.now = self.now + timedelta(minutes=minutes)


class RecordingListener:
    def __init__(self):
        self.updates: List[Tuple[str, str, Optional[Any]]] = []
        self.list_updates = 0

    def raid_updated(self, manager, raid, change, prior=None):
        self.updates.append((raid.gym.name, change.value, prior))

    def raid_list_updated(self, manager):
        self.list_updates += 1


def write_json(path: Path, data: Any) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as fh:
        json.dump(data, fh)
    return path


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def gyms() -> GymDirectory:
    return GymDirectory(gyms=GYMS)


@pytest.fixture
def bosses() -> BossDirectory:
    from raidwatch.pogo.converters import boss_directory_from_json

    return boss_directory_from_json(BOSSES_JSON)


@pytest.fixture
def city_hall() -> Gym:
    return GYMS[0]


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    """A workspace root holding data/gyms.json and data/bosses.json."""
    (tmp_path / ".raidwatch").mkdir()
    write_json(tmp_path / "data" / "gyms.json", GYMS_JSON)
    write_json(tmp_path / "data" / "bosses.json", BOSSES_JSON)
    return tmp_path
