from __future__ import annotations

from datetime import timedelta

import pytest

from conftest import NOW, make_boss

from raidwatch.errors import DuplicateKeyError, ValidationError
from raidwatch.pogo.boss import Boss, CpRange
from raidwatch.pogo.boss_directory import BossDirectory, BossNamesByStatus, BossTier, reconcile_tier
from raidwatch.pogo.game import PokemonType, validate_pokemon_type, validate_raid_tier
from raidwatch.util.dates import DateRange


@pytest.mark.parametrize(("raw", "expected"), [(5, 5), ("5", 5), ("T5", 5), ("l3", 3), ("Tier 1", 1)])
def test_validate_raid_tier(raw, expected) -> None:
    assert validate_raid_tier(raw) == expected


@pytest.mark.parametrize("raw", [0, 7, True, "T9", "five", None])
def test_invalid_raid_tier(raw) -> None:
    with pytest.raises(ValidationError):
        validate_raid_tier(raw)


def test_validate_pokemon_type() -> None:
    assert validate_pokemon_type(" Psychic ") is PokemonType.PSYCHIC
    with pytest.raises(ValidationError):
        validate_pokemon_type("cosmic")


# ---------------------------------------------------------------------------
# Boss
# ---------------------------------------------------------------------------

def test_boss_defaults_and_keys() -> None:
    boss = Boss(name="Mr. Mime", tier=3)
    assert boss.display_name == "Mr. Mime"
    assert boss.primary_key == "mrmimet3"
    assert boss.keys.name == "mrmime"
    assert boss.image_file_name == "T3.png"
    assert boss.raid_guide_url.endswith("/MRMIME")
    assert boss.active is None
    assert not boss.is_active()


def test_boss_validates_fields() -> None:
    with pytest.raises(ValidationError):
        Boss(name="Mewtwo", tier=9)
    with pytest.raises(ValidationError):
        Boss(name="Mewtwo", tier=5, types=("cosmic",))
    with pytest.raises(ValidationError):
        Boss(name="Mewtwo", tier=5, active="yes")
    with pytest.raises(ValidationError):
        CpRange(10, 5)


def test_boss_active_date_range() -> None:
    window = DateRange(start=NOW, end=NOW + timedelta(days=7))
    boss = make_boss("Kyogre", active=window)
    assert boss.is_active(NOW + timedelta(days=1))
    assert not boss.is_active(NOW - timedelta(seconds=1))
    assert boss.to_json()["active"] == window.to_json()


def test_boss_to_json() -> None:
    boss = make_boss("Mewtwo", cp_range=CpRange(2275, 2387), types=("psychic",), pokedex_number=150)
    assert boss.to_json() == {
        "name": "Mewtwo",
        "tier": 5,
        "displayName": "Mewtwo",
        "alternateNames": [],
        "pokedexNumber": 150,
        "cpRange": {"min": 2275, "max": 2387},
        "types": ["psychic"],
        "active": True,
    }


# ---------------------------------------------------------------------------
# Tier loading
# ---------------------------------------------------------------------------

def _tier(status=()):
    return BossTier(
        tier=5,
        bosses=[{"name": "Mewtwo"}, {"name": "Kyogre"}, {"name": "Groudon", "tier": 5}],
        status=list(status),
    )


def test_reconcile_applies_status_and_defaults_inactive() -> None:
    window = DateRange(start=NOW, end=NOW + timedelta(days=7))
    bosses = {b.name: b for b in reconcile_tier(_tier([
        BossNamesByStatus(active=True, bosses=["mewtwo"]),
        BossNamesByStatus(active=window, bosses=["Kyogre"]),
    ]))}
    assert bosses["Mewtwo"].active is True
    assert bosses["Kyogre"].active == window
    assert bosses["Groudon"].active is False


def test_reconcile_rejects_unknown_boss() -> None:
    with pytest.raises(ValidationError):
        reconcile_tier(_tier([BossNamesByStatus(active=True, bosses=["Rayquaza"])]))


def test_reconcile_rejects_status_set_twice() -> None:
    with pytest.raises(ValidationError):
        reconcile_tier(_tier([
            BossNamesByStatus(active=True, bosses=["Mewtwo"]),
            BossNamesByStatus(active=False, bosses=["Mewtwo"]),
        ]))


def test_reconcile_rejects_conflicting_tier() -> None:
    with pytest.raises(ValidationError):
        reconcile_tier(BossTier(tier=5, bosses=[{"name": "Machamp", "tier": 3}]))


def test_add_tier_failure_leaves_directory_unchanged() -> None:
    directory = BossDirectory()
    directory.add_tier(BossTier(tier=3, bosses=[{"name": "Machamp"}]))

    with pytest.raises(ValidationError):
        directory.add_tier(_tier([BossNamesByStatus(active=True, bosses=["Nobody"])]))
    assert len(directory) == 1

    with pytest.raises(DuplicateKeyError):
        directory.add_tier(BossTier(tier=3, bosses=[{"name": "Gengar"}, {"name": "Machamp"}]))
    assert len(directory) == 1


def test_same_species_in_two_tiers(bosses) -> None:
    assert bosses.get("Mewtwo T5").tier == 5
    assert bosses.get("Mewtwo T3").tier == 3
    assert {b.tier for b in bosses.get_by_any_field_exact("mewtwo")} == {3, 5}


def test_lookup_filters_by_tier_and_active(bosses) -> None:
    assert bosses.lookup("mewtwo", {"tier": 3}).single_item().primary_key == "mewtwot3"
    assert bosses.lookup("mewtwo", {"is_active": True}).single_item().tier == 5

    active_t3 = bosses.get_all({"tier": 3, "is_active": True}).all_items()
    assert sorted(b.name for b in active_t3) == ["Gengar", "Machamp"]
    assert bosses.get_all({"tier": 1, "is_active": True}) == []


def test_lookup_by_alternate_name_and_typo(bosses) -> None:
    assert bosses.lookup("ghost boss").single_item().name == "Gengar"
    assert bosses.lookup("Magikrap").first_item().name == "Magikarp"
