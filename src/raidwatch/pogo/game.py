# src/raidwatch/pogo/game.py

from __future__ import annotations

from enum import Enum

from raidwatch.errors import ValidationError


MIN_RAID_TIER = 1
MAX_RAID_TIER = 6
RAID_TIERS = tuple(range(MIN_RAID_TIER, MAX_RAID_TIER + 1))


def is_valid_raid_tier(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value in RAID_TIERS


def validate_raid_tier(value: object) -> int:
    """
    Accepts an int tier or one of the usual spellings:
    "5", "t5", "l5", "tier 5".
    """
    if is_valid_raid_tier(value):
        return value

    if isinstance(value, str):
        text = value.strip().lower()
        for tier in RAID_TIERS:
            if text in (f"{tier}", f"tier {tier}", f"t{tier}", f"l{tier}"):
                return tier

    raise ValidationError(f"Invalid raid tier {value!r} must be {MIN_RAID_TIER}...{MAX_RAID_TIER}")


class PokemonType(Enum):
    BUG = "bug"
    DARK = "dark"
    DRAGON = "dragon"
    ELECTRIC = "electric"
    FAIRY = "fairy"
    FIGHTING = "fighting"
    FIRE = "fire"
    FLYING = "flying"
    GHOST = "ghost"
    GRASS = "grass"
    GROUND = "ground"
    ICE = "ice"
    NORMAL = "normal"
    POISON = "poison"
    PSYCHIC = "psychic"
    ROCK = "rock"
    STEEL = "steel"
    WATER = "water"


def validate_pokemon_type(value: object) -> PokemonType:
    if isinstance(value, PokemonType):
        return value
    if isinstance(value, str):
        try:
            return PokemonType(value.strip().lower())
        except ValueError:
            pass
    raise ValidationError(f"Invalid pokemon type {value!r}")
