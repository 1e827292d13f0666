# src/raidwatch/pogo/boss.py

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Tuple, Union

from raidwatch.errors import ValidationError
from raidwatch.names.normalize import normalize_name, try_normalize_names, validate_name
from raidwatch.names.typedefs import DirectoryOptions, FieldSearchWeight
from raidwatch.pogo.game import PokemonType, validate_pokemon_type, validate_raid_tier
from raidwatch.util.dates import DateRange, utc_now


GUIDE_BASE_URL = "https://www.pokebattler.com/raids"
IMAGE_BASE_URL = "http://www.didjaredo.com/pogo/images/32x32"

BossStatus = Union[bool, DateRange]


@dataclass(frozen=True)
class CpRange:
    min: int
    max: int

    def __post_init__(self):
        if self.min > self.max:
            raise ValidationError(f"Invalid CP range {self.min}..{self.max}")

    def to_json(self) -> dict:
        return {"min": self.min, "max": self.max}


@dataclass(frozen=True)
class BossKeys:
    name: str
    alternate_names: Tuple[str, ...] = ()


@dataclass(frozen=True)
class Boss:
    """
    A raid boss in a specific tier.

    `active` is None only between construction and tier reconciliation
    (see BossDirectory.add_tier); afterwards it is a bool or a DateRange
    describing when the boss is in rotation.

    The primary key is the normalized "<name> T<tier>", so one species can
    appear in several tiers; `name` and `alternate_names` are alternate
    (non-unique) keys.
    """

    name: str
    tier: int
    display_name: Optional[str] = None
    alternate_names: Tuple[str, ...] = ()
    pokedex_number: Optional[int] = None
    raid_guide_name: Optional[str] = None
    image_file_name: Optional[str] = None
    num_raiders: Optional[int] = None
    cp_range: Optional[CpRange] = None
    boosted_cp_range: Optional[CpRange] = None
    types: Tuple[PokemonType, ...] = ()
    active: Optional[BossStatus] = None

    keys: BossKeys = field(init=False, repr=False, compare=False)
    primary_key: str = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        validate_name(self.name, "boss name")
        object.__setattr__(self, "tier", validate_raid_tier(self.tier))
        object.__setattr__(self, "alternate_names", tuple(self.alternate_names or ()))
        object.__setattr__(self, "types", tuple(validate_pokemon_type(t) for t in self.types or ()))

        if self.display_name is None:
            object.__setattr__(self, "display_name", self.name)
        if self.raid_guide_name is None:
            object.__setattr__(self, "raid_guide_name", normalize_name(self.name).upper())
        if self.image_file_name is None:
            object.__setattr__(self, "image_file_name", f"T{self.tier}.png")

        if self.active is not None and not isinstance(self.active, (bool, DateRange)):
            raise ValidationError(f"Invalid active status {self.active!r} for {self.name}")

        object.__setattr__(self, "primary_key", normalize_name(f"{self.name} T{self.tier}"))
        object.__setattr__(self, "keys", BossKeys(
            name=normalize_name(self.name),
            alternate_names=tuple(try_normalize_names(self.alternate_names)),
        ))

    @staticmethod
    def directory_options() -> DirectoryOptions:
        return DirectoryOptions(
            threshold=0.6,
            text_search_keys=(
                FieldSearchWeight("display_name", 0.35),
                FieldSearchWeight("name", 0.35),
                FieldSearchWeight("alternate_names", 0.3),
            ),
            alternate_keys=("name", "alternate_names"),
        )

    def is_active(self, at: Optional[datetime] = None) -> bool:
        if isinstance(self.active, DateRange):
            return self.active.includes(at or utc_now())
        return bool(self.active)

    @property
    def raid_guide_url(self) -> str:
        return f"{GUIDE_BASE_URL}/{self.raid_guide_name.upper()}"

    @property
    def image_url(self) -> str:
        return f"{IMAGE_BASE_URL}/{self.image_file_name}"

    def __str__(self) -> str:
        return self.primary_key

    def to_json(self) -> dict:
        out = {
            "name": self.name,
            "tier": self.tier,
            "displayName": self.display_name,
            "alternateNames": list(self.alternate_names),
        }
        if self.pokedex_number is not None:
            out["pokedexNumber"] = self.pokedex_number
        if self.num_raiders is not None:
            out["numRaiders"] = self.num_raiders
        if self.cp_range is not None:
            out["cpRange"] = self.cp_range.to_json()
        if self.boosted_cp_range is not None:
            out["boostedCpRange"] = self.boosted_cp_range.to_json()
        if self.types:
            out["types"] = [t.value for t in self.types]
        if isinstance(self.active, DateRange):
            out["active"] = self.active.to_json()
        elif self.active is not None:
            out["active"] = self.active
        return out
