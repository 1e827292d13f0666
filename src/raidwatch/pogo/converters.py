# src/raidwatch/pogo/converters.py
"""
Readers and writers for the on-disk formats:

  gyms     JSON list of objects, 6-column arrays or 8-column legacy arrays,
           or a legacy CSV export (uid, zones, city, official name,
           friendly names, longitude, latitude, exStatus)
  bosses   JSON list of tiers: {tier, status?: [{active, bosses}], bosses}
  raids    JSON list of [hatch, gym, bossOrTier, type] or
           {gym, boss?, tier?, hatch, type}

Record-level problems raise ValidationError; the load_* helpers wrap any
failure in LoadError naming the file.
"""

from __future__ import annotations

import csv
import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional

from raidwatch.errors import LoadError, RaidwatchError, ValidationError
from raidwatch.names.normalize import is_valid_name
from raidwatch.pogo.boss import Boss, BossStatus, CpRange
from raidwatch.pogo.boss_directory import BossDirectory, BossNamesByStatus, BossTier
from raidwatch.pogo.game import validate_raid_tier
from raidwatch.pogo.gym import Gym, parse_ex_status
from raidwatch.pogo.gym_directory import GymDirectory, GymLookupOptions
from raidwatch.pogo.raid import Raid, validate_raid_type
from raidwatch.pogo.raid_map import RaidMap
from raidwatch.spatial.geo import Coordinate
from raidwatch.util.dates import DateRange, parse_iso

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Field helpers
# ---------------------------------------------------------------------------

def _split(value: Any, description: str) -> List[str]:
    """A '|' delimited string or a list of strings."""
    if isinstance(value, str):
        return [v.strip() for v in value.split("|") if v.strip()]
    if isinstance(value, (list, tuple)):
        if not all(isinstance(v, str) for v in value):
            raise ValidationError(f"Invalid {description} {value!r} must be strings")
        return list(value)
    raise ValidationError(f"Invalid {description} {value!r} must be a string or list")


def _number(value: Any, description: str) -> float:
    if isinstance(value, bool):
        raise ValidationError(f"Invalid {description} {value!r}")
    if isinstance(value, (int, float)):
        return value
    if isinstance(value, str):
        try:
            return float(value.strip())
        except ValueError:
            pass
    raise ValidationError(f"Invalid {description} {value!r} must be a number")


def _int(value: Any, description: str) -> int:
    number = _number(value, description)
    if int(number) != number:
        raise ValidationError(f"Invalid {description} {value!r} must be an integer")
    return int(number)


def _require(obj: Mapping[str, Any], key: str, what: str) -> Any:
    if key not in obj or obj[key] is None:
        raise ValidationError(f"{what} is missing required field {key!r}")
    return obj[key]


def _read_json(path: Path) -> Any:
    with path.open("r", encoding="utf-8") as fh:
        return json.load(fh)


# ---------------------------------------------------------------------------
# Gyms
# ---------------------------------------------------------------------------

def coordinate_from_object(obj: Any) -> Coordinate:
    if not isinstance(obj, Mapping):
        raise ValidationError(f"Invalid coordinate {obj!r} must be an object")
    return Coordinate(
        latitude=_number(_require(obj, "latitude", "coord"), "latitude"),
        longitude=_number(_require(obj, "longitude", "coord"), "longitude"),
    )


def gym_from_object(obj: Mapping[str, Any]) -> Gym:
    if not isinstance(obj, Mapping):
        raise ValidationError(f"Invalid gym {obj!r} must be an object")
    return Gym(
        name=_require(obj, "name", "gym"),
        city=_require(obj, "city", "gym"),
        zones=tuple(_split(_require(obj, "zones", "gym"), "zones")),
        coord=coordinate_from_object(_require(obj, "coord", "gym")),
        alternate_names=tuple(_split(obj.get("alternateNames") or [], "alternate names")),
        is_ex_eligible=parse_ex_status(obj.get("isExEligible", False)),
    )


def gym_from_array(row: List[Any]) -> Gym:
    """zones, city, names ('|' delimited, first is primary), latitude, longitude, exStatus"""
    if not isinstance(row, (list, tuple)) or len(row) != 6:
        raise ValidationError(
            "Gym array must have six columns: zones, city, names, latitude, longitude, exStatus"
        )
    names = _split(row[2], "gym names")
    if not names:
        raise ValidationError(f"Gym array {row!r} has no name")
    return gym_from_object({
        "zones": row[0],
        "city": row[1],
        "name": names[0],
        "alternateNames": names[1:],
        "coord": {"latitude": row[3], "longitude": row[4]},
        "isExEligible": row[5],
    })


def gym_from_legacy_array(row: List[Any]) -> Gym:
    """uid, zones, city, official name, friendly names, longitude, latitude, exStatus"""
    if not isinstance(row, (list, tuple)) or len(row) != 8:
        raise ValidationError(
            "Gym array must have eight columns: uid, zones, city, official name, "
            "friendly name, longitude, latitude, exStatus"
        )
    official = row[3]
    if not is_valid_name(official):
        raise ValidationError(f"Invalid official name {official!r}")
    official = official.strip()

    # the first friendly name is the unique one; official name becomes an alias
    friendly = _split(row[4], "friendly names")
    if not friendly:
        raise ValidationError(f"Gym array {row!r} has no friendly name")
    primary, aliases = friendly[0], friendly[1:]
    alternates = aliases if primary == official else [official, *aliases]

    return gym_from_object({
        "zones": row[1],
        "city": row[2],
        "name": primary,
        "alternateNames": alternates,
        "coord": {"latitude": row[6], "longitude": row[5]},
        "isExEligible": row[7],
    })


def gym_from_any(value: Any) -> Gym:
    if isinstance(value, Mapping):
        return gym_from_object(value)
    if isinstance(value, (list, tuple)) and len(value) == 8:
        return gym_from_legacy_array(value)
    return gym_from_array(value)


def gyms_from_json(data: Any) -> List[Gym]:
    if not isinstance(data, list):
        raise ValidationError("Gym file must contain a list of gyms")
    return [gym_from_any(g) for g in data]


def gyms_from_legacy_csv(path: Path) -> List[Gym]:
    gyms: List[Gym] = []
    with path.open("r", encoding="utf-8", newline="") as fh:
        for line_no, row in enumerate(csv.reader(fh), start=1):
            if not row or not "".join(row).strip():
                continue
            if line_no == 1 and row[0].strip().lower() == "uid":
                continue
            try:
                gyms.append(gym_from_legacy_array(row))
            except ValidationError as e:
                raise ValidationError(f"{path.name}:{line_no}: {e}") from e
    return gyms


def load_gyms(path: str | Path) -> List[Gym]:
    path = Path(path)
    if path.suffix.lower() == ".csv":
        return gyms_from_legacy_csv(path)
    return gyms_from_json(_read_json(path))


def load_gym_directory(
    path: str | Path,
    options: Optional[Mapping[str, Any] | GymLookupOptions] = None,
) -> GymDirectory:
    try:
        gyms = load_gyms(path)
        directory = GymDirectory(options, gyms)
    except (OSError, ValueError, RaidwatchError) as e:
        raise LoadError(f"Unable to load gyms from {path}: {e}") from e
    logger.debug("Loaded %d gyms from %s", len(directory), path)
    return directory


# ---------------------------------------------------------------------------
# Bosses
# ---------------------------------------------------------------------------

def parse_boss_names(text: Any) -> Dict[str, Any]:
    """
    "name|alt|*Display|alt2": first entry is the name, a leading '*' marks
    the display name (which also stays an alternate name).
    """
    if not isinstance(text, str):
        raise ValidationError(f"Invalid names specifier {text!r} must be string.")
    parts = text.split("|")
    name = parts[0].strip()
    if not is_valid_name(name):
        raise ValidationError("Invalid name - must be non-empty string")

    display_name: Optional[str] = None
    alternates: List[str] = []
    for alt in parts[1:]:
        alt = alt.strip()
        if alt.startswith("*"):
            alt = alt[1:].strip()
            if display_name is not None:
                raise ValidationError(f'Display name multiply defined ("{display_name}" and "{alt}")')
            display_name = alt
        if alt:
            alternates.append(alt)

    out: Dict[str, Any] = {"name": name, "alternate_names": tuple(alternates)}
    if display_name is not None:
        out["display_name"] = display_name
    return out


def _cp_range(value: Any, description: str) -> CpRange:
    if isinstance(value, Mapping):
        return CpRange(_int(_require(value, "min", description), description),
                       _int(_require(value, "max", description), description))
    if isinstance(value, (list, tuple)) and len(value) == 2:
        return CpRange(_int(value[0], description), _int(value[1], description))
    raise ValidationError(f"Invalid {description} {value!r}")


def parse_boss_status(value: Any) -> BossStatus:
    if isinstance(value, bool):
        return value
    if isinstance(value, Mapping):
        return DateRange.from_json(dict(value))
    raise ValidationError(f"Invalid boss status {value!r} must be a boolean or date range")


_BOSS_OBJECT_FIELDS = {
    "displayName": ("display_name", lambda v: v),
    "pokedexNumber": ("pokedex_number", lambda v: _int(v, "pokedex number")),
    "raidGuideName": ("raid_guide_name", lambda v: v),
    "imageFileName": ("image_file_name", lambda v: v),
    "numRaiders": ("num_raiders", lambda v: _int(v, "number of raiders")),
    "cpRange": ("cp_range", lambda v: _cp_range(v, "cp range")),
    "boostedCpRange": ("boosted_cp_range", lambda v: _cp_range(v, "boosted cp range")),
    "types": ("types", lambda v: tuple(v)),
    "active": ("active", parse_boss_status),
}


def boss_properties_from_object(obj: Mapping[str, Any], require_tier: bool = True) -> Dict[str, Any]:
    """camelCase boss object -> Boss keyword arguments."""
    if not isinstance(obj, Mapping):
        raise ValidationError(f"Invalid boss {obj!r} must be an object")

    props: Dict[str, Any] = {"name": _require(obj, "name", "boss")}
    if require_tier or obj.get("tier") is not None:
        props["tier"] = validate_raid_tier(_require(obj, "tier", "boss"))
    if obj.get("alternateNames") is not None:
        props["alternate_names"] = tuple(_split(obj["alternateNames"], "alternate names"))

    for key, (attr, convert) in _BOSS_OBJECT_FIELDS.items():
        if obj.get(key) is not None:
            props[attr] = convert(obj[key])
    return props


def boss_properties_from_array(row: List[Any]) -> Dict[str, Any]:
    """names, pokedex, numRaiders, cpMin, cpMax, bcpMin, bcpMax, [types]"""
    if not isinstance(row, (list, tuple)) or not 7 <= len(row) <= 8:
        raise ValidationError(
            "Boss array must have seven or eight columns: names, index, numRaiders, "
            "cpMin, cpMax, bcpMin, bcpMax, [types]"
        )
    props = parse_boss_names(row[0])
    props.update(
        pokedex_number=_int(row[1], "pokedex number"),
        num_raiders=_int(row[2], "number of raiders"),
        cp_range=_cp_range([row[3], row[4]], "cp range"),
        boosted_cp_range=_cp_range([row[5], row[6]], "boosted cp range"),
    )
    if len(row) == 8 and row[7] is not None:
        props["types"] = tuple(row[7])
    return props


def boss_from_object(obj: Mapping[str, Any]) -> Boss:
    return Boss(**boss_properties_from_object(obj))


def boss_from_array(row: List[Any]) -> Boss:
    """tier, names, pokedex, numRaiders, cpMin, cpMax, bcpMin, bcpMax, [types]"""
    if not isinstance(row, (list, tuple)) or not 8 <= len(row) <= 9:
        raise ValidationError(
            "Boss array must have 8-9 columns: tier, names, index, numRaiders, "
            "cpMin, cpMax, bcpMin, bcpMax, [types]"
        )
    return Boss(tier=validate_raid_tier(row[0]), **boss_properties_from_array(row[1:]))


def boss_tier_from_object(obj: Mapping[str, Any]) -> BossTier:
    if not isinstance(obj, Mapping):
        raise ValidationError(f"Invalid boss tier {obj!r} must be an object")
    tier = validate_raid_tier(_require(obj, "tier", "boss tier"))

    bosses: List[Dict[str, Any]] = []
    for b in _require(obj, "bosses", f"tier {tier}"):
        if isinstance(b, Mapping):
            bosses.append(boss_properties_from_object(b, require_tier=False))
        else:
            bosses.append(boss_properties_from_array(b))

    status: List[BossNamesByStatus] = []
    for s in obj.get("status") or []:
        if not isinstance(s, Mapping):
            raise ValidationError(f"Invalid boss status {s!r} for tier {tier}")
        status.append(BossNamesByStatus(
            active=parse_boss_status(_require(s, "active", "boss status")),
            bosses=_split(_require(s, "bosses", "boss status"), "boss names"),
        ))
    return BossTier(tier=tier, bosses=bosses, status=status)


def boss_directory_from_json(data: Any) -> BossDirectory:
    if not isinstance(data, list):
        raise ValidationError("Boss file must contain a list of tiers")
    tiers = [boss_tier_from_object(t) for t in data]

    directory = BossDirectory()
    for tier in tiers:
        directory.add_tier(tier)
    return directory


def load_boss_directory(path: str | Path) -> BossDirectory:
    try:
        directory = boss_directory_from_json(_read_json(Path(path)))
    except (OSError, ValueError, TypeError, RaidwatchError) as e:
        raise LoadError(f"Unable to load bosses from {path}: {e}") from e
    logger.debug("Loaded %d bosses from %s", len(directory), path)
    return directory


# ---------------------------------------------------------------------------
# Raids
# ---------------------------------------------------------------------------

def _single_boss(bosses: BossDirectory, key: str) -> Boss:
    boss = bosses.get(key)
    if boss is not None:
        return boss
    found = bosses.get_by_any_field_exact(key)
    if not found:
        raise ValidationError(f"Boss {key} not found.")
    if len(found) > 1:
        raise ValidationError(f"Boss {key} is ambiguous ({len(found)} matches).")
    return found[0]


def raid_from_object(
    obj: Mapping[str, Any],
    gyms: GymDirectory,
    bosses: BossDirectory,
    now: Optional[datetime] = None,
) -> Raid:
    """
    {gym, boss?, tier?, hatch, type}. Hatch times are restored as stored,
    even if they are long past.
    """
    if not isinstance(obj, Mapping):
        raise ValidationError(f"Invalid raid {obj!r} must be an object")

    gym_key = _require(obj, "gym", "raid")
    # snapshots store primary keys; a name may also be another gym's alias
    gym = gyms.get(gym_key)
    if gym is None:
        gym = gyms.lookup_exact(gym_key).single_item()

    boss = _single_boss(bosses, obj["boss"]) if obj.get("boss") else None
    tier = obj.get("tier")
    if tier is None:
        if boss is None:
            raise ValidationError(f"Raid at {gym_key} needs a boss or a tier")
        tier = boss.tier

    return Raid.from_hatch(
        parse_iso(_require(obj, "hatch", "raid")),
        gym,
        validate_raid_tier(tier),
        boss=boss,
        raid_type=validate_raid_type(obj.get("type")),
        force=True,
        now=now,
    )


def raid_from_array(
    row: List[Any],
    gyms: GymDirectory,
    bosses: BossDirectory,
    now: Optional[datetime] = None,
) -> Raid:
    """hatch, gym, bossKeyOrTier, type"""
    if not isinstance(row, (list, tuple)) or len(row) != 4:
        raise ValidationError(f"Invalid raid properties array {row!r}")
    boss_or_tier = row[2]
    return raid_from_object({
        "hatch": row[0],
        "gym": row[1],
        "boss": boss_or_tier if isinstance(boss_or_tier, str) else None,
        "tier": boss_or_tier if not isinstance(boss_or_tier, str) else None,
        "type": row[3],
    }, gyms, bosses, now)


def raid_from_any(value: Any, gyms: GymDirectory, bosses: BossDirectory, now: Optional[datetime] = None) -> Raid:
    if isinstance(value, Mapping):
        return raid_from_object(value, gyms, bosses, now)
    return raid_from_array(value, gyms, bosses, now)


def raid_map_from_json(
    data: Any,
    gyms: GymDirectory,
    bosses: BossDirectory,
    now: Optional[datetime] = None,
) -> RaidMap:
    if not isinstance(data, list):
        raise ValidationError("Raid snapshot must contain a list of raids")
    return RaidMap(raid_from_any(r, gyms, bosses, now) for r in data)


def load_raid_map(
    path: str | Path,
    gyms: GymDirectory,
    bosses: BossDirectory,
    now: Optional[datetime] = None,
) -> RaidMap:
    try:
        return raid_map_from_json(_read_json(Path(path)), gyms, bosses, now)
    except (OSError, ValueError, TypeError, RaidwatchError) as e:
        raise LoadError(f"Unable to load raids from {path}: {e}") from e


def raids_to_json(raids: Iterable[Raid]) -> list:
    return [r.to_array() for r in sorted(raids)]


def save_raid_map(raids: RaidMap | Iterable[Raid], path: str | Path) -> Path:
    """Write the snapshot through a temp file so readers never see half a file."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_suffix(path.suffix + ".tmp")

    with tmp_path.open("w", encoding="utf-8") as fh:
        json.dump(raids_to_json(raids), fh, ensure_ascii=False, indent=2)
        fh.write("\n")

    tmp_path.replace(path)
    return path
