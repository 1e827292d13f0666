# src/raidwatch/pogo/gym_directory.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Optional

from raidwatch.errors import ValidationError
from raidwatch.places.lookup_options import PoiLookupOptions
from raidwatch.places.poi_directory import PoiDirectory
from raidwatch.pogo.gym import EX_ELIGIBLE, NON_EX, Gym


@dataclass
class GymLookupOptions(PoiLookupOptions):
    # "exEligible" or "nonEx"; None accepts both
    ex_filter: Optional[str] = None

    def __post_init__(self):
        super().__post_init__()
        if self.ex_filter not in (None, EX_ELIGIBLE, NON_EX):
            raise ValidationError(f"Invalid ex_filter {self.ex_filter!r} ({NON_EX}/{EX_ELIGIBLE})")


def gym_filter(gym: Gym, options: Optional[GymLookupOptions] = None) -> bool:
    ex_filter = getattr(options, "ex_filter", None)
    if ex_filter == EX_ELIGIBLE and not gym.is_ex_eligible:
        return False
    if ex_filter == NON_EX and gym.is_ex_eligible:
        return False
    return True


class GymDirectory(PoiDirectory[Gym, GymLookupOptions]):
    """Every known gym, with EX-eligibility filtering on lookup."""

    def __init__(
        self,
        options: Optional[Mapping[str, Any] | GymLookupOptions] = None,
        gyms: Optional[Iterable[Gym]] = None,
    ):
        super().__init__(
            options,
            gyms,
            default_options=GymLookupOptions(),
            poi_filter=gym_filter,
            what="gym",
        )
