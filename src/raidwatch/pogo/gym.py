# src/raidwatch/pogo/gym.py

from __future__ import annotations

from dataclasses import dataclass

from raidwatch.errors import ValidationError
from raidwatch.names.normalize import normalize_name
from raidwatch.places.typedefs import Poi


EX_ELIGIBLE = "exEligible"
NON_EX = "nonEx"


def parse_ex_status(value: object) -> bool:
    """
    "exEligible" / "ex" -> True, "nonEx" -> False (case and punctuation
    insensitive); bools pass through.
    """
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip():
        key = normalize_name(value)
        if key in ("exeligible", "ex"):
            return True
        if key == "nonex":
            return False
    raise ValidationError(f"Invalid EX status {value!r} ({NON_EX}/{EX_ELIGIBLE})")


def format_ex_status(is_ex_eligible: bool) -> str:
    return EX_ELIGIBLE if is_ex_eligible else NON_EX


@dataclass(frozen=True)
class Gym(Poi):
    is_ex_eligible: bool = False

    def __post_init__(self):
        super().__post_init__()
        if not isinstance(self.is_ex_eligible, bool):
            raise ValidationError(f"Gym {self.name}: is_ex_eligible must be a bool")

    def to_array(self) -> list:
        return [*super().to_array(), format_ex_status(self.is_ex_eligible)]

    def to_json(self) -> dict:
        out = super().to_json()
        out["isExEligible"] = self.is_ex_eligible
        return out
