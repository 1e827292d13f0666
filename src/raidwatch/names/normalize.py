# src/raidwatch/names/normalize.py
from __future__ import annotations

import re
from typing import Iterable, List, Optional, Sequence

from raidwatch.errors import ValidationError


_NON_ALNUM = re.compile(r"[\W_]+")


def is_valid_name(name: object) -> bool:
    return isinstance(name, str) and len(name.strip()) > 0


def validate_name(name: object, description: str) -> str:
    if not is_valid_name(name):
        raise ValidationError(
            f'Invalid {description} {name!r} must be non-empty string.'
        )
    return name


def validate_names(
    names: Iterable[str],
    description: str,
    min_size: int = 0,
) -> List[str]:
    if names is None or isinstance(names, str):
        raise ValidationError(f"{description} must be a list of names.")

    out = [validate_name(n, description) for n in names]
    if len(out) < min_size:
        raise ValidationError(f"Need at least {min_size} {description}")
    return out


def normalize_name(name: str) -> str:
    """
    Normalize a display name into a canonical lookup key.

    Rules:
      - strip, then fail if nothing is left
      - lowercase
      - drop every non-alphanumeric character: "City A" → "citya"

    The result is never empty; a name made only of punctuation fails too.
    """
    if not isinstance(name, str):
        raise ValidationError(f"Cannot normalize an input of type {type(name).__name__}.")

    trimmed = name.strip()
    if not trimmed:
        raise ValidationError("Cannot normalize an empty string.")

    key = _NON_ALNUM.sub("", trimmed.lower())
    if not key:
        raise ValidationError(f"Name {name!r} has no letters or digits.")
    return key


def normalize_names(names: Sequence[str]) -> List[str]:
    """Element-wise normalize; any invalid element fails the whole batch."""
    if names is None or isinstance(names, str):
        raise ValidationError("Cannot normalize a non-list of names.")
    return [normalize_name(n) for n in names]


def try_normalize(name: Optional[str]) -> Optional[str]:
    if not is_valid_name(name):
        return None
    try:
        return normalize_name(name)
    except ValidationError:
        return None


def try_normalize_names(names: Optional[Iterable[str]]) -> List[str]:
    out: List[str] = []
    for name in names or []:
        key = try_normalize(name)
        if key:
            out.append(key)
    return out


# ---------------------------------------------------------------------
# List membership (empty choice lists mean "anything goes")
# ---------------------------------------------------------------------

def is_default(choices: Optional[Sequence[str]]) -> bool:
    return not choices


def is_listed(choices: Optional[Sequence[str]], looking_for: str | Iterable[str]) -> bool:
    """
    True if any of `looking_for` appears in `choices`.
    `choices` is expected to hold normalized keys already.
    """
    if not choices:
        return False

    wanted = [looking_for] if isinstance(looking_for, str) else looking_for
    return any(normalize_name(w) in choices for w in wanted)


def is_listed_or_default(
    choices: Optional[Sequence[str]],
    looking_for: str | Iterable[str],
) -> bool:
    return is_default(choices) or is_listed(choices, looking_for)
