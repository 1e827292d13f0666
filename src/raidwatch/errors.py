# src/raidwatch/errors.py
from __future__ import annotations


class RaidwatchError(Exception):
    """Base class for every failure raised by raidwatch."""


class ValidationError(RaidwatchError, ValueError):
    """Structurally invalid input (names, coordinates, tiers, durations)."""


class DuplicateKeyError(RaidwatchError, ValueError):
    pass


class NotFoundError(RaidwatchError, LookupError):
    pass


class AmbiguousMatchError(RaidwatchError, LookupError):
    pass


class RaidStateError(RaidwatchError, ValueError):
    """A raid operation is not permitted in the raid's current state."""


class TimerError(RaidwatchError, RuntimeError):
    pass


class LoadError(RaidwatchError, RuntimeError):
    pass
