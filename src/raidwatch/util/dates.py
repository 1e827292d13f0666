# src/raidwatch/util/dates.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

from raidwatch.errors import ValidationError


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def ensure_aware(d: datetime) -> datetime:
    """Naive datetimes are taken to be UTC."""
    if d.tzinfo is None:
        return d.replace(tzinfo=timezone.utc)
    return d


def parse_iso(text: str) -> datetime:
    if not isinstance(text, str):
        raise ValidationError(f"Invalid date {text!r} must be an ISO 8601 string")
    s = text.strip()
    # fromisoformat() only learned the "Z" suffix in 3.11
    if s.endswith("Z"):
        s = s[:-1] + "+00:00"
    try:
        return ensure_aware(datetime.fromisoformat(s))
    except ValueError as e:
        raise ValidationError(f"Invalid date {text!r}: {e}") from e


def format_iso(d: datetime) -> str:
    return ensure_aware(d).astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


@dataclass(frozen=True)
class DateRange:
    """
    Closed-open interval [start, end). Either end may be open (None).
    """
    start: Optional[datetime] = None
    end: Optional[datetime] = None

    def __post_init__(self):
        if self.start is not None:
            object.__setattr__(self, "start", ensure_aware(self.start))
        if self.end is not None:
            object.__setattr__(self, "end", ensure_aware(self.end))
        if self.start is not None and self.end is not None and self.start > self.end:
            raise ValidationError(
                f"Invalid date range: start {format_iso(self.start)} is after end {format_iso(self.end)}"
            )

    @classmethod
    def from_start(cls, start: datetime, minutes: float) -> "DateRange":
        start = ensure_aware(start)
        return cls(start=start, end=start + timedelta(minutes=minutes))

    @property
    def is_explicit(self) -> bool:
        return self.start is not None and self.end is not None

    def check(self, at: datetime) -> str:
        """'less' if `at` precedes the range, 'greater' if past it, else 'included'."""
        at = ensure_aware(at)
        if self.start is not None and at < self.start:
            return "less"
        if self.end is not None and at >= self.end:
            return "greater"
        return "included"

    def includes(self, at: datetime) -> bool:
        return self.check(at) == "included"

    def duration_minutes(self) -> Optional[float]:
        if not self.is_explicit:
            return None
        return (self.end - self.start).total_seconds() / 60.0

    def minutes_until_start(self, at: datetime) -> Optional[float]:
        if self.start is None:
            return None
        return (self.start - ensure_aware(at)).total_seconds() / 60.0

    def to_json(self) -> dict:
        out = {}
        if self.start is not None:
            out["start"] = format_iso(self.start)
        if self.end is not None:
            out["end"] = format_iso(self.end)
        return out

    @classmethod
    def from_json(cls, obj: dict) -> "DateRange":
        if not isinstance(obj, dict):
            raise ValidationError(f"Invalid date range {obj!r} must be an object")
        start = obj.get("start")
        end = obj.get("end")
        return cls(
            start=parse_iso(start) if start is not None else None,
            end=parse_iso(end) if end is not None else None,
        )
