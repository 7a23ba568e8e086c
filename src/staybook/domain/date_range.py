"""Half-open day ranges.

A DateRange is ``[start, end)``: ``start`` is the first night, ``end`` is
the departure day and is excluded. Two ranges that share only a boundary
day (``a.end == b.start``) do not overlap, so a checkout and the next
check-in can fall on the same day.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Any

from .errors import InvalidDateRange


def to_utc_day(value: Any) -> date:
    """Normalize a date-like value to its UTC calendar day.

    Accepts ``date``, ``datetime`` (naive values are taken as UTC) or an ISO
    8601 string such as ``"2026-03-01"`` or ``"2026-03-01T22:00:00-03:00"``.

    Raises:
        InvalidDateRange: If the value cannot be parsed.
    """
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        raw = value.strip()
        if raw.endswith("Z"):
            raw = raw[:-1] + "+00:00"
        try:
            if len(raw) == 10:
                return date.fromisoformat(raw)
            return to_utc_day(datetime.fromisoformat(raw))
        except ValueError:
            raise InvalidDateRange(f"Invalid date format: {value!r}")
    raise InvalidDateRange(f"Invalid date format: {value!r}")


@dataclass(frozen=True, order=True)
class DateRange:
    """Immutable half-open ``[start, end)`` range of days.

    Ordering compares ``start`` first, then ``end``.
    """

    start: date
    end: date

    def __post_init__(self) -> None:
        if self.start >= self.end:
            raise InvalidDateRange(
                f"Range start ({self.start}) must be before end ({self.end})"
            )

    @classmethod
    def from_values(cls, start: Any, end: Any) -> DateRange:
        """Build a range from any values accepted by to_utc_day."""
        return cls(to_utc_day(start), to_utc_day(end))

    @classmethod
    def from_dict(cls, data: dict[str, str]) -> DateRange:
        """Build a range from its persisted ``{"start", "end"}`` form."""
        return cls(date.fromisoformat(data["start"]), date.fromisoformat(data["end"]))

    def to_dict(self) -> dict[str, str]:
        return {"start": self.start.isoformat(), "end": self.end.isoformat()}

    @property
    def nights(self) -> int:
        return (self.end - self.start).days

    def intersects(self, other: DateRange) -> bool:
        """True if the ranges share at least one night."""
        return self.start < other.end and other.start < self.end

    def touches(self, other: DateRange) -> bool:
        """True if the ranges intersect or abut (can be fused into one)."""
        return self.start <= other.end and other.start <= self.end

    def contains(self, other: DateRange | date) -> bool:
        """Containment of a whole range, or membership of a single day."""
        if isinstance(other, DateRange):
            return self.start <= other.start and other.end <= self.end
        return self.start <= other < self.end

    def subtract(self, other: DateRange) -> list[DateRange]:
        """Return what is left of this range after removing ``other``.

        Yields zero pieces (fully covered), one (untouched or trimmed at an
        edge) or two (``other`` strictly inside), in ascending order.
        """
        if not self.intersects(other):
            return [self]

        pieces = []
        if self.start < other.start:
            pieces.append(DateRange(self.start, other.start))
        if other.end < self.end:
            pieces.append(DateRange(other.end, self.end))
        return pieces

    def union(self, other: DateRange) -> DateRange:
        """Fuse two touching ranges into their hull."""
        if not self.touches(other):
            raise ValueError(f"{self} and {other} neither overlap nor abut")
        return DateRange(min(self.start, other.start), max(self.end, other.end))

    def __str__(self) -> str:
        return f"[{self.start.isoformat()}, {self.end.isoformat()})"
