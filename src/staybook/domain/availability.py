"""Per-property availability calendar.

The calendar is an interval set of "definitely free" windows. It is kept
canonical at all times: windows are sorted by start, pairwise disjoint, and
no two windows abut (abutting windows are fused). Only ``subtract``,
``restore`` and ``merge`` change it, and each preserves that form.

With more than one unit per property a window can disappear while units
remain bookable, so the calendar is a host-facing view; admission control
counts bookings instead (see overlap.count_active_overlaps).
"""

from __future__ import annotations

from datetime import date
from typing import Iterable, Iterator

from dateutil.relativedelta import relativedelta

from .date_range import DateRange


def merge_windows(windows: Iterable[DateRange]) -> list[DateRange]:
    """Normalize any collection of windows into canonical form."""
    merged: list[DateRange] = []
    for window in sorted(windows):
        if merged and merged[-1].touches(window):
            merged[-1] = merged[-1].union(window)
        else:
            merged.append(window)
    return merged


class AvailabilityCalendar:
    """Ordered set of disjoint free windows for one property."""

    def __init__(self, windows: Iterable[DateRange] = ()) -> None:
        self._windows = merge_windows(windows)

    @classmethod
    def open_ended(cls, today: date, years: int) -> AvailabilityCalendar:
        """Calendar for a new property: one window of ``years`` from today."""
        return cls([DateRange(today, today + relativedelta(years=years))])

    @classmethod
    def from_rows(cls, rows: Iterable[dict[str, str]] | None) -> AvailabilityCalendar:
        """Load from the persisted JSON list.

        Rows written before restore merged on insert may overlap; they are
        normalized here.
        """
        return cls(DateRange.from_dict(row) for row in rows or ())

    def to_rows(self) -> list[dict[str, str]]:
        return [w.to_dict() for w in self._windows]

    @property
    def windows(self) -> tuple[DateRange, ...]:
        return tuple(self._windows)

    def __iter__(self) -> Iterator[DateRange]:
        return iter(self._windows)

    def __len__(self) -> int:
        return len(self._windows)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, AvailabilityCalendar):
            return NotImplemented
        return self._windows == other._windows

    def __repr__(self) -> str:
        inner = ", ".join(str(w) for w in self._windows)
        return f"AvailabilityCalendar([{inner}])"

    def subtract(self, rng: DateRange) -> None:
        """Remove ``rng`` from every window it touches.

        Windows outside the range are kept, windows inside it are dropped,
        a window holding the range strictly inside is split in two, and a
        window overlapping one edge is trimmed.
        """
        remaining: list[DateRange] = []
        for window in self._windows:
            remaining.extend(window.subtract(rng))
        self._windows = remaining

    def restore(self, rng: DateRange) -> None:
        """Give ``rng`` back, fusing it with windows it overlaps or abuts."""
        self._windows = merge_windows([*self._windows, rng])

    def merge(self) -> None:
        """Re-canonicalize the window list in place."""
        self._windows = merge_windows(self._windows)
