"""Time utilities for consistent timestamp handling.

Booking dates are day-granular and interpreted at UTC midnight.
"""

from datetime import date, datetime, timezone


def utc_now() -> datetime:
    """Return current UTC timestamp (timezone-aware)."""
    return datetime.now(timezone.utc)


def utc_today() -> date:
    """Return the current UTC calendar day."""
    return utc_now().date()


def utc_midnight(day: date) -> datetime:
    """Return the timezone-aware UTC midnight that starts ``day``."""
    return datetime(day.year, day.month, day.day, tzinfo=timezone.utc)
