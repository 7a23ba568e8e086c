"""Booking status state machine.

Statuses form a closed set. A booking's date range is held out of the
property calendar for every status except ``cancelled``, so the calendar
effect of a transition follows from its endpoints alone:

- entering ``cancelled`` from any other status restores the range;
- leaving ``cancelled`` for any other status consumes it again.

The effects are computed here, not by the caller, so a guest cancellation
and a host override into ``cancelled`` restore the calendar the same way.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from enum import Enum

from staybook.infra.time import utc_midnight

from .errors import InvalidStatus, InvalidTransition, PolicyViolation


class BookingStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


# Statuses that consume a capacity unit
ACTIVE_STATUSES = frozenset({BookingStatus.PENDING, BookingStatus.CONFIRMED})

# Status given to every booking at creation (no approval step)
INITIAL_STATUS = BookingStatus.CONFIRMED

CANCELLATION_WINDOW_POLICY = "cancellation_window"


class Effect(str, Enum):
    RESTORE_AVAILABILITY = "restore_availability"
    CONSUME_AVAILABILITY = "consume_availability"


# Regular transitions; anything else needs a host override.
_REGULAR_TRANSITIONS = frozenset(
    {
        (BookingStatus.PENDING, BookingStatus.CANCELLED),
        (BookingStatus.CONFIRMED, BookingStatus.CANCELLED),
        (BookingStatus.CONFIRMED, BookingStatus.COMPLETED),
    }
)


@dataclass(frozen=True)
class Transition:
    """A planned status change and the side effects it carries."""

    source: BookingStatus
    target: BookingStatus
    effects: tuple[Effect, ...] = ()

    @property
    def is_noop(self) -> bool:
        return self.source is self.target


def parse_status(value: str | BookingStatus) -> BookingStatus:
    """Convert a raw status value, raising InvalidStatus if unknown."""
    try:
        return BookingStatus(value)
    except ValueError:
        raise InvalidStatus(f"Invalid status: {value!r}")


def _holds_dates(status: BookingStatus) -> bool:
    return status is not BookingStatus.CANCELLED


def _effects(source: BookingStatus, target: BookingStatus) -> tuple[Effect, ...]:
    if _holds_dates(source) and not _holds_dates(target):
        return (Effect.RESTORE_AVAILABILITY,)
    if not _holds_dates(source) and _holds_dates(target):
        return (Effect.CONSUME_AVAILABILITY,)
    return ()


def plan_transition(
    source: BookingStatus,
    target: BookingStatus,
    *,
    override: bool = False,
) -> Transition:
    """Plan a move from ``source`` to ``target``.

    Args:
        source: Current status.
        target: Requested status.
        override: Host override. Any target is accepted and capacity or
            policy checks are the caller's to skip, but effects still apply.

    Raises:
        InvalidTransition: If the move is not a regular transition and
            override is False.
    """
    if source is target:
        return Transition(source, target)

    if not override and (source, target) not in _REGULAR_TRANSITIONS:
        raise InvalidTransition(
            f"Cannot move booking from '{source.value}' to '{target.value}'"
        )

    return Transition(source, target, _effects(source, target))


def cancellation_deadline(check_in: date, cutoff_days: int) -> datetime:
    """Last instant a guest may cancel: check-in UTC midnight minus cutoff."""
    return utc_midnight(check_in) - timedelta(days=cutoff_days)


def ensure_cancellation_window(check_in: date, now: datetime, cutoff_days: int) -> None:
    """Reject a guest cancellation that comes after the deadline.

    Raises:
        PolicyViolation: If ``now`` is later than the deadline.
    """
    if now > cancellation_deadline(check_in, cutoff_days):
        raise PolicyViolation(
            CANCELLATION_WINDOW_POLICY,
            f"Bookings can only be cancelled at least {cutoff_days} days before check-in",
        )
