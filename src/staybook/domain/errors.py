"""Typed errors produced by the reservation engine.

Every error carries a stable ``code`` that the HTTP layer exposes to
clients. None of them leaves partial state behind: validation errors are
raised before any write, and errors raised inside a transaction roll it
back.
"""

from __future__ import annotations


class ReservationError(Exception):
    """Base class for reservation engine errors."""

    code = "reservation_error"


class InvalidDateRange(ReservationError):
    """Raised when check-in is not before check-out or a date is unparseable."""

    code = "invalid_date_range"


class PastDate(ReservationError):
    """Raised when check-in is today or earlier."""

    code = "past_date"


class GuestLimitExceeded(ReservationError):
    """Raised when the party is larger than the property accepts."""

    code = "guest_limit_exceeded"

    def __init__(self, guests: int, max_guests: int) -> None:
        self.guests = guests
        self.max_guests = max_guests
        super().__init__(
            f"This property can only accommodate up to {max_guests} guests"
        )


class FullyBooked(ReservationError):
    """Raised when every unit is taken for some night of the range.

    This is an expected capacity outcome, not a fault. ``remaining`` lets
    the caller suggest alternatives.
    """

    code = "fully_booked"

    def __init__(self, remaining: int, number_of_units: int) -> None:
        self.remaining = remaining
        self.number_of_units = number_of_units
        super().__init__(
            "This property is fully booked for the selected dates "
            f"({remaining} of {number_of_units} unit(s) free)"
        )


class NotFound(ReservationError):
    """Raised when a property or booking does not exist."""

    code = "not_found"

    def __init__(self, entity: str, entity_id: str) -> None:
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity.capitalize()} {entity_id} not found")


class Forbidden(ReservationError):
    """Raised when the acting user may not touch the booking."""

    code = "forbidden"


class PolicyViolation(ReservationError):
    """Raised when a policy (e.g. the cancellation window) rejects an action.

    The booking is left exactly as it was.
    """

    code = "policy_violation"

    def __init__(self, policy: str, message: str) -> None:
        self.policy = policy
        super().__init__(message)


class InvalidStatus(ReservationError):
    """Raised for a status value outside the booking status set."""

    code = "invalid_status"


class InvalidTransition(ReservationError):
    """Raised when a guest action does not apply to the current status."""

    code = "invalid_transition"
