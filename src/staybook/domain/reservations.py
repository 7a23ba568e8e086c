"""Reservation domain logic - transactional booking creation and status changes.

Every write runs in a single transaction that first locks the property row
(SELECT ... FOR UPDATE). Concurrent requests for the same property therefore
run their check-and-write one at a time, and a booking row and the calendar
update it implies always commit (or roll back) together.

Lock order is always property, then booking.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any

from psycopg2.extensions import cursor as PgCursor

from staybook.infra.booking_settings import BookingSettings, get_booking_settings
from staybook.infra.db import txn
from staybook.infra.repositories.bookings_repository import (
    BookingRecord,
    find_active_booking,
    get_booking,
    insert_booking,
    list_bookings_for_host,
    list_bookings_for_user,
    list_held_ranges,
    update_booking_status,
)
from staybook.infra.repositories.properties_repository import (
    PropertyRecord,
    get_property,
    save_availability,
)
from staybook.infra.time import utc_now, utc_today
from staybook.observability.logging import get_logger
from staybook.observability.redaction import safe_log_context

from .availability import AvailabilityCalendar
from .date_range import DateRange, to_utc_day
from .errors import (
    Forbidden,
    FullyBooked,
    GuestLimitExceeded,
    InvalidDateRange,
    NotFound,
    PastDate,
)
from .lifecycle import (
    INITIAL_STATUS,
    BookingStatus,
    Effect,
    Transition,
    ensure_cancellation_window,
    parse_status,
    plan_transition,
)
from .overlap import count_active_overlaps, remaining_units
from .pricing import PriceBreakdown, compute_price

logger = get_logger(__name__)


@dataclass(frozen=True)
class BookingResult:
    """A booking together with its price breakdown."""

    booking: BookingRecord
    breakdown: PriceBreakdown | None

    def to_dict(self) -> dict[str, Any]:
        data = self.booking.to_dict()
        data["breakdown"] = self.breakdown.to_dict() if self.breakdown else None
        return data


def _normalize_booking_id(booking_id: str) -> str:
    """Booking ids are UUIDs; anything else cannot exist."""
    try:
        return str(uuid.UUID(str(booking_id)))
    except ValueError:
        raise NotFound("booking", str(booking_id))


def _run(cur: PgCursor | None, fn):
    if cur is not None:
        return fn(cur)
    with txn() as c:
        return fn(c)


def _apply_transition(
    cur: PgCursor,
    booking: BookingRecord,
    prop: PropertyRecord | None,
    transition: Transition,
) -> BookingRecord:
    """Persist a status change and its calendar effects in the caller's transaction."""
    updated = update_booking_status(cur, booking.id, transition.target)

    if not transition.effects:
        return updated

    if prop is None:
        # Property removed by its owner; nothing left to restore into.
        logger.warning(
            "calendar effect skipped, property missing",
            extra={
                "extra_fields": safe_log_context(
                    booking_id=booking.id, property_id=booking.property_id
                )
            },
        )
        return updated

    if not prop.calendar_open:
        # Opening the calendar later carves out whatever is still held.
        return updated

    for effect in transition.effects:
        if effect is Effect.RESTORE_AVAILABILITY:
            prop.availability.restore(booking.dates)
        elif effect is Effect.CONSUME_AVAILABILITY:
            prop.availability.subtract(booking.dates)
    save_availability(cur, prop.id, prop.availability)

    return updated


def create_booking(
    *,
    property_id: str,
    user_id: str,
    check_in: date | datetime | str,
    check_out: date | datetime | str,
    guests: int,
    today: date | None = None,
    settings: BookingSettings | None = None,
    cur: PgCursor | None = None,
) -> BookingResult:
    """Admit a new booking if a unit is free for every night of the stay.

    This function:
    1. Normalizes both dates to UTC days
    2. Rejects check-in today or earlier, and empty or inverted ranges
    3. Locks the property row
    4. Checks the party size against max_guests
    5. Counts overlapping active bookings against number_of_units
    6. Prices the stay
    7. Inserts the booking as confirmed and subtracts the range from the
       calendar, if the calendar has been opened

    Steps 3-7 share one transaction; a failure anywhere leaves no trace.

    Args:
        property_id: Property identifier.
        user_id: Authenticated guest.
        check_in: First night (date, datetime or ISO string).
        check_out: Departure day, exclusive.
        guests: Party size.
        today: Override for the current UTC day (tests).
        settings: Booking settings (default: from environment).
        cur: Existing cursor to run inside the caller's transaction.

    Returns:
        BookingResult with the stored booking and its price breakdown.

    Raises:
        PastDate: If check-in is not after today.
        InvalidDateRange: If check-in is not before check-out.
        NotFound: If the property does not exist.
        GuestLimitExceeded: If guests exceeds max_guests.
        FullyBooked: If every unit is taken on some night of the stay.
    """
    if guests < 1:
        raise ValueError("guests must be at least 1")

    settings = settings or get_booking_settings()
    today = today or utc_today()

    check_in_day = to_utc_day(check_in)
    check_out_day = to_utc_day(check_out)

    if check_in_day <= today:
        raise PastDate("Cannot book dates in the past; the earliest check-in is tomorrow")
    if check_in_day >= check_out_day:
        raise InvalidDateRange("Check-out date must be after check-in date")

    dates = DateRange(check_in_day, check_out_day)

    def _do(c: PgCursor) -> BookingResult:
        prop = get_property(c, property_id, lock=True)
        if prop is None:
            raise NotFound("property", property_id)

        if guests > prop.max_guests:
            raise GuestLimitExceeded(guests, prop.max_guests)

        overlapping = count_active_overlaps(c, property_id=prop.id, dates=dates)
        if overlapping >= prop.number_of_units:
            logger.info(
                "booking rejected, fully booked",
                extra={
                    "extra_fields": safe_log_context(
                        property_id=prop.id,
                        check_in=dates.start,
                        check_out=dates.end,
                        overlapping=overlapping,
                        number_of_units=prop.number_of_units,
                    )
                },
            )
            raise FullyBooked(
                remaining_units(prop.number_of_units, overlapping),
                prop.number_of_units,
            )

        breakdown = compute_price(dates.nights, prop.price_per_night, settings.service_fee_rate)

        booking = insert_booking(
            c,
            property_id=prop.id,
            user_id=user_id,
            check_in=dates.start,
            check_out=dates.end,
            guests=guests,
            total_price=breakdown.total,
            status=INITIAL_STATUS,
        )

        if prop.calendar_open:
            prop.availability.subtract(dates)
            save_availability(c, prop.id, prop.availability)

        return BookingResult(booking=booking, breakdown=breakdown)

    result = _run(cur, _do)

    logger.info(
        "booking created",
        extra={
            "extra_fields": safe_log_context(
                booking_id=result.booking.id,
                property_id=property_id,
                check_in=dates.start,
                check_out=dates.end,
                nights=dates.nights,
                total=result.breakdown.total,
            )
        },
    )
    return result


def cancel_booking(
    booking_id: str,
    *,
    acting_user_id: str,
    now: datetime | None = None,
    settings: BookingSettings | None = None,
    cur: PgCursor | None = None,
) -> BookingRecord:
    """Guest self-service cancellation.

    Only the booking's guest may cancel, and only up to the cutoff before
    check-in. Cancelling returns the stay's range to the property calendar.
    Cancelling an already cancelled booking returns it unchanged.

    Raises:
        NotFound: If the booking does not exist.
        Forbidden: If the acting user is not the booking's guest.
        PolicyViolation: If the cancellation window has closed. The booking
            stays as it was.
        InvalidTransition: If the booking is completed.
    """
    booking_id = _normalize_booking_id(booking_id)
    settings = settings or get_booking_settings()
    now = now or utc_now()

    def _do(c: PgCursor) -> BookingRecord:
        existing = get_booking(c, booking_id)
        if existing is None:
            raise NotFound("booking", booking_id)
        if existing.user_id != acting_user_id:
            raise Forbidden("Not authorized to cancel this booking")

        prop = get_property(c, existing.property_id, lock=True)
        booking = get_booking(c, booking_id, lock=True)

        if booking.status is BookingStatus.CANCELLED:
            return booking

        ensure_cancellation_window(booking.check_in, now, settings.cancellation_cutoff_days)
        transition = plan_transition(booking.status, BookingStatus.CANCELLED)
        return _apply_transition(c, booking, prop, transition)

    cancelled = _run(cur, _do)

    logger.info(
        "booking cancelled",
        extra={
            "extra_fields": safe_log_context(
                booking_id=booking_id,
                property_id=cancelled.property_id,
                status=cancelled.status,
            )
        },
    )
    return cancelled


def change_booking_status(
    booking_id: str,
    *,
    acting_user_id: str,
    status: str | BookingStatus,
    cur: PgCursor | None = None,
) -> BookingRecord:
    """Host override: move a booking to any status.

    Capacity and the cancellation window are not checked, but calendar
    effects still follow the transition (entering cancelled restores the
    range, leaving it consumes the range again).

    Raises:
        InvalidStatus: If status is not a booking status.
        NotFound: If the booking does not exist.
        Forbidden: If the acting user does not own the property.
    """
    target = parse_status(status)
    booking_id = _normalize_booking_id(booking_id)

    def _do(c: PgCursor) -> tuple[BookingRecord, Transition]:
        existing = get_booking(c, booking_id)
        if existing is None:
            raise NotFound("booking", booking_id)

        prop = get_property(c, existing.property_id, lock=True)
        if prop is None or prop.owner_id != acting_user_id:
            raise Forbidden("Not authorized to update this booking")

        booking = get_booking(c, booking_id, lock=True)
        transition = plan_transition(booking.status, target, override=True)
        if transition.is_noop:
            return booking, transition
        return _apply_transition(c, booking, prop, transition), transition

    updated, transition = _run(cur, _do)

    logger.info(
        "booking status changed",
        extra={
            "extra_fields": safe_log_context(
                booking_id=booking_id,
                property_id=updated.property_id,
                from_status=transition.source,
                to_status=transition.target,
                effects=[e.value for e in transition.effects],
            )
        },
    )
    return updated


def get_guest_booking(booking_id: str, *, acting_user_id: str) -> BookingRecord:
    """Booking details, visible to its guest only.

    Raises:
        NotFound: If the booking does not exist.
        Forbidden: If the acting user is not the booking's guest.
    """
    booking_id = _normalize_booking_id(booking_id)
    with txn() as cur:
        booking = get_booking(cur, booking_id)
    if booking is None:
        raise NotFound("booking", booking_id)
    if booking.user_id != acting_user_id:
        raise Forbidden("Not authorized to view this booking")
    return booking


def list_guest_bookings(
    user_id: str,
    *,
    settings: BookingSettings | None = None,
) -> list[BookingResult]:
    """A guest's bookings, newest first, each with a breakdown at today's price.

    The breakdown is None for bookings whose property no longer exists.
    """
    settings = settings or get_booking_settings()
    with txn() as cur:
        rows = list_bookings_for_user(cur, user_id)

    results = []
    for booking, price_per_night in rows:
        breakdown = None
        if price_per_night is not None:
            breakdown = compute_price(
                booking.dates.nights, price_per_night, settings.service_fee_rate
            )
        else:
            logger.warning(
                "booking has no property",
                extra={"extra_fields": safe_log_context(booking_id=booking.id)},
            )
        results.append(BookingResult(booking=booking, breakdown=breakdown))
    return results


def list_host_bookings(owner_id: str) -> list[BookingRecord]:
    """Bookings across every property the host owns, newest first."""
    with txn() as cur:
        return list_bookings_for_host(cur, owner_id)


def has_active_booking(*, property_id: str, user_id: str) -> bool:
    """True if the guest holds a pending or confirmed booking on the property."""
    with txn() as cur:
        return find_active_booking(cur, property_id=property_id, user_id=user_id) is not None


def get_property_availability(property_id: str) -> PropertyRecord:
    """Current calendar and capacity of a property.

    Raises:
        NotFound: If the property does not exist.
    """
    with txn() as cur:
        prop = get_property(cur, property_id)
    if prop is None:
        raise NotFound("property", property_id)
    return prop


def open_property_calendar(
    property_id: str,
    *,
    acting_user_id: str,
    today: date | None = None,
    settings: BookingSettings | None = None,
) -> AvailabilityCalendar:
    """Give a new property its initial open-ended free window.

    Only applies to a calendar that was never opened; an open calendar is
    returned untouched, even when bookings have emptied it. Stays already
    held on the property (bookings made before the calendar was opened) are
    carved out of the new window.

    Raises:
        NotFound: If the property does not exist.
        Forbidden: If the acting user does not own the property.
    """
    settings = settings or get_booking_settings()
    today = today or utc_today()

    with txn() as cur:
        prop = get_property(cur, property_id, lock=True)
        if prop is None:
            raise NotFound("property", property_id)
        if prop.owner_id != acting_user_id:
            raise Forbidden("Not authorized to manage this property")
        if prop.calendar_open:
            return prop.availability

        calendar = AvailabilityCalendar.open_ended(today, settings.open_window_years)
        for held in list_held_ranges(cur, prop.id):
            calendar.subtract(held)
        save_availability(cur, prop.id, calendar)

    logger.info(
        "property calendar opened",
        extra={"extra_fields": safe_log_context(property_id=property_id)},
    )
    return calendar
