"""Shared test helper functions for Staybook tests.

Regular functions (not fixtures) importable from conftest.py and test modules.
"""

from __future__ import annotations

import time
from datetime import date, datetime, timezone

import jwt

from staybook.domain.availability import AvailabilityCalendar
from staybook.domain.date_range import DateRange
from staybook.domain.lifecycle import BookingStatus
from staybook.infra.repositories.bookings_repository import BookingRecord
from staybook.infra.repositories.properties_repository import PropertyRecord

TEST_SECRET = "test-secret"

BOOKING_ID = "6f1c2a56-8a43-4c3e-9d59-3c3b1a0e7f11"


def _create_token(
    sub: str = "user-123",
    secret: str = TEST_SECRET,
    exp: int | None = None,
    **claims,
) -> str:
    """Create signed HS256 JWT for testing."""
    now = int(time.time())
    payload = {
        "sub": sub,
        "iat": now,
        "exp": exp if exp is not None else now + 3600,
        **claims,
    }
    return jwt.encode(payload, secret, algorithm="HS256")


def _auth_headers(sub: str = "user-123") -> dict[str, str]:
    return {"Authorization": f"Bearer {_create_token(sub=sub)}"}


def make_property(
    *,
    property_id: str = "prop-1",
    owner_id: str = "host-1",
    price_per_night: int = 25000,
    max_guests: int = 4,
    number_of_units: int = 1,
    windows: list[tuple[date, date]] | None = None,
    calendar_open: bool = True,
) -> PropertyRecord:
    if windows is None:
        windows = [(date(2026, 1, 1), date(2027, 1, 1))]
    availability = None
    if calendar_open:
        availability = AvailabilityCalendar(DateRange(s, e) for s, e in windows)
    return PropertyRecord(
        id=property_id,
        owner_id=owner_id,
        price_per_night=price_per_night,
        max_guests=max_guests,
        number_of_units=number_of_units,
        availability=availability,
    )


def make_booking(
    *,
    booking_id: str = BOOKING_ID,
    property_id: str = "prop-1",
    user_id: str = "guest-1",
    check_in: date = date(2026, 3, 10),
    check_out: date = date(2026, 3, 15),
    guests: int = 2,
    total_price: int = 137500,
    status: BookingStatus = BookingStatus.CONFIRMED,
) -> BookingRecord:
    created = datetime(2026, 2, 1, 12, 0, tzinfo=timezone.utc)
    return BookingRecord(
        id=booking_id,
        property_id=property_id,
        user_id=user_id,
        check_in=check_in,
        check_out=check_out,
        guests=guests,
        total_price=total_price,
        status=status,
        created_at=created,
        updated_at=created,
    )
