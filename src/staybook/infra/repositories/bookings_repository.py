"""Bookings repository - persistence for booking records.

Uses raw SQL with psycopg2 (no ORM). Bookings are never deleted; only
``status`` changes after insert.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Any

from psycopg2.extensions import cursor as PgCursor

from staybook.domain.date_range import DateRange
from staybook.domain.lifecycle import ACTIVE_STATUSES, BookingStatus
from staybook.infra.db import for_update

_BOOKING_COLUMNS = """
    id, property_id, user_id, check_in, check_out, guests,
    total_price, status, created_at, updated_at
"""

_PREFIXED_BOOKING_COLUMNS = ", ".join(
    "b." + column.strip() for column in _BOOKING_COLUMNS.split(",")
)


@dataclass
class BookingRecord:
    id: str
    property_id: str
    user_id: str
    check_in: date
    check_out: date
    guests: int
    total_price: int
    status: BookingStatus
    created_at: datetime
    updated_at: datetime

    @property
    def dates(self) -> DateRange:
        return DateRange(self.check_in, self.check_out)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "property_id": self.property_id,
            "user_id": self.user_id,
            "check_in": self.check_in.isoformat(),
            "check_out": self.check_out.isoformat(),
            "guests": self.guests,
            "total_price": self.total_price,
            "status": self.status.value,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }


def _row_to_booking(row: tuple) -> BookingRecord:
    return BookingRecord(
        id=str(row[0]),
        property_id=str(row[1]),
        user_id=str(row[2]),
        check_in=row[3],
        check_out=row[4],
        guests=row[5],
        total_price=row[6],
        status=BookingStatus(row[7]),
        created_at=row[8],
        updated_at=row[9],
    )


def insert_booking(
    cur: PgCursor,
    *,
    property_id: str,
    user_id: str,
    check_in: date,
    check_out: date,
    guests: int,
    total_price: int,
    status: BookingStatus,
) -> BookingRecord:
    """Insert a booking and return the stored record."""
    cur.execute(
        f"""
        INSERT INTO bookings (
            property_id, user_id, check_in, check_out,
            guests, total_price, status
        )
        VALUES (%s, %s, %s, %s, %s, %s, %s)
        RETURNING {_BOOKING_COLUMNS}
        """,
        (
            property_id,
            user_id,
            check_in,
            check_out,
            guests,
            total_price,
            status.value,
        ),
    )
    return _row_to_booking(cur.fetchone())


def get_booking(
    cur: PgCursor,
    booking_id: str,
    *,
    lock: bool = False,
) -> BookingRecord | None:
    """Load a booking, optionally locking its row until the transaction ends."""
    query = f"SELECT {_BOOKING_COLUMNS} FROM bookings WHERE id = %s"
    if lock:
        row = for_update(cur, query, (booking_id,))
    else:
        cur.execute(query, (booking_id,))
        row = cur.fetchone()

    if row is None:
        return None
    return _row_to_booking(row)


def update_booking_status(
    cur: PgCursor,
    booking_id: str,
    status: BookingStatus,
) -> BookingRecord:
    """Set a booking's status and return the updated record."""
    cur.execute(
        f"""
        UPDATE bookings
        SET status = %s, updated_at = now()
        WHERE id = %s
        RETURNING {_BOOKING_COLUMNS}
        """,
        (status.value, booking_id),
    )
    return _row_to_booking(cur.fetchone())


def list_bookings_for_user(
    cur: PgCursor,
    user_id: str,
) -> list[tuple[BookingRecord, int | None]]:
    """List a guest's bookings, newest first.

    Returns:
        List of (booking, property price_per_night). The price is None when
        the property no longer exists.
    """
    cur.execute(
        f"""
        SELECT {_PREFIXED_BOOKING_COLUMNS},
               p.price_per_night
        FROM bookings b
        LEFT JOIN properties p ON p.id = b.property_id
        WHERE b.user_id = %s
        ORDER BY b.created_at DESC
        """,
        (user_id,),
    )
    return [(_row_to_booking(row[:10]), row[10]) for row in cur.fetchall()]


def list_bookings_for_host(cur: PgCursor, owner_id: str) -> list[BookingRecord]:
    """List bookings on every property owned by ``owner_id``, newest first."""
    cur.execute(
        f"""
        SELECT {_PREFIXED_BOOKING_COLUMNS}
        FROM bookings b
        JOIN properties p ON p.id = b.property_id
        WHERE p.owner_id = %s
        ORDER BY b.created_at DESC
        """,
        (owner_id,),
    )
    return [_row_to_booking(row) for row in cur.fetchall()]


def find_active_booking(cur: PgCursor, *, property_id: str, user_id: str) -> str | None:
    """Return the id of one active booking the guest holds on the property."""
    cur.execute(
        """
        SELECT id FROM bookings
        WHERE property_id = %s AND user_id = %s
          AND status = ANY(%s::booking_status[])
        LIMIT 1
        """,
        (property_id, user_id, sorted(s.value for s in ACTIVE_STATUSES)),
    )
    row = cur.fetchone()
    return str(row[0]) if row else None


def list_held_ranges(cur: PgCursor, property_id: str) -> list[DateRange]:
    """Stay ranges of every non-cancelled booking on a property."""
    cur.execute(
        """
        SELECT check_in, check_out FROM bookings
        WHERE property_id = %s AND status != 'cancelled'
        ORDER BY check_in
        """,
        (property_id,),
    )
    return [DateRange(row[0], row[1]) for row in cur.fetchall()]
