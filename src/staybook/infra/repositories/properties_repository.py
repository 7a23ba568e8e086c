"""Properties repository - the slice of property data the engine reads.

Uses raw SQL with psycopg2 (no ORM). Only ``availability`` is written here;
every other column belongs to the property-management service. A NULL
``availability`` marks a calendar that has not been opened yet.
"""

from __future__ import annotations

from dataclasses import dataclass

from psycopg2.extensions import cursor as PgCursor
from psycopg2.extras import Json

from staybook.domain.availability import AvailabilityCalendar
from staybook.infra.db import for_update

_PROPERTY_QUERY = """
    SELECT id, owner_id, price_per_night, max_guests, number_of_units,
           availability
    FROM properties
    WHERE id = %s
"""


@dataclass
class PropertyRecord:
    id: str
    owner_id: str
    price_per_night: int
    max_guests: int
    number_of_units: int
    # None until the owner opens the calendar
    availability: AvailabilityCalendar | None

    @property
    def calendar_open(self) -> bool:
        return self.availability is not None


def _row_to_property(row: tuple) -> PropertyRecord:
    return PropertyRecord(
        id=str(row[0]),
        owner_id=str(row[1]),
        price_per_night=row[2],
        max_guests=row[3],
        number_of_units=row[4],
        availability=AvailabilityCalendar.from_rows(row[5]) if row[5] is not None else None,
    )


def get_property(
    cur: PgCursor,
    property_id: str,
    *,
    lock: bool = False,
) -> PropertyRecord | None:
    """Load a property.

    Args:
        cur: Database cursor (within transaction).
        property_id: Property identifier.
        lock: If True, takes a row lock (SELECT ... FOR UPDATE) held until
            the transaction ends. Every booking write for the property
            holds this lock, which serializes admission checks.

    Returns:
        PropertyRecord, or None if the property does not exist.
    """
    if lock:
        row = for_update(cur, _PROPERTY_QUERY, (property_id,))
    else:
        cur.execute(_PROPERTY_QUERY, (property_id,))
        row = cur.fetchone()

    if row is None:
        return None
    return _row_to_property(row)


def save_availability(
    cur: PgCursor,
    property_id: str,
    calendar: AvailabilityCalendar,
) -> None:
    """Persist a property's calendar (JSONB list of {start, end})."""
    cur.execute(
        """
        UPDATE properties
        SET availability = %s, updated_at = now()
        WHERE id = %s
        """,
        (Json(calendar.to_rows()), property_id),
    )
