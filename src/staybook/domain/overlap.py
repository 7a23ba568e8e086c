"""Active-booking overlap counting for admission control.

Overlap formula: (existing.check_in < new.check_out) AND (existing.check_out > new.check_in)
Strict inequality means a stay ending on day D and one starting on D do not
overlap (same-day turnover).

Only active statuses (pending, confirmed) consume capacity.
"""

from __future__ import annotations

import logging

from psycopg2.extensions import cursor as PgCursor

from .date_range import DateRange
from .lifecycle import ACTIVE_STATUSES

logger = logging.getLogger(__name__)


def count_active_overlaps(
    cur: PgCursor,
    *,
    property_id: str,
    dates: DateRange,
    exclude_booking_id: str | None = None,
) -> int:
    """Count active bookings on a property that share a night with ``dates``.

    Call with the property row locked (properties_repository.get_property
    with lock=True) so the count stays valid until the transaction commits.

    Args:
        cur: Database cursor (within transaction).
        property_id: Property identifier.
        dates: Requested stay.
        exclude_booking_id: Booking to leave out (when re-checking an
            existing booking against the others).

    Returns:
        Number of overlapping active bookings.
    """
    conditions = [
        "property_id = %s",
        "status = ANY(%s::booking_status[])",
        "check_in < %s",   # existing check_in < new check_out
        "check_out > %s",  # existing check_out > new check_in
    ]
    params: list = [
        property_id,
        sorted(s.value for s in ACTIVE_STATUSES),
        dates.end,
        dates.start,
    ]

    if exclude_booking_id is not None:
        conditions.append("id != %s")
        params.append(exclude_booking_id)

    where = " AND ".join(conditions)
    cur.execute(f"SELECT count(*) FROM bookings WHERE {where}", params)
    row = cur.fetchone()
    count = int(row[0]) if row else 0

    logger.debug(
        "active overlap count",
        extra={
            "extra_fields": {
                "property_id": property_id,
                "requested_check_in": dates.start.isoformat(),
                "requested_check_out": dates.end.isoformat(),
                "overlapping": count,
            },
        },
    )
    return count


def remaining_units(number_of_units: int, overlapping: int) -> int:
    """Units still free over a range, never negative."""
    return max(number_of_units - overlapping, 0)
