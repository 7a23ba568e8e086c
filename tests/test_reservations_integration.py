"""Reservation engine against a real Postgres (requires migrated DATABASE_URL)."""

import os
import threading
from datetime import date, datetime, timezone

import pytest
from psycopg2.extras import Json

from staybook.infra.db import get_conn, txn

# Skip all tests if DATABASE_URL is not set
pytestmark = pytest.mark.skipif(
    not os.environ.get("DATABASE_URL"),
    reason="DATABASE_URL not set - skipping reservation integration tests",
)

TEST_PROPERTY_ID = "test-property-reservations"
TEST_OWNER_ID = "test-host-reservations"
TODAY = date(2030, 1, 1)
EARLY = datetime(2030, 1, 2, tzinfo=timezone.utc)


def _seed_property(number_of_units: int = 1, availability=None) -> None:
    if availability is None:
        availability = [{"start": "2030-01-01", "end": "2031-01-01"}]
    conn = get_conn()
    try:
        with conn.cursor() as cur:
            cur.execute(
                """
                INSERT INTO properties
                    (id, owner_id, title, price_per_night, max_guests,
                     number_of_units, availability)
                VALUES (%s, %s, %s, %s, %s, %s, %s)
                """,
                (
                    TEST_PROPERTY_ID,
                    TEST_OWNER_ID,
                    "Test Cabin",
                    25000,
                    4,
                    number_of_units,
                    Json(availability),
                ),
            )
        conn.commit()
    finally:
        conn.close()


@pytest.fixture
def cleanup():
    yield
    conn = get_conn()
    try:
        with conn.cursor() as cur:
            # Delete in FK order
            cur.execute("DELETE FROM bookings WHERE property_id = %s", (TEST_PROPERTY_ID,))
            cur.execute("DELETE FROM properties WHERE id = %s", (TEST_PROPERTY_ID,))
        conn.commit()
    finally:
        conn.close()


def _availability() -> list[dict]:
    with txn() as cur:
        cur.execute("SELECT availability FROM properties WHERE id = %s", (TEST_PROPERTY_ID,))
        return cur.fetchone()[0]


def _active_count() -> int:
    with txn() as cur:
        cur.execute(
            """
            SELECT count(*) FROM bookings
            WHERE property_id = %s AND status IN ('pending', 'confirmed')
            """,
            (TEST_PROPERTY_ID,),
        )
        return cur.fetchone()[0]


def _book(user_id: str, check_in: date, check_out: date):
    from staybook.domain.reservations import create_booking

    return create_booking(
        property_id=TEST_PROPERTY_ID,
        user_id=user_id,
        check_in=check_in,
        check_out=check_out,
        guests=2,
        today=TODAY,
    )


class TestCreateAndCancel:
    def test_booking_consumes_and_cancel_restores(self, cleanup):
        from staybook.domain.reservations import cancel_booking

        _seed_property()

        result = _book("guest-a", date(2030, 3, 10), date(2030, 3, 13))

        assert result.booking.total_price == 82500
        assert _availability() == [
            {"start": "2030-01-01", "end": "2030-03-10"},
            {"start": "2030-03-13", "end": "2031-01-01"},
        ]

        cancelled = cancel_booking(result.booking.id, acting_user_id="guest-a", now=EARLY)

        assert cancelled.status.value == "cancelled"
        assert _availability() == [{"start": "2030-01-01", "end": "2031-01-01"}]
        assert _active_count() == 0

    def test_adjacent_stays_do_not_overlap(self, cleanup):
        _seed_property()

        _book("guest-a", date(2030, 3, 10), date(2030, 3, 13))
        _book("guest-b", date(2030, 3, 13), date(2030, 3, 15))

        assert _active_count() == 2

    def test_overlap_rejected_on_single_unit(self, cleanup):
        from staybook.domain.errors import FullyBooked

        _seed_property()
        _book("guest-a", date(2030, 3, 10), date(2030, 3, 13))

        with pytest.raises(FullyBooked) as exc_info:
            _book("guest-b", date(2030, 3, 12), date(2030, 3, 14))

        assert exc_info.value.remaining == 0
        assert _active_count() == 1

    def test_cancelled_booking_frees_unit(self, cleanup):
        from staybook.domain.reservations import cancel_booking

        _seed_property()
        first = _book("guest-a", date(2030, 3, 10), date(2030, 3, 13))
        cancel_booking(first.booking.id, acting_user_id="guest-a", now=EARLY)

        second = _book("guest-b", date(2030, 3, 10), date(2030, 3, 13))

        assert second.booking.status.value == "confirmed"

    def test_host_cancel_inside_cutoff_restores(self, cleanup):
        from staybook.domain.reservations import change_booking_status

        _seed_property()
        result = _book("guest-a", date(2030, 3, 10), date(2030, 3, 13))

        change_booking_status(
            result.booking.id, acting_user_id=TEST_OWNER_ID, status="cancelled"
        )

        assert _availability() == [{"start": "2030-01-01", "end": "2031-01-01"}]

    def test_guest_cancel_after_cutoff_changes_nothing(self, cleanup):
        from staybook.domain.errors import PolicyViolation
        from staybook.domain.reservations import cancel_booking

        _seed_property()
        result = _book("guest-a", date(2030, 3, 10), date(2030, 3, 13))
        before = _availability()

        with pytest.raises(PolicyViolation):
            cancel_booking(
                result.booking.id,
                acting_user_id="guest-a",
                now=datetime(2030, 3, 9, tzinfo=timezone.utc),
            )

        assert _availability() == before
        assert _active_count() == 1


class TestConcurrency:
    def test_concurrent_bookings_single_unit(self, cleanup):
        """Only 1 booking succeeds when 5 threads compete for 1 unit."""
        from staybook.domain.errors import FullyBooked

        _seed_property(number_of_units=1)

        results = {"success": 0, "fail": 0}
        results_lock = threading.Lock()

        def try_book(thread_id: int):
            try:
                _book(f"guest-{thread_id}", date(2030, 5, 1), date(2030, 5, 4))
                with results_lock:
                    results["success"] += 1
            except FullyBooked:
                with results_lock:
                    results["fail"] += 1

        threads = [threading.Thread(target=try_book, args=(i,)) for i in range(5)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert results["success"] == 1, f"Expected 1 success, got {results['success']}"
        assert results["fail"] == 4, f"Expected 4 failures, got {results['fail']}"
        assert _active_count() == 1

    def test_concurrent_bookings_two_units(self, cleanup):
        from staybook.domain.errors import FullyBooked

        _seed_property(number_of_units=2)

        results = {"success": 0, "fail": 0}
        results_lock = threading.Lock()

        def try_book(thread_id: int):
            try:
                _book(f"guest-{thread_id}", date(2030, 5, 1), date(2030, 5, 4))
                with results_lock:
                    results["success"] += 1
            except FullyBooked:
                with results_lock:
                    results["fail"] += 1

        threads = [threading.Thread(target=try_book, args=(i,)) for i in range(6)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert results == {"success": 2, "fail": 4}
        assert _active_count() == 2
