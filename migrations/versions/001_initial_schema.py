"""Initial schema: properties and bookings.

Revision ID: 001_initial_schema
Revises:
Create Date: 2026-10-19
"""

from __future__ import annotations

from alembic import op

revision = "001_initial_schema"
down_revision = None
branch_labels = None
depends_on = None

_SQL = """
CREATE EXTENSION IF NOT EXISTS pgcrypto;

CREATE TYPE booking_status AS ENUM ('pending', 'confirmed', 'cancelled', 'completed');

CREATE TABLE properties (
    id               TEXT PRIMARY KEY,
    owner_id         TEXT NOT NULL,
    title            TEXT NOT NULL DEFAULT '',
    price_per_night  INTEGER NOT NULL CHECK (price_per_night > 0),
    max_guests       INTEGER NOT NULL CHECK (max_guests > 0),
    number_of_units  INTEGER NOT NULL DEFAULT 1 CHECK (number_of_units > 0),
    cleaning_fee     INTEGER NOT NULL DEFAULT 1000,
    availability     JSONB,
    created_at       TIMESTAMPTZ NOT NULL DEFAULT now(),
    updated_at       TIMESTAMPTZ NOT NULL DEFAULT now()
);

COMMENT ON COLUMN properties.availability IS
    'Free windows [{start, end}]; NULL until the owner opens the calendar';

CREATE INDEX ix_properties_owner ON properties (owner_id);

CREATE TABLE bookings (
    id           UUID PRIMARY KEY DEFAULT gen_random_uuid(),
    property_id  TEXT NOT NULL REFERENCES properties (id),
    user_id      TEXT NOT NULL,
    check_in     DATE NOT NULL,
    check_out    DATE NOT NULL,
    guests       INTEGER NOT NULL CHECK (guests >= 1),
    total_price  INTEGER NOT NULL,
    status       booking_status NOT NULL DEFAULT 'confirmed',
    created_at   TIMESTAMPTZ NOT NULL DEFAULT now(),
    updated_at   TIMESTAMPTZ NOT NULL DEFAULT now(),
    CONSTRAINT bookings_dates_ordered CHECK (check_in < check_out)
);

CREATE INDEX ix_bookings_property_active
    ON bookings (property_id, check_in, check_out)
    WHERE status IN ('pending', 'confirmed');

CREATE INDEX ix_bookings_user_created ON bookings (user_id, created_at DESC);
"""


def upgrade() -> None:
    # Raw execution so the multi-statement script runs as-is.
    conn = op.get_bind()
    conn.exec_driver_sql(_SQL)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS bookings")
    op.execute("DROP TABLE IF EXISTS properties")
    op.execute("DROP TYPE IF EXISTS booking_status")
