"""Booking policy configuration.

Values come from environment variables and are read on every call, so tests
can patch os.environ without reloading modules.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation

DEFAULT_SERVICE_FEE_PERCENT = Decimal("10")
DEFAULT_CANCELLATION_CUTOFF_DAYS = 2
DEFAULT_OPEN_WINDOW_YEARS = 100


@dataclass(frozen=True)
class BookingSettings:
    """Policy knobs for the reservation engine.

    Attributes:
        service_fee_rate: Flat fee applied on the subtotal (0.10 = 10%).
            Stands in for cleaning and service charges combined.
        cancellation_cutoff_days: Guests may cancel up to this many days
            before check-in.
        open_window_years: Length of the free window a new property's
            calendar starts with.
    """

    service_fee_rate: Decimal = DEFAULT_SERVICE_FEE_PERCENT / 100
    cancellation_cutoff_days: int = DEFAULT_CANCELLATION_CUTOFF_DAYS
    open_window_years: int = DEFAULT_OPEN_WINDOW_YEARS


def _env_int(name: str, default: int, *, minimum: int = 0) -> int:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        raise RuntimeError(f"{name} must be an integer, got {raw!r}")
    if value < minimum:
        raise RuntimeError(f"{name} must be >= {minimum}, got {value}")
    return value


def _env_percent(name: str, default: Decimal) -> Decimal:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        value = Decimal(raw)
    except InvalidOperation:
        raise RuntimeError(f"{name} must be a number, got {raw!r}")
    if value < 0 or value > 100:
        raise RuntimeError(f"{name} must be between 0 and 100, got {raw}")
    return value


def get_booking_settings() -> BookingSettings:
    """Load booking settings from the environment.

    Environment:
        BOOKING_SERVICE_FEE_PERCENT: Fee percentage (default 10).
        BOOKING_CANCELLATION_CUTOFF_DAYS: Cutoff in days (default 2).
        BOOKING_OPEN_WINDOW_YEARS: Initial calendar span (default 100).

    Raises:
        RuntimeError: If a variable is set to an invalid value.
    """
    percent = _env_percent("BOOKING_SERVICE_FEE_PERCENT", DEFAULT_SERVICE_FEE_PERCENT)
    return BookingSettings(
        service_fee_rate=percent / 100,
        cancellation_cutoff_days=_env_int(
            "BOOKING_CANCELLATION_CUTOFF_DAYS", DEFAULT_CANCELLATION_CUTOFF_DAYS
        ),
        open_window_years=_env_int(
            "BOOKING_OPEN_WINDOW_YEARS", DEFAULT_OPEN_WINDOW_YEARS, minimum=1
        ),
    )
