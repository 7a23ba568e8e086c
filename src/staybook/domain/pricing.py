"""Booking price calculation.

A stay costs ``nights * price_per_night`` plus one flat fee on that
subtotal. The fee stands in for cleaning and service charges together; the
property's ``cleaning_fee`` column is not part of the computation.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from decimal import ROUND_HALF_UP, Decimal

from staybook.infra.booking_settings import DEFAULT_SERVICE_FEE_PERCENT

DEFAULT_FEE_RATE = DEFAULT_SERVICE_FEE_PERCENT / 100


@dataclass(frozen=True)
class PriceBreakdown:
    """Price components returned alongside a booking."""

    nights: int
    price_per_night: int
    subtotal: int
    fee: int
    total: int

    def to_dict(self) -> dict[str, int]:
        return asdict(self)


def compute_price(
    nights: int,
    price_per_night: int,
    fee_rate: Decimal = DEFAULT_FEE_RATE,
) -> PriceBreakdown:
    """Compute the price breakdown for a stay.

    The fee is rounded half-up to a whole amount, so 0.5 always rounds
    away from zero rather than to the nearest even number.

    Example:
        >>> compute_price(3, 25000).total
        82500
    """
    if nights < 1:
        raise ValueError("nights must be at least 1")
    if price_per_night < 0:
        raise ValueError("price_per_night must not be negative")

    subtotal = nights * price_per_night
    fee = int((Decimal(subtotal) * Decimal(fee_rate)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
    return PriceBreakdown(
        nights=nights,
        price_per_night=price_per_night,
        subtotal=subtotal,
        fee=fee,
        total=subtotal + fee,
    )
