"""Booking endpoints for guests and hosts.

Guests create, list, view and cancel their own bookings; hosts list the
bookings on their properties and override booking status.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Path
from pydantic import BaseModel, Field

from staybook.api.auth import CurrentUser, get_current_user
from staybook.api.errors import to_http_error
from staybook.domain.errors import ReservationError
from staybook.observability.correlation import get_correlation_id
from staybook.observability.logging import get_logger
from staybook.observability.redaction import safe_log_context


class CreateBookingRequest(BaseModel):
    """Request body for booking creation."""

    property_id: str = Field(..., min_length=1)
    # Dates or ISO datetimes; normalized to the UTC day by the domain
    check_in: str = Field(..., min_length=1)
    check_out: str = Field(..., min_length=1)
    guests: int = Field(..., ge=1)


class UpdateStatusRequest(BaseModel):
    """Request body for host status override."""

    status: str


router = APIRouter(prefix="/bookings", tags=["bookings"])

logger = get_logger(__name__)


@router.post("", status_code=201)
def create_booking_endpoint(
    body: CreateBookingRequest,
    user: CurrentUser = Depends(get_current_user),
) -> dict:
    """Book a stay. Returns the booking with its price breakdown."""
    from staybook.domain.reservations import create_booking

    try:
        result = create_booking(
            property_id=body.property_id,
            user_id=user.id,
            check_in=body.check_in,
            check_out=body.check_out,
            guests=body.guests,
        )
    except ReservationError as exc:
        logger.info(
            "booking request rejected",
            extra={
                "extra_fields": safe_log_context(
                    correlationId=get_correlation_id(),
                    property_id=body.property_id,
                    code=exc.code,
                )
            },
        )
        raise to_http_error(exc)

    return result.to_dict()


@router.get("/mine")
def list_my_bookings(user: CurrentUser = Depends(get_current_user)) -> list[dict]:
    """The authenticated guest's bookings, newest first."""
    from staybook.domain.reservations import list_guest_bookings

    return [result.to_dict() for result in list_guest_bookings(user.id)]


@router.get("/host")
def list_my_property_bookings(user: CurrentUser = Depends(get_current_user)) -> list[dict]:
    """Bookings on the properties the authenticated user owns."""
    from staybook.domain.reservations import list_host_bookings

    return [booking.to_dict() for booking in list_host_bookings(user.id)]


@router.get("/check/{property_id}")
def check_booking(
    property_id: str = Path(..., description="Property ID"),
    user: CurrentUser = Depends(get_current_user),
) -> dict:
    """Whether the guest holds an active booking on the property."""
    from staybook.domain.reservations import has_active_booking

    return {"has_booking": has_active_booking(property_id=property_id, user_id=user.id)}


@router.get("/{booking_id}")
def get_booking_endpoint(
    booking_id: str = Path(..., description="Booking UUID"),
    user: CurrentUser = Depends(get_current_user),
) -> dict:
    """Booking details for its guest."""
    from staybook.domain.reservations import get_guest_booking

    try:
        booking = get_guest_booking(booking_id, acting_user_id=user.id)
    except ReservationError as exc:
        raise to_http_error(exc)

    return booking.to_dict()


@router.post("/{booking_id}/cancel")
def cancel_booking_endpoint(
    booking_id: str = Path(..., description="Booking UUID"),
    user: CurrentUser = Depends(get_current_user),
) -> dict:
    """Guest cancellation, allowed until the cutoff before check-in."""
    from staybook.domain.reservations import cancel_booking

    try:
        booking = cancel_booking(booking_id, acting_user_id=user.id)
    except ReservationError as exc:
        raise to_http_error(exc)

    return {"message": "Booking cancelled successfully", "booking": booking.to_dict()}


@router.put("/{booking_id}/status")
def update_booking_status_endpoint(
    body: UpdateStatusRequest,
    booking_id: str = Path(..., description="Booking UUID"),
    user: CurrentUser = Depends(get_current_user),
) -> dict:
    """Host override of a booking's status."""
    from staybook.domain.reservations import change_booking_status

    try:
        booking = change_booking_status(
            booking_id,
            acting_user_id=user.id,
            status=body.status,
        )
    except ReservationError as exc:
        raise to_http_error(exc)

    return {"message": "Booking status updated successfully", "booking": booking.to_dict()}
