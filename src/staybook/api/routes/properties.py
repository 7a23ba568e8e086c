"""Property availability endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Path

from staybook.api.auth import CurrentUser, get_current_user
from staybook.api.errors import to_http_error
from staybook.domain.errors import ReservationError

router = APIRouter(prefix="/properties", tags=["properties"])


@router.get("/{property_id}/availability")
def get_availability(
    property_id: str = Path(..., description="Property ID"),
    user: CurrentUser = Depends(get_current_user),
) -> dict:
    """Free windows and unit capacity of a property."""
    from staybook.domain.reservations import get_property_availability

    try:
        prop = get_property_availability(property_id)
    except ReservationError as exc:
        raise to_http_error(exc)

    return {
        "property_id": prop.id,
        "number_of_units": prop.number_of_units,
        "calendar_open": prop.calendar_open,
        "availability": prop.availability.to_rows() if prop.calendar_open else [],
    }


@router.post("/{property_id}/availability/open")
def open_availability(
    property_id: str = Path(..., description="Property ID"),
    user: CurrentUser = Depends(get_current_user),
) -> dict:
    """Give a newly listed property its initial free window (owner only)."""
    from staybook.domain.reservations import open_property_calendar

    try:
        calendar = open_property_calendar(property_id, acting_user_id=user.id)
    except ReservationError as exc:
        raise to_http_error(exc)

    return {"property_id": property_id, "availability": calendar.to_rows()}
