"""Public-facing routes."""

from fastapi import APIRouter

from staybook.api.routes import bookings, properties

router = APIRouter()


@router.get("/health")
def health() -> dict:
    """Health check endpoint."""
    return {"status": "ok"}


router.include_router(bookings.router)
router.include_router(properties.router)
