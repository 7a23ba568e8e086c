"""Mapping from domain errors to HTTP responses."""

from __future__ import annotations

from fastapi import HTTPException

from staybook.domain.errors import (
    Forbidden,
    FullyBooked,
    NotFound,
    PolicyViolation,
    ReservationError,
)


def to_http_error(exc: ReservationError) -> HTTPException:
    """Translate a domain error into the HTTP error returned to clients.

    NotFound -> 404, Forbidden -> 403, FullyBooked -> 409 (with remaining
    units), everything else -> 400. PolicyViolation also names the policy.
    """
    detail: dict = {"code": exc.code, "message": str(exc)}

    if isinstance(exc, NotFound):
        return HTTPException(status_code=404, detail=detail)
    if isinstance(exc, Forbidden):
        return HTTPException(status_code=403, detail=detail)
    if isinstance(exc, FullyBooked):
        detail["remaining"] = exc.remaining
        return HTTPException(status_code=409, detail=detail)
    if isinstance(exc, PolicyViolation):
        detail["policy"] = exc.policy
    return HTTPException(status_code=400, detail=detail)
