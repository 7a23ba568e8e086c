"""JWT bearer authentication.

Identity is owned by the external auth service; this module only verifies
its HS256 tokens and exposes the subject as the acting user.

Provides:
- verify_token(): Validates JWT and returns the subject claim
- get_current_user(): FastAPI dependency for authenticated user context
"""

from __future__ import annotations

import os
from dataclasses import dataclass

import jwt
from fastapi import HTTPException, Request

_ALGORITHMS = ["HS256"]


@dataclass
class CurrentUser:
    """Authenticated user context."""

    id: str


def _get_settings() -> dict[str, str | None]:
    """Load JWT settings from environment."""
    return {
        "secret": os.environ.get("JWT_SECRET"),
        "audience": os.environ.get("JWT_AUDIENCE") or None,
        "issuer": os.environ.get("JWT_ISSUER") or None,
    }


def verify_token(token: str) -> str:
    """Verify JWT and return subject claim.

    Raises:
        HTTPException: 401 if token is invalid, expired or auth is not
            configured.
    """
    settings = _get_settings()
    secret = settings["secret"]
    if not secret:
        raise HTTPException(status_code=401, detail="Auth not configured")

    required = ["exp", "sub"]
    if settings["audience"]:
        required.append("aud")
    if settings["issuer"]:
        required.append("iss")

    try:
        payload = jwt.decode(
            token,
            secret,
            algorithms=_ALGORITHMS,
            audience=settings["audience"],
            issuer=settings["issuer"],
            options={"require": required},
        )
    except jwt.ExpiredSignatureError:
        raise HTTPException(status_code=401, detail="Token expired")
    except jwt.InvalidTokenError:
        raise HTTPException(status_code=401, detail="Invalid token")

    sub = payload.get("sub")
    if not sub:
        raise HTTPException(status_code=401, detail="Invalid token")

    return str(sub)


def _extract_bearer_token(request: Request) -> str:
    """Extract Bearer token from Authorization header.

    Raises:
        HTTPException: 401 if header missing or malformed.
    """
    auth_header = request.headers.get("Authorization")
    if not auth_header:
        raise HTTPException(status_code=401, detail="User not authenticated")

    parts = auth_header.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        raise HTTPException(status_code=401, detail="Invalid authorization header")

    return parts[1]


def get_current_user(request: Request) -> CurrentUser:
    """FastAPI dependency: get authenticated user."""
    token = _extract_bearer_token(request)
    return CurrentUser(id=verify_token(token))

