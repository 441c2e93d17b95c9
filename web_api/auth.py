"""
JWT authentication utilities for the web API.

Tokens are issued by the TalkTime identity service and carry the user id in
``sub`` and the user's role in ``role``. They arrive either in the ``session``
cookie or as an ``Authorization: Bearer`` header.
"""

import os
from datetime import datetime, timedelta, timezone

import jwt
from fastapi import HTTPException, Request

JWT_ALGORITHM = "HS256"
JWT_EXPIRATION_HOURS = 24

VALID_ROLES = ("volunteer", "student", "admin")


def _get_secret() -> str:
    secret = os.environ.get("JWT_SECRET")
    if not secret:
        raise ValueError("JWT_SECRET environment variable not set")
    return secret


def create_jwt(user_id: int, role: str) -> str:
    """
    Create a signed JWT token for a user.

    Used by tests and local tooling; production tokens come from the
    identity service with the same claims.
    """
    now = datetime.now(timezone.utc)
    payload = {
        "sub": str(user_id),
        "role": role,
        "iat": now,
        "exp": now + timedelta(hours=JWT_EXPIRATION_HOURS),
    }
    return jwt.encode(payload, _get_secret(), algorithm=JWT_ALGORITHM)


def verify_jwt(token: str) -> dict | None:
    """
    Verify and decode a JWT token.

    Returns:
        Decoded payload dict if valid, None if invalid
    """
    try:
        return jwt.decode(token, _get_secret(), algorithms=[JWT_ALGORITHM])
    except jwt.InvalidTokenError:
        return None


def _token_from_request(request: Request) -> str | None:
    token = request.cookies.get("session")
    if token:
        return token
    header = request.headers.get("Authorization", "")
    if header.lower().startswith("bearer "):
        return header[7:].strip() or None
    return None


async def get_current_user(request: Request) -> dict:
    """
    FastAPI dependency to get the current authenticated user.

    Returns:
        {"user_id": int, "role": str}

    Raises:
        HTTPException: 401 if not authenticated or invalid token
    """
    token = _token_from_request(request)
    if not token:
        raise HTTPException(status_code=401, detail="Not authenticated")

    payload = verify_jwt(token)
    if not payload:
        raise HTTPException(status_code=401, detail="Invalid or expired token")

    try:
        user_id = int(payload["sub"])
    except (KeyError, TypeError, ValueError):
        raise HTTPException(status_code=401, detail="Invalid token subject")

    role = payload.get("role")
    if role not in VALID_ROLES:
        raise HTTPException(status_code=401, detail="Invalid token role")

    return {"user_id": user_id, "role": role}
