"""Caller identity for owner-scoped gig routes.

Tokens arrive as `Authorization: Bearer <userId>:<secret>`; the part before
the colon is the caller id. Verifying the secret belongs to the session
service and is not done here.
"""
from typing import Optional

from fastapi import Header, HTTPException


def _user_id_from_header(authorization: Optional[str]) -> Optional[str]:
    if not authorization or not authorization.startswith("Bearer "):
        return None
    token = authorization.split(" ", 1)[1].strip()
    if ":" not in token:
        return None
    user_id = token.split(":", 1)[0].strip()
    return user_id or None


async def optional_user(authorization: Optional[str] = Header(None)) -> Optional[str]:
    """Return the caller id if a usable bearer token is present."""
    return _user_id_from_header(authorization)


async def require_user(authorization: Optional[str] = Header(None)) -> str:
    """Return the caller id or reject the request with 401."""
    if not authorization or not authorization.startswith("Bearer "):
        raise HTTPException(status_code=401, detail="No token provided. Authorization required.")
    user_id = _user_id_from_header(authorization)
    if user_id is None:
        raise HTTPException(status_code=401, detail="Invalid token. Authorization required.")
    return user_id
