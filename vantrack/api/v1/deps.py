"""
FastAPI dependencies: auth guards and database session.
"""

from __future__ import annotations

from typing import Optional

from fastapi import Cookie, Depends
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.ext.asyncio import AsyncSession

from vantrack.core.exceptions import ForbiddenError, UnauthorizedError
from vantrack.core.security import decode_access_token
from vantrack.db.session import get_async_session as get_db
from vantrack.models.user import User

__all__ = ["get_db", "get_current_user", "get_current_active_user", "require_operator"]

# auto_error=False so we can fall back to the cookie when the header is missing
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login", auto_error=False)


# ── Auth dependencies ───────────────────────────────────────────────
async def get_current_user(
    token: Optional[str] = Depends(oauth2_scheme),
    access_token: Optional[str] = Cookie(default=None),
    db: AsyncSession = Depends(get_db),
) -> User:
    """Decode JWT from Header OR Cookie, look up user."""
    final_token = token
    if not final_token and access_token:
        # Cookie is set as "Bearer <token>"
        final_token = access_token.removeprefix("Bearer ").strip()

    if not final_token:
        raise UnauthorizedError()

    payload = decode_access_token(final_token)
    if payload is None or payload.get("sub") is None:
        raise UnauthorizedError()

    user = await db.get(User, str(payload["sub"]))
    if user is None:
        raise UnauthorizedError()
    return user


async def get_current_active_user(
    current_user: User = Depends(get_current_user),
) -> User:
    """Reject deactivated accounts."""
    if not current_user.is_active:
        raise ForbiddenError("Inactive user account")
    return current_user


async def require_operator(
    current_user: User = Depends(get_current_active_user),
) -> User:
    """Only allow the operator role to proceed."""
    if current_user.role != "operator":
        raise ForbiddenError()
    return current_user
