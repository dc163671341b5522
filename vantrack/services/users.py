"""
User accounts: signup, credential check and profile edits.
"""

from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from vantrack.core.config import settings
from vantrack.core.exceptions import (ConflictError, NotFoundError, UnauthorizedError,
                                     ValidationError)
from vantrack.core.security import get_password_hash, verify_password
from vantrack.models.user import User, new_id
from vantrack.schemas.user import UserCreate, UserUpdate

logger = logging.getLogger(__name__)


def driver_capacity(role: str, capacity: int | None) -> int:
    """Seats only mean something for drivers; a missing value gets the default."""
    if role != "driver":
        return 0
    if capacity is not None and capacity > 0:
        return capacity
    return settings.DEFAULT_DRIVER_CAPACITY


async def get_by_email(db: AsyncSession, email: str) -> User | None:
    result = await db.execute(select(User).where(User.email == email.strip().lower()))
    return result.scalar_one_or_none()


async def signup(db: AsyncSession, body: UserCreate) -> User:
    if await get_by_email(db, body.email) is not None:
        raise ConflictError("Email already exists")

    user_id = (body.id or "").strip() or new_id()
    if await db.get(User, user_id) is not None:
        raise ConflictError("User id already exists")

    user = User(
        id=user_id,
        name=body.name,
        email=body.email,
        hashed_password=get_password_hash(body.password),
        role=body.role,
        capacity=driver_capacity(body.role, body.capacity),
    )
    db.add(user)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise ConflictError("Email already exists")
    await db.refresh(user)
    logger.info("Signed up %s user %s", user.role, user.id)
    return user


async def authenticate(db: AsyncSession, email: str, password: str) -> User:
    user = await get_by_email(db, email)
    if user is None or not verify_password(password, user.hashed_password):
        raise UnauthorizedError("Incorrect email or password")
    return user


async def update_profile(db: AsyncSession, user: User, body: UserUpdate) -> User:
    changes = body.model_dump(exclude_unset=True)
    if changes.get("name") is not None:
        user.name = changes["name"].strip() or user.name
    if "capacity" in changes and user.role == "driver":
        user.capacity = driver_capacity(user.role, changes["capacity"])
    if changes.get("password"):
        user.hashed_password = get_password_hash(changes["password"])

    await db.commit()
    await db.refresh(user)
    logger.info("Updated profile of user %s", user.id)
    return user


async def list_users(db: AsyncSession) -> list[User]:
    result = await db.execute(select(User).order_by(User.created_at))
    return list(result.scalars().all())


async def set_active(db: AsyncSession, operator: User, user_id: str, active: bool) -> User:
    """Suspend or restore an account. Tokens already issued stop working on the next request."""
    if user_id == operator.id and not active:
        raise ValidationError("Operators cannot deactivate their own account")
    user = await db.get(User, user_id)
    if user is None:
        raise NotFoundError("User not found")
    if user.is_active != active:
        user.is_active = active
        await db.commit()
        logger.info("User %s %s by %s", user_id, "reactivated" if active else "deactivated", operator.id)
    return user
