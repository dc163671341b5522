"""
Location / presence store: the last position pushed by every driver and member.

Each push overwrites the previous row for that id. The store does no distance
math; clients compute ETAs and tell it when a member has arrived.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from vantrack.core.config import settings
from vantrack.core.exceptions import NotFoundError
from vantrack.models.location import DriverLocation, MemberLocation

logger = logging.getLogger(__name__)

DEFAULT_MEMBER_NAME = "Friend"


def within_arrival_threshold(eta_seconds: float | None) -> bool:
    return eta_seconds is not None and eta_seconds <= settings.ARRIVAL_THRESHOLD_SECONDS


async def _upsert(db: AsyncSession, model, key: str, apply) -> None:
    """Load-or-create the row for ``key``, let ``apply`` mutate it, commit.

    A concurrent first push for the same key is retried once as an update.
    """
    for attempt in range(2):
        row = await db.get(model, key, populate_existing=True)
        if row is None:
            row = model()
            apply(row, None)
            db.add(row)
        else:
            apply(row, row)
        try:
            await db.commit()
            return
        except IntegrityError:
            await db.rollback()
            if attempt:
                raise


async def update_driver_location(
    db: AsyncSession, driver_id: str, lat: float, lng: float, is_driving: bool
) -> None:
    def apply(row: DriverLocation, _previous) -> None:
        row.driver_id = driver_id
        row.lat = lat
        row.lng = lng
        row.is_driving = bool(is_driving)
        row.last_updated = datetime.now(timezone.utc)

    await _upsert(db, DriverLocation, driver_id, apply)
    logger.info("Driver %s at (%s, %s) driving=%s", driver_id, lat, lng, is_driving)


async def update_member_location(
    db: AsyncSession,
    member_id: str,
    lat: float,
    lng: float,
    name: str | None = None,
    arrived: bool | None = None,
) -> None:
    """Overwrite a member's position; ``None`` for ``arrived`` or ``name`` keeps the stored value."""

    def apply(row: MemberLocation, previous: MemberLocation | None) -> None:
        row.member_id = member_id
        row.lat = lat
        row.lng = lng
        if name:
            row.name = name
        elif previous is None:
            row.name = DEFAULT_MEMBER_NAME
        if arrived is not None:
            row.arrived = arrived
        elif previous is None:
            row.arrived = False
        row.last_updated = datetime.now(timezone.utc)

    await _upsert(db, MemberLocation, member_id, apply)
    logger.info("Member %s at (%s, %s) arrived=%s", member_id, lat, lng, arrived)


async def mark_arrived(db: AsyncSession, member_id: str) -> None:
    row = await db.get(MemberLocation, member_id, populate_existing=True)
    if row is None:
        raise NotFoundError("Member has not shared a location yet")
    if not row.arrived:
        row.arrived = True
        await db.commit()
        logger.info("Member %s marked as arrived", member_id)


async def list_all(db: AsyncSession) -> dict[str, list]:
    vans = await db.execute(select(DriverLocation).order_by(DriverLocation.driver_id))
    members = await db.execute(select(MemberLocation).order_by(MemberLocation.member_id))
    return {
        "vans": list(vans.scalars().all()),
        "members": list(members.scalars().all()),
    }
