"""
Attendance tracker: a rider's per-day "coming" / "not_coming" declaration.

Records are keyed by (user, cluster, UTC day). A new declaration for the same
day overwrites the previous one, and yesterday's records simply stop being
read, so no cleanup job is needed.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from vantrack.core.exceptions import NotFoundError, ValidationError
from vantrack.models.attendance import ATTENDANCE_STATUSES, AttendanceRecord
from vantrack.models.cluster import Cluster

logger = logging.getLogger(__name__)


def today_key() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%d")


async def _find(db: AsyncSession, user_id: str, cluster_id: str, day: str) -> AttendanceRecord | None:
    result = await db.execute(
        select(AttendanceRecord).where(
            AttendanceRecord.user_id == user_id,
            AttendanceRecord.cluster_id == cluster_id,
            AttendanceRecord.date == day,
        )
    )
    return result.scalar_one_or_none()


async def mark(db: AsyncSession, user_id: str, cluster_id: str, status: str) -> None:
    """Upsert today's status for ``user_id`` in ``cluster_id``."""
    if not user_id or not cluster_id:
        raise ValidationError("User id and cluster id are required")
    if status not in ATTENDANCE_STATUSES:
        raise ValidationError(f"Status must be one of: {', '.join(ATTENDANCE_STATUSES)}")
    if await db.get(Cluster, cluster_id) is None:
        raise NotFoundError("Cluster not found")

    day = today_key()
    record = await _find(db, user_id, cluster_id, day)
    if record is None:
        db.add(AttendanceRecord(user_id=user_id, cluster_id=cluster_id, date=day, status=status))
    else:
        record.status = status

    try:
        await db.commit()
    except IntegrityError:
        # Another request inserted today's row first; last write wins.
        await db.rollback()
        record = await _find(db, user_id, cluster_id, day)
        if record is None:
            raise
        record.status = status
        await db.commit()

    logger.info("Attendance %s for %s in cluster %s on %s", status, user_id, cluster_id, day)


async def get_for_cluster(db: AsyncSession, cluster_id: str) -> dict[str, str]:
    """Today's declarations for a cluster. Missing users are undeclared, not absent."""
    result = await db.execute(
        select(AttendanceRecord.user_id, AttendanceRecord.status).where(
            AttendanceRecord.cluster_id == cluster_id,
            AttendanceRecord.date == today_key(),
        )
    )
    return {user_id: status for user_id, status in result.all()}
