"""
AttendanceRecord model: one rider's declaration for one cluster and day.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import (Column, DateTime, Index, Integer, String,
                        UniqueConstraint)

from vantrack.db.base import Base

ATTENDANCE_STATUSES = ("coming", "not_coming")


class AttendanceRecord(Base):
    __tablename__ = "attendance"
    __table_args__ = (
        UniqueConstraint("user_id", "cluster_id", "date", name="uq_attendance_user_cluster_date"),
        Index("ix_attendance_cluster_date", "cluster_id", "date"),
    )

    id: int = Column(Integer, primary_key=True, index=True)  # type: ignore[assignment]
    user_id: str = Column(String(64), nullable=False)  # type: ignore[assignment]
    cluster_id: str = Column(String(64), nullable=False)  # type: ignore[assignment]
    date: str = Column(String(10), nullable=False)  # type: ignore[assignment]  # YYYY-MM-DD (UTC)
    status: str = Column(String(20), nullable=False)  # type: ignore[assignment]  # coming | not_coming
    updated_at: datetime = Column(  # type: ignore[assignment]
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )
