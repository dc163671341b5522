"""
Presence models: last known position of each driver (van) and member.

Rows are keyed by the driver / member id and overwritten on every push;
nothing is ever deleted, entries simply go stale.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, DateTime, Float, String

from vantrack.db.base import Base


class DriverLocation(Base):
    __tablename__ = "driver_locations"

    driver_id: str = Column(String(64), primary_key=True)  # type: ignore[assignment]
    lat: float = Column(Float, nullable=False)  # type: ignore[assignment]
    lng: float = Column(Float, nullable=False)  # type: ignore[assignment]
    is_driving: bool = Column(Boolean, nullable=False, default=False)  # type: ignore[assignment]
    last_updated: datetime = Column(  # type: ignore[assignment]
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
    )


class MemberLocation(Base):
    __tablename__ = "member_locations"

    member_id: str = Column(String(64), primary_key=True)  # type: ignore[assignment]
    lat: float = Column(Float, nullable=False)  # type: ignore[assignment]
    lng: float = Column(Float, nullable=False)  # type: ignore[assignment]
    name: str = Column(String(200), nullable=False, default="Friend")  # type: ignore[assignment]
    arrived: bool = Column(Boolean, nullable=False, default=False)  # type: ignore[assignment]
    last_updated: datetime = Column(  # type: ignore[assignment]
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
    )
