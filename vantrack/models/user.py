"""
User model: identity, role and the rider's / driver's cluster reference.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, DateTime, Integer, String

from vantrack.db.base import Base

ROLES = ("rider", "driver", "operator")


def new_id() -> str:
    return uuid.uuid4().hex


class User(Base):
    __tablename__ = "users"

    id: str = Column(String(64), primary_key=True, default=new_id)  # type: ignore[assignment]
    name: str = Column(String(200), nullable=False)  # type: ignore[assignment]
    email: str = Column(String(320), unique=True, nullable=False, index=True)  # type: ignore[assignment]
    hashed_password: str = Column(String(128), nullable=False)  # type: ignore[assignment]
    role: str = Column(  # type: ignore[assignment]
        String(20),
        nullable=False,
        default="rider",
        server_default="rider",
    )  # rider | driver | operator
    capacity: int = Column(Integer, nullable=False, default=0, server_default="0")  # type: ignore[assignment]
    cluster_id: str | None = Column(String(64), nullable=True, index=True)  # type: ignore[assignment]
    is_active: bool = Column(Boolean, default=True, server_default="true")  # type: ignore[assignment]
    created_at: datetime = Column(  # type: ignore[assignment]
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
    )
