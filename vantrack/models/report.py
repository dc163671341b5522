"""
Report model: user-filed incidents, ``pending`` until an operator resolves them.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, String, Text

from vantrack.db.base import Base
from vantrack.models.user import new_id


class Report(Base):
    __tablename__ = "reports"

    id: str = Column(String(64), primary_key=True, default=new_id)  # type: ignore[assignment]
    user_id: str = Column(String(64), nullable=False, index=True)  # type: ignore[assignment]
    user_name: str = Column(String(200), nullable=False)  # type: ignore[assignment]
    type: str = Column(String(50), nullable=False)  # type: ignore[assignment]
    message: str = Column(Text, nullable=False)  # type: ignore[assignment]
    status: str = Column(  # type: ignore[assignment]
        String(20),
        nullable=False,
        default="pending",
        server_default="pending",
    )  # pending | resolved
    created_at: datetime = Column(  # type: ignore[assignment]
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        index=True,
    )
