"""
Cluster & ClusterMember models.

A cluster is one driver plus the riders who joined with its code. Membership
is stored one row per rider so that a join is a single atomic insert guarded
by the ``(cluster_id, user_id)`` unique constraint.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import (Column, DateTime, ForeignKey, Integer, String,
                        UniqueConstraint)
from sqlalchemy.orm import relationship

from vantrack.db.base import Base
from vantrack.models.user import new_id


class Cluster(Base):
    __tablename__ = "clusters"

    id: str = Column(String(64), primary_key=True, default=new_id)  # type: ignore[assignment]
    name: str = Column(String(200), nullable=False)  # type: ignore[assignment]
    code: str = Column(String(16), unique=True, nullable=False, index=True)  # type: ignore[assignment]
    # one cluster per driver
    driver_id: str = Column(String(64), unique=True, nullable=False, index=True)  # type: ignore[assignment]
    capacity: int = Column(Integer, nullable=False, default=12)  # type: ignore[assignment]
    created_at: datetime = Column(  # type: ignore[assignment]
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
    )

    memberships = relationship(
        "ClusterMember",
        back_populates="cluster",
        cascade="all, delete-orphan",
        order_by="ClusterMember.id",
        lazy="selectin",
    )

    @property
    def members(self) -> list[str]:
        """Member user ids in join order."""
        return [m.user_id for m in self.memberships]


class ClusterMember(Base):
    __tablename__ = "cluster_members"
    __table_args__ = (
        UniqueConstraint("cluster_id", "user_id", name="uq_cluster_member"),
    )

    id: int = Column(Integer, primary_key=True, autoincrement=True)  # type: ignore[assignment]
    cluster_id: str = Column(String(64), ForeignKey("clusters.id"), nullable=False, index=True)  # type: ignore[assignment]
    user_id: str = Column(String(64), nullable=False, index=True)  # type: ignore[assignment]
    joined_at: datetime = Column(  # type: ignore[assignment]
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
    )

    cluster = relationship("Cluster", back_populates="memberships")
