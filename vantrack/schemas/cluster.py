"""Pydantic schemas for clusters, membership and attendance."""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ValidationInfo, field_validator

from vantrack.schemas.common import ensure_utc, require_text
from vantrack.schemas.user import UserRead


# ── Cluster ─────────────────────────────────────────────────────────
class ClusterCreate(BaseModel):
    name: str
    driver_id: str

    @field_validator("name")
    @classmethod
    def _name(cls, v: str) -> str:
        return require_text(v, "Name")

    @field_validator("driver_id")
    @classmethod
    def _driver(cls, v: str) -> str:
        return require_text(v, "Driver id", 64)


class ClusterJoin(BaseModel):
    code: str
    user_id: str

    @field_validator("code")
    @classmethod
    def _code(cls, v: str) -> str:
        v = v.strip().upper()
        if not v.isalnum() or len(v) > 16:
            raise ValueError("Code must be 1-16 alphanumeric characters")
        return v

    @field_validator("user_id")
    @classmethod
    def _user(cls, v: str) -> str:
        return require_text(v, "User id", 64)


class ClusterLeave(BaseModel):
    user_id: str

    @field_validator("user_id")
    @classmethod
    def _user(cls, v: str) -> str:
        return require_text(v, "User id", 64)


class ClusterRead(BaseModel):
    id: str
    name: str
    code: str
    driver_id: str
    members: list[str]
    capacity: int
    created_at: datetime | None = None

    model_config = {"from_attributes": True}

    @field_validator("created_at")
    @classmethod
    def _utc(cls, v: datetime | None) -> datetime | None:
        return ensure_utc(v)


class ClusterResponse(BaseModel):
    success: bool = True
    cluster: ClusterRead | None = None


class ClusterOverviewResponse(BaseModel):
    """Composite view polled by the driver's dashboard."""

    success: bool = True
    cluster: ClusterRead | None = None
    members: list[UserRead] = []
    attendance: dict[str, str] = {}


class MemberListResponse(BaseModel):
    success: bool = True
    members: list[UserRead]


# ── Attendance ──────────────────────────────────────────────────────
class AttendanceMark(BaseModel):
    user_id: str
    cluster_id: str
    status: Literal["coming", "not_coming"]

    @field_validator("user_id", "cluster_id")
    @classmethod
    def _ids(cls, v: str, info: ValidationInfo) -> str:
        return require_text(v, info.field_name or "Id", 64)
