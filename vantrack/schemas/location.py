"""Pydantic schemas for driver / member position pushes."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from vantrack.schemas.common import ensure_utc, require_text


class DriverLocationUpdate(BaseModel):
    van_id: str
    lat: float = Field(ge=-90, le=90)
    lng: float = Field(ge=-180, le=180)
    is_driving: bool = False

    @field_validator("van_id")
    @classmethod
    def _van(cls, v: str) -> str:
        return require_text(v, "Van id", 64)


class MemberLocationUpdate(BaseModel):
    id: str
    lat: float = Field(ge=-90, le=90)
    lng: float = Field(ge=-180, le=180)
    name: str | None = None
    arrived: bool | None = None
    # Client-computed ETA to the driver; at or under the arrival threshold flips ``arrived``.
    eta_seconds: float | None = Field(default=None, ge=0)

    @field_validator("id")
    @classmethod
    def _id(cls, v: str) -> str:
        return require_text(v, "Member id", 64)

    @field_validator("name")
    @classmethod
    def _name(cls, v: str | None) -> str | None:
        if v is None or not v.strip():
            return None
        return require_text(v, "Name")


class DriverLocationRead(BaseModel):
    id: str = Field(validation_alias="driver_id")
    lat: float
    lng: float
    is_driving: bool
    last_updated: datetime | None = None

    model_config = {"from_attributes": True}

    @field_validator("last_updated")
    @classmethod
    def _utc(cls, v: datetime | None) -> datetime | None:
        return ensure_utc(v)


class MemberLocationRead(BaseModel):
    id: str = Field(validation_alias="member_id")
    lat: float
    lng: float
    name: str
    arrived: bool
    last_updated: datetime | None = None

    model_config = {"from_attributes": True}

    @field_validator("last_updated")
    @classmethod
    def _utc(cls, v: datetime | None) -> datetime | None:
        return ensure_utc(v)


class LocationsResponse(BaseModel):
    vans: list[DriverLocationRead]
    members: list[MemberLocationRead]
