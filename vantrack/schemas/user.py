"""Pydantic schemas for signup, profile and user listing."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, field_validator

from vantrack.models.user import ROLES
from vantrack.schemas.common import ensure_utc, require_text


class UserCreate(BaseModel):
    id: str | None = None
    name: str
    email: str
    password: str
    role: str = "rider"
    capacity: int | None = None

    @field_validator("name")
    @classmethod
    def _name(cls, v: str) -> str:
        return require_text(v, "Name")

    @field_validator("email")
    @classmethod
    def _normalise_email(cls, v: str) -> str:
        v = v.strip().lower()
        if "@" not in v:
            raise ValueError("Invalid email address")
        return v

    @field_validator("password")
    @classmethod
    def _password(cls, v: str) -> str:
        if len(v) < 6:
            raise ValueError("Password must be at least 6 characters")
        return v

    @field_validator("role")
    @classmethod
    def _validate_role(cls, v: str) -> str:
        if v not in ROLES:
            raise ValueError(f"Role must be one of: {', '.join(ROLES)}")
        return v


class UserUpdate(BaseModel):
    name: str | None = None
    capacity: int | None = None
    password: str | None = None

    @field_validator("capacity")
    @classmethod
    def _capacity(cls, v: int | None) -> int | None:
        if v is not None and v < 0:
            raise ValueError("Capacity must not be negative")
        return v

    @field_validator("password")
    @classmethod
    def _password(cls, v: str | None) -> str | None:
        if v is not None and len(v) < 6:
            raise ValueError("Password must be at least 6 characters")
        return v


class UserActivation(BaseModel):
    is_active: bool


class UserRead(BaseModel):
    id: str
    name: str
    email: str
    role: str
    capacity: int
    cluster_id: str | None = None
    is_active: bool = True
    created_at: datetime | None = None

    model_config = {"from_attributes": True}

    @field_validator("created_at")
    @classmethod
    def _utc(cls, v: datetime | None) -> datetime | None:
        return ensure_utc(v)


class UserResponse(BaseModel):
    success: bool = True
    user: UserRead


class UserListResponse(BaseModel):
    success: bool = True
    users: list[UserRead]
