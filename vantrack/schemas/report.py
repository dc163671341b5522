"""Pydantic schemas for the incident report log."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ValidationInfo, field_validator

from vantrack.schemas.common import ensure_utc, require_text


class ReportCreate(BaseModel):
    user_id: str
    user_name: str
    type: str
    message: str

    @field_validator("user_id", "user_name", "type")
    @classmethod
    def _short(cls, v: str, info: ValidationInfo) -> str:
        return require_text(v, info.field_name or "Field")

    @field_validator("message")
    @classmethod
    def _message(cls, v: str) -> str:
        return require_text(v, "Message", 2000)


class ReportResolve(BaseModel):
    report_id: str


class ReportRead(BaseModel):
    id: str
    user_id: str
    user_name: str
    type: str
    message: str
    status: str
    created_at: datetime | None = None

    model_config = {"from_attributes": True}

    @field_validator("created_at")
    @classmethod
    def _utc(cls, v: datetime | None) -> datetime | None:
        return ensure_utc(v)


class ReportResponse(BaseModel):
    success: bool = True
    report: ReportRead


class ReportListResponse(BaseModel):
    success: bool = True
    reports: list[ReportRead]
