"""Shared response shapes and field helpers."""

from __future__ import annotations

from datetime import datetime, timezone

from pydantic import BaseModel


def ensure_utc(dt: datetime | None) -> datetime | None:
    """Normalise a potentially-naive timestamp (SQLite) to UTC-aware."""
    if dt is not None and dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt


def require_text(v: str, field: str, max_len: int = 200) -> str:
    v = v.strip()
    if not v:
        raise ValueError(f"{field} must not be empty")
    if len(v) > max_len:
        raise ValueError(f"{field} must not exceed {max_len} characters")
    return v


class SuccessResponse(BaseModel):
    success: bool = True


class HealthResponse(BaseModel):
    db: bool
    status: str
