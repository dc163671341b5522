"""
Incident report endpoints and the service health probe.

- Any authenticated user can file a report.
- Listing and resolving are operator-only.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from vantrack.api.v1.deps import get_current_active_user, get_db, require_operator
from vantrack.models.user import User
from vantrack.schemas.common import HealthResponse, SuccessResponse
from vantrack.schemas.report import (ReportCreate, ReportListResponse,
                                     ReportRead, ReportResolve, ReportResponse)
from vantrack.services import reports as report_service

router = APIRouter(tags=["reports"])
logger = logging.getLogger(__name__)


@router.post("/reports", response_model=ReportResponse, status_code=201)
async def submit_report(
    body: ReportCreate,
    db: AsyncSession = Depends(get_db),
    _user: User = Depends(get_current_active_user),
) -> ReportResponse:
    report = await report_service.submit(db, body.user_id, body.user_name, body.type, body.message)
    return ReportResponse(report=ReportRead.model_validate(report))


@router.get("/reports", response_model=ReportListResponse)
async def list_reports(
    db: AsyncSession = Depends(get_db),
    _operator: User = Depends(require_operator),
) -> ReportListResponse:
    """All reports, newest first."""
    reports = await report_service.list_all(db)
    return ReportListResponse(reports=[ReportRead.model_validate(r) for r in reports])


@router.post("/reports/resolve", response_model=SuccessResponse)
async def resolve_report(
    body: ReportResolve,
    db: AsyncSession = Depends(get_db),
    _operator: User = Depends(require_operator),
) -> SuccessResponse:
    await report_service.resolve(db, body.report_id)
    return SuccessResponse()


# ── Health (PUBLIC) ─────────────────────────────────────────────────
@router.get("/health", response_model=HealthResponse)
async def health(db: AsyncSession = Depends(get_db)) -> HealthResponse:
    try:
        await db.execute(text("SELECT 1"))
        db_ok = True
    except SQLAlchemyError as exc:
        logger.warning("Health check failed: %s", exc)
        db_ok = False
    return HealthResponse(db=db_ok, status="ok" if db_ok else "degraded")
