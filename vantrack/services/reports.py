"""
Report log: free-form incidents filed by users and resolved by operators.
"""

from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from vantrack.core.exceptions import NotFoundError, ValidationError
from vantrack.models.report import Report

logger = logging.getLogger(__name__)


async def submit(
    db: AsyncSession, user_id: str, user_name: str, category: str, message: str
) -> Report:
    if not (user_id and user_name and category and message):
        raise ValidationError("user_id, user_name, type and message are required")

    report = Report(user_id=user_id, user_name=user_name, type=category, message=message, status="pending")
    db.add(report)
    await db.commit()
    await db.refresh(report)
    logger.info("Report %s (%s) filed by %s", report.id, category, user_id)
    return report


async def list_all(db: AsyncSession) -> list[Report]:
    result = await db.execute(select(Report).order_by(Report.created_at.desc()))
    return list(result.scalars().all())


async def resolve(db: AsyncSession, report_id: str) -> Report:
    """Move a report to ``resolved``. Resolving twice is a no-op."""
    report = await db.get(Report, report_id)
    if report is None:
        raise NotFoundError("Report not found")
    if report.status != "resolved":
        report.status = "resolved"
        await db.commit()
        logger.info("Report %s resolved", report_id)
    return report
