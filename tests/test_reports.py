"""Tests for the incident report log."""

import pytest
from httpx import AsyncClient

from vantrack.core.exceptions import NotFoundError, ValidationError
from vantrack.services import reports as report_service


async def _submit(client: AsyncClient, message: str = "Van was late") -> dict:
    resp = await client.post(
        "/api/v1/reports",
        json={"user_id": "R1", "user_name": "Rita", "type": "delay", "message": message},
    )
    assert resp.status_code == 201
    return resp.json()["report"]


@pytest.mark.asyncio
async def test_submit_report_starts_pending(async_client: AsyncClient):
    report = await _submit(async_client)
    assert report["status"] == "pending"
    assert report["type"] == "delay"
    assert report["user_name"] == "Rita"
    assert report["id"]
    assert report["created_at"]


@pytest.mark.asyncio
async def test_list_reports_newest_first(async_client: AsyncClient):
    await _submit(async_client, "first")
    await _submit(async_client, "second")
    resp = await async_client.get("/api/v1/reports")
    assert resp.status_code == 200
    messages = [r["message"] for r in resp.json()["reports"]]
    assert messages == ["second", "first"]


@pytest.mark.asyncio
async def test_resolve_is_idempotent(async_client: AsyncClient):
    report = await _submit(async_client)
    for _ in range(2):
        resp = await async_client.post("/api/v1/reports/resolve", json={"report_id": report["id"]})
        assert resp.json() == {"success": True}

    reports = (await async_client.get("/api/v1/reports")).json()["reports"]
    assert reports[0]["status"] == "resolved"


@pytest.mark.asyncio
async def test_resolve_unknown_report(async_client: AsyncClient):
    resp = await async_client.post("/api/v1/reports/resolve", json={"report_id": "missing"})
    assert resp.status_code == 404
    assert resp.json() == {"success": False, "error": "Report not found"}


@pytest.mark.asyncio
async def test_submit_requires_message(async_client: AsyncClient):
    resp = await async_client.post(
        "/api/v1/reports",
        json={"user_id": "R1", "user_name": "Rita", "type": "delay", "message": "   "},
    )
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_service_validation(db_session):
    with pytest.raises(ValidationError):
        await report_service.submit(db_session, "R1", "", "delay", "msg")
    with pytest.raises(NotFoundError):
        await report_service.resolve(db_session, "nope")


@pytest.mark.asyncio
async def test_health(async_client: AsyncClient):
    resp = await async_client.get("/api/v1/health")
    assert resp.status_code == 200
    assert resp.json() == {"db": True, "status": "ok"}


@pytest.mark.asyncio
async def test_service_stores_category_as_type(db_session):
    report = await report_service.submit(
        db_session, user_id="R1", user_name="Rita", category="breakdown", message="Flat tyre"
    )
    assert report.type == "breakdown"
    assert report.status == "pending"
