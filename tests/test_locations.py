"""Tests for driver / member position pushes and the /vans snapshot."""

import logging
from datetime import datetime, timezone

import pytest
from httpx import AsyncClient

from vantrack.core.exceptions import NotFoundError
from vantrack.services import presence


def _parse(ts: str) -> datetime:
    dt = datetime.fromisoformat(ts.replace("Z", "+00:00"))
    return dt if dt.tzinfo else dt.replace(tzinfo=timezone.utc)


async def _member(client: AsyncClient, member_id: str) -> dict:
    members = (await client.get("/api/v1/vans")).json()["members"]
    return next(m for m in members if m["id"] == member_id)


@pytest.mark.asyncio
async def test_driver_location_is_listed(async_client: AsyncClient):
    before = datetime.now(timezone.utc)
    resp = await async_client.post(
        "/api/v1/update-location",
        json={"van_id": "D1", "lat": 33.89, "lng": 35.50, "is_driving": True},
    )
    assert resp.json() == {"success": True}

    vans = (await async_client.get("/api/v1/vans")).json()["vans"]
    van = next(v for v in vans if v["id"] == "D1")
    assert van["is_driving"] is True
    assert van["lat"] == pytest.approx(33.89)
    assert van["lng"] == pytest.approx(35.50)
    assert _parse(van["last_updated"]) >= before


@pytest.mark.asyncio
async def test_driver_location_overwrites(async_client: AsyncClient):
    await async_client.post("/api/v1/update-location", json={"van_id": "D1", "lat": 1, "lng": 1, "is_driving": True})
    await async_client.post("/api/v1/update-location", json={"van_id": "D1", "lat": 2, "lng": 3, "is_driving": False})
    vans = (await async_client.get("/api/v1/vans")).json()["vans"]
    assert len(vans) == 1
    assert (vans[0]["lat"], vans[0]["lng"], vans[0]["is_driving"]) == (2, 3, False)


@pytest.mark.asyncio
async def test_out_of_range_coordinates_rejected(async_client: AsyncClient):
    resp = await async_client.post("/api/v1/update-location", json={"van_id": "D1", "lat": 91, "lng": 0})
    assert resp.status_code == 400
    resp = await async_client.post("/api/v1/update-member", json={"id": "M1", "lat": 0, "lng": -181})
    assert resp.status_code == 400
    assert (await async_client.get("/api/v1/vans")).json() == {"vans": [], "members": []}


@pytest.mark.asyncio
async def test_member_arrived_preserved_when_omitted(async_client: AsyncClient):
    await async_client.post("/api/v1/update-member", json={"id": "M1", "lat": 1, "lng": 1, "name": "Sam", "arrived": True})
    await async_client.post("/api/v1/update-member", json={"id": "M1", "lat": 2, "lng": 2})
    member = await _member(async_client, "M1")
    assert member["arrived"] is True
    assert member["name"] == "Sam"
    assert member["lat"] == 2


@pytest.mark.asyncio
async def test_member_arrived_defaults_and_explicit_values(async_client: AsyncClient):
    await async_client.post("/api/v1/update-member", json={"id": "M2", "lat": 1, "lng": 1})
    member = await _member(async_client, "M2")
    assert member["arrived"] is False
    assert member["name"] == "Friend"

    await async_client.post("/api/v1/update-member", json={"id": "M2", "lat": 1, "lng": 1, "arrived": True})
    assert (await _member(async_client, "M2"))["arrived"] is True

    # An explicit false is honoured (manual correction).
    await async_client.post("/api/v1/update-member", json={"id": "M2", "lat": 1, "lng": 1, "arrived": False})
    assert (await _member(async_client, "M2"))["arrived"] is False


@pytest.mark.asyncio
async def test_short_eta_marks_member_arrived(async_client: AsyncClient):
    await async_client.post("/api/v1/update-member", json={"id": "M3", "lat": 1, "lng": 1, "eta_seconds": 300})
    assert (await _member(async_client, "M3"))["arrived"] is False
    await async_client.post("/api/v1/update-member", json={"id": "M3", "lat": 1, "lng": 1, "eta_seconds": 60})
    assert (await _member(async_client, "M3"))["arrived"] is True


@pytest.mark.asyncio
async def test_mark_arrived_endpoint(async_client: AsyncClient):
    missing = await async_client.post("/api/v1/members/M4/arrived")
    assert missing.status_code == 404

    await async_client.post("/api/v1/update-member", json={"id": "M4", "lat": 1, "lng": 1})
    resp = await async_client.post("/api/v1/members/M4/arrived")
    assert resp.json() == {"success": True}
    assert (await _member(async_client, "M4"))["arrived"] is True


@pytest.mark.asyncio
async def test_vans_is_public(anon_client: AsyncClient):
    resp = await anon_client.get("/api/v1/vans")
    assert resp.status_code == 200
    assert resp.json() == {"vans": [], "members": []}


@pytest.mark.asyncio
async def test_position_push_requires_auth(anon_client: AsyncClient):
    resp = await anon_client.post("/api/v1/update-location", json={"van_id": "D1", "lat": 0, "lng": 0})
    assert resp.status_code == 401
    assert resp.json()["success"] is False


def test_arrival_threshold():
    assert presence.within_arrival_threshold(59.5)
    assert presence.within_arrival_threshold(60)
    assert not presence.within_arrival_threshold(61)
    assert not presence.within_arrival_threshold(None)


@pytest.mark.asyncio
async def test_service_level_upserts(db_session):
    await presence.update_member_location(db_session, "M5", 1.0, 2.0, "Lee", True)
    await presence.update_member_location(db_session, "M5", 3.0, 4.0)
    snapshot = await presence.list_all(db_session)
    [member] = snapshot["members"]
    assert (member.lat, member.lng, member.name, member.arrived) == (3.0, 4.0, "Lee", True)

    with pytest.raises(NotFoundError):
        await presence.mark_arrived(db_session, "nobody")


@pytest.mark.asyncio
async def test_member_upsert_race_preserves_arrived(session_factory, monkeypatch):
    """A first push that loses the insert race is replayed against the stored row."""
    async with session_factory() as first:
        await presence.update_member_location(first, "M7", 1.0, 1.0, "Sam", True)

    async with session_factory() as second:
        real_get = second.get
        calls = []

        async def get_missing_once(*args, **kwargs):
            calls.append(args)
            if len(calls) == 1:
                return None
            return await real_get(*args, **kwargs)

        monkeypatch.setattr(second, "get", get_missing_once)
        await presence.update_member_location(second, "M7", 2.0, 2.0)

    assert len(calls) == 2
    async with session_factory() as check:
        [member] = (await presence.list_all(check))["members"]
    assert (member.lat, member.name, member.arrived) == (2.0, "Sam", True)


@pytest.mark.asyncio
async def test_position_pushes_log_at_info(db_session, caplog):
    with caplog.at_level(logging.INFO, logger="vantrack.services.presence"):
        await presence.update_driver_location(db_session, "D9", 1.0, 2.0, True)
        await presence.update_member_location(db_session, "M9", 1.0, 2.0)
    pushed = [r.getMessage() for r in caplog.records if r.levelno == logging.INFO]
    assert any(m.startswith("Driver D9 ") for m in pushed)
    assert any(m.startswith("Member M9 ") for m in pushed)
