"""
Presence endpoints: position pushes from drivers and members, and the
``/vans`` snapshot every client polls.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from vantrack.api.v1.deps import get_current_active_user, get_db
from vantrack.models.user import User
from vantrack.schemas.common import SuccessResponse
from vantrack.schemas.location import (DriverLocationRead,
                                       DriverLocationUpdate, LocationsResponse,
                                       MemberLocationRead,
                                       MemberLocationUpdate)
from vantrack.services import presence

router = APIRouter(tags=["locations"])


@router.get("/vans", response_model=LocationsResponse)
async def list_locations(
    db: AsyncSession = Depends(get_db),
) -> LocationsResponse:
    """Return every driver and member position (PUBLIC, polled by all clients)."""
    snapshot = await presence.list_all(db)
    return LocationsResponse(
        vans=[DriverLocationRead.model_validate(v) for v in snapshot["vans"]],
        members=[MemberLocationRead.model_validate(m) for m in snapshot["members"]],
    )


@router.post("/update-location", response_model=SuccessResponse)
async def update_driver_location(
    body: DriverLocationUpdate,
    db: AsyncSession = Depends(get_db),
    _user: User = Depends(get_current_active_user),
) -> SuccessResponse:
    await presence.update_driver_location(db, body.van_id, body.lat, body.lng, body.is_driving)
    return SuccessResponse()


@router.post("/update-member", response_model=SuccessResponse)
async def update_member_location(
    body: MemberLocationUpdate,
    db: AsyncSession = Depends(get_db),
    _user: User = Depends(get_current_active_user),
) -> SuccessResponse:
    """Push a member position. ``arrived`` is kept as stored unless sent or the ETA is short enough."""
    arrived = body.arrived
    if arrived is None and presence.within_arrival_threshold(body.eta_seconds):
        arrived = True
    await presence.update_member_location(db, body.id, body.lat, body.lng, body.name, arrived)
    return SuccessResponse()


@router.post("/members/{member_id}/arrived", response_model=SuccessResponse)
async def mark_member_arrived(
    member_id: str,
    db: AsyncSession = Depends(get_db),
    _user: User = Depends(get_current_active_user),
) -> SuccessResponse:
    await presence.mark_arrived(db, member_id)
    return SuccessResponse()
