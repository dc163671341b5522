"""
Cluster + attendance endpoints.

- Every route requires an authenticated user.
- The driver's dashboard polls GET /clusters/driver/{driver_id}, which bundles
  the cluster, its member profiles and today's attendance in one response.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from vantrack.api.v1.deps import get_current_active_user, get_db
from vantrack.models.user import User
from vantrack.schemas.cluster import (AttendanceMark, ClusterCreate,
                                      ClusterJoin, ClusterLeave,
                                      ClusterOverviewResponse, ClusterRead,
                                      ClusterResponse, MemberListResponse)
from vantrack.schemas.common import SuccessResponse
from vantrack.schemas.user import UserRead
from vantrack.services import attendance as attendance_service
from vantrack.services import clusters as cluster_service

router = APIRouter(tags=["clusters"])


def _cluster_response(cluster) -> ClusterResponse:
    return ClusterResponse(cluster=ClusterRead.model_validate(cluster) if cluster else None)


# ── Clusters ────────────────────────────────────────────────────────
@router.post("/clusters", response_model=ClusterResponse, status_code=201)
async def create_cluster(
    body: ClusterCreate,
    db: AsyncSession = Depends(get_db),
    _user: User = Depends(get_current_active_user),
) -> ClusterResponse:
    """Create the driver's cluster and hand back its join code."""
    cluster = await cluster_service.create_cluster(db, body.name, body.driver_id)
    return _cluster_response(cluster)


@router.post("/clusters/join", response_model=ClusterResponse)
async def join_cluster(
    body: ClusterJoin,
    db: AsyncSession = Depends(get_db),
    _user: User = Depends(get_current_active_user),
) -> ClusterResponse:
    cluster = await cluster_service.join_cluster(db, body.code, body.user_id)
    return _cluster_response(cluster)


@router.post("/clusters/leave", response_model=SuccessResponse)
async def leave_cluster(
    body: ClusterLeave,
    db: AsyncSession = Depends(get_db),
    _user: User = Depends(get_current_active_user),
) -> SuccessResponse:
    await cluster_service.leave_cluster(db, body.user_id)
    return SuccessResponse()


@router.get("/clusters/driver/{driver_id}", response_model=ClusterOverviewResponse)
async def get_driver_cluster(
    driver_id: str,
    db: AsyncSession = Depends(get_db),
    _user: User = Depends(get_current_active_user),
) -> ClusterOverviewResponse:
    cluster = await cluster_service.get_cluster_for_driver(db, driver_id)
    if cluster is None:
        return ClusterOverviewResponse()

    members = await cluster_service.list_members(db, cluster.code)
    attendance = await attendance_service.get_for_cluster(db, cluster.id)
    return ClusterOverviewResponse(
        cluster=ClusterRead.model_validate(cluster),
        members=[UserRead.model_validate(m) for m in members],
        attendance=attendance,
    )


@router.get("/clusters/member/{user_id}", response_model=ClusterResponse)
async def get_member_cluster(
    user_id: str,
    db: AsyncSession = Depends(get_db),
    _user: User = Depends(get_current_active_user),
) -> ClusterResponse:
    cluster = await cluster_service.get_cluster_for_user(db, user_id)
    return _cluster_response(cluster)


@router.get("/clusters/{code}/members", response_model=MemberListResponse)
async def list_cluster_members(
    code: str,
    db: AsyncSession = Depends(get_db),
    _user: User = Depends(get_current_active_user),
) -> MemberListResponse:
    members = await cluster_service.list_members(db, code)
    return MemberListResponse(members=[UserRead.model_validate(m) for m in members])


# ── Attendance ──────────────────────────────────────────────────────
@router.post("/attendance", response_model=SuccessResponse)
async def mark_attendance(
    body: AttendanceMark,
    db: AsyncSession = Depends(get_db),
    _user: User = Depends(get_current_active_user),
) -> SuccessResponse:
    await attendance_service.mark(db, body.user_id, body.cluster_id, body.status)
    return SuccessResponse()


@router.get("/attendance/cluster/{cluster_id}", response_model=dict[str, str])
async def cluster_attendance(
    cluster_id: str,
    db: AsyncSession = Depends(get_db),
    _user: User = Depends(get_current_active_user),
) -> dict[str, str]:
    """Today's ``{user_id: status}`` map; users without an entry are undeclared."""
    return await attendance_service.get_for_cluster(db, cluster_id)
