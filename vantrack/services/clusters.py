"""
Cluster registry: driver-owned groups that riders join with a short code.

Codes are upper-case alphanumerics and compared case-insensitively. Joining
is idempotent: a rider already on the roster is left where they are, and a
rider is on at most one roster at a time.
Capacity is advisory and never checked on join.
"""

from __future__ import annotations

import logging
import secrets
import string

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from vantrack.core.config import settings
from vantrack.core.exceptions import ConflictError, NotFoundError, ValidationError
from vantrack.models.cluster import Cluster, ClusterMember
from vantrack.models.user import User, new_id

logger = logging.getLogger(__name__)

CODE_ALPHABET = string.ascii_uppercase + string.digits


def normalize_code(code: str) -> str:
    return (code or "").strip().upper()


def generate_code(length: int | None = None) -> str:
    length = length or settings.JOIN_CODE_LENGTH
    return "".join(secrets.choice(CODE_ALPHABET) for _ in range(length))


async def _load_cluster(db: AsyncSession, *criteria) -> Cluster | None:
    result = await db.execute(
        select(Cluster).where(*criteria).execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def get_cluster_by_code(db: AsyncSession, code: str) -> Cluster | None:
    code = normalize_code(code)
    if not code:
        return None
    return await _load_cluster(db, Cluster.code == code)


async def get_cluster_by_id(db: AsyncSession, cluster_id: str) -> Cluster | None:
    return await _load_cluster(db, Cluster.id == cluster_id)


async def get_cluster_for_driver(db: AsyncSession, driver_id: str) -> Cluster | None:
    return await _load_cluster(db, Cluster.driver_id == driver_id)


async def get_cluster_for_user(db: AsyncSession, user_id: str) -> Cluster | None:
    """Resolve a user's cluster through the reference stamped on their profile."""
    user = await db.get(User, user_id)
    if user is None or not user.cluster_id:
        return None
    return await get_cluster_by_id(db, user.cluster_id)


async def _unused_code(db: AsyncSession) -> str:
    for _ in range(settings.JOIN_CODE_MAX_ATTEMPTS):
        code = generate_code()
        taken = await db.execute(select(Cluster.id).where(Cluster.code == code))
        if taken.scalar_one_or_none() is None:
            return code
    raise ConflictError("Could not allocate a unique cluster code, please retry")


async def create_cluster(db: AsyncSession, name: str, driver_id: str) -> Cluster:
    name = (name or "").strip()
    driver_id = (driver_id or "").strip()
    if not name or not driver_id:
        raise ValidationError("Cluster name and driver id are required")

    if await get_cluster_for_driver(db, driver_id) is not None:
        raise ConflictError("Driver already has a cluster")

    for _ in range(settings.JOIN_CODE_MAX_ATTEMPTS):
        driver = await db.get(User, driver_id)
        capacity = driver.capacity if driver is not None and driver.capacity else 0
        cluster = Cluster(
            id=new_id(),
            name=name,
            driver_id=driver_id,
            code=await _unused_code(db),
            capacity=capacity or settings.DEFAULT_CLUSTER_CAPACITY,
            memberships=[],
        )
        db.add(cluster)
        if driver is not None:
            driver.cluster_id = cluster.id
        try:
            await db.commit()
        except IntegrityError:
            # Lost a race on the code or on the driver's single cluster.
            await db.rollback()
            if await get_cluster_for_driver(db, driver_id) is not None:
                raise ConflictError("Driver already has a cluster")
            logger.warning("Cluster code collision on commit, retrying")
            continue

        logger.info("Created cluster %s (%s) for driver %s", cluster.code, cluster.name, driver_id)
        return cluster

    raise ConflictError("Could not allocate a unique cluster code, please retry")


async def _drop_other_memberships(db: AsyncSession, user_id: str, keep_cluster_id: str) -> list[str]:
    """Delete ``user_id``'s roster rows outside ``keep_cluster_id``; returns the cluster ids left."""
    result = await db.execute(
        select(ClusterMember).where(
            ClusterMember.user_id == user_id,
            ClusterMember.cluster_id != keep_cluster_id,
        )
    )
    left = []
    for membership in result.scalars().all():
        left.append(membership.cluster_id)
        await db.delete(membership)
    return left


async def join_cluster(db: AsyncSession, code: str, user_id: str) -> Cluster:
    """Put ``user_id`` on the roster of the cluster behind ``code``.

    A rider already on another roster is moved: the old membership row is
    removed in the same commit. Drivers stay with the cluster they drive.
    """
    user_id = (user_id or "").strip()
    if not user_id:
        raise ValidationError("User id is required")

    cluster = await get_cluster_by_code(db, code)
    if cluster is None:
        raise NotFoundError("Cluster not found")

    cluster_id, cluster_code = cluster.id, cluster.code
    owned = await get_cluster_for_driver(db, user_id)
    if owned is not None:
        if owned.id != cluster_id:
            raise ConflictError("A driver cannot join another cluster")
        return owned

    left = await _drop_other_memberships(db, user_id, cluster_id)
    user = await db.get(User, user_id)
    if user_id not in cluster.members:
        cluster.memberships.append(ClusterMember(user_id=user_id))
    if user is not None:
        user.cluster_id = cluster_id

    try:
        await db.commit()
    except IntegrityError:
        # A concurrent join already inserted this member.
        await db.rollback()
        await _drop_other_memberships(db, user_id, cluster_id)
        user = await db.get(User, user_id)
        if user is not None:
            user.cluster_id = cluster_id
        await db.commit()
        logger.info("Concurrent join handled for %s in %s", user_id, cluster_code)
        return await get_cluster_by_id(db, cluster_id)  # type: ignore[return-value]

    if left:
        logger.info("User %s moved from %s to cluster %s", user_id, ", ".join(left), cluster_code)
    else:
        logger.info("User %s joined cluster %s", user_id, cluster_code)
    return cluster


async def leave_cluster(db: AsyncSession, user_id: str) -> None:
    user = await db.get(User, user_id)
    if user is None:
        raise NotFoundError("User not found")
    cluster = await get_cluster_for_user(db, user_id)
    if cluster is None:
        raise NotFoundError("User is not in a cluster")
    if cluster.driver_id == user_id:
        raise ValidationError("A driver cannot leave their own cluster")

    for membership in list(cluster.memberships):
        if membership.user_id == user_id:
            cluster.memberships.remove(membership)
    user.cluster_id = None
    await db.commit()
    logger.info("User %s left cluster %s", user_id, cluster.code)


async def list_members(db: AsyncSession, code: str) -> list[User]:
    """Member profiles in join order; ids with no user record are skipped."""
    cluster = await get_cluster_by_code(db, code)
    if cluster is None or not cluster.members:
        return []

    result = await db.execute(select(User).where(User.id.in_(cluster.members)))
    by_id = {u.id: u for u in result.scalars().all()}
    return [by_id[uid] for uid in cluster.members if uid in by_id]
