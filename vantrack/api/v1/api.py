"""
V1 API router aggregator: wires all endpoint modules together.
"""

from fastapi import APIRouter

from vantrack.api.v1.endpoints import auth, clusters, locations, reports

api_router = APIRouter()

# Auth (signup, login, refresh, profile)
api_router.include_router(auth.router)

# Clusters, membership, attendance
api_router.include_router(clusters.router)

# Driver / member positions
api_router.include_router(locations.router)

# Reports, health
api_router.include_router(reports.router)
