"""
VanTrack: Application entry point.

This is the **only** file that assembles the app.  All business logic
lives in the `services/`, `api/`, `models/`, and `core/` packages.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from vantrack.api.v1.api import api_router
from vantrack.api.v1.endpoints.auth import limiter
from vantrack.core.config import settings
from vantrack.core.exceptions import register_exception_handlers
from vantrack.core.security import get_password_hash
from vantrack.db.base import Base
from vantrack.db.session import async_session_factory, engine

# Ensure all models are imported so metadata.create_all can see them
from vantrack.models.attendance import AttendanceRecord  # noqa: F401
from vantrack.models.cluster import Cluster, ClusterMember  # noqa: F401
from vantrack.models.location import DriverLocation, MemberLocation  # noqa: F401
from vantrack.models.report import Report  # noqa: F401
from vantrack.models.user import User
from vantrack.services.users import get_by_email

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
)
logger = logging.getLogger(__name__)


# ── Lifespan ────────────────────────────────────────────────────────
@asynccontextmanager
async def lifespan(_app: FastAPI):
    # Create all tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables initialised")

    # Seed default operator on first run
    async with async_session_factory() as session:
        if await get_by_email(session, settings.FIRST_OPERATOR_EMAIL) is None:
            operator = User(
                name="Operator",
                email=settings.FIRST_OPERATOR_EMAIL.lower(),
                hashed_password=get_password_hash(settings.FIRST_OPERATOR_PASSWORD),
                role="operator",
            )
            session.add(operator)
            await session.commit()
            logger.info(
                "Default operator created: %s (password: <redacted>)",
                settings.FIRST_OPERATOR_EMAIL,
            )

    logger.info("VanTrack v%s started", settings.VERSION)
    yield
    await engine.dispose()
    logger.info("Shutdown complete")


# ── App factory ─────────────────────────────────────────────────────
def create_app() -> FastAPI:
    application = FastAPI(
        title=settings.PROJECT_NAME,
        description="Van clusters, rider attendance and live location sharing",
        version=settings.VERSION,
        openapi_url=f"{settings.API_V1_PREFIX}/openapi.json",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    # CORS
    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Login rate limiting
    application.state.limiter = limiter

    # Global exception handlers (prevent stack-trace leakage)
    register_exception_handlers(application)

    # Mount API v1
    application.include_router(api_router, prefix=settings.API_V1_PREFIX)

    return application


app = create_app()
