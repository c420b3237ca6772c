"""Attendance Distributor — FastAPI application factory."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from distributor.config import Settings, settings as default_settings
from distributor.infrastructure.api.dependencies import Container, build_container
from distributor.infrastructure.api.errors import register_error_handlers
from distributor.infrastructure.api.routes_agents import router as agents_router
from distributor.infrastructure.api.routes_attendances import router as attendances_router
from distributor.infrastructure.api.routes_dashboard import router as dashboard_router
from distributor.infrastructure.api.routes_health import router as health_router
from distributor.infrastructure.api.routes_queues import router as queues_router
from distributor.infrastructure.api.routes_updates import router as updates_router

logger = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s %(levelname)s %(name)s | %(message)s",
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events."""
    container: Container = app.state.container
    if await container.attendance_repo.ping():
        logger.info("Storage backend reachable")
    else:
        logger.warning("Storage backend not reachable on startup")
    yield
    await container.close()


def create_app(
    settings: Settings | None = None,
    container: Container | None = None,
) -> FastAPI:
    settings = settings or default_settings
    configure_logging(settings.log_level)

    app = FastAPI(
        title="Attendance Distributor",
        description="Routes attendances to team agents with bounded capacity and FIFO backlogs",
        version="0.1.0",
        debug=settings.debug,
        lifespan=lifespan,
    )
    app.state.container = container or build_container(settings)

    # CORS for the dashboard frontend
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_error_handlers(app)

    # Register routers
    app.include_router(health_router, prefix="/api")
    app.include_router(attendances_router, prefix="/api")
    app.include_router(agents_router, prefix="/api")
    app.include_router(queues_router, prefix="/api")
    app.include_router(dashboard_router, prefix="/api")
    app.include_router(updates_router, prefix="/api")

    return app


app = create_app()
