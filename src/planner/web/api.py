"""FastAPI application factory.

Main entry point for the coverage planner Web API.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from planner import __version__
from planner.config.app_config import load_app_config
from planner.core.coverage_service import CoverageService
from planner.core.syllabus import SyllabusIndex, default_syllabus, load_syllabus
from planner.db.coverage_repository import CoverageRepository
from planner.db.database import Database
from planner.web.routes import (
    admin_router,
    coverage_router,
    health_router,
    syllabus_router,
)

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Lifespan context manager for startup/shutdown events."""
    # Startup
    logger.info(
        "api_startup",
        database=str(app.state.database.path),
        grades=app.state.coverage_service.syllabus.grades(),
    )
    yield
    # Shutdown
    app.state.database.close()


def create_app(
    database: Database | None = None,
    syllabus: SyllabusIndex | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        database: Database handle; built from config when omitted
        syllabus: Syllabus index; loaded from config when omitted

    Returns:
        Configured FastAPI app instance
    """
    config = load_app_config()

    if database is None:
        database = Database(config.database.path)
    if syllabus is None:
        directory = config.syllabus.get_directory()
        syllabus = load_syllabus(directory) if directory else default_syllabus()

    app = FastAPI(
        title="Coverage Planner API",
        description="Syllabus coverage tracking per student and class",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    app.state.database = database
    app.state.coverage_service = CoverageService(CoverageRepository(database), syllabus)

    # CORS middleware for web clients
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # Configure appropriately for production
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Include routers
    app.include_router(health_router)
    app.include_router(syllabus_router)
    app.include_router(coverage_router)
    app.include_router(admin_router)

    return app
