"""Route handlers for Web API."""

from planner.web.routes.admin import router as admin_router
from planner.web.routes.coverage import router as coverage_router
from planner.web.routes.health import router as health_router
from planner.web.routes.syllabus import router as syllabus_router

__all__ = [
    "admin_router",
    "coverage_router",
    "health_router",
    "syllabus_router",
]
