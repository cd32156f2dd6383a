"""Router registrations for the taskshare API."""

from __future__ import annotations

from fastapi import APIRouter

from .analytics import router as analytics_router
from .health import metadata_router
from .health import router as health_router
from .notifications import router as notifications_router
from .realtime import router as realtime_router
from .tasks import router as tasks_router
from .users import router as users_router

api_router = APIRouter()
api_router.include_router(metadata_router)
api_router.include_router(users_router)
api_router.include_router(tasks_router)
api_router.include_router(notifications_router)
api_router.include_router(analytics_router)

__all__ = [
    "analytics_router",
    "api_router",
    "health_router",
    "notifications_router",
    "realtime_router",
    "tasks_router",
    "users_router",
]
