"""Router registrations."""

from fastapi import APIRouter

from app.api.routers import events, health, reports


def get_api_router() -> APIRouter:
    router = APIRouter()
    router.include_router(health.router, tags=["health"])
    router.include_router(events.router, prefix="/api/v1/events", tags=["events"])
    router.include_router(reports.router, prefix="/api/v1/reports", tags=["reports"])
    return router
