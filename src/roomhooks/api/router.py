"""Master API router mounted at /api/v1."""

from fastapi import APIRouter
from roomhooks.api.routes import (
    health,
    issues,
    rooms,
    subscriptions,
)

api_router = APIRouter(prefix="/api/v1")
api_router.include_router(health.router, tags=["Health"])
api_router.include_router(rooms.router)
api_router.include_router(subscriptions.router)
api_router.include_router(issues.router)
