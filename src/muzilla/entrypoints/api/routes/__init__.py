"""API route modules."""

from fastapi import APIRouter

from muzilla.entrypoints.api.routes.access_levels import router as access_levels_router
from muzilla.entrypoints.api.routes.bans import router as bans_router

# Create main API router
api_router = APIRouter()

# Include all route modules
api_router.include_router(bans_router)
api_router.include_router(access_levels_router)

__all__ = ["api_router"]
