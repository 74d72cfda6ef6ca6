"""FastAPI application definition."""

from __future__ import annotations

from fastapi import FastAPI

from muzilla import __version__

from .deps import lifespan
from .routes import api_router

app = FastAPI(
    title="muzilla",
    description="Moderation API for the muzilla music platform",
    version=__version__,
    lifespan=lifespan,
    redirect_slashes=False,
)

# Include API routes
app.include_router(api_router, prefix="/api/v1")


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "healthy"}
