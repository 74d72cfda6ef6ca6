"""Dependency injection and application lifespan management."""

from __future__ import annotations

import logging
import os
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import timedelta
from typing import TYPE_CHECKING, Annotated

from fastapi import Depends, Request

from muzilla.adapters.db import (
    create_engine,
    create_schema,
    create_session_factory,
    sql_store_factory,
)
from muzilla.core.interfaces import StorageGateway
from muzilla.core.moderation import BanService, BanSweeper
from muzilla.services import AccessLevelService

if TYPE_CHECKING:
    from fastapi import FastAPI

logger = logging.getLogger(__name__)


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ("1", "true", "yes")


class Settings:
    """Application settings loaded from environment."""

    def __init__(self) -> None:
        """Load settings from environment variables."""
        self.database_url = os.getenv(
            "DATABASE_URL", "postgresql+asyncpg://localhost:5432/muzilla"
        )
        self.sql_echo = _env_flag("SQL_ECHO", "false")
        self.create_schema = _env_flag("DB_CREATE_SCHEMA", "false")

        # Ban sweeper settings
        self.ban_sweep_enabled = _env_flag("BAN_SWEEP_ENABLED", "true")
        self.ban_sweep_interval_seconds = int(os.getenv("BAN_SWEEP_INTERVAL_SECONDS", "600"))


settings = Settings()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan - setup and teardown.

    This context manager handles:
    - Database engine and session factory setup
    - Starting and gracefully stopping the ban sweeper
    """
    engine = create_engine(settings.database_url, echo=settings.sql_echo)
    if settings.create_schema:
        await create_schema(engine)

    store_factory = sql_store_factory(create_session_factory(engine))
    sweeper = BanSweeper(
        store_factory,
        interval=timedelta(seconds=settings.ban_sweep_interval_seconds),
    )

    # Store in app state
    app.state.engine = engine
    app.state.store_factory = store_factory
    app.state.sweeper = sweeper

    if settings.ban_sweep_enabled:
        sweeper.start()
    else:
        logger.info("Ban sweeper disabled via BAN_SWEEP_ENABLED")

    yield

    # Teardown - let an in-flight sweep finish before closing the pool
    await sweeper.stop()
    await engine.dispose()


async def get_store(request: Request) -> AsyncIterator[StorageGateway]:
    """Open a storage unit of work for the current request."""
    async with request.app.state.store_factory() as store:
        yield store


StoreDep = Annotated[StorageGateway, Depends(get_store)]


def get_ban_service(store: StoreDep) -> BanService:
    """Get the ban service for the current request."""
    return BanService(store)


def get_access_level_service(store: StoreDep) -> AccessLevelService:
    """Get the access level service for the current request."""
    return AccessLevelService(store)
