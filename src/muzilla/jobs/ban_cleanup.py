"""Expired ban cleanup job.

Runs a single sweep pass, for deployments that schedule the sweep
externally (cron) instead of inside the API process.

Run via: python -m muzilla.jobs.ban_cleanup
"""

import asyncio
import os

import structlog

from muzilla.adapters.db import create_engine, create_session_factory, sql_store_factory
from muzilla.core.moderation import BanSweeper

logger = structlog.get_logger()


async def main() -> int:
    """Run one expired-ban sweep. Returns the process exit code."""
    database_url = os.getenv("DATABASE_URL")
    if not database_url:
        logger.error("DATABASE_URL not set")
        return 1

    logger.info("Connecting to database...")
    engine = create_engine(database_url)

    try:
        sweeper = BanSweeper(sql_store_factory(create_session_factory(engine)))
        report = await sweeper.run_once()

        logger.info(f"Removed {report.expired} expired bans, lifted {len(report.cleared)}")
    finally:
        await engine.dispose()
    return 0


if __name__ == "__main__":
    raise SystemExit(asyncio.run(main()))
