"""Storage gateway over an SQLAlchemy async session."""

from __future__ import annotations

from collections.abc import AsyncIterator, Iterable
from contextlib import asynccontextmanager
from typing import Any, TypeVar

import structlog
from sqlalchemy import ColumnElement, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from muzilla.core.exceptions import StorageError
from muzilla.core.interfaces import StoreFactory
from muzilla.models import BaseModel

logger = structlog.get_logger()

ModelT = TypeVar("ModelT", bound=BaseModel)


class SqlAlchemyStore:
    """One unit of work backed by an AsyncSession.

    Writes are staged on the session and only reach the database on
    ``save()``. Any SQLAlchemy failure rolls the session back and is
    re-raised as StorageError.
    """

    def __init__(self, session: AsyncSession) -> None:
        """Initialize the store with a session it does not own."""
        self.session = session

    @asynccontextmanager
    async def _translate_errors(self, operation: str) -> AsyncIterator[None]:
        try:
            yield
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error("storage_operation_failed", operation=operation, error=str(e))
            raise StorageError(f"Storage {operation} failed: {e}") from e

    async def get_by_id(
        self, model: type[ModelT], entity_id: int, *, for_update: bool = False
    ) -> ModelT | None:
        """Load one record by primary key, optionally locking its row."""
        async with self._translate_errors("get"):
            return await self.session.get(
                model,
                entity_id,
                with_for_update=for_update or None,
                populate_existing=True,
            )

    async def query(
        self,
        model: type[ModelT],
        *criteria: ColumnElement[bool],
        order_by: Any = None,
        limit: int | None = None,
    ) -> list[ModelT]:
        """Load every record matching all criteria, refreshing loaded ones."""
        stmt = select(model).where(*criteria).execution_options(populate_existing=True)
        if order_by is not None:
            clauses = order_by if isinstance(order_by, tuple | list) else (order_by,)
            stmt = stmt.order_by(*clauses)
        if limit is not None:
            stmt = stmt.limit(limit)

        async with self._translate_errors("query"):
            result = await self.session.scalars(stmt)
            return list(result.all())

    async def exists(self, model: type[ModelT], *criteria: ColumnElement[bool]) -> bool:
        """Check whether any record matches all criteria."""
        stmt = select(model.id).where(*criteria).limit(1)
        async with self._translate_errors("exists"):
            found = await self.session.scalar(stmt)
        return found is not None

    async def add(self, entity: BaseModel) -> None:
        """Stage a new record."""
        self.session.add(entity)

    async def remove(self, entity: BaseModel) -> None:
        """Stage a record for deletion."""
        async with self._translate_errors("remove"):
            await self.session.delete(entity)

    async def remove_many(self, entities: Iterable[BaseModel]) -> None:
        """Stage several records for deletion."""
        async with self._translate_errors("remove"):
            for entity in entities:
                await self.session.delete(entity)

    async def save(self) -> None:
        """Commit every staged change in one transaction."""
        async with self._translate_errors("save"):
            await self.session.commit()

    async def rollback(self) -> None:
        """Discard every staged change."""
        await self.session.rollback()


def create_engine(database_url: str, echo: bool = False) -> AsyncEngine:
    """Create the async engine for the application database."""
    engine = create_async_engine(database_url, echo=echo, pool_pre_ping=True)
    logger.info("app_database_engine_created", url=database_url.split("@")[-1])
    return engine


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Create the session factory used for every unit of work.

    Objects stay loaded after commit so callers can read generated ids
    without another round trip.
    """
    return async_sessionmaker(engine, expire_on_commit=False)


def sql_store_factory(session_factory: async_sessionmaker[AsyncSession]) -> StoreFactory:
    """Build a StoreFactory opening one session per unit of work."""

    @asynccontextmanager
    async def open_store() -> AsyncIterator[SqlAlchemyStore]:
        async with session_factory() as session:
            yield SqlAlchemyStore(session)

    return open_store


async def create_schema(engine: AsyncEngine) -> None:
    """Create all tables that do not exist yet."""
    async with engine.begin() as conn:
        await conn.run_sync(BaseModel.metadata.create_all)
    logger.info("app_database_schema_ready")
