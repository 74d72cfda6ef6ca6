"""Protocol definitions for external dependencies.

The moderation core only depends on these protocols, never on concrete
implementations. Queries are expressed as SQLAlchemy column criteria built
from the models, which every adapter understands.
"""

from __future__ import annotations

from collections.abc import Iterable
from contextlib import AbstractAsyncContextManager
from typing import TYPE_CHECKING, Any, Protocol, TypeVar, runtime_checkable

if TYPE_CHECKING:
    from sqlalchemy import ColumnElement

    from muzilla.models import BaseModel

ModelT = TypeVar("ModelT", bound="BaseModel")


@runtime_checkable
class StorageGateway(Protocol):
    """Interface for typed record storage.

    A gateway instance is one unit of work: writes staged with ``add`` and
    ``remove`` become visible to other units of work only after ``save``.

    Implementations must:
    - Roll back and raise StorageError when a commit fails
    - Honour ``for_update`` by locking the row until the unit of work ends,
      where the backend supports row locks
    """

    async def get_by_id(
        self, model: type[ModelT], entity_id: int, *, for_update: bool = False
    ) -> ModelT | None:
        """Load one record by primary key.

        Args:
            model: Model class to load.
            entity_id: Primary key.
            for_update: Lock the row for the rest of the unit of work.

        Returns:
            The record, or None if it does not exist.
        """
        ...

    async def query(
        self,
        model: type[ModelT],
        *criteria: ColumnElement[bool],
        order_by: Any = None,
        limit: int | None = None,
    ) -> list[ModelT]:
        """Load every record matching all criteria."""
        ...

    async def exists(self, model: type[ModelT], *criteria: ColumnElement[bool]) -> bool:
        """Check whether any record matches all criteria."""
        ...

    async def add(self, entity: BaseModel) -> None:
        """Stage a new record."""
        ...

    async def remove(self, entity: BaseModel) -> None:
        """Stage a record for deletion."""
        ...

    async def remove_many(self, entities: Iterable[BaseModel]) -> None:
        """Stage several records for deletion."""
        ...

    async def save(self) -> None:
        """Commit every staged change atomically.

        Raises:
            StorageError: If the commit fails. Nothing is applied.
        """
        ...

    async def rollback(self) -> None:
        """Discard every staged change."""
        ...


class StoreFactory(Protocol):
    """Opens a fresh unit of work."""

    def __call__(self) -> AbstractAsyncContextManager[StorageGateway]: ...
