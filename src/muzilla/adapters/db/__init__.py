"""Application database adapters.

Contents:
- sql_store: SQLAlchemy-backed storage gateway, engine and session setup
"""

from .sql_store import (
    SqlAlchemyStore,
    create_engine,
    create_schema,
    create_session_factory,
    sql_store_factory,
)

__all__ = [
    "SqlAlchemyStore",
    "create_engine",
    "create_schema",
    "create_session_factory",
    "sql_store_factory",
]
