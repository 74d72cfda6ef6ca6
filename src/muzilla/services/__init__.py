"""Application services."""
from muzilla.services.access_level import DEFAULT_FLAGS, AccessLevelFlags, AccessLevelService

__all__ = [
    "AccessLevelFlags",
    "AccessLevelService",
    "DEFAULT_FLAGS",
]
