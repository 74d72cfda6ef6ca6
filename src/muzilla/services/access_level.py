"""Access level management service."""
from dataclasses import asdict, dataclass

import structlog

from muzilla.core.interfaces import StorageGateway
from muzilla.models import AccessLevel

logger = structlog.get_logger()


@dataclass(frozen=True)
class AccessLevelFlags:
    """Capability flags for creating or replacing an access level."""

    can_ban_user: bool = False
    can_ban_song: bool = False
    can_ban_collection: bool = False
    can_download: bool = False
    can_upload: bool = False
    can_report: bool = False
    can_manage_reports: bool = False
    can_manage_supports: bool = False
    can_manage_access_levels: bool = False

    @classmethod
    def of(cls, access_level: AccessLevel) -> "AccessLevelFlags":
        """Read the flags of a stored access level."""
        return cls(**{name: getattr(access_level, name) for name in asdict(cls())})


# Granted to every newly registered user
DEFAULT_FLAGS = AccessLevelFlags(can_upload=True, can_report=True)


class AccessLevelService:
    """Service for creating and editing access levels."""

    def __init__(self, store: StorageGateway):
        self.store = store

    async def create(self, flags: AccessLevelFlags) -> int:
        """Create an access level and return its id."""
        access_level = AccessLevel(**asdict(flags))
        await self.store.add(access_level)
        await self.store.save()

        logger.info("access_level_created", access_level_id=access_level.id)
        return access_level.id

    async def create_default(self) -> int:
        """Create an access level with the default user capabilities."""
        return await self.create(DEFAULT_FLAGS)

    async def get(self, access_level_id: int) -> AccessLevel | None:
        """Get access level by ID."""
        return await self.store.get_by_id(AccessLevel, access_level_id)

    async def update(self, access_level_id: int, flags: AccessLevelFlags) -> AccessLevel | None:
        """Replace every flag of an access level.

        Returns:
            The updated access level, or None if it does not exist.
        """
        access_level = await self.store.get_by_id(AccessLevel, access_level_id, for_update=True)
        if access_level is None:
            return None

        for name, value in asdict(flags).items():
            setattr(access_level, name, value)
        await self.store.save()

        logger.info("access_level_updated", access_level_id=access_level_id, **asdict(flags))
        return access_level

    async def delete(self, access_level_id: int) -> bool:
        """Delete an access level. Returns False if it does not exist."""
        access_level = await self.store.get_by_id(AccessLevel, access_level_id)
        if access_level is None:
            return False

        await self.store.remove(access_level)
        await self.store.save()

        logger.info("access_level_deleted", access_level_id=access_level_id)
        return True
