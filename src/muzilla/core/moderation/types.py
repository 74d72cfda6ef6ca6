"""Moderation domain types."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Final, Literal

from muzilla.models import BanKind

SUCCESS: Final = "Success"


class RejectionReason(str, Enum):
    """Why a moderation action was refused."""

    USER_IS_NULL = "UserIsNull"
    SONG_IS_NULL = "SongIsNull"
    COLLECTION_IS_NULL = "CollectionIsNull"
    ACCESS_LEVEL_IS_NULL = "AccessLevelIsNull"
    IT_BANNED = "ItBanned"
    IT_NOT_BANNED = "ItNotBanned"
    USERS_ARE_SAME = "UsersAreSame"
    CANNOT_BAN_ADMINS = "CannotBanAdmins"
    CANNOT_BAN_USERS = "CannotBanUsers"
    CANNOT_BAN_SONGS = "CannotBanSongs"
    CANNOT_BAN_COLLECTIONS = "CannotBanCollections"
    CANNOT_MANAGE_SUPPORTS = "CannotManageSupports"
    CANNOT_DOWNLOAD_SONGS = "CannotDownloadSongs"


@dataclass(frozen=True)
class Ok:
    """The action is permitted (or was applied)."""

    ok: Literal[True] = field(default=True, init=False)

    @property
    def outcome(self) -> str:
        """Outcome name."""
        return SUCCESS


@dataclass(frozen=True)
class Rejected:
    """The action was refused for ``reason``; nothing was written."""

    reason: RejectionReason
    ok: Literal[False] = field(default=False, init=False)

    @property
    def outcome(self) -> str:
        """Outcome name."""
        return self.reason.value


Decision = Ok | Rejected

OK: Final = Ok()


@dataclass(frozen=True)
class BanSummary:
    """A ban as listed by the latest-bans feed."""

    id: int
    actor_id: int | None
    kind: BanKind
    target_id: int
    reason: str
    ban_until_utc: datetime
    banned_at_utc: datetime


@dataclass(frozen=True)
class SweepReport:
    """Result of one expiry sweep pass.

    Attributes:
        expired: Number of expired ban rows deleted.
        cleared: Targets whose banned flag was cleared.
    """

    expired: int = 0
    cleared: tuple[tuple[BanKind, int], ...] = ()
