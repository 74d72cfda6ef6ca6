"""Ban records: the source of truth for every target's banned state."""

from datetime import datetime
from enum import IntEnum

from sqlalchemy import CheckConstraint, ForeignKey, Index, SmallInteger, String
from sqlalchemy.orm import Mapped, mapped_column

from muzilla.models.base import BaseModel, UtcDateTime, utcnow

REASON_MAX_LENGTH = 500


class BanKind(IntEnum):
    """What a ban row points at."""

    USER = 1
    SONG = 2
    COLLECTION = 3


class Ban(BaseModel):
    """A time-bounded ban on exactly one user, song or collection."""

    __tablename__ = "bans"

    # Who
    banned_by_user_id: Mapped[int | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )

    # What (exactly one of these)
    banned_user_id: Mapped[int | None] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=True
    )
    banned_song_id: Mapped[int | None] = mapped_column(
        ForeignKey("songs.id", ondelete="CASCADE"), nullable=True
    )
    banned_collection_id: Mapped[int | None] = mapped_column(
        ForeignKey("collections.id", ondelete="CASCADE"), nullable=True
    )
    ban_kind: Mapped[int] = mapped_column(SmallInteger, nullable=False)

    reason: Mapped[str] = mapped_column(String(REASON_MAX_LENGTH), nullable=False)

    # When
    ban_until_utc: Mapped[datetime] = mapped_column(UtcDateTime, nullable=False, index=True)
    banned_at_utc: Mapped[datetime] = mapped_column(UtcDateTime, nullable=False, default=utcnow)

    __table_args__ = (
        CheckConstraint(
            "CAST(banned_user_id IS NOT NULL AS INTEGER)"
            " + CAST(banned_song_id IS NOT NULL AS INTEGER)"
            " + CAST(banned_collection_id IS NOT NULL AS INTEGER) = 1",
            name="single_target",
        ),
        CheckConstraint(
            "(ban_kind = 1 AND banned_user_id IS NOT NULL)"
            " OR (ban_kind = 2 AND banned_song_id IS NOT NULL)"
            " OR (ban_kind = 3 AND banned_collection_id IS NOT NULL)",
            name="kind_matches_target",
        ),
        CheckConstraint("ban_until_utc > banned_at_utc", name="ends_after_start"),
        Index("ix_bans_banned_at_utc", "banned_at_utc"),
    )

    @property
    def kind(self) -> BanKind:
        """Ban kind as an enum member."""
        return BanKind(self.ban_kind)

    @property
    def target_id(self) -> int:
        """Identifier of whichever target this row bans."""
        target_id = {
            BanKind.USER: self.banned_user_id,
            BanKind.SONG: self.banned_song_id,
            BanKind.COLLECTION: self.banned_collection_id,
        }[self.kind]
        if target_id is None:
            raise ValueError(f"Ban {self.id} has kind {self.kind.name} but no target set")
        return target_id
