"""User model."""

from sqlalchemy import ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from muzilla.models.access_level import AccessLevel
from muzilla.models.base import BaseModel


class User(BaseModel):
    """A user in the system."""

    __tablename__ = "users"

    username: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[str | None] = mapped_column(String(255))
    access_level_id: Mapped[int | None] = mapped_column(ForeignKey("access_levels.id"))

    # Derived from live bans; only the moderation core writes it
    is_banned: Mapped[bool] = mapped_column(default=False, nullable=False)

    # Relationships
    access_level: Mapped[AccessLevel | None] = relationship(lazy="selectin")
