"""Song and collection models."""

from sqlalchemy import ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column

from muzilla.models.base import BaseModel


class Song(BaseModel):
    """An uploaded song."""

    __tablename__ = "songs"

    title: Mapped[str] = mapped_column(String(200), nullable=False)
    author_id: Mapped[int | None] = mapped_column(ForeignKey("users.id"))
    is_banned: Mapped[bool] = mapped_column(default=False, nullable=False)


class Collection(BaseModel):
    """A user-curated collection of songs."""

    __tablename__ = "collections"

    title: Mapped[str] = mapped_column(String(200), nullable=False)
    author_id: Mapped[int | None] = mapped_column(ForeignKey("users.id"))
    is_banned: Mapped[bool] = mapped_column(default=False, nullable=False)
