"""Access level model: the flat set of capability flags a user holds."""

from sqlalchemy.orm import Mapped, mapped_column

from muzilla.models.base import BaseModel


class AccessLevel(BaseModel):
    """Capability flags attached to users."""

    __tablename__ = "access_levels"

    can_ban_user: Mapped[bool] = mapped_column(default=False, nullable=False)
    can_ban_song: Mapped[bool] = mapped_column(default=False, nullable=False)
    can_ban_collection: Mapped[bool] = mapped_column(default=False, nullable=False)
    can_download: Mapped[bool] = mapped_column(default=False, nullable=False)
    can_upload: Mapped[bool] = mapped_column(default=False, nullable=False)
    can_report: Mapped[bool] = mapped_column(default=False, nullable=False)
    can_manage_reports: Mapped[bool] = mapped_column(default=False, nullable=False)
    can_manage_supports: Mapped[bool] = mapped_column(default=False, nullable=False)
    can_manage_access_levels: Mapped[bool] = mapped_column(default=False, nullable=False)
