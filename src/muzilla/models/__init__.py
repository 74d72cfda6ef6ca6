"""SQLAlchemy models for the application database."""
from muzilla.models.base import BaseModel, UtcDateTime, utcnow
from muzilla.models.access_level import AccessLevel
from muzilla.models.user import User
from muzilla.models.song import Collection, Song
from muzilla.models.ban import REASON_MAX_LENGTH, Ban, BanKind

__all__ = [
    "BaseModel",
    "UtcDateTime",
    "utcnow",
    "AccessLevel",
    "User",
    "Song",
    "Collection",
    "Ban",
    "BanKind",
    "REASON_MAX_LENGTH",
]
