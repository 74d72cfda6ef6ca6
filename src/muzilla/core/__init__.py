"""Core domain - moderation policy and ban lifecycle."""

from .exceptions import InvalidBanRequest, MuzillaError, StorageError
from .interfaces import StorageGateway, StoreFactory

__all__ = [
    # Exceptions
    "MuzillaError",
    "StorageError",
    "InvalidBanRequest",
    # Interfaces
    "StorageGateway",
    "StoreFactory",
]
