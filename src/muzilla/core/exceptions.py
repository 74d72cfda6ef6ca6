"""Domain-specific exceptions.

All exceptions in the muzilla system inherit from MuzillaError,
making it easy to catch all system errors while still being able
to handle specific error types.

Expected policy outcomes (a missing target, a missing capability,
an already-banned song) are never raised. They are returned as
``Rejected`` values by the policy functions and the ban service.
"""

from __future__ import annotations


class MuzillaError(Exception):
    """Base exception for all muzilla errors."""

    pass


class StorageError(MuzillaError):
    """The storage gateway failed to read or commit.

    Raised by storage adapters after the pending unit of work has been
    rolled back, so no partial write survives the failure.
    """

    pass


class InvalidBanRequest(MuzillaError):
    """Ban input is malformed.

    Raised before any storage access when the reason is empty or too long,
    or when the ban would not end after the moment it is created.
    """

    pass
