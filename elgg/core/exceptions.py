"""Exception types raised by the core services."""
from __future__ import annotations


class ElggError(Exception):
    """Base class for all core errors."""


class NotificationError(ElggError):
    """A notification could not be addressed or delivered."""


class InstallationError(ElggError):
    """The installer was asked to do something it cannot do."""


class DatabaseError(ElggError):
    """The database driver is unavailable or the connection failed."""
