"""
Exceptions raised by the library catalog.
"""

from typing import Optional


class LibraryError(Exception):
    """Base class for library catalog errors."""


class PersistenceError(LibraryError):
    """Staged changes could not be committed to the store."""

    def __init__(self, operation: str, reason: Optional[str] = None):
        self.operation = operation
        self.reason = reason
        message = f"Failed to save changes while trying to {operation}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
