"""
Error taxonomy for the pick'em ledger.

- ValidationError: bad input rejected at the boundary, before any state changes
- PreconditionError: week advancement refused, with every unmet condition listed
- StorageError: the key-value store could not be read or written
"""

from typing import List, Optional


class PickemError(Exception):
    """Base class for all ledger errors."""


class ValidationError(PickemError, ValueError):
    """Input rejected before touching persisted state."""


class PreconditionError(PickemError):
    """An operation's preconditions are not met."""

    def __init__(self, message: str, unmet: Optional[List[str]] = None):
        self.unmet = list(unmet or [])
        if self.unmet:
            message = message + "\n" + "\n".join(f"  - {item}" for item in self.unmet)
        super().__init__(message)


class StorageError(PickemError):
    """Raised by a store when a read or write fails."""
