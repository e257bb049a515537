"""Services module for the pick'em ledger."""

from .ledger import LedgerService, INVALID_ODDS_MESSAGE

__all__ = [
    "LedgerService",
    "INVALID_ODDS_MESSAGE",
]
