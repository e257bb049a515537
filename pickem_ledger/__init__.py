"""Settlement and ledger engine for a weekly pick'em betting pool."""

__version__ = "1.0.0"
