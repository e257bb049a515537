"""Storage module for the pick'em ledger."""

from .kv import (
    STORAGE_KEYS,
    KeyValueStore,
    MemoryStore,
    JsonFileStore,
)
from .repository import (
    load_season,
    save_key,
    save_keys,
    save_season,
    clear_season,
    serialize_key,
    refresh_late_flags,
)

__all__ = [
    "STORAGE_KEYS",
    "KeyValueStore",
    "MemoryStore",
    "JsonFileStore",
    "load_season",
    "save_key",
    "save_keys",
    "save_season",
    "clear_season",
    "serialize_key",
    "refresh_late_flags",
]
