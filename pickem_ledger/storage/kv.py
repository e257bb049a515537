"""
Asynchronous key-value stores for the pick'em ledger.

Every persisted entity is a JSON string under a fixed key. Stores only move
strings; parsing and validation happen in the repository layer.

Two implementations:
- MemoryStore: dict-backed, for tests and throwaway sessions
- JsonFileStore: one <key>.json file per key in a directory
"""

import asyncio
import logging
import os
import re
from pathlib import Path
from typing import Dict, List, Optional, Union

from ..errors import StorageError

logger = logging.getLogger(__name__)


# ============================================================================
# KEYS
# ============================================================================

CURRENT_WEEK = "currentWeek"
GAME_ODDS = "gameOdds"
PLAYER_PICK_ODDS = "playerPickOdds"
GAME_RESULTS = "gameResults"
TEAM_RESULTS = "teamResults"
PLAYER_PICKS = "playerPicks"
ACCUMULATOR_BETS = "accumulatorBets"
TOTAL_POT_DATA = "totalPotData"
SEASON_SETTINGS = "seasonSettings"
KICKER_BETS = "kickerBets"
KICKER_BET_ODDS = "kickerBetOdds"
KICKER_BET_RESULTS = "kickerBetResults"
WEEKLY_WINNERS = "weeklyWinners"
ODDS_LOCK_STATES = "oddsLockStates"

STORAGE_KEYS = [
    CURRENT_WEEK,
    GAME_ODDS,
    PLAYER_PICK_ODDS,
    GAME_RESULTS,
    TEAM_RESULTS,
    PLAYER_PICKS,
    ACCUMULATOR_BETS,
    TOTAL_POT_DATA,
    SEASON_SETTINGS,
    KICKER_BETS,
    KICKER_BET_ODDS,
    KICKER_BET_RESULTS,
    WEEKLY_WINNERS,
    ODDS_LOCK_STATES,
]

_KEY_PATTERN = re.compile(r"^[A-Za-z0-9_-]+$")


# ============================================================================
# STORES
# ============================================================================

class KeyValueStore:
    """
    Async string store: get/set/remove.

    get() returns None for a missing key. Implementations raise StorageError
    when the backing medium fails.
    """

    async def get(self, key: str) -> Optional[str]:
        raise NotImplementedError

    async def set(self, key: str, value: str) -> None:
        raise NotImplementedError

    async def remove(self, key: str) -> None:
        raise NotImplementedError

    async def keys(self) -> List[str]:
        raise NotImplementedError


class MemoryStore(KeyValueStore):
    """In-process store. Contents vanish with the object."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})

    async def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    async def set(self, key: str, value: str) -> None:
        if not isinstance(value, str):
            raise StorageError(f"value for {key} must be a string, got {type(value).__name__}")
        self._data[key] = value

    async def remove(self, key: str) -> None:
        self._data.pop(key, None)

    async def keys(self) -> List[str]:
        return list(self._data)

    def snapshot(self) -> Dict[str, str]:
        """Copy of the raw contents, for inspection in tests and reports."""
        return dict(self._data)


class JsonFileStore(KeyValueStore):
    """
    Directory-backed store, one UTF-8 file per key.

    Writes go to a temporary file that is then renamed over the target, so
    a crash mid-write never leaves a half-written value behind.
    """

    SUFFIX = ".json"

    def __init__(self, directory: Union[str, Path]):
        self.directory = Path(directory)

    def _path(self, key: str) -> Path:
        if not _KEY_PATTERN.match(key):
            raise StorageError(f"invalid storage key: {key!r}")
        return self.directory / f"{key}{self.SUFFIX}"

    def _read(self, key: str) -> Optional[str]:
        path = self._path(key)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as e:
            raise StorageError(f"failed to read {path}: {e}") from e

    def _write(self, key: str, value: str) -> None:
        path = self._path(key)
        tmp_path = path.with_suffix(path.suffix + ".tmp")
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(value, encoding="utf-8")
            os.replace(tmp_path, path)
        except OSError as e:
            raise StorageError(f"failed to write {path}: {e}") from e

    def _delete(self, key: str) -> None:
        path = self._path(key)
        try:
            path.unlink()
        except FileNotFoundError:
            pass
        except OSError as e:
            raise StorageError(f"failed to remove {path}: {e}") from e

    def _list(self) -> List[str]:
        if not self.directory.exists():
            return []
        return sorted(p.stem for p in self.directory.glob(f"*{self.SUFFIX}"))

    async def get(self, key: str) -> Optional[str]:
        return await asyncio.to_thread(self._read, key)

    async def set(self, key: str, value: str) -> None:
        if not isinstance(value, str):
            raise StorageError(f"value for {key} must be a string, got {type(value).__name__}")
        await asyncio.to_thread(self._write, key, value)
        logger.debug(f"Wrote {key} to {self.directory}")

    async def remove(self, key: str) -> None:
        await asyncio.to_thread(self._delete, key)

    async def keys(self) -> List[str]:
        return await asyncio.to_thread(self._list)
