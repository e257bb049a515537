"""
Load and save a SeasonState through a key-value store.

Loading is tolerant: a key that is missing yields its default, and a record
that fails validation is quarantined (skipped, logged, kept on
SeasonState.quarantined) instead of reaching settlement arithmetic.
Legacy accumulator type names are migrated as records are parsed, and the
isLate flag on picks and predictions is recomputed from submittedAt.

Saving writes one key at a time. A failed write is logged and reported
as False; the in-memory state is never rolled back.
"""

import json
import logging
from typing import Any, Callable, Dict, List

from ..errors import StorageError
from ..model.entities import (
    LEGACY_ACCUMULATOR_TYPES,
    AccumulatorBet,
    KickerBet,
    KickerBetOdds,
    KickerBetResult,
    OddsLockState,
    PlayerPickOdds,
    SeasonSettings,
    TeamPick,
    TeamResult,
    TotalPotData,
    WeeklyWinner,
)
from ..model.season import SeasonState
from ..utils.dates import is_late_submission
from .kv import (
    ACCUMULATOR_BETS,
    CURRENT_WEEK,
    GAME_ODDS,
    GAME_RESULTS,
    KICKER_BET_ODDS,
    KICKER_BET_RESULTS,
    KICKER_BETS,
    ODDS_LOCK_STATES,
    PLAYER_PICK_ODDS,
    PLAYER_PICKS,
    SEASON_SETTINGS,
    STORAGE_KEYS,
    TEAM_RESULTS,
    TOTAL_POT_DATA,
    WEEKLY_WINNERS,
    KeyValueStore,
)

logger = logging.getLogger(__name__)

_RECORD_ERRORS = (KeyError, TypeError, ValueError, AttributeError)


# ============================================================================
# KEY <-> STATE MAPPING
# ============================================================================

# key -> (SeasonState attribute, record parser)
LIST_KEYS: Dict[str, tuple] = {
    PLAYER_PICKS: ("picks", TeamPick.from_dict),
    PLAYER_PICK_ODDS: ("pick_odds", PlayerPickOdds.from_dict),
    TEAM_RESULTS: ("team_results", TeamResult.from_dict),
    ACCUMULATOR_BETS: ("accumulators", AccumulatorBet.from_dict),
    KICKER_BETS: ("kicker_bets", KickerBet.from_dict),
    KICKER_BET_ODDS: ("kicker_odds", KickerBetOdds.from_dict),
    KICKER_BET_RESULTS: ("kicker_results", KickerBetResult.from_dict),
    WEEKLY_WINNERS: ("weekly_winners", WeeklyWinner.from_dict),
    ODDS_LOCK_STATES: ("odds_locks", OddsLockState.from_dict),
}

OBJECT_KEYS: Dict[str, tuple] = {
    SEASON_SETTINGS: ("settings", SeasonSettings.from_dict),
    TOTAL_POT_DATA: ("total_pot", TotalPotData.from_dict),
}

# Stored untouched; never parsed into typed records
PASSTHROUGH_KEYS: Dict[str, str] = {
    GAME_ODDS: "legacy_game_odds",
    GAME_RESULTS: "legacy_game_results",
}


def serialize_key(state: SeasonState, key: str) -> str:
    """JSON text for one storage key."""
    if key == CURRENT_WEEK:
        return str(state.current_week)
    if key in LIST_KEYS:
        attr, _ = LIST_KEYS[key]
        return json.dumps([record.to_dict() for record in getattr(state, attr)])
    if key in OBJECT_KEYS:
        attr, _ = OBJECT_KEYS[key]
        return json.dumps(getattr(state, attr).to_dict())
    if key in PASSTHROUGH_KEYS:
        return json.dumps(getattr(state, PASSTHROUGH_KEYS[key]))
    raise KeyError(f"unknown storage key: {key}")


# ============================================================================
# LOADING
# ============================================================================

def _quarantine(state: SeasonState, key: str, raw: Any, reason: str) -> None:
    state.quarantined.setdefault(key, []).append(raw)
    logger.warning(f"Quarantined record under {key}: {reason} ({raw!r})")


def _parse_current_week(state: SeasonState, raw: str) -> None:
    try:
        week = int(raw.strip())
    except ValueError:
        _quarantine(state, CURRENT_WEEK, raw, "not an integer")
        return
    if week < 1:
        _quarantine(state, CURRENT_WEEK, raw, "week must be >= 1")
        return
    state.current_week = week


def _parse_list(state: SeasonState, key: str, raw: str, parser: Callable) -> List[Any]:
    try:
        items = json.loads(raw)
    except json.JSONDecodeError as e:
        _quarantine(state, key, raw, f"invalid JSON: {e}")
        return []
    if not isinstance(items, list):
        _quarantine(state, key, items, "expected a JSON array")
        return []

    records = []
    for item in items:
        if not isinstance(item, dict):
            _quarantine(state, key, item, "expected a JSON object")
            continue
        try:
            records.append(parser(item))
        except _RECORD_ERRORS as e:
            _quarantine(state, key, item, str(e))
    return records


def _count_legacy_types(raw: str) -> int:
    try:
        items = json.loads(raw)
    except json.JSONDecodeError:
        return 0
    if not isinstance(items, list):
        return 0
    return sum(1 for item in items if isinstance(item, dict) and item.get("type") in LEGACY_ACCUMULATOR_TYPES)


def refresh_late_flags(state: SeasonState) -> None:
    """Recompute isLate on every pick and prediction from its submittedAt."""
    for pick in state.picks:
        pick.is_late = is_late_submission(pick.submitted_at)
    for bet in state.kicker_bets:
        for prediction in bet.predictions:
            prediction.is_late = is_late_submission(prediction.submitted_at)


async def load_season(store: KeyValueStore) -> SeasonState:
    """
    Read every key from the store into a fresh SeasonState.

    Raises:
        StorageError: If the store itself fails
    """
    state = SeasonState()

    raw = await store.get(CURRENT_WEEK)
    if raw is not None:
        _parse_current_week(state, raw)

    for key, (attr, parser) in LIST_KEYS.items():
        raw = await store.get(key)
        if raw is None:
            continue
        if key == ACCUMULATOR_BETS:
            migrated = _count_legacy_types(raw)
            if migrated:
                logger.info(f"Migrated {migrated} accumulator(s) with legacy type names")
        setattr(state, attr, _parse_list(state, key, raw, parser))

    for key, (attr, parser) in OBJECT_KEYS.items():
        raw = await store.get(key)
        if raw is None:
            continue
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            _quarantine(state, key, raw, f"invalid JSON: {e}")
            continue
        if not isinstance(data, dict):
            _quarantine(state, key, data, "expected a JSON object")
            continue
        try:
            setattr(state, attr, parser(data))
        except _RECORD_ERRORS as e:
            _quarantine(state, key, data, str(e))

    for key, attr in PASSTHROUGH_KEYS.items():
        raw = await store.get(key)
        if raw is None:
            continue
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            _quarantine(state, key, raw, f"invalid JSON: {e}")
            continue
        if isinstance(data, list):
            setattr(state, attr, data)
        else:
            _quarantine(state, key, data, "expected a JSON array")

    refresh_late_flags(state)

    quarantined = sum(len(v) for v in state.quarantined.values())
    logger.info(
        f"Loaded season: week {state.current_week}, {len(state.picks)} picks, "
        f"{len(state.accumulators)} accumulators, {quarantined} quarantined"
    )
    return state


# ============================================================================
# SAVING
# ============================================================================

async def save_key(store: KeyValueStore, state: SeasonState, key: str) -> bool:
    """
    Persist one key. Failures are logged, never raised.

    Returns:
        True if the write succeeded
    """
    try:
        await store.set(key, serialize_key(state, key))
    except (StorageError, OSError) as e:
        logger.error(f"Error saving {key}: {e}", exc_info=True)
        return False
    return True


async def save_keys(store: KeyValueStore, state: SeasonState, keys: List[str]) -> bool:
    """Persist several keys in order. True only if every write succeeded."""
    ok = True
    for key in keys:
        if not await save_key(store, state, key):
            ok = False
    return ok


async def save_season(store: KeyValueStore, state: SeasonState) -> bool:
    """Persist every key."""
    return await save_keys(store, state, STORAGE_KEYS)


async def clear_season(store: KeyValueStore, week: int = 1) -> bool:
    """
    Remove every persisted key and reset currentWeek.

    Returns:
        True if every removal and the week reset succeeded
    """
    ok = True
    for key in STORAGE_KEYS:
        if key == CURRENT_WEEK:
            continue
        try:
            await store.remove(key)
        except (StorageError, OSError) as e:
            logger.error(f"Error removing {key}: {e}", exc_info=True)
            ok = False
    try:
        await store.set(CURRENT_WEEK, str(week))
    except (StorageError, OSError) as e:
        logger.error(f"Error resetting {CURRENT_WEEK}: {e}", exc_info=True)
        ok = False
    return ok
