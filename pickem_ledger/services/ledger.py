"""
Ledger service: every admin and player action on the pool.

Each operation validates its input before touching state (raising
ValidationError), applies the change to the in-memory SeasonState, then
re-derives whatever depends on it:

- accumulators for the week are regenerated/re-settled
- the season pot snapshot is recomputed
- every changed key is written back to the store

Writes are awaited one after another. A failed write is logged and the
in-memory state is kept, so the next successful write or a reload brings
the two back in line.

Operations act on the current week unless a week is given.
"""

import logging
from typing import List, Optional, Union

from ..errors import PreconditionError, StorageError, ValidationError
from ..model.accumulators import regenerate_accumulators, remove_leg, resettle_week
from ..model.entities import (
    AccumulatorBet,
    AccumulatorType,
    KickerBet,
    KickerBetOdds,
    KickerBetPrediction,
    KickerBetResult,
    PlayerPickOdds,
    TeamPick,
    TeamResult,
    WeeklyWinner,
)
from ..model.odds import parse_odds
from ..model.pot import refresh_total_pot
from ..model.season import SeasonState
from ..model.settlement import find_kicker_winners
from ..model.winners import kicker_bet_selector, record_weekly_winner, unmet_advance_preconditions
from ..storage.kv import (
    ACCUMULATOR_BETS,
    CURRENT_WEEK,
    KICKER_BET_ODDS,
    KICKER_BET_RESULTS,
    KICKER_BETS,
    ODDS_LOCK_STATES,
    PLAYER_PICK_ODDS,
    PLAYER_PICKS,
    SEASON_SETTINGS,
    TEAM_RESULTS,
    TOTAL_POT_DATA,
    WEEKLY_WINNERS,
    KeyValueStore,
)
from ..storage.repository import clear_season, load_season, save_keys
from ..utils.dates import is_late_submission, utc_now_iso

logger = logging.getLogger(__name__)

INVALID_ODDS_MESSAGE = "Invalid odds format. Use fractions like 5/1 or decimals like 2.5"


# ============================================================================
# INPUT HELPERS
# ============================================================================

def _clean(value: Optional[str], message: str) -> str:
    """Trim a text input, rejecting empty values."""
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(message)
    return value.strip()


def _parse_score(value: Union[int, str, None], message: str) -> int:
    """Accept a non-negative integer score, given as int or digit string."""
    if isinstance(value, bool):
        raise ValidationError(message)
    if isinstance(value, int):
        score = value
    elif isinstance(value, str) and value.strip().isdecimal():
        score = int(value.strip())
    else:
        raise ValidationError(message)
    if score < 0:
        raise ValidationError(message)
    return score


def _parse_odds_input(text: str) -> float:
    odds = parse_odds(text)
    if odds <= 0:
        raise ValidationError(INVALID_ODDS_MESSAGE)
    return odds


class LedgerService:
    """
    Stateful front door to the engine for one season.

    Args:
        store: Key-value store the season is persisted in
        state: Starting snapshot (default: an empty season; call load())
    """

    def __init__(self, store: KeyValueStore, state: Optional[SeasonState] = None):
        self.store = store
        self.state = state if state is not None else SeasonState()

    @classmethod
    async def open(cls, store: KeyValueStore) -> "LedgerService":
        """Create a service and load the season from the store."""
        service = cls(store)
        await service.load()
        return service

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    async def load(self) -> bool:
        """
        Replace the in-memory state with the stored season.

        Returns:
            False if the store could not be read (state left unchanged)
        """
        try:
            self.state = await load_season(self.store)
        except (StorageError, OSError) as e:
            logger.error(f"Error loading season: {e}", exc_info=True)
            return False
        return True

    async def _persist(self, *keys: str) -> bool:
        return await save_keys(self.store, self.state, list(keys))

    async def _recompute(self, week: int) -> bool:
        """Re-derive accumulators and the pot after a change affecting week."""
        if self.state.settings.is_season_started and self.state.picks_for_week(week):
            regenerate_accumulators(self.state, week)
        else:
            resettle_week(self.state, week)
        refresh_total_pot(self.state)
        return await self._persist(ACCUMULATOR_BETS, TOTAL_POT_DATA)

    def _week(self, week: Optional[int]) -> int:
        if week is None:
            return self.state.current_week
        if isinstance(week, bool) or not isinstance(week, int) or week < 1:
            raise ValidationError(f"Invalid week: {week!r}")
        return week

    def _require_unlocked(self, week: int, message: str) -> None:
        if self.state.is_odds_locked(week):
            raise ValidationError(message)

    # ------------------------------------------------------------------
    # Roster and season lifecycle
    # ------------------------------------------------------------------

    async def add_player(self, name: str) -> str:
        """Add a player to the roster before the season starts."""
        name = _clean(name, "Please enter a player name")
        settings = self.state.settings
        if settings.is_season_started:
            raise ValidationError("Cannot add players after season has started")
        if name in settings.locked_players:
            raise ValidationError("Player already exists")

        settings.locked_players.append(name)
        await self._persist(SEASON_SETTINGS)
        logger.info(f"Player {name} added to season")
        return name

    async def remove_player(self, name: str) -> None:
        settings = self.state.settings
        if settings.is_season_started:
            raise ValidationError("Cannot remove players after season has started")
        if name not in settings.locked_players:
            raise ValidationError(f"Player {name} is not on the roster")

        settings.locked_players.remove(name)
        await self._persist(SEASON_SETTINGS)
        logger.info(f"Player {name} removed from season")

    async def start_season(self) -> None:
        """Lock the roster and stamp the season start date."""
        settings = self.state.settings
        if settings.is_season_started:
            raise ValidationError("Season has already started")
        if not settings.locked_players:
            raise ValidationError("Add at least one player before starting the season")

        settings.is_season_started = True
        settings.season_start_date = utc_now_iso()
        await self._persist(SEASON_SETTINGS)
        logger.info(f"Season started with {len(settings.locked_players)} players")

    async def reset_season(self) -> bool:
        """Wipe every persisted key and start again from week 1."""
        ok = await clear_season(self.store)
        self.state = SeasonState()
        logger.info("Season reset")
        return ok

    # ------------------------------------------------------------------
    # Player submissions
    # ------------------------------------------------------------------

    async def submit_picks(
        self,
        player_name: str,
        team1: str,
        team2: str,
        home_score: Union[int, str, None] = None,
        away_score: Union[int, str, None] = None,
        submitted_at: Optional[str] = None,
    ) -> TeamPick:
        """
        Submit (or resubmit) a player's two picks for the current week.

        When the week has a Kicker Bet, a score prediction must come with the
        picks and is stored alongside them.
        """
        state = self.state
        week = state.current_week

        if not state.settings.is_season_started:
            raise ValidationError("The season has not started yet")
        if player_name not in state.settings.locked_players:
            raise ValidationError(f"{player_name!r} is not on the roster")

        team1 = _clean(team1, "Please complete both weekly picks.")
        team2 = _clean(team2, "Please complete both weekly picks.")
        if team1.lower() == team2.lower():
            raise ValidationError("Please select two different teams")

        kicker_bet = state.kicker_bet_for(week) if week > 1 else None
        prediction_scores = None
        if kicker_bet is not None:
            if home_score in (None, "") or away_score in (None, ""):
                raise ValidationError("Please complete both weekly picks and KickerBet predictions.")
            prediction_scores = (
                _parse_score(home_score, "Please enter valid KB scores (0 or higher)"),
                _parse_score(away_score, "Please enter valid KB scores (0 or higher)"),
            )

        if submitted_at is None:
            submitted_at = utc_now_iso()
        is_late = is_late_submission(submitted_at)

        pick = TeamPick(
            player_name=player_name,
            week=week,
            team1=team1,
            team2=team2,
            submitted_at=submitted_at,
            is_late=is_late,
        )
        state.upsert_pick(pick)
        await self._persist(PLAYER_PICKS)
        logger.info(
            f"Week {week} picks from {player_name}: {team1} + {team2}"
            + (" (LATE)" if is_late else "")
        )

        if prediction_scores is not None:
            prediction = KickerBetPrediction(
                player_name=player_name,
                home_score=prediction_scores[0],
                away_score=prediction_scores[1],
                week=week,
                submitted_at=submitted_at,
                is_late=is_late,
            )
            for i, existing in enumerate(kicker_bet.predictions):
                if existing.player_name == player_name:
                    kicker_bet.predictions[i] = prediction
                    break
            else:
                kicker_bet.predictions.append(prediction)
            await self._persist(KICKER_BETS)
            logger.info(f"Week {week} Kicker Bet prediction from {player_name}: {prediction.home_score}-{prediction.away_score}")

        await self._recompute(week)
        return pick

    async def select_kicker_match(self, player_name: str, match: str) -> KickerBet:
        """Previous week's winner names the Kicker Bet match for the current week."""
        state = self.state
        week = state.current_week
        match = _clean(match, "Please enter the match for the Kicker Bet")

        if not state.settings.is_season_started:
            raise ValidationError("The season has not started yet")
        if kicker_bet_selector(state, week) != player_name:
            raise ValidationError("Only the previous week's winner can select the Kicker Bet match")
        if state.kicker_bet_for(week) is not None:
            raise ValidationError("Kicker Bet match has already been selected for this week")

        kicker_bet = KickerBet(week=week, selected_match=match, selected_by=player_name)
        state.kicker_bets.append(kicker_bet)
        await self._persist(KICKER_BETS)
        logger.info(f"Week {week} Kicker Bet match selected by {player_name}: {match}")
        return kicker_bet

    # ------------------------------------------------------------------
    # Odds
    # ------------------------------------------------------------------

    async def set_pick_odds(
        self, player_name: str, team_name: str, odds_text: str, week: Optional[int] = None
    ) -> Optional[PlayerPickOdds]:
        """
        Record the price a player got on one of their teams.

        An empty string removes the record.

        Returns:
            The stored record, or None if it was removed
        """
        state = self.state
        week = self._week(week)
        self._require_unlocked(week, f"Odds for week {week} are locked")

        pick = state.pick_for(player_name, week)
        if pick is None or team_name not in pick.teams:
            raise ValidationError(f"{player_name} did not pick {team_name} in week {week}")

        if not (odds_text or "").strip():
            if state.remove_pick_odds(player_name, team_name, week):
                await self._persist(PLAYER_PICK_ODDS)
                logger.info(f"Removed week {week} odds for {player_name} - {team_name}")
            await self._recompute(week)
            return None

        record = PlayerPickOdds(
            player_name=player_name,
            team_name=team_name,
            week=week,
            odds=_parse_odds_input(odds_text),
            odds_fraction=odds_text.strip(),
        )
        state.upsert_pick_odds(record)
        await self._persist(PLAYER_PICK_ODDS)
        logger.info(f"Updated week {week} odds for {player_name} - {team_name}: {record.odds_fraction}")

        await self._recompute(week)
        return record

    async def set_kicker_odds(
        self, player_name: str, odds_text: str, week: Optional[int] = None
    ) -> Optional[KickerBetOdds]:
        """Record the price on a player's Kicker Bet prediction. Empty removes it."""
        state = self.state
        week = self._week(week)
        self._require_unlocked(week, f"Odds for week {week} are locked")

        kicker_bet = state.kicker_bet_for(week)
        if kicker_bet is None or kicker_bet.prediction_for(player_name) is None:
            raise ValidationError(f"{player_name} has no Kicker Bet prediction in week {week}")

        if not (odds_text or "").strip():
            if state.remove_kicker_odds(player_name, week):
                await self._persist(KICKER_BET_ODDS)
                logger.info(f"Removed week {week} Kicker Bet odds for {player_name}")
            await self._recompute(week)
            return None

        record = KickerBetOdds(
            player_name=player_name,
            week=week,
            odds=_parse_odds_input(odds_text),
            odds_fraction=odds_text.strip(),
        )
        state.upsert_kicker_odds(record)
        await self._persist(KICKER_BET_ODDS)
        logger.info(f"Updated week {week} Kicker Bet odds for {player_name}: {record.odds_fraction}")

        await self._recompute(week)
        return record

    async def lock_odds(self, week: Optional[int] = None) -> bool:
        """
        Latch the week's odds. Locking is one-way.

        Returns:
            False if the week was already locked
        """
        week = self._week(week)
        if not self.state.lock_odds(week):
            logger.info(f"Odds for week {week} are already locked")
            return False
        await self._persist(ODDS_LOCK_STATES)
        logger.info(f"Odds locked for week {week}")
        return True

    # ------------------------------------------------------------------
    # Results
    # ------------------------------------------------------------------

    async def set_team_result(self, team_name: str, has_won: bool, week: Optional[int] = None) -> TeamResult:
        team_name = _clean(team_name, "Please enter a team name")
        if not isinstance(has_won, bool):
            raise ValidationError(f"has_won must be True or False, got {has_won!r}")
        week = self._week(week)

        result = self.state.set_team_result(team_name, week, has_won)
        await self._persist(TEAM_RESULTS)
        logger.info(f"Week {week} result: {team_name} {'won' if has_won else 'lost'}")

        await self._recompute(week)
        return result

    async def toggle_team_result(self, team_name: str, week: Optional[int] = None) -> TeamResult:
        """No result -> won, won -> lost, lost -> won."""
        team_name = _clean(team_name, "Please enter a team name")
        week = self._week(week)
        existing = self.state.result_for(team_name, week)
        has_won = True if existing is None else not existing.has_won
        return await self.set_team_result(team_name, has_won, week)

    async def clear_team_result(self, team_name: str, week: Optional[int] = None) -> bool:
        """Put a team back to pending. Returns False if it had no result."""
        week = self._week(week)
        if not self.state.remove_team_result(team_name, week):
            return False
        await self._persist(TEAM_RESULTS)
        logger.info(f"Week {week} result cleared for {team_name}")

        await self._recompute(week)
        return True

    async def submit_kicker_result(
        self, home_score: Union[int, str], away_score: Union[int, str]
    ) -> KickerBetResult:
        """
        Enter the Kicker Bet match score and fix the week's winners.

        The result is entered once; winners do not change afterwards.
        """
        state = self.state
        week = state.current_week
        if home_score in (None, "") or away_score in (None, ""):
            raise ValidationError("Please enter both home and away scores")
        home = _parse_score(home_score, "Please enter valid scores (0 or higher)")
        away = _parse_score(away_score, "Please enter valid scores (0 or higher)")

        kicker_bet = state.kicker_bet_for(week)
        if kicker_bet is None:
            raise ValidationError("No Kicker Bet found for this week")
        if state.kicker_result_for(week) is not None:
            raise ValidationError(f"Kicker Bet result for week {week} has already been entered")

        result = KickerBetResult(
            week=week,
            actual_home_score=home,
            actual_away_score=away,
            winners=find_kicker_winners(kicker_bet, home, away),
        )
        state.kicker_results.append(result)
        await self._persist(KICKER_BET_RESULTS)
        winners = ", ".join(result.winners) if result.winners else "no winners"
        logger.info(f"Week {week} Kicker Bet result {home}-{away}: {winners}")

        await self._recompute(week)
        return result

    # ------------------------------------------------------------------
    # Accumulators
    # ------------------------------------------------------------------

    async def remove_team_from_accumulator(
        self, bet_type: Union[AccumulatorType, str], team_name: str, week: Optional[int] = None
    ) -> AccumulatorBet:
        """Admin correction: drop a team's legs from one of the week's accumulators."""
        week = self._week(week)
        self._require_unlocked(week, "Cannot remove teams from accumulators when odds are locked")
        try:
            bet_type = AccumulatorType(bet_type)
        except ValueError as e:
            raise ValidationError(f"Unknown accumulator type: {bet_type!r}") from e

        bet = self.state.accumulator_for(week, bet_type)
        if bet is None:
            raise ValidationError(f"No {bet_type.value} for week {week}")
        try:
            remove_leg(self.state, bet, team_name)
        except ValueError as e:
            raise ValidationError(str(e)) from e
        logger.info(f"{team_name} removed from week {week} {bet_type.value}")

        await self._recompute(week)
        return bet

    # ------------------------------------------------------------------
    # Week advancement
    # ------------------------------------------------------------------

    def advance_blockers(self) -> List[str]:
        """Unmet conditions for leaving the current week."""
        return unmet_advance_preconditions(self.state)

    async def advance_week(self) -> Optional[WeeklyWinner]:
        """
        Close the current week and move to the next.

        Records the week's winner (if anyone earned anything) before the
        week number changes. Nothing changes if any precondition is unmet.

        Raises:
            PreconditionError: Listing every unmet precondition
        """
        state = self.state
        week = state.current_week
        unmet = unmet_advance_preconditions(state, week)
        if unmet:
            raise PreconditionError(f"Cannot advance past week {week}", unmet)

        had_winner = state.weekly_winner_for(week) is not None
        winner = record_weekly_winner(state, week)
        if winner is not None and not had_winner:
            await self._persist(WEEKLY_WINNERS)

        state.current_week = week + 1
        await self._persist(CURRENT_WEEK)
        logger.info(f"Advanced to week {state.current_week}")

        refresh_total_pot(state)
        await self._persist(TOTAL_POT_DATA)
        return winner
