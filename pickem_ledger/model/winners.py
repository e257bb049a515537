"""
Weekly winner resolution and week-advance preconditions.

The weekly winner is the top individual earner (double bet + Kicker Bet,
no accumulator share). Ties go to the alphabetically first name. Nobody is
recorded for a week where every player earned zero. The winner picks the
following week's Kicker Bet match.

Names compare case-insensitively, so "amy" ranks ahead of "Bob".
"""

import logging
from typing import List, Optional, Tuple

from .entities import WeeklyWinner
from .season import SeasonState
from .settlement import week_earnings

logger = logging.getLogger(__name__)


def name_sort_key(name: str) -> Tuple[str, str]:
    """Alphabetical order ignoring case, raw name breaking exact ties."""
    return name.casefold(), name


def resolve_weekly_winner(state: SeasonState, week: int) -> Optional[WeeklyWinner]:
    """
    Determine the week's top earner without recording it.

    Args:
        state: Season snapshot
        week: Week to resolve

    Returns:
        WeeklyWinner, or None if nobody earned anything
    """
    standings = week_earnings(state, week)
    if not standings:
        return None

    top_earnings = max(e.total for e in standings)
    if top_earnings <= 0:
        logger.info(f"No weekly winner for week {week}: no player earned anything")
        return None

    tied = sorted((e.player_name for e in standings if e.total == top_earnings), key=name_sort_key)
    if len(tied) > 1:
        logger.info(f"Week {week} tie at {top_earnings:.2f} between {tied}, taking {tied[0]}")

    return WeeklyWinner(week=week, player_name=tied[0], earnings=top_earnings)


def record_weekly_winner(state: SeasonState, week: int) -> Optional[WeeklyWinner]:
    """
    Record the week's winner once. An existing record is never overwritten.

    Returns:
        The recorded (or already existing) WeeklyWinner, or None
    """
    existing = state.weekly_winner_for(week)
    if existing is not None:
        return existing

    winner = resolve_weekly_winner(state, week)
    if winner is not None:
        state.weekly_winners.append(winner)
        logger.info(f"Weekly winner for week {week}: {winner.player_name} ({winner.earnings:.2f})")
    return winner


def kicker_bet_selector(state: SeasonState, week: int) -> Optional[str]:
    """Player entitled to choose the Kicker Bet match for a week."""
    previous = state.weekly_winner_for(week - 1)
    return previous.player_name if previous else None


def unmet_advance_preconditions(state: SeasonState, week: Optional[int] = None) -> List[str]:
    """
    Everything still blocking advancement past a week.

    An empty list means the week may advance.
    """
    if week is None:
        week = state.current_week

    unmet = []

    if not state.is_odds_locked(week):
        unmet.append(f"Odds for week {week} are not locked")

    if state.kicker_bet_for(week) is not None and state.kicker_result_for(week) is None:
        unmet.append(f"Kicker Bet scoreline for week {week} has not been entered")

    pending = [team for team in state.teams_for_week(week) if state.result_for(team, week) is None]
    if pending:
        unmet.append(f"Results missing for week {week}: {', '.join(pending)}")

    return unmet


def can_advance(state: SeasonState, week: Optional[int] = None) -> bool:
    return not unmet_advance_preconditions(state, week)
