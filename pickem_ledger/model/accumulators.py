"""
Accumulator engine.

Two accumulators are generated per week from the picks:

- max-acca (stake MAX_ACCA_STAKE): every player's two picks, duplicates kept
  as independent legs
- 1st-pick-acca (stake FIRST_PICK_ACCA_STAKE): every player's first pick

Potential winnings = stake x product of leg odds. A leg is priced from the
first odds record for that team in the week, whichever player entered it;
a team with no odds at all is priced at evens as a placeholder.

Settlement:
- WON     every leg has an explicit win
- LOST    every leg has a result and at least one is a loss
- PENDING any leg has no result yet (is_won = None)
An accumulator with no legs left is LOST with nothing paid.

regenerate_accumulators() is idempotent: it creates only the missing bet
types and re-settles existing ones in place, so it is safe to call after
every change to picks, odds or results. Until the week's odds are locked the
legs are rebuilt from the current picks, less any team an admin removed,
so late and resubmitted picks are picked up.
"""

import logging
from typing import List, Optional, Tuple

from .config import EVENS_DECIMAL_ODDS, FIRST_PICK_ACCA_STAKE, MAX_ACCA_STAKE
from .entities import AccumulatorBet, AccumulatorType
from .odds import is_usable_odds
from .season import SeasonState

logger = logging.getLogger(__name__)


ACCUMULATOR_STAKES = {
    AccumulatorType.MAX_ACCA: MAX_ACCA_STAKE,
    AccumulatorType.FIRST_PICK_ACCA: FIRST_PICK_ACCA_STAKE,
}


def build_legs(state: SeasonState, week: int, bet_type: AccumulatorType) -> List[str]:
    """Legs for a freshly generated accumulator, in pick submission order."""
    legs = []
    for pick in state.picks_for_week(week):
        if bet_type == AccumulatorType.MAX_ACCA:
            legs.extend([pick.team1, pick.team2])
        else:
            legs.append(pick.team1)
    return legs


def leg_odds(state: SeasonState, team_name: str, week: int) -> float:
    """Decimal odds for one leg, falling back to evens when nothing is priced."""
    record = state.first_odds_for_team(team_name, week)
    if record is None or not is_usable_odds(record.odds):
        return EVENS_DECIMAL_ODDS
    return record.odds


def potential_winnings(state: SeasonState, teams: List[str], stake: float, week: int) -> float:
    """Stake multiplied by the odds of every leg."""
    if not teams:
        return 0.0
    total_odds = 1.0
    for team in teams:
        total_odds *= leg_odds(state, team, week)
    return stake * total_odds


def settle_accumulator(state: SeasonState, bet: AccumulatorBet) -> Tuple[Optional[bool], float]:
    """
    Work out an accumulator's outcome from the current team results.

    Returns:
        Tuple of (is_won, actual_winnings); is_won is None while pending
    """
    if not bet.teams:
        return False, 0.0

    all_won = True
    for team in bet.teams:
        result = state.result_for(team, bet.week)
        if result is None:
            return None, 0.0
        if not result.has_won:
            all_won = False

    if all_won:
        return True, bet.potential_winnings
    return False, 0.0


def resettle(state: SeasonState, bet: AccumulatorBet) -> AccumulatorBet:
    """Recompute potential and actual winnings in place from the current snapshot."""
    bet.potential_winnings = potential_winnings(state, bet.teams, bet.stake, bet.week)
    bet.is_won, bet.actual_winnings = settle_accumulator(state, bet)
    logger.debug(
        f"Accumulator {bet.type.value} week {bet.week}: legs={len(bet.teams)} "
        f"potential={bet.potential_winnings:.2f} is_won={bet.is_won} actual={bet.actual_winnings:.2f}"
    )
    return bet


def regenerate_accumulators(state: SeasonState, week: int) -> List[AccumulatorBet]:
    """
    Create any missing accumulators for the week, refresh the legs of
    existing ones while odds are unlocked, and re-settle all of them.

    Does nothing when the week has no picks.

    Returns:
        The week's accumulators after regeneration
    """
    if not state.picks_for_week(week):
        return state.accumulators_for_week(week)

    locked = state.is_odds_locked(week)
    for bet_type in (AccumulatorType.MAX_ACCA, AccumulatorType.FIRST_PICK_ACCA):
        existing = state.accumulator_for(week, bet_type)
        if existing is not None:
            if not locked:
                existing.teams = [t for t in build_legs(state, week, bet_type) if t not in existing.removed_teams]
            continue
        legs = build_legs(state, week, bet_type)
        if not legs:
            continue
        bet = AccumulatorBet(
            week=week,
            type=bet_type,
            stake=ACCUMULATOR_STAKES[bet_type],
            teams=legs,
        )
        state.accumulators.append(bet)
        logger.info(f"Generated {bet_type.value} for week {week} with {len(legs)} legs")

    bets = state.accumulators_for_week(week)
    for bet in bets:
        resettle(state, bet)
    return bets


def resettle_week(state: SeasonState, week: int) -> List[AccumulatorBet]:
    """Re-settle the week's existing accumulators without generating new ones."""
    bets = state.accumulators_for_week(week)
    for bet in bets:
        resettle(state, bet)
    return bets


def remove_leg(state: SeasonState, bet: AccumulatorBet, team_name: str) -> AccumulatorBet:
    """
    Drop every leg on team_name from an accumulator and re-settle it.

    The team is remembered on the bet so regeneration does not add it back.

    Raises:
        ValueError: If the team is not a leg of the accumulator
    """
    if team_name not in bet.teams:
        raise ValueError(f"{team_name} is not a leg of the week {bet.week} {bet.type.value}")

    bet.teams = [t for t in bet.teams if t != team_name]
    if team_name not in bet.removed_teams:
        bet.removed_teams.append(team_name)
    resettle(state, bet)
    if not bet.teams:
        logger.info(f"{bet.type.value} week {bet.week} has no legs left, marked as lost")
    return bet
