"""
Settlement engine for individual player bets.

Double bet: each player's two weekly picks, staked DOUBLE_BET_STAKE, paying
stake x odds1 x odds2 only when both legs are explicitly won. A pending leg
pays nothing, same as a lost one, until a result is entered.

Kicker Bet: exact-score side bet, staked KICKER_BET_STAKE, paying
stake x the player's kicker odds to every winner recorded on the week's
KickerBetResult. Winners are fixed when the result is entered.

Accumulators never count towards an individual's earnings.

Missing odds are a data gap, not an error: the bet contributes zero and a
warning is attached so reporting can surface it.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from .config import DOUBLE_BET_STAKE, KICKER_BET_STAKE
from .entities import KickerBet
from .odds import is_usable_odds
from .season import SeasonState

logger = logging.getLogger(__name__)


# Settlement status labels
NO_PICK = "NO_PICK"
PENDING = "PENDING"
WON = "WON"
LOST = "LOST"


@dataclass
class DoubleBetSettlement:
    """Breakdown of one player's double bet for one week."""
    player_name: str
    week: int
    team1: str = ""
    team2: str = ""
    team1_won: Optional[bool] = None  # None = no result yet
    team2_won: Optional[bool] = None
    team1_odds: Optional[float] = None
    team2_odds: Optional[float] = None
    status: str = NO_PICK
    earnings: float = 0.0
    missing_odds: bool = False


@dataclass
class PlayerWeekEarnings:
    """A player's individual earnings for one week (double bet + Kicker Bet)."""
    player_name: str
    week: int
    double_bet: float = 0.0
    kicker_bet: float = 0.0
    kicker_bet_won: bool = False
    warnings: List[str] = field(default_factory=list)

    @property
    def total(self) -> float:
        return self.double_bet + self.kicker_bet


def _usable_odds(record) -> Optional[float]:
    if record is None or not is_usable_odds(record.odds):
        return None
    return record.odds


def settle_double_bet(state: SeasonState, player_name: str, week: int) -> DoubleBetSettlement:
    """
    Settle a player's double bet for a week.

    Args:
        state: Season snapshot
        player_name: Player to settle
        week: Week number

    Returns:
        DoubleBetSettlement with status NO_PICK, PENDING, WON or LOST
    """
    settlement = DoubleBetSettlement(player_name=player_name, week=week)

    pick = state.pick_for(player_name, week)
    if pick is None:
        return settlement

    settlement.team1 = pick.team1
    settlement.team2 = pick.team2

    result1 = state.result_for(pick.team1, week)
    result2 = state.result_for(pick.team2, week)
    settlement.team1_won = result1.has_won if result1 else None
    settlement.team2_won = result2.has_won if result2 else None

    settlement.team1_odds = _usable_odds(state.odds_for(player_name, pick.team1, week))
    settlement.team2_odds = _usable_odds(state.odds_for(player_name, pick.team2, week))

    if settlement.team1_won is False or settlement.team2_won is False:
        settlement.status = LOST
        return settlement

    if not (state.has_won(pick.team1, week) and state.has_won(pick.team2, week)):
        settlement.status = PENDING
        return settlement

    settlement.status = WON
    if settlement.team1_odds is None or settlement.team2_odds is None:
        settlement.missing_odds = True
        logger.warning(
            f"Week {week}: {player_name} won the double ({pick.team1} + {pick.team2}) "
            f"but odds are missing, paying 0"
        )
        return settlement

    settlement.earnings = DOUBLE_BET_STAKE * settlement.team1_odds * settlement.team2_odds
    logger.debug(
        f"Week {week}: {player_name} double win "
        f"{DOUBLE_BET_STAKE} x {settlement.team1_odds} x {settlement.team2_odds} = {settlement.earnings:.2f}"
    )
    return settlement


def double_bet_earnings(state: SeasonState, player_name: str, week: int) -> float:
    """Earnings from a player's double bet; 0 unless both legs are explicitly won."""
    return settle_double_bet(state, player_name, week).earnings


# ============================================================================
# KICKER BET
# ============================================================================

def find_kicker_winners(kicker_bet: KickerBet, actual_home_score: int, actual_away_score: int) -> List[str]:
    """
    Players whose prediction matches the actual score exactly.

    Both components must match; there is no near-miss credit.
    Order follows prediction submission order.
    """
    return [
        p.player_name
        for p in kicker_bet.predictions
        if p.home_score == actual_home_score and p.away_score == actual_away_score
    ]


def kicker_bet_earnings(state: SeasonState, player_name: str, week: int) -> float:
    """Stake x the player's kicker odds if they are a recorded winner for the week."""
    result = state.kicker_result_for(week)
    if result is None or player_name not in result.winners:
        return 0.0
    odds = _usable_odds(state.kicker_odds_for(player_name, week))
    if odds is None:
        return 0.0
    return KICKER_BET_STAKE * odds


# ============================================================================
# PER-PLAYER WEEKLY EARNINGS
# ============================================================================

def participants_for_week(state: SeasonState, week: int) -> List[str]:
    """Players with a pick for the week, then any Kicker Bet predictors without one."""
    players = state.players_for_week(week)
    kicker_bet = state.kicker_bet_for(week)
    if kicker_bet is not None:
        for prediction in kicker_bet.predictions:
            if prediction.player_name not in players:
                players.append(prediction.player_name)
    return players


def player_week_earnings(state: SeasonState, player_name: str, week: int) -> PlayerWeekEarnings:
    """Double bet plus Kicker Bet earnings for one player and week."""
    earnings = PlayerWeekEarnings(player_name=player_name, week=week)

    double = settle_double_bet(state, player_name, week)
    earnings.double_bet = double.earnings
    if double.missing_odds:
        earnings.warnings.append(
            f"{player_name} won the double bet in week {week} but odds are missing"
        )

    result = state.kicker_result_for(week)
    if result is not None and player_name in result.winners:
        earnings.kicker_bet_won = True
        earnings.kicker_bet = kicker_bet_earnings(state, player_name, week)
        if earnings.kicker_bet == 0.0:
            earnings.warnings.append(
                f"{player_name} won the Kicker Bet in week {week} but odds are missing"
            )

    return earnings


def week_earnings(state: SeasonState, week: int) -> List[PlayerWeekEarnings]:
    """Earnings for every participating player in the week."""
    return [player_week_earnings(state, name, week) for name in participants_for_week(state, week)]
