"""
Pot aggregation and breakeven accounting.

Pot = player winnings (double bets + Kicker Bets) + winnings of WON
accumulators. Everything is recomputed from the snapshot on every call;
the persisted TotalPotData is only a copy for reporting.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from .config import DOUBLE_BET_STAKE, KICKER_BET_STAKE
from .entities import AccumulatorType, TotalPotData
from .season import SeasonState
from .settlement import double_bet_earnings, kicker_bet_earnings

logger = logging.getLogger(__name__)


@dataclass
class PotSummary:
    """Winnings split by source for a week or a run of weeks."""
    double_bet_winnings: float = 0.0
    kicker_bet_winnings: float = 0.0
    accumulator_winnings: float = 0.0

    @property
    def player_winnings(self) -> float:
        return self.double_bet_winnings + self.kicker_bet_winnings

    @property
    def total_pot(self) -> float:
        return self.player_winnings + self.accumulator_winnings

    def add(self, other: "PotSummary") -> None:
        self.double_bet_winnings += other.double_bet_winnings
        self.kicker_bet_winnings += other.kicker_bet_winnings
        self.accumulator_winnings += other.accumulator_winnings

    def to_total_pot_data(self) -> TotalPotData:
        return TotalPotData(
            total_pot=self.total_pot,
            accumulator_winnings=self.accumulator_winnings,
            player_winnings=self.player_winnings,
        )


def pot_for_week(state: SeasonState, week: int) -> PotSummary:
    """Settled winnings for a single week."""
    summary = PotSummary()

    for pick in state.picks_for_week(week):
        summary.double_bet_winnings += double_bet_earnings(state, pick.player_name, week)

    result = state.kicker_result_for(week)
    if result is not None:
        for winner in result.winners:
            summary.kicker_bet_winnings += kicker_bet_earnings(state, winner, week)

    for bet in state.accumulators_for_week(week):
        if bet.is_won is True:
            summary.accumulator_winnings += bet.actual_winnings

    return summary


def season_pot(state: SeasonState, through_week: Optional[int] = None) -> PotSummary:
    """
    Winnings summed over weeks 1..through_week (default: the current week).
    """
    if through_week is None:
        through_week = state.current_week

    summary = PotSummary()
    for week in range(1, through_week + 1):
        summary.add(pot_for_week(state, week))
    return summary


def refresh_total_pot(state: SeasonState) -> TotalPotData:
    """Recompute the season pot snapshot and store it on the state."""
    state.total_pot = season_pot(state).to_total_pot_data()
    logger.debug(
        f"Total pot {state.total_pot.total_pot:.2f} "
        f"(players {state.total_pot.player_winnings:.2f}, "
        f"accumulators {state.total_pot.accumulator_winnings:.2f})"
    )
    return state.total_pot


# ============================================================================
# BREAKEVEN
# ============================================================================

@dataclass
class WeekBreakeven:
    """Money in versus money out for one week."""
    week: int
    double_bet_staked: float = 0.0
    kicker_bet_staked: float = 0.0
    accumulator_staked: float = 0.0
    winnings: PotSummary = field(default_factory=PotSummary)

    @property
    def staked(self) -> float:
        return self.double_bet_staked + self.kicker_bet_staked + self.accumulator_staked

    @property
    def breakeven(self) -> float:
        return self.winnings.total_pot - self.staked


@dataclass
class SeasonBreakeven:
    weeks: List[WeekBreakeven] = field(default_factory=list)

    @property
    def total_staked(self) -> float:
        return sum(w.staked for w in self.weeks)

    @property
    def total_winnings(self) -> float:
        return sum(w.winnings.total_pot for w in self.weeks)

    @property
    def total_breakeven(self) -> float:
        return self.total_winnings - self.total_staked

    @property
    def latest_breakeven(self) -> float:
        return self.weeks[-1].breakeven if self.weeks else 0.0


def week_breakeven(state: SeasonState, week: int) -> WeekBreakeven:
    """
    Staked vs won for a week.

    Every pick stakes the double bet. The Kicker Bet stake is counted for
    every pick once the week's Kicker Bet result exists.
    """
    pick_count = len(state.picks_for_week(week))
    entry = WeekBreakeven(week=week)
    entry.double_bet_staked = pick_count * DOUBLE_BET_STAKE
    if state.kicker_result_for(week) is not None:
        entry.kicker_bet_staked = pick_count * KICKER_BET_STAKE
    entry.accumulator_staked = sum(b.stake for b in state.accumulators_for_week(week))
    entry.winnings = pot_for_week(state, week)
    return entry


def season_breakeven(state: SeasonState, weeks: Optional[Iterable[int]] = None) -> SeasonBreakeven:
    """Breakeven for each completed week (default) or the given weeks."""
    if weeks is None:
        weeks = state.completed_weeks()
    return SeasonBreakeven(weeks=[week_breakeven(state, w) for w in weeks])


# ============================================================================
# ACCUMULATOR SUMMARY
# ============================================================================

@dataclass
class AccumulatorTypeSummary:
    bet_type: AccumulatorType
    bets: int = 0
    won: int = 0
    lost: int = 0
    pending: int = 0
    staked: float = 0.0
    returns: float = 0.0


def accumulator_summary(state: SeasonState, weeks: Optional[Iterable[int]] = None) -> Dict[AccumulatorType, AccumulatorTypeSummary]:
    """Won/lost counts, stakes and returns per accumulator type over completed weeks."""
    if weeks is None:
        weeks = state.completed_weeks()
    weeks = set(weeks)

    summary = {t: AccumulatorTypeSummary(bet_type=t) for t in AccumulatorType}
    for bet in state.accumulators:
        if bet.week not in weeks:
            continue
        entry = summary[bet.type]
        entry.bets += 1
        entry.staked += bet.stake
        if bet.is_won is True:
            entry.won += 1
            entry.returns += bet.actual_winnings
        elif bet.is_won is False:
            entry.lost += 1
        else:
            entry.pending += 1
    return summary
