"""Settlement model: odds, records, season snapshot and the settlement engines."""

from .odds import parse_odds, is_usable_odds, format_money
from .entities import (
    AccumulatorType,
    TeamPick,
    PlayerPickOdds,
    TeamResult,
    KickerBet,
    KickerBetPrediction,
    KickerBetOdds,
    KickerBetResult,
    AccumulatorBet,
    WeeklyWinner,
    SeasonSettings,
    OddsLockState,
    TotalPotData,
)
from .season import SeasonState
from .settlement import (
    settle_double_bet,
    double_bet_earnings,
    find_kicker_winners,
    kicker_bet_earnings,
    player_week_earnings,
    week_earnings,
    DoubleBetSettlement,
    PlayerWeekEarnings,
)
from .accumulators import (
    regenerate_accumulators,
    resettle_week,
    remove_leg,
    potential_winnings,
    settle_accumulator,
)
from .winners import (
    resolve_weekly_winner,
    record_weekly_winner,
    kicker_bet_selector,
    unmet_advance_preconditions,
    can_advance,
)
from .pot import (
    pot_for_week,
    season_pot,
    refresh_total_pot,
    week_breakeven,
    season_breakeven,
    accumulator_summary,
    PotSummary,
)
from .leaderboard import (
    weekly_leaderboard,
    season_leaderboard,
    WeeklyLeaderboardRow,
    SeasonLeaderboardRow,
    WeekPerformance,
)

__all__ = [
    'parse_odds',
    'is_usable_odds',
    'format_money',
    'AccumulatorType',
    'TeamPick',
    'PlayerPickOdds',
    'TeamResult',
    'KickerBet',
    'KickerBetPrediction',
    'KickerBetOdds',
    'KickerBetResult',
    'AccumulatorBet',
    'WeeklyWinner',
    'SeasonSettings',
    'OddsLockState',
    'TotalPotData',
    'SeasonState',
    'settle_double_bet',
    'double_bet_earnings',
    'find_kicker_winners',
    'kicker_bet_earnings',
    'player_week_earnings',
    'week_earnings',
    'DoubleBetSettlement',
    'PlayerWeekEarnings',
    'regenerate_accumulators',
    'resettle_week',
    'remove_leg',
    'potential_winnings',
    'settle_accumulator',
    'resolve_weekly_winner',
    'record_weekly_winner',
    'kicker_bet_selector',
    'unmet_advance_preconditions',
    'can_advance',
    'pot_for_week',
    'season_pot',
    'refresh_total_pot',
    'week_breakeven',
    'season_breakeven',
    'accumulator_summary',
    'PotSummary',
    'weekly_leaderboard',
    'season_leaderboard',
    'WeeklyLeaderboardRow',
    'SeasonLeaderboardRow',
    'WeekPerformance',
]
