"""
Weekly and season leaderboards.

Built entirely on the settlement engine so every screen and export ranks
players the same way. Sort order: earnings descending, then name
(case-insensitive).
"""

from collections import Counter
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from .config import FAVORITE_TEAMS_LIMIT
from .pot import pot_for_week
from .season import SeasonState
from .settlement import participants_for_week, player_week_earnings, settle_double_bet
from .winners import name_sort_key


@dataclass
class WeeklyLeaderboardRow:
    player_name: str
    week: int
    team1: str
    team2: str
    team1_won: Optional[bool]
    team2_won: Optional[bool]
    team1_odds: str  # as entered, e.g. "5/1"
    team2_odds: str
    double_bet_earnings: float
    kicker_bet_won: bool
    kicker_bet_earnings: float
    is_late: bool

    @property
    def total(self) -> float:
        return self.double_bet_earnings + self.kicker_bet_earnings


@dataclass
class WeekPerformance:
    """One player's line for one week of the season breakdown."""
    week: int
    wins: int = 0
    picks: int = 0
    earnings: float = 0.0
    kicker_bet_won: bool = False
    kicker_bet_earnings: float = 0.0
    week_pot: float = 0.0  # whole pool's winnings that week, accumulators included


@dataclass
class SeasonLeaderboardRow:
    player_name: str
    total_earnings: float = 0.0
    double_bet_earnings: float = 0.0
    kicker_bet_earnings: float = 0.0
    correct_picks: int = 0
    losses: int = 0  # explicit losses only, pending legs are not counted
    total_picks: int = 0
    kicker_bet_wins: int = 0
    kicker_bet_attempts: int = 0
    weekly_wins: int = 0
    favorite_teams: List[Tuple[str, int]] = field(default_factory=list)
    weekly_performance: List[WeekPerformance] = field(default_factory=list)

    @property
    def win_percentage(self) -> float:
        if self.total_picks == 0:
            return 0.0
        return self.correct_picks / self.total_picks * 100

    @property
    def kicker_bet_win_percentage(self) -> float:
        if self.kicker_bet_attempts == 0:
            return 0.0
        return self.kicker_bet_wins / self.kicker_bet_attempts * 100


def _odds_text(state: SeasonState, player_name: str, team: str, week: int) -> str:
    record = state.odds_for(player_name, team, week)
    return record.odds_fraction if record else ""


def weekly_leaderboard(state: SeasonState, week: int) -> List[WeeklyLeaderboardRow]:
    """Every participant's picks, outcomes and earnings for one week."""
    rows = []
    for player_name in participants_for_week(state, week):
        double = settle_double_bet(state, player_name, week)
        earnings = player_week_earnings(state, player_name, week)
        pick = state.pick_for(player_name, week)
        rows.append(WeeklyLeaderboardRow(
            player_name=player_name,
            week=week,
            team1=double.team1,
            team2=double.team2,
            team1_won=double.team1_won,
            team2_won=double.team2_won,
            team1_odds=_odds_text(state, player_name, double.team1, week) if pick else "",
            team2_odds=_odds_text(state, player_name, double.team2, week) if pick else "",
            double_bet_earnings=earnings.double_bet,
            kicker_bet_won=earnings.kicker_bet_won,
            kicker_bet_earnings=earnings.kicker_bet,
            is_late=pick.is_late if pick else False,
        ))
    rows.sort(key=lambda r: (-r.total, name_sort_key(r.player_name)))
    return rows


def season_leaderboard(state: SeasonState, weeks: Optional[List[int]] = None) -> List[SeasonLeaderboardRow]:
    """
    Season totals per player over completed weeks (default) or the given weeks.

    Weekly wins are counted from recorded WeeklyWinner snapshots, which are
    never recomputed. A Kicker Bet attempt is any week with a Kicker Bet
    result. favorite_teams holds the most picked teams, most first.
    """
    if weeks is None:
        weeks = state.completed_weeks()

    week_pots = {week: pot_for_week(state, week).total_pot for week in weeks}

    rows = []
    for player_name in state.all_players():
        row = SeasonLeaderboardRow(player_name=player_name)
        team_counts = Counter()
        for week in weeks:
            performance = WeekPerformance(week=week, week_pot=week_pots[week])

            pick = state.pick_for(player_name, week)
            if pick is not None:
                performance.picks = 2
                for team in pick.teams:
                    team_counts[team] += 1
                    result = state.result_for(team, week)
                    if result is None:
                        continue
                    if result.has_won:
                        performance.wins += 1
                    else:
                        row.losses += 1
                row.total_picks += performance.picks
                row.correct_picks += performance.wins

            earnings = player_week_earnings(state, player_name, week)
            row.double_bet_earnings += earnings.double_bet
            row.kicker_bet_earnings += earnings.kicker_bet
            if state.kicker_result_for(week) is not None:
                row.kicker_bet_attempts += 1
            if earnings.kicker_bet_won:
                row.kicker_bet_wins += 1
            performance.earnings = earnings.total
            performance.kicker_bet_won = earnings.kicker_bet_won
            performance.kicker_bet_earnings = earnings.kicker_bet
            row.weekly_performance.append(performance)

            winner = state.weekly_winner_for(week)
            if winner is not None and winner.player_name == player_name:
                row.weekly_wins += 1

        row.total_earnings = row.double_bet_earnings + row.kicker_bet_earnings
        row.favorite_teams = team_counts.most_common(FAVORITE_TEAMS_LIMIT)
        rows.append(row)

    rows.sort(key=lambda r: (-r.total_earnings, name_sort_key(r.player_name)))
    return rows
