"""
SeasonState: the whole pool as one explicit in-memory snapshot.

Every engine function takes a SeasonState instead of reading ambient
storage. The upsert helpers here are the only place records are added or
replaced, and they keep the natural-key invariants:

- one TeamPick per (player, week)
- one PlayerPickOdds per (player, team, week)
- one TeamResult per (team, week)
- one KickerBet / KickerBetResult / WeeklyWinner / OddsLockState per week
- one KickerBetOdds per (player, week)
- one AccumulatorBet per (week, type)

List order is preserved on replace, since "first odds record found for a
team" is part of accumulator pricing.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .entities import (
    AccumulatorBet,
    AccumulatorType,
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


@dataclass
class SeasonState:
    """Snapshot of every persisted entity for one season."""
    current_week: int = 1
    settings: SeasonSettings = field(default_factory=SeasonSettings)
    picks: List[TeamPick] = field(default_factory=list)
    pick_odds: List[PlayerPickOdds] = field(default_factory=list)
    team_results: List[TeamResult] = field(default_factory=list)
    accumulators: List[AccumulatorBet] = field(default_factory=list)
    kicker_bets: List[KickerBet] = field(default_factory=list)
    kicker_odds: List[KickerBetOdds] = field(default_factory=list)
    kicker_results: List[KickerBetResult] = field(default_factory=list)
    weekly_winners: List[WeeklyWinner] = field(default_factory=list)
    odds_locks: List[OddsLockState] = field(default_factory=list)
    total_pot: TotalPotData = field(default_factory=TotalPotData)

    # Match-level records from older builds; carried through untouched.
    legacy_game_odds: List[Dict[str, Any]] = field(default_factory=list)
    legacy_game_results: List[Dict[str, Any]] = field(default_factory=list)

    # Raw records that failed validation on load, keyed by store key.
    quarantined: Dict[str, List[Any]] = field(default_factory=dict)

    # ------------------------------------------------------------------
    # Picks
    # ------------------------------------------------------------------

    def picks_for_week(self, week: int) -> List[TeamPick]:
        return [p for p in self.picks if p.week == week]

    def pick_for(self, player_name: str, week: int) -> Optional[TeamPick]:
        for pick in self.picks:
            if pick.player_name == player_name and pick.week == week:
                return pick
        return None

    def upsert_pick(self, pick: TeamPick) -> None:
        """Resubmitting overwrites the player's pick for that week."""
        for i, existing in enumerate(self.picks):
            if existing.player_name == pick.player_name and existing.week == pick.week:
                self.picks[i] = pick
                return
        self.picks.append(pick)

    def players_for_week(self, week: int) -> List[str]:
        """Players with a pick for the week, in submission order."""
        seen = []
        for pick in self.picks_for_week(week):
            if pick.player_name not in seen:
                seen.append(pick.player_name)
        return seen

    def all_players(self) -> List[str]:
        """Roster players first, then anyone else who has ever picked."""
        players = list(self.settings.locked_players)
        for pick in self.picks:
            if pick.player_name not in players:
                players.append(pick.player_name)
        return players

    def teams_for_week(self, week: int) -> List[str]:
        """Distinct teams appearing in any pick for the week."""
        teams = []
        for pick in self.picks_for_week(week):
            for team in pick.teams:
                if team not in teams:
                    teams.append(team)
        return teams

    # ------------------------------------------------------------------
    # Odds
    # ------------------------------------------------------------------

    def odds_for(self, player_name: str, team_name: str, week: int) -> Optional[PlayerPickOdds]:
        for odds in self.pick_odds:
            if odds.player_name == player_name and odds.team_name == team_name and odds.week == week:
                return odds
        return None

    def first_odds_for_team(self, team_name: str, week: int) -> Optional[PlayerPickOdds]:
        """First odds record for a team in the week, whichever player it belongs to."""
        for odds in self.pick_odds:
            if odds.team_name == team_name and odds.week == week:
                return odds
        return None

    def upsert_pick_odds(self, record: PlayerPickOdds) -> None:
        for i, existing in enumerate(self.pick_odds):
            if (existing.player_name == record.player_name
                    and existing.team_name == record.team_name
                    and existing.week == record.week):
                self.pick_odds[i] = record
                return
        self.pick_odds.append(record)

    def remove_pick_odds(self, player_name: str, team_name: str, week: int) -> bool:
        before = len(self.pick_odds)
        self.pick_odds = [
            o for o in self.pick_odds
            if not (o.player_name == player_name and o.team_name == team_name and o.week == week)
        ]
        return len(self.pick_odds) != before

    # ------------------------------------------------------------------
    # Team results
    # ------------------------------------------------------------------

    def result_for(self, team_name: str, week: int) -> Optional[TeamResult]:
        for result in self.team_results:
            if result.team_name == team_name and result.week == week:
                return result
        return None

    def has_won(self, team_name: str, week: int) -> bool:
        """True only for an explicit win. Pending counts as not won."""
        result = self.result_for(team_name, week)
        return result is not None and result.has_won is True

    def set_team_result(self, team_name: str, week: int, has_won: bool) -> TeamResult:
        result = self.result_for(team_name, week)
        if result is None:
            result = TeamResult(team_name=team_name, week=week, has_won=has_won)
            self.team_results.append(result)
        else:
            result.has_won = has_won
        return result

    def remove_team_result(self, team_name: str, week: int) -> bool:
        before = len(self.team_results)
        self.team_results = [
            r for r in self.team_results if not (r.team_name == team_name and r.week == week)
        ]
        return len(self.team_results) != before

    # ------------------------------------------------------------------
    # Kicker Bet
    # ------------------------------------------------------------------

    def kicker_bet_for(self, week: int) -> Optional[KickerBet]:
        for bet in self.kicker_bets:
            if bet.week == week:
                return bet
        return None

    def kicker_odds_for(self, player_name: str, week: int) -> Optional[KickerBetOdds]:
        for odds in self.kicker_odds:
            if odds.player_name == player_name and odds.week == week:
                return odds
        return None

    def upsert_kicker_odds(self, record: KickerBetOdds) -> None:
        for i, existing in enumerate(self.kicker_odds):
            if existing.player_name == record.player_name and existing.week == record.week:
                self.kicker_odds[i] = record
                return
        self.kicker_odds.append(record)

    def remove_kicker_odds(self, player_name: str, week: int) -> bool:
        before = len(self.kicker_odds)
        self.kicker_odds = [
            o for o in self.kicker_odds if not (o.player_name == player_name and o.week == week)
        ]
        return len(self.kicker_odds) != before

    def kicker_result_for(self, week: int) -> Optional[KickerBetResult]:
        for result in self.kicker_results:
            if result.week == week:
                return result
        return None

    # ------------------------------------------------------------------
    # Accumulators
    # ------------------------------------------------------------------

    def accumulators_for_week(self, week: int) -> List[AccumulatorBet]:
        return [b for b in self.accumulators if b.week == week]

    def accumulator_for(self, week: int, bet_type: AccumulatorType) -> Optional[AccumulatorBet]:
        for bet in self.accumulators:
            if bet.week == week and bet.type == bet_type:
                return bet
        return None

    # ------------------------------------------------------------------
    # Weekly winners and locks
    # ------------------------------------------------------------------

    def weekly_winner_for(self, week: int) -> Optional[WeeklyWinner]:
        for winner in self.weekly_winners:
            if winner.week == week:
                return winner
        return None

    def is_odds_locked(self, week: int) -> bool:
        for state in self.odds_locks:
            if state.week == week:
                return state.is_locked
        return False

    def lock_odds(self, week: int) -> bool:
        """Latch the week's odds. Returns False if they were already locked."""
        for state in self.odds_locks:
            if state.week == week:
                if state.is_locked:
                    return False
                state.is_locked = True
                return True
        self.odds_locks.append(OddsLockState(week=week, is_locked=True))
        return True

    def completed_weeks(self) -> List[int]:
        """Weeks before the current one."""
        return list(range(1, self.current_week))
