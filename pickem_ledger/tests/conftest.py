"""
Shared fixtures for the pick'em ledger tests.

PICKEM_DATA_DIR is pointed at a throwaway directory before anything imports
pickem_ledger.paths, so test runs never touch the real data root.
"""

import os
import tempfile

import pytest

os.environ.setdefault("PICKEM_DATA_DIR", tempfile.mkdtemp(prefix="pickem_ledger_tests_"))

from pickem_ledger.model.entities import (  # noqa: E402
    KickerBet,
    KickerBetOdds,
    KickerBetPrediction,
    KickerBetResult,
    PlayerPickOdds,
    SeasonSettings,
    TeamPick,
)
from pickem_ledger.model.odds import parse_odds  # noqa: E402
from pickem_ledger.model.season import SeasonState  # noqa: E402


# Monday 2025-08-11 10:00 UTC: well clear of the late window
ON_TIME = "2025-08-11T10:00:00.000Z"


class SeasonBuilder:
    """Small fluent helper for putting a SeasonState together in tests."""

    def __init__(self, players=("Alice", "Bob", "Cara"), current_week=1):
        self.state = SeasonState(
            current_week=current_week,
            settings=SeasonSettings(
                is_season_started=True,
                season_start_date="2025-08-01T09:00:00.000Z",
                locked_players=list(players),
            ),
        )

    def pick(self, player, team1, team2, week=1, submitted_at=ON_TIME):
        self.state.upsert_pick(TeamPick(
            player_name=player, week=week, team1=team1, team2=team2, submitted_at=submitted_at,
        ))
        return self

    def odds(self, player, team, fraction, week=1):
        self.state.upsert_pick_odds(PlayerPickOdds(
            player_name=player, team_name=team, week=week,
            odds=parse_odds(fraction), odds_fraction=fraction,
        ))
        return self

    def result(self, team, has_won, week=1):
        self.state.set_team_result(team, week, has_won)
        return self

    def kicker_bet(self, week, match, selected_by, predictions=()):
        self.state.kicker_bets.append(KickerBet(
            week=week,
            selected_match=match,
            selected_by=selected_by,
            predictions=[
                KickerBetPrediction(player_name=name, home_score=h, away_score=a, week=week)
                for name, h, a in predictions
            ],
        ))
        return self

    def kicker_odds(self, player, fraction, week):
        self.state.upsert_kicker_odds(KickerBetOdds(
            player_name=player, week=week, odds=parse_odds(fraction), odds_fraction=fraction,
        ))
        return self

    def kicker_result(self, week, home, away, winners):
        self.state.kicker_results.append(KickerBetResult(
            week=week, actual_home_score=home, actual_away_score=away, winners=list(winners),
        ))
        return self

    def lock(self, week=1):
        self.state.lock_odds(week)
        return self

    def build(self) -> SeasonState:
        return self.state


@pytest.fixture
def builder():
    """Fresh SeasonBuilder with Alice, Bob and Cara on the roster, season started."""
    return SeasonBuilder()
