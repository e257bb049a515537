"""
Tests for pot aggregation, breakeven and the accumulator summary.
"""

import pytest

from pickem_ledger.model.accumulators import regenerate_accumulators
from pickem_ledger.model.entities import AccumulatorType
from pickem_ledger.model.pot import (
    accumulator_summary,
    pot_for_week,
    refresh_total_pot,
    season_breakeven,
    season_pot,
    week_breakeven,
)
from pickem_ledger.model.settlement import week_earnings


@pytest.fixture
def settled_week(builder):
    """
    Alice wins her double at 2.0 x 4.0 (40). Bob's C loses.
    max-acca [A, B, A, C] is LOST, 1st-pick-acca [A, A] WON at 5 x 2 x 2 = 20.
    """
    state = (builder.pick("Alice", "A", "B").pick("Bob", "A", "C")
             .odds("Alice", "A", "1/1").odds("Alice", "B", "3/1")
             .odds("Bob", "A", "2/1")
             .result("A", True).result("B", True).result("C", False).build())
    regenerate_accumulators(state, 1)
    return state


class TestPotAggregation:
    """Pot = player winnings + WON accumulator winnings."""

    def test_week_pot_with_won_and_lost_accumulators(self, settled_week):
        """Only the WON accumulator contributes."""
        pot = pot_for_week(settled_week, 1)

        assert pot.double_bet_winnings == pytest.approx(40.0)
        assert pot.kicker_bet_winnings == 0
        assert pot.accumulator_winnings == pytest.approx(20.0)
        assert pot.total_pot == pytest.approx(60.0)

    def test_pot_matches_settled_earnings(self, settled_week):
        """Total pot equals the settled player earnings plus WON accumulator winnings."""
        players = sum(e.total for e in week_earnings(settled_week, 1))
        accas = sum(b.actual_winnings for b in settled_week.accumulators_for_week(1) if b.is_won is True)

        assert pot_for_week(settled_week, 1).total_pot == pytest.approx(players + accas)

    def test_kicker_winnings_in_player_total(self, builder):
        """Kicker Bet winnings count as player winnings."""
        state = (builder.kicker_bet(2, "M", "Cara", [("Alice", 3, 0)])
                 .kicker_odds("Alice", "9/1", 2)
                 .kicker_result(2, 3, 0, ["Alice"]).build())

        pot = pot_for_week(state, 2)

        assert pot.kicker_bet_winnings == pytest.approx(10.0)
        assert pot.player_winnings == pytest.approx(10.0)

    def test_season_pot_sums_weeks(self, settled_week, builder):
        """The season pot covers week 1 through the current week."""
        builder.pick("Alice", "D", "E", week=2).odds("Alice", "D", "1/1", week=2)
        builder.odds("Alice", "E", "1/1", week=2).result("D", True, week=2).result("E", True, week=2)
        settled_week.current_week = 2

        assert season_pot(settled_week).player_winnings == pytest.approx(40.0 + 20.0)
        assert season_pot(settled_week, through_week=1).player_winnings == pytest.approx(40.0)

    def test_recomputed_after_change(self, settled_week):
        """Flipping a result changes the pot on the next refresh."""
        assert refresh_total_pot(settled_week).total_pot == pytest.approx(60.0)

        settled_week.set_team_result("B", 1, False)
        regenerate_accumulators(settled_week, 1)

        snapshot = refresh_total_pot(settled_week)
        assert snapshot.player_winnings == 0
        assert snapshot.accumulator_winnings == pytest.approx(20.0)
        assert settled_week.total_pot.total_pot == pytest.approx(20.0)


class TestBreakeven:
    """Tests for staked-vs-won accounting."""

    def test_week_breakeven(self, settled_week):
        """Two doubles (10) plus both acca stakes (6) against 60 won."""
        entry = week_breakeven(settled_week, 1)

        assert entry.staked == pytest.approx(16.0)
        assert entry.breakeven == pytest.approx(44.0)

    def test_kicker_stake_counted_once_result_exists(self, builder):
        """Each pick stakes 1 on the Kicker Bet once its result is in."""
        state = (builder.pick("Alice", "A", "B", week=2).pick("Bob", "C", "D", week=2)
                 .kicker_bet(2, "M", "Cara", [("Alice", 0, 0)]).build())

        assert week_breakeven(state, 2).kicker_bet_staked == 0

        builder.kicker_result(2, 1, 0, [])
        assert week_breakeven(state, 2).kicker_bet_staked == 2

    def test_season_uses_completed_weeks(self, settled_week):
        """Only weeks before the current one are in the season breakeven."""
        assert season_breakeven(settled_week).weeks == []

        settled_week.current_week = 2
        season = season_breakeven(settled_week)

        assert [w.week for w in season.weeks] == [1]
        assert season.total_staked == pytest.approx(16.0)
        assert season.total_breakeven == pytest.approx(44.0)
        assert season.latest_breakeven == pytest.approx(44.0)


class TestAccumulatorSummary:
    """Tests for the per-type accumulator summary."""

    def test_counts_and_returns(self, settled_week):
        """One lost max-acca, one won 1st-pick acca."""
        settled_week.current_week = 2

        summary = accumulator_summary(settled_week)

        max_acca = summary[AccumulatorType.MAX_ACCA]
        first_acca = summary[AccumulatorType.FIRST_PICK_ACCA]
        assert (max_acca.bets, max_acca.won, max_acca.lost) == (1, 0, 1)
        assert max_acca.staked == 1
        assert (first_acca.bets, first_acca.won, first_acca.lost) == (1, 1, 0)
        assert first_acca.returns == pytest.approx(20.0)
