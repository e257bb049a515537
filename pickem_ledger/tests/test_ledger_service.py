"""
Tests for LedgerService: validation, recompute-on-write and persistence.
"""

import asyncio
import json
from unittest import mock

import pytest

from pickem_ledger.errors import PreconditionError, StorageError, ValidationError
from pickem_ledger.model.entities import AccumulatorType
from pickem_ledger.model.settlement import player_week_earnings
from pickem_ledger.services.ledger import INVALID_ODDS_MESSAGE, LedgerService
from pickem_ledger.storage.kv import JsonFileStore, MemoryStore


ON_TIME = "2025-08-13T10:00:00.000Z"       # Wednesday
LATE = "2025-08-16T12:00:00.000Z"          # Saturday 13:00 BST


def run(coro):
    return asyncio.run(coro)


@pytest.fixture(autouse=True)
def london(monkeypatch):
    monkeypatch.setenv("PICKEM_TIMEZONE", "Europe/London")


@pytest.fixture
def service():
    return LedgerService(MemoryStore())


@pytest.fixture
def started(service):
    """Alice, Bob and Cara on the roster, season started."""
    async def setup():
        for name in ("Alice", "Bob", "Cara"):
            await service.add_player(name)
        await service.start_season()
    run(setup())
    return service


async def play_week_one(service):
    """Alice wins 5 x 2.0 x 4.0 = 40; Bob's C loses."""
    await service.submit_picks("Alice", "A", "B", submitted_at=ON_TIME)
    await service.submit_picks("Bob", "A", "C", submitted_at=ON_TIME)
    await service.set_pick_odds("Alice", "A", "1/1")
    await service.set_pick_odds("Alice", "B", "3/1")
    await service.set_pick_odds("Bob", "A", "2/1")
    await service.set_pick_odds("Bob", "C", "4/1")
    for team, won in (("A", True), ("B", True), ("C", False)):
        await service.set_team_result(team, won)
    await service.lock_odds()


def stored(service, key):
    raw = run(service.store.get(key))
    return None if raw is None else json.loads(raw)


class TestRoster:
    """Tests for roster management and season start."""

    def test_add_player_trims_and_persists(self, service):
        """Names are trimmed and written to seasonSettings."""
        assert run(service.add_player("  Alice ")) == "Alice"

        assert stored(service, "seasonSettings")["lockedPlayers"] == ["Alice"]

    @pytest.mark.parametrize("name", ["", "   ", None])
    def test_empty_name_rejected(self, service, name):
        """Blank names are rejected."""
        with pytest.raises(ValidationError):
            run(service.add_player(name))

    def test_duplicate_rejected(self, service):
        """The same player cannot be added twice."""
        run(service.add_player("Alice"))
        with pytest.raises(ValidationError, match="already exists"):
            run(service.add_player("Alice"))

    def test_start_needs_players(self, service):
        """An empty roster cannot start a season."""
        with pytest.raises(ValidationError):
            run(service.start_season())

    def test_roster_locked_after_start(self, started):
        """No adds or removals once the season is running."""
        with pytest.raises(ValidationError):
            run(started.add_player("Dan"))
        with pytest.raises(ValidationError):
            run(started.remove_player("Alice"))

    def test_start_stamps_date(self, started):
        """The season start date is recorded."""
        settings = stored(started, "seasonSettings")
        assert settings["isSeasonStarted"] is True
        assert settings["seasonStartDate"].endswith("Z")

    def test_remove_before_start(self, service):
        """Players can be dropped before kick-off."""
        run(service.add_player("Alice"))
        run(service.add_player("Bob"))
        run(service.remove_player("Alice"))

        assert service.state.settings.locked_players == ["Bob"]


class TestSubmitPicks:
    """Tests for pick submission."""

    def test_requires_started_season(self, service):
        """Picks are closed until the season starts."""
        run(service.add_player("Alice"))
        with pytest.raises(ValidationError):
            run(service.submit_picks("Alice", "A", "B"))

    def test_unknown_player_rejected(self, started):
        """Only roster players may pick."""
        with pytest.raises(ValidationError):
            run(started.submit_picks("Dan", "A", "B"))

    @pytest.mark.parametrize("team1,team2", [("A", "a"), ("Arsenal", " arsenal "), ("", "B"), ("A", "  ")])
    def test_bad_teams_rejected(self, started, team1, team2):
        """Two distinct non-empty teams are required."""
        with pytest.raises(ValidationError):
            run(started.submit_picks("Alice", team1, team2))
        assert started.state.picks == []

    def test_resubmission_overwrites(self, started):
        """A second submission replaces the first."""
        run(started.submit_picks("Alice", "A", "B", submitted_at=ON_TIME))
        run(started.submit_picks("Alice", " C ", "D", submitted_at=ON_TIME))

        picks = stored(started, "playerPicks")
        assert len(picks) == 1
        assert (picks[0]["team1"], picks[0]["team2"]) == ("C", "D")

    def test_late_flag(self, started):
        """Saturday afternoon submissions are flagged late."""
        late = run(started.submit_picks("Alice", "A", "B", submitted_at=LATE))
        on_time = run(started.submit_picks("Bob", "A", "B", submitted_at=ON_TIME))

        assert late.is_late is True
        assert on_time.is_late is False

    def test_generates_accumulators_and_pot(self, started):
        """Submitting picks creates the week's accumulators and the pot snapshot."""
        run(started.submit_picks("Alice", "A", "B", submitted_at=ON_TIME))

        bets = stored(started, "accumulatorBets")
        assert [b["type"] for b in bets] == ["max-acca", "1st-pick-acca"]
        assert stored(started, "totalPotData") == {
            "totalPot": 0.0, "accumulatorWinnings": 0.0, "playerWinnings": 0.0,
        }


class TestOddsEntry:
    """Tests for per-player odds entry."""

    def test_invalid_odds_rejected(self, started):
        """Unparseable odds are rejected with a readable message."""
        run(started.submit_picks("Alice", "A", "B", submitted_at=ON_TIME))

        with pytest.raises(ValidationError) as exc_info:
            run(started.set_pick_odds("Alice", "A", "5/0"))
        assert str(exc_info.value) == INVALID_ODDS_MESSAGE

    def test_odds_only_for_picked_teams(self, started):
        """A player can only be priced on their own picks."""
        run(started.submit_picks("Alice", "A", "B", submitted_at=ON_TIME))

        with pytest.raises(ValidationError):
            run(started.set_pick_odds("Alice", "Z", "2/1"))

    def test_odds_reprice_accumulators(self, started):
        """New odds flow straight into the week's accumulators."""
        run(started.submit_picks("Alice", "A", "B", submitted_at=ON_TIME))
        max_acca = started.state.accumulator_for(1, AccumulatorType.MAX_ACCA)
        assert max_acca.potential_winnings == pytest.approx(4.0)

        run(started.set_pick_odds("Alice", "A", "5/1"))

        assert max_acca.potential_winnings == pytest.approx(6.0 * 2.0)
        assert stored(started, "accumulatorBets")[0]["potentialWinnings"] == pytest.approx(12.0)

    def test_empty_string_removes(self, started):
        """Clearing the field removes the record."""
        run(started.submit_picks("Alice", "A", "B", submitted_at=ON_TIME))
        run(started.set_pick_odds("Alice", "A", "5/1"))

        assert run(started.set_pick_odds("Alice", "A", "  ")) is None
        assert started.state.pick_odds == []
        assert stored(started, "playerPickOdds") == []

    def test_locked_week_rejects_odds(self, started):
        """Once locked, odds cannot change."""
        run(started.submit_picks("Alice", "A", "B", submitted_at=ON_TIME))
        run(started.lock_odds())

        with pytest.raises(ValidationError):
            run(started.set_pick_odds("Alice", "A", "5/1"))

    def test_lock_is_one_way(self, started):
        """Locking twice is a no-op."""
        assert run(started.lock_odds()) is True
        assert run(started.lock_odds()) is False
        assert stored(started, "oddsLockStates") == [{"week": 1, "isLocked": True}]


class TestTeamResults:
    """Tests for result entry."""

    def test_toggle_cycle(self, started):
        """No result -> won -> lost -> won."""
        assert run(started.toggle_team_result("A")).has_won is True
        assert run(started.toggle_team_result("A")).has_won is False
        assert run(started.toggle_team_result("A")).has_won is True
        assert len(started.state.team_results) == 1

    def test_clear_back_to_pending(self, started):
        """Clearing a result makes the team pending again."""
        run(started.toggle_team_result("A"))

        assert run(started.clear_team_result("A")) is True
        assert started.state.result_for("A", 1) is None
        assert run(started.clear_team_result("A")) is False

    def test_results_settle_accumulators(self, started):
        """Result changes re-settle the week's accumulators."""
        run(play_week_one(started))

        max_acca = started.state.accumulator_for(1, AccumulatorType.MAX_ACCA)
        first_acca = started.state.accumulator_for(1, AccumulatorType.FIRST_PICK_ACCA)
        assert max_acca.is_won is False
        assert first_acca.is_won is True
        assert first_acca.actual_winnings == pytest.approx(5 * 2.0 * 2.0)

        assert stored(started, "totalPotData")["totalPot"] == pytest.approx(40.0 + 20.0)

        run(started.clear_team_result("C"))
        assert max_acca.is_won is None


class TestAccumulatorCorrection:
    """Tests for removing accumulator legs."""

    def test_remove_leg(self, started):
        """An unlocked week's accumulator can lose a leg."""
        run(started.submit_picks("Alice", "A", "B", submitted_at=ON_TIME))

        bet = run(started.remove_team_from_accumulator("max-acca", "B"))

        assert bet.teams == ["A"]
        assert stored(started, "accumulatorBets")[0]["teams"] == ["A"]

    def test_every_players_picks_reach_the_accumulators(self, started):
        """Picks from the second and third players are added as legs."""
        run(started.submit_picks("Alice", "A", "B", submitted_at=ON_TIME))
        run(started.submit_picks("Bob", "C", "D", submitted_at=ON_TIME))
        run(started.submit_picks("Cara", "E", "F", submitted_at=ON_TIME))

        max_acca = started.state.accumulator_for(1, AccumulatorType.MAX_ACCA)
        first_acca = started.state.accumulator_for(1, AccumulatorType.FIRST_PICK_ACCA)
        assert max_acca.teams == ["A", "B", "C", "D", "E", "F"]
        assert first_acca.teams == ["A", "C", "E"]
        assert stored(started, "accumulatorBets")[0]["teams"] == ["A", "B", "C", "D", "E", "F"]

    def test_removed_leg_not_restored_by_new_picks(self, started):
        """A removed team stays out when someone else picks it later."""
        run(started.submit_picks("Alice", "A", "B", submitted_at=ON_TIME))
        run(started.remove_team_from_accumulator("max-acca", "B"))

        run(started.submit_picks("Bob", "B", "C", submitted_at=ON_TIME))

        bet = started.state.accumulator_for(1, AccumulatorType.MAX_ACCA)
        assert bet.teams == ["A", "C"]
        assert stored(started, "accumulatorBets")[0]["removedTeams"] == ["B"]

    def test_remove_blocked_when_locked(self, started):
        """Locked odds freeze the accumulator legs too."""
        run(started.submit_picks("Alice", "A", "B", submitted_at=ON_TIME))
        run(started.lock_odds())

        with pytest.raises(ValidationError, match="locked"):
            run(started.remove_team_from_accumulator(AccumulatorType.MAX_ACCA, "B"))

    def test_unknown_leg_or_type(self, started):
        """Bad corrections are rejected as validation errors."""
        run(started.submit_picks("Alice", "A", "B", submitted_at=ON_TIME))

        with pytest.raises(ValidationError):
            run(started.remove_team_from_accumulator("max-acca", "Z"))
        with pytest.raises(ValidationError):
            run(started.remove_team_from_accumulator("mega-acca", "A"))


class TestAdvanceWeek:
    """Tests for week advancement."""

    def test_blocked_with_every_reason(self, started):
        """Unmet preconditions are listed and nothing changes."""
        run(started.submit_picks("Alice", "A", "B", submitted_at=ON_TIME))

        with pytest.raises(PreconditionError) as exc_info:
            run(started.advance_week())

        assert exc_info.value.unmet == [
            "Odds for week 1 are not locked",
            "Results missing for week 1: A, B",
        ]
        assert started.state.current_week == 1
        assert started.state.weekly_winners == []
        assert run(started.store.get("currentWeek")) is None

    def test_advance_records_winner(self, started):
        """Advancing records the top earner and moves to week 2."""
        run(play_week_one(started))

        winner = run(started.advance_week())

        assert winner.player_name == "Alice"
        assert winner.earnings == pytest.approx(40.0)
        assert started.state.current_week == 2
        assert run(started.store.get("currentWeek")) == "2"
        assert stored(started, "weeklyWinners") == [{"week": 1, "playerName": "Alice", "earnings": 40.0}]

    def test_no_winner_when_nobody_earns(self, started):
        """A week with no winnings still advances, without a winner."""
        async def scenario():
            await started.submit_picks("Alice", "A", "B", submitted_at=ON_TIME)
            await started.set_team_result("A", False)
            await started.set_team_result("B", True)
            await started.lock_odds()
            return await started.advance_week()

        assert run(scenario()) is None
        assert started.state.current_week == 2
        assert started.state.weekly_winners == []


class TestKickerBetFlow:
    """End-to-end Kicker Bet: selection, predictions, odds, result."""

    @pytest.fixture
    def week_two(self, started):
        async def setup():
            await play_week_one(started)
            await started.advance_week()
        run(setup())
        return started

    def test_only_previous_winner_selects(self, week_two):
        """Bob did not win week 1, Alice did."""
        with pytest.raises(ValidationError):
            run(week_two.select_kicker_match("Bob", "Arsenal v Spurs"))

        bet = run(week_two.select_kicker_match("Alice", "Arsenal v Spurs"))

        assert bet.selected_by == "Alice"
        assert stored(week_two, "kickerBets")[0]["selectedMatch"] == "Arsenal v Spurs"

    def test_one_match_per_week(self, week_two):
        """The match cannot be changed once chosen."""
        run(week_two.select_kicker_match("Alice", "Arsenal v Spurs"))
        with pytest.raises(ValidationError):
            run(week_two.select_kicker_match("Alice", "Leeds v Hull"))

    def test_no_selection_in_week_one(self, started):
        """Week 1 has no previous winner."""
        with pytest.raises(ValidationError):
            run(started.select_kicker_match("Alice", "Arsenal v Spurs"))

    def test_prediction_required_with_picks(self, week_two):
        """With a Kicker Bet running, picks need a score prediction."""
        run(week_two.select_kicker_match("Alice", "Arsenal v Spurs"))

        with pytest.raises(ValidationError):
            run(week_two.submit_picks("Bob", "D", "E", submitted_at=ON_TIME))
        with pytest.raises(ValidationError):
            run(week_two.submit_picks("Bob", "D", "E", "-1", "2", submitted_at=ON_TIME))
        assert week_two.state.picks_for_week(2) == []

    @pytest.mark.parametrize("home", ["²", "1.5", "two"])
    def test_non_decimal_scores_rejected(self, week_two, home):
        """Superscripts and other non-decimal text fail as validation errors."""
        run(week_two.select_kicker_match("Alice", "Arsenal v Spurs"))

        with pytest.raises(ValidationError):
            run(week_two.submit_picks("Bob", "D", "E", home, "2", submitted_at=ON_TIME))
        assert week_two.state.picks_for_week(2) == []

    def test_full_flow(self, week_two):
        """Exact-score winners are fixed and paid at their kicker odds."""
        async def scenario():
            await week_two.select_kicker_match("Alice", "Arsenal v Spurs")
            await week_two.submit_picks("Bob", "D", "E", 2, 1, submitted_at=ON_TIME)
            await week_two.submit_picks("Cara", "D", "F", "2", "1", submitted_at=ON_TIME)
            await week_two.submit_picks("Cara", "D", "F", "1", "1", submitted_at=ON_TIME)
            await week_two.submit_picks("Alice", "E", "F", 0, 0, submitted_at=ON_TIME)
            await week_two.set_kicker_odds("Bob", "5/1")
            await week_two.set_kicker_odds("Cara", "3/1")
            return await week_two.submit_kicker_result("2", "1")

        result = run(scenario())
        kicker_bet = week_two.state.kicker_bet_for(2)

        assert [p.player_name for p in kicker_bet.predictions] == ["Bob", "Cara", "Alice"]
        assert kicker_bet.prediction_for("Cara").home_score == 1
        assert result.winners == ["Bob"]
        assert player_week_earnings(week_two.state, "Bob", 2).kicker_bet == pytest.approx(6.0)
        assert stored(week_two, "kickerBetResults")[0]["winners"] == ["Bob"]

    def test_result_entered_once(self, week_two):
        """A second score entry is refused and winners stay fixed."""
        async def scenario():
            await week_two.select_kicker_match("Alice", "Arsenal v Spurs")
            await week_two.submit_picks("Bob", "D", "E", 2, 1, submitted_at=ON_TIME)
            await week_two.submit_picks("Cara", "D", "F", 0, 0, submitted_at=ON_TIME)
            await week_two.submit_kicker_result(2, 1)
            await week_two.submit_picks("Cara", "D", "F", 2, 1, submitted_at=ON_TIME)

        run(scenario())
        with pytest.raises(ValidationError):
            run(week_two.submit_kicker_result(0, 0))
        assert week_two.state.kicker_result_for(2).winners == ["Bob"]

    def test_kicker_odds_need_a_prediction(self, week_two):
        """No prediction, no kicker price."""
        run(week_two.select_kicker_match("Alice", "Arsenal v Spurs"))
        with pytest.raises(ValidationError):
            run(week_two.set_kicker_odds("Bob", "5/1"))

    def test_result_needs_a_kicker_bet(self, started):
        """There is nothing to score without a Kicker Bet."""
        with pytest.raises(ValidationError):
            run(started.submit_kicker_result(1, 0))

    def test_advance_waits_for_kicker_result(self, week_two):
        """The Kicker Bet score must be in before the week closes."""
        async def scenario():
            await week_two.select_kicker_match("Alice", "Arsenal v Spurs")
            await week_two.submit_picks("Bob", "D", "E", 2, 1, submitted_at=ON_TIME)
            await week_two.set_team_result("D", True)
            await week_two.set_team_result("E", True)
            await week_two.lock_odds()

        run(scenario())
        with pytest.raises(PreconditionError) as exc_info:
            run(week_two.advance_week())
        assert exc_info.value.unmet == ["Kicker Bet scoreline for week 2 has not been entered"]


class TestPersistence:
    """Tests for store interaction."""

    def test_write_failure_keeps_memory_state(self, service):
        """A failed write is logged; the change stays in memory."""
        with mock.patch.object(service.store, "set", side_effect=StorageError("disk full")):
            assert run(service.add_player("Alice")) == "Alice"

        assert service.state.settings.locked_players == ["Alice"]
        assert run(service.store.get("seasonSettings")) is None

    def test_reload_from_json_store(self, tmp_path):
        """A new service on the same directory sees the saved season."""
        async def scenario():
            first = LedgerService(JsonFileStore(tmp_path))
            for name in ("Alice", "Bob", "Cara"):
                await first.add_player(name)
            await first.start_season()
            await play_week_one(first)
            await first.advance_week()
            return await LedgerService.open(JsonFileStore(tmp_path))

        second = run(scenario())

        assert second.state.current_week == 2
        assert second.state.weekly_winner_for(1).player_name == "Alice"
        assert second.state.total_pot.total_pot == pytest.approx(60.0)
        assert second.state.quarantined == {}

    def test_load_failure_keeps_state(self, service):
        """An unreadable store leaves the current state alone."""
        run(service.add_player("Alice"))
        with mock.patch.object(service.store, "get", side_effect=StorageError("gone")):
            assert run(service.load()) is False
        assert service.state.settings.locked_players == ["Alice"]

    def test_reset_season(self, started):
        """Reset wipes everything back to week 1."""
        run(play_week_one(started))
        run(started.advance_week())

        assert run(started.reset_season()) is True

        assert started.state.current_week == 1
        assert started.state.picks == []
        assert started.store.snapshot() == {"currentWeek": "1"}
