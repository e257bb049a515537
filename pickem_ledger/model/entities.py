"""
Typed records for everything the pool persists.

Each record maps 1:1 onto the camelCase JSON objects kept in the key-value
store. from_dict() validates a raw record and raises ValueError/TypeError/
KeyError on anything malformed, so bad data is rejected at load time instead
of reaching settlement arithmetic as NaN or None.
"""

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class AccumulatorType(Enum):
    """The two weekly accumulator bets."""
    MAX_ACCA = "max-acca"
    FIRST_PICK_ACCA = "1st-pick-acca"


# Older builds stored accumulators under these type names.
LEGACY_ACCUMULATOR_TYPES = {
    "all-picks": AccumulatorType.MAX_ACCA.value,
    "12-team": AccumulatorType.MAX_ACCA.value,
    "6-team": AccumulatorType.FIRST_PICK_ACCA.value,
}


# ============================================================================
# FIELD VALIDATION
# ============================================================================

def _week(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        # JSON written by older clients sometimes carries 3.0 for 3
        if isinstance(value, float) and value.is_integer():
            value = int(value)
        else:
            raise TypeError(f"week must be an integer, got {value!r}")
    if value < 1:
        raise ValueError(f"week must be >= 1, got {value}")
    return value


def _name(value: Any, label: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"{label} must be a non-empty string, got {value!r}")
    return value


def _number(value: Any, label: str, minimum: Optional[float] = None) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise TypeError(f"{label} must be a number, got {value!r}")
    value = float(value)
    if not math.isfinite(value):
        raise ValueError(f"{label} must be finite, got {value!r}")
    if minimum is not None and value < minimum:
        raise ValueError(f"{label} must be >= {minimum}, got {value}")
    return value


def _score(value: Any, label: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        if isinstance(value, float) and value.is_integer():
            value = int(value)
        else:
            raise TypeError(f"{label} must be an integer, got {value!r}")
    if value < 0:
        raise ValueError(f"{label} must be >= 0, got {value}")
    return value


def _optional_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    if not isinstance(value, str):
        raise TypeError(f"expected a string timestamp, got {value!r}")
    return value


def _bool(value: Any, label: str) -> bool:
    if not isinstance(value, bool):
        raise TypeError(f"{label} must be true/false, got {value!r}")
    return value


# ============================================================================
# PICKS AND RESULTS
# ============================================================================

@dataclass
class TeamPick:
    """A player's two team picks for a week. One per (player, week)."""
    player_name: str
    week: int
    team1: str
    team2: str
    submitted_at: Optional[str] = None  # ISO-8601
    is_late: bool = False  # derived from submitted_at on every load

    @property
    def teams(self) -> List[str]:
        return [self.team1, self.team2]

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TeamPick":
        return cls(
            player_name=_name(data["playerName"], "playerName"),
            week=_week(data["week"]),
            team1=_name(data["team1"], "team1"),
            team2=_name(data["team2"], "team2"),
            submitted_at=_optional_str(data.get("submittedAt")),
            is_late=bool(data.get("isLate", False)),
        )

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "playerName": self.player_name,
            "team1": self.team1,
            "team2": self.team2,
            "week": self.week,
            "isLate": self.is_late,
        }
        if self.submitted_at is not None:
            data["submittedAt"] = self.submitted_at
        return data


@dataclass
class PlayerPickOdds:
    """Price a player got on one of their teams. One per (player, team, week)."""
    player_name: str
    team_name: str
    week: int
    odds: float
    odds_fraction: str

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PlayerPickOdds":
        return cls(
            player_name=_name(data["playerName"], "playerName"),
            team_name=_name(data["teamName"], "teamName"),
            week=_week(data["week"]),
            odds=_number(data["odds"], "odds", minimum=0),
            odds_fraction=str(data.get("oddsFraction", "")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "playerName": self.player_name,
            "teamName": self.team_name,
            "odds": self.odds,
            "oddsFraction": self.odds_fraction,
            "week": self.week,
        }


@dataclass
class TeamResult:
    """Outcome of a team's match. Absence of a record means pending."""
    team_name: str
    week: int
    has_won: bool

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TeamResult":
        return cls(
            team_name=_name(data["teamName"], "teamName"),
            week=_week(data["week"]),
            has_won=_bool(data["hasWon"], "hasWon"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"teamName": self.team_name, "hasWon": self.has_won, "week": self.week}


# ============================================================================
# KICKER BET
# ============================================================================

@dataclass
class KickerBetPrediction:
    """One player's exact-score prediction for the week's Kicker Bet match."""
    player_name: str
    home_score: int
    away_score: int
    week: int
    submitted_at: Optional[str] = None
    is_late: bool = False

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "KickerBetPrediction":
        return cls(
            player_name=_name(data["playerName"], "playerName"),
            home_score=_score(data["homeScore"], "homeScore"),
            away_score=_score(data["awayScore"], "awayScore"),
            week=_week(data["week"]),
            submitted_at=_optional_str(data.get("submittedAt")),
            is_late=bool(data.get("isLate", False)),
        )

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "playerName": self.player_name,
            "homeScore": self.home_score,
            "awayScore": self.away_score,
            "week": self.week,
            "isLate": self.is_late,
        }
        if self.submitted_at is not None:
            data["submittedAt"] = self.submitted_at
        return data


@dataclass
class KickerBet:
    """The week's side-bet match, chosen by the previous week's winner."""
    week: int
    selected_match: str
    selected_by: str
    predictions: List[KickerBetPrediction] = field(default_factory=list)

    def prediction_for(self, player_name: str) -> Optional[KickerBetPrediction]:
        for prediction in self.predictions:
            if prediction.player_name == player_name:
                return prediction
        return None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "KickerBet":
        week = _week(data["week"])
        predictions = []
        for raw in data.get("predictions") or []:
            raw = dict(raw)
            raw.setdefault("week", week)
            predictions.append(KickerBetPrediction.from_dict(raw))
        return cls(
            week=week,
            selected_match=_name(data["selectedMatch"], "selectedMatch"),
            selected_by=_name(data["selectedBy"], "selectedBy"),
            predictions=predictions,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "week": self.week,
            "selectedMatch": self.selected_match,
            "selectedBy": self.selected_by,
            "predictions": [p.to_dict() for p in self.predictions],
        }


@dataclass
class KickerBetOdds:
    """Price on a player's Kicker Bet prediction. One per (player, week)."""
    player_name: str
    week: int
    odds: float
    odds_fraction: str

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "KickerBetOdds":
        return cls(
            player_name=_name(data["playerName"], "playerName"),
            week=_week(data["week"]),
            odds=_number(data["odds"], "odds", minimum=0),
            odds_fraction=str(data.get("oddsFraction", "")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "playerName": self.player_name,
            "odds": self.odds,
            "oddsFraction": self.odds_fraction,
            "week": self.week,
        }


@dataclass
class KickerBetResult:
    """Actual score of the Kicker Bet match. Winners are fixed when entered."""
    week: int
    actual_home_score: int
    actual_away_score: int
    winners: List[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "KickerBetResult":
        winners = data.get("winners") or []
        if not isinstance(winners, list):
            raise TypeError(f"winners must be a list, got {winners!r}")
        return cls(
            week=_week(data["week"]),
            actual_home_score=_score(data["actualHomeScore"], "actualHomeScore"),
            actual_away_score=_score(data["actualAwayScore"], "actualAwayScore"),
            winners=[_name(w, "winner") for w in winners],
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "week": self.week,
            "actualHomeScore": self.actual_home_score,
            "actualAwayScore": self.actual_away_score,
            "winners": list(self.winners),
        }


# ============================================================================
# ACCUMULATORS, WINNERS, SEASON
# ============================================================================

@dataclass
class AccumulatorBet:
    """
    A weekly parlay across many legs.

    is_won is None while any leg is pending. teams may be edited by an admin
    after generation, so is_won/actual_winnings are always re-derived.
    removed_teams remembers those edits across regenerations.
    """
    week: int
    type: AccumulatorType
    stake: float
    teams: List[str] = field(default_factory=list)
    potential_winnings: float = 0.0
    is_won: Optional[bool] = None
    actual_winnings: float = 0.0
    removed_teams: List[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AccumulatorBet":
        raw_type = data["type"]
        raw_type = LEGACY_ACCUMULATOR_TYPES.get(raw_type, raw_type)
        is_won = data.get("isWon")
        if is_won is not None:
            is_won = _bool(is_won, "isWon")
        teams = data.get("teams") or []
        if not isinstance(teams, list):
            raise TypeError(f"teams must be a list, got {teams!r}")
        removed = data.get("removedTeams") or []
        if not isinstance(removed, list):
            raise TypeError(f"removedTeams must be a list, got {removed!r}")
        return cls(
            week=_week(data["week"]),
            type=AccumulatorType(raw_type),
            stake=_number(data["stake"], "stake", minimum=0),
            teams=[_name(t, "team") for t in teams],
            potential_winnings=_number(data.get("potentialWinnings", 0), "potentialWinnings", minimum=0),
            is_won=is_won,
            actual_winnings=_number(data.get("actualWinnings", 0), "actualWinnings", minimum=0),
            removed_teams=[_name(t, "team") for t in removed],
        )

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "week": self.week,
            "type": self.type.value,
            "stake": self.stake,
            "teams": list(self.teams),
            "potentialWinnings": self.potential_winnings,
            "isWon": self.is_won,
            "actualWinnings": self.actual_winnings,
        }
        if self.removed_teams:
            data["removedTeams"] = list(self.removed_teams)
        return data


@dataclass
class WeeklyWinner:
    """Frozen snapshot of a week's top earner, written when the week advances."""
    week: int
    player_name: str
    earnings: float

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "WeeklyWinner":
        return cls(
            week=_week(data["week"]),
            player_name=_name(data["playerName"], "playerName"),
            earnings=_number(data["earnings"], "earnings", minimum=0),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"week": self.week, "playerName": self.player_name, "earnings": self.earnings}


@dataclass
class SeasonSettings:
    """Season singleton. The roster is only editable before the season starts."""
    is_season_started: bool = False
    season_start_date: str = ""
    locked_players: List[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SeasonSettings":
        players = data.get("lockedPlayers") or []
        if not isinstance(players, list):
            raise TypeError(f"lockedPlayers must be a list, got {players!r}")
        return cls(
            is_season_started=_bool(data.get("isSeasonStarted", False), "isSeasonStarted"),
            season_start_date=str(data.get("seasonStartDate") or ""),
            locked_players=[_name(p, "player") for p in players],
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "isSeasonStarted": self.is_season_started,
            "seasonStartDate": self.season_start_date,
            "lockedPlayers": list(self.locked_players),
        }


@dataclass
class OddsLockState:
    """One-way latch: once a week's odds are locked they stay locked."""
    week: int
    is_locked: bool = False

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "OddsLockState":
        return cls(week=_week(data["week"]), is_locked=_bool(data.get("isLocked", False), "isLocked"))

    def to_dict(self) -> Dict[str, Any]:
        return {"week": self.week, "isLocked": self.is_locked}


@dataclass
class TotalPotData:
    """Persisted pot snapshot for reporting screens. Always recomputed, never trusted."""
    total_pot: float = 0.0
    accumulator_winnings: float = 0.0
    player_winnings: float = 0.0

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TotalPotData":
        return cls(
            total_pot=_number(data.get("totalPot", 0), "totalPot"),
            accumulator_winnings=_number(data.get("accumulatorWinnings", 0), "accumulatorWinnings"),
            player_winnings=_number(data.get("playerWinnings", 0), "playerWinnings"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "totalPot": self.total_pot,
            "accumulatorWinnings": self.accumulator_winnings,
            "playerWinnings": self.player_winnings,
        }
