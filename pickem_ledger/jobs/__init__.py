"""Jobs module for the pick'em ledger."""

from .excel_export import (
    export_season_report,
    season_tables,
    leaderboard_frame,
    player_weeks_frame,
    weekly_frame,
    breakeven_frame,
    accumulator_frame,
)

__all__ = [
    "export_season_report",
    "season_tables",
    "leaderboard_frame",
    "player_weeks_frame",
    "weekly_frame",
    "breakeven_frame",
    "accumulator_frame",
]
