"""
Excel export for the pick'em ledger.

Builds the season report tables as pandas DataFrames (leaderboard, player
weeks, weekly breakeven, accumulators) and writes them to a styled workbook, one sheet
per table under a pot summary header.
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import Dict, Optional

import pandas as pd
from openpyxl import Workbook
from openpyxl.styles import Font, PatternFill, Alignment, Border, Side
from openpyxl.utils import get_column_letter
from openpyxl.utils.dataframe import dataframe_to_rows

from ..model.pot import accumulator_summary, season_breakeven, season_pot
from ..model.leaderboard import season_leaderboard, weekly_leaderboard
from ..model.season import SeasonState

logger = logging.getLogger(__name__)


LEADERBOARD_COLUMNS = [
    "Rank", "Player", "Total Earnings", "Double Bet", "Kicker Bet",
    "Correct Picks", "Losses", "Total Picks", "Win %",
    "KB Wins", "KB Attempts", "KB Win %", "Weekly Wins", "Favourite Teams",
]
PLAYER_WEEK_COLUMNS = [
    "Player", "Week", "Wins", "Picks", "Earnings", "KB Won", "KB Earnings", "Week Pot",
]
WEEKLY_COLUMNS = [
    "Player", "Team 1", "Odds 1", "Result 1", "Team 2", "Odds 2", "Result 2",
    "Double Bet", "Kicker Bet", "Total", "Late",
]
BREAKEVEN_COLUMNS = [
    "Week", "Staked", "Double Bet Winnings", "Kicker Bet Winnings",
    "Accumulator Winnings", "Total Winnings", "Breakeven",
]
ACCUMULATOR_COLUMNS = [
    "Week", "Type", "Stake", "Legs", "Teams", "Potential Winnings", "Status", "Actual Winnings",
]


def _result_label(has_won: Optional[bool]) -> str:
    if has_won is None:
        return "Pending"
    return "Won" if has_won else "Lost"


# ============================================================================
# TABLES
# ============================================================================

def leaderboard_frame(state: SeasonState) -> pd.DataFrame:
    rows = []
    for rank, row in enumerate(season_leaderboard(state), 1):
        rows.append([
            rank,
            row.player_name,
            round(row.total_earnings, 2),
            round(row.double_bet_earnings, 2),
            round(row.kicker_bet_earnings, 2),
            row.correct_picks,
            row.losses,
            row.total_picks,
            round(row.win_percentage, 1),
            row.kicker_bet_wins,
            row.kicker_bet_attempts,
            round(row.kicker_bet_win_percentage, 1),
            row.weekly_wins,
            ", ".join(f"{team} ({count})" for team, count in row.favorite_teams),
        ])
    return pd.DataFrame(rows, columns=LEADERBOARD_COLUMNS)


def player_weeks_frame(state: SeasonState) -> pd.DataFrame:
    """Week-by-week performance of every player over completed weeks."""
    rows = []
    for row in season_leaderboard(state):
        for week in row.weekly_performance:
            rows.append([
                row.player_name,
                week.week,
                week.wins,
                week.picks,
                round(week.earnings, 2),
                "Yes" if week.kicker_bet_won else "",
                round(week.kicker_bet_earnings, 2),
                round(week.week_pot, 2),
            ])
    return pd.DataFrame(rows, columns=PLAYER_WEEK_COLUMNS)


def weekly_frame(state: SeasonState, week: int) -> pd.DataFrame:
    rows = []
    for row in weekly_leaderboard(state, week):
        rows.append([
            row.player_name,
            row.team1,
            row.team1_odds,
            _result_label(row.team1_won) if row.team1 else "",
            row.team2,
            row.team2_odds,
            _result_label(row.team2_won) if row.team2 else "",
            round(row.double_bet_earnings, 2),
            round(row.kicker_bet_earnings, 2),
            round(row.total, 2),
            "Yes" if row.is_late else "",
        ])
    return pd.DataFrame(rows, columns=WEEKLY_COLUMNS)


def breakeven_frame(state: SeasonState) -> pd.DataFrame:
    rows = []
    for entry in season_breakeven(state).weeks:
        rows.append([
            entry.week,
            round(entry.staked, 2),
            round(entry.winnings.double_bet_winnings, 2),
            round(entry.winnings.kicker_bet_winnings, 2),
            round(entry.winnings.accumulator_winnings, 2),
            round(entry.winnings.total_pot, 2),
            round(entry.breakeven, 2),
        ])
    return pd.DataFrame(rows, columns=BREAKEVEN_COLUMNS)


def accumulator_frame(state: SeasonState) -> pd.DataFrame:
    rows = []
    for bet in sorted(state.accumulators, key=lambda b: (b.week, b.type.value)):
        if bet.is_won is None:
            status = "Pending"
        else:
            status = "Won" if bet.is_won else "Lost"
        rows.append([
            bet.week,
            bet.type.value,
            bet.stake,
            len(bet.teams),
            ", ".join(bet.teams),
            round(bet.potential_winnings, 2),
            status,
            round(bet.actual_winnings, 2),
        ])
    return pd.DataFrame(rows, columns=ACCUMULATOR_COLUMNS)


def season_tables(state: SeasonState) -> Dict[str, pd.DataFrame]:
    """Every report table keyed by sheet name."""
    tables = {
        "Leaderboard": leaderboard_frame(state),
        "Player Weeks": player_weeks_frame(state),
        "Breakeven": breakeven_frame(state),
        "Accumulators": accumulator_frame(state),
    }
    tables[f"Week {state.current_week}"] = weekly_frame(state, state.current_week)
    return tables


# ============================================================================
# WORKBOOK
# ============================================================================

def export_season_report(
    state: SeasonState,
    output_path: Optional[Path] = None,
    title: str = "Pick'em Season Report",
) -> Path:
    """
    Export the season report to Excel.

    Args:
        state: Season snapshot
        output_path: Output file path (auto-generated in the exports dir if None)
        title: Title for the summary sheet

    Returns:
        Path to created Excel file
    """
    if output_path is None:
        from ..paths import EXPORT_DIR
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        output_path = EXPORT_DIR / f"pickem_report_{timestamp}.xlsx"
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    pot = season_pot(state)
    breakeven = season_breakeven(state)
    acca_summary = accumulator_summary(state)

    wb = Workbook()
    ws = wb.active
    ws.title = "Summary"

    # Styles
    header_font = Font(bold=True, size=14)
    subheader_font = Font(bold=True, size=11)
    header_fill = PatternFill(start_color="4472C4", end_color="4472C4", fill_type="solid")
    green_fill = PatternFill(start_color="C6EFCE", end_color="C6EFCE", fill_type="solid")
    red_fill = PatternFill(start_color="FFC7CE", end_color="FFC7CE", fill_type="solid")
    white_font = Font(bold=True, color="FFFFFF")
    thin_border = Border(
        left=Side(style='thin'),
        right=Side(style='thin'),
        top=Side(style='thin'),
        bottom=Side(style='thin')
    )

    # ==================== SUMMARY SHEET ====================
    row = 1
    ws.cell(row=row, column=1, value=title).font = Font(bold=True, size=16)
    ws.merge_cells(start_row=row, start_column=1, end_row=row, end_column=4)
    row += 1
    ws.cell(row=row, column=1, value=f"Generated: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")
    row += 1
    ws.cell(row=row, column=1, value=f"Current week: {state.current_week}")
    row += 2

    ws.cell(row=row, column=1, value="POT").font = header_font
    row += 1
    for label, value in [
        ("Player winnings", pot.player_winnings),
        ("Accumulator winnings", pot.accumulator_winnings),
        ("Total pot", pot.total_pot),
        ("Total staked", breakeven.total_staked),
        ("Breakeven", breakeven.total_breakeven),
    ]:
        ws.cell(row=row, column=1, value=label).font = subheader_font
        cell = ws.cell(row=row, column=2, value=round(value, 2))
        cell.number_format = '£#,##0.00'
        if label == "Breakeven":
            cell.fill = green_fill if value >= 0 else red_fill
        row += 1
    row += 1

    ws.cell(row=row, column=1, value="ACCUMULATORS").font = header_font
    row += 1
    for col, header in enumerate(["Type", "Bets", "Won", "Lost", "Pending", "Staked", "Returns"], 1):
        cell = ws.cell(row=row, column=col, value=header)
        cell.font = white_font
        cell.fill = header_fill
        cell.border = thin_border
        cell.alignment = Alignment(horizontal='center')
    row += 1
    for entry in acca_summary.values():
        values = [entry.bet_type.value, entry.bets, entry.won, entry.lost, entry.pending,
                  round(entry.staked, 2), round(entry.returns, 2)]
        for col, value in enumerate(values, 1):
            ws.cell(row=row, column=col, value=value).border = thin_border
        row += 1

    for i, width in enumerate([24, 14, 10, 10, 10, 12, 12], 1):
        ws.column_dimensions[get_column_letter(i)].width = width

    # ==================== TABLE SHEETS ====================
    for sheet_name, frame in season_tables(state).items():
        sheet = wb.create_sheet(title=sheet_name)
        for r, values in enumerate(dataframe_to_rows(frame, index=False, header=True), 1):
            for c, value in enumerate(values, 1):
                cell = sheet.cell(row=r, column=c, value=value)
                cell.border = thin_border
                if r == 1:
                    cell.font = white_font
                    cell.fill = header_fill
                    cell.alignment = Alignment(horizontal='center')
        for i, column in enumerate(frame.columns, 1):
            sheet.column_dimensions[get_column_letter(i)].width = max(12, len(str(column)) + 4)

    wb.save(output_path)
    logger.info(f"Season report written to {output_path}")
    return output_path
