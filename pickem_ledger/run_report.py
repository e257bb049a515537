#!/usr/bin/env python3
"""
Pick'em Ledger - Season Report Runner

Loads the season from the store and prints the pot, breakeven and
leaderboards, or writes them to an Excel workbook.

Usage:
    python -m pickem_ledger.run_report                  # Print season summary
    python -m pickem_ledger.run_report --week 3         # Include week 3 leaderboard
    python -m pickem_ledger.run_report --export         # Write the workbook
    python -m pickem_ledger.run_report --store ./data   # Use another store directory
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import List, Optional

import pandas as pd

from .errors import StorageError
from .jobs.excel_export import breakeven_frame, export_season_report, leaderboard_frame, weekly_frame
from .model.odds import format_money
from .model.pot import accumulator_summary, season_breakeven, season_pot
from .model.season import SeasonState
from .model.settlement import participants_for_week, player_week_earnings
from .model.winners import unmet_advance_preconditions
from .storage.kv import JsonFileStore
from .storage.repository import load_season
from .utils.dates import format_timestamp, get_local_now, next_deadline

logger = logging.getLogger(__name__)


def parse_args(argv: Optional[List[str]] = None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Pick'em Ledger - Season Report",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m pickem_ledger.run_report              # Print season summary
  python -m pickem_ledger.run_report --export     # Write the Excel report
        """
    )
    parser.add_argument(
        "--store", "-s",
        type=Path,
        default=None,
        help="Directory of the JSON store (default: the app data store)"
    )
    parser.add_argument(
        "--week", "-w",
        type=int,
        default=None,
        help="Also print the leaderboard for this week"
    )
    parser.add_argument(
        "--export", "-e",
        nargs="?",
        const="",
        default=None,
        metavar="PATH",
        help="Write the season report workbook (optionally to PATH)"
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Log at DEBUG level"
    )
    return parser.parse_args(argv)


def print_summary(state: SeasonState, week: Optional[int] = None) -> None:
    """Print the season summary to stdout."""
    pot = season_pot(state)
    breakeven = season_breakeven(state)

    print("=" * 70)
    print("PICK'EM LEDGER - SEASON SUMMARY")
    print(f"Current week: {state.current_week}")
    print(f"Players: {', '.join(state.all_players()) or '(none)'}")
    print(f"Generated: {format_timestamp(get_local_now())}")
    print(f"Next pick deadline: {format_timestamp(next_deadline(), '%a %d %b %Y %H:%M')}")
    print("=" * 70)
    print()
    print(f"Player winnings:      {format_money(pot.player_winnings)}")
    print(f"Accumulator winnings: {format_money(pot.accumulator_winnings)}")
    print(f"Total pot:            {format_money(pot.total_pot)}")
    print(f"Total staked:         {format_money(breakeven.total_staked)}")
    print(f"Breakeven:            {format_money(breakeven.total_breakeven)}")
    print()

    with pd.option_context("display.width", 120, "display.max_columns", None):
        leaderboard = leaderboard_frame(state)
        print("SEASON LEADERBOARD")
        print(leaderboard.to_string(index=False) if not leaderboard.empty else "  No completed weeks yet.")
        print()

        weeks = breakeven_frame(state)
        print("WEEKLY BREAKEVEN")
        print(weeks.to_string(index=False) if not weeks.empty else "  No completed weeks yet.")
        print()

        if week is not None:
            frame = weekly_frame(state, week)
            print(f"WEEK {week} LEADERBOARD")
            print(frame.to_string(index=False) if not frame.empty else "  No picks this week.")
            for player_name in participants_for_week(state, week):
                for warning in player_week_earnings(state, player_name, week).warnings:
                    print(f"  WARNING: {warning}")
            print()

    print("ACCUMULATORS")
    for entry in accumulator_summary(state).values():
        print(
            f"  {entry.bet_type.value:<14} {entry.won}W/{entry.lost}L/{entry.pending}P  "
            f"staked {format_money(entry.staked)}  returned {format_money(entry.returns)}"
        )
    print()

    blockers = unmet_advance_preconditions(state)
    if blockers:
        print(f"Week {state.current_week} cannot advance yet:")
        for item in blockers:
            print(f"  - {item}")
    else:
        print(f"Week {state.current_week} is ready to advance.")

    if state.quarantined:
        print()
        print("WARNING: records were skipped on load:")
        for key, records in state.quarantined.items():
            print(f"  {key}: {len(records)}")


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the report runner."""
    args = parse_args(argv)

    from . import paths
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)
    paths.setup_file_logging(logging.DEBUG if args.verbose else logging.INFO)

    if args.store is None:
        store_dir = paths.STORE_DIR
        print(paths.get_store_path_message())
    else:
        store_dir = args.store
    store = JsonFileStore(store_dir)
    try:
        state = asyncio.run(load_season(store))
    except StorageError as e:
        print(f"[ERROR] Could not read the season store: {e}")
        return 1

    if args.export is not None:
        output_path = Path(args.export) if args.export else None
        written = export_season_report(state, output_path)
        print(f"Season report written to: {written}")
        return 0

    print_summary(state, args.week)
    return 0


if __name__ == "__main__":
    sys.exit(main())
