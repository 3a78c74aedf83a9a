#!/usr/bin/env python3
"""
Ultimate fantasy league admin CLI

Runs the weekly admin jobs against a JSON store file: pricing, transfer
windows, scoring and exports.

Usage:
    python ultifantasy_cli.py prices
    python ultifantasy_cli.py finalize-prices --week 1
    python ultifantasy_cli.py open-window --week 2
    python ultifantasy_cli.py close-window --week 2
    python ultifantasy_cli.py window-status
    python ultifantasy_cli.py score --week 2
    python ultifantasy_cli.py recalculate --week 2
    python ultifantasy_cli.py export-prices --output prices.xlsx
"""

import argparse
import logging
import sys
from pathlib import Path

from ultifantasy import (
    EngineError,
    JsonFileStore,
    calculate_and_save_week_score,
    calculate_price_table,
    close_window,
    finalize_week_prices,
    get_current_player_prices,
    get_leaderboard,
    get_transfer_window_statuses,
    open_window,
    recalculate_season_from_week,
)
from ultifantasy.errors import NotFound
from ultifantasy.export import export_leaderboard, export_price_table
from ultifantasy.logging_config import setup_logging


def resolve_season(store, season_id: str | None):
    if season_id:
        season = store.seasons.find_by_id(season_id)
        if season is None:
            raise NotFound('season', season_id)
        return season
    season = store.seasons.find_active()
    if season is None:
        raise NotFound('season', 'active', 'No active season; pass --season')
    return season


def resolve_week(store, season, week_number: int):
    week = store.weeks.find_by_season_and_number(season.id, week_number)
    if week is None:
        raise NotFound('week', f'{season.name} week {week_number}')
    return week


def cmd_prices(store, season, args) -> None:
    for price in get_current_player_prices(store, season.id):
        change = f'{price.change:+.2f}' if price.change is not None else '   -'
        print(f'  {price.player_name:<28} {price.team_name or "":<20} ${price.current_value:>7.2f} {change}')


def cmd_finalize_prices(store, season, args) -> None:
    week = resolve_week(store, season, args.week)
    saved = finalize_week_prices(store, week.id)
    print(f'Week {week.week_number} prices finalized ({saved} prices saved)')


def cmd_open_window(store, season, args) -> None:
    week = open_window(store, resolve_week(store, season, args.week).id)
    print(f'Week {week.week_number} transfer window open')


def cmd_close_window(store, season, args) -> None:
    week = close_window(store, resolve_week(store, season, args.week).id)
    print(f'Week {week.week_number} transfer window closed')


def cmd_window_status(store, season, args) -> None:
    for status in get_transfer_window_statuses(store, season.id):
        print(f'  Week {status.week_number:>2}: {status.state.value}')


def cmd_score(store, season, args) -> None:
    week = resolve_week(store, season, args.week)
    scored = 0
    for team in store.fantasy_teams.find_by_season(season.id):
        if store.snapshots.find_by_fantasy_team_and_week(team.id, week.id) is None:
            continue
        score = calculate_and_save_week_score(store, team.id, week.id)
        print(f'  {team.name}: {score.total_points:.1f} pts (captain {score.captain_points:.1f})')
        scored += 1
    print(f'Scored {scored} teams for week {week.week_number}')


def cmd_recalculate(store, season, args) -> None:
    week = resolve_week(store, season, args.week)
    count = recalculate_season_from_week(store, season.id, week.id)
    print(f'Recalculated {count} team-week scores from week {week.week_number}')


def cmd_export_prices(store, season, args) -> None:
    output = Path(args.output)
    export_price_table(calculate_price_table(store, season.id), output)
    if args.leaderboard:
        export_leaderboard(get_leaderboard(store, season.id), output)
    print(f'Exported to {output}')


def main():
    parser = argparse.ArgumentParser(description="Ultimate fantasy league admin tools")
    parser.add_argument(
        "--store", "-s",
        default="data/store.json",
        help="Path to the JSON store file",
    )
    parser.add_argument(
        "--season",
        default=None,
        help="Season id (defaults to the active season)",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable debug logging",
    )
    parser.add_argument(
        "--log-dir",
        default=None,
        help="Also write logs to this directory",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("prices", help="Show current player prices").set_defaults(func=cmd_prices)

    for name, func, help_text in [
        ("finalize-prices", cmd_finalize_prices, "Save prices from a week's stats and mark them final"),
        ("open-window", cmd_open_window, "Open a week's transfer window"),
        ("close-window", cmd_close_window, "Close a week's transfer window"),
        ("score", cmd_score, "Score every team for a week"),
        ("recalculate", cmd_recalculate, "Re-score every team from a week onwards"),
    ]:
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument("--week", "-w", type=int, required=True, help="Week number")
        sub.set_defaults(func=func)

    subparsers.add_parser("window-status", help="Show transfer window states").set_defaults(func=cmd_window_status)

    export = subparsers.add_parser("export-prices", help="Export the price table to Excel")
    export.add_argument("--output", "-o", required=True, help="Output .xlsx path")
    export.add_argument("--leaderboard", action="store_true", help="Also export the leaderboard sheet")
    export.set_defaults(func=cmd_export_prices)

    args = parser.parse_args()

    setup_logging(
        log_dir=Path(args.log_dir) if args.log_dir else None,
        level=logging.DEBUG if args.verbose else logging.INFO,
        log_to_file=args.log_dir is not None,
    )

    store_path = Path(args.store)
    if not store_path.exists():
        print(f"Store file not found: {store_path}")
        sys.exit(1)

    try:
        store = JsonFileStore(store_path)
        season = resolve_season(store, args.season)
        args.func(store, season, args)
    except EngineError as e:
        print(f"Error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
