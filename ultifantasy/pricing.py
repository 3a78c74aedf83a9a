"""Player market price calculation.

Formula::

    new_value = previous_value + (10 * two_week_average - previous_value) / 4

Prices only move when a player plays. The two-week average is taken over the
last two weeks the player actually played, so a missed week freezes the price
and never drags the average down.
"""

from typing import Iterable, Optional

import polars as pl

from .config import get_config
from .errors import NotFound
from .logging_config import get_logger
from .models import (
    PlayerPrice,
    PlayerPriceRow,
    PlayerWeekPrice,
    PriceRecalculation,
    PriceTable,
    StatsUpdatePreview,
    TransferWindowState,
)
from .utils import round_money
from .windows import derive_window_state, prices_available

logger = get_logger('pricing')


def calculate_new_price(
    previous_value: float,
    two_week_avg_points: float,
    multiplier: float = 10.0,
    damping: float = 4.0,
) -> float:
    """
    Calculate a new price from the previous price and a points average.

    >>> calculate_new_price(100, 10)
    100.0
    >>> calculate_new_price(100, 20)
    125.0
    """
    new_value = previous_value + (multiplier * two_week_avg_points - previous_value) / damping
    return round_money(new_value)


def calculate_price_progression(
    starting_price: float,
    weekly_data: Iterable[tuple[float, bool]],
    multiplier: float = 10.0,
    damping: float = 4.0,
) -> list[float]:
    """
    Price history of one player.

    Args:
        starting_price: Price at the start of week 1
        weekly_data: (points, played) per week in week order

    Returns:
        Prices where index 0 is the starting price and index i is the price
        after week i (the price at the start of week i + 1)
    """
    prices = [starting_price]
    previous_price = starting_price
    played_history: list[float] = []

    for points, played in weekly_data:
        if not played:
            price = previous_price
        else:
            played_history.append(points)
            last_two = played_history[-2:]
            average = sum(last_two) / len(last_two)
            price = calculate_new_price(previous_price, average, multiplier, damping)

        prices.append(price)
        previous_price = price

    return prices


def get_player_points_by_week(store, season_id: str) -> dict[str, dict[str, float]]:
    """
    Played-only points per player per week.

    Returns:
        {player_id: {week_id: points}}; a week is present only when the player
        played at least one game in it
    """
    weeks = store.weeks.find_by_season(season_id)
    if not weeks:
        return {}

    game_weeks = {}
    for week in weeks:
        for game in store.games.find_by_week(week.id):
            game_weeks[game.id] = week.id

    stats = store.player_stats.find_by_games(game_weeks)
    if not stats:
        return {}

    df = pl.DataFrame(
        {
            'player_id': [s.player_id for s in stats],
            'week_id': [game_weeks[s.game_id] for s in stats],
            'points': [float(s.points or 0) for s in stats],
            'played': [bool(s.played) for s in stats],
        },
        schema={'player_id': pl.Utf8, 'week_id': pl.Utf8, 'points': pl.Float64, 'played': pl.Boolean},
    )

    totals = (
        df.filter(pl.col('played'))
        .group_by(['player_id', 'week_id'])
        .agg(pl.col('points').sum())
    )

    result: dict[str, dict[str, float]] = {}
    for row in totals.iter_rows(named=True):
        result.setdefault(row['player_id'], {})[row['week_id']] = row['points']
    return result


def calculate_price_table(store, season_id: str) -> PriceTable:
    """
    Full price table for every player registered in a season.

    week_data[week_number].price is the price at the start of that week; it
    depends only on the starting value and earlier played weeks.
    Draft weeks are left out.
    Rows are sorted by starting price, highest first.
    """
    config = get_config()
    weeks = [w for w in store.weeks.find_by_season(season_id) if not w.is_draft_week]
    points_by_week = get_player_points_by_week(store, season_id)

    rows = []
    for season_player in store.season_players.find_by_season(season_id):
        player = store.players.find_by_id(season_player.player_id)
        if player is None:
            logger.warning(f'Season player {season_player.id} references missing player {season_player.player_id}')
            continue

        team_id = season_player.team_id or player.team_id
        team = store.teams.find_by_id(team_id) if team_id else None

        player_points = points_by_week.get(player.id, {})
        weekly = [(player_points.get(w.id, 0.0), w.id in player_points) for w in weeks]
        prices = calculate_price_progression(
            season_player.starting_value,
            weekly,
            config.price_multiplier,
            config.price_damping,
        )

        week_data = {}
        for i, week in enumerate(weeks):
            points, played = weekly[i]
            week_data[week.week_number] = PlayerWeekPrice(points=points, played=played, price=prices[i])

        rows.append(PlayerPriceRow(
            player_id=player.id,
            player_name=player.full_name,
            team_name=team.name if team else None,
            starting_price=season_player.starting_value,
            week_data=week_data,
        ))

    rows.sort(key=lambda r: r.starting_price, reverse=True)
    return PriceTable(players=rows, weeks=weeks)


def _save_rounds(store, table: PriceTable, rounds: Optional[set[int]] = None) -> PriceRecalculation:
    result = PriceRecalculation()
    updated_rounds = set()

    for row in table.players:
        for week_number, data in sorted(row.week_data.items()):
            # Week 1 always uses the starting value
            if week_number < 2:
                continue
            if rounds is not None and week_number not in rounds:
                continue

            existing = store.value_changes.find_by_player_and_round(row.player_id, week_number)
            if existing is not None:
                if existing.value != data.price:
                    store.value_changes.update(existing.id, value=data.price)
            else:
                store.value_changes.create(player_id=row.player_id, round=week_number, value=data.price)
            result.saved += 1
            updated_rounds.add(week_number)

    result.rounds_updated = sorted(updated_rounds)
    return result


def _last_week_with_stats(store, weeks) -> int:
    last = 0
    for week in weeks:
        games = store.games.find_by_week(week.id)
        if games and store.player_stats.find_by_games(g.id for g in games):
            last = week.week_number
    return last


def save_calculated_prices(store, season_id: str, through_week_number: Optional[int] = None) -> int:
    """
    Upsert week-2+ prices of the season into value changes.

    Only rounds that follow a week with stats are saved: the price for round
    n + 1 is written once week n has been played.

    Args:
        through_week_number: Last played week to price from (default: the
            last week with any stats)

    Returns:
        Number of (player, round) prices saved
    """
    table = calculate_price_table(store, season_id)
    if through_week_number is None:
        through_week_number = _last_week_with_stats(store, table.weeks)
    rounds = {w.week_number for w in table.weeks if 2 <= w.week_number <= through_week_number + 1}
    result = _save_rounds(store, table, rounds)
    logger.info(f'Saved {result.saved} prices for season {season_id}')
    return result.saved


def calculate_from_window(store, season_id: str, starting_week_number: int) -> PriceRecalculation:
    """Recalculate and save prices for rounds after a week, cascading forward."""
    table = calculate_price_table(store, season_id)
    last_played = _last_week_with_stats(store, table.weeks)
    rounds = {
        w.week_number
        for w in table.weeks
        if starting_week_number < w.week_number <= last_played + 1
    }
    result = _save_rounds(store, table, rounds)
    logger.info(
        f'Recalculated prices from week {starting_week_number}: '
        f'{result.saved} saved, rounds {result.rounds_updated}'
    )
    return result


def finalize_week_prices(store, week_id: str) -> int:
    """
    Price the season from a week's stats and mark the week's prices final.

    Finalized prices for week n are what allow week n + 1's transfer window
    to open.
    """
    week = store.weeks.find_by_id(week_id)
    if week is None:
        raise NotFound('week', week_id)

    saved = save_calculated_prices(store, week.season_id, week.week_number)
    store.weeks.update(week.id, prices_calculated=True)
    logger.info(f'Finalized prices for week {week.week_number}')
    return saved


def get_current_player_prices(store, season_id: str) -> list[PlayerPrice]:
    """
    Latest market value of every season player with the change since the
    previous round. Starting values are returned when nothing has been priced.
    """
    prices = []
    for season_player in store.season_players.find_by_season(season_id):
        player = store.players.find_by_id(season_player.player_id)
        if player is None:
            continue

        team_id = season_player.team_id or player.team_id
        team = store.teams.find_by_id(team_id) if team_id else None

        changes = store.value_changes.find_by_player(player.id)
        if changes:
            current = changes[-1].value
            previous = changes[-2].value if len(changes) > 1 else season_player.starting_value
        else:
            current = season_player.starting_value
            previous = None

        prices.append(PlayerPrice(
            player_id=player.id,
            player_name=player.full_name,
            team_name=team.name if team else None,
            current_value=current,
            previous_value=previous,
        ))

    prices.sort(key=lambda p: p.current_value, reverse=True)
    return prices


def preview_stats_update(store, season_id: str, week_number: int) -> StatsUpdatePreview:
    """
    Describe what changing stats for a week would touch: every later round's
    prices, and any later window that has already opened on those prices.
    """
    weeks = store.weeks.find_by_season(season_id)
    preview = StatsUpdatePreview(week_number=week_number)

    for week in weeks:
        if week.transfer_window_open:
            preview.open_window_week = week.week_number
        if week.week_number <= week_number:
            continue

        preview.affected_rounds.append(week.week_number)
        state = derive_window_state(week, prices_available(store, week))
        if state in (TransferWindowState.OPEN, TransferWindowState.COMPLETED):
            preview.affected_windows.append(week.week_number)

    return preview
