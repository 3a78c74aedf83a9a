"""Entering and correcting per-game player stats."""

from typing import Optional

from .errors import NotFound, ValidationFailed
from .logging_config import get_logger
from .models import PlayerStats, StatsCorrection
from .pricing import calculate_from_window
from .scorer import recalculate_season_from_week
from .scoring import calculate_stat_points

logger = get_logger('stats')

STAT_FIELDS = ('goals', 'assists', 'blocks', 'drops', 'throwaways')


def _validate_counts(counts: dict) -> None:
    errors = [f'{name} cannot be negative, got {value}' for name, value in counts.items() if value < 0]
    if errors:
        raise ValidationFailed(errors)


def record_player_stats(
    store,
    player_id: str,
    game_id: str,
    goals: int = 0,
    assists: int = 0,
    blocks: int = 0,
    drops: int = 0,
    throwaways: int = 0,
    played: bool = True,
) -> PlayerStats:
    """
    Upsert a player's stat line for a game.

    The points column is always derived from the counts.
    """
    if store.players.find_by_id(player_id) is None:
        raise NotFound('player', player_id)
    if store.games.find_by_id(game_id) is None:
        raise NotFound('game', game_id)

    counts = {'goals': goals, 'assists': assists, 'blocks': blocks, 'drops': drops, 'throwaways': throwaways}
    _validate_counts(counts)
    fields = {**counts, 'points': calculate_stat_points(**counts), 'played': played}

    existing = store.player_stats.find_by_player_and_game(player_id, game_id)
    if existing is not None:
        return store.player_stats.update(existing.id, **fields)
    return store.player_stats.create(player_id=player_id, game_id=game_id, **fields)


def correct_player_stats(store, player_id: str, game_id: str, **changes) -> StatsCorrection:
    """
    Apply a retroactive correction and cascade it.

    If the game's week already has finalized prices, every later round is
    repriced. Every team's score for that week and all later weeks is then
    recalculated.
    """
    existing = store.player_stats.find_by_player_and_game(player_id, game_id)
    if existing is None:
        raise NotFound('player stats', f'{player_id}/{game_id}')

    unknown = set(changes) - set(STAT_FIELDS) - {'played'}
    if unknown:
        raise ValidationFailed([f'Unknown stat: {name}' for name in sorted(unknown)])

    merged = {name: changes.get(name, getattr(existing, name)) for name in STAT_FIELDS}
    stats = record_player_stats(
        store, player_id, game_id, played=changes.get('played', existing.played), **merged
    )

    game = store.games.find_by_id(game_id)
    week = store.weeks.find_by_id(game.week_id)
    if week is None:
        raise NotFound('week', game.week_id)

    prices = None
    if week.prices_calculated:
        prices = calculate_from_window(store, week.season_id, week.week_number)

    rescored = recalculate_season_from_week(store, week.season_id, week.id)
    logger.info(
        f'Corrected stats for player {player_id} in game {game_id}; '
        f'rescored {rescored} team-weeks'
    )
    return StatsCorrection(stats=stats, prices=prices, scores_recalculated=rescored)


def get_week_stats(store, week_id: str, player_id: Optional[str] = None) -> list[PlayerStats]:
    """All stat lines for a week's games, optionally for one player."""
    games = store.games.find_by_week(week_id)
    stats = store.player_stats.find_by_games(g.id for g in games)
    if player_id is not None:
        stats = [s for s in stats if s.player_id == player_id]
    return stats
