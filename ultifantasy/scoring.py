"""Stat-line scoring for individual players."""

from typing import Dict, Tuple

from .constants import STAT_POINTS


def score_player_stats(stats) -> Tuple[float, Dict[str, float]]:
    """
    Score one player's stat line for a game.

    Scoring:
        - Goals: 1 point each
        - Assists: 2 points each
        - Blocks: 3 points each
        - Drops: -1 point each
        - Throwaways: -1 point each

    Args:
        stats: A PlayerStats entity or a dict with the stat keys

    Returns:
        (points, breakdown) where breakdown only lists non-zero categories
    """
    points = 0.0
    breakdown = {}

    for stat, weight in STAT_POINTS.items():
        if isinstance(stats, dict):
            count = stats.get(stat, 0) or 0
        else:
            count = getattr(stats, stat, 0) or 0
        stat_pts = weight * count
        if stat_pts:
            breakdown[stat] = stat_pts
        points += stat_pts

    return points, breakdown


def calculate_stat_points(
    goals: int = 0,
    assists: int = 0,
    blocks: int = 0,
    drops: int = 0,
    throwaways: int = 0,
) -> float:
    """Derived points column stored on every PlayerStats row."""
    points, _ = score_player_stats({
        'goals': goals,
        'assists': assists,
        'blocks': blocks,
        'drops': drops,
        'throwaways': throwaways,
    })
    return points
