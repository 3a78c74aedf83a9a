"""Market value lookup for players as of a given week."""

from typing import Iterable, Optional

from .errors import NotFound
from .logging_config import get_logger
from .utils import round_money

logger = get_logger('values')


def get_player_value_for_week(
    store,
    player_id: str,
    week_number: int,
    season_id: Optional[str] = None,
) -> float:
    """
    Market value of a player at the start of a week.

    Resolution order:
        1. The latest value change with round <= week_number
        2. The player's season starting value (when season_id is given)
        3. The player's own starting value
        4. 0
    """
    changes = [vc for vc in store.value_changes.find_by_player(player_id) if vc.round <= week_number]
    if changes:
        return changes[-1].value

    if season_id is not None:
        season_player = store.season_players.find_by_season_and_player(season_id, player_id)
        if season_player is not None:
            return season_player.starting_value

    player = store.players.find_by_id(player_id)
    if player is not None:
        return player.starting_value

    logger.warning(f'No value found for player {player_id}, using 0')
    return 0.0


def get_player_values_for_week(
    store,
    player_ids: Iterable[str],
    week_number: int,
    season_id: Optional[str] = None,
) -> dict[str, float]:
    return {
        player_id: get_player_value_for_week(store, player_id, week_number, season_id)
        for player_id in player_ids
    }


def calculate_team_value_for_week(
    store,
    player_ids: Iterable[str],
    week_number: int,
    season_id: Optional[str] = None,
) -> float:
    values = get_player_values_for_week(store, player_ids, week_number, season_id)
    return round_money(sum(values.values()))


def get_week_on_week_values(
    store,
    player_id: str,
    week_number: int,
    season_id: Optional[str] = None,
) -> tuple[float, Optional[float]]:
    """Return (value this week, value the week before or None in week 1)."""
    current = get_player_value_for_week(store, player_id, week_number, season_id)
    if week_number <= 1:
        return current, None
    return current, get_player_value_for_week(store, player_id, week_number - 1, season_id)


def update_team_value(store, fantasy_team_id: str, total_value: float):
    """Record a fantasy team's current roster value; the first value becomes its original value."""
    team = store.fantasy_teams.find_by_id(fantasy_team_id)
    if team is None:
        raise NotFound('fantasy team', fantasy_team_id)

    changes = {'total_value': total_value}
    if not team.original_value:
        changes['original_value'] = total_value
    return store.fantasy_teams.update(fantasy_team_id, **changes)
