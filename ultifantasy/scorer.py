"""Weekly fantasy team scoring with auto-substitution and captain doubling."""

from typing import Optional

from .constants import CAPTAIN_MULTIPLIER
from .errors import NotFound, SnapshotNotFound
from .logging_config import get_logger
from .models import FantasyTeamScore, FantasyTeamSnapshotPlayer, PlayerStats, ScoreResult, Substitution
from .utils import utc_now

logger = get_logger('scorer')

StatsLookup = dict[tuple[str, str], PlayerStats]


def _played(stats_lookup: StatsLookup, player_id: str, game_id: str) -> Optional[PlayerStats]:
    stats = stats_lookup.get((player_id, game_id))
    if stats is not None and stats.played:
        return stats
    return None


def apply_auto_substitution(
    slot: FantasyTeamSnapshotPlayer,
    slots: list[FantasyTeamSnapshotPlayer],
    game_id: str,
    stats_lookup: StatsLookup,
) -> tuple[str, Optional[Substitution]]:
    """
    Decide whose stats count for a roster slot in one game.

    A starter who did not play is replaced by the first benched, non-captain
    player of the same position, but only if that player played.

    Returns:
        (player_id to score, Substitution or None)
    """
    if slot.is_benched or _played(stats_lookup, slot.player_id, game_id):
        return slot.player_id, None

    bench = next(
        (p for p in slots if p.position == slot.position and p.is_benched and not p.is_captain),
        None,
    )
    if bench is None or not _played(stats_lookup, bench.player_id, game_id):
        return slot.player_id, None

    position = slot.position.value if hasattr(slot.position, 'value') else slot.position
    return bench.player_id, Substitution(
        player_out=slot.player_id,
        player_in=bench.player_id,
        game_id=game_id,
        reason=f'{position} did not play, substituted with benched {position}',
    )


def calculate_week_score(store, fantasy_team_id: str, week_id: str) -> ScoreResult:
    """
    Score a team's snapshot for a week.

    Every starter is scored game by game (substituting where needed); the
    captain's points are doubled into captain_points, everyone else's go
    into total_points.

    Raises:
        SnapshotNotFound: The team has no snapshot for the week
    """
    snapshot = store.snapshots.find_by_fantasy_team_and_week(fantasy_team_id, week_id)
    if snapshot is None:
        raise SnapshotNotFound(fantasy_team_id, week_id)

    games = store.games.find_by_week(week_id)
    if not games:
        return ScoreResult()

    slots = store.snapshot_players.find_by_snapshot(snapshot.id)
    stats_lookup = {(s.player_id, s.game_id): s for s in store.player_stats.find_by_games(g.id for g in games)}

    result = ScoreResult()
    for slot in slots:
        if slot.is_benched:
            continue

        points = 0.0
        for game in games:
            player_id, substitution = apply_auto_substitution(slot, slots, game.id, stats_lookup)
            if substitution is not None:
                result.substitutions.append(substitution)
            stats = _played(stats_lookup, player_id, game.id)
            if stats is not None:
                points += stats.points

        if slot.is_captain:
            result.captain_points += points * CAPTAIN_MULTIPLIER
            result.player_points[slot.player_id] = points * CAPTAIN_MULTIPLIER
        else:
            result.total_points += points
            result.player_points[slot.player_id] = points

    return result


def calculate_and_save_week_score(store, fantasy_team_id: str, week_id: str) -> FantasyTeamScore:
    """Score a week and upsert the (team, week) score row."""
    result = calculate_week_score(store, fantasy_team_id, week_id)
    fields = {
        'total_points': result.final_points,
        'captain_points': result.captain_points,
        'calculated_at': utc_now(),
    }

    existing = store.scores.find_by_fantasy_team_and_week(fantasy_team_id, week_id)
    if existing is not None:
        score = store.scores.update(existing.id, **fields)
    else:
        score = store.scores.create(fantasy_team_id=fantasy_team_id, week_id=week_id, **fields)

    logger.debug(f'Team {fantasy_team_id} week {week_id}: {score.total_points} points')
    return score


def recalculate_all_subsequent_weeks(store, fantasy_team_id: str, from_week_id: str) -> list[FantasyTeamScore]:
    """
    Re-score every week of the team's season from a week onwards, ascending.

    Weeks without a snapshot are skipped.
    """
    from_week = store.weeks.find_by_id(from_week_id)
    if from_week is None:
        raise NotFound('week', from_week_id)
    team = store.fantasy_teams.find_by_id(fantasy_team_id)
    if team is None:
        raise NotFound('fantasy team', fantasy_team_id)

    scores = []
    for week in store.weeks.find_by_season(team.season_id):
        if week.week_number < from_week.week_number:
            continue
        if store.snapshots.find_by_fantasy_team_and_week(fantasy_team_id, week.id) is None:
            continue
        scores.append(calculate_and_save_week_score(store, fantasy_team_id, week.id))
    return scores


def recalculate_season_from_week(store, season_id: str, from_week_id: str) -> int:
    """Re-score every fantasy team of a season from a week onwards."""
    count = 0
    for team in store.fantasy_teams.find_by_season(season_id):
        count += len(recalculate_all_subsequent_weeks(store, team.id, from_week_id))
    logger.info(f'Recalculated {count} team-week scores for season {season_id}')
    return count


def get_leaderboard(store, season_id: str) -> list[dict]:
    """
    Season standings from stored scores.

    Returns:
        Dicts with rank, fantasy_team_id, name, owner_id, total_points and
        weeks_scored, highest total first
    """
    weeks = {w.id for w in store.weeks.find_by_season(season_id)}
    standings = []
    for team in store.fantasy_teams.find_by_season(season_id):
        scores = [s for s in store.scores.find_by_fantasy_team(team.id) if s.week_id in weeks]
        standings.append({
            'fantasy_team_id': team.id,
            'name': team.name,
            'owner_id': team.owner_id,
            'total_points': sum(s.total_points for s in scores),
            'weeks_scored': len(scores),
        })

    standings.sort(key=lambda row: (-row['total_points'], row['name']))
    for rank, row in enumerate(standings, start=1):
        row['rank'] = rank
    return standings
