"""Immutable weekly snapshots of fantasy team rosters.

A snapshot is never edited in place. Changing a week's roster deletes the
old snapshot (slot rows first) and creates a new one, so hosts with
concurrent writers must hold a per-(team, week) lock around
``replace_snapshot``.
"""

from collections import Counter
from typing import Any, Iterable, Optional

from .constants import BENCH_SLOTS, POSITION_ORDER, ROSTER_SIZE, STARTING_SLOTS
from .errors import InvalidPosition, NotFound, ValidationFailed
from .logging_config import get_logger
from .models import FantasyTeamSnapshot, Position, RosterSlot, SnapshotWithPlayers
from .utils import round_money, utc_now
from .values import get_player_values_for_week

logger = get_logger('snapshots')


def parse_position(value: Any, player_id: Optional[str] = None) -> Position:
    """
    Map a stored or user-supplied position onto the Position enum.

    Raises:
        InvalidPosition: For anything outside handler/cutter/receiver
    """
    if isinstance(value, Position):
        return value
    if isinstance(value, str):
        try:
            return Position(value.strip().lower())
        except ValueError:
            pass
    raise InvalidPosition(value, player_id)


def _empty_counts() -> dict[Position, dict[str, int]]:
    return {position: {'starting': 0, 'bench': 0} for position in POSITION_ORDER}


def count_lineup(slots: Iterable) -> dict[Position, dict[str, int]]:
    """Starting and bench counts per position for slots or snapshot players."""
    counts = _empty_counts()
    for slot in slots:
        key = 'bench' if slot.is_benched else 'starting'
        counts[parse_position(slot.position, slot.player_id)][key] += 1
    return counts


def validate_lineup(slots: list[RosterSlot], allow_partial: bool = False) -> list[str]:
    """
    Validate roster composition.

    Full lineups need exactly 10 players: 3 handlers, 2 cutters and
    2 receivers starting, one of each on the bench, and exactly one captain.
    Partial lineups (draft in progress) only enforce the upper bounds.
    Duplicate players are always rejected.

    Returns:
        List of error messages (empty if valid)
    """
    errors = []

    if allow_partial:
        if len(slots) > ROSTER_SIZE:
            errors.append(f'Cannot have more than {ROSTER_SIZE} players, found {len(slots)}')
    elif len(slots) != ROSTER_SIZE:
        errors.append(f'Must have exactly {ROSTER_SIZE} players, found {len(slots)}')

    duplicates = sorted(pid for pid, n in Counter(s.player_id for s in slots).items() if n > 1)
    for player_id in duplicates:
        errors.append(f'Player {player_id} appears more than once')

    valid_slots = []
    for slot in slots:
        try:
            parse_position(slot.position, slot.player_id)
        except InvalidPosition as e:
            errors.extend(e.errors)
            continue
        valid_slots.append(slot)

    counts = count_lineup(valid_slots)
    for position in POSITION_ORDER:
        starting = counts[position]['starting']
        bench = counts[position]['bench']
        need_starting = STARTING_SLOTS[position]
        need_bench = BENCH_SLOTS[position]

        if allow_partial:
            if starting > need_starting:
                errors.append(
                    f'Cannot have more than {need_starting} {position.value}s in starting lineup, found {starting}'
                )
            if bench > need_bench:
                errors.append(f'Cannot have more than {need_bench} {position.value} on bench, found {bench}')
        else:
            if starting != need_starting:
                errors.append(
                    f'Must have exactly {need_starting} {position.value}s in starting lineup, found {starting}'
                )
            if bench != need_bench:
                errors.append(f'Must have exactly {need_bench} {position.value} on bench, found {bench}')

    captains = sum(1 for s in slots if s.is_captain)
    if captains > 1:
        errors.append(f'Must have exactly one captain, found {captains}')
    elif captains == 0 and not allow_partial:
        errors.append('Must have exactly one captain, found 0')

    return errors


def check_lineup(roster: list[RosterSlot], allow_partial: bool = False, details: Optional[dict] = None) -> None:
    """
    Raise unless a roster is a valid lineup.

    Raises:
        InvalidPosition: A slot's position is not handler, cutter or receiver
        ValidationFailed: With every composition error
    """
    for slot in roster:
        parse_position(slot.position, slot.player_id)

    errors = validate_lineup(roster, allow_partial)
    if errors:
        raise ValidationFailed(errors, details)


def _normalize(roster: Iterable[RosterSlot]) -> list[RosterSlot]:
    return [
        RosterSlot(
            player_id=slot.player_id,
            position=parse_position(slot.position, slot.player_id),
            is_benched=bool(slot.is_benched),
            is_captain=bool(slot.is_captain),
        )
        for slot in roster
    ]


def create_snapshot(
    store,
    fantasy_team_id: str,
    week_id: str,
    roster: list[RosterSlot],
    allow_partial: bool = False,
    budget_remaining: Optional[float] = None,
) -> SnapshotWithPlayers:
    """
    Validate and persist a roster as the team's snapshot for a week.

    Each player's value for the week is captured on its slot row and summed
    into the snapshot's total value.

    Raises:
        InvalidPosition: A slot has an unknown position
        ValidationFailed: With every lineup error, before anything is written
        NotFound: If the fantasy team or week does not exist
    """
    check_lineup(roster, allow_partial, {'fantasy_team_id': fantasy_team_id, 'week_id': week_id})
    slots = _normalize(roster)

    week = store.weeks.find_by_id(week_id)
    if week is None:
        raise NotFound('week', week_id)
    team = store.fantasy_teams.find_by_id(fantasy_team_id)
    if team is None:
        raise NotFound('fantasy team', fantasy_team_id)

    player_ids = [slot.player_id for slot in slots]
    values = get_player_values_for_week(store, player_ids, week.week_number, team.season_id)
    captain = next((slot for slot in slots if slot.is_captain), None)

    snapshot = store.snapshots.create(
        fantasy_team_id=fantasy_team_id,
        week_id=week_id,
        captain_player_id=captain.player_id if captain else None,
        total_value=round_money(sum(values.values())),
        budget_remaining=budget_remaining,
        created_at=utc_now(),
    )
    players = store.snapshot_players.create_many([
        {
            'snapshot_id': snapshot.id,
            'player_id': slot.player_id,
            'position': slot.position,
            'is_benched': slot.is_benched,
            'is_captain': slot.is_captain,
            'player_value_at_snapshot': values.get(slot.player_id, 0.0),
        }
        for slot in slots
    ])

    logger.info(f'Created snapshot {snapshot.id} for team {fantasy_team_id} week {week.week_number}')
    return SnapshotWithPlayers(snapshot=snapshot, players=players)


def delete_snapshot(store, snapshot_id: str) -> None:
    """Delete a snapshot and its slot rows (slot rows first)."""
    if store.snapshots.find_by_id(snapshot_id) is None:
        raise NotFound('snapshot', snapshot_id)
    for player in store.snapshot_players.find_by_snapshot(snapshot_id):
        store.snapshot_players.delete(player.id)
    store.snapshots.delete(snapshot_id)
    logger.debug(f'Deleted snapshot {snapshot_id}')


def replace_snapshot(
    store,
    fantasy_team_id: str,
    week_id: str,
    roster: list[RosterSlot],
    allow_partial: bool = False,
    budget_remaining: Optional[float] = None,
) -> SnapshotWithPlayers:
    """
    Destroy-and-recreate the snapshot for a (team, week) pair.

    The roster is validated before the old snapshot is touched.
    """
    check_lineup(roster, allow_partial, {'fantasy_team_id': fantasy_team_id, 'week_id': week_id})

    existing = store.snapshots.find_by_fantasy_team_and_week(fantasy_team_id, week_id)
    if existing is not None:
        delete_snapshot(store, existing.id)
    return create_snapshot(store, fantasy_team_id, week_id, roster, allow_partial, budget_remaining)


def get_snapshot_for_week(store, fantasy_team_id: str, week_id: str) -> Optional[FantasyTeamSnapshot]:
    return store.snapshots.find_by_fantasy_team_and_week(fantasy_team_id, week_id)


def get_snapshots_for_team(store, fantasy_team_id: str) -> list[FantasyTeamSnapshot]:
    return store.snapshots.find_by_fantasy_team(fantasy_team_id)


def get_snapshot_with_players(store, snapshot_id: str) -> SnapshotWithPlayers:
    snapshot = store.snapshots.find_by_id(snapshot_id)
    if snapshot is None:
        raise NotFound('snapshot', snapshot_id)
    return SnapshotWithPlayers(snapshot=snapshot, players=store.snapshot_players.find_by_snapshot(snapshot_id))


def get_most_recent_snapshot_before_week(
    store,
    fantasy_team_id: str,
    week_id: str,
) -> Optional[SnapshotWithPlayers]:
    """
    Latest snapshot of the team in an earlier week of the same season.

    Walks back by week number, so weeks the team skipped are passed over.
    """
    week = store.weeks.find_by_id(week_id)
    if week is None:
        raise NotFound('week', week_id)

    earlier = [w for w in store.weeks.find_by_season(week.season_id) if w.week_number < week.week_number]
    for previous in reversed(earlier):
        snapshot = store.snapshots.find_by_fantasy_team_and_week(fantasy_team_id, previous.id)
        if snapshot is not None:
            return SnapshotWithPlayers(
                snapshot=snapshot,
                players=store.snapshot_players.find_by_snapshot(snapshot.id),
            )
    return None


def get_lineup_counts(store, snapshot_id: str) -> dict[Position, dict[str, int]]:
    return count_lineup(store.snapshot_players.find_by_snapshot(snapshot_id))


def calculate_snapshot_value(store, snapshot_id: str) -> float:
    """Sum of the values captured on the snapshot's slot rows."""
    if store.snapshots.find_by_id(snapshot_id) is None:
        raise NotFound('snapshot', snapshot_id)
    players = store.snapshot_players.find_by_snapshot(snapshot_id)
    return round_money(sum(p.player_value_at_snapshot for p in players))
