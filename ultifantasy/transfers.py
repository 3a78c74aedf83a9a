"""Transfers computed from snapshot diffs, and the save-roster flow.

Transfers are never stored. They are the difference between a week's roster
and the team's most recent earlier snapshot, paired by position (a handler
can only be swapped for a handler). Because only the two rosters are
compared, a chain X -> Y -> Z within one window counts once and a reverted
swap counts zero.
"""

from datetime import datetime
from typing import Iterable, Optional

from .budget import calculate_budget_after_transfers, calculate_initial_budget, validate_transfer_count
from .config import get_max_transfers_per_week, get_salary_cap
from .constants import POSITION_ORDER
from .errors import InvariantViolation, NotFound, PreconditionNotMet
from .logging_config import get_logger
from .models import RosterSlot, SavedRoster, Transfer
from .snapshots import (
    check_lineup,
    get_most_recent_snapshot_before_week,
    parse_position,
    replace_snapshot,
)
from .utils import round_money
from .values import update_team_value
from .windows import can_make_transfer

logger = get_logger('transfers')


def compute_transfers(current_players: Iterable, previous_players: Iterable) -> list[Transfer]:
    """
    Pair players added and removed between two rosters, position by position.

    Both arguments hold objects with ``player_id`` and ``position``. Unpaired
    changes get an empty id on the missing side.
    """
    current_players = list(current_players)
    previous_players = list(previous_players)
    current_ids = {p.player_id for p in current_players}
    previous_ids = {p.player_id for p in previous_players}

    ins = {position: [] for position in POSITION_ORDER}
    outs = {position: [] for position in POSITION_ORDER}
    for player in current_players:
        if player.player_id not in previous_ids:
            ins[parse_position(player.position, player.player_id)].append(player.player_id)
    for player in previous_players:
        if player.player_id not in current_ids:
            outs[parse_position(player.position, player.player_id)].append(player.player_id)

    transfers = []
    for position in POSITION_ORDER:
        players_in = ins[position]
        players_out = outs[position]
        for i in range(max(len(players_in), len(players_out))):
            transfers.append(Transfer(
                player_in_id=players_in[i] if i < len(players_in) else '',
                player_out_id=players_out[i] if i < len(players_out) else '',
                position=position,
            ))
    return transfers


def is_first_week(store, fantasy_team_id: str, week_id: str) -> bool:
    """A team's first week is one with no snapshot in any earlier week."""
    return get_most_recent_snapshot_before_week(store, fantasy_team_id, week_id) is None


def get_remaining_transfers(store, fantasy_team_id: str, week_id: str) -> Optional[int]:
    """
    Transfers still available to a team for a week.

    Returns:
        None in the team's first week (unlimited), otherwise the weekly
        limit minus transfers already made, floored at 0
    """
    previous = get_most_recent_snapshot_before_week(store, fantasy_team_id, week_id)
    if previous is None:
        return None

    current = store.snapshots.find_by_fantasy_team_and_week(fantasy_team_id, week_id)
    if current is None:
        return get_max_transfers_per_week()

    transfers = compute_transfers(store.snapshot_players.find_by_snapshot(current.id), previous.players)
    return max(0, get_max_transfers_per_week() - len(transfers))


def save_roster_for_week(
    store,
    fantasy_team_id: str,
    week_id: str,
    roster: list[RosterSlot],
    allow_partial: bool = False,
    user_id: Optional[str] = None,
    now: Optional[datetime] = None,
) -> SavedRoster:
    """
    Save a team's roster for a week.

    Checks the transfer window, validates the lineup, diffs it against the
    most recent earlier snapshot, enforces the transfer limit and salary cap,
    then replaces the week's snapshot and updates the team value. Every
    check runs before anything is written.

    Raises:
        PreconditionNotMet: Transfer window closed for this user
        InvalidPosition: A slot has an unknown position
        ValidationFailed: Lineup composition errors
        NotFound: Missing fantasy team or week
        InvariantViolation: Too many transfers, or budget would go negative
    """
    permission = can_make_transfer(store, week_id, user_id, now)
    if not permission.allowed:
        raise PreconditionNotMet(permission.reason, {'week_id': week_id, 'user_id': user_id})

    check_lineup(roster, allow_partial, {'fantasy_team_id': fantasy_team_id, 'week_id': week_id})

    week = store.weeks.find_by_id(week_id)
    if week is None:
        raise NotFound('week', week_id)
    team = store.fantasy_teams.find_by_id(fantasy_team_id)
    if team is None:
        raise NotFound('fantasy team', fantasy_team_id)

    previous = get_most_recent_snapshot_before_week(store, fantasy_team_id, week_id)
    first_week = previous is None
    player_ids = [slot.player_id for slot in roster]

    if first_week:
        transfers = []
        budget = calculate_initial_budget(store, player_ids, week.week_number, team.season_id)
    else:
        transfers = compute_transfers(roster, previous.players)
        max_transfers = get_max_transfers_per_week()
        if not validate_transfer_count(len(transfers), False, max_transfers):
            raise InvariantViolation(
                'max_transfers',
                f'Too many transfers: {len(transfers)} (max {max_transfers} per week)',
                {'transfers': len(transfers), 'max_transfers': max_transfers},
            )

        previous_budget = previous.snapshot.budget_remaining
        if previous_budget is None:
            previous_budget = round_money(get_salary_cap() - previous.snapshot.total_value)
        budget = calculate_budget_after_transfers(
            store, previous_budget, transfers, week.week_number, team.season_id
        )

    if not budget.is_valid:
        raise InvariantViolation('budget', budget.error, {'budget': budget.budget, 'deficit': budget.deficit})

    snapshot = replace_snapshot(
        store, fantasy_team_id, week_id, roster, allow_partial, budget_remaining=budget.budget
    )
    update_team_value(store, fantasy_team_id, snapshot.snapshot.total_value)

    logger.info(
        f'Saved roster for team {fantasy_team_id} week {week.week_number}: '
        f'{len(transfers)} transfers, budget {budget.budget:.2f}'
    )
    return SavedRoster(snapshot=snapshot, budget=budget, transfers=transfers, is_first_week=first_week)
