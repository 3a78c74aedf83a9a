"""Salary-cap budget tracking.

Budget rules:
    - First week: budget = salary cap - value of the roster at current prices
    - Later weeks: the budget carries forward and changes only via transfers,
      each adding sell(out) - buy(in) at current market value
    - Appreciation of retained players never changes the budget
    - Budgets and team values are held in cents
"""

from typing import Iterable, Optional

from .config import get_max_transfers_per_week, get_salary_cap
from .models import BudgetResult, Transfer, TransferDelta
from .utils import round_money
from .values import get_player_values_for_week


def _budget_error(budget: float) -> Optional[str]:
    if budget < 0:
        return f'Budget exceeded by ${abs(budget):.0f}'
    return None


def calculate_initial_budget(
    store,
    player_ids: Iterable[str],
    week_number: int,
    season_id: Optional[str] = None,
) -> BudgetResult:
    values = get_player_values_for_week(store, player_ids, week_number, season_id)
    team_value = round_money(sum(values.values()))
    budget = round_money(get_salary_cap() - team_value)

    return BudgetResult(
        budget=budget,
        team_value=team_value,
        is_valid=validate_budget(budget),
        error=_budget_error(budget),
    )


def calculate_budget_after_transfers(
    store,
    previous_budget: float,
    transfers: Iterable[Transfer],
    week_number: int,
    season_id: Optional[str] = None,
) -> BudgetResult:
    """
    Apply a week's transfers to the previous budget.

    A negative result is reported (is_valid False, deficit set), never clamped.
    Unpaired transfers have an empty id on one side, which is worth 0.
    """
    transfers = list(transfers)
    involved = {pid for t in transfers for pid in (t.player_in_id, t.player_out_id) if pid}
    values = get_player_values_for_week(store, involved, week_number, season_id)

    deltas = []
    total_delta = 0.0
    for transfer in transfers:
        in_value = values.get(transfer.player_in_id, 0.0)
        out_value = values.get(transfer.player_out_id, 0.0)
        delta = out_value - in_value
        deltas.append(TransferDelta(
            player_in_id=transfer.player_in_id,
            player_out_id=transfer.player_out_id,
            player_in_value=in_value,
            player_out_value=out_value,
            delta=delta,
        ))
        total_delta += delta

    budget = round_money(previous_budget + total_delta)
    return BudgetResult(
        budget=budget,
        transfer_deltas=deltas,
        is_valid=validate_budget(budget),
        error=_budget_error(budget),
    )


def calculate_team_value(
    store,
    player_ids: Iterable[str],
    week_number: int,
    season_id: Optional[str] = None,
) -> float:
    """Current market value of a roster. Moves with the market; the budget does not."""
    return round_money(sum(get_player_values_for_week(store, player_ids, week_number, season_id).values()))


def validate_budget(budget: float) -> bool:
    return budget >= 0


def validate_transfer_count(
    transfer_count: int,
    is_first_week: bool,
    max_transfers: Optional[int] = None,
) -> bool:
    """The first week has unlimited transfers; later weeks are capped (default: league config)."""
    if is_first_week:
        return True
    if max_transfers is None:
        max_transfers = get_max_transfers_per_week()
    return transfer_count <= max_transfers
