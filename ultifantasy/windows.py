"""Transfer window state machine.

States::

    upcoming -> ready -> open -> completed
                          ^          |
                          +----------+   (reopen clears closed-at)

A week is ``upcoming`` until the previous week's prices are finalized,
``ready`` once they are, ``open`` while the window is open and the cutoff has
not passed, and ``completed`` once closed or past its cutoff. A window that
was never opened is also ``completed`` after the week's end date. There is no
direct upcoming -> open transition. At most one window per season is open.

Opening is check-then-act. Hosts running concurrent callers should hold a
lock or transaction around ``open_window`` and may re-run ``check_can_open``
inside it.
"""

from datetime import datetime
from typing import Iterable, Optional

from .config import can_bypass_transfer_window
from .errors import InvariantViolation, NotFound, PreconditionNotMet
from .logging_config import get_logger
from .models import TransferPermission, TransferWindowState, TransferWindowStatus, Week
from .utils import as_utc, utc_now

logger = get_logger('windows')


def _cutoff_passed(week: Week, now: Optional[datetime]) -> bool:
    if week.transfer_cutoff_time is None:
        return False
    now = now or utc_now()
    return as_utc(now) >= as_utc(week.transfer_cutoff_time)


def _week_ended(week: Week, now: Optional[datetime]) -> bool:
    if week.end_date is None:
        return False
    now = now or utc_now()
    return as_utc(now).date() > week.end_date


def derive_window_state(week: Week, prices_available: bool, now: Optional[datetime] = None) -> TransferWindowState:
    """Pure projection of a week's stored window fields onto a single state."""
    if week.transfer_window_open:
        if _cutoff_passed(week, now):
            return TransferWindowState.COMPLETED
        return TransferWindowState.OPEN
    if week.transfer_window_closed_at is not None:
        return TransferWindowState.COMPLETED
    if prices_available:
        # never opened and the week is over
        if _week_ended(week, now):
            return TransferWindowState.COMPLETED
        return TransferWindowState.READY
    return TransferWindowState.UPCOMING


def get_previous_week(store, week: Week) -> Optional[Week]:
    """Closest earlier week of the same season, tolerating gaps in numbering."""
    earlier = [w for w in store.weeks.find_by_season(week.season_id) if w.week_number < week.week_number]
    return earlier[-1] if earlier else None


def _prices_finalized_for(week: Week, previous_week: Optional[Week]) -> bool:
    if week.week_number <= 1 or previous_week is None:
        return True
    return previous_week.prices_calculated


def prices_available(store, week: Week) -> bool:
    """True when the prices a week's window trades at have been finalized."""
    return _prices_finalized_for(week, get_previous_week(store, week))


def find_open_window_conflict(week: Week, open_weeks: Iterable[Week]) -> Optional[Week]:
    """Return another week of the same season whose window is open, if any."""
    for other in open_weeks:
        if other.id != week.id and other.season_id == week.season_id and other.transfer_window_open:
            return other
    return None


def check_can_open(week: Week, previous_week: Optional[Week], open_weeks: Iterable[Week]) -> None:
    """
    Raise if a week's window may not be opened.

    Raises:
        InvariantViolation: Another week of the season has an open window
        PreconditionNotMet: The previous week's prices are not finalized
    """
    conflict = find_open_window_conflict(week, open_weeks)
    if conflict is not None:
        raise InvariantViolation(
            'single_open_window',
            f'Week {conflict.week_number} transfer window is already open. Close it first.',
            {'week_id': week.id, 'open_week_id': conflict.id, 'open_week_number': conflict.week_number},
        )

    if not _prices_finalized_for(week, previous_week):
        raise PreconditionNotMet(
            f'Prices for week {previous_week.week_number} must be calculated '
            f'before opening the week {week.week_number} transfer window',
            {'week_id': week.id, 'previous_week_id': previous_week.id},
        )


def open_window(store, week_id: str) -> Week:
    week = store.weeks.find_by_id(week_id)
    if week is None:
        raise NotFound('week', week_id)
    if week.transfer_window_open:
        logger.debug(f'Week {week.week_number} window already open')
        return week

    open_weeks = store.weeks.find_open_windows_for_season(week.season_id)
    check_can_open(week, get_previous_week(store, week), open_weeks)

    week = store.weeks.update(week.id, transfer_window_open=True, transfer_window_closed_at=None)
    logger.info(f'Opened transfer window for week {week.week_number}')
    return week


def close_window(store, week_id: str, now: Optional[datetime] = None) -> Week:
    week = store.weeks.find_by_id(week_id)
    if week is None:
        raise NotFound('week', week_id)
    if not week.transfer_window_open:
        return week

    week = store.weeks.update(
        week.id,
        transfer_window_open=False,
        transfer_window_closed_at=now or utc_now(),
    )
    logger.info(f'Closed transfer window for week {week.week_number}')
    return week


def can_make_transfer(
    store,
    week_id: str,
    user_id: Optional[str] = None,
    now: Optional[datetime] = None,
) -> TransferPermission:
    """Whether a user may change their roster for a week right now."""
    if can_bypass_transfer_window(user_id):
        return TransferPermission(allowed=True)

    week = store.weeks.find_by_id(week_id)
    if week is None:
        raise NotFound('week', week_id)

    if not week.transfer_window_open:
        return TransferPermission(allowed=False, reason='Transfer window is closed for this week')
    if _cutoff_passed(week, now):
        return TransferPermission(allowed=False, reason='Transfer cutoff time has passed')
    return TransferPermission(allowed=True)


def has_open_window(store, season_id: str) -> Optional[Week]:
    """Return the season's open week, or None."""
    open_weeks = store.weeks.find_open_windows_for_season(season_id)
    return open_weeks[0] if open_weeks else None


def get_transfer_window_statuses(store, season_id: str, now: Optional[datetime] = None) -> list[TransferWindowStatus]:
    statuses = []
    previous = None
    for week in store.weeks.find_by_season(season_id):
        available = _prices_finalized_for(week, previous)
        statuses.append(TransferWindowStatus(
            week_id=week.id,
            week_number=week.week_number,
            state=derive_window_state(week, available, now),
            prices_available=available,
            prices_calculated=week.prices_calculated,
            is_open=week.transfer_window_open,
        ))
        previous = week
    return statuses
