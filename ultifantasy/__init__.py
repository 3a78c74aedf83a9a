from .models import (
    Position,
    RosterSlot,
    ScoreResult,
    Substitution,
    Transfer,
    TransferWindowState,
)
from .errors import (
    EngineError,
    InvalidPosition,
    InvariantViolation,
    NotFound,
    PersistenceFailure,
    PreconditionNotMet,
    SnapshotNotFound,
    ValidationFailed,
)
from .store import InMemoryStore, JsonFileStore
from .scoring import calculate_stat_points, score_player_stats
from .pricing import (
    calculate_from_window,
    calculate_new_price,
    calculate_price_progression,
    calculate_price_table,
    finalize_week_prices,
    get_current_player_prices,
    get_player_points_by_week,
    preview_stats_update,
    save_calculated_prices,
)
from .windows import (
    can_make_transfer,
    check_can_open,
    close_window,
    derive_window_state,
    find_open_window_conflict,
    get_transfer_window_statuses,
    has_open_window,
    open_window,
)
from .budget import (
    calculate_budget_after_transfers,
    calculate_initial_budget,
    calculate_team_value,
    validate_budget,
    validate_transfer_count,
)
from .snapshots import (
    check_lineup,
    create_snapshot,
    delete_snapshot,
    get_most_recent_snapshot_before_week,
    parse_position,
    replace_snapshot,
    validate_lineup,
)
from .transfers import compute_transfers, get_remaining_transfers, save_roster_for_week
from .scorer import (
    apply_auto_substitution,
    calculate_and_save_week_score,
    calculate_week_score,
    get_leaderboard,
    recalculate_all_subsequent_weeks,
    recalculate_season_from_week,
)
from .stats import correct_player_stats, record_player_stats

__all__ = [
    # Models
    'Position',
    'RosterSlot',
    'ScoreResult',
    'Substitution',
    'Transfer',
    'TransferWindowState',
    # Errors
    'EngineError',
    'InvalidPosition',
    'InvariantViolation',
    'NotFound',
    'PersistenceFailure',
    'PreconditionNotMet',
    'SnapshotNotFound',
    'ValidationFailed',
    # Stores
    'InMemoryStore',
    'JsonFileStore',
    # Stat scoring
    'calculate_stat_points',
    'score_player_stats',
    # Pricing
    'calculate_from_window',
    'calculate_new_price',
    'calculate_price_progression',
    'calculate_price_table',
    'finalize_week_prices',
    'get_current_player_prices',
    'get_player_points_by_week',
    'preview_stats_update',
    'save_calculated_prices',
    # Transfer windows
    'can_make_transfer',
    'check_can_open',
    'close_window',
    'derive_window_state',
    'find_open_window_conflict',
    'get_transfer_window_statuses',
    'has_open_window',
    'open_window',
    # Budget and transfers
    'calculate_budget_after_transfers',
    'calculate_initial_budget',
    'calculate_team_value',
    'validate_budget',
    'validate_transfer_count',
    'compute_transfers',
    'get_remaining_transfers',
    'save_roster_for_week',
    # Snapshots
    'check_lineup',
    'create_snapshot',
    'delete_snapshot',
    'get_most_recent_snapshot_before_week',
    'parse_position',
    'replace_snapshot',
    'validate_lineup',
    # Team scoring
    'apply_auto_substitution',
    'calculate_and_save_week_score',
    'calculate_week_score',
    'get_leaderboard',
    'recalculate_all_subsequent_weeks',
    'recalculate_season_from_week',
    # Stats
    'correct_player_stats',
    'record_player_stats',
]
