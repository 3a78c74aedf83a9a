"""Data models for the ultimate fantasy league engine."""

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Optional


class Position(str, Enum):
    """Fantasy position of a player."""

    HANDLER = 'handler'
    CUTTER = 'cutter'
    RECEIVER = 'receiver'


class TransferWindowState(str, Enum):
    """Display state of a week's transfer window."""

    UPCOMING = 'upcoming'
    READY = 'ready'
    OPEN = 'open'
    COMPLETED = 'completed'


# ---------------------------------------------------------------------------
# Stored entities
# ---------------------------------------------------------------------------


@dataclass
class Season:
    id: str
    name: str
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    is_active: bool = False


@dataclass
class Week:
    id: str
    season_id: str
    week_number: int
    name: Optional[str] = None
    game_date: Optional[date] = None
    end_date: Optional[date] = None
    is_draft_week: bool = False
    transfer_window_open: bool = False
    transfer_cutoff_time: Optional[datetime] = None
    transfer_window_closed_at: Optional[datetime] = None
    prices_calculated: bool = False


@dataclass
class Team:
    """A real club in the league."""
    id: str
    name: str


@dataclass
class Player:
    id: str
    first_name: str
    last_name: str
    position: Optional[Position] = None
    starting_value: float = 0.0
    team_id: Optional[str] = None
    is_active: bool = True

    @property
    def full_name(self) -> str:
        return f'{self.first_name} {self.last_name}'.strip()


@dataclass
class SeasonPlayer:
    """A player's registration for one season."""
    id: str
    season_id: str
    player_id: str
    starting_value: float
    team_id: Optional[str] = None
    is_active: bool = True


@dataclass
class Game:
    id: str
    week_id: str
    home_team_id: Optional[str] = None
    away_team_id: Optional[str] = None
    is_completed: bool = False


@dataclass
class PlayerStats:
    """Per-player, per-game performance."""
    id: str
    player_id: str
    game_id: str
    goals: int = 0
    assists: int = 0
    blocks: int = 0
    drops: int = 0
    throwaways: int = 0
    points: float = 0.0
    played: bool = False


@dataclass
class ValueChange:
    """A player's market value for a round (week number)."""
    id: str
    player_id: str
    round: int
    value: float


@dataclass
class FantasyTeam:
    id: str
    owner_id: str
    season_id: str
    name: str
    total_value: float = 0.0
    original_value: float = 0.0


@dataclass
class FantasyTeamSnapshot:
    """Immutable record of a fantasy team's roster for one week."""
    id: str
    fantasy_team_id: str
    week_id: str
    captain_player_id: Optional[str] = None
    total_value: float = 0.0
    budget_remaining: Optional[float] = None
    created_at: Optional[datetime] = None


@dataclass
class FantasyTeamSnapshotPlayer:
    """One roster slot within a snapshot."""
    id: str
    snapshot_id: str
    player_id: str
    position: Position
    is_benched: bool = False
    is_captain: bool = False
    player_value_at_snapshot: float = 0.0


@dataclass
class FantasyTeamScore:
    id: str
    fantasy_team_id: str
    week_id: str
    total_points: float = 0.0
    captain_points: float = 0.0
    calculated_at: Optional[datetime] = None


# ---------------------------------------------------------------------------
# Engine inputs and results
# ---------------------------------------------------------------------------


@dataclass
class RosterSlot:
    """A requested roster slot when building a snapshot."""
    player_id: str
    position: Position
    is_benched: bool = False
    is_captain: bool = False


@dataclass
class SnapshotWithPlayers:
    snapshot: FantasyTeamSnapshot
    players: list[FantasyTeamSnapshotPlayer] = field(default_factory=list)

    @property
    def player_ids(self) -> list[str]:
        return [p.player_id for p in self.players]


@dataclass
class Substitution:
    """An auto-substitution applied while scoring a week."""
    player_out: str
    player_in: str
    game_id: str
    reason: str


@dataclass
class ScoreResult:
    """Container for a team's weekly score breakdown."""
    total_points: float = 0.0
    captain_points: float = 0.0
    substitutions: list[Substitution] = field(default_factory=list)
    player_points: dict[str, float] = field(default_factory=dict)

    @property
    def final_points(self) -> float:
        return self.total_points + self.captain_points


@dataclass
class Transfer:
    """A player swap; either side may be empty for an unpaired change."""
    player_in_id: str = ''
    player_out_id: str = ''
    position: Optional[Position] = None


@dataclass
class TransferDelta:
    player_in_id: str
    player_out_id: str
    player_in_value: float
    player_out_value: float
    delta: float  # out - in, positive means the budget grows


@dataclass
class BudgetResult:
    budget: float
    team_value: float = 0.0
    transfer_deltas: list[TransferDelta] = field(default_factory=list)
    is_valid: bool = True
    error: Optional[str] = None

    @property
    def deficit(self) -> float:
        return -self.budget if self.budget < 0 else 0.0


@dataclass
class PlayerWeekPrice:
    points: float
    played: bool
    price: float


@dataclass
class PlayerPriceRow:
    player_id: str
    player_name: str
    team_name: Optional[str]
    starting_price: float
    week_data: dict[int, PlayerWeekPrice] = field(default_factory=dict)
    # week_data[week_number] = price at the start of that week


@dataclass
class PriceTable:
    players: list[PlayerPriceRow] = field(default_factory=list)
    weeks: list[Week] = field(default_factory=list)


@dataclass
class PlayerPrice:
    """Latest market value of a player with the change since the previous round."""
    player_id: str
    player_name: str
    team_name: Optional[str]
    current_value: float
    previous_value: Optional[float] = None

    @property
    def change(self) -> Optional[float]:
        if self.previous_value is None:
            return None
        return round(self.current_value - self.previous_value, 2)


@dataclass
class TransferPermission:
    allowed: bool
    reason: Optional[str] = None


@dataclass
class TransferWindowStatus:
    week_id: str
    week_number: int
    state: TransferWindowState
    prices_available: bool
    prices_calculated: bool
    is_open: bool


@dataclass
class SavedRoster:
    """Outcome of saving a team's roster for a week."""
    snapshot: SnapshotWithPlayers
    budget: BudgetResult
    transfers: list[Transfer] = field(default_factory=list)
    is_first_week: bool = False


@dataclass
class StatsUpdatePreview:
    """Rounds and windows touched by changing stats for one week."""
    week_number: int
    affected_rounds: list[int] = field(default_factory=list)
    affected_windows: list[int] = field(default_factory=list)
    open_window_week: Optional[int] = None

    @property
    def requires_confirmation(self) -> bool:
        return bool(self.affected_windows)


@dataclass
class PriceRecalculation:
    saved: int = 0
    rounds_updated: list[int] = field(default_factory=list)


@dataclass
class StatsCorrection:
    """What a retroactive stats correction recalculated."""
    stats: PlayerStats
    prices: Optional[PriceRecalculation] = None
    scores_recalculated: int = 0
