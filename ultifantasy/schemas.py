"""Pydantic schemas for JSON data validation."""

from datetime import date, datetime

from pydantic import BaseModel, Field, field_validator

from .models import Position


class SeasonRecord(BaseModel):
    id: str = Field(..., min_length=1)
    name: str
    start_date: date | None = None
    end_date: date | None = None
    is_active: bool = False

    class Config:
        extra = 'forbid'


class WeekRecord(BaseModel):
    id: str = Field(..., min_length=1)
    season_id: str
    week_number: int = Field(..., ge=1)
    name: str | None = None
    game_date: date | None = None
    end_date: date | None = None
    is_draft_week: bool = False
    transfer_window_open: bool = False
    transfer_cutoff_time: datetime | None = None
    transfer_window_closed_at: datetime | None = None
    prices_calculated: bool = False

    class Config:
        extra = 'forbid'


class TeamRecord(BaseModel):
    id: str = Field(..., min_length=1)
    name: str

    class Config:
        extra = 'forbid'


class PlayerRecord(BaseModel):
    id: str = Field(..., min_length=1)
    first_name: str
    last_name: str
    position: Position | None = None
    starting_value: float = Field(default=0.0, ge=0)
    team_id: str | None = None
    is_active: bool = True

    class Config:
        extra = 'forbid'


class SeasonPlayerRecord(BaseModel):
    id: str = Field(..., min_length=1)
    season_id: str
    player_id: str
    starting_value: float = Field(..., ge=0)
    team_id: str | None = None
    is_active: bool = True

    class Config:
        extra = 'forbid'


class GameRecord(BaseModel):
    id: str = Field(..., min_length=1)
    week_id: str
    home_team_id: str | None = None
    away_team_id: str | None = None
    is_completed: bool = False

    class Config:
        extra = 'forbid'


class PlayerStatsRecord(BaseModel):
    id: str = Field(..., min_length=1)
    player_id: str
    game_id: str
    goals: int = Field(default=0, ge=0)
    assists: int = Field(default=0, ge=0)
    blocks: int = Field(default=0, ge=0)
    drops: int = Field(default=0, ge=0)
    throwaways: int = Field(default=0, ge=0)
    points: float = 0.0
    played: bool = False

    class Config:
        extra = 'forbid'


class ValueChangeRecord(BaseModel):
    id: str = Field(..., min_length=1)
    player_id: str
    round: int = Field(..., ge=1)
    value: float

    class Config:
        extra = 'forbid'


class FantasyTeamRecord(BaseModel):
    id: str = Field(..., min_length=1)
    owner_id: str
    season_id: str
    name: str
    total_value: float = 0.0
    original_value: float = 0.0

    class Config:
        extra = 'forbid'


class SnapshotRecord(BaseModel):
    id: str = Field(..., min_length=1)
    fantasy_team_id: str
    week_id: str
    captain_player_id: str | None = None
    total_value: float = 0.0
    budget_remaining: float | None = None
    created_at: datetime | None = None

    class Config:
        extra = 'forbid'


class SnapshotPlayerRecord(BaseModel):
    id: str = Field(..., min_length=1)
    snapshot_id: str
    player_id: str
    position: Position
    is_benched: bool = False
    is_captain: bool = False
    player_value_at_snapshot: float = 0.0

    class Config:
        extra = 'forbid'


class ScoreRecord(BaseModel):
    id: str = Field(..., min_length=1)
    fantasy_team_id: str
    week_id: str
    total_points: float = 0.0
    captain_points: float = 0.0
    calculated_at: datetime | None = None

    class Config:
        extra = 'forbid'


class StoreFile(BaseModel):
    """Complete store.json file structure (one list per table)."""

    seasons: list[SeasonRecord] = Field(default_factory=list)
    weeks: list[WeekRecord] = Field(default_factory=list)
    teams: list[TeamRecord] = Field(default_factory=list)
    players: list[PlayerRecord] = Field(default_factory=list)
    season_players: list[SeasonPlayerRecord] = Field(default_factory=list)
    games: list[GameRecord] = Field(default_factory=list)
    player_stats: list[PlayerStatsRecord] = Field(default_factory=list)
    value_changes: list[ValueChangeRecord] = Field(default_factory=list)
    fantasy_teams: list[FantasyTeamRecord] = Field(default_factory=list)
    fantasy_team_snapshots: list[SnapshotRecord] = Field(default_factory=list)
    fantasy_team_snapshot_players: list[SnapshotPlayerRecord] = Field(default_factory=list)
    fantasy_team_scores: list[ScoreRecord] = Field(default_factory=list)

    class Config:
        extra = 'forbid'


class LeagueConfig(BaseModel):
    """League configuration settings."""

    salary_cap: float = Field(default=550.0, gt=0)
    max_transfers_per_week: int = Field(default=2, ge=0, le=10)
    price_multiplier: float = Field(default=10.0, gt=0)
    price_damping: float = Field(default=4.0, gt=0)
    transfer_window_bypass_users: list[str] = Field(default_factory=list)

    @field_validator('transfer_window_bypass_users')
    @classmethod
    def validate_user_ids(cls, v):
        """Ensure bypass user ids are non-empty."""
        for user_id in v:
            if not user_id or not user_id.strip():
                raise ValueError('Bypass user ids must be non-empty')
        return v

    class Config:
        extra = 'forbid'
