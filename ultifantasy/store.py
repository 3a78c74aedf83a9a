"""Value store adapters.

The engine talks to storage only through these repositories: per-entity
``find_by_id``, ``find_all``, ``create``, ``create_many``, ``update`` and
``delete`` plus a handful of entity-specific lookups. Reads return copies, so
callers never share entity state across calls.

Two adapters ship: ``InMemoryStore`` (tests, embedding) and ``JsonFileStore``,
which keeps every table in one JSON document validated by ``StoreFile``.
Neither provides multi-statement atomicity; hosts that need it must wrap
engine calls in their own lock or transaction.
"""

import dataclasses
import uuid
from pathlib import Path
from typing import Any, Callable, Generic, Iterable, Optional, TypeVar

from .errors import PersistenceFailure
from .logging_config import get_logger
from .models import (
    FantasyTeam,
    FantasyTeamScore,
    FantasyTeamSnapshot,
    FantasyTeamSnapshotPlayer,
    Game,
    Player,
    PlayerStats,
    Season,
    SeasonPlayer,
    Team,
    ValueChange,
    Week,
)
from .schemas import StoreFile
from .utils import load_json, save_json

E = TypeVar('E')
logger = get_logger('store')


def new_id() -> str:
    return uuid.uuid4().hex


class Repository(Generic[E]):
    """In-memory table of dataclass entities keyed by id."""

    def __init__(self, table: str, entity_type: type[E], on_change: Optional[Callable[[], None]] = None):
        self.table = table
        self.entity_type = entity_type
        self._rows: dict[str, E] = {}
        self._on_change = on_change

    def __len__(self) -> int:
        return len(self._rows)

    def _changed(self) -> None:
        if self._on_change is not None:
            self._on_change()

    def load(self, entities: Iterable[E]) -> None:
        """Replace the table contents without triggering a save."""
        self._rows = {e.id: e for e in entities}  # type: ignore[attr-defined]

    def rows(self) -> list[E]:
        return [dataclasses.replace(e) for e in self._rows.values()]  # type: ignore[type-var]

    def find_by_id(self, entity_id: str) -> Optional[E]:
        entity = self._rows.get(entity_id)
        return dataclasses.replace(entity) if entity is not None else None  # type: ignore[type-var]

    def find_all(self, **filters: Any) -> list[E]:
        """Return entities whose attributes equal every given filter value."""
        return [
            dataclasses.replace(e)  # type: ignore[type-var]
            for e in self._rows.values()
            if all(getattr(e, k) == v for k, v in filters.items())
        ]

    def find_where(self, predicate: Callable[[E], bool]) -> list[E]:
        return [dataclasses.replace(e) for e in self._rows.values() if predicate(e)]  # type: ignore[type-var]

    def _build(self, fields: dict[str, Any]) -> E:
        fields = dict(fields)
        fields.setdefault('id', new_id())
        if fields['id'] in self._rows:
            raise PersistenceFailure(
                f'Duplicate {self.table} id: {fields["id"]}',
                {'table': self.table, 'id': fields['id']},
            )
        try:
            return self.entity_type(**fields)
        except TypeError as e:
            raise PersistenceFailure(
                f'Invalid {self.table} row: {e}', {'table': self.table}
            ) from e

    def create(self, **fields: Any) -> E:
        entity = self._build(fields)
        self._rows[entity.id] = entity  # type: ignore[attr-defined]
        logger.debug(f'Created {self.table} {entity.id}')  # type: ignore[attr-defined]
        self._changed()
        return dataclasses.replace(entity)  # type: ignore[type-var]

    def create_many(self, rows: list[dict[str, Any]]) -> list[E]:
        entities = [self._build(fields) for fields in rows]
        ids = [e.id for e in entities]  # type: ignore[attr-defined]
        if len(set(ids)) != len(ids):
            raise PersistenceFailure(f'Duplicate ids in {self.table} batch', {'table': self.table})
        for entity in entities:
            self._rows[entity.id] = entity  # type: ignore[attr-defined]
        logger.debug(f'Created {len(entities)} {self.table} rows')
        self._changed()
        return [dataclasses.replace(e) for e in entities]  # type: ignore[type-var]

    def update(self, entity_id: str, **changes: Any) -> E:
        existing = self._rows.get(entity_id)
        if existing is None:
            raise PersistenceFailure(
                f'Cannot update missing {self.table} row {entity_id}',
                {'table': self.table, 'id': entity_id},
            )
        changes.pop('id', None)
        try:
            updated = dataclasses.replace(existing, **changes)  # type: ignore[type-var]
        except TypeError as e:
            raise PersistenceFailure(
                f'Invalid {self.table} update: {e}', {'table': self.table, 'id': entity_id}
            ) from e
        self._rows[entity_id] = updated
        self._changed()
        return dataclasses.replace(updated)

    def delete(self, entity_id: str) -> None:
        if entity_id not in self._rows:
            raise PersistenceFailure(
                f'Cannot delete missing {self.table} row {entity_id}',
                {'table': self.table, 'id': entity_id},
            )
        del self._rows[entity_id]
        logger.debug(f'Deleted {self.table} {entity_id}')
        self._changed()


class SeasonRepository(Repository[Season]):
    def find_active(self) -> Optional[Season]:
        active = self.find_all(is_active=True)
        return active[0] if active else None


class WeekRepository(Repository[Week]):
    def find_by_season(self, season_id: str) -> list[Week]:
        """Weeks of a season ordered by week number."""
        return sorted(self.find_all(season_id=season_id), key=lambda w: w.week_number)

    def find_by_season_and_number(self, season_id: str, week_number: int) -> Optional[Week]:
        found = self.find_all(season_id=season_id, week_number=week_number)
        return found[0] if found else None

    def find_open_windows_for_season(self, season_id: str) -> list[Week]:
        return sorted(
            self.find_all(season_id=season_id, transfer_window_open=True),
            key=lambda w: w.week_number,
        )


class SeasonPlayerRepository(Repository[SeasonPlayer]):
    def find_by_season(self, season_id: str) -> list[SeasonPlayer]:
        return self.find_all(season_id=season_id)

    def find_by_season_and_player(self, season_id: str, player_id: str) -> Optional[SeasonPlayer]:
        found = self.find_all(season_id=season_id, player_id=player_id)
        return found[0] if found else None


class GameRepository(Repository[Game]):
    def find_by_week(self, week_id: str) -> list[Game]:
        return self.find_all(week_id=week_id)


class PlayerStatsRepository(Repository[PlayerStats]):
    def find_by_player_and_game(self, player_id: str, game_id: str) -> Optional[PlayerStats]:
        found = self.find_all(player_id=player_id, game_id=game_id)
        return found[0] if found else None

    def find_by_games(self, game_ids: Iterable[str]) -> list[PlayerStats]:
        wanted = set(game_ids)
        return self.find_where(lambda s: s.game_id in wanted)


class ValueChangeRepository(Repository[ValueChange]):
    def find_by_player(self, player_id: str) -> list[ValueChange]:
        return sorted(self.find_all(player_id=player_id), key=lambda vc: vc.round)

    def find_by_player_and_round(self, player_id: str, round_number: int) -> Optional[ValueChange]:
        found = self.find_all(player_id=player_id, round=round_number)
        return found[0] if found else None

    def find_by_round(self, round_number: int) -> list[ValueChange]:
        return self.find_all(round=round_number)

    def get_current_round(self, player_ids: Optional[Iterable[str]] = None) -> Optional[int]:
        """Highest priced round, optionally restricted to some players."""
        wanted = set(player_ids) if player_ids is not None else None
        rounds = [
            vc.round
            for vc in self._rows.values()
            if wanted is None or vc.player_id in wanted
        ]
        return max(rounds) if rounds else None


class FantasyTeamRepository(Repository[FantasyTeam]):
    def find_by_season(self, season_id: str) -> list[FantasyTeam]:
        return self.find_all(season_id=season_id)


class SnapshotRepository(Repository[FantasyTeamSnapshot]):
    def find_by_fantasy_team(self, fantasy_team_id: str) -> list[FantasyTeamSnapshot]:
        return self.find_all(fantasy_team_id=fantasy_team_id)

    def find_by_fantasy_team_and_week(
        self, fantasy_team_id: str, week_id: str
    ) -> Optional[FantasyTeamSnapshot]:
        found = self.find_all(fantasy_team_id=fantasy_team_id, week_id=week_id)
        return found[0] if found else None


class SnapshotPlayerRepository(Repository[FantasyTeamSnapshotPlayer]):
    def find_by_snapshot(self, snapshot_id: str) -> list[FantasyTeamSnapshotPlayer]:
        return self.find_all(snapshot_id=snapshot_id)

    def find_starting_lineup(self, snapshot_id: str) -> list[FantasyTeamSnapshotPlayer]:
        return self.find_all(snapshot_id=snapshot_id, is_benched=False)

    def find_captain(self, snapshot_id: str) -> Optional[FantasyTeamSnapshotPlayer]:
        found = self.find_all(snapshot_id=snapshot_id, is_captain=True)
        return found[0] if found else None


class ScoreRepository(Repository[FantasyTeamScore]):
    def find_by_fantasy_team_and_week(
        self, fantasy_team_id: str, week_id: str
    ) -> Optional[FantasyTeamScore]:
        found = self.find_all(fantasy_team_id=fantasy_team_id, week_id=week_id)
        return found[0] if found else None

    def find_by_fantasy_team(self, fantasy_team_id: str) -> list[FantasyTeamScore]:
        return self.find_all(fantasy_team_id=fantasy_team_id)


class InMemoryStore:
    """All repositories the engine needs, held in process memory."""

    def __init__(self) -> None:
        hook = self._on_change
        self.seasons = SeasonRepository('seasons', Season, hook)
        self.weeks = WeekRepository('weeks', Week, hook)
        self.teams = Repository('teams', Team, hook)
        self.players = Repository('players', Player, hook)
        self.season_players = SeasonPlayerRepository('season_players', SeasonPlayer, hook)
        self.games = GameRepository('games', Game, hook)
        self.player_stats = PlayerStatsRepository('player_stats', PlayerStats, hook)
        self.value_changes = ValueChangeRepository('value_changes', ValueChange, hook)
        self.fantasy_teams = FantasyTeamRepository('fantasy_teams', FantasyTeam, hook)
        self.snapshots = SnapshotRepository('fantasy_team_snapshots', FantasyTeamSnapshot, hook)
        self.snapshot_players = SnapshotPlayerRepository(
            'fantasy_team_snapshot_players', FantasyTeamSnapshotPlayer, hook
        )
        self.scores = ScoreRepository('fantasy_team_scores', FantasyTeamScore, hook)

    def tables(self) -> dict[str, Repository]:
        return {
            repo.table: repo
            for repo in (
                self.seasons,
                self.weeks,
                self.teams,
                self.players,
                self.season_players,
                self.games,
                self.player_stats,
                self.value_changes,
                self.fantasy_teams,
                self.snapshots,
                self.snapshot_players,
                self.scores,
            )
        }

    def _on_change(self) -> None:
        pass


class JsonFileStore(InMemoryStore):
    """Store persisted as a single JSON document.

    Every mutation rewrites the file, so a crash leaves at most the last
    write missing.
    """

    def __init__(self, path: Path | str, autosave: bool = True):
        self.path = Path(path)
        self.autosave = autosave
        self._loading = True
        super().__init__()
        if self.path.exists():
            self._load()
        self._loading = False

    def _load(self) -> None:
        try:
            data: StoreFile = load_json(self.path, schema=StoreFile)
        except (ValueError, OSError) as e:
            raise PersistenceFailure(f'Failed to load store {self.path}: {e}', {'path': str(self.path)}) from e

        for table, repo in self.tables().items():
            records = getattr(data, table)
            repo.load(repo.entity_type(**record.model_dump()) for record in records)
        logger.info(f'Loaded store from {self.path}')

    def _on_change(self) -> None:
        if self._loading or not self.autosave:
            return
        self.flush()

    def flush(self) -> None:
        """Write every table to disk."""
        payload = {
            table: [dataclasses.asdict(row) for row in repo.rows()]
            for table, repo in self.tables().items()
        }
        try:
            save_json(self.path, StoreFile(**payload))
        except (OSError, TypeError, ValueError) as e:
            raise PersistenceFailure(f'Failed to save store {self.path}: {e}', {'path': str(self.path)}) from e
