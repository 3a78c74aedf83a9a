"""Unit tests for the store adapters."""

import json
from datetime import datetime, timezone

import pytest

from ultifantasy.errors import PersistenceFailure
from ultifantasy.models import Position
from ultifantasy.store import InMemoryStore, JsonFileStore


class TestRepository:
    """Tests for the generic repository contract."""

    def test_create_generates_id(self):
        """Test rows created without an id get one."""
        store = InMemoryStore()
        team = store.teams.create(name='Sky')
        assert team.id
        assert store.teams.find_by_id(team.id).name == 'Sky'

    def test_reads_return_copies(self):
        """Test mutating a read row does not change the store."""
        store = InMemoryStore()
        store.teams.create(id='t1', name='Sky')
        fetched = store.teams.find_by_id('t1')
        fetched.name = 'Changed'
        assert store.teams.find_by_id('t1').name == 'Sky'

    def test_find_all_filters(self):
        """Test find_all matches every filter."""
        store = InMemoryStore()
        store.weeks.create(id='a', season_id='s1', week_number=1)
        store.weeks.create(id='b', season_id='s2', week_number=1)
        assert [w.id for w in store.weeks.find_all(season_id='s1')] == ['a']
        assert len(store.weeks.find_all()) == 2

    def test_create_many(self):
        """Test a batch create adds every row."""
        store = InMemoryStore()
        created = store.teams.create_many([{'name': 'Sky'}, {'name': 'Wind'}])
        assert len(created) == 2
        assert len(store.teams) == 2

    def test_duplicate_id(self):
        """Test a duplicate id is a persistence failure."""
        store = InMemoryStore()
        store.teams.create(id='t1', name='Sky')
        with pytest.raises(PersistenceFailure):
            store.teams.create(id='t1', name='Again')

    def test_unknown_field(self):
        """Test unknown fields are a persistence failure."""
        store = InMemoryStore()
        with pytest.raises(PersistenceFailure):
            store.teams.create(name='Sky', colour='blue')

    def test_update(self):
        """Test update returns the changed row."""
        store = InMemoryStore()
        store.teams.create(id='t1', name='Sky')
        assert store.teams.update('t1', name='Sky II').name == 'Sky II'

    def test_update_missing(self):
        """Test updating a missing row fails."""
        with pytest.raises(PersistenceFailure):
            InMemoryStore().teams.update('nope', name='x')

    def test_delete(self):
        """Test deleted rows are gone and cannot be deleted twice."""
        store = InMemoryStore()
        store.teams.create(id='t1', name='Sky')
        store.teams.delete('t1')
        assert store.teams.find_by_id('t1') is None
        with pytest.raises(PersistenceFailure):
            store.teams.delete('t1')


class TestEntityLookups:
    """Tests for entity-specific lookups."""

    def test_weeks_ordered_by_number(self, store):
        """Test season weeks come back in week order."""
        store.weeks.create(id='w0', season_id='s1', week_number=0)
        assert [w.week_number for w in store.weeks.find_by_season('s1')] == [0, 1, 2, 3, 4]

    def test_find_active_season(self, store):
        assert store.seasons.find_active().id == 's1'

    def test_value_changes_by_player_sorted(self, store):
        """Test value changes come back in round order."""
        store.value_changes.create(player_id='h1', round=3, value=70.0)
        store.value_changes.create(player_id='h1', round=2, value=65.0)
        assert [vc.round for vc in store.value_changes.find_by_player('h1')] == [2, 3]
        assert store.value_changes.get_current_round() == 3
        assert store.value_changes.get_current_round(['h2']) is None

    def test_captain_and_starting_lineup(self, store, lineup):
        """Test captain and starting lineup lookups."""
        from ultifantasy.snapshots import create_snapshot

        snapshot = create_snapshot(store, 'ft1', 'w1', lineup).snapshot
        assert store.snapshot_players.find_captain(snapshot.id).player_id == 'h1'
        assert len(store.snapshot_players.find_starting_lineup(snapshot.id)) == 7


class TestJsonFileStore:
    """Tests for the JSON file adapter."""

    def test_round_trip(self, tmp_path):
        """Test every table survives a save and reload."""
        path = tmp_path / 'store.json'
        store = JsonFileStore(path)
        store.seasons.create(id='s1', name='2026', is_active=True)
        store.weeks.create(
            id='w1',
            season_id='s1',
            week_number=1,
            transfer_cutoff_time=datetime(2026, 5, 1, 12, 0, tzinfo=timezone.utc),
        )
        store.players.create(id='h1', first_name='Ada', last_name='Hucks', position=Position.HANDLER)

        reloaded = JsonFileStore(path)
        assert reloaded.seasons.find_active().name == '2026'
        assert reloaded.weeks.find_by_id('w1').transfer_cutoff_time == datetime(2026, 5, 1, 12, 0, tzinfo=timezone.utc)
        assert reloaded.players.find_by_id('h1').position is Position.HANDLER

        data = json.loads(path.read_text())
        assert data['players'][0]['position'] == 'handler'

    def test_missing_file_starts_empty(self, tmp_path):
        """Test a missing file gives an empty store without writing."""
        store = JsonFileStore(tmp_path / 'new.json')
        assert len(store.seasons) == 0
        assert not (tmp_path / 'new.json').exists()

    def test_invalid_file(self, tmp_path):
        """Test a file failing schema validation is a persistence failure."""
        path = tmp_path / 'store.json'
        path.write_text(json.dumps({'seasons': [{'id': 's1'}]}))
        with pytest.raises(PersistenceFailure):
            JsonFileStore(path)

    def test_manual_flush(self, tmp_path):
        """Test nothing is written until flush when autosave is off."""
        path = tmp_path / 'store.json'
        store = JsonFileStore(path, autosave=False)
        store.teams.create(id='t1', name='Sky')
        assert not path.exists()
        store.flush()
        assert JsonFileStore(path).teams.find_by_id('t1').name == 'Sky'
