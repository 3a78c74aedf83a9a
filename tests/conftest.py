"""Shared fixtures: a small in-memory league."""

import pytest

from ultifantasy.config import clear_config_cache
from ultifantasy.models import Position, RosterSlot
from ultifantasy.store import InMemoryStore

H, C, R = Position.HANDLER, Position.CUTTER, Position.RECEIVER

# player id -> (position, starting value)
PLAYERS = {
    'h1': (H, 60.0),
    'h2': (H, 55.0),
    'h3': (H, 50.0),
    'h4': (H, 40.0),
    'h5': (H, 45.0),
    'c1': (C, 60.0),
    'c2': (C, 50.0),
    'c3': (C, 40.0),
    'c4': (C, 45.0),
    'r1': (R, 55.0),
    'r2': (R, 50.0),
    'r3': (R, 40.0),
    'r4': (R, 70.0),
}

# Values of the default lineup summing to exactly 550.00, which binary
# floating point does not
EXACT_CAP_VALUES = {
    'h1': 44.5,
    'h2': 45.11,
    'h3': 69.99,
    'h4': 35.9,
    'c1': 62.18,
    'c2': 32.28,
    'c3': 39.55,
    'r1': 60.16,
    'r2': 46.3,
    'r3': 114.03,
}


@pytest.fixture(autouse=True)
def reset_config(monkeypatch):
    """Every test starts from the default league config."""
    monkeypatch.delenv('ULTIFANTASY_CONFIG', raising=False)
    clear_config_cache()
    yield
    clear_config_cache()


@pytest.fixture
def store():
    """Season s1 with four weeks (one game each), 13 players and one fantasy team."""
    store = InMemoryStore()
    store.seasons.create(id='s1', name='2026', is_active=True)
    store.teams.create(id='t1', name='Sky')
    store.teams.create(id='t2', name='Wind')

    for number in range(1, 5):
        store.weeks.create(id=f'w{number}', season_id='s1', week_number=number, name=f'Week {number}')
        store.games.create(id=f'g{number}', week_id=f'w{number}', home_team_id='t1', away_team_id='t2')

    for i, (player_id, (position, value)) in enumerate(PLAYERS.items()):
        team_id = 't1' if i % 2 == 0 else 't2'
        store.players.create(
            id=player_id,
            first_name=player_id.upper(),
            last_name='Player',
            position=position,
            starting_value=value,
            team_id=team_id,
        )
        store.season_players.create(
            id=f'sp-{player_id}',
            season_id='s1',
            player_id=player_id,
            starting_value=value,
            team_id=team_id,
        )

    store.fantasy_teams.create(id='ft1', owner_id='u1', season_id='s1', name='Layout Kings')
    return store


@pytest.fixture
def exact_cap_store(store):
    """The default league with the default lineup priced at exactly the salary cap."""
    for player_id, value in EXACT_CAP_VALUES.items():
        store.season_players.update(f'sp-{player_id}', starting_value=value)
    return store


def make_lineup(
    starters=('h1', 'h2', 'h3', 'c1', 'c2', 'r1', 'r2'),
    bench=('h4', 'c3', 'r3'),
    captain='h1',
):
    """Build roster slots, taking each player's position from PLAYERS."""
    slots = [RosterSlot(pid, PLAYERS[pid][0], False, pid == captain) for pid in starters]
    slots += [RosterSlot(pid, PLAYERS[pid][0], True, pid == captain) for pid in bench]
    return slots


@pytest.fixture
def lineup():
    return make_lineup()


@pytest.fixture
def build_lineup():
    return make_lineup
