"""Constants and lineup quotas for the fantasy engine."""

from .models import Position

# Starting lineup per position
STARTING_SLOTS = {
    Position.HANDLER: 3,
    Position.CUTTER: 2,
    Position.RECEIVER: 2,
}

# Bench per position
BENCH_SLOTS = {
    Position.HANDLER: 1,
    Position.CUTTER: 1,
    Position.RECEIVER: 1,
}

STARTING_SIZE = sum(STARTING_SLOTS.values())
BENCH_SIZE = sum(BENCH_SLOTS.values())
ROSTER_SIZE = STARTING_SIZE + BENCH_SIZE

# Order used when pairing transfers and printing lineups
POSITION_ORDER = [Position.HANDLER, Position.CUTTER, Position.RECEIVER]

# Points per stat line
STAT_POINTS = {
    'goals': 1,
    'assists': 2,
    'blocks': 3,
    'drops': -1,
    'throwaways': -1,
}

CAPTAIN_MULTIPLIER = 2
