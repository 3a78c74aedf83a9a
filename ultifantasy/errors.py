"""Structured errors raised by the engine.

Every error carries a stable ``code`` plus enough detail (entity, id,
constraint) for a caller to render a specific message. Callers should surface
``ValidationFailed`` and ``InvariantViolation`` as actionable messages and
treat ``PersistenceFailure`` as retryable.
"""

from typing import Any, Optional


class EngineError(Exception):
    """Base class for engine errors."""

    code = 'ENGINE_ERROR'

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        return f'{self.code}: {self.message}'


class NotFound(EngineError):
    """A season, week, team, player or snapshot is absent."""

    code = 'NOT_FOUND'

    def __init__(self, entity: str, entity_id: Any, message: Optional[str] = None):
        super().__init__(
            message or f'{entity} not found: {entity_id}',
            {'entity': entity, 'id': entity_id},
        )
        self.entity = entity
        self.entity_id = entity_id


class SnapshotNotFound(NotFound):
    code = 'SNAPSHOT_NOT_FOUND'

    def __init__(self, fantasy_team_id: str, week_id: str):
        super().__init__(
            'snapshot',
            f'{fantasy_team_id}/{week_id}',
            f'No snapshot found for fantasy team {fantasy_team_id} and week {week_id}',
        )
        self.fantasy_team_id = fantasy_team_id
        self.week_id = week_id


class ValidationFailed(EngineError):
    """Lineup composition, position or roster entry is invalid."""

    code = 'VALIDATION_FAILED'

    def __init__(self, errors: list[str], details: Optional[dict[str, Any]] = None):
        super().__init__(f'Invalid lineup: {", ".join(errors)}', details)
        self.errors = list(errors)


class InvalidPosition(ValidationFailed):
    code = 'INVALID_POSITION'

    def __init__(self, value: Any, player_id: Optional[str] = None):
        msg = f'Invalid position: {value!r}'
        if player_id:
            msg += f' (player {player_id})'
        super().__init__([msg], {'position': value, 'player_id': player_id})
        self.value = value
        self.player_id = player_id


class InvariantViolation(EngineError):
    """A league rule would be broken (second open window, negative budget, ...)."""

    code = 'INVARIANT_VIOLATION'

    def __init__(self, constraint: str, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(message, {'constraint': constraint, **(details or {})})
        self.constraint = constraint


class PreconditionNotMet(EngineError):
    """An operation was attempted before the data it depends on exists."""

    code = 'PRECONDITION_NOT_MET'


class PersistenceFailure(EngineError):
    """The store adapter failed; safe to retry from scratch."""

    code = 'PERSISTENCE_FAILURE'
