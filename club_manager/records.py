"""Table descriptors and the mapping between store rows and API payloads.

Store columns are snake_case, API fields are camelCase. ``to_api`` and
``parse_body`` are the only places the two are translated.
"""

import re
from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional, Tuple

from club_manager.errors import BadRequest

_SNAKE = re.compile(r'_([a-z0-9])')
HIDDEN_COLUMNS = frozenset({'password'})


def camel_case(name):
    return _SNAKE.sub(lambda m: m.group(1).upper(), name)


def to_api(row):
    if row is None:
        return None
    return {camel_case(key): row[key] for key in row.keys() if key not in HIDDEN_COLUMNS}


def to_api_list(rows):
    return [to_api(row) for row in rows]


@dataclass(frozen=True)
class Field:
    name: str
    column: str
    kind: str = 'str'
    required: bool = False
    choices: Optional[Tuple[str, ...]] = None
    updatable: bool = True
    minimum: Optional[float] = None


@dataclass(frozen=True)
class Resource:
    table: str
    label: str
    columns: Tuple[str, ...]
    fields: Tuple[Field, ...]
    order_by: str = 'id'

    @property
    def select_sql(self):
        return f"SELECT {', '.join(self.columns)} FROM {self.table}"


def _coerce_int(field, value):
    if isinstance(value, bool):
        raise ValueError
    if isinstance(value, float) and not value.is_integer():
        raise ValueError
    return int(value)


def _coerce(field, value):
    if value is None:
        return None
    try:
        if field.kind == 'str':
            if not isinstance(value, str):
                raise ValueError
            value = value.strip()
        elif field.kind in ('int', 'id'):
            value = _coerce_int(field, value)
            if field.kind == 'id' and value <= 0:
                raise ValueError
        elif field.kind == 'float':
            if isinstance(value, bool):
                raise ValueError
            value = float(value)
        elif field.kind == 'date':
            value = date.fromisoformat(str(value)).isoformat()
        elif field.kind == 'datetime':
            value = datetime.fromisoformat(str(value)).isoformat(sep=' ')
        elif field.kind == 'choice':
            if value not in field.choices:
                raise BadRequest(f"{field.name} must be one of: {', '.join(field.choices)}")
    except (TypeError, ValueError):
        raise BadRequest(f'{field.name} must be a valid {_KIND_LABELS[field.kind]}')
    if field.minimum is not None and value < field.minimum:
        raise BadRequest(f'{field.name} must be at least {field.minimum:g}')
    return value


_KIND_LABELS = {
    'str': 'string',
    'int': 'integer',
    'id': 'identifier',
    'float': 'number',
    'date': 'date (YYYY-MM-DD)',
    'datetime': 'date and time (YYYY-MM-DD HH:MM:SS)',
    'choice': 'choice',
}


def _is_blank(value):
    return value is None or (isinstance(value, str) and not value.strip())


def parse_body(resource, data, partial=False, allow_empty=False):
    """Validate a JSON body against ``resource`` and return ``{column: value}``.

    With ``partial`` only fields present in the body are taken, and only those
    marked updatable; an update naming none of them is rejected.
    """
    if not isinstance(data, dict):
        raise BadRequest('Request body must be a JSON object')

    values = {}
    for field in resource.fields:
        if partial:
            if not field.updatable or field.name not in data:
                continue
            if field.required and _is_blank(data[field.name]):
                raise BadRequest(f'{field.name} cannot be empty')
        else:
            if field.required and _is_blank(data.get(field.name)):
                raise BadRequest(f'{field.name} is required')
            if field.name not in data:
                continue
        raw = data[field.name]
        if _is_blank(raw):
            raw = None
        values[field.column] = _coerce(field, raw)

    if partial and not values and not allow_empty:
        raise BadRequest('No valid fields provided for update')
    return values


def query_id(args, name):
    """Read an optional numeric identifier from the query string."""
    raw = args.get(name)
    if raw is None or raw == '':
        return None
    try:
        value = int(raw)
    except ValueError:
        raise BadRequest(f'{name} must be a valid identifier')
    if value <= 0:
        raise BadRequest(f'{name} must be a valid identifier')
    return value


_TIMESTAMPS = ('created_at', 'updated_at')

USERS = Resource(
    table='users',
    label='User',
    columns=('id', 'username', 'email', 'role', 'status') + _TIMESTAMPS,
    fields=(
        Field('username', 'username', required=True),
        Field('email', 'email', required=True),
        Field('password', 'password', required=True),
        Field('role', 'role', 'choice', required=True, choices=('player', 'coach', 'admin')),
        Field('status', 'status', 'choice', choices=('active', 'inactive', 'suspended')),
    ),
    order_by='id',
)

PLAYERS = Resource(
    table='players',
    label='Player',
    columns=('id', 'user_id', 'first_name', 'last_name', 'position', 'date_of_birth',
             'height', 'weight') + _TIMESTAMPS,
    fields=(
        Field('userId', 'user_id', 'id', required=True, updatable=False),
        Field('firstName', 'first_name', required=True),
        Field('lastName', 'last_name', required=True),
        Field('position', 'position'),
        Field('dateOfBirth', 'date_of_birth', 'date'),
        Field('height', 'height', 'float', minimum=0),
        Field('weight', 'weight', 'float', minimum=0),
    ),
    order_by='last_name, first_name',
)

COACHES = Resource(
    table='coaches',
    label='Coach',
    columns=('id', 'user_id', 'first_name', 'last_name', 'specialization', 'experience') + _TIMESTAMPS,
    fields=(
        Field('userId', 'user_id', 'id', required=True, updatable=False),
        Field('firstName', 'first_name', required=True),
        Field('lastName', 'last_name', required=True),
        Field('specialization', 'specialization'),
        Field('experience', 'experience', 'int', minimum=0),
    ),
    order_by='last_name, first_name',
)

GAMES = Resource(
    table='games',
    label='Game',
    columns=('id', 'name') + _TIMESTAMPS,
    fields=(
        Field('name', 'name', required=True),
    ),
    order_by='name',
)

BATCHES = Resource(
    table='batches',
    label='Batch',
    columns=('id', 'game_id', 'name', 'schedule', 'coach_id') + _TIMESTAMPS,
    fields=(
        Field('gameId', 'game_id', 'id', required=True),
        Field('name', 'name', required=True),
        Field('schedule', 'schedule', required=True),
        Field('coachId', 'coach_id', 'id'),
    ),
    order_by='id',
)

SESSIONS = Resource(
    table='training_sessions',
    label='Training session',
    columns=('id', 'batch_id', 'title', 'description', 'date', 'duration', 'location') + _TIMESTAMPS,
    fields=(
        Field('batchId', 'batch_id', 'id', required=True),
        Field('title', 'title'),
        Field('description', 'description'),
        Field('date', 'date', 'datetime', required=True),
        Field('duration', 'duration', 'int', required=True, minimum=1),
        Field('location', 'location', required=True),
    ),
    order_by='date ASC',
)

ATTENDANCE = Resource(
    table='session_attendance',
    label='Attendance record',
    columns=('id', 'session_id', 'player_id', 'status', 'comments') + _TIMESTAMPS,
    fields=(
        Field('sessionId', 'session_id', 'id', required=True, updatable=False),
        Field('playerId', 'player_id', 'id', required=True, updatable=False),
        Field('status', 'status', 'choice', required=True, choices=('present', 'absent', 'excused')),
        Field('comments', 'comments'),
    ),
    order_by='created_at DESC, id DESC',
)

PAYMENTS = Resource(
    table='payments',
    label='Payment',
    columns=('id', 'player_id', 'date', 'amount', 'description') + _TIMESTAMPS,
    fields=(
        Field('playerId', 'player_id', 'id', required=True),
        Field('date', 'date', 'date', required=True),
        Field('amount', 'amount', 'float', required=True, minimum=0),
        Field('description', 'description', required=True),
    ),
    order_by='created_at DESC, id DESC',
)

PERFORMANCE_NOTES = Resource(
    table='performance_notes',
    label='Performance note',
    columns=('id', 'player_id', 'coach_id', 'date', 'note') + _TIMESTAMPS,
    fields=(
        Field('playerId', 'player_id', 'id', required=True, updatable=False),
        Field('coachId', 'coach_id', 'id', updatable=False),
        Field('date', 'date', 'date', required=True),
        Field('note', 'note', required=True),
    ),
    order_by='date DESC, created_at DESC',
)

PLAYER_STATS = Resource(
    table='player_stats',
    label='Player stats record',
    columns=('id', 'player_id', 'games_played', 'goals_scored', 'assists', 'yellow_cards',
             'red_cards', 'minutes_played') + _TIMESTAMPS,
    fields=(
        Field('playerId', 'player_id', 'id', required=True, updatable=False),
        Field('gamesPlayed', 'games_played', 'int', minimum=0),
        Field('goalsScored', 'goals_scored', 'int', minimum=0),
        Field('assists', 'assists', 'int', minimum=0),
        Field('yellowCards', 'yellow_cards', 'int', minimum=0),
        Field('redCards', 'red_cards', 'int', minimum=0),
        Field('minutesPlayed', 'minutes_played', 'int', minimum=0),
    ),
    order_by='updated_at DESC',
)
