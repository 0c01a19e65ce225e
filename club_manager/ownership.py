"""Ownership facts and collection row filters, resolved against the store.

Each resource type has one fixed join path from the row to the accounts that
own it. Every query returns ``user_id``, ``player_user_id`` and
``coach_user_id`` columns; a resource related to several coaches yields one
row per coach. Batches and sessions also return ``member_user_id``, one row
per enrolled player.
"""

import logging

from club_manager.access import OwnerFacts, ResourceType, Scope
from club_manager.errors import ResourceNotFound

logger = logging.getLogger(__name__)

# (player_id, coach_id, coach_user_id) for every coach a player trains with:
# via the games the player signed up for, and via recorded attendance.
PLAYER_COACHES = """
    SELECT pg.player_id AS player_id, c.id AS coach_id, c.user_id AS coach_user_id
    FROM player_games pg
    JOIN batches b ON b.game_id = pg.game_id
    JOIN coaches c ON c.id = b.coach_id
    UNION
    SELECT sa.player_id, c.id, c.user_id
    FROM session_attendance sa
    JOIN training_sessions ts ON ts.id = sa.session_id
    JOIN batches b ON b.id = ts.batch_id
    JOIN coaches c ON c.id = b.coach_id
"""

# (batch_id, player_id, player_user_id) for every player enrolled in a batch:
# signed up for its game, or recorded in attendance for one of its sessions.
BATCH_PLAYERS = """
    SELECT b.id AS batch_id, p.id AS player_id, p.user_id AS player_user_id
    FROM batches b
    JOIN player_games pg ON pg.game_id = b.game_id
    JOIN players p ON p.id = pg.player_id
    UNION
    SELECT ts.batch_id, p.id, p.user_id
    FROM session_attendance sa
    JOIN training_sessions ts ON ts.id = sa.session_id
    JOIN players p ON p.id = sa.player_id
"""

OWNER_QUERIES = {
    ResourceType.USER: """
        SELECT u.id AS user_id, NULL AS player_user_id, NULL AS coach_user_id
        FROM users u WHERE u.id = ?
    """,
    ResourceType.PLAYER: f"""
        SELECT p.user_id AS user_id, p.user_id AS player_user_id, pc.coach_user_id
        FROM players p
        LEFT JOIN ({PLAYER_COACHES}) pc ON pc.player_id = p.id
        WHERE p.id = ?
    """,
    ResourceType.COACH: """
        SELECT c.user_id AS user_id, NULL AS player_user_id, c.user_id AS coach_user_id
        FROM coaches c WHERE c.id = ?
    """,
    ResourceType.ROSTER: """
        SELECT c.user_id AS user_id, NULL AS player_user_id, c.user_id AS coach_user_id
        FROM coaches c WHERE c.id = ?
    """,
    ResourceType.GAME: """
        SELECT NULL AS user_id, NULL AS player_user_id, NULL AS coach_user_id
        FROM games g WHERE g.id = ?
    """,
    ResourceType.BATCH: f"""
        SELECT NULL AS user_id, NULL AS player_user_id, c.user_id AS coach_user_id,
               bp.player_user_id AS member_user_id
        FROM batches b
        LEFT JOIN coaches c ON c.id = b.coach_id
        LEFT JOIN ({BATCH_PLAYERS}) bp ON bp.batch_id = b.id
        WHERE b.id = ?
    """,
    ResourceType.SESSION: f"""
        SELECT NULL AS user_id, NULL AS player_user_id, c.user_id AS coach_user_id,
               bp.player_user_id AS member_user_id
        FROM training_sessions ts
        JOIN batches b ON b.id = ts.batch_id
        LEFT JOIN coaches c ON c.id = b.coach_id
        LEFT JOIN ({BATCH_PLAYERS}) bp ON bp.batch_id = b.id
        WHERE ts.id = ?
    """,
    ResourceType.ATTENDANCE: """
        SELECT NULL AS user_id, p.user_id AS player_user_id, c.user_id AS coach_user_id
        FROM session_attendance sa
        JOIN training_sessions ts ON ts.id = sa.session_id
        JOIN batches b ON b.id = ts.batch_id
        LEFT JOIN coaches c ON c.id = b.coach_id
        JOIN players p ON p.id = sa.player_id
        WHERE sa.id = ?
    """,
    ResourceType.PAYMENT: """
        SELECT NULL AS user_id, p.user_id AS player_user_id, NULL AS coach_user_id
        FROM payments pay
        JOIN players p ON p.id = pay.player_id
        WHERE pay.id = ?
    """,
    ResourceType.PERFORMANCE_NOTE: """
        SELECT NULL AS user_id, p.user_id AS player_user_id, c.user_id AS coach_user_id
        FROM performance_notes n
        JOIN players p ON p.id = n.player_id
        LEFT JOIN coaches c ON c.id = n.coach_id
        WHERE n.id = ?
    """,
    ResourceType.PLAYER_STATS: f"""
        SELECT NULL AS user_id, p.user_id AS player_user_id, pc.coach_user_id
        FROM player_stats s
        JOIN players p ON p.id = s.player_id
        LEFT JOIN ({PLAYER_COACHES}) pc ON pc.player_id = p.id
        WHERE s.id = ?
    """,
}

NOT_FOUND_LABELS = {
    ResourceType.USER: 'User',
    ResourceType.PLAYER: 'Player',
    ResourceType.COACH: 'Coach',
    ResourceType.ROSTER: 'Coach',
    ResourceType.GAME: 'Game',
    ResourceType.BATCH: 'Batch',
    ResourceType.SESSION: 'Training session',
    ResourceType.ATTENDANCE: 'Attendance record',
    ResourceType.PAYMENT: 'Payment',
    ResourceType.PERFORMANCE_NOTE: 'Performance note',
    ResourceType.PLAYER_STATS: 'Player stats record',
}

# Row filters, keyed by (resource type, scope). The single parameter is the
# caller's user id for OWN_ACCOUNT, player id for OWN_PLAYER and coach id
# for COACHED.
SCOPE_CLAUSES = {
    (ResourceType.USER, Scope.OWN_ACCOUNT): 'id = ?',
    (ResourceType.PLAYER, Scope.OWN_PLAYER): 'id = ?',
    (ResourceType.PLAYER, Scope.COACHED): f'id IN (SELECT player_id FROM ({PLAYER_COACHES}) WHERE coach_id = ?)',
    (ResourceType.BATCH, Scope.OWN_PLAYER): f'id IN (SELECT batch_id FROM ({BATCH_PLAYERS}) WHERE player_id = ?)',
    (ResourceType.BATCH, Scope.COACHED): 'coach_id = ?',
    (ResourceType.SESSION, Scope.OWN_PLAYER): f'batch_id IN (SELECT batch_id FROM ({BATCH_PLAYERS}) WHERE player_id = ?)',
    (ResourceType.SESSION, Scope.COACHED): 'batch_id IN (SELECT id FROM batches WHERE coach_id = ?)',
    (ResourceType.ATTENDANCE, Scope.OWN_PLAYER): 'player_id = ?',
    (ResourceType.ATTENDANCE, Scope.COACHED): (
        'session_id IN (SELECT ts.id FROM training_sessions ts '
        'JOIN batches b ON b.id = ts.batch_id WHERE b.coach_id = ?)'
    ),
    (ResourceType.PAYMENT, Scope.OWN_PLAYER): 'player_id = ?',
    (ResourceType.PERFORMANCE_NOTE, Scope.OWN_PLAYER): 'player_id = ?',
    (ResourceType.PERFORMANCE_NOTE, Scope.COACHED): 'coach_id = ?',
    (ResourceType.PLAYER_STATS, Scope.OWN_PLAYER): 'player_id = ?',
    (ResourceType.PLAYER_STATS, Scope.COACHED): f'player_id IN (SELECT player_id FROM ({PLAYER_COACHES}) WHERE coach_id = ?)',
}

NO_ROWS = '0 = 1'


def not_found(resource_type):
    return ResourceNotFound(f'{NOT_FOUND_LABELS[ResourceType(resource_type)]} not found')


def load_facts(conn, resource_type, resource_id):
    """Resolve the owner facts of one instance, or raise ``ResourceNotFound``."""
    resource_type = ResourceType(resource_type)
    rows = conn.execute(OWNER_QUERIES[resource_type], (resource_id,)).fetchall()
    if not rows:
        raise not_found(resource_type)
    first = rows[0]
    coach_user_ids = frozenset(row['coach_user_id'] for row in rows if row['coach_user_id'] is not None)
    member_user_ids = frozenset()
    if 'member_user_id' in first.keys():
        member_user_ids = frozenset(row['member_user_id'] for row in rows if row['member_user_id'] is not None)
    return OwnerFacts(
        user_id=first['user_id'],
        player_user_id=first['player_user_id'],
        coach_user_ids=coach_user_ids,
        member_user_ids=member_user_ids,
    )


def player_id_for_user(conn, user_id):
    row = conn.execute('SELECT id FROM players WHERE user_id = ?', (user_id,)).fetchone()
    return row['id'] if row else None


def coach_id_for_user(conn, user_id):
    row = conn.execute('SELECT id FROM coaches WHERE user_id = ?', (user_id,)).fetchone()
    return row['id'] if row else None


def scope_clause(conn, resource_type, row_filter):
    """Translate a ``RowFilter`` into ``(sql, params)``; ``None`` means no restriction.

    A player without a profile row is reported as not found. A coach without
    one gets a filter matching nothing, so their listings come back empty.
    """
    if row_filter is None or row_filter.unrestricted:
        return None
    resource_type = ResourceType(resource_type)
    clause = SCOPE_CLAUSES.get((resource_type, row_filter.scope))
    if clause is None:
        logger.error(f"No row filter for {resource_type.value}:{row_filter.scope.value}")
        return NO_ROWS, []

    user_id = row_filter.principal.id
    if row_filter.scope is Scope.OWN_ACCOUNT:
        return clause, [user_id]
    if row_filter.scope is Scope.OWN_PLAYER:
        player_id = player_id_for_user(conn, user_id)
        if player_id is None:
            raise ResourceNotFound('Player profile not found')
        return clause, [player_id]

    coach_id = coach_id_for_user(conn, user_id)
    if coach_id is None:
        return NO_ROWS, []
    return clause, [coach_id]
