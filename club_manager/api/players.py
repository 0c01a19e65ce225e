from flask import request

from club_manager.access import Action, ResourceType
from club_manager.api import (
    affected, authorize, authorize_instance, bp, created, json_body, list_conditions, ok, path_id,
)
from club_manager.auth import login_required
from club_manager.crud import delete_row, get_row, insert_row, list_rows, update_row
from club_manager.db import get_db, now, transaction
from club_manager.errors import BadRequest, Conflict
from club_manager.ownership import load_facts
from club_manager.records import PLAYER_STATS, PLAYERS, parse_body, to_api


def resolve_game_ids(conn, sports):
    """Map a list of game names to game ids; every name must exist."""
    if not isinstance(sports, list) or not sports:
        raise BadRequest('sports must be a non-empty list of game names')
    game_ids = []
    for name in sports:
        if not isinstance(name, str) or not name.strip():
            raise BadRequest('sports must be a non-empty list of game names')
        row = conn.execute('SELECT id FROM games WHERE name = ?', (name.strip(),)).fetchone()
        if row is None:
            raise BadRequest(f'Unknown sport: {name}')
        if row['id'] not in game_ids:
            game_ids.append(row['id'])
    return game_ids


def link_sports(conn, player_id, game_ids):
    conn.execute('DELETE FROM player_games WHERE player_id = ?', (player_id,))
    conn.executemany(
        'INSERT INTO player_games (player_id, game_id) VALUES (?, ?)',
        [(player_id, game_id) for game_id in game_ids],
    )


def _with_sports(conn, player):
    rows = conn.execute("""
        SELECT g.name FROM player_games pg
        JOIN games g ON g.id = pg.game_id
        WHERE pg.player_id = ?
        ORDER BY g.name
    """, (player['id'],)).fetchall()
    return dict(player, sports=[row['name'] for row in rows])


@bp.route('/players', methods=['GET', 'POST'])
@login_required
def manage_players():
    conn = get_db()

    if request.method == 'GET':
        conditions, values = list_conditions(conn, ResourceType.PLAYER)
        return ok(list_rows(conn, PLAYERS, conditions, values))

    authorize(Action.CREATE, ResourceType.PLAYER)
    data = json_body()
    values = parse_body(PLAYERS, data)

    user = conn.execute('SELECT role FROM users WHERE id = ?', (values['user_id'],)).fetchone()
    if user is None or user['role'] != 'player':
        raise BadRequest('userId must reference a player account')
    if conn.execute('SELECT 1 FROM players WHERE user_id = ?', (values['user_id'],)).fetchone():
        raise Conflict('This user already has a player profile')

    sports = data.get('sports')
    game_ids = resolve_game_ids(conn, sports) if sports is not None else []
    with transaction(conn):
        player_id = insert_row(conn, PLAYERS, values)
        link_sports(conn, player_id, game_ids)
    return created(player_id)


@bp.route('/players/<player_id>', methods=['GET', 'PUT', 'DELETE'])
@login_required
def manage_single_player(player_id):
    player_id = path_id(player_id, 'player')
    conn = get_db()

    if request.method == 'GET':
        authorize_instance(conn, Action.READ, ResourceType.PLAYER, player_id)
        return ok(_with_sports(conn, get_row(conn, PLAYERS, player_id)))

    elif request.method == 'PUT':
        authorize_instance(conn, Action.UPDATE, ResourceType.PLAYER, player_id)
        data = json_body()
        values = parse_body(PLAYERS, data, partial=True, allow_empty=True)
        sports = data.get('sports')
        if not values and sports is None:
            raise BadRequest('No valid fields provided for update')
        game_ids = resolve_game_ids(conn, sports) if sports is not None else None

        with transaction(conn):
            count = update_row(conn, PLAYERS, player_id, values)
            if game_ids is not None:
                link_sports(conn, player_id, game_ids)
        return affected(count)

    authorize_instance(conn, Action.DELETE, ResourceType.PLAYER, player_id)
    return affected(delete_row(conn, PLAYERS, player_id))


@bp.route('/players/<player_id>/stats', methods=['GET'])
@login_required
def player_stats_summary(player_id):
    """Latest stats row for a player, or zeroed counters if none recorded yet."""
    player_id = path_id(player_id, 'player')
    conn = get_db()
    facts = load_facts(conn, ResourceType.PLAYER, player_id)
    authorize(Action.READ, ResourceType.PLAYER_STATS, facts)

    row = conn.execute(
        f'{PLAYER_STATS.select_sql} WHERE player_id = ? ORDER BY updated_at DESC LIMIT 1',
        (player_id,),
    ).fetchone()
    if row is not None:
        return ok(to_api(row))

    stamp = now()
    return ok({
        'id': 0,
        'playerId': player_id,
        'gamesPlayed': 0,
        'goalsScored': 0,
        'assists': 0,
        'yellowCards': 0,
        'redCards': 0,
        'minutesPlayed': 0,
        'createdAt': stamp,
        'updatedAt': stamp,
    })
