from flask import request

from club_manager.access import Action, ResourceType
from club_manager.api import (
    affected, authorize, authorize_instance, bp, created, json_body, list_conditions, ok, path_id,
)
from club_manager.auth import login_required
from club_manager.crud import delete_row, ensure_no_dependents, get_row, insert_row, list_rows, update_row
from club_manager.db import get_db
from club_manager.errors import Conflict
from club_manager.records import GAMES, parse_body


def _ensure_unique_name(conn, name, game_id=None):
    # games.name is COLLATE NOCASE, so this comparison ignores case
    row = conn.execute('SELECT id FROM games WHERE name = ? AND id != ?', (name, game_id or 0)).fetchone()
    if row:
        raise Conflict('Game with this name already exists')


@bp.route('/games', methods=['GET', 'POST'])
@login_required
def manage_games():
    conn = get_db()

    if request.method == 'GET':
        conditions, values = list_conditions(conn, ResourceType.GAME)
        return ok(list_rows(conn, GAMES, conditions, values))

    authorize(Action.CREATE, ResourceType.GAME)
    values = parse_body(GAMES, json_body())
    _ensure_unique_name(conn, values['name'])
    return created(insert_row(conn, GAMES, values))


@bp.route('/games/<game_id>', methods=['GET', 'PUT', 'DELETE'])
@login_required
def manage_single_game(game_id):
    game_id = path_id(game_id, 'game')
    conn = get_db()

    if request.method == 'GET':
        authorize_instance(conn, Action.READ, ResourceType.GAME, game_id)
        return ok(get_row(conn, GAMES, game_id))

    elif request.method == 'PUT':
        authorize_instance(conn, Action.UPDATE, ResourceType.GAME, game_id)
        values = parse_body(GAMES, json_body(), partial=True)
        _ensure_unique_name(conn, values['name'], game_id)
        return affected(update_row(conn, GAMES, game_id, values))

    authorize_instance(conn, Action.DELETE, ResourceType.GAME, game_id)
    ensure_no_dependents(conn, 'batches', 'game_id', game_id,
                         'Cannot delete game: It is linked to existing batches.')
    return affected(delete_row(conn, GAMES, game_id))
