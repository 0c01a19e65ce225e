from flask import request

from club_manager.access import Action, ResourceType
from club_manager.api import (
    affected, authorize, authorize_instance, bp, created, json_body, list_conditions, ok, path_id,
)
from club_manager.auth import login_required
from club_manager.crud import (
    delete_row, ensure_exists, ensure_no_dependents, get_row, insert_row, list_rows, update_row,
)
from club_manager.db import get_db
from club_manager.records import BATCHES, parse_body, query_id


def _check_references(conn, values):
    ensure_exists(conn, 'games', values.get('game_id'), 'gameId')
    ensure_exists(conn, 'coaches', values.get('coach_id'), 'coachId')


@bp.route('/batches', methods=['GET', 'POST'])
@login_required
def manage_batches():
    conn = get_db()

    if request.method == 'GET':
        conditions, values = list_conditions(conn, ResourceType.BATCH)
        for column, name in (('game_id', 'gameId'), ('coach_id', 'coachId')):
            value = query_id(request.args, name)
            if value is not None:
                conditions.append(f'{column} = ?')
                values.append(value)
        return ok(list_rows(conn, BATCHES, conditions, values))

    authorize(Action.CREATE, ResourceType.BATCH)
    values = parse_body(BATCHES, json_body())
    _check_references(conn, values)
    return created(insert_row(conn, BATCHES, values))


@bp.route('/batches/<batch_id>', methods=['GET', 'PUT', 'DELETE'])
@login_required
def manage_single_batch(batch_id):
    batch_id = path_id(batch_id, 'batch')
    conn = get_db()

    if request.method == 'GET':
        authorize_instance(conn, Action.READ, ResourceType.BATCH, batch_id)
        return ok(get_row(conn, BATCHES, batch_id))

    elif request.method == 'PUT':
        authorize_instance(conn, Action.UPDATE, ResourceType.BATCH, batch_id)
        values = parse_body(BATCHES, json_body(), partial=True)
        _check_references(conn, values)
        return affected(update_row(conn, BATCHES, batch_id, values))

    authorize_instance(conn, Action.DELETE, ResourceType.BATCH, batch_id)
    ensure_no_dependents(conn, 'training_sessions', 'batch_id', batch_id,
                         'Cannot delete batch: It contains existing training sessions.')
    return affected(delete_row(conn, BATCHES, batch_id))
