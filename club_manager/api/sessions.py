from flask import request

from club_manager.access import Action, ResourceType
from club_manager.api import (
    affected, authorize, authorize_instance, bp, created, json_body, list_conditions, ok, path_id,
    require_role,
)
from club_manager.auth import login_required
from club_manager.crud import (
    delete_row, ensure_exists, ensure_no_dependents, get_row, insert_row, list_rows, update_row,
)
from club_manager.db import get_db
from club_manager.ownership import load_facts
from club_manager.records import SESSIONS, parse_body, query_id


def _authorize_for_batch(conn, action, batch_id):
    """Check the caller coaches ``batch_id`` before a session is placed in it."""
    ensure_exists(conn, 'batches', batch_id, 'batchId')
    authorize(action, ResourceType.SESSION, load_facts(conn, ResourceType.BATCH, batch_id))


@bp.route('/training_sessions', methods=['GET', 'POST'])
@login_required
def manage_sessions():
    conn = get_db()

    if request.method == 'GET':
        conditions, values = list_conditions(conn, ResourceType.SESSION)
        batch_id = query_id(request.args, 'batchId')
        if batch_id is not None:
            conditions.append('batch_id = ?')
            values.append(batch_id)
        coach_id = query_id(request.args, 'coachId')
        if coach_id is not None:
            conditions.append('batch_id IN (SELECT id FROM batches WHERE coach_id = ?)')
            values.append(coach_id)
        return ok(list_rows(conn, SESSIONS, conditions, values))

    require_role(Action.CREATE, ResourceType.SESSION)
    values = parse_body(SESSIONS, json_body())
    _authorize_for_batch(conn, Action.CREATE, values['batch_id'])
    return created(insert_row(conn, SESSIONS, values))


@bp.route('/training_sessions/<session_id>', methods=['GET', 'PUT', 'DELETE'])
@login_required
def manage_single_session(session_id):
    session_id = path_id(session_id, 'session')
    conn = get_db()

    if request.method == 'GET':
        authorize_instance(conn, Action.READ, ResourceType.SESSION, session_id)
        return ok(get_row(conn, SESSIONS, session_id))

    elif request.method == 'PUT':
        authorize_instance(conn, Action.UPDATE, ResourceType.SESSION, session_id)
        values = parse_body(SESSIONS, json_body(), partial=True)
        if 'batch_id' in values:
            # moving a session requires the caller to coach the new batch as well
            _authorize_for_batch(conn, Action.UPDATE, values['batch_id'])
        return affected(update_row(conn, SESSIONS, session_id, values))

    authorize_instance(conn, Action.DELETE, ResourceType.SESSION, session_id)
    ensure_no_dependents(conn, 'session_attendance', 'session_id', session_id,
                         'Cannot delete session: It has associated attendance records.')
    return affected(delete_row(conn, SESSIONS, session_id))
