from flask import request

from club_manager.access import Action, ResourceType, Role
from club_manager.api import (
    affected, authorize, authorize_instance, bp, created, json_body, list_conditions, ok, path_id,
    require_role,
)
from club_manager.auth import current_principal, login_required
from club_manager.crud import delete_row, ensure_exists, get_row, insert_row, list_rows, update_row
from club_manager.db import get_db
from club_manager.errors import Conflict
from club_manager.ownership import load_facts
from club_manager.records import ATTENDANCE, parse_body, query_id


@bp.route('/attendance', methods=['GET', 'POST'])
@login_required
def manage_attendance():
    conn = get_db()

    if request.method == 'GET':
        conditions, values = list_conditions(conn, ResourceType.ATTENDANCE)
        if current_principal().role is not Role.PLAYER:
            for column, name in (('session_id', 'sessionId'), ('player_id', 'playerId')):
                value = query_id(request.args, name)
                if value is not None:
                    conditions.append(f'{column} = ?')
                    values.append(value)
        return ok(list_rows(conn, ATTENDANCE, conditions, values))

    require_role(Action.CREATE, ResourceType.ATTENDANCE)
    values = parse_body(ATTENDANCE, json_body())
    ensure_exists(conn, 'training_sessions', values['session_id'], 'sessionId')
    ensure_exists(conn, 'players', values['player_id'], 'playerId')
    authorize(Action.CREATE, ResourceType.ATTENDANCE,
              load_facts(conn, ResourceType.SESSION, values['session_id']))

    existing = conn.execute(
        'SELECT id FROM session_attendance WHERE session_id = ? AND player_id = ?',
        (values['session_id'], values['player_id']),
    ).fetchone()
    if existing:
        raise Conflict('Attendance already recorded for this player in this session')
    return created(insert_row(conn, ATTENDANCE, values))


@bp.route('/attendance/<attendance_id>', methods=['GET', 'PUT', 'DELETE'])
@login_required
def manage_single_attendance(attendance_id):
    attendance_id = path_id(attendance_id, 'attendance')
    conn = get_db()

    if request.method == 'GET':
        authorize_instance(conn, Action.READ, ResourceType.ATTENDANCE, attendance_id)
        return ok(get_row(conn, ATTENDANCE, attendance_id))

    elif request.method == 'PUT':
        authorize_instance(conn, Action.UPDATE, ResourceType.ATTENDANCE, attendance_id)
        values = parse_body(ATTENDANCE, json_body(), partial=True)
        return affected(update_row(conn, ATTENDANCE, attendance_id, values))

    authorize_instance(conn, Action.DELETE, ResourceType.ATTENDANCE, attendance_id)
    return affected(delete_row(conn, ATTENDANCE, attendance_id))
