from flask import request

from club_manager.access import Action, ResourceType, Role
from club_manager.api import (
    affected, authorize_instance, bp, created, json_body, list_conditions, ok, path_id, require_role,
)
from club_manager.auth import current_principal, login_required
from club_manager.crud import delete_row, ensure_exists, get_row, insert_row, list_rows, update_row
from club_manager.db import get_db
from club_manager.errors import ResourceNotFound
from club_manager.ownership import coach_id_for_user
from club_manager.records import PERFORMANCE_NOTES, parse_body, query_id


@bp.route('/performance_notes', methods=['GET', 'POST'])
@login_required
def manage_performance_notes():
    conn = get_db()
    principal = current_principal()

    if request.method == 'GET':
        conditions, values = list_conditions(conn, ResourceType.PERFORMANCE_NOTE)
        if principal.is_admin:
            for column, name in (('player_id', 'playerId'), ('coach_id', 'coachId')):
                value = query_id(request.args, name)
                if value is not None:
                    conditions.append(f'{column} = ?')
                    values.append(value)
        return ok(list_rows(conn, PERFORMANCE_NOTES, conditions, values))

    require_role(Action.CREATE, ResourceType.PERFORMANCE_NOTE)
    values = parse_body(PERFORMANCE_NOTES, json_body())
    ensure_exists(conn, 'players', values['player_id'], 'playerId')

    # Coaches always author as themselves; an admin may name the coach
    if principal.role is Role.COACH:
        coach_id = coach_id_for_user(conn, principal.id)
        if coach_id is None:
            raise ResourceNotFound('Coach profile not found')
        values['coach_id'] = coach_id
    else:
        ensure_exists(conn, 'coaches', values.get('coach_id'), 'coachId')

    return created(insert_row(conn, PERFORMANCE_NOTES, values))


@bp.route('/performance_notes/<note_id>', methods=['GET', 'PUT', 'DELETE'])
@login_required
def manage_single_performance_note(note_id):
    note_id = path_id(note_id, 'performance note')
    conn = get_db()

    if request.method == 'GET':
        authorize_instance(conn, Action.READ, ResourceType.PERFORMANCE_NOTE, note_id)
        return ok(get_row(conn, PERFORMANCE_NOTES, note_id))

    elif request.method == 'PUT':
        authorize_instance(conn, Action.UPDATE, ResourceType.PERFORMANCE_NOTE, note_id)
        values = parse_body(PERFORMANCE_NOTES, json_body(), partial=True)
        return affected(update_row(conn, PERFORMANCE_NOTES, note_id, values))

    authorize_instance(conn, Action.DELETE, ResourceType.PERFORMANCE_NOTE, note_id)
    return affected(delete_row(conn, PERFORMANCE_NOTES, note_id))
