from flask import request

from club_manager.access import Action, ResourceType, Scope
from club_manager.api import (
    affected, authorize, authorize_instance, bp, created, json_body, list_conditions, ok, path_id,
)
from club_manager.auth import login_required
from club_manager.crud import delete_row, ensure_no_dependents, get_row, insert_row, list_rows, update_row
from club_manager.db import get_db
from club_manager.errors import BadRequest, Conflict
from club_manager.ownership import SCOPE_CLAUSES
from club_manager.records import COACHES, PLAYERS, parse_body


@bp.route('/coaches', methods=['GET', 'POST'])
@login_required
def manage_coaches():
    conn = get_db()

    if request.method == 'GET':
        conditions, values = list_conditions(conn, ResourceType.COACH)
        return ok(list_rows(conn, COACHES, conditions, values))

    authorize(Action.CREATE, ResourceType.COACH)
    values = parse_body(COACHES, json_body())

    user = conn.execute('SELECT role FROM users WHERE id = ?', (values['user_id'],)).fetchone()
    if user is None or user['role'] != 'coach':
        raise BadRequest('userId must reference a coach account')
    if conn.execute('SELECT 1 FROM coaches WHERE user_id = ?', (values['user_id'],)).fetchone():
        raise Conflict('This user already has a coach profile')
    return created(insert_row(conn, COACHES, values))


@bp.route('/coaches/<coach_id>', methods=['GET', 'PUT', 'DELETE'])
@login_required
def manage_single_coach(coach_id):
    coach_id = path_id(coach_id, 'coach')
    conn = get_db()

    if request.method == 'GET':
        authorize_instance(conn, Action.READ, ResourceType.COACH, coach_id)
        return ok(get_row(conn, COACHES, coach_id))

    elif request.method == 'PUT':
        authorize_instance(conn, Action.UPDATE, ResourceType.COACH, coach_id)
        values = parse_body(COACHES, json_body(), partial=True)
        return affected(update_row(conn, COACHES, coach_id, values))

    authorize_instance(conn, Action.DELETE, ResourceType.COACH, coach_id)
    ensure_no_dependents(conn, 'batches', 'coach_id', coach_id,
                         'Cannot delete coach: They are assigned to existing batches.')
    return affected(delete_row(conn, COACHES, coach_id))


@bp.route('/coaches/<coach_id>/players', methods=['GET'])
@login_required
def coach_players(coach_id):
    """Players training under a coach, through their games or attendance."""
    coach_id = path_id(coach_id, 'coach')
    conn = get_db()
    authorize_instance(conn, Action.READ, ResourceType.ROSTER, coach_id)
    clause = SCOPE_CLAUSES[(ResourceType.PLAYER, Scope.COACHED)]
    return ok(list_rows(conn, PLAYERS, [clause], [coach_id]))
