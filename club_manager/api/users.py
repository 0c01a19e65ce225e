from flask import request

from club_manager.access import Action, ResourceType
from club_manager.api import (
    affected, authorize, authorize_instance, bp, created, json_body, list_conditions, ok, path_id,
)
from club_manager.auth import current_principal, login_required
from club_manager.crud import delete_row, ensure_no_dependents, get_row, insert_row, list_rows, update_row
from club_manager.db import get_db
from club_manager.errors import BadRequest, Conflict, RoleNotPermitted
from club_manager.passwords import hash_password
from club_manager.records import USERS, parse_body

ADMIN_MANAGED_COLUMNS = ('role', 'status')


def _normalize(values):
    if 'email' in values:
        values['email'] = values['email'].lower()
        if '@' not in values['email']:
            raise BadRequest('email must be a valid email address')
    if 'password' in values:
        values['password'] = hash_password(values['password'])
    return values


def _ensure_unique(conn, values, user_id=None):
    for column in ('email', 'username'):
        if column not in values:
            continue
        row = conn.execute(
            f'SELECT id FROM users WHERE {column} = ? AND id != ?', (values[column], user_id or 0)
        ).fetchone()
        if row:
            raise Conflict(f'A user with this {column} already exists')


@bp.route('/users', methods=['GET', 'POST'])
@login_required
def manage_users():
    conn = get_db()

    if request.method == 'GET':
        conditions, values = list_conditions(conn, ResourceType.USER)
        return ok(list_rows(conn, USERS, conditions, values))

    authorize(Action.CREATE, ResourceType.USER)
    values = _normalize(parse_body(USERS, json_body()))
    values.setdefault('status', 'active')
    _ensure_unique(conn, values)
    return created(insert_row(conn, USERS, values))


@bp.route('/users/<user_id>', methods=['GET', 'PUT', 'DELETE'])
@login_required
def manage_single_user(user_id):
    user_id = path_id(user_id, 'user')
    conn = get_db()
    principal = current_principal()

    if request.method == 'GET':
        authorize_instance(conn, Action.READ, ResourceType.USER, user_id)
        return ok(get_row(conn, USERS, user_id))

    elif request.method == 'PUT':
        authorize_instance(conn, Action.UPDATE, ResourceType.USER, user_id)
        values = _normalize(parse_body(USERS, json_body(), partial=True))
        if not principal.is_admin and any(column in values for column in ADMIN_MANAGED_COLUMNS):
            raise RoleNotPermitted('Only administrators can change role or status')
        _ensure_unique(conn, values, user_id)
        return affected(update_row(conn, USERS, user_id, values))

    authorize_instance(conn, Action.DELETE, ResourceType.USER, user_id)
    # Don't allow deleting current user
    if user_id == principal.id:
        raise BadRequest('Cannot delete your own account')
    ensure_no_dependents(conn, 'players', 'user_id', user_id,
                         'Cannot delete user: It has a player profile.')
    ensure_no_dependents(conn, 'coaches', 'user_id', user_id,
                         'Cannot delete user: It has a coach profile.')
    return affected(delete_row(conn, USERS, user_id))
