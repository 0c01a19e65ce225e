from flask import request

from club_manager.access import Action, ResourceType
from club_manager.api import (
    affected, authorize, authorize_instance, bp, created, json_body, list_conditions, ok, path_id,
)
from club_manager.auth import current_principal, login_required
from club_manager.crud import delete_row, ensure_exists, get_row, insert_row, list_rows, update_row
from club_manager.db import get_db
from club_manager.records import PAYMENTS, parse_body, query_id


@bp.route('/payments', methods=['GET', 'POST'])
@login_required
def manage_payments():
    conn = get_db()

    if request.method == 'GET':
        conditions, values = list_conditions(conn, ResourceType.PAYMENT)
        if current_principal().is_admin:
            player_id = query_id(request.args, 'playerId')
            if player_id is not None:
                conditions.append('player_id = ?')
                values.append(player_id)
        return ok(list_rows(conn, PAYMENTS, conditions, values))

    authorize(Action.CREATE, ResourceType.PAYMENT)
    values = parse_body(PAYMENTS, json_body())
    ensure_exists(conn, 'players', values['player_id'], 'playerId')
    return created(insert_row(conn, PAYMENTS, values))


@bp.route('/payments/<payment_id>', methods=['GET', 'PUT', 'DELETE'])
@login_required
def manage_single_payment(payment_id):
    payment_id = path_id(payment_id, 'payment')
    conn = get_db()

    if request.method == 'GET':
        authorize_instance(conn, Action.READ, ResourceType.PAYMENT, payment_id)
        return ok(get_row(conn, PAYMENTS, payment_id))

    elif request.method == 'PUT':
        authorize_instance(conn, Action.UPDATE, ResourceType.PAYMENT, payment_id)
        values = parse_body(PAYMENTS, json_body(), partial=True)
        ensure_exists(conn, 'players', values.get('player_id'), 'playerId')
        return affected(update_row(conn, PAYMENTS, payment_id, values))

    authorize_instance(conn, Action.DELETE, ResourceType.PAYMENT, payment_id)
    return affected(delete_row(conn, PAYMENTS, payment_id))
