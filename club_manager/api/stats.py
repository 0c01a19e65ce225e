from flask import request

from club_manager.access import Action, ResourceType, Role
from club_manager.api import (
    affected, authorize, authorize_instance, bp, created, json_body, list_conditions, ok, path_id,
    require_role,
)
from club_manager.auth import current_principal, login_required
from club_manager.crud import delete_row, ensure_exists, get_row, insert_row, list_rows, update_row
from club_manager.db import get_db
from club_manager.ownership import load_facts
from club_manager.records import PLAYER_STATS, parse_body, query_id


@bp.route('/player_stats', methods=['GET', 'POST'])
@login_required
def manage_player_stats():
    conn = get_db()

    if request.method == 'GET':
        conditions, values = list_conditions(conn, ResourceType.PLAYER_STATS)
        if current_principal().role is not Role.PLAYER:
            player_id = query_id(request.args, 'playerId')
            if player_id is not None:
                conditions.append('player_id = ?')
                values.append(player_id)
        return ok(list_rows(conn, PLAYER_STATS, conditions, values))

    require_role(Action.CREATE, ResourceType.PLAYER_STATS)
    values = parse_body(PLAYER_STATS, json_body())
    ensure_exists(conn, 'players', values['player_id'], 'playerId')
    authorize(Action.CREATE, ResourceType.PLAYER_STATS,
              load_facts(conn, ResourceType.PLAYER, values['player_id']))
    return created(insert_row(conn, PLAYER_STATS, values))


@bp.route('/player_stats/<stats_id>', methods=['GET', 'PUT', 'DELETE'])
@login_required
def manage_single_player_stats(stats_id):
    stats_id = path_id(stats_id, 'player stats')
    conn = get_db()

    if request.method == 'GET':
        authorize_instance(conn, Action.READ, ResourceType.PLAYER_STATS, stats_id)
        return ok(get_row(conn, PLAYER_STATS, stats_id))

    elif request.method == 'PUT':
        authorize_instance(conn, Action.UPDATE, ResourceType.PLAYER_STATS, stats_id)
        values = parse_body(PLAYER_STATS, json_body(), partial=True)
        return affected(update_row(conn, PLAYER_STATS, stats_id, values))

    authorize_instance(conn, Action.DELETE, ResourceType.PLAYER_STATS, stats_id)
    return affected(delete_row(conn, PLAYER_STATS, stats_id))
