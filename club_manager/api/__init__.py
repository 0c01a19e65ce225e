"""JSON API blueprint and helpers shared by its views."""

from flask import Blueprint, request

from club_manager.access import Action, check_role, evaluate
from club_manager.auth import current_principal
from club_manager.errors import BadRequest, api_response
from club_manager.ownership import load_facts, scope_clause

bp = Blueprint('api', __name__, url_prefix='/api')


def path_id(value, label):
    """Coerce an identifier taken from the URL path."""
    try:
        parsed = int(value)
    except (TypeError, ValueError):
        raise BadRequest(f'Invalid {label} ID')
    if parsed <= 0:
        raise BadRequest(f'Invalid {label} ID')
    return parsed


def json_body():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise BadRequest('Request body must be a JSON object')
    return data


def require_role(action, resource_type):
    return check_role(current_principal(), action, resource_type).raise_for_denial()


def authorize(action, resource_type, facts=None):
    return evaluate(current_principal(), action, resource_type, facts).raise_for_denial()


def authorize_instance(conn, action, resource_type, resource_id):
    """Look up ownership of one instance (404 if missing) and check access (403)."""
    facts = load_facts(conn, resource_type, resource_id)
    authorize(action, resource_type, facts)
    return facts


def list_conditions(conn, resource_type):
    """Authorize a collection read and return the row-filter conditions for it."""
    decision = authorize(Action.READ, resource_type)
    conditions, values = [], []
    scoped = scope_clause(conn, resource_type, decision.row_filter)
    if scoped is not None:
        conditions.append(scoped[0])
        values.extend(scoped[1])
    return conditions, values


def ok(data=None):
    return api_response(True, data, status_code=200)


def created(new_id):
    return api_response(True, {'id': new_id}, status_code=201)


def affected(count):
    return api_response(True, {'affectedRows': count}, status_code=200)


from club_manager.api import (  # noqa: E402,F401
    admin,
    attendance,
    auth,
    batches,
    coaches,
    games,
    notes,
    payments,
    players,
    sessions,
    stats,
    users,
)
