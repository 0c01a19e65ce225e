import logging

from club_manager.api import bp, json_body, ok
from club_manager.api.players import link_sports, resolve_game_ids
from club_manager.auth import issue_token
from club_manager.crud import get_row, insert_row
from club_manager.db import get_db, transaction
from club_manager.errors import AccountInactive, BadRequest, Conflict, InvalidCredential, api_response
from club_manager.passwords import hash_password, verify_password
from club_manager.records import COACHES, PLAYERS, USERS, parse_body

logger = logging.getLogger(__name__)

REGISTRATION_ROLES = ('player', 'coach')


def _with_token(user):
    return dict(user, token=issue_token(user))


@bp.route('/auth/register', methods=['POST'])
def register():
    data = json_body()

    # Validate required fields
    required_fields = ['email', 'password', 'role', 'firstName', 'lastName']
    for field in required_fields:
        if not data.get(field):
            raise BadRequest(f'{field} is required')
    for field in ('email', 'password'):
        if not isinstance(data[field], str):
            raise BadRequest(f'{field} must be a string')

    email = data['email'].strip().lower()
    if '@' not in email:
        raise BadRequest('email must be a valid email address')
    role = data['role']
    if role not in REGISTRATION_ROLES:
        raise BadRequest('Invalid role specified')

    sports = data.get('sports')
    if role == 'player':
        if not isinstance(sports, list) or len(sports) == 0:
            raise BadRequest('Player registration requires selecting at least one sport.')

    username = str(data.get('username') or email).strip()
    conn = get_db()

    existing = conn.execute(
        'SELECT id FROM users WHERE email = ? OR username = ?', (email, username)
    ).fetchone()
    if existing:
        raise Conflict('User with this email or username already exists')

    game_ids = resolve_game_ids(conn, sports) if role == 'player' else []

    with transaction(conn):
        user_id = insert_row(conn, USERS, {
            'username': username,
            'email': email,
            'password': hash_password(data['password']),
            'role': role,
            'status': 'active',
        })
        profile_resource = PLAYERS if role == 'player' else COACHES
        profile = parse_body(profile_resource, dict(data, userId=user_id))
        profile_id = insert_row(conn, profile_resource, profile)
        if role == 'player':
            link_sports(conn, profile_id, game_ids)

    logger.info(f"Registered {role} user {user_id}")
    user = get_row(conn, USERS, user_id)
    return api_response(True, _with_token(user), status_code=201)


@bp.route('/auth/login', methods=['POST'])
def login():
    data = json_body()
    email = data.get('email')
    password = data.get('password')

    if not email or not password:
        raise BadRequest('Email and password are required')
    if not isinstance(email, str) or not isinstance(password, str):
        raise BadRequest('Email and password must be strings')
    email = email.strip().lower()

    conn = get_db()
    row = conn.execute('SELECT id, password, status FROM users WHERE email = ?', (email,)).fetchone()
    if row is None or not verify_password(row['password'], password):
        raise InvalidCredential('Invalid email or password')
    if row['status'] != 'active':
        raise AccountInactive()

    user = get_row(conn, USERS, row['id'])
    return ok(_with_token(user))
