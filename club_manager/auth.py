"""Bearer-token identity: issuing signed tokens and resolving the caller.

Tokens are HS256 JWTs carrying the user id and role with an expiry. The user
row is re-read on every request, so a token for a deleted, demoted or
deactivated account stops working immediately.
"""

import logging
from datetime import datetime, timedelta, timezone
from functools import wraps

import jwt
from flask import current_app, g, request

from club_manager.access import AccountStatus, Principal, Role
from club_manager.db import get_db
from club_manager.errors import AccountInactive, InvalidCredential, Unauthenticated

logger = logging.getLogger(__name__)


def issue_token(user):
    """Sign a token for a ``users`` row (or any mapping with ``id`` and ``role``)."""
    issued_at = datetime.now(timezone.utc)
    payload = {
        'sub': str(user['id']),
        'role': user['role'],
        'iat': issued_at,
        'exp': issued_at + timedelta(seconds=current_app.config['TOKEN_TTL_SECONDS']),
    }
    return jwt.encode(
        payload,
        current_app.config['SECRET_KEY'],
        algorithm=current_app.config['TOKEN_ALGORITHM'],
    )


def decode_token(token):
    try:
        return jwt.decode(
            token,
            current_app.config['SECRET_KEY'],
            algorithms=[current_app.config['TOKEN_ALGORITHM']],
            options={'require': ['sub', 'exp']},
        )
    except (jwt.ExpiredSignatureError, jwt.InvalidSignatureError) as e:
        logger.info(f"Rejected token: {e}")
        raise InvalidCredential()
    except jwt.DecodeError:
        raise Unauthenticated()
    except jwt.InvalidTokenError as e:
        logger.info(f"Rejected token: {e}")
        raise InvalidCredential()


def bearer_token(header):
    if not header:
        return None
    scheme, _, token = header.partition(' ')
    if scheme.lower() != 'bearer' or not token.strip():
        return None
    return token.strip()


def authenticate(header, conn):
    """Resolve an ``Authorization`` header value to an active ``Principal``."""
    token = bearer_token(header)
    if token is None:
        raise Unauthenticated()

    claims = decode_token(token)
    try:
        user_id = int(claims['sub'])
    except (TypeError, ValueError):
        raise InvalidCredential()

    user = conn.execute('SELECT id, role, status FROM users WHERE id = ?', (user_id,)).fetchone()
    if user is None or user['role'] != claims.get('role'):
        raise InvalidCredential()

    principal = Principal(user['id'], Role(user['role']), AccountStatus(user['status']))
    if principal.status is not AccountStatus.ACTIVE:
        raise AccountInactive()
    return principal


def current_principal():
    return g.principal


def login_required(f):
    @wraps(f)
    def decorated_function(*args, **kwargs):
        g.principal = authenticate(request.headers.get('Authorization'), get_db())
        return f(*args, **kwargs)
    return decorated_function
