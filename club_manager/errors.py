"""Error taxonomy and the JSON response envelope.

Every response body has the shape ``{"success": bool, "data"?: any,
"error"?: str}``. Handlers raise one of the ``ApiError`` subclasses below and
the error handlers registered by ``register_error_handlers`` turn them into
that envelope with the matching status code.
"""

import logging
import sqlite3

from flask import g, jsonify, request
from werkzeug.exceptions import HTTPException

logger = logging.getLogger(__name__)


def api_response(success, data=None, error=None, status_code=None):
    """Build the ``(response, status)`` pair for the envelope."""
    if status_code is None:
        status_code = 200 if success else 500
    body = {'success': success}
    if data is not None:
        body['data'] = data
    if error is not None:
        body['error'] = error
    return jsonify(body), status_code


class ApiError(Exception):
    status_code = 500
    message = 'Internal server error'

    def __init__(self, message=None):
        super().__init__(message or self.message)
        if message is not None:
            self.message = message


class Unauthenticated(ApiError):
    status_code = 401
    message = 'Authentication required'


class InvalidCredential(ApiError):
    status_code = 401
    message = 'Invalid token'


class AccountInactive(ApiError):
    status_code = 403
    message = 'Account is not active'


class RoleNotPermitted(ApiError):
    status_code = 403
    message = 'Access denied'


class NotOwner(ApiError):
    status_code = 403
    message = 'Access denied'


class ResourceNotFound(ApiError):
    status_code = 404
    message = 'Resource not found'


class BadRequest(ApiError):
    status_code = 400
    message = 'Bad request'


class Conflict(ApiError):
    status_code = 409
    message = 'Conflict'


class MethodNotAllowed(ApiError):
    status_code = 405
    message = 'Method Not Allowed'


class InternalError(ApiError):
    status_code = 500


def _rollback_open_transaction():
    conn = g.get('db')
    if conn is not None and conn.in_transaction:
        conn.rollback()


def register_error_handlers(app):
    @app.errorhandler(ApiError)
    def handle_api_error(e):
        if isinstance(e, InternalError):
            _rollback_open_transaction()
            logger.error(f"{request.endpoint} error: {e.message}")
        return api_response(False, error=e.message, status_code=e.status_code)

    @app.errorhandler(sqlite3.IntegrityError)
    def handle_integrity_error(e):
        _rollback_open_transaction()
        logger.warning(f"{request.endpoint} integrity error: {e}")
        return api_response(False, error=f'Conflicting data: {e}', status_code=Conflict.status_code)

    @app.errorhandler(HTTPException)
    def handle_http_exception(e):
        if e.code == 404:
            message = 'Not found'
        elif e.code == 405:
            message = MethodNotAllowed.message
        else:
            message = e.description or e.name
        return api_response(False, error=message, status_code=e.code)

    @app.errorhandler(Exception)
    def handle_unexpected(e):
        _rollback_open_transaction()
        logger.error(f"{request.endpoint} error: {e}")
        return api_response(False, error=str(e) or InternalError.message, status_code=InternalError.status_code)
