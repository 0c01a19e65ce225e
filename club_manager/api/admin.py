import logging

from club_manager.access import Action, ResourceType
from club_manager.api import authorize, bp, ok
from club_manager.auth import login_required
from club_manager.db import get_database, get_db, reset_database
from club_manager.errors import api_response

logger = logging.getLogger(__name__)


@bp.route('/status', methods=['GET'])
def status():
    """Database connectivity check."""
    try:
        get_database().ping()
    except Exception as e:
        logger.error(f"Database connection failed: {e}")
        return api_response(False, {'connected': False}, 'Database connection failed', status_code=500)
    return ok({'connected': True})


@bp.route('/admin/reset-db', methods=['POST'])
@login_required
def reset_db():
    authorize(Action.UPDATE, ResourceType.DATABASE)
    reset_database(get_db())
    logger.info("Database reset requested via API")
    return ok({'message': 'Database reset and seeded successfully'})
