#!/usr/bin/env python3
"""
Sports Club Manager - JSON API server

Run directly for local development, or point a WSGI server at ``app:app``.
"""

import logging
import os

from club_manager import create_app
from club_manager.db import get_database, init_database

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

app = create_app()

if __name__ == '__main__':
    logger.info("Starting Sports Club Manager API...")

    # Initialize database
    init_database(get_database(app), seed=app.config['SEED_DEMO_DATA'])

    port = int(os.environ.get('PORT', 5000))
    logger.info(f"Server starting on http://localhost:{port}")
    logger.info("Demo logins: admin@example.com / coach@example.com / player@example.com (password123)")

    app.run(debug=os.environ.get('FLASK_DEBUG') == '1', host='0.0.0.0', port=port)
