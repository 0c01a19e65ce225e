"""Sports club management API: users, players, coaches, training and payments."""

import logging
from datetime import datetime

import click
from flask import Flask, jsonify

from club_manager.config import Config
from club_manager.db import EXTENSION_KEY, Database, close_db, init_database, reset_database
from club_manager.errors import register_error_handlers

logger = logging.getLogger(__name__)


def create_app(overrides=None):
    app = Flask(__name__)
    app.config.from_object(Config)
    if overrides:
        app.config.update(overrides)

    app.extensions[EXTENSION_KEY] = Database(app.config['DATABASE'])

    register_error_handlers(app)

    from club_manager.api import bp
    app.register_blueprint(bp)
    app.teardown_appcontext(close_db)

    @app.after_request
    def add_cors_headers(response):
        response.headers['Access-Control-Allow-Origin'] = app.config['ALLOWED_ORIGIN']
        response.headers['Access-Control-Allow-Headers'] = 'Content-Type, Authorization'
        response.headers['Access-Control-Allow-Methods'] = 'GET, POST, PUT, DELETE, OPTIONS'
        return response

    @app.route('/health')
    def health_check():
        return jsonify({'status': 'healthy', 'timestamp': datetime.now().isoformat()})

    @app.cli.command('init-db')
    def init_db_command():
        """Create missing tables and seed demo data into an empty store."""
        init_database(app.extensions[EXTENSION_KEY], seed=app.config['SEED_DEMO_DATA'])
        click.echo('Initialized the database.')

    @app.cli.command('reset-db')
    def reset_db_command():
        """Drop every table, recreate the schema and reseed."""
        conn = app.extensions[EXTENSION_KEY].connect()
        try:
            reset_database(conn, seed=app.config['SEED_DEMO_DATA'])
        finally:
            conn.close()
        click.echo('Reset the database.')

    logger.info(f"App created with database {app.config['DATABASE']}")
    return app
