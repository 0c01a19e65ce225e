"""SQLite store: connection handling, schema, and demo seed data."""

import logging
import sqlite3
from contextlib import contextmanager
from datetime import datetime, timezone

from flask import current_app, g

from club_manager.passwords import hash_password

logger = logging.getLogger(__name__)

EXTENSION_KEY = 'club_db'

# Parents first; dropped in reverse order.
TABLES = [
    'users',
    'games',
    'players',
    'player_games',
    'coaches',
    'player_stats',
    'batches',
    'training_sessions',
    'session_attendance',
    'payments',
    'performance_notes',
]

SCHEMA = """
CREATE TABLE IF NOT EXISTS users (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    username TEXT NOT NULL UNIQUE,
    email TEXT NOT NULL UNIQUE,
    password TEXT NOT NULL,
    role TEXT NOT NULL DEFAULT 'player' CHECK (role IN ('player', 'coach', 'admin')),
    status TEXT NOT NULL DEFAULT 'active' CHECK (status IN ('active', 'inactive', 'suspended')),
    created_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP,
    updated_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP
);

CREATE TABLE IF NOT EXISTS games (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL UNIQUE COLLATE NOCASE,
    created_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP,
    updated_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP
);

CREATE TABLE IF NOT EXISTS players (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id INTEGER NOT NULL UNIQUE REFERENCES users(id) ON DELETE CASCADE,
    first_name TEXT NOT NULL,
    last_name TEXT NOT NULL,
    position TEXT,
    date_of_birth TEXT,
    height REAL,
    weight REAL,
    created_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP,
    updated_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP
);

CREATE TABLE IF NOT EXISTS player_games (
    player_id INTEGER NOT NULL REFERENCES players(id) ON DELETE CASCADE,
    game_id INTEGER NOT NULL REFERENCES games(id) ON DELETE CASCADE,
    PRIMARY KEY (player_id, game_id)
);

CREATE TABLE IF NOT EXISTS coaches (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id INTEGER NOT NULL UNIQUE REFERENCES users(id) ON DELETE CASCADE,
    first_name TEXT NOT NULL,
    last_name TEXT NOT NULL,
    specialization TEXT,
    experience INTEGER,
    created_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP,
    updated_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP
);

CREATE TABLE IF NOT EXISTS player_stats (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    player_id INTEGER NOT NULL REFERENCES players(id) ON DELETE CASCADE,
    games_played INTEGER NOT NULL DEFAULT 0,
    goals_scored INTEGER NOT NULL DEFAULT 0,
    assists INTEGER NOT NULL DEFAULT 0,
    yellow_cards INTEGER NOT NULL DEFAULT 0,
    red_cards INTEGER NOT NULL DEFAULT 0,
    minutes_played INTEGER NOT NULL DEFAULT 0,
    created_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP,
    updated_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP
);

CREATE TABLE IF NOT EXISTS batches (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    game_id INTEGER NOT NULL REFERENCES games(id),
    name TEXT NOT NULL,
    schedule TEXT,
    coach_id INTEGER REFERENCES coaches(id) ON DELETE SET NULL,
    created_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP,
    updated_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP
);

CREATE TABLE IF NOT EXISTS training_sessions (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    batch_id INTEGER NOT NULL REFERENCES batches(id),
    title TEXT,
    description TEXT,
    date TEXT NOT NULL,
    duration INTEGER NOT NULL,
    location TEXT,
    created_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP,
    updated_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP
);

CREATE TABLE IF NOT EXISTS session_attendance (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    session_id INTEGER NOT NULL REFERENCES training_sessions(id),
    player_id INTEGER NOT NULL REFERENCES players(id) ON DELETE CASCADE,
    status TEXT NOT NULL DEFAULT 'absent' CHECK (status IN ('present', 'absent', 'excused')),
    comments TEXT,
    created_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP,
    updated_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP,
    UNIQUE (session_id, player_id)
);

CREATE TABLE IF NOT EXISTS payments (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    player_id INTEGER NOT NULL REFERENCES players(id) ON DELETE CASCADE,
    date TEXT NOT NULL,
    amount REAL NOT NULL,
    description TEXT,
    created_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP,
    updated_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP
);

CREATE TABLE IF NOT EXISTS performance_notes (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    player_id INTEGER NOT NULL REFERENCES players(id) ON DELETE CASCADE,
    coach_id INTEGER REFERENCES coaches(id) ON DELETE SET NULL,
    date TEXT NOT NULL,
    note TEXT NOT NULL,
    created_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP,
    updated_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP
)
"""

DEMO_PASSWORD = 'password123'

SEED_ROWS = {
    'users': (
        ('id', 'username', 'email', 'role', 'status'),
        [
            (1, 'admin', 'admin@example.com', 'admin', 'active'),
            (2, 'coach1', 'coach@example.com', 'coach', 'active'),
            (3, 'player1', 'player@example.com', 'player', 'active'),
            (4, 'player2', 'player2@example.com', 'player', 'active'),
            (5, 'player3', 'player3@example.com', 'player', 'active'),
            (6, 'coach2', 'coach2@example.com', 'coach', 'active'),
            (7, 'player4', 'player4@example.com', 'player', 'active'),
        ],
    ),
    'games': (
        ('id', 'name'),
        [(1, 'Badminton'), (2, 'Swimming'), (3, 'Football'), (4, 'Basketball'), (5, 'Tennis')],
    ),
    'players': (
        ('id', 'user_id', 'first_name', 'last_name', 'position', 'date_of_birth', 'height', 'weight'),
        [
            (1, 3, 'John', 'Smith', 'Forward', '2002-05-15', 180.5, 75.2),
            (2, 4, 'Emily', 'Johnson', 'Midfielder', '2003-11-20', 165.0, 58.0),
            (3, 5, 'Michael', 'Brown', 'Defender', '2000-01-30', 190.0, 85.5),
            (4, 7, 'Sarah', 'Davis', 'Goalkeeper', '2004-07-07', 170.0, 62.0),
        ],
    ),
    'coaches': (
        ('id', 'user_id', 'first_name', 'last_name', 'specialization', 'experience'),
        [
            (1, 2, 'Alex', 'Johnson', 'Badminton', 5),
            (2, 6, 'Sarah', 'Williams', 'Swimming', 8),
        ],
    ),
    'player_games': (
        ('player_id', 'game_id'),
        [(1, 1), (2, 1), (3, 2), (4, 2)],
    ),
    'batches': (
        ('id', 'game_id', 'name', 'schedule', 'coach_id'),
        [
            (1, 1, 'Morning Batch', 'Mon, Wed, Fri 9:00 AM', 1),
            (2, 2, 'Evening Batch', 'Tue, Thu 4:00 PM', 2),
        ],
    ),
    'training_sessions': (
        ('id', 'batch_id', 'title', 'description', 'date', 'duration', 'location'),
        [
            (1, 1, 'Badminton Footwork', 'Drills focusing on court movement', '2025-05-17 09:00:00', 90, 'Court 1'),
            (2, 1, 'Badminton Serve Practice', 'Improving serve accuracy and power', '2025-05-19 09:00:00', 60, 'Court 1'),
            (3, 2, 'Swimming Technique', 'Freestyle stroke correction', '2025-05-18 16:00:00', 90, 'Pool Lane 2'),
        ],
    ),
    'session_attendance': (
        ('id', 'session_id', 'player_id', 'status', 'created_at', 'updated_at'),
        [
            (1, 1, 1, 'present', '2025-05-17 09:30:00', '2025-05-17 09:30:00'),
            (2, 1, 2, 'present', '2025-05-17 09:31:00', '2025-05-17 09:31:00'),
            (3, 3, 3, 'present', '2025-05-18 16:10:00', '2025-05-18 16:10:00'),
        ],
    ),
    'payments': (
        ('id', 'player_id', 'date', 'amount', 'description'),
        [
            (1, 1, '2025-04-15', 150.00, 'Monthly Fee'),
            (2, 1, '2025-05-15', 150.00, 'Monthly Fee'),
            (3, 2, '2025-05-20', 150.00, 'Monthly Fee'),
            (4, 3, '2025-04-01', 200.00, 'Registration Fee'),
            (5, 3, '2025-05-01', 150.00, 'Monthly Fee'),
        ],
    ),
    'performance_notes': (
        ('id', 'player_id', 'coach_id', 'date', 'note'),
        [
            (1, 1, 1, '2025-05-10', 'Significant improvement in backhand technique'),
            (2, 2, 1, '2025-05-12', 'Good stamina during drills'),
            (3, 1, 1, '2025-05-11', 'Needs to work on court positioning'),
            (4, 3, 2, '2025-05-18', 'Strong performance in freestyle'),
            (5, 4, 2, '2025-05-18', 'Improving dive technique'),
        ],
    ),
    'player_stats': (
        ('id', 'player_id', 'games_played', 'goals_scored', 'assists', 'minutes_played'),
        [
            (1, 1, 12, 4, 6, 540),
            (2, 3, 8, 0, 1, 320),
        ],
    ),
}


def now():
    """UTC timestamp for ``created_at`` / ``updated_at``, in CURRENT_TIMESTAMP format."""
    return datetime.now(timezone.utc).strftime('%Y-%m-%d %H:%M:%S')


class Database:
    """Handle to the SQLite store; one connection is opened per request."""

    def __init__(self, path):
        self.path = path

    def connect(self):
        # isolation_level=None: statements autocommit unless wrapped in transaction()
        conn = sqlite3.connect(self.path, isolation_level=None)
        conn.row_factory = sqlite3.Row
        conn.execute('PRAGMA foreign_keys = ON')
        return conn

    def ping(self):
        conn = self.connect()
        try:
            conn.execute('SELECT 1').fetchone()
        finally:
            conn.close()


@contextmanager
def transaction(conn):
    """Run the enclosed statements atomically, rolling back on any error."""
    conn.execute('BEGIN')
    try:
        yield conn
    except Exception:
        conn.rollback()
        raise
    else:
        conn.commit()


def get_database(app=None):
    app = app or current_app
    return app.extensions[EXTENSION_KEY]


def get_db():
    """Connection for the current request, opened on first use."""
    if 'db' not in g:
        g.db = get_database().connect()
    return g.db


def close_db(exc=None):
    conn = g.pop('db', None)
    if conn is not None:
        conn.close()


def _statements(script):
    return [statement.strip() for statement in script.split(';') if statement.strip()]


def _create_tables(conn):
    for statement in _statements(SCHEMA):
        conn.execute(statement)


def _drop_tables(conn):
    for table in reversed(TABLES):
        conn.execute(f'DROP TABLE IF EXISTS {table}')


def seed_demo_data(conn):
    password = hash_password(DEMO_PASSWORD)
    for table in TABLES:
        if table not in SEED_ROWS:
            continue
        columns, rows = SEED_ROWS[table]
        if table == 'users':
            columns = columns + ('password',)
            rows = [row + (password,) for row in rows]
        placeholders = ', '.join('?' for _ in columns)
        conn.executemany(
            f"INSERT INTO {table} ({', '.join(columns)}) VALUES ({placeholders})",
            rows,
        )
    logger.info(f"Seeded demo data for {len(SEED_ROWS)} tables")


def init_database(database, seed=True):
    """Create missing tables; seed demo rows when the store is empty."""
    conn = database.connect()
    try:
        existing = [row[0] for row in conn.execute("SELECT name FROM sqlite_master WHERE type='table'")]
        logger.info(f"Existing tables: {existing}")
        with transaction(conn):
            _create_tables(conn)
            if seed and conn.execute('SELECT COUNT(*) FROM users').fetchone()[0] == 0:
                seed_demo_data(conn)
        logger.info("Database initialized successfully")
    except Exception as e:
        logger.error(f"Database initialization error: {e}")
        raise
    finally:
        conn.close()


def reset_database(conn, seed=True):
    """Drop, recreate and reseed every table in a single transaction."""
    # foreign keys cannot be toggled inside a transaction
    conn.execute('PRAGMA foreign_keys = OFF')
    try:
        with transaction(conn):
            _drop_tables(conn)
            _create_tables(conn)
            if seed:
                seed_demo_data(conn)
    finally:
        conn.execute('PRAGMA foreign_keys = ON')
    logger.info("Database reset and seeded successfully")
