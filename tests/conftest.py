import pytest

from club_manager import create_app
from club_manager.auth import issue_token
from club_manager.db import DEMO_PASSWORD, get_database, init_database

# Seeded accounts, see club_manager.db.SEED_ROWS
ADMIN = {'id': 1, 'role': 'admin', 'email': 'admin@example.com'}
COACH = {'id': 2, 'role': 'coach', 'email': 'coach@example.com'}
PLAYER = {'id': 3, 'role': 'player', 'email': 'player@example.com'}
PLAYER2 = {'id': 4, 'role': 'player', 'email': 'player2@example.com'}
COACH2 = {'id': 6, 'role': 'coach', 'email': 'coach2@example.com'}


@pytest.fixture
def app(tmp_path):
    app = create_app({
        'TESTING': True,
        'DATABASE': str(tmp_path / 'club.db'),
        'SECRET_KEY': 'test-secret',
    })
    init_database(get_database(app), seed=True)
    yield app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def token_for(app):
    def make(user):
        with app.app_context():
            return issue_token(user)
    return make


@pytest.fixture
def auth_headers(token_for):
    def make(user):
        return {'Authorization': f'Bearer {token_for(user)}'}
    return make


@pytest.fixture
def login(client):
    def do_login(email, password=DEMO_PASSWORD):
        response = client.post('/api/auth/login', json={'email': email, 'password': password})
        assert response.status_code == 200, response.get_json()
        return {'Authorization': f"Bearer {response.get_json()['data']['token']}"}
    return do_login
