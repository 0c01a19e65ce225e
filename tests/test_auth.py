from datetime import datetime, timedelta, timezone

import jwt

from tests.conftest import ADMIN, PLAYER


def test_missing_token(client):
    response = client.get('/api/games')
    assert response.status_code == 401
    assert response.get_json() == {'success': False, 'error': 'Authentication required'}


def test_malformed_token(client):
    response = client.get('/api/games', headers={'Authorization': 'Bearer not-a-jwt'})
    assert response.status_code == 401


def test_forged_token(client):
    token = jwt.encode({'sub': '1', 'role': 'admin',
                        'exp': datetime.now(timezone.utc) + timedelta(hours=1)},
                       'wrong-secret', algorithm='HS256')
    response = client.get('/api/games', headers={'Authorization': f'Bearer {token}'})
    assert response.status_code == 401
    assert response.get_json()['error'] == 'Invalid token'


def test_expired_token(client):
    token = jwt.encode({'sub': '1', 'role': 'admin',
                        'exp': datetime.now(timezone.utc) - timedelta(minutes=5)},
                       'test-secret', algorithm='HS256')
    response = client.get('/api/games', headers={'Authorization': f'Bearer {token}'})
    assert response.status_code == 401


def test_role_claim_must_match_store(client):
    token = jwt.encode({'sub': '3', 'role': 'admin',
                        'exp': datetime.now(timezone.utc) + timedelta(hours=1)},
                       'test-secret', algorithm='HS256')
    response = client.get('/api/users', headers={'Authorization': f'Bearer {token}'})
    assert response.status_code == 401


def test_inactive_account(client, auth_headers):
    response = client.put('/api/users/3', json={'status': 'inactive'}, headers=auth_headers(ADMIN))
    assert response.status_code == 200

    response = client.get('/api/games', headers=auth_headers(PLAYER))
    assert response.status_code == 403
    assert response.get_json()['error'] == 'Account is not active'

    response = client.post('/api/auth/login', json={'email': PLAYER['email'], 'password': 'password123'})
    assert response.status_code == 403


def test_login(client):
    response = client.post('/api/auth/login', json={'email': 'Admin@Example.com', 'password': 'password123'})
    assert response.status_code == 200
    data = response.get_json()['data']
    assert data['role'] == 'admin'
    assert 'password' not in data
    assert data['token']


def test_login_wrong_password(client):
    response = client.post('/api/auth/login', json={'email': 'admin@example.com', 'password': 'nope'})
    assert response.status_code == 401
    assert response.get_json()['error'] == 'Invalid email or password'


def test_register_player(client):
    response = client.post('/api/auth/register', json={
        'email': 'new.player@example.com',
        'password': 'secret1',
        'role': 'player',
        'firstName': 'New',
        'lastName': 'Player',
        'sports': ['badminton', 'Tennis'],
    })
    assert response.status_code == 201
    data = response.get_json()['data']
    assert data['username'] == 'new.player@example.com'

    headers = {'Authorization': f"Bearer {data['token']}"}
    players = client.get('/api/players', headers=headers).get_json()['data']
    assert len(players) == 1
    player = client.get(f"/api/players/{players[0]['id']}", headers=headers).get_json()['data']
    assert player['sports'] == ['Badminton', 'Tennis']


def test_register_player_without_sports_creates_nothing(client):
    payload = {
        'email': 'nosport@example.com',
        'password': 'secret1',
        'role': 'player',
        'firstName': 'No',
        'lastName': 'Sport',
        'sports': [],
    }
    response = client.post('/api/auth/register', json=payload)
    assert response.status_code == 400
    assert response.get_json()['error'] == 'Player registration requires selecting at least one sport.'

    response = client.post('/api/auth/login', json={'email': payload['email'], 'password': 'secret1'})
    assert response.status_code == 401


def test_register_unknown_sport_creates_nothing(client):
    payload = {
        'email': 'curling@example.com',
        'password': 'secret1',
        'role': 'player',
        'firstName': 'Ice',
        'lastName': 'Person',
        'sports': ['Curling'],
    }
    assert client.post('/api/auth/register', json=payload).status_code == 400
    response = client.post('/api/auth/login', json={'email': payload['email'], 'password': 'secret1'})
    assert response.status_code == 401


def test_register_rejects_admin_and_duplicates(client):
    payload = {
        'email': 'admin@example.com',
        'password': 'x',
        'role': 'admin',
        'firstName': 'A',
        'lastName': 'B',
    }
    response = client.post('/api/auth/register', json=payload)
    assert response.status_code == 400
    assert response.get_json()['error'] == 'Invalid role specified'

    response = client.post('/api/auth/register', json=dict(payload, role='coach'))
    assert response.status_code == 409


def test_login_rejects_non_string_credentials(client):
    response = client.post('/api/auth/login', json={'email': 'admin@example.com', 'password': 12345})
    assert response.status_code == 400
    assert response.get_json() == {'success': False, 'error': 'Email and password must be strings'}

    response = client.post('/api/auth/login', json={'email': ['admin@example.com'], 'password': 'password123'})
    assert response.status_code == 400


def test_register_rejects_non_string_password(client):
    payload = {
        'email': 'numbers@example.com',
        'password': 12345,
        'role': 'coach',
        'firstName': 'Num',
        'lastName': 'Bers',
    }
    response = client.post('/api/auth/register', json=payload)
    assert response.status_code == 400
    assert response.get_json()['error'] == 'password must be a string'

    response = client.post('/api/auth/register', json=dict(payload, password='secret1', email={'a': '@'}))
    assert response.status_code == 400
    assert response.get_json()['error'] == 'email must be a string'
