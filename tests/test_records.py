"""Payments, performance notes, stats and the service endpoints."""

from tests.conftest import ADMIN, COACH, COACH2, PLAYER


def test_payments_scope(client, auth_headers):
    rows = client.get('/api/payments', headers=auth_headers(PLAYER)).get_json()['data']
    assert {row['id'] for row in rows} == {1, 2}

    assert client.get('/api/payments', headers=auth_headers(COACH)).status_code == 403
    assert client.get('/api/payments/3', headers=auth_headers(PLAYER)).status_code == 403
    assert client.get('/api/payments/1', headers=auth_headers(PLAYER)).status_code == 200


def test_create_payment(client, auth_headers):
    body = {'playerId': 2, 'date': '2025-06-15', 'amount': 150, 'description': 'Monthly Fee'}
    response = client.post('/api/payments', json=body, headers=auth_headers(ADMIN))
    assert response.status_code == 201

    assert client.post('/api/payments', json=body, headers=auth_headers(PLAYER)).status_code == 403

    response = client.post('/api/payments', json=dict(body, date='15/06/2025'), headers=auth_headers(ADMIN))
    assert response.status_code == 400

    response = client.post('/api/payments', json=dict(body, amount=-5), headers=auth_headers(ADMIN))
    assert response.status_code == 400


def test_notes_scope(client, auth_headers):
    rows = client.get('/api/performance_notes', headers=auth_headers(COACH)).get_json()['data']
    assert {row['id'] for row in rows} == {1, 2, 3}

    rows = client.get('/api/performance_notes', headers=auth_headers(PLAYER)).get_json()['data']
    assert {row['id'] for row in rows} == {1, 3}

    assert client.get('/api/performance_notes/4', headers=auth_headers(COACH)).status_code == 403


def test_note_author_is_derived(client, auth_headers):
    response = client.post('/api/performance_notes', json={
        'playerId': 2, 'coachId': 2, 'date': '2025-06-01', 'note': 'Great footwork',
    }, headers=auth_headers(COACH))
    assert response.status_code == 201
    note_id = response.get_json()['data']['id']

    note = client.get(f'/api/performance_notes/{note_id}', headers=auth_headers(ADMIN)).get_json()['data']
    assert note['coachId'] == 1

    response = client.put(f'/api/performance_notes/{note_id}', json={'note': 'Edited'},
                          headers=auth_headers(COACH2))
    assert response.status_code == 403

    response = client.put(f'/api/performance_notes/{note_id}', json={'note': 'Edited'},
                          headers=auth_headers(COACH))
    assert response.status_code == 200

    response = client.post('/api/performance_notes', json={
        'playerId': 1, 'date': '2025-06-01', 'note': 'x',
    }, headers=auth_headers(PLAYER))
    assert response.status_code == 403


def test_player_stats(client, auth_headers):
    response = client.post('/api/player_stats', json={'playerId': 2, 'gamesPlayed': 3},
                           headers=auth_headers(COACH))
    assert response.status_code == 201
    stats_id = response.get_json()['data']['id']

    response = client.post('/api/player_stats', json={'playerId': 2, 'gamesPlayed': 3},
                           headers=auth_headers(COACH2))
    assert response.status_code == 403

    response = client.put(f'/api/player_stats/{stats_id}', json={'goalsScored': 2},
                          headers=auth_headers(COACH))
    assert response.status_code == 200

    assert client.delete(f'/api/player_stats/{stats_id}', headers=auth_headers(COACH)).status_code == 403
    assert client.delete(f'/api/player_stats/{stats_id}', headers=auth_headers(ADMIN)).status_code == 200

    rows = client.get('/api/player_stats', headers=auth_headers(PLAYER)).get_json()['data']
    assert [row['playerId'] for row in rows] == [1]


def test_reset_database(client, auth_headers):
    client.post('/api/games', json={'name': 'Cricket'}, headers=auth_headers(ADMIN))

    assert client.post('/api/admin/reset-db', headers=auth_headers(COACH)).status_code == 403

    response = client.post('/api/admin/reset-db', headers=auth_headers(ADMIN))
    assert response.status_code == 200

    games = client.get('/api/games', headers=auth_headers(ADMIN)).get_json()['data']
    assert len(games) == 5


def test_status_and_health(client):
    response = client.get('/api/status')
    assert response.status_code == 200
    assert response.get_json() == {'success': True, 'data': {'connected': True}}

    response = client.get('/health')
    assert response.get_json()['status'] == 'healthy'
    assert response.headers['Access-Control-Allow-Origin'] == '*'


def test_unknown_route_and_method(client, auth_headers):
    response = client.get('/api/nothing-here')
    assert response.status_code == 404
    assert response.get_json()['success'] is False

    response = client.patch('/api/games', headers=auth_headers(ADMIN))
    assert response.status_code == 405


def test_body_must_be_json_object(client, auth_headers):
    response = client.post('/api/games', data='nope', content_type='application/json',
                           headers=auth_headers(ADMIN))
    assert response.status_code == 400
