"""Batches, training sessions and attendance."""

from tests.conftest import ADMIN, COACH, COACH2, PLAYER


def test_attendance_read_by_related_and_unrelated_coach(client, auth_headers):
    # attendance 3 -> session 3 -> batch 2 -> coach 2 (user 6)
    response = client.get('/api/attendance/3', headers=auth_headers(COACH2))
    assert response.status_code == 200
    assert response.get_json()['data']['sessionId'] == 3

    response = client.get('/api/attendance/3', headers=auth_headers(COACH))
    assert response.status_code == 403
    assert response.get_json() == {'success': False, 'error': 'Access denied'}


def test_missing_attendance_is_not_found(client, auth_headers):
    response = client.get('/api/attendance/999', headers=auth_headers(COACH))
    assert response.status_code == 404
    assert response.get_json()['error'] == 'Attendance record not found'


def test_attendance_lists_are_scoped(client, auth_headers):
    coach_rows = client.get('/api/attendance', headers=auth_headers(COACH)).get_json()['data']
    assert {row['id'] for row in coach_rows} == {1, 2}

    player_rows = client.get('/api/attendance', headers=auth_headers(PLAYER)).get_json()['data']
    assert {row['playerId'] for row in player_rows} == {1}

    # filters are ignored for players
    player_rows = client.get('/api/attendance?playerId=3', headers=auth_headers(PLAYER)).get_json()['data']
    assert {row['playerId'] for row in player_rows} == {1}

    admin_rows = client.get('/api/attendance?sessionId=1', headers=auth_headers(ADMIN)).get_json()['data']
    assert {row['id'] for row in admin_rows} == {1, 2}


def test_record_attendance(client, auth_headers):
    body = {'sessionId': 2, 'playerId': 1, 'status': 'present'}
    response = client.post('/api/attendance', json=body, headers=auth_headers(COACH))
    assert response.status_code == 201

    response = client.post('/api/attendance', json=body, headers=auth_headers(COACH))
    assert response.status_code == 409

    # session 2 belongs to coach 1's batch
    response = client.post('/api/attendance', json=dict(body, playerId=3), headers=auth_headers(COACH2))
    assert response.status_code == 403

    response = client.post('/api/attendance', json=dict(body, status='late'), headers=auth_headers(COACH))
    assert response.status_code == 400

    response = client.post('/api/attendance', json=dict(body, sessionId=999), headers=auth_headers(COACH))
    assert response.status_code == 400

    response = client.post('/api/attendance', json=body, headers=auth_headers(PLAYER))
    assert response.status_code == 403


def test_update_attendance(client, auth_headers):
    response = client.put('/api/attendance/1', json={'status': 'excused', 'comments': 'Doctor visit'},
                          headers=auth_headers(COACH))
    assert response.status_code == 200
    assert response.get_json()['data'] == {'affectedRows': 1}

    row = client.get('/api/attendance/1', headers=auth_headers(PLAYER)).get_json()['data']
    assert row['status'] == 'excused'
    assert row['comments'] == 'Doctor visit'

    response = client.put('/api/attendance/1', json={'status': 'present'}, headers=auth_headers(COACH2))
    assert response.status_code == 403


def test_batch_delete_conflict_and_success(client, auth_headers):
    response = client.delete('/api/batches/1', headers=auth_headers(ADMIN))
    assert response.status_code == 409
    assert response.get_json()['error'] == 'Cannot delete batch: It contains existing training sessions.'

    response = client.post('/api/batches', json={
        'gameId': 3,
        'name': 'Weekend Batch',
        'schedule': 'Sat 10:00 AM',
        'coachId': 1,
    }, headers=auth_headers(ADMIN))
    assert response.status_code == 201
    batch_id = response.get_json()['data']['id']

    response = client.delete(f'/api/batches/{batch_id}', headers=auth_headers(COACH2))
    assert response.status_code == 403

    response = client.delete(f'/api/batches/{batch_id}', headers=auth_headers(COACH))
    assert response.status_code == 200
    assert response.get_json()['data'] == {'affectedRows': 1}

    response = client.get(f'/api/batches/{batch_id}', headers=auth_headers(ADMIN))
    assert response.status_code == 404


def test_batch_references_must_exist(client, auth_headers):
    response = client.post('/api/batches', json={'gameId': 99, 'name': 'X', 'schedule': 'Mon'},
                           headers=auth_headers(ADMIN))
    assert response.status_code == 400
    assert 'gameId' in response.get_json()['error']


def test_batch_filters(client, auth_headers):
    rows = client.get('/api/batches?coachId=2', headers=auth_headers(ADMIN)).get_json()['data']
    assert [row['id'] for row in rows] == [2]

    response = client.get('/api/batches?gameId=abc', headers=auth_headers(PLAYER))
    assert response.status_code == 400


def test_session_create_checks_target_batch(client, auth_headers):
    body = {'batchId': 1, 'title': 'Smash drills', 'date': '2025-06-01T09:00:00',
            'duration': 60, 'location': 'Court 2'}
    response = client.post('/api/training_sessions', json=body, headers=auth_headers(COACH))
    assert response.status_code == 201
    session_id = response.get_json()['data']['id']

    row = client.get(f'/api/training_sessions/{session_id}', headers=auth_headers(COACH)).get_json()['data']
    assert row['date'] == '2025-06-01 09:00:00'
    assert row['batchId'] == 1

    response = client.post('/api/training_sessions', json=dict(body, batchId=2), headers=auth_headers(COACH))
    assert response.status_code == 403

    response = client.post('/api/training_sessions', json=body, headers=auth_headers(PLAYER))
    assert response.status_code == 403

    response = client.post('/api/training_sessions', json=dict(body, duration=0), headers=auth_headers(COACH))
    assert response.status_code == 400


def test_session_cannot_move_to_other_coaches_batch(client, auth_headers):
    response = client.put('/api/training_sessions/2', json={'batchId': 2}, headers=auth_headers(COACH))
    assert response.status_code == 403

    response = client.put('/api/training_sessions/2', json={'batchId': 2}, headers=auth_headers(ADMIN))
    assert response.status_code == 200


def test_session_lists(client, auth_headers):
    rows = client.get('/api/training_sessions', headers=auth_headers(COACH2)).get_json()['data']
    assert [row['id'] for row in rows] == [3]

    # player 1 trains badminton, which is batch 1
    rows = client.get('/api/training_sessions', headers=auth_headers(PLAYER)).get_json()['data']
    assert {row['id'] for row in rows} == {1, 2}

    rows = client.get('/api/batches', headers=auth_headers(PLAYER)).get_json()['data']
    assert [row['id'] for row in rows] == [1]

    rows = client.get('/api/training_sessions?batchId=1', headers=auth_headers(ADMIN)).get_json()['data']
    assert {row['id'] for row in rows} == {1, 2}


def test_session_delete_with_attendance(client, auth_headers):
    response = client.delete('/api/training_sessions/1', headers=auth_headers(COACH))
    assert response.status_code == 409

    response = client.delete('/api/training_sessions/2', headers=auth_headers(COACH))
    assert response.status_code == 200


def test_coach_without_profile_sees_empty_lists(client, auth_headers, login):
    response = client.post('/api/users', json={
        'username': 'newcoach',
        'email': 'newcoach@example.com',
        'password': 'secret1',
        'role': 'coach',
    }, headers=auth_headers(ADMIN))
    assert response.status_code == 201

    headers = login('newcoach@example.com', 'secret1')
    for path in ('/api/players', '/api/batches', '/api/training_sessions', '/api/attendance',
                 '/api/performance_notes', '/api/player_stats'):
        response = client.get(path, headers=headers)
        assert response.status_code == 200, path
        assert response.get_json()['data'] == [], path


def test_list_and_single_reads_agree(client, auth_headers):
    for path in ('/api/batches', '/api/training_sessions'):
        every_id = {row['id'] for row in client.get(path, headers=auth_headers(ADMIN)).get_json()['data']}
        for user in (COACH, COACH2, PLAYER):
            listed = {row['id'] for row in client.get(path, headers=auth_headers(user)).get_json()['data']}
            assert listed, (path, user['id'])
            for row_id in every_id:
                status = client.get(f'{path}/{row_id}', headers=auth_headers(user)).status_code
                assert status == (200 if row_id in listed else 403), (path, user['id'], row_id)


def test_attendance_enrolls_player_in_batch(client, auth_headers):
    # player 1 is not signed up for swimming; attending a swimming session enrolls them
    assert client.get('/api/batches/2', headers=auth_headers(PLAYER)).status_code == 403

    response = client.post('/api/attendance', json={'sessionId': 3, 'playerId': 1, 'status': 'present'},
                           headers=auth_headers(COACH2))
    assert response.status_code == 201

    assert client.get('/api/batches/2', headers=auth_headers(PLAYER)).status_code == 200
    rows = client.get('/api/training_sessions', headers=auth_headers(PLAYER)).get_json()['data']
    assert {row['id'] for row in rows} == {1, 2, 3}
