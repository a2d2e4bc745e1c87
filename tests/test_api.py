"""
HTTP + SocketIO Integration Tests
Tests the full flow: create session → record spins → fetch state → end / delete,
and the real-time push of the recomputed Game State to session viewers.
"""
import pytest
import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from config import DEFAULT_UNIT_VALUE
from blockbet import create_app, socketio


@pytest.fixture
def app(tmp_path):
    app = create_app(sessions_dir=str(tmp_path / 'sessions'), async_mode='threading')
    app.config['TESTING'] = True
    return app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def sio_client(app, client):
    sio = socketio.test_client(app, flask_test_client=client)
    yield sio
    if sio.is_connected():
        sio.disconnect()


def _create(client, **body):
    resp = client.post('/api/sessions', json=body)
    assert resp.status_code == 201
    return resp.get_json()


def _events(sio, name):
    return [event['args'][0] for event in sio.get_received() if event['name'] == name]


# ═══════════════════════════════════════════════════════════════
# HTTP API
# ═══════════════════════════════════════════════════════════════

class TestHttpApi:
    def test_health(self, client):
        resp = client.get('/health')
        assert resp.status_code == 200
        assert resp.get_json()['status'] == 'ok'

    def test_create_session_defaults(self, client):
        session = _create(client)
        assert session['unit_value'] == DEFAULT_UNIT_VALUE
        assert session['initial_balance'] == 0
        assert session['is_active'] is True

    def test_create_session_without_body(self, client):
        resp = client.post('/api/sessions')
        assert resp.status_code == 201

    def test_create_session_normalizes_bad_unit(self, client):
        session = _create(client, unit_value=-3, initial_balance=100)
        assert session['unit_value'] == DEFAULT_UNIT_VALUE
        assert session['initial_balance'] == 100

    def test_create_session_normalizes_huge_unit(self, client):
        body = '{"unit_value": 1' + '0' * 400 + ', "initial_balance": 50}'
        resp = client.post('/api/sessions', data=body, content_type='application/json')
        assert resp.status_code == 201
        assert resp.get_json()['unit_value'] == DEFAULT_UNIT_VALUE
        assert resp.get_json()['initial_balance'] == 50

    def test_deleted_session_id_not_reused(self, client):
        _create(client)
        second = _create(client)
        client.delete(f"/api/sessions/{second['id']}")
        assert _create(client)['id'] == second['id'] + 1

    def test_fetch_new_session_state(self, client):
        session = _create(client)
        resp = client.get(f"/api/sessions/{session['id']}")
        assert resp.status_code == 200
        state = resp.get_json()
        assert state['total_spins'] == 0
        assert state['current_block_number'] == 1
        assert [bet['name'] for bet in state['next_bets']] == ['Anchor: ODD', 'Mix: Dozen 2 (13-24)']

    def test_fetch_missing_session(self, client):
        resp = client.get('/api/sessions/404')
        assert resp.status_code == 404
        assert resp.get_json()['message'] == 'Session not found'

    def test_record_spins(self, client):
        session = _create(client, initial_balance=100, unit_value=5)
        client.post('/api/spins', json={'session_id': session['id'], 'result': '13'})
        resp = client.post('/api/spins', json={'session_id': session['id'], 'result': '16'})
        assert resp.status_code == 201
        state = resp.get_json()
        assert state['pnl_units'] == 4
        assert state['pnl_currency'] == 20
        assert state['current_balance'] == 120
        assert state['last_outcome'] == '16'
        assert state['party_mode_active'] is True
        assert state['next_bets'][-1]['name'] == 'Party: 20-21-23-24'
        assert [s['outcome'] for s in state['full_history']] == ['13', '16']

    def test_record_double_zero(self, client):
        session = _create(client)
        resp = client.post('/api/spins', json={'session_id': session['id'], 'result': '00'})
        assert resp.status_code == 201
        assert resp.get_json()['pnl_units'] == -2

    @pytest.mark.parametrize('result', ['37', '', 'red', None, '-1'])
    def test_invalid_outcome_rejected(self, client, result):
        session = _create(client)
        resp = client.post('/api/spins', json={'session_id': session['id'], 'result': result})
        assert resp.status_code == 400
        assert resp.get_json()['field'] == 'result'
        state = client.get(f"/api/sessions/{session['id']}").get_json()
        assert state['total_spins'] == 0

    @pytest.mark.parametrize('session_id', [None, 'abc', 0, -1, True, 1.5])
    def test_invalid_session_id_rejected(self, client, session_id):
        resp = client.post('/api/spins', json={'session_id': session_id, 'result': '5'})
        assert resp.status_code == 400
        assert resp.get_json()['field'] == 'session_id'

    def test_spin_for_unknown_session(self, client):
        resp = client.post('/api/spins', json={'session_id': 77, 'result': '5'})
        assert resp.status_code == 404

    def test_spin_for_ended_session(self, client):
        session = _create(client)
        resp = client.post(f"/api/sessions/{session['id']}/end")
        assert resp.status_code == 200
        assert resp.get_json()['is_active'] is False

        resp = client.post('/api/spins', json={'session_id': session['id'], 'result': '5'})
        assert resp.status_code == 409

    def test_end_missing_session(self, client):
        assert client.post('/api/sessions/5/end').status_code == 404

    def test_list_sessions(self, client):
        first = _create(client)
        second = _create(client)
        client.post('/api/spins', json={'session_id': first['id'], 'result': '13'})
        sessions = client.get('/api/sessions').get_json()
        assert [s['id'] for s in sessions] == [second['id'], first['id']]
        assert sessions[1]['total_spins'] == 1
        assert sessions[1]['pnl_units'] == 3

    def test_delete_session(self, client):
        session = _create(client)
        resp = client.delete(f"/api/sessions/{session['id']}")
        assert resp.status_code == 204
        assert client.get(f"/api/sessions/{session['id']}").status_code == 404
        assert client.delete(f"/api/sessions/{session['id']}").status_code == 404

    def test_fetch_is_idempotent(self, client):
        session = _create(client)
        for result in ['2', '4', '6', '0']:
            client.post('/api/spins', json={'session_id': session['id'], 'result': result})
        first = client.get(f"/api/sessions/{session['id']}").get_json()
        second = client.get(f"/api/sessions/{session['id']}").get_json()
        assert first == second


# ═══════════════════════════════════════════════════════════════
# SocketIO
# ═══════════════════════════════════════════════════════════════

class TestSocketIO:
    def test_connect(self, sio_client):
        connected = _events(sio_client, 'connected')
        assert len(connected) == 1

    def test_join_session_sends_state(self, client, sio_client):
        session = _create(client)
        sio_client.get_received()
        sio_client.emit('join_session', {'session_id': session['id']})
        states = _events(sio_client, 'state_update')
        assert len(states) == 1
        assert states[0]['total_spins'] == 0

    def test_join_unknown_session(self, sio_client):
        sio_client.get_received()
        sio_client.emit('join_session', {'session_id': 123})
        errors = _events(sio_client, 'error')
        assert errors == [{'message': 'Session not found'}]

    def test_submit_spin(self, client, sio_client):
        session = _create(client)
        sio_client.get_received()
        sio_client.emit('submit_spin', {'session_id': session['id'], 'result': '7'})
        processed = _events(sio_client, 'spin_processed')
        assert len(processed) == 1
        assert processed[0]['spin']['outcome'] == '7'
        assert processed[0]['spin']['sequence_index'] == 1
        assert processed[0]['state']['next_bets'][-1]['rationale'] == 'Trigger: Seed % 7 == 0'

    def test_submit_invalid_spin(self, client, sio_client):
        session = _create(client)
        sio_client.get_received()
        sio_client.emit('submit_spin', {'session_id': session['id'], 'result': '40'})
        errors = _events(sio_client, 'error')
        assert len(errors) == 1
        assert 'Invalid outcome' in errors[0]['message']

    def test_get_state(self, client, sio_client):
        session = _create(client)
        client.post('/api/spins', json={'session_id': session['id'], 'result': '2'})
        sio_client.get_received()
        sio_client.emit('get_state', {'session_id': session['id']})
        states = _events(sio_client, 'state_update')
        assert states[0]['total_spins'] == 1

    def test_http_spin_pushes_to_room(self, client, sio_client):
        session = _create(client)
        sio_client.emit('join_session', {'session_id': session['id']})
        sio_client.get_received()

        client.post('/api/spins', json={'session_id': session['id'], 'result': '13'})
        states = _events(sio_client, 'state_update')
        assert len(states) == 1
        assert states[0]['pnl_units'] == 3

    def test_leave_session_stops_updates(self, client, sio_client):
        session = _create(client)
        sio_client.emit('join_session', {'session_id': session['id']})
        sio_client.emit('leave_session', {'session_id': session['id']})
        sio_client.get_received()

        client.post('/api/spins', json={'session_id': session['id'], 'result': '13'})
        assert _events(sio_client, 'state_update') == []


if __name__ == '__main__':
    pytest.main([__file__, '-v'])
