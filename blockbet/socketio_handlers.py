"""
SocketIO Event Handlers - Real-time WebSocket events for session viewers.
Handles spin input and pushes the recomputed Game State to every client
watching the same session.
"""

from flask import current_app
from flask_socketio import emit, join_room, leave_room

from blockbet import socketio
from blockbet.engine.outcomes import InvalidOutcome
from blockbet.routes import parse_session_id
from blockbet.session.session_manager import SessionNotFound, SessionClosed


def room_name(session_id):
    return f'session_{session_id}'


def broadcast_state(session_id, state):
    """Push a fresh Game State to everyone in the session's room."""
    socketio.emit('state_update', state.to_dict(), to=room_name(session_id))


def _session_id_from(data):
    if not isinstance(data, dict):
        return None
    return parse_session_id(data.get('session_id'))


@socketio.on('connect')
def handle_connect():
    emit('connected', {'message': 'Connected to Roulette Block Strategy'})


@socketio.on('join_session')
def handle_join_session(data):
    session_id = _session_id_from(data)
    if session_id is None:
        emit('error', {'message': 'Invalid session_id.'})
        return

    try:
        state = current_app.extensions['session_manager'].get_state(session_id)
    except SessionNotFound:
        emit('error', {'message': 'Session not found'})
        return

    join_room(room_name(session_id))
    emit('state_update', state.to_dict())


@socketio.on('leave_session')
def handle_leave_session(data):
    session_id = _session_id_from(data)
    if session_id is not None:
        leave_room(room_name(session_id))


@socketio.on('get_state')
def handle_get_state(data):
    session_id = _session_id_from(data)
    if session_id is None:
        emit('error', {'message': 'Invalid session_id.'})
        return

    try:
        state = current_app.extensions['session_manager'].get_state(session_id)
    except SessionNotFound:
        emit('error', {'message': 'Session not found'})
        return

    emit('state_update', state.to_dict())


@socketio.on('submit_spin')
def handle_submit_spin(data):
    """Submit the actual spin result."""
    session_id = _session_id_from(data)
    if session_id is None:
        emit('error', {'message': 'Invalid session_id.'})
        return

    try:
        spin, state = current_app.extensions['session_manager'].record_spin(
            session_id, data.get('result'))
    except InvalidOutcome as e:
        emit('error', {'message': str(e)})
        return
    except SessionNotFound:
        emit('error', {'message': 'Session not found'})
        return
    except SessionClosed as e:
        emit('error', {'message': str(e)})
        return

    join_room(room_name(session_id))
    emit('spin_processed', {'spin': spin, 'state': state.to_dict()}, to=room_name(session_id))
