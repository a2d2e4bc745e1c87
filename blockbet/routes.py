"""
HTTP Routes - Session and spin API endpoints.
Every state-returning endpoint replays the stored history through the engine.
"""

from flask import Blueprint, jsonify, request, current_app

from blockbet.engine.outcomes import validate_outcome, InvalidOutcome
from blockbet.session.session_manager import SessionNotFound, SessionClosed

main_bp = Blueprint('main', __name__)


def _session_mgr():
    return current_app.extensions['session_manager']


def _not_found():
    return jsonify({'message': 'Session not found'}), 404


def parse_session_id(value):
    """Session ids are positive integers; numeric strings are accepted."""
    if isinstance(value, bool):
        return None
    try:
        session_id = int(value)
    except (TypeError, ValueError):
        return None
    if isinstance(value, float) and value != session_id:
        return None
    return session_id if session_id > 0 else None


@main_bp.route('/health')
def health():
    return jsonify({'status': 'ok', 'service': 'Roulette Block Strategy'})


@main_bp.route('/api/sessions', methods=['POST'])
def create_session():
    data = request.get_json(silent=True) or {}
    session = _session_mgr().create_session(
        initial_balance=data.get('initial_balance'),
        unit_value=data.get('unit_value'),
    )
    return jsonify(session), 201


@main_bp.route('/api/sessions', methods=['GET'])
def list_sessions():
    return jsonify(_session_mgr().list_sessions())


@main_bp.route('/api/sessions/<int:session_id>', methods=['GET'])
def get_session_state(session_id):
    try:
        state = _session_mgr().get_state(session_id)
    except SessionNotFound:
        return _not_found()
    return jsonify(state.to_dict())


@main_bp.route('/api/sessions/<int:session_id>', methods=['DELETE'])
def delete_session(session_id):
    if not _session_mgr().delete_session(session_id):
        return _not_found()
    return '', 204


@main_bp.route('/api/sessions/<int:session_id>/end', methods=['POST'])
def end_session(session_id):
    try:
        session = _session_mgr().end_session(session_id)
    except SessionNotFound:
        return _not_found()
    return jsonify(session)


@main_bp.route('/api/spins', methods=['POST'])
def create_spin():
    """Record an outcome and return the recomputed Game State."""
    data = request.get_json(silent=True) or {}

    session_id = parse_session_id(data.get('session_id'))
    if session_id is None:
        return jsonify({'message': 'session_id must be a positive integer', 'field': 'session_id'}), 400

    try:
        outcome = validate_outcome(data.get('result'))
        _, state = _session_mgr().record_spin(session_id, outcome)
    except InvalidOutcome as e:
        return jsonify({'message': str(e), 'field': 'result'}), 400
    except SessionNotFound:
        return _not_found()
    except SessionClosed as e:
        return jsonify({'message': str(e)}), 409

    from blockbet.socketio_handlers import broadcast_state
    broadcast_state(session_id, state)

    return jsonify(state.to_dict()), 201
