"""
Session Manager - Persistent session storage (one JSON file per session),
append-only spin recording, and Game State replay per session.
"""

import os
import json
import math
import threading
from contextlib import contextmanager
from datetime import datetime

from config import SESSIONS_DIR, DEFAULT_UNIT_VALUE, DEFAULT_INITIAL_BALANCE

from blockbet.engine.outcomes import validate_outcome
from blockbet.engine.replay_engine import compute_state, SessionParams


class SessionNotFound(LookupError):
    """No session file exists for the requested id."""


class SessionClosed(RuntimeError):
    """The session was ended and no longer accepts spins."""


def _coerce_number(value):
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError, OverflowError):
        return None
    if not math.isfinite(number):
        return None
    return int(number) if number.is_integer() else number


def normalize_session_params(initial_balance=None, unit_value=None):
    """Return SessionParams with unsafe values replaced by the defaults."""
    unit = _coerce_number(unit_value)
    if unit is None or unit <= 0:
        unit = DEFAULT_UNIT_VALUE
    balance = _coerce_number(initial_balance)
    if balance is None:
        balance = DEFAULT_INITIAL_BALANCE
    return SessionParams(unit_value=unit, initial_balance=balance)


def session_view(session):
    """Session document without its spins (API shape)."""
    return {key: value for key, value in session.items() if key != 'spins'}


class SessionManager:
    def __init__(self, sessions_dir=SESSIONS_DIR):
        self.sessions_dir = sessions_dir
        os.makedirs(self.sessions_dir, exist_ok=True)
        self._locks = {}
        self._locks_guard = threading.Lock()
        self._last_id_path = os.path.join(self.sessions_dir, 'last_session_id')

    # ─── Locking ──────────────────────────────────────────────────────

    @contextmanager
    def session_lock(self, session_id):
        """Serialize writers of one session; other sessions are unaffected."""
        with self._locks_guard:
            lock = self._locks.setdefault(session_id, threading.Lock())
        with lock:
            yield

    # ─── Files ────────────────────────────────────────────────────────

    def _path(self, session_id):
        return os.path.join(self.sessions_dir, f'session_{session_id}.json')

    def _session_ids(self):
        ids = []
        for filename in os.listdir(self.sessions_dir):
            if filename.startswith('session_') and filename.endswith('.json'):
                try:
                    ids.append(int(filename[len('session_'):-len('.json')]))
                except ValueError:
                    continue
        return ids

    def _next_session_id(self):
        """Allocate an id above every id ever issued. Caller holds _locks_guard."""
        last_id = 0
        if os.path.exists(self._last_id_path):
            with open(self._last_id_path, 'r') as f:
                try:
                    last_id = int(f.read().strip() or 0)
                except ValueError:
                    last_id = 0
        session_id = max(last_id, max(self._session_ids(), default=0)) + 1
        with open(self._last_id_path, 'w') as f:
            f.write(str(session_id))
        return session_id

    def _save(self, session):
        """Save a session to its JSON file."""
        with open(self._path(session['id']), 'w') as f:
            json.dump(session, f, indent=2, default=str)

    def _load(self, session_id):
        filepath = self._path(session_id)
        if not os.path.exists(filepath):
            return None
        with open(filepath, 'r') as f:
            return json.load(f)

    def _require(self, session_id):
        session = self._load(session_id)
        if session is None:
            raise SessionNotFound(f'Session {session_id} not found')
        return session

    # ─── Sessions ─────────────────────────────────────────────────────

    def create_session(self, initial_balance=None, unit_value=None):
        """Start a new session and return its public view."""
        params = normalize_session_params(initial_balance, unit_value)
        now = datetime.now().isoformat()

        with self._locks_guard:
            session_id = self._next_session_id()
            session = {
                'id': session_id,
                'start_time': now,
                'updated_at': now,
                'initial_balance': params.initial_balance,
                'unit_value': params.unit_value,
                'is_active': True,
                'spins': [],
            }
            self._save(session)

        print(f"[Session] Created session {session_id} "
              f"(unit=${params.unit_value}, balance=${params.initial_balance})")
        return session_view(session)

    def get_session(self, session_id):
        session = self._load(session_id)
        return session_view(session) if session else None

    def end_session(self, session_id):
        """Mark a session completed; later spins are rejected."""
        with self.session_lock(session_id):
            session = self._require(session_id)
            if session['is_active']:
                session['is_active'] = False
                session['ended_at'] = datetime.now().isoformat()
                session['updated_at'] = session['ended_at']
                self._save(session)
                print(f"[Session] Ended session {session_id} "
                      f"after {len(session['spins'])} spins")
            return session_view(session)

    def delete_session(self, session_id):
        """Delete a session and its spins. Returns False if it did not exist."""
        with self.session_lock(session_id):
            filepath = self._path(session_id)
            if not os.path.exists(filepath):
                return False
            os.remove(filepath)
        # The lock entry stays: a writer may already be waiting on it.
        print(f"[Session] Deleted session {session_id}")
        return True

    def list_sessions(self):
        """All sessions, newest first, with a replayed P/L summary."""
        sessions = []
        for session_id in sorted(self._session_ids(), reverse=True):
            try:
                session = self._load(session_id)
                if session is None:
                    continue
                state = compute_state(session['spins'], self.session_params(session))
            except (json.JSONDecodeError, KeyError, TypeError, ValueError) as e:
                print(f"[Session] Skipping unreadable session {session_id}: {e}")
                continue

            summary = session_view(session)
            summary.update({
                'total_spins': state.total_spins,
                'pnl_units': state.pnl_units,
                'current_balance': state.current_balance,
            })
            sessions.append(summary)
        return sessions

    @staticmethod
    def session_params(session):
        return normalize_session_params(
            session.get('initial_balance'), session.get('unit_value'))

    # ─── Spins & State ────────────────────────────────────────────────

    def get_spins(self, session_id):
        session = self._require(session_id)
        return sorted(session['spins'], key=lambda s: s['sequence_index'])

    def get_state(self, session_id):
        """Replay the stored history into a fresh GameState."""
        with self.session_lock(session_id):
            session = self._require(session_id)
            return compute_state(session['spins'], self.session_params(session))

    def record_spin(self, session_id, outcome):
        """Append one outcome and return (spin record, recomputed GameState).

        Append and replay happen under the session lock, so the returned
        state always includes this spin and nothing recorded after it.
        """
        outcome = validate_outcome(outcome)

        with self.session_lock(session_id):
            session = self._require(session_id)
            if not session.get('is_active', True):
                raise SessionClosed(f'Session {session_id} has ended')

            now = datetime.now().isoformat()
            sequence_index = len(session['spins']) + 1
            spin = {
                'id': f'{session_id}-{sequence_index}',
                'session_id': session_id,
                'sequence_index': sequence_index,
                'outcome': outcome,
                'created_at': now,
            }
            session['spins'].append(spin)
            session['updated_at'] = now
            self._save(session)

            state = compute_state(session['spins'], self.session_params(session))

        print(f"[Spin] Session {session_id} #{spin['sequence_index']}: {outcome} "
              f"-> P/L {state.pnl_units:+d}U")
        return spin, state
