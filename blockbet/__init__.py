"""
Flask Application Factory with SocketIO initialization.
"""

from flask import Flask
from flask_socketio import SocketIO

from config import SECRET_KEY, SESSIONS_DIR, ASYNC_MODE

socketio = SocketIO()


def create_app(sessions_dir=None, async_mode=None):
    app = Flask(__name__)

    app.config['SECRET_KEY'] = SECRET_KEY

    from blockbet.session.session_manager import SessionManager
    app.extensions['session_manager'] = SessionManager(sessions_dir or SESSIONS_DIR)

    from blockbet.routes import main_bp
    app.register_blueprint(main_bp)

    # Handlers must be registered before init_app so every new server picks them up
    from blockbet import socketio_handlers  # noqa: F401

    socketio.init_app(app, cors_allowed_origins="*", async_mode=async_mode or ASYNC_MODE)

    return app
