#!/usr/bin/env python3
"""
Roulette Block Strategy - Entry Point
Start the Flask + SocketIO server.
"""

import os

from config import HOST, PORT, DEBUG, DATA_DIR, SESSIONS_DIR, ASYNC_MODE

# Create data directories
os.makedirs(SESSIONS_DIR, exist_ok=True)

from blockbet import create_app, socketio  # noqa: E402

app = create_app()

if __name__ == '__main__':
    print("=" * 60)
    print("  Roulette Block Strategy v1.0")
    print("=" * 60)
    print(f"  Server:    http://localhost:{PORT}")
    print(f"  Data dir:  {DATA_DIR}")
    print(f"  Async:     {ASYNC_MODE}")
    print(f"  Debug:     {DEBUG}")
    print("=" * 60)
    print()

    socketio.run(app, host=HOST, port=PORT, debug=DEBUG, use_reloader=False)
