#!/usr/bin/env python3
"""
ScholarQuest - Gamified Learning Platform Backend
=================================================
Run: python3 -m scholarquest.app
Then open: http://localhost:3000
"""

import logging
import os

from flask import Flask, jsonify, send_from_directory
from flask_cors import CORS

from scholarquest.config import config, STATIC_DIR, HOST, PORT, DEBUG
from scholarquest.auth import init_auth
from scholarquest.routes import register_routes

logger = logging.getLogger(__name__)


def setup_logging(level=None):
    """Configure root logging once for the server process."""
    logging.basicConfig(
        level=getattr(logging, (level or config.log_level).upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s - %(message)s",
    )


def create_app(static_folder=None):
    """Build the Flask app with auth hooks, blueprints and SPA fallback."""
    # Static files are served by serve_static so unknown paths fall back to the SPA
    app = Flask(__name__, static_folder=None)
    app.config["SPA_DIR"] = str(static_folder or STATIC_DIR)
    CORS(app)

    # ══════════════════════════════════════════════════════════════
    # AUTHENTICATION
    # ══════════════════════════════════════════════════════════════
    init_auth(app)

    register_routes(app)

    @app.route('/api/health', methods=['GET'])
    def health():
        return jsonify({"status": "ok"})

    @app.route('/')
    def index():
        """Serve the React app."""
        return _serve_index(app)

    @app.route('/<path:path>')
    def serve_static(path):
        """Serve static files or fall back to index.html for SPA routing."""
        if path.startswith('api/'):
            return jsonify({"error": "Not found"}), 404
        spa_dir = app.config["SPA_DIR"]
        if os.path.isfile(os.path.join(spa_dir, path)):
            return send_from_directory(spa_dir, path)
        return _serve_index(app)

    return app


def _serve_index(app):
    index_path = os.path.join(app.config["SPA_DIR"], "index.html")
    if not os.path.exists(index_path):
        return "ScholarQuest frontend not built", 200, {"Content-Type": "text/plain"}
    return send_from_directory(app.config["SPA_DIR"], "index.html")


# ══════════════════════════════════════════════════════════════
# MAIN
# ══════════════════════════════════════════════════════════════

if __name__ == '__main__':
    setup_logging()
    app = create_app()

    print()
    print("+" + "=" * 50 + "+")
    print("|  ScholarQuest - Gamified Learning Platform       |")
    print("+" + "=" * 50 + "+")
    print("|                                                  |")
    print(f"|  Open in browser: http://localhost:{PORT:<14}|")
    print("|                                                  |")
    print("|  Press Ctrl+C to stop                            |")
    print("+" + "=" * 50 + "+")
    print()

    app.run(host=HOST, port=PORT, debug=DEBUG)
