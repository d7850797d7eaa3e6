"""
ScholarQuest API Routes
=======================

All API route blueprints for the ScholarQuest backend.

Usage:
    from scholarquest.routes import register_routes
    register_routes(app)
"""
from .auth_routes import auth_bp
from .diagram_routes import diagram_bp
from .notification_routes import notification_bp


def register_routes(app):
    """Register all route blueprints with the Flask app."""
    app.register_blueprint(auth_bp)
    app.register_blueprint(diagram_bp)
    app.register_blueprint(notification_bp)


__all__ = [
    'register_routes',
    'auth_bp',
    'diagram_bp',
    'notification_bp',
]
