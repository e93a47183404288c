"""
Notebook Grader API Routes
==========================

All API route blueprints for the Notebook Grader.

Usage:
    from backend.routes import register_routes
    register_routes(app)
"""
from .submission_routes import submission_bp
from .grading_routes import grading_bp
from .certificate_routes import certificate_bp


def register_routes(app):
    """Register all route blueprints with the Flask app."""
    app.register_blueprint(submission_bp)
    app.register_blueprint(grading_bp)
    app.register_blueprint(certificate_bp)


__all__ = [
    'register_routes',
    'submission_bp',
    'grading_bp',
    'certificate_bp',
]
