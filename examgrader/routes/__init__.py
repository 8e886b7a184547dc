"""
Exam Grader API Routes
======================

All API route blueprints.

Usage:
    from examgrader.routes import register_routes
    register_routes(app)
"""
from .auth_routes import auth_bp
from .class_routes import class_bp
from .exam_routes import exam_bp
from .grade_routes import grade_bp
from .history_routes import history_bp


def register_routes(app):
    """Register all route blueprints with the Flask app."""
    app.register_blueprint(auth_bp)
    app.register_blueprint(class_bp)
    app.register_blueprint(exam_bp)
    app.register_blueprint(grade_bp)
    app.register_blueprint(history_bp)


__all__ = [
    'register_routes',
    'auth_bp',
    'class_bp',
    'exam_bp',
    'grade_bp',
    'history_bp',
]
